"""
Task ETA Risk - FastAPI Application
Main entry point for the backend server.

Run with:
    uvicorn tasketa.app:app --reload --host 0.0.0.0 --port 8001
"""

import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tasketa import __version__, config
from tasketa.core.logging import configure_logging
from tasketa.domain.enums import EstimateStoreKind
from tasketa.domain.models import WorkerContext
from tasketa.risk_service import close_risk_service

configure_logging()
logger = logging.getLogger(__name__)

WORKER_HEADER = "X-Worker-Account-Id"
CONTEXT_ISSUE_HEADER = "X-Context-Issue-Key"


# ---------------------------------------------------------------------------
# Lifespan (startup / shutdown)
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Runs once on startup, yields for the lifetime of the app, then cleans up."""
    if not config.JIRA_BASE_URL:
        logger.warning("JIRA_BASE_URL is not set; tracker calls will fail.")

    if config.ESTIMATE_STORE == EstimateStoreKind.SQL.value:
        from tasketa.database import init_db
        logger.info("Initialising estimate database...")
        init_db()
        logger.info("Database ready.")

    yield  # Application is running

    await close_risk_service()


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Task ETA Risk",
    version=__version__,
    description="Deadline risk for a single issue and workload risk across a worker's open issues",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Global exception handler -- surfaces unhandled errors as structured JSON
# ---------------------------------------------------------------------------

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled exception on %s %s: %s\n%s",
        request.method, request.url.path, exc, traceback.format_exc(),
    )
    return JSONResponse(
        status_code=500,
        content={
            "ok": False,
            "error": "SERVER_ERROR",
            "message": str(exc),
            "type": type(exc).__name__,
            "path": request.url.path,
        },
    )


# ---------------------------------------------------------------------------
# Worker context -- who is asking, and from which issue
# ---------------------------------------------------------------------------

@app.middleware("http")
async def worker_context_middleware(request: Request, call_next):
    """
    Attach a ``WorkerContext`` to ``request.state.worker_ctx``.

    Downstream route handlers can access it via::

        ctx: WorkerContext = request.state.worker_ctx

    Missing headers leave the fields None: the tracker's own API user and
    no context issue.
    """
    account_id = (request.headers.get(WORKER_HEADER) or "").strip() or None
    issue_key = (request.headers.get(CONTEXT_ISSUE_HEADER) or "").strip() or None
    request.state.worker_ctx = WorkerContext(account_id=account_id, context_issue_key=issue_key)
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

from tasketa.api.routes import register_routes  # noqa: E402

register_routes(app)


# ---------------------------------------------------------------------------
# Development entry-point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("tasketa.app:app", host="0.0.0.0", port=config.PORT, reload=True)
