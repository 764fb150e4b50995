"""
Task ETA Risk — Centralised router registration.

This module is the single place where every APIRouter is mounted onto the
FastAPI application.  Import and call ``register_routes(app)`` once in
``tasketa.app``.

  GET  /api/risk                       — item + workload risk (context issue fallback)
  GET  /api/issues/{issue_key}/risk    — item + workload risk
  PUT  /api/issues/{issue_key}/estimate — replace the stored estimate
  GET  /api/portfolio/risk             — workload risk for the worker
  GET  /health                         — health check
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.responses import JSONResponse

from tasketa import __version__, config
from tasketa.api.schemas import (
    ErrorResponse,
    EstimateOut,
    HealthResponse,
    IssueRiskResponse,
    ItemRiskOut,
    PortfolioOut,
    PortfolioRiskResponse,
    SaveEstimateRequest,
    SaveEstimateResponse,
)
from tasketa.domain.models import WorkerContext
from tasketa.risk_service import OperationResult, get_risk_service

logger = logging.getLogger(__name__)

# Module-level start time for uptime reporting
_START_TIME: float = time.time()

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


def _worker_ctx(request: Request) -> WorkerContext:
    return getattr(request.state, "worker_ctx", None) or WorkerContext.anonymous()


def _error_response(result: OperationResult) -> JSONResponse:
    status = result.error.http_status if result.error else 500
    body = ErrorResponse(
        error=result.error.value if result.error else "SERVER_ERROR",
        message=result.message,
        issue_key=result.issue_key,
    )
    return JSONResponse(status_code=status, content=body.model_dump())


def _issue_risk_response(result: OperationResult) -> IssueRiskResponse:
    d = result.data
    return IssueRiskResponse(
        issue_key=d["issue_key"],
        summary=d.get("summary", ""),
        due_date=d.get("due_date"),
        due_time=d.get("due_time"),
        estimate=EstimateOut.from_domain(d.get("estimate")),
        risk=ItemRiskOut.from_domain(d["risk"]),
        portfolio=PortfolioOut.from_domain(d["portfolio"]),
        on_track=d.get("on_track", False),
    )


# ---------------------------------------------------------------------------
# Issue risk endpoints
# ---------------------------------------------------------------------------

risk_router = APIRouter(prefix="/api", tags=["risk"])


@risk_router.get(
    "/risk",
    response_model=IssueRiskResponse,
    responses=_ERROR_RESPONSES,
    summary="Risk for an issue (defaults to the caller's context issue)",
)
async def get_risk(
    request: Request,
    issue_key: Optional[str] = Query(None, max_length=64),
):
    ctx = _worker_ctx(request)
    result = await get_risk_service().get_issue_risk(
        issue_key,
        context_issue_key=ctx.context_issue_key,
        account_id=ctx.account_id,
    )
    if not result.ok:
        return _error_response(result)
    return _issue_risk_response(result)


@risk_router.get(
    "/issues/{issue_key}/risk",
    response_model=IssueRiskResponse,
    responses=_ERROR_RESPONSES,
    summary="Risk for a specific issue",
)
async def get_issue_risk(request: Request, issue_key: str):
    ctx = _worker_ctx(request)
    result = await get_risk_service().get_issue_risk(issue_key, account_id=ctx.account_id)
    if not result.ok:
        return _error_response(result)
    return _issue_risk_response(result)


@risk_router.put(
    "/issues/{issue_key}/estimate",
    response_model=SaveEstimateResponse,
    responses=_ERROR_RESPONSES,
    summary="Replace the stored estimate for an issue",
)
async def save_estimate(
    issue_key: str,
    body: SaveEstimateRequest,
):
    result = await get_risk_service().save_estimate(
        issue_key,
        remaining_hours=body.remaining_hours,
        target_completion_time=body.target_completion_time,
    )
    if not result.ok:
        return _error_response(result)
    return SaveEstimateResponse(
        issue_key=result.data["issue_key"],
        estimate=EstimateOut.from_domain(result.data["estimate"]),
        risk=ItemRiskOut.from_domain(result.data["risk"]),
    )


# ---------------------------------------------------------------------------
# Portfolio endpoint
# ---------------------------------------------------------------------------

portfolio_router = APIRouter(prefix="/api/portfolio", tags=["portfolio"])


@portfolio_router.get(
    "/risk",
    response_model=PortfolioRiskResponse,
    responses=_ERROR_RESPONSES,
    summary="Workload risk across all open issues",
)
async def get_portfolio_risk(request: Request):
    ctx = _worker_ctx(request)
    result = await get_risk_service().get_portfolio_risk(ctx.account_id)
    if not result.ok:
        return _error_response(result)
    return PortfolioRiskResponse(portfolio=PortfolioOut.from_domain(result.data["portfolio"]))


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

system_router = APIRouter(tags=["system"])


@system_router.get("/health", response_model=HealthResponse, summary="Health check")
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        estimate_store=config.ESTIMATE_STORE,
        tracker_configured=bool(config.JIRA_BASE_URL and config.JIRA_API_TOKEN),
        uptime_seconds=round(time.time() - _START_TIME, 1),
    )


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

def register_routes(app: FastAPI) -> None:
    """Mount all routers onto ``app``.

    Call this once from ``tasketa.app`` after creating the FastAPI instance.
    """
    app.include_router(risk_router)
    app.include_router(portfolio_router)
    app.include_router(system_router)

    logger.info("Routes registered: %d total endpoints", len(app.routes))
