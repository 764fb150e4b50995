"""
Task ETA Risk — Logging setup.

``tasketa.app`` calls ``configure_logging()`` at import time; later calls
are no-ops.  Modules log through ``logging.getLogger(__name__)``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional


_CONFIGURED = False

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Per-request chatter from the HTTP client, the ORM and the access log.
_QUIET_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine", "uvicorn.access")


def _resolve_level(name: str) -> int:
    value = logging.getLevelName(name.strip().upper())
    return value if isinstance(value, int) else logging.INFO


def configure_logging(level: Optional[str] = None) -> None:
    """Set the root level (``level`` or ``LOG_LEVEL``, default INFO) once.

    A stdout handler is only installed when nothing else (uvicorn, pytest)
    has attached one to the root logger.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    root = logging.getLogger()
    root.setLevel(_resolve_level(level or os.environ.get("LOG_LEVEL", "INFO")))

    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT))
        root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _CONFIGURED = True
