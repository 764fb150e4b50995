"""
Centralized configuration for Task ETA Risk.
All settings come from environment variables for 12-factor deployment.
"""

import os

from tasketa.core.constants import DEFAULT_ESTIMATE_PROPERTY_KEY


def _env_bool(name: str, default: bool = False) -> bool:
    val = os.environ.get(name)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "on"}


# ---------------------------------------------------------------------------
# Issue tracker (Jira Cloud REST v3)
# ---------------------------------------------------------------------------
JIRA_BASE_URL = os.environ.get("JIRA_BASE_URL", "").strip().rstrip("/")
JIRA_EMAIL = os.environ.get("JIRA_EMAIL", "")
JIRA_API_TOKEN = os.environ.get("JIRA_API_TOKEN", "")

# Issue property holding the worker's estimate payload.
ESTIMATE_PROPERTY_KEY = os.environ.get("ESTIMATE_PROPERTY_KEY", DEFAULT_ESTIMATE_PROPERTY_KEY)

TRACKER_TIMEOUT_SECONDS = float(os.environ.get("TRACKER_TIMEOUT_SECONDS", "15"))
TRACKER_MAX_RETRIES = int(os.environ.get("TRACKER_MAX_RETRIES", "4"))
TRACKER_RETRY_BACKOFF_SECONDS = float(os.environ.get("TRACKER_RETRY_BACKOFF_SECONDS", "2"))

# ---------------------------------------------------------------------------
# Open-issue listing
# ---------------------------------------------------------------------------
# Page size for each search request and hard cap on issues pulled per worker.
SEARCH_PAGE_SIZE = int(os.environ.get("SEARCH_PAGE_SIZE", "100"))
SEARCH_MAX_ISSUES = int(os.environ.get("SEARCH_MAX_ISSUES", "10000"))
# Concurrent estimate reads while building a portfolio.
ESTIMATE_READ_CONCURRENCY = int(os.environ.get("ESTIMATE_READ_CONCURRENCY", "8"))

# ---------------------------------------------------------------------------
# Estimate storage
# ---------------------------------------------------------------------------
# "jira" keeps estimates as an issue property; "sql" uses DATABASE_URL.
ESTIMATE_STORE = os.environ.get("ESTIMATE_STORE", "jira").strip().lower()
_BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DATABASE_URL = os.environ.get(
    "DATABASE_URL",
    f"sqlite:///{os.path.join(_BASE_DIR, 'tasketa.db')}",
)
DATABASE_ECHO = _env_bool("DATABASE_ECHO", False)

# ---------------------------------------------------------------------------
# Risk thresholds
# ---------------------------------------------------------------------------
# Date-only due dates are read as end-of-day in this zone.
DUE_DATE_TIMEZONE = os.environ.get("DUE_DATE_TIMEZONE", "UTC")
ITEM_BUFFER_HOURS = float(os.environ.get("ITEM_BUFFER_HOURS", "24"))
PORTFOLIO_BUFFER_HOURS = float(os.environ.get("PORTFOLIO_BUFFER_HOURS", "8"))

# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------
PORT = int(os.environ.get("PORT", "8001"))
CORS_ORIGINS = [
    s.strip()
    for s in os.environ.get("CORS_ORIGINS", "*").split(",")
    if s.strip()
]
