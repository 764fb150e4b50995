"""
Pytest configuration and shared fixtures.

Fixtures available to all tests:
  • now                 — fixed evaluation instant (2024-01-01T00:00Z)
  • make_issue(...)     — raw tracker issue dict factory
  • fake_fetcher        — in-memory stand-in for JiraFetcher
  • memory_store        — in-memory EstimateStore
  • make_service(...)   — RiskService wired to the fakes with a frozen clock
"""

from __future__ import annotations

import os
import sys
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, List, Optional

import pytest

# Ensure the project root is on the path so all tasketa imports resolve.
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from tasketa.data_pipeline.fetcher import IssueNotVisibleError  # noqa: E402
from tasketa.domain.models import Estimate  # noqa: E402
from tasketa.estimate_store import EstimateStore  # noqa: E402
from tasketa.risk_service import RiskService  # noqa: E402

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Raw issue factory
# ---------------------------------------------------------------------------

def _issue(key: str = "PROJ-1", summary: str = "Ship it", duedate: Optional[str] = "2024-01-10") -> dict:
    return {
        "key": key,
        "fields": {
            "summary": summary,
            "duedate": duedate,
            "status": {"name": "In Progress"},
        },
    }


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_issue():
    return _issue


# ---------------------------------------------------------------------------
# Collaborator fakes
# ---------------------------------------------------------------------------

class FakeFetcher:
    """Serves issues from a dict; keys listed in ``hidden`` raise 404."""

    def __init__(self) -> None:
        self.issues: Dict[str, dict] = {}
        self.open_keys: List[str] = []
        self.hidden: set = set()
        self.fail_search: Optional[Exception] = None
        self.fail_issue: Optional[Exception] = None
        self.search_calls: List[Optional[str]] = []
        self.closed = False

    def add(self, raw: dict, open_: bool = True) -> None:
        self.issues[raw["key"]] = raw
        if open_:
            self.open_keys.append(raw["key"])

    async def get_issue(self, issue_key: str, fields: str = "") -> dict:
        if self.fail_issue is not None:
            raise self.fail_issue
        if issue_key in self.hidden or issue_key not in self.issues:
            raise IssueNotVisibleError(issue_key)
        return self.issues[issue_key]

    async def iter_open_issues(self, account_id: Optional[str] = None, **_kwargs: Any) -> AsyncIterator[dict]:
        self.search_calls.append(account_id)
        if self.fail_search is not None:
            raise self.fail_search
        for key in self.open_keys:
            yield self.issues[key]

    async def close(self) -> None:
        self.closed = True


class MemoryEstimateStore(EstimateStore):
    backend = "memory"

    def __init__(self) -> None:
        self.data: Dict[str, Estimate] = {}
        self.fail_put: Optional[Exception] = None
        self.fail_get: Optional[Exception] = None

    async def get(self, issue_key: str) -> Optional[Estimate]:
        if self.fail_get is not None:
            raise self.fail_get
        return self.data.get(issue_key)

    async def put(self, issue_key: str, estimate: Estimate) -> None:
        if self.fail_put is not None:
            raise self.fail_put
        self.data[issue_key] = estimate


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def memory_store() -> MemoryEstimateStore:
    return MemoryEstimateStore()


@pytest.fixture
def make_service(fake_fetcher, memory_store):
    def _factory(**kwargs: Any) -> RiskService:
        kwargs.setdefault("clock", lambda: NOW)
        kwargs.setdefault("item_buffer_hours", 24.0)
        kwargs.setdefault("portfolio_buffer_hours", 8.0)
        return RiskService(fake_fetcher, memory_store, **kwargs)
    return _factory

