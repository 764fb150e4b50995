"""
Risk service — the caller-facing read / write / portfolio operations.

Fetches issues and estimates through the tracker client and estimate store,
hands them to the pure analytics functions with an explicit ``now``, and
wraps the outcome in an ``OperationResult``.  Failures are returned as
tagged values, never raised.

Usage::

    service = get_risk_service()
    result  = await service.get_issue_risk("PROJ-1")
    if result.ok:
        print(result.data["risk"].level)
"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

from tasketa import config
from tasketa.analytics.portfolio import evaluate_portfolio
from tasketa.analytics.risk import evaluate_item_risk
from tasketa.core.utils import coerce_hours, format_hours, parse_timestamp, utc_now
from tasketa.data_pipeline.fetcher import IssueNotVisibleError, JiraFetcher, TrackerError
from tasketa.data_pipeline.normalizer import normalize_issue
from tasketa.domain.enums import ErrorCode
from tasketa.domain.models import (
    Estimate, Item, ItemRiskVerdict, PortfolioEntry, PortfolioVerdict, is_on_track,
)
from tasketa.estimate_store import EstimateStore, get_estimate_store, reset_estimate_store

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result value
# ---------------------------------------------------------------------------

@dataclass
class OperationResult:
    ok:        bool
    data:      Dict[str, Any] = field(default_factory=dict)
    error:     Optional[ErrorCode] = None
    message:   str = ""
    issue_key: Optional[str] = None

    @classmethod
    def success(cls, **data: Any) -> "OperationResult":
        return cls(ok=True, data=data)

    @classmethod
    def failure(
        cls, error: ErrorCode, message: str, issue_key: Optional[str] = None,
    ) -> "OperationResult":
        return cls(ok=False, error=error, message=message, issue_key=issue_key)


def _not_visible_message(issue_key: str) -> str:
    return (
        f"Issue {issue_key} is not accessible to the app user "
        f"(Browse permission) or the key is invalid."
    )


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class RiskService:
    """Glue between the tracker, the estimate store and the analytics core."""

    def __init__(
        self,
        fetcher: JiraFetcher,
        store: EstimateStore,
        clock: Callable[[], datetime] = utc_now,
        item_buffer_hours: Optional[float] = None,
        portfolio_buffer_hours: Optional[float] = None,
        estimate_concurrency: Optional[int] = None,
    ) -> None:
        self.fetcher = fetcher
        self.store = store
        self._clock = clock
        self.item_buffer_hours = (
            config.ITEM_BUFFER_HOURS if item_buffer_hours is None else item_buffer_hours
        )
        self.portfolio_buffer_hours = (
            config.PORTFOLIO_BUFFER_HOURS if portfolio_buffer_hours is None else portfolio_buffer_hours
        )
        self.estimate_concurrency = max(
            1, estimate_concurrency or config.ESTIMATE_READ_CONCURRENCY,
        )

    # ------------------------------------------------------------------
    # Building blocks (raise on tracker/store failure)
    # ------------------------------------------------------------------

    async def load_item(self, issue_key: str) -> Item:
        raw = await self.fetcher.get_issue(issue_key)
        item = normalize_issue(raw)
        if not item.identifier:
            item.identifier = issue_key
        return item

    async def load_portfolio_entries(self, account_id: Optional[str] = None) -> List[PortfolioEntry]:
        """All open issues for the worker, each paired with its estimate."""
        items: List[Item] = []
        async for raw in self.fetcher.iter_open_issues(account_id):
            if not isinstance(raw, dict):
                logger.warning("Skipping malformed search entry: %r", raw)
                continue
            items.append(normalize_issue(raw))
        sem = asyncio.Semaphore(self.estimate_concurrency)

        async def _with_estimate(item: Item) -> PortfolioEntry:
            async with sem:
                estimate = await self.store.get(item.identifier)
            return PortfolioEntry(item=item, estimate=estimate)

        return list(await asyncio.gather(*(_with_estimate(i) for i in items)))

    def item_verdict(
        self, now: datetime, item: Item, estimate: Optional[Estimate],
    ) -> ItemRiskVerdict:
        return evaluate_item_risk(now, item.due_time, estimate, buffer_hours=self.item_buffer_hours)

    async def compute_portfolio(
        self, now: datetime, account_id: Optional[str] = None,
    ) -> PortfolioVerdict:
        entries = await self.load_portfolio_entries(account_id)
        verdict = evaluate_portfolio(now, entries, buffer_hours=self.portfolio_buffer_hours)
        logger.info(
            "Portfolio %s: %d open, %d estimated, %d unknown, %s committed",
            verdict.level.value, verdict.open_count, verdict.estimated_count,
            verdict.unknown_count, format_hours(verdict.total_estimated_hours),
        )
        return verdict

    # ------------------------------------------------------------------
    # Caller-facing operations (never raise)
    # ------------------------------------------------------------------

    async def get_issue_risk(
        self,
        issue_key: Optional[str] = None,
        context_issue_key: Optional[str] = None,
        account_id: Optional[str] = None,
    ) -> OperationResult:
        """Item details, its estimate, its verdict and the workload verdict."""
        key = (issue_key or context_issue_key or "").strip()
        logger.debug("get_issue_risk: payload=%r context=%r picked=%r",
                     issue_key, context_issue_key, key)
        if not key:
            return OperationResult.failure(
                ErrorCode.NO_KEY, "Open this panel on an issue or pass an issue_key",
            )

        try:
            item = await self.load_item(key)
            estimate = await self.store.get(key)
            now = self._clock()
            risk = self.item_verdict(now, item, estimate)
            portfolio = await self.compute_portfolio(now, account_id)
        except IssueNotVisibleError:
            logger.warning("Issue %s is not visible to the API user", key)
            return OperationResult.failure(ErrorCode.NOT_VISIBLE, _not_visible_message(key), key)
        except TrackerError as exc:
            logger.error("get_issue_risk failed for %s: %s", key, exc)
            return OperationResult.failure(ErrorCode.SERVER_ERROR, str(exc), key)
        except Exception as exc:
            logger.exception("get_issue_risk crashed for %s", key)
            return OperationResult.failure(ErrorCode.SERVER_ERROR, str(exc), key)

        return OperationResult.success(
            issue_key=key,
            summary=item.title,
            due_date=item.due_date.isoformat() if item.due_date else None,
            due_time=item.due_time,
            estimate=estimate,
            risk=risk,
            portfolio=portfolio,
            on_track=is_on_track(risk, portfolio),
        )

    async def save_estimate(
        self,
        issue_key: Optional[str] = None,
        remaining_hours: Any = None,
        target_completion_time: Union[datetime, str, None] = None,
        context_issue_key: Optional[str] = None,
    ) -> OperationResult:
        """Replace the stored estimate and return it with a fresh verdict."""
        key = (issue_key or context_issue_key or "").strip()
        if not key:
            return OperationResult.failure(ErrorCode.NO_KEY, "No issue key")

        hours: Optional[float] = None
        if remaining_hours is not None:
            hours = coerce_hours(remaining_hours)
            if hours is None or hours < 0:
                return OperationResult.failure(
                    ErrorCode.INVALID_ESTIMATE,
                    "remaining_hours must be a non-negative number", key,
                )

        target: Optional[datetime] = None
        if target_completion_time is not None:
            target = parse_timestamp(target_completion_time)
            if target is None:
                return OperationResult.failure(
                    ErrorCode.INVALID_ESTIMATE,
                    "target_completion_time must be an ISO-8601 timestamp", key,
                )

        now = self._clock()
        estimate = Estimate(remaining_hours=hours, target_completion_time=target, recorded_at=now)
        if estimate.is_empty:
            return OperationResult.failure(
                ErrorCode.INVALID_ESTIMATE,
                "Provide remaining_hours or target_completion_time", key,
            )

        try:
            await self.store.put(key, estimate)
            item = await self.load_item(key)
            risk = self.item_verdict(now, item, estimate)
        except Exception as exc:
            logger.error("save_estimate failed for %s: %s", key, exc)
            return OperationResult.failure(ErrorCode.SAVE_FAILED, str(exc), key)

        logger.info("Saved estimate for %s (%s)", key, risk.level.value)
        return OperationResult.success(issue_key=key, estimate=estimate, risk=risk)

    async def get_portfolio_risk(self, account_id: Optional[str] = None) -> OperationResult:
        """Workload verdict for the worker."""
        try:
            portfolio = await self.compute_portfolio(self._clock(), account_id)
        except Exception as exc:
            logger.error("get_portfolio_risk failed: %s", exc)
            return OperationResult.failure(ErrorCode.PORTFOLIO_FAILED, str(exc))
        return OperationResult.success(portfolio=portfolio)


# ---------------------------------------------------------------------------
# Process-wide instance
# ---------------------------------------------------------------------------

_service_singleton: Optional[RiskService] = None
_service_lock = threading.Lock()


def get_risk_service() -> RiskService:
    global _service_singleton
    if _service_singleton is not None:
        return _service_singleton

    with _service_lock:
        if _service_singleton is None:
            fetcher = JiraFetcher()
            _service_singleton = RiskService(fetcher, get_estimate_store(fetcher))
        return _service_singleton


async def close_risk_service() -> None:
    """Close the tracker client and forget the service and its store."""
    global _service_singleton
    with _service_lock:
        service, _service_singleton = _service_singleton, None
    reset_estimate_store()
    if service is not None:
        await service.fetcher.close()
