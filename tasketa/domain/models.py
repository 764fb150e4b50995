"""
tasketa.domain.models — Canonical dataclass models.

These are the single source of truth for data structures flowing through
the service.  Layers that produce or consume these models must not invent
their own parallel types.

Import pattern::

    from tasketa.domain.models import Estimate, Item, ItemRiskVerdict
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Optional

from tasketa.core.constants import (
    ESTIMATE_KEY_RECORDED, ESTIMATE_KEY_REMAINING, ESTIMATE_KEY_TARGET,
)
from tasketa.core.utils import coerce_hours, parse_timestamp, to_iso, utc_now
from tasketa.domain.enums import ItemRiskLevel, PortfolioRiskLevel


# ---------------------------------------------------------------------------
# Estimate (one per item, overwritten wholesale)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Estimate:
    """
    A worker's commitment for one item.

    ``remaining_hours`` wins over ``target_completion_time`` when converting
    to hours; the item evaluator projects its ETA from the target first.
    """
    remaining_hours:        Optional[float] = None
    target_completion_time: Optional[datetime] = None
    recorded_at:            datetime = field(default_factory=utc_now)

    @property
    def is_empty(self) -> bool:
        return self.remaining_hours is None and self.target_completion_time is None

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["Estimate"]:
        """Build from the stored JSON payload.

        Unusable fields degrade to None; a non-dict payload yields None.
        Negative hours are dropped here so the converter never sees them.
        """
        if not isinstance(payload, dict):
            return None
        hours = coerce_hours(payload.get(ESTIMATE_KEY_REMAINING))
        if hours is not None and hours < 0:
            hours = None
        target = parse_timestamp(payload.get(ESTIMATE_KEY_TARGET))
        recorded = parse_timestamp(payload.get(ESTIMATE_KEY_RECORDED)) or utc_now()
        return cls(
            remaining_hours=hours,
            target_completion_time=target,
            recorded_at=recorded,
        )

    def to_payload(self) -> Dict[str, Any]:
        """Wire form, omitting absent fields."""
        d: Dict[str, Any] = {ESTIMATE_KEY_RECORDED: to_iso(self.recorded_at)}
        if self.target_completion_time is not None:
            d[ESTIMATE_KEY_TARGET] = to_iso(self.target_completion_time)
        if self.remaining_hours is not None:
            d[ESTIMATE_KEY_REMAINING] = self.remaining_hours
        return d


# ---------------------------------------------------------------------------
# Item (snapshot read from the tracker)
# ---------------------------------------------------------------------------

@dataclass
class Item:
    identifier: str
    title:      str = ""
    due_date:   Optional[date] = None        # as stored by the tracker
    due_time:   Optional[datetime] = None    # end-of-day instant in UTC
    status:     Optional[str] = None


@dataclass
class PortfolioEntry:
    """One open item paired with its (possibly missing) estimate."""
    item:     Item
    estimate: Optional[Estimate] = None

    @property
    def due_time(self) -> Optional[datetime]:
        return self.item.due_time


# ---------------------------------------------------------------------------
# Verdicts (ephemeral, recomputed on every read)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ItemRiskVerdict:
    level:        ItemRiskLevel
    reason:       str
    eta:          Optional[datetime] = None
    buffer_hours: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level":        self.level.value,
            "reason":       self.reason,
            "eta":          to_iso(self.eta),
            "buffer_hours": self.buffer_hours,
            "appearance":   self.level.appearance.value,
            "title":        self.level.title,
        }


@dataclass(frozen=True)
class PortfolioVerdict:
    level:                 PortfolioRiskLevel
    reason:                str
    total_estimated_hours: float = 0.0
    budget_hours:          Optional[float] = None
    buffer_hours:          Optional[float] = None
    furthest_due_time:     Optional[datetime] = None
    open_count:            int = 0
    estimated_count:       int = 0
    unknown_count:         int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level":                 self.level.value,
            "reason":                self.reason,
            "total_estimated_hours": self.total_estimated_hours,
            "budget_hours":          self.budget_hours,
            "buffer_hours":          self.buffer_hours,
            "furthest_due_time":     to_iso(self.furthest_due_time),
            "open_count":            self.open_count,
            "estimated_count":       self.estimated_count,
            "unknown_count":         self.unknown_count,
            "appearance":            self.level.appearance.value,
            "title":                 self.level.title,
        }


def is_on_track(
    item_verdict: Optional[ItemRiskVerdict],
    portfolio_verdict: Optional[PortfolioVerdict],
) -> bool:
    """True when the item is OK and the workload is either unknown or OK."""
    if item_verdict is None or item_verdict.level is not ItemRiskLevel.OK:
        return False
    return portfolio_verdict is None or portfolio_verdict.level is PortfolioRiskLevel.OK


# ---------------------------------------------------------------------------
# Worker context (resolved once per API request)
# ---------------------------------------------------------------------------

@dataclass
class WorkerContext:
    """
    Who is asking and which issue the caller is looking at.
    ``account_id`` None means "the identity the tracker client logs in as".
    """
    account_id:        Optional[str] = None
    context_issue_key: Optional[str] = None

    @classmethod
    def anonymous(cls) -> "WorkerContext":
        return cls()
