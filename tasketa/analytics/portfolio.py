"""
tasketa.analytics.portfolio — Workload-level risk across all open items.

Sums the remaining hours of every estimated item and compares the total with
the time left until the furthest due date.  Unlike per-item hours, the budget
is never clamped: a negative budget means the worker is already past their
latest deadline.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol

from tasketa.analytics.estimates import to_hours
from tasketa.core.constants import (
    PORTFOLIO_BUFFER_HOURS,
    REASON_OVERBOOKED, REASON_PORTFOLIO_NO_DUE, REASON_PORTFOLIO_OK, REASON_TIGHT,
)
from tasketa.core.utils import ensure_utc, hours_between
from tasketa.domain.enums import PortfolioRiskLevel
from tasketa.domain.models import Estimate, PortfolioVerdict


class PortfolioItem(Protocol):
    @property
    def due_time(self) -> Optional[datetime]:
        ...

    @property
    def estimate(self) -> Optional[Estimate]:
        ...


def evaluate_portfolio(
    now: datetime,
    items: Iterable[PortfolioItem],
    buffer_hours: float = PORTFOLIO_BUFFER_HOURS,
) -> PortfolioVerdict:
    """
    Aggregate open items into a single workload verdict.

    Args:
        now:          Evaluation instant.
        items:        Open items; each exposes ``due_time`` and ``estimate``.
        buffer_hours: Minimum slack (budget minus committed hours) that is
                      still considered comfortable.

    Returns a PortfolioVerdict.  Items without a usable estimate are counted
    in ``unknown_count`` and excluded from the hour total.
    """
    furthest_due: Optional[datetime] = None
    total_hours = 0.0
    open_count = 0
    estimated_count = 0
    unknown_count = 0

    for item in items:
        open_count += 1

        due = item.due_time
        if isinstance(due, datetime):
            due = ensure_utc(due)
            if furthest_due is None or due > furthest_due:
                furthest_due = due

        hours = to_hours(item.estimate, now)
        if hours is None:
            unknown_count += 1
        else:
            total_hours += hours
            estimated_count += 1

    if furthest_due is None:
        return PortfolioVerdict(
            level=PortfolioRiskLevel.NO_DUE,
            reason=REASON_PORTFOLIO_NO_DUE,
            total_estimated_hours=total_hours,
            open_count=open_count,
            estimated_count=estimated_count,
            unknown_count=unknown_count,
        )

    budget = hours_between(now, furthest_due)
    slack = budget - total_hours

    if total_hours > budget:
        level, reason = PortfolioRiskLevel.OVERBOOKED, REASON_OVERBOOKED
    elif slack < buffer_hours:
        level, reason = PortfolioRiskLevel.TIGHT, REASON_TIGHT
    else:
        level, reason = PortfolioRiskLevel.OK, REASON_PORTFOLIO_OK

    return PortfolioVerdict(
        level=level,
        reason=reason,
        total_estimated_hours=total_hours,
        budget_hours=budget,
        buffer_hours=slack,
        furthest_due_time=furthest_due,
        open_count=open_count,
        estimated_count=estimated_count,
        unknown_count=unknown_count,
    )
