"""
tasketa.analytics.risk — Per-item deadline risk classification.

A strict decision tree: the first matching rule wins.

    due date missing          → NO_DUE
    no usable ETA             → UNKNOWN
    ETA after due             → LATE
    due - ETA < buffer        → AT_RISK
    otherwise                 → OK
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from tasketa.core.constants import (
    ITEM_BUFFER_HOURS,
    REASON_AT_RISK, REASON_ITEM_OK, REASON_LATE, REASON_NO_DUE, REASON_NO_ETA,
)
from tasketa.core.utils import FAR_FUTURE, add_hours, coerce_hours, ensure_utc, hours_between
from tasketa.domain.enums import ItemRiskLevel
from tasketa.domain.models import Estimate, ItemRiskVerdict


def projected_eta(now: datetime, estimate: Optional[Estimate]) -> Optional[datetime]:
    """
    The instant the item is expected to be done.

    A declared target wins; otherwise positive remaining hours are projected
    forward from ``now``.  Zero hours without a target is not an ETA.
    """
    if estimate is None:
        return None
    if isinstance(estimate.target_completion_time, datetime):
        return ensure_utc(estimate.target_completion_time)
    hours = coerce_hours(estimate.remaining_hours)
    if hours is not None and hours > 0:
        try:
            return add_hours(now, hours)
        except OverflowError:
            # Past the last representable instant: later than any due date.
            return FAR_FUTURE
    return None


def evaluate_item_risk(
    now: datetime,
    due_time: Optional[datetime],
    estimate: Optional[Estimate],
    buffer_hours: float = ITEM_BUFFER_HOURS,
) -> ItemRiskVerdict:
    """
    Classify one item against its due date.

    Args:
        now:          Evaluation instant.
        due_time:     Deadline, or None when the item has none.
        estimate:     Stored estimate, or None.
        buffer_hours: Minimum comfortable slack between ETA and due.

    Returns an ItemRiskVerdict; never raises for missing or unusable input.
    """
    if not isinstance(due_time, datetime):
        return ItemRiskVerdict(ItemRiskLevel.NO_DUE, REASON_NO_DUE)

    eta = projected_eta(now, estimate)
    if eta is None:
        return ItemRiskVerdict(ItemRiskLevel.UNKNOWN, REASON_NO_ETA)

    due = ensure_utc(due_time)
    slack = hours_between(eta, due)

    if eta > due:
        return ItemRiskVerdict(ItemRiskLevel.LATE, REASON_LATE, eta=eta, buffer_hours=slack)
    if slack < buffer_hours:
        return ItemRiskVerdict(ItemRiskLevel.AT_RISK, REASON_AT_RISK, eta=eta, buffer_hours=slack)
    return ItemRiskVerdict(ItemRiskLevel.OK, REASON_ITEM_OK, eta=eta, buffer_hours=slack)
