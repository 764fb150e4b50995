"""
tasketa.analytics.estimates — Estimate-to-hours conversion.

Normalises the two competing estimate representations (explicit remaining
hours vs. a target completion instant) into a single hour figure.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from tasketa.core.utils import coerce_hours, hours_between
from tasketa.domain.models import Estimate


def to_hours(estimate: Optional[Estimate], now: datetime) -> Optional[float]:
    """
    Remaining work in hours, or None when unknown.

    Precedence:
      1. ``remaining_hours`` when present and >= 0, returned verbatim.
      2. ``target_completion_time - now`` in hours, floored at 0 so a worker
         already past their own target adds no further hours.
      3. Otherwise unknown.
    """
    if estimate is None:
        return None

    hours = coerce_hours(estimate.remaining_hours)
    if hours is not None and hours >= 0:
        return hours

    target = estimate.target_completion_time
    if isinstance(target, datetime):
        return max(0.0, hours_between(now, target))

    return None
