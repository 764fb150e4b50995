"""
Task ETA Risk — Tracker payload normalizer.

Converts raw Jira REST dicts into typed domain objects.  Date-only due
dates become the last millisecond of that day in the configured zone.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from tasketa import config
from tasketa.core.utils import end_of_day, parse_date
from tasketa.domain.models import Estimate, Item

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Public: raw issue dict → Item
# ---------------------------------------------------------------------------

def normalize_issue(raw: dict, zone_name: Optional[str] = None) -> Item:
    """Convert an issue from ``/issue/{key}`` or ``/search`` into an ``Item``.

    Parameters
    ----------
    raw:
        Issue dict (``{"key": ..., "fields": {"summary": ..., "duedate": ...}}``).
    zone_name:
        Zone used for end-of-day conversion; defaults to
        ``config.DUE_DATE_TIMEZONE``.

    Returns
    -------
    Item.  A malformed due date is logged and treated as no due date.
    """
    fields = raw.get("fields") or {}
    key = str(raw.get("key") or raw.get("id") or "")

    raw_due = fields.get("duedate")
    due_date = parse_date(raw_due)
    if raw_due and due_date is None:
        logger.warning("Issue %s has unparseable duedate %r; ignoring it", key, raw_due)

    due_time = None
    if due_date is not None:
        due_time = end_of_day(due_date, zone_name or config.DUE_DATE_TIMEZONE)

    status = fields.get("status")
    status_name = status.get("name") if isinstance(status, dict) else None

    return Item(
        identifier=key,
        title=fields.get("summary") or "",
        due_date=due_date,
        due_time=due_time,
        status=status_name,
    )


# ---------------------------------------------------------------------------
# Public: raw issue-property dict → Estimate
# ---------------------------------------------------------------------------

def normalize_estimate_property(raw: Any) -> Optional[Estimate]:
    """Unwrap ``{"key": ..., "value": {...}}`` returned by the property API."""
    if not isinstance(raw, dict):
        return None
    return Estimate.from_payload(raw.get("value"))
