"""
Task ETA Risk — System-wide constants.

Every magic number lives here. If you find a literal in the codebase that is
not a local variable, it belongs here instead.
"""

# ---------------------------------------------------------------------------
# Time units
# ---------------------------------------------------------------------------

SECONDS_PER_HOUR: float = 3600.0

# ---------------------------------------------------------------------------
# Risk thresholds
# ---------------------------------------------------------------------------

# Per-item: ETA closer than this to the due date is AT_RISK.
ITEM_BUFFER_HOURS: float = 24.0

# Portfolio: slack below one nominal workday is TIGHT.
PORTFOLIO_BUFFER_HOURS: float = 8.0

# ---------------------------------------------------------------------------
# Verdict reasons
# ---------------------------------------------------------------------------

REASON_NO_DUE = "No due date set"
REASON_NO_ETA = "No ETA / remaining hours provided"
REASON_LATE = "ETA exceeds due date"
REASON_AT_RISK = "Less than one day of buffer"
REASON_ITEM_OK = "ETA comfortably before due date"

REASON_PORTFOLIO_NO_DUE = "No open issues have a due date."
REASON_OVERBOOKED = (
    "Total estimated hours exceed the time budget until the furthest due date."
)
REASON_TIGHT = "Less than one workday of buffer across all open issues."
REASON_PORTFOLIO_OK = "Total estimate fits within the time budget."

# ---------------------------------------------------------------------------
# Issue tracker
# ---------------------------------------------------------------------------

DEFAULT_ESTIMATE_PROPERTY_KEY: str = "com.tasketa.estimate"

ISSUE_FIELDS: str = "summary,duedate,status,assignee"
SEARCH_FIELDS: str = "summary,duedate,status"

OPEN_ISSUES_JQL: str = (
    "assignee = currentUser() AND statusCategory != Done ORDER BY duedate ASC"
)
OPEN_ISSUES_FOR_ACCOUNT_JQL: str = (
    'assignee = "{account_id}" AND statusCategory != Done ORDER BY duedate ASC'
)

# Wire keys of the stored estimate payload.
ESTIMATE_KEY_REMAINING = "remainingHours"
ESTIMATE_KEY_TARGET = "etaISO"
ESTIMATE_KEY_RECORDED = "updatedAt"
