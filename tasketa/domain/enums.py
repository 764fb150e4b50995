"""
tasketa.domain.enums — All enumerations used across the service.

Keep this module import-clean (stdlib only).
"""

from enum import Enum


# ---------------------------------------------------------------------------
# Banner appearance (panel rendering hint)
# ---------------------------------------------------------------------------

class Appearance(str, Enum):
    SUCCESS     = "success"
    INFORMATION = "information"
    WARNING     = "warning"
    ERROR       = "error"


# ---------------------------------------------------------------------------
# Per-item risk levels
# ---------------------------------------------------------------------------

class ItemRiskLevel(str, Enum):
    """
    Closed set of per-item verdicts.  Consumers switch on every member, so
    adding one means updating each of them.
    """
    NO_DUE  = "NO_DUE"
    UNKNOWN = "UNKNOWN"
    LATE    = "LATE"
    AT_RISK = "AT_RISK"
    OK      = "OK"

    @property
    def appearance(self) -> Appearance:
        return {
            "LATE":    Appearance.ERROR,
            "AT_RISK": Appearance.WARNING,
            "OK":      Appearance.SUCCESS,
        }.get(self.value, Appearance.INFORMATION)

    @property
    def title(self) -> str:
        """Banner heading shown above the reason."""
        return {
            "LATE":    "Likely to miss deadline",
            "AT_RISK": "Potential delay",
            "OK":      "On track",
        }.get(self.value, "Info")


# ---------------------------------------------------------------------------
# Portfolio risk levels
# ---------------------------------------------------------------------------

class PortfolioRiskLevel(str, Enum):
    NO_DUE     = "NO_DUE"
    OVERBOOKED = "OVERBOOKED"
    TIGHT      = "TIGHT"
    OK         = "OK"

    @property
    def appearance(self) -> Appearance:
        return {
            "OVERBOOKED": Appearance.ERROR,
            "TIGHT":      Appearance.WARNING,
            "OK":         Appearance.SUCCESS,
        }.get(self.value, Appearance.INFORMATION)

    @property
    def title(self) -> str:
        return "Workload on track" if self is PortfolioRiskLevel.OK else "Workload risk"


# ---------------------------------------------------------------------------
# Caller-facing failure codes
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    NO_KEY           = "NO_KEY"
    INVALID_ESTIMATE = "INVALID_ESTIMATE"
    NOT_VISIBLE      = "NOT_VISIBLE"
    SERVER_ERROR     = "SERVER_ERROR"
    SAVE_FAILED      = "SAVE_FAILED"
    PORTFOLIO_FAILED = "PORTFOLIO_FAILED"

    @property
    def http_status(self) -> int:
        return {
            "NO_KEY":           400,
            "INVALID_ESTIMATE": 422,
            "NOT_VISIBLE":      404,
        }.get(self.value, 502)


# ---------------------------------------------------------------------------
# Estimate store backends
# ---------------------------------------------------------------------------

class EstimateStoreKind(str, Enum):
    JIRA = "jira"
    SQL  = "sql"
