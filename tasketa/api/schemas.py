"""
Task ETA Risk — API request/response schemas (Pydantic).

All FastAPI endpoints that return structured data use these models.
This gives us:
  • Automatic OpenAPI documentation
  • Runtime validation / coercion
  • A stable contract between backend and panel frontend
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from tasketa.domain.models import Estimate, ItemRiskVerdict, PortfolioVerdict


# ---------------------------------------------------------------------------
# Shared primitives
# ---------------------------------------------------------------------------

class EstimateOut(BaseModel):
    """The estimate currently stored for an issue."""

    remaining_hours: Optional[float] = None
    target_completion_time: Optional[datetime] = None
    recorded_at: datetime

    @classmethod
    def from_domain(cls, est: Optional[Estimate]) -> Optional["EstimateOut"]:
        if est is None:
            return None
        return cls(
            remaining_hours=est.remaining_hours,
            target_completion_time=est.target_completion_time,
            recorded_at=est.recorded_at,
        )


class ItemRiskOut(BaseModel):
    level: str                          # NO_DUE | UNKNOWN | LATE | AT_RISK | OK
    reason: str
    eta: Optional[datetime] = None
    buffer_hours: Optional[float] = None
    appearance: str = "information"     # banner hint for the panel
    title: str = ""

    @classmethod
    def from_domain(cls, v: ItemRiskVerdict) -> "ItemRiskOut":
        return cls(**v.to_dict())


class PortfolioOut(BaseModel):
    level: str                          # NO_DUE | OVERBOOKED | TIGHT | OK
    reason: str
    total_estimated_hours: float = 0.0
    budget_hours: Optional[float] = None
    buffer_hours: Optional[float] = None
    furthest_due_time: Optional[datetime] = None
    open_count: int = 0
    estimated_count: int = 0
    unknown_count: int = 0
    appearance: str = "information"
    title: str = ""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "level": "OK",
                "reason": "Total estimate fits within the time budget.",
                "total_estimated_hours": 12.0,
                "budget_hours": 240.0,
                "buffer_hours": 228.0,
                "furthest_due_time": "2024-01-10T23:59:59.999Z",
                "open_count": 1,
                "estimated_count": 1,
                "unknown_count": 0,
            }
        }
    )

    @classmethod
    def from_domain(cls, v: PortfolioVerdict) -> "PortfolioOut":
        return cls(**v.to_dict())


# ---------------------------------------------------------------------------
# GET /api/risk, GET /api/issues/{key}/risk
# ---------------------------------------------------------------------------

class IssueRiskResponse(BaseModel):
    ok: bool = True
    issue_key: str
    summary: str = ""
    due_date: Optional[date] = None
    due_time: Optional[datetime] = None
    estimate: Optional[EstimateOut] = None
    risk: ItemRiskOut
    portfolio: PortfolioOut
    on_track: bool = False


# ---------------------------------------------------------------------------
# PUT /api/issues/{key}/estimate
# ---------------------------------------------------------------------------

class SaveEstimateRequest(BaseModel):
    """At least one of the two fields must be set."""

    remaining_hours: Optional[float] = Field(None, description="Effort left, in hours")
    target_completion_time: Optional[datetime] = Field(
        None, description="Instant the worker expects to be done (ISO-8601)",
    )


class SaveEstimateResponse(BaseModel):
    ok: bool = True
    issue_key: str
    estimate: EstimateOut
    risk: ItemRiskOut


# ---------------------------------------------------------------------------
# GET /api/portfolio/risk
# ---------------------------------------------------------------------------

class PortfolioRiskResponse(BaseModel):
    ok: bool = True
    portfolio: PortfolioOut


# ---------------------------------------------------------------------------
# Errors / system
# ---------------------------------------------------------------------------

class ErrorResponse(BaseModel):
    ok: bool = False
    error: str
    message: str = ""
    issue_key: Optional[str] = None


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    estimate_store: str
    tracker_configured: bool
    uptime_seconds: float
