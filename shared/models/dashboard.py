"""
Dashboard Models
================

Summary figures for the landing page.

Version: 0.1.0
"""

from pydantic import BaseModel, Field

from shared.models.assessment import Assessment
from shared.models.report import Report


class RoiTotals(BaseModel):
    """Aggregates over the ROI calculations of the visible assessments."""

    calculations: int = 0
    total_implementation_cost: float = 0.0
    total_likely_savings: float = 0.0
    average_likely_roi: float = 0.0


class DashboardSummary(BaseModel):
    total_assessments: int = 0
    total_companies: int = 0
    total_reports: int = 0
    assessments_by_status: dict[str, int] = Field(default_factory=dict)
    reports_by_status: dict[str, int] = Field(default_factory=dict)
    recent_assessments: list[Assessment] = Field(default_factory=list)
    recent_reports: list[Report] = Field(default_factory=list)
    roi: RoiTotals = Field(default_factory=RoiTotals)
