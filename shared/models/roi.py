"""
ROI Models
==========

Inputs and results of WMS return-on-investment projections.

Version: 0.1.0
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from shared.models.common import DocumentModel


class CalculationStatus(str, Enum):
    DRAFT = "draft"
    FINAL = "final"


class RoiInputs(BaseModel):
    """Operational figures captured for the prospect."""

    annual_revenue: float = Field(..., ge=0, description="Annual revenue")
    operating_margin: float = Field(..., ge=0, le=100, description="Operating margin (%)")

    # Manufacturing
    mfg_managers: int = Field(default=0, ge=0)
    mfg_manager_cost: float = Field(default=0, ge=0, description="Average annual cost per manager")
    shop_floor_ftes: int = Field(default=0, ge=0)
    shop_floor_cost: float = Field(default=0, ge=0)
    annual_waste_cost: float = Field(default=0, ge=0)

    # Warehouse
    warehouse_managers: int = Field(default=0, ge=0)
    warehouse_manager_cost: float = Field(default=0, ge=0)
    warehouse_employees: int = Field(default=0, ge=0)
    warehouse_employee_cost: float = Field(default=0, ge=0)
    annual_logistics_cost: float = Field(default=0, ge=0)

    @property
    def total_employees(self) -> int:
        return (
            self.mfg_managers
            + self.shop_floor_ftes
            + self.warehouse_managers
            + self.warehouse_employees
        )


class RoiScenario(BaseModel):
    """Savings projection under one set of improvement rates."""

    benefits: dict[str, float] = Field(default_factory=dict, description="Annual savings per category")
    annual_savings: float = 0
    payback_months: float = 0
    three_year_roi: float = Field(default=0, description="Three-year ROI (%)")


class RoiResults(BaseModel):
    total_employees: int
    implementation_cost: float
    conservative: RoiScenario
    likely: RoiScenario


class RoiCalculationCreate(BaseModel):
    assessment_id: str
    name: str | None = Field(default=None, max_length=200)
    inputs: RoiInputs
    notes: str | None = None


class RoiCalculationUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=200)
    inputs: RoiInputs | None = None
    status: CalculationStatus | None = None
    notes: str | None = None


class RoiCalculation(DocumentModel):
    """Stored ROI calculation."""

    assessment_id: str
    name: str | None = None
    inputs: RoiInputs
    results: RoiResults
    status: CalculationStatus = CalculationStatus.DRAFT
    notes: str | None = None
    calculated_by: str
    calculated_at: datetime | None = None
    updated_at: datetime | None = None
