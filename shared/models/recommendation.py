"""
Recommendation Models
=====================

Improvement recommendations derived from an assessment.

Version: 0.1.0
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from shared.models.common import DocumentModel


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


PRIORITY_ORDER = {Priority.HIGH.value: 0, Priority.MEDIUM.value: 1, Priority.LOW.value: 2}


class TimeUnit(str, Enum):
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"


class Impact(BaseModel):
    """Impact ratings on a 1-10 scale."""

    operational: int = Field(..., ge=1, le=10)
    financial: int = Field(..., ge=1, le=10)
    strategic: int = Field(..., ge=1, le=10)


class EstimatedCost(BaseModel):
    min: float = Field(..., ge=0)
    max: float = Field(..., ge=0)
    currency: str = "USD"

    @model_validator(mode="after")
    def check_range(self) -> "EstimatedCost":
        if self.min > self.max:
            raise ValueError("estimated_cost.min must not exceed estimated_cost.max")
        return self


class EstimatedTime(BaseModel):
    value: float = Field(..., gt=0)
    unit: TimeUnit


class ImplementationStep(BaseModel):
    step_number: int = Field(..., ge=1)
    description: str
    estimated_timeframe: str | None = None
    resources: list[str] = Field(default_factory=list)


class RecommendationBase(BaseModel):
    category: str = Field(..., min_length=1, max_length=100)
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    priority: Priority
    impact: Impact
    estimated_cost: EstimatedCost
    estimated_time_to_implement: EstimatedTime
    implementation_steps: list[ImplementationStep] = Field(default_factory=list)
    potential_challenges: list[str] = Field(default_factory=list)


class RecommendationCreate(RecommendationBase):
    assessment_id: str
    roi_calculation_id: str | None = None


class RecommendationUpdate(BaseModel):
    category: str | None = Field(default=None, min_length=1, max_length=100)
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    priority: Priority | None = None
    impact: Impact | None = None
    estimated_cost: EstimatedCost | None = None
    estimated_time_to_implement: EstimatedTime | None = None
    implementation_steps: list[ImplementationStep] | None = None
    potential_challenges: list[str] | None = None


class Recommendation(RecommendationBase, DocumentModel):
    """Full recommendation model."""

    assessment_id: str
    roi_calculation_id: str | None = None
    created_by: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
