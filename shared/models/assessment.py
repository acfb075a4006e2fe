"""
Assessment Models
=================

Models for WMS ROI assessments and their workflow.

Version: 0.1.0
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from shared.models.common import DocumentModel

TOTAL_STAGES = 5


class AssessmentStatus(str, Enum):
    """Assessment workflow status."""

    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    DATA_COLLECTION = "data_collection"
    ANALYSIS = "analysis"
    REVIEW = "review"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ARCHIVED = "archived"


class AssessmentStage(int, Enum):
    """Progress stages, advanced as the dependent records are produced."""

    QUESTIONNAIRE = 1
    QUESTIONNAIRE_IN_PROGRESS = 2
    ROI_CALCULATION = 3
    RECOMMENDATIONS = 4
    REPORT = 5


class StatusChange(BaseModel):
    """One entry of an assessment's status history."""

    status: AssessmentStatus
    previous_status: AssessmentStatus | None = None
    changed_by: str
    changed_at: datetime
    comment: str | None = None


class AssessmentBase(BaseModel):
    """Base assessment fields."""

    name: str = Field(..., min_length=1, max_length=200)
    company_id: str = Field(..., description="Company being assessed")
    warehouse_name: str | None = Field(default=None, max_length=200)
    start_date: datetime | None = None
    notes: str | None = None


class AssessmentCreate(AssessmentBase):
    """Request model for creating an assessment."""

    assigned_to: list[str] = Field(default_factory=list)


class AssessmentUpdate(BaseModel):
    """Request model for updating an assessment (status changes go through the workflow)."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    company_id: str | None = None
    warehouse_name: str | None = None
    start_date: datetime | None = None
    assigned_to: list[str] | None = None
    notes: str | None = None


class StatusUpdate(BaseModel):
    """Request model for a workflow transition."""

    status: AssessmentStatus
    comment: str | None = None


class Assessment(AssessmentBase, DocumentModel):
    """Full assessment model."""

    status: AssessmentStatus = AssessmentStatus.DRAFT
    created_by: str
    assigned_to: list[str] = Field(default_factory=list)
    current_stage: int = Field(default=AssessmentStage.QUESTIONNAIRE.value, ge=1, le=TOTAL_STAGES)
    total_stages: int = TOTAL_STAGES
    completion_date: datetime | None = None
    status_history: list[StatusChange] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
