"""
Template Models
===============

Reusable report, assessment, questionnaire and chart templates.

Version: 0.1.0
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from shared.models.common import DocumentModel


class TemplateType(str, Enum):
    REPORT = "report"
    ASSESSMENT = "assessment"
    QUESTIONNAIRE = "questionnaire"
    CHART = "chart"


class TemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    type: TemplateType
    content: dict[str, Any] = Field(default_factory=dict)
    is_public: bool = False


class TemplateUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    type: TemplateType | None = None
    content: dict[str, Any] | None = None
    is_public: bool | None = None


class Template(DocumentModel):
    """Full template model."""

    name: str
    description: str | None = None
    type: TemplateType
    content: dict[str, Any] = Field(default_factory=dict)
    is_public: bool = False
    is_system: bool = False
    created_by: str | None = None
    updated_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
