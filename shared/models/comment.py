"""
Comment Models
==============

Discussion threads attached to assessments.

Version: 0.1.0
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from shared.models.common import DocumentModel


class CommentSection(str, Enum):
    """Assessment area a comment refers to."""

    GENERAL = "general"
    QUESTIONNAIRE = "questionnaire"
    ROI = "roi"
    RECOMMENDATIONS = "recommendations"
    IMPLEMENTATION = "implementation"
    REPORT = "report"


class CommentCreate(BaseModel):
    content: str = Field(..., max_length=10000)
    section: CommentSection = CommentSection.GENERAL


class CommentUpdate(BaseModel):
    content: str | None = Field(default=None, max_length=10000)
    section: CommentSection | None = None


class Comment(DocumentModel):
    """Full comment model."""

    assessment_id: str
    author_id: str
    content: str
    section: CommentSection = CommentSection.GENERAL
    mentions: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
