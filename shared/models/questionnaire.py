"""
Questionnaire Models
====================

Questionnaire definitions and the responses collected against them.

Version: 0.1.0
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from shared.models.common import DocumentModel


class QuestionType(str, Enum):
    """Supported answer widgets."""

    TEXT = "text"
    NUMBER = "number"
    SELECT = "select"
    MULTISELECT = "multiselect"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    SCALE = "scale"


class ResponseStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class QuestionOption(BaseModel):
    value: str
    label: str
    score: float | None = None


class QuestionDependency(BaseModel):
    """Show the question only when another question has the given answer."""

    question_id: str
    value: Any


class QuestionValidation(BaseModel):
    min: float | None = None
    max: float | None = None
    pattern: str | None = None


class Question(BaseModel):
    id: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)
    type: QuestionType
    required: bool = False
    options: list[QuestionOption] = Field(default_factory=list)
    depends_on: QuestionDependency | None = None
    help_text: str | None = None
    validations: QuestionValidation | None = None


class Subsection(BaseModel):
    id: str = Field(..., min_length=1)
    title: str
    description: str | None = None
    questions: list[Question] = Field(default_factory=list)


class Section(BaseModel):
    id: str = Field(..., min_length=1)
    title: str
    description: str | None = None
    subsections: list[Subsection] = Field(default_factory=list)


class QuestionnaireBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    version: str = Field(..., min_length=1, max_length=20)
    is_active: bool = True
    sections: list[Section] = Field(default_factory=list)


class QuestionnaireCreate(QuestionnaireBase):
    """Request model for creating a questionnaire."""


class QuestionnaireUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    version: str | None = Field(default=None, min_length=1, max_length=20)
    is_active: bool | None = None
    sections: list[Section] | None = None


class Questionnaire(QuestionnaireBase, DocumentModel):
    """Full questionnaire model."""

    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


# Responses


class QuestionAnswer(BaseModel):
    question_id: str
    value: Any = None
    notes: str | None = None


class SubsectionResponse(BaseModel):
    subsection_id: str
    questions: list[QuestionAnswer] = Field(default_factory=list)
    completed_at: datetime | None = None


class SectionResponse(BaseModel):
    section_id: str
    subsections: list[SubsectionResponse] = Field(default_factory=list)
    completed_at: datetime | None = None


class QuestionnaireResponseCreate(BaseModel):
    assessment_id: str
    questionnaire_id: str
    sections: list[SectionResponse] = Field(default_factory=list)


class QuestionnaireResponseUpdate(BaseModel):
    sections: list[SectionResponse] | None = None
    status: ResponseStatus | None = None


class QuestionnaireResponse(DocumentModel):
    """Answers collected for one assessment against one questionnaire."""

    assessment_id: str
    questionnaire_id: str
    respondent_id: str
    status: ResponseStatus = ResponseStatus.IN_PROGRESS
    sections: list[SectionResponse] = Field(default_factory=list)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    last_saved_at: datetime | None = None
