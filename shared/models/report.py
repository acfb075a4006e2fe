"""
Report Models
=============

Generated assessment reports, their saved versions and version comparisons.

Version: 0.1.0
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.models.common import DocumentModel


class ReportStatus(str, Enum):
    DRAFT = "draft"
    FINAL = "final"


class ContentType(str, Enum):
    TEXT = "text"
    CHART = "chart"
    TABLE = "table"
    RECOMMENDATION = "recommendation"


class ChartType(str, Enum):
    BAR = "bar"
    LINE = "line"
    PIE = "pie"
    RADAR = "radar"
    COMPARISON = "comparison"


class ChartDataset(BaseModel):
    label: str
    data: list[float] = Field(default_factory=list)
    background_color: str | list[str] | None = None
    border_color: str | list[str] | None = None


class ChartData(BaseModel):
    type: ChartType
    labels: list[str] = Field(default_factory=list)
    datasets: list[ChartDataset] = Field(default_factory=list)


class TableData(BaseModel):
    headers: list[str] = Field(default_factory=list)
    rows: list[list[Any]] = Field(default_factory=list)


class SectionContent(BaseModel):
    type: ContentType = ContentType.TEXT
    text: str | None = None
    chart_data: ChartData | None = None
    table_data: TableData | None = None
    recommendation_ids: list[str] = Field(default_factory=list)


class ReportSection(BaseModel):
    """One ordered section of a report."""

    section_id: str = Field(..., min_length=1)
    title: str
    order: int = 0
    content: SectionContent | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)


class ReportVersion(BaseModel):
    """Point-in-time snapshot of a report's sections."""

    id: str
    name: str
    description: str | None = None
    sections: list[ReportSection] = Field(default_factory=list)
    created_by: str
    created_at: datetime
    is_auto_backup: bool = False


class ReportVersionSummary(BaseModel):
    """Version listing entry without the section payload."""

    id: str
    name: str
    description: str | None = None
    created_by: str
    created_at: datetime
    is_auto_backup: bool = False
    section_count: int = 0


def normalize_tags(tags: list[str]) -> list[str]:
    """Strip, drop blanks and de-duplicate while keeping first-seen order."""
    seen: dict[str, None] = {}
    for tag in tags:
        cleaned = tag.strip()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


class ReportCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    assessment_id: str
    template_id: str | None = None
    roi_calculation_id: str | None = None
    sections: list[ReportSection] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    is_public: bool = False

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v: list[str]) -> list[str]:
        return normalize_tags(v)


class ReportUpdate(BaseModel):
    """Editable report fields; ownership, assessment and version data are not editable."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = Field(default=None, min_length=1, max_length=200)
    sections: list[ReportSection] | None = None
    tags: list[str] | None = None
    status: ReportStatus | None = None
    is_public: bool | None = None

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v: list[str] | None) -> list[str] | None:
        return normalize_tags(v) if v is not None else v


class Report(DocumentModel):
    """Full report model."""

    name: str
    assessment_id: str
    company_id: str | None = None
    template_id: str | None = None
    roi_calculation_id: str | None = None
    recommendation_ids: list[str] = Field(default_factory=list)
    sections: list[ReportSection] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    status: ReportStatus = ReportStatus.DRAFT
    generated_by: str
    generated_at: datetime | None = None
    last_modified: datetime | None = None
    last_modified_by: str | None = None
    shared_with: list[str] = Field(default_factory=list)
    is_public: bool = False
    locked: bool = False
    cloned_from: str | None = None
    versions: list[ReportVersionSummary] = Field(default_factory=list)

    @field_validator("versions", mode="before")
    @classmethod
    def summarize_versions(cls, v: list[Any]) -> list[Any]:
        summaries = []
        for version in v or []:
            if isinstance(version, dict) and "sections" in version:
                version = {
                    **{k: val for k, val in version.items() if k != "sections"},
                    "section_count": len(version["sections"]),
                }
            summaries.append(version)
        return summaries


# Version operations


class VersionCreate(BaseModel):
    name: str = Field(..., max_length=200)
    description: str | None = None


class RestoreRequest(BaseModel):
    create_backup: bool = True


class CompareRequest(BaseModel):
    """
    Pick the two sides of a comparison.

    ``version_id_1`` is ignored when ``compare_current`` is set; either side
    falls back to the current report state when not given.
    """

    version_id_1: str | None = None
    version_id_2: str | None = None
    compare_current: bool = False


class ValueChange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: Any = Field(default=None, alias="from")
    to: Any = None


class KeyChange(BaseModel):
    """Change of one key inside a section's ``data`` or ``metadata`` map."""

    model_config = ConfigDict(populate_by_name=True)

    key: str
    change_type: str = Field(..., description="added, removed or modified")
    from_: Any = Field(default=None, alias="from")
    to: Any = None


class SectionChanges(BaseModel):
    title: ValueChange | None = None
    content: ValueChange | None = None
    data: list[KeyChange] = Field(default_factory=list)
    metadata: list[KeyChange] = Field(default_factory=list)


class ModifiedSection(BaseModel):
    section_id: str
    title: str
    changes: SectionChanges


class ComparisonSummary(BaseModel):
    added: int = 0
    removed: int = 0
    modified: int = 0
    unchanged: int = 0


class ComparedSide(BaseModel):
    version_id: str | None = Field(default=None, description="None means the current report")
    name: str
    created_at: datetime | None = None


class VersionComparison(BaseModel):
    base: ComparedSide
    target: ComparedSide
    added: list[ReportSection] = Field(default_factory=list)
    removed: list[ReportSection] = Field(default_factory=list)
    modified: list[ModifiedSection] = Field(default_factory=list)
    summary: ComparisonSummary


# Cloning, sharing and tags


class CloneRequest(BaseModel):
    """
    Copy a report into a new draft owned by the caller.

    Sharing and saved versions are only carried over when asked for.
    """

    name: str = Field(..., min_length=1, max_length=200)
    include_versions: bool = False
    share_with_same_users: bool = False

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v.strip()


class ShareRequest(BaseModel):
    user_ids: list[str] = Field(..., min_length=1)


class TagsRequest(BaseModel):
    tags: list[str] = Field(..., min_length=1)

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v: list[str]) -> list[str]:
        cleaned = normalize_tags(v)
        if not cleaned:
            raise ValueError("at least one non-blank tag is required")
        return cleaned
