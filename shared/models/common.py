"""
Common Models
=============

Base response models and utilities.

Version: 0.1.0
"""

import math
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Generic, Self, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


class BaseResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    success: bool = True
    data: T | None = None
    message: str | None = None
    timestamp: datetime = Field(default_factory=utc_now)


class PaginatedResponse(BaseModel, Generic[T]):
    """Paginated API response."""

    items: list[T]
    total: int
    page: int = 1
    page_size: int = 20
    pages: int = 1

    @classmethod
    def build(cls, items: list[T], total: int, page: int, page_size: int) -> Self:
        """Assemble a page, computing the page count from the total."""
        return cls(
            items=items,
            total=total,
            page=page,
            page_size=page_size,
            pages=max(1, math.ceil(total / page_size)) if page_size else 1,
        )


class HealthResponse(BaseModel):
    """Service health check response."""

    status: str = "healthy"
    service: str
    version: str
    timestamp: datetime = Field(default_factory=utc_now)

    components: dict[str, dict[str, Any]] = Field(default_factory=dict)


class Pagination(BaseModel):
    """Pagination parameters."""

    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1)

    @property
    def offset(self) -> int:
        """Calculate offset for database queries."""
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        """Get limit for database queries."""
        return self.page_size


class DocumentModel(BaseModel):
    """
    Base for models read back from MongoDB.

    Stored documents carry their id in ``_id``; API payloads expose it as ``id``.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Document ID")

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> Self:
        """Build the model from a raw Mongo document."""
        data = dict(doc)
        if "_id" in data:
            data["id"] = str(data.pop("_id"))
        return cls.model_validate(data)


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def to_document(model: BaseModel, **kwargs: Any) -> dict[str, Any]:
    """Dump a model for storage: enums become their values, datetimes stay native."""
    return _plain(model.model_dump(**kwargs))
