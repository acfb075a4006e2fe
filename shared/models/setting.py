"""
Setting Models
==============

Key/value settings scoped to the system, the public, or a single user.

Version: 0.1.0
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from shared.models.common import DocumentModel


class SettingScope(str, Enum):
    SYSTEM = "system"
    PUBLIC = "public"
    USER = "user"


class SettingDataType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"
    DATE = "date"


class SettingCreate(BaseModel):
    key: str = Field(..., min_length=1, max_length=200)
    value: Any
    scope: SettingScope
    user_id: str | None = Field(default=None, description="Owner for user scope (admins only)")
    description: str | None = None
    data_type: SettingDataType = SettingDataType.STRING

    @field_validator("key")
    @classmethod
    def strip_key(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("key must not be blank")
        return v


class SettingUpdate(BaseModel):
    value: Any = None
    scope: SettingScope = SettingScope.PUBLIC
    user_id: str | None = None
    description: str | None = None
    data_type: SettingDataType | None = None


class Setting(DocumentModel):
    """Full setting model."""

    key: str
    value: Any = None
    scope: SettingScope
    user_id: str | None = None
    description: str | None = None
    data_type: SettingDataType = SettingDataType.STRING
    created_by: str | None = None
    created_at: datetime | None = None
    last_modified_by: str | None = None
    last_modified_at: datetime | None = None
