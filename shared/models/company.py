"""
Company Models
==============

Prospective customers being assessed.

Version: 0.1.0
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, EmailStr, Field, field_validator

from shared.models.common import DocumentModel


class CompanySize(str, Enum):
    """Company size bands."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    ENTERPRISE = "enterprise"


class Address(BaseModel):
    """Postal address."""

    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None


class CompanyBase(BaseModel):
    """Base company fields."""

    name: str = Field(..., min_length=1, max_length=200)
    industry: str = Field(..., min_length=1, max_length=100)
    size: CompanySize
    annual_revenue: float | None = Field(default=None, ge=0)
    contact_name: str = Field(..., min_length=1, max_length=200)
    contact_email: EmailStr
    contact_phone: str | None = None
    address: Address | None = None

    @field_validator("name", "industry", "contact_name")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    @field_validator("contact_email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class CompanyCreate(CompanyBase):
    """Request model for creating a company."""


class CompanyUpdate(BaseModel):
    """Request model for updating a company."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    industry: str | None = Field(default=None, min_length=1, max_length=100)
    size: CompanySize | None = None
    annual_revenue: float | None = Field(default=None, ge=0)
    contact_name: str | None = Field(default=None, min_length=1, max_length=200)
    contact_email: EmailStr | None = None
    contact_phone: str | None = None
    address: Address | None = None

    @field_validator("contact_email")
    @classmethod
    def lowercase_email(cls, v: str | None) -> str | None:
        return v.lower() if v else v


class Company(CompanyBase, DocumentModel):
    """Full company model."""

    contact_email: str
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
