"""
User Models
===========

Accounts, login payloads and profiles.

Version: 0.1.0
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from shared.auth.dependencies import UserRole
from shared.auth.jwt import TokenPair
from shared.models.common import DocumentModel


class UserBase(BaseModel):
    """Fields shared by user payloads."""

    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    email: EmailStr
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class UserCreate(UserBase):
    """Request model for creating a user (administrators only)."""

    password: str = Field(..., min_length=8)
    role: UserRole = UserRole.USER
    assigned_companies: list[str] = Field(default_factory=list)


class UserAdminUpdate(BaseModel):
    """Administrative changes to an account."""

    role: UserRole | None = None
    is_active: bool | None = None
    assigned_companies: list[str] | None = None


class UserProfile(DocumentModel):
    """User as returned by the API (never includes the password hash)."""

    username: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    role: UserRole = UserRole.USER
    assigned_companies: list[str] = Field(default_factory=list)
    is_active: bool = True
    last_login: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AssignmentRequest(BaseModel):
    """Users to assign to a company or an assessment."""

    user_ids: list[str] = Field(..., min_length=1)


class Assignments(BaseModel):
    """Users currently assigned to a company or an assessment."""

    entity_id: str
    name: str
    users: list[UserProfile] = Field(default_factory=list)


class ProfileUpdate(BaseModel):
    """Self-service profile changes."""

    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    email: EmailStr | None = None
    current_password: str | None = None
    new_password: str | None = Field(default=None, min_length=8)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str | None) -> str | None:
        return v.lower() if v else v


class LoginRequest(BaseModel):
    """Credentials; ``username`` may also hold the account email."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: str


class LoginResponse(BaseModel):
    """Issued tokens plus the signed-in user."""

    tokens: TokenPair
    user: UserProfile
