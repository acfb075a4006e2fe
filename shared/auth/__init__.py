"""
Authentication Module
=====================

JWT-based authentication and role-based authorization.

Features:
- JWT token generation and validation
- Password hashing with bcrypt
- Role-based access control (super_admin, admin, user, viewer)
- FastAPI dependencies for route protection

Usage:
    from shared.auth import User, get_current_active_user, require_admin

    @router.get("/reports")
    async def list_reports(user: User = Depends(get_current_active_user)):
        ...

    @router.post("/reports/tags")
    async def add_tags(user: User = Depends(require_admin)):
        ...
"""

from shared.auth.dependencies import (
    ADMIN_ROLES,
    User,
    UserRole,
    get_current_active_user,
    get_current_user,
    oauth2_scheme,
    require_admin,
    require_roles,
    require_writer,
)
from shared.auth.jwt import (
    TokenData,
    TokenPair,
    create_access_token,
    create_refresh_token,
    create_token_pair,
    decode_token,
    user_claims,
)
from shared.auth.password import hash_password, needs_rehash, verify_password

__all__ = [
    # JWT
    "create_access_token",
    "create_refresh_token",
    "create_token_pair",
    "decode_token",
    "user_claims",
    "TokenData",
    "TokenPair",
    # Password
    "hash_password",
    "needs_rehash",
    "verify_password",
    # Dependencies
    "ADMIN_ROLES",
    "User",
    "UserRole",
    "get_current_user",
    "get_current_active_user",
    "require_admin",
    "require_roles",
    "require_writer",
    "oauth2_scheme",
]
