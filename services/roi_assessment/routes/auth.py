"""
Authentication Routes
=====================

Login, token refresh, logout and self-service profile.

Version: 0.1.0
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from shared.auth import (
    TokenPair,
    User,
    create_token_pair,
    decode_token,
    get_current_active_user,
    hash_password,
    needs_rehash,
    user_claims,
    verify_password,
)
from shared.database import get_mongodb
from shared.logging import get_logger
from shared.models.audit import AuditAction, AuditEntityType
from shared.models.common import BaseResponse, utc_now
from shared.models.user import (
    LoginRequest,
    LoginResponse,
    ProfileUpdate,
    RefreshRequest,
    UserProfile,
)

from services.roi_assessment.dependencies import get_audit_logger
from services.roi_assessment.services.audit import AuditLogger


logger = get_logger(__name__)

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    audit: AuditLogger = Depends(get_audit_logger),
) -> LoginResponse:
    """
    Exchange a username (or email) and password for a token pair.
    """
    identifier = credentials.username.strip()
    user_doc = await db.users.find_one(
        {"$or": [{"username": identifier}, {"email": identifier.lower()}]}
    )

    if not user_doc or not verify_password(credentials.password, user_doc.get("password_hash", "")):
        logger.warning("login_failed", username=identifier)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user_doc.get("is_active", True):
        logger.warning("login_inactive_user", user_id=user_doc["_id"])
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is disabled",
        )

    now = utc_now()
    updates: dict[str, object] = {"last_login": now}
    if needs_rehash(user_doc["password_hash"]):
        updates["password_hash"] = hash_password(credentials.password)
    await db.users.update_one({"_id": user_doc["_id"]}, {"$set": updates})
    user_doc["last_login"] = now

    await audit.record(
        user_id=user_doc["_id"],
        action=AuditAction.LOGIN,
        entity_type=AuditEntityType.USER,
        entity_id=user_doc["_id"],
        request=request,
    )
    logger.info("user_logged_in", user_id=user_doc["_id"])

    return LoginResponse(
        tokens=create_token_pair(user_claims(user_doc)),
        user=UserProfile.from_document(user_doc),
    )


@router.post("/refresh", response_model=TokenPair)
async def refresh_tokens(
    body: RefreshRequest,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
) -> TokenPair:
    """
    Issue a new token pair from a refresh token.

    The account is re-read so role changes and deactivation take effect.
    """
    token_data = decode_token(body.refresh_token, verify_type="refresh")
    user_doc = await db.users.find_one({"_id": token_data.sub}) if token_data else None

    if not user_doc or not user_doc.get("is_active", True):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return create_token_pair(user_claims(user_doc))


@router.post("/logout", response_model=BaseResponse[None])
async def logout(
    request: Request,
    current_user: User = Depends(get_current_active_user),
    audit: AuditLogger = Depends(get_audit_logger),
) -> BaseResponse[None]:
    """
    Record a logout. Tokens are stateless; clients discard them.
    """
    await audit.record(
        user_id=current_user.id,
        action=AuditAction.LOGOUT,
        entity_type=AuditEntityType.USER,
        entity_id=current_user.id,
        request=request,
    )
    return BaseResponse(message="Logged out successfully")


async def _load_profile(db: AsyncIOMotorDatabase, user_id: str) -> dict:  # type: ignore[type-arg]
    user_doc = await db.users.find_one({"_id": user_id})
    if not user_doc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User not found: {user_id}",
        )
    return user_doc


@router.get("/profile", response_model=UserProfile)
async def get_profile(
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
) -> UserProfile:
    """Get the signed-in user's profile."""
    return UserProfile.from_document(await _load_profile(db, current_user.id))


@router.put("/profile", response_model=UserProfile)
async def update_profile(
    update: ProfileUpdate,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
    audit: AuditLogger = Depends(get_audit_logger),
) -> UserProfile:
    """
    Update name, email or password.

    Changing the password requires the current password.
    """
    user_doc = await _load_profile(db, current_user.id)
    changes = update.model_dump(
        exclude_unset=True,
        exclude_none=True,
        exclude={"current_password", "new_password"},
    )

    if update.email and update.email != user_doc.get("email"):
        clash = await db.users.find_one({"email": update.email, "_id": {"$ne": current_user.id}})
        if clash:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Email already in use: {update.email}",
            )

    if update.new_password:
        if not update.current_password or not verify_password(
            update.current_password, user_doc.get("password_hash", "")
        ):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Current password is incorrect",
            )
        changes["password_hash"] = hash_password(update.new_password)

    changes["updated_at"] = utc_now()
    await db.users.update_one({"_id": current_user.id}, {"$set": changes})

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.UPDATE,
        entity_type=AuditEntityType.USER,
        entity_id=current_user.id,
        details={"fields": sorted(k for k in changes if k != "updated_at")},
        request=request,
    )
    logger.info("profile_updated", user_id=current_user.id)

    return UserProfile.from_document({**user_doc, **changes})
