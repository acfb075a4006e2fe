"""
User Administration Routes
==========================

Account management for administrators.

Version: 0.1.0
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from shared.auth import User, UserRole, hash_password, require_admin
from shared.database import get_mongodb, new_id
from shared.logging import get_logger
from shared.models.audit import AuditAction, AuditEntityType
from shared.models.common import utc_now
from shared.models.user import UserAdminUpdate, UserCreate, UserProfile

from services.roi_assessment.dependencies import get_audit_logger
from services.roi_assessment.services.access import ensure_object_id, fetch_or_404
from services.roi_assessment.services.audit import AuditLogger


logger = get_logger(__name__)

router = APIRouter()


@router.get("", response_model=list[UserProfile])
async def list_users(
    role: UserRole | None = Query(default=None, description="Filter by role"),
    is_active: bool | None = Query(default=None, description="Filter by active flag"),
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_admin),
) -> list[UserProfile]:
    """
    List user accounts.

    Requires administrator role.
    """
    query: dict[str, Any] = {}
    if role:
        query["role"] = role.value
    if is_active is not None:
        query["is_active"] = is_active

    cursor = db.users.find(query, {"password_hash": 0}).sort("username", 1)
    return [UserProfile.from_document(doc) async for doc in cursor]


@router.post("", response_model=UserProfile, status_code=status.HTTP_201_CREATED)
async def create_user(
    user: UserCreate,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_admin),
    audit: AuditLogger = Depends(get_audit_logger),
) -> UserProfile:
    """
    Create a user account.

    Requires administrator role.
    """
    existing = await db.users.find_one(
        {"$or": [{"username": user.username}, {"email": user.email}]}
    )
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A user with this username or email already exists",
        )

    for company_id in user.assigned_companies:
        ensure_object_id(company_id, "company ID")

    now = utc_now()
    doc = user.model_dump(exclude={"password"})
    doc.update(
        {
            "_id": new_id(),
            "role": user.role.value,
            "password_hash": hash_password(user.password),
            "is_active": True,
            "last_login": None,
            "created_at": now,
            "updated_at": now,
        }
    )
    await db.users.insert_one(doc)

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.CREATE,
        entity_type=AuditEntityType.USER,
        entity_id=doc["_id"],
        details={"username": user.username, "role": user.role.value},
        request=request,
    )
    logger.info("user_created", user_id=doc["_id"], role=user.role.value, created_by=current_user.id)

    return UserProfile.from_document(doc)


@router.get("/{user_id}", response_model=UserProfile)
async def get_user(
    user_id: str,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_admin),
) -> UserProfile:
    """Get a user account by ID."""
    return UserProfile.from_document(await fetch_or_404(db.users, user_id, "User"))


@router.put("/{user_id}", response_model=UserProfile)
async def update_user(
    user_id: str,
    update: UserAdminUpdate,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_admin),
    audit: AuditLogger = Depends(get_audit_logger),
) -> UserProfile:
    """
    Change a user's role, active flag or company assignments.

    Requires administrator role.
    """
    user_doc = await fetch_or_404(db.users, user_id, "User")

    changes = update.model_dump(exclude_unset=True, exclude_none=True, mode="json")
    for company_id in changes.get("assigned_companies") or []:
        ensure_object_id(company_id, "company ID")
    changes["updated_at"] = utc_now()

    await db.users.update_one({"_id": user_id}, {"$set": changes})

    action = AuditAction.ASSIGN if "assigned_companies" in changes else AuditAction.UPDATE
    await audit.record(
        user_id=current_user.id,
        action=action,
        entity_type=AuditEntityType.USER,
        entity_id=user_id,
        details={k: v for k, v in changes.items() if k != "updated_at"},
        request=request,
    )
    logger.info("user_updated", user_id=user_id, fields=sorted(changes), updated_by=current_user.id)

    return UserProfile.from_document({**user_doc, **changes})
