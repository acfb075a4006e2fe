"""
Companies Routes
================

API endpoints for the companies being assessed.

Version: 0.1.0
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from shared.auth import User, get_current_active_user, require_admin
from shared.database import get_mongodb, new_id
from shared.logging import get_logger
from shared.models.audit import AuditAction, AuditEntityType
from shared.models.common import BaseResponse, to_document, utc_now
from shared.models.company import Company, CompanyCreate, CompanyUpdate
from shared.models.user import AssignmentRequest, Assignments

from services.roi_assessment.dependencies import get_audit_logger
from services.roi_assessment.services.access import (
    assigned_companies,
    ensure_object_id,
    ensure_users_exist,
    fetch_or_404,
    forbidden,
    has_company_access,
    user_profiles,
)
from services.roi_assessment.services.audit import AuditLogger


logger = get_logger(__name__)

router = APIRouter()


@router.get("", response_model=list[Company])
async def list_companies(
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
) -> list[Company]:
    """
    List companies visible to the current user.

    Administrators see every company; other users see the companies
    assigned to them.
    """
    query: dict = {}
    if not current_user.is_admin:
        companies = await assigned_companies(db, current_user)
        if companies is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"User not found: {current_user.id}",
            )
        query = {"_id": {"$in": companies}}

    cursor = db.companies.find(query).sort("name", 1)
    return [Company.from_document(doc) async for doc in cursor]


@router.post("", response_model=Company, status_code=status.HTTP_201_CREATED)
async def create_company(
    company: CompanyCreate,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_admin),
    audit: AuditLogger = Depends(get_audit_logger),
) -> Company:
    """
    Create a company.

    Requires administrator role.
    """
    if await db.companies.find_one({"name": company.name}):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Company already exists: {company.name}",
        )

    now = utc_now()
    doc = to_document(company)
    doc.update({"_id": new_id(), "created_by": current_user.id, "created_at": now, "updated_at": now})
    await db.companies.insert_one(doc)

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.CREATE,
        entity_type=AuditEntityType.COMPANY,
        entity_id=doc["_id"],
        details={"name": company.name},
        request=request,
    )
    logger.info("company_created", company_id=doc["_id"], user_id=current_user.id)

    return Company.from_document(doc)


@router.get("/{company_id}", response_model=Company)
async def get_company(
    company_id: str,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
) -> Company:
    """Get a company by ID."""
    doc = await fetch_or_404(db.companies, company_id, "Company")
    if not await has_company_access(db, current_user, company_id):
        raise forbidden("You do not have access to this company")
    return Company.from_document(doc)


@router.put("/{company_id}", response_model=Company)
async def update_company(
    company_id: str,
    update: CompanyUpdate,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_admin),
    audit: AuditLogger = Depends(get_audit_logger),
) -> Company:
    """
    Update a company.

    Requires administrator role.
    """
    doc = await fetch_or_404(db.companies, company_id, "Company")

    changes = to_document(update, exclude_unset=True, exclude_none=True)
    if changes.get("name") and changes["name"] != doc["name"]:
        if await db.companies.find_one({"name": changes["name"], "_id": {"$ne": company_id}}):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Company already exists: {changes['name']}",
            )

    changes["updated_at"] = utc_now()
    await db.companies.update_one({"_id": company_id}, {"$set": changes})

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.UPDATE,
        entity_type=AuditEntityType.COMPANY,
        entity_id=company_id,
        details={"fields": sorted(k for k in changes if k != "updated_at")},
        request=request,
    )
    logger.info("company_updated", company_id=company_id, user_id=current_user.id)

    return Company.from_document({**doc, **changes})


@router.delete("/{company_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_company(
    company_id: str,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_admin),
    audit: AuditLogger = Depends(get_audit_logger),
) -> None:
    """
    Delete a company.

    Requires administrator role.
    """
    doc = await fetch_or_404(db.companies, company_id, "Company")
    await db.companies.delete_one({"_id": company_id})

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.DELETE,
        entity_type=AuditEntityType.COMPANY,
        entity_id=company_id,
        details={"name": doc.get("name")},
        request=request,
    )
    logger.info("company_deleted", company_id=company_id, user_id=current_user.id)


# =============================================================================
# Assignments
# =============================================================================


@router.get("/{company_id}/assignments", response_model=Assignments)
async def list_company_assignments(
    company_id: str,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_admin),
) -> Assignments:
    """
    List the users assigned to a company.

    Requires administrator role.
    """
    doc = await fetch_or_404(db.companies, company_id, "Company")
    users = await user_profiles(db, {"assigned_companies": company_id})
    return Assignments(entity_id=company_id, name=doc["name"], users=users)


@router.post("/{company_id}/assignments", response_model=BaseResponse[Assignments])
async def assign_company_users(
    company_id: str,
    body: AssignmentRequest,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_admin),
    audit: AuditLogger = Depends(get_audit_logger),
) -> BaseResponse[Assignments]:
    """
    Give users access to a company.

    Users already assigned are left as they are. Requires administrator role.

    Raises:
        HTTPException: 404 if the company or any of the users does not exist
    """
    doc = await fetch_or_404(db.companies, company_id, "Company")
    user_ids = await ensure_users_exist(db, body.user_ids)

    already = {
        u["_id"]
        async for u in db.users.find(
            {"_id": {"$in": user_ids}, "assigned_companies": company_id}, {"_id": 1}
        )
    }
    added = [user_id for user_id in user_ids if user_id not in already]

    if added:
        await db.users.update_many(
            {"_id": {"$in": added}},
            {"$addToSet": {"assigned_companies": company_id}, "$set": {"updated_at": utc_now()}},
        )
        await audit.record(
            user_id=current_user.id,
            action=AuditAction.ASSIGN,
            entity_type=AuditEntityType.COMPANY,
            entity_id=company_id,
            details={"user_ids": added, "company_name": doc["name"]},
            request=request,
        )
    logger.info(
        "company_users_assigned",
        company_id=company_id,
        added=len(added),
        already_assigned=len(already),
    )

    users = await user_profiles(db, {"assigned_companies": company_id})
    return BaseResponse(
        data=Assignments(entity_id=company_id, name=doc["name"], users=users),
        message=f"{len(added)} users assigned, {len(already)} already assigned",
    )


@router.delete("/{company_id}/assignments/{user_id}", response_model=Assignments)
async def unassign_company_user(
    company_id: str,
    user_id: str,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_admin),
    audit: AuditLogger = Depends(get_audit_logger),
) -> Assignments:
    """
    Remove a user's access to a company.

    Requires administrator role.
    """
    doc = await fetch_or_404(db.companies, company_id, "Company")
    ensure_object_id(user_id, "user ID")

    result = await db.users.update_one(
        {"_id": user_id, "assigned_companies": company_id},
        {"$pull": {"assigned_companies": company_id}, "$set": {"updated_at": utc_now()}},
    )
    if result.modified_count:
        await audit.record(
            user_id=current_user.id,
            action=AuditAction.UNASSIGN,
            entity_type=AuditEntityType.COMPANY,
            entity_id=company_id,
            details={"user_ids": [user_id], "company_name": doc["name"]},
            request=request,
        )
        logger.info("company_user_unassigned", company_id=company_id, unassigned_user_id=user_id)

    users = await user_profiles(db, {"assigned_companies": company_id})
    return Assignments(entity_id=company_id, name=doc["name"], users=users)
