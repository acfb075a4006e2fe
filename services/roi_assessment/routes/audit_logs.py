"""
Audit Logs Routes
=================

Browse, record and purge audit entries.

Version: 0.1.0
"""

from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from shared.auth import User, get_current_active_user, require_admin
from shared.database import get_mongodb
from shared.logging import get_logger
from shared.models.audit import (
    AuditAction,
    AuditEntityType,
    AuditLog,
    AuditLogCreate,
    AuditPurgeResult,
    AuditSortField,
)
from shared.models.common import PaginatedResponse, Pagination

from services.roi_assessment.dependencies import get_audit_logger, get_pagination
from services.roi_assessment.services.access import fetch_or_404, forbidden
from services.roi_assessment.services.audit import (
    AuditLogger,
    build_audit_query,
    build_purge_query,
)


logger = get_logger(__name__)

router = APIRouter()


@router.get("", response_model=PaginatedResponse[AuditLog])
async def list_audit_logs(
    user_id: str | None = Query(default=None, description="Filter by user (administrators only)"),
    action: AuditAction | None = Query(default=None),
    entity_type: AuditEntityType | None = Query(default=None),
    entity_id: str | None = Query(default=None),
    start_date: date | None = Query(default=None, description="First day included"),
    end_date: date | None = Query(default=None, description="Last day included"),
    sort_field: AuditSortField = Query(default=AuditSortField.TIMESTAMP),
    sort_order: Literal["asc", "desc"] = Query(default="desc"),
    pagination: Pagination = Depends(get_pagination),
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
) -> PaginatedResponse[AuditLog]:
    """
    List audit entries.

    Non-administrators only see their own entries.
    """
    if start_date and end_date and start_date > end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start_date must not be after end_date",
        )

    query = build_audit_query(
        current_user,
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        start_date=start_date,
        end_date=end_date,
    )

    total = await db.audit_logs.count_documents(query)
    cursor = (
        db.audit_logs.find(query)
        .sort(sort_field.value, 1 if sort_order == "asc" else -1)
        .skip(pagination.offset)
        .limit(pagination.limit)
    )
    items = [AuditLog.from_document(doc) async for doc in cursor]

    return PaginatedResponse.build(items, total, pagination.page, pagination.page_size)


@router.post("", response_model=AuditLog, status_code=status.HTTP_201_CREATED)
async def create_audit_log(
    entry: AuditLogCreate,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
    audit: AuditLogger = Depends(get_audit_logger),
) -> AuditLog:
    """Record a client-side event (exports, views) for the current user."""
    log_id = await audit.record(
        user_id=current_user.id,
        action=entry.action,
        entity_type=entry.entity_type,
        entity_id=entry.entity_id,
        details=entry.details,
        request=request,
    )
    doc = await db.audit_logs.find_one({"_id": log_id}) if log_id else None
    if doc is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Audit entry could not be recorded",
        )
    return AuditLog.from_document(doc)


@router.delete("", response_model=AuditPurgeResult)
async def purge_audit_logs(
    older_than: date | None = Query(default=None, description="Delete entries before this day"),
    user_id: str | None = Query(default=None),
    action: AuditAction | None = Query(default=None),
    entity_type: AuditEntityType | None = Query(default=None),
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_admin),
) -> AuditPurgeResult:
    """
    Delete old audit entries.

    Requires administrator role.
    """
    if older_than is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="older_than is required",
        )

    query = build_purge_query(older_than, user_id=user_id, action=action, entity_type=entity_type)
    result = await db.audit_logs.delete_many(query)

    logger.warning(
        "audit_logs_purged",
        older_than=older_than.isoformat(),
        deleted_count=result.deleted_count,
        user_id=current_user.id,
    )
    return AuditPurgeResult(deleted_count=result.deleted_count)


@router.get("/{log_id}", response_model=AuditLog)
async def get_audit_log(
    log_id: str,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
) -> AuditLog:
    """Get an audit entry; non-administrators may only read their own."""
    doc = await fetch_or_404(db.audit_logs, log_id, "Audit log")
    if not current_user.is_admin and doc.get("user_id") != current_user.id:
        raise forbidden("You do not have access to this audit log")
    return AuditLog.from_document(doc)


@router.delete("/{log_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_audit_log(
    log_id: str,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_admin),
) -> None:
    """
    Delete one audit entry.

    Requires administrator role.
    """
    await fetch_or_404(db.audit_logs, log_id, "Audit log")
    await db.audit_logs.delete_one({"_id": log_id})
    logger.warning("audit_log_deleted", log_id=log_id, user_id=current_user.id)
