"""
Reports Routes
==============

API endpoints for assessment reports: CRUD, cloning, locking, sharing and tags.

Version history lives in ``report_versions``.

Version: 0.1.0
"""

import copy
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from shared.auth import User, get_current_active_user, require_admin, require_writer
from shared.database import get_mongodb, new_id
from shared.logging import get_logger
from shared.models.assessment import AssessmentStage, AssessmentStatus
from shared.models.audit import AuditAction, AuditEntityType
from shared.models.common import BaseResponse, PaginatedResponse, Pagination, to_document, utc_now
from shared.models.report import (
    CloneRequest,
    Report,
    ReportCreate,
    ReportSection,
    ReportStatus,
    ReportUpdate,
    ShareRequest,
    TagsRequest,
)

from services.roi_assessment.dependencies import get_audit_logger, get_pagination
from services.roi_assessment.routes.templates import can_view_template
from services.roi_assessment.services.access import (
    ensure_calculation_in_assessment,
    ensure_object_id,
    ensure_users_exist,
    fetch_or_404,
    forbidden,
    get_accessible_assessment,
    get_accessible_report,
    report_visibility_query,
    require_owner_or_admin,
)
from services.roi_assessment.services.audit import AuditLogger
from services.roi_assessment.services.workflow import status_change_entry


logger = get_logger(__name__)

router = APIRouter()

CLOSED_STATUSES = [
    AssessmentStatus.COMPLETED.value,
    AssessmentStatus.CANCELLED.value,
    AssessmentStatus.ARCHIVED.value,
]


def sections_from_template(template: dict[str, Any]) -> list[dict[str, Any]]:
    """
    Seed report sections from a template's ``content.sections``.

    Entries without a ``section_id`` get a positional one; entries without an
    ``order`` keep their position.
    """
    sections = []
    for index, raw in enumerate((template.get("content") or {}).get("sections") or []):
        if not isinstance(raw, dict):
            continue
        seeded = {
            **raw,
            "section_id": raw.get("section_id") or raw.get("id") or f"section-{index + 1}",
            "title": raw.get("title") or f"Section {index + 1}",
            "order": raw.get("order", index),
        }
        seeded.pop("id", None)
        sections.append(ReportSection.model_validate(seeded).model_dump(mode="json"))
    return sections


def ensure_unlocked(report: dict[str, Any]) -> None:
    if report.get("locked"):
        raise forbidden("Report is locked")


async def _visible_tags(
    db: AsyncIOMotorDatabase,  # type: ignore[type-arg]
    query: dict[str, Any],
) -> set[str]:
    pipeline: list[dict[str, Any]] = [
        {"$match": query},
        {"$unwind": "$tags"},
        {"$group": {"_id": "$tags"}},
    ]
    return {doc["_id"] async for doc in db.reports.aggregate(pipeline) if doc.get("_id")}


async def _registered_tags(db: AsyncIOMotorDatabase) -> set[str]:  # type: ignore[type-arg]
    return {doc["name"] async for doc in db.report_tags.find({}, {"name": 1})}


# =============================================================================
# Tags
# =============================================================================


@router.get("/tags", response_model=list[str])
async def list_tags(
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
) -> list[str]:
    """Distinct tags of visible reports together with the registered tag list."""
    tags = await _visible_tags(db, report_visibility_query(current_user))
    tags |= await _registered_tags(db)
    return sorted(tags)


@router.post(
    "/tags",
    response_model=BaseResponse[list[str]],
    status_code=status.HTTP_201_CREATED,
)
async def create_tags(
    body: TagsRequest,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_admin),
    audit: AuditLogger = Depends(get_audit_logger),
) -> BaseResponse[list[str]]:
    """
    Register report tags.

    Requires administrator role. Only tags not already known are returned.
    """
    known = await _visible_tags(db, {}) | await _registered_tags(db)
    new_tags = [tag for tag in body.tags if tag not in known]

    if not new_tags:
        return BaseResponse(data=[], message="All tags already exist")

    now = utc_now()
    await db.report_tags.insert_many(
        [
            {"_id": new_id(), "name": tag, "created_by": current_user.id, "created_at": now}
            for tag in new_tags
        ]
    )

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.CREATE,
        entity_type=AuditEntityType.REPORT,
        entity_id=None,
        details={"tags": new_tags},
        request=request,
    )
    logger.info("report_tags_created", count=len(new_tags))

    return BaseResponse(data=new_tags, message=f"{len(new_tags)} tags added")


# =============================================================================
# Reports
# =============================================================================


@router.get("", response_model=PaginatedResponse[Report])
async def list_reports(
    assessment_id: str | None = Query(default=None),
    tag: str | None = Query(default=None),
    report_status: ReportStatus | None = Query(default=None, alias="status"),
    pagination: Pagination = Depends(get_pagination),
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
) -> PaginatedResponse[Report]:
    """
    List reports, newest first.

    Non-administrators see their own reports, reports shared with them and
    public reports.
    """
    query: dict[str, Any] = report_visibility_query(current_user)
    if assessment_id:
        query["assessment_id"] = ensure_object_id(assessment_id, "assessment ID")
    if tag:
        query["tags"] = tag.strip()
    if report_status:
        query["status"] = report_status.value

    total = await db.reports.count_documents(query)
    cursor = (
        db.reports.find(query)
        .sort("generated_at", -1)
        .skip(pagination.offset)
        .limit(pagination.limit)
    )
    items = [Report.from_document(doc) async for doc in cursor]

    return PaginatedResponse.build(items, total, pagination.page, pagination.page_size)


@router.post("", response_model=Report, status_code=status.HTTP_201_CREATED)
async def create_report(
    body: ReportCreate,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> Report:
    """
    Generate a report for an assessment.

    Sections are seeded from the template when none are given. Recommendations
    of the assessment are attached, and an assessment at the report stage is
    marked completed.
    """
    assessment = await get_accessible_assessment(db, current_user, body.assessment_id)
    if body.roi_calculation_id:
        await ensure_calculation_in_assessment(db, body.roi_calculation_id, body.assessment_id)

    sections = [section.model_dump(mode="json") for section in body.sections]
    if body.template_id:
        template = await fetch_or_404(db.templates, body.template_id, "Template")
        if not can_view_template(current_user, template):
            raise forbidden("You do not have access to this template")
        if not sections:
            sections = sections_from_template(template)

    recommendation_query: dict[str, Any] = {"assessment_id": body.assessment_id}
    if body.roi_calculation_id:
        recommendation_query["roi_calculation_id"] = body.roi_calculation_id
    recommendation_ids = [
        doc["_id"] async for doc in db.recommendations.find(recommendation_query, {"_id": 1})
    ]

    now = utc_now()
    doc = to_document(body, exclude={"sections"})
    doc.update(
        {
            "_id": new_id(),
            "company_id": assessment.get("company_id"),
            "recommendation_ids": recommendation_ids,
            "sections": sections,
            "status": ReportStatus.DRAFT.value,
            "generated_by": current_user.id,
            "generated_at": now,
            "last_modified": now,
            "last_modified_by": current_user.id,
            "shared_with": [],
            "locked": False,
            "versions": [],
        }
    )
    await db.reports.insert_one(doc)

    if assessment.get("current_stage") == AssessmentStage.REPORT.value:
        result = await db.assessments.update_one(
            {
                "_id": body.assessment_id,
                "current_stage": AssessmentStage.REPORT.value,
                "status": {"$nin": CLOSED_STATUSES},
            },
            {
                "$set": {
                    "status": AssessmentStatus.COMPLETED.value,
                    "completion_date": now,
                    "updated_at": now,
                },
                "$push": {
                    "status_history": status_change_entry(
                        AssessmentStatus.COMPLETED,
                        AssessmentStatus(assessment.get("status", AssessmentStatus.DRAFT.value)),
                        current_user.id,
                        "Report generated",
                        changed_at=now,
                    )
                },
            },
        )
        if result.modified_count:
            logger.info("assessment_completed_by_report", assessment_id=body.assessment_id)

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.GENERATE,
        entity_type=AuditEntityType.REPORT,
        entity_id=doc["_id"],
        details={
            "assessment_id": body.assessment_id,
            "template_id": body.template_id,
            "section_count": len(sections),
        },
        request=request,
    )
    logger.info("report_created", report_id=doc["_id"], assessment_id=body.assessment_id)

    return Report.from_document(doc)


@router.get("/{report_id}", response_model=Report)
async def get_report(
    report_id: str,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
) -> Report:
    """Get a report by ID."""
    doc = await get_accessible_report(db, current_user, report_id)
    return Report.from_document(doc)


@router.put("/{report_id}", response_model=Report)
async def update_report(
    report_id: str,
    update: ReportUpdate,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> Report:
    """
    Update a report's name, sections, tags, status or visibility.

    Only the owner or an administrator may edit, and locked reports are
    read-only.
    """
    doc = await fetch_or_404(db.reports, report_id, "Report")
    require_owner_or_admin(current_user, doc.get("generated_by"), "update this report")
    ensure_unlocked(doc)

    changes = to_document(update, exclude_unset=True, exclude_none=True)
    changes["last_modified"] = utc_now()
    changes["last_modified_by"] = current_user.id
    await db.reports.update_one({"_id": report_id}, {"$set": changes})

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.UPDATE,
        entity_type=AuditEntityType.REPORT,
        entity_id=report_id,
        details={
            "fields": sorted(k for k in changes if k not in ("last_modified", "last_modified_by"))
        },
        request=request,
    )
    logger.info("report_updated", report_id=report_id)

    return Report.from_document({**doc, **changes})


@router.delete("/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_report(
    report_id: str,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> None:
    """Delete a report. Locked reports must be unlocked first."""
    doc = await fetch_or_404(db.reports, report_id, "Report")
    require_owner_or_admin(current_user, doc.get("generated_by"), "delete this report")
    ensure_unlocked(doc)

    await db.reports.delete_one({"_id": report_id})

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.DELETE,
        entity_type=AuditEntityType.REPORT,
        entity_id=report_id,
        details={"name": doc.get("name"), "assessment_id": doc.get("assessment_id")},
        request=request,
    )
    logger.info("report_deleted", report_id=report_id)


# =============================================================================
# Locking
# =============================================================================


async def _set_locked(
    db: AsyncIOMotorDatabase,  # type: ignore[type-arg]
    report_id: str,
    locked: bool,
    current_user: User,
    audit: AuditLogger,
    request: Request,
) -> Report:
    doc = await fetch_or_404(db.reports, report_id, "Report")
    action = "lock" if locked else "unlock"
    require_owner_or_admin(current_user, doc.get("generated_by"), f"{action} this report")

    changes = {"locked": locked, "last_modified": utc_now(), "last_modified_by": current_user.id}
    await db.reports.update_one({"_id": report_id}, {"$set": changes})

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.LOCK if locked else AuditAction.UNLOCK,
        entity_type=AuditEntityType.REPORT,
        entity_id=report_id,
        request=request,
    )
    logger.info(f"report_{action}ed", report_id=report_id)

    return Report.from_document({**doc, **changes})


@router.post("/{report_id}/lock", response_model=Report)
async def lock_report(
    report_id: str,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> Report:
    """Make a report read-only."""
    return await _set_locked(db, report_id, True, current_user, audit, request)


@router.post("/{report_id}/unlock", response_model=Report)
async def unlock_report(
    report_id: str,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> Report:
    return await _set_locked(db, report_id, False, current_user, audit, request)


# =============================================================================
# Sharing
# =============================================================================


@router.post("/{report_id}/share", response_model=Report)
async def share_report(
    report_id: str,
    body: ShareRequest,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> Report:
    """
    Share a report with other users.

    Raises:
        HTTPException: 404 if any of the users does not exist
    """
    doc = await fetch_or_404(db.reports, report_id, "Report")
    require_owner_or_admin(current_user, doc.get("generated_by"), "share this report")

    user_ids = await ensure_users_exist(db, body.user_ids)

    await db.reports.update_one(
        {"_id": report_id},
        {"$addToSet": {"shared_with": {"$each": user_ids}}},
    )
    shared_with = list(dict.fromkeys([*doc.get("shared_with", []), *user_ids]))

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.SHARE,
        entity_type=AuditEntityType.REPORT,
        entity_id=report_id,
        details={"user_ids": user_ids},
        request=request,
    )
    logger.info("report_shared", report_id=report_id, user_count=len(user_ids))

    return Report.from_document({**doc, "shared_with": shared_with})


@router.delete("/{report_id}/share/{user_id}", response_model=Report)
async def unshare_report(
    report_id: str,
    user_id: str,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> Report:
    """Stop sharing a report with a user."""
    doc = await fetch_or_404(db.reports, report_id, "Report")
    require_owner_or_admin(current_user, doc.get("generated_by"), "share this report")

    await db.reports.update_one({"_id": report_id}, {"$pull": {"shared_with": user_id}})
    shared_with = [uid for uid in doc.get("shared_with", []) if uid != user_id]

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.UPDATE,
        entity_type=AuditEntityType.REPORT,
        entity_id=report_id,
        details={"unshared_user_id": user_id},
        request=request,
    )
    logger.info("report_unshared", report_id=report_id, unshared_user_id=user_id)

    return Report.from_document({**doc, "shared_with": shared_with})


# =============================================================================
# Cloning
# =============================================================================


@router.post("/{report_id}/clone", response_model=Report, status_code=status.HTTP_201_CREATED)
async def clone_report(
    report_id: str,
    body: CloneRequest,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> Report:
    """
    Copy a visible report into a new unlocked draft owned by the caller.

    Raises:
        HTTPException: 409 if the caller already owns a report with that name
    """
    source = await get_accessible_report(db, current_user, report_id)

    if await db.reports.find_one({"name": body.name, "generated_by": current_user.id}):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A report with this name already exists: {body.name}",
        )

    now = utc_now()
    doc = {
        "_id": new_id(),
        "name": body.name,
        "assessment_id": source["assessment_id"],
        "company_id": source.get("company_id"),
        "template_id": source.get("template_id"),
        "roi_calculation_id": source.get("roi_calculation_id"),
        "recommendation_ids": list(source.get("recommendation_ids", [])),
        "sections": copy.deepcopy(source.get("sections", [])),
        "tags": list(source.get("tags", [])),
        "status": ReportStatus.DRAFT.value,
        "generated_by": current_user.id,
        "generated_at": now,
        "last_modified": now,
        "last_modified_by": current_user.id,
        "shared_with": (
            [uid for uid in source.get("shared_with", []) if uid != current_user.id]
            if body.share_with_same_users
            else []
        ),
        "is_public": False,
        "locked": False,
        "cloned_from": report_id,
        "versions": copy.deepcopy(source.get("versions", [])) if body.include_versions else [],
    }
    await db.reports.insert_one(doc)

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.CREATE,
        entity_type=AuditEntityType.REPORT,
        entity_id=doc["_id"],
        details={
            "cloned_from": report_id,
            "include_versions": body.include_versions,
            "share_with_same_users": body.share_with_same_users,
        },
        request=request,
    )
    logger.info("report_cloned", report_id=doc["_id"], source_report_id=report_id)

    return Report.from_document(doc)
