"""
Assessments Routes
==================

API endpoints for WMS ROI assessments and their status workflow.

Version: 0.1.0
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from shared.auth import User, get_current_active_user, require_writer
from shared.database import get_mongodb, new_id
from shared.logging import get_logger
from shared.models.assessment import (
    Assessment,
    AssessmentCreate,
    AssessmentStage,
    AssessmentStatus,
    AssessmentUpdate,
    StatusUpdate,
    TOTAL_STAGES,
)
from shared.models.audit import AuditAction, AuditEntityType
from shared.models.comment import CommentSection
from shared.models.common import (
    BaseResponse,
    PaginatedResponse,
    Pagination,
    to_document,
    utc_now,
)
from shared.models.user import AssignmentRequest, Assignments

from services.roi_assessment.dependencies import get_audit_logger, get_pagination
from services.roi_assessment.services.access import (
    ensure_object_id,
    ensure_users_exist,
    fetch_or_404,
    forbidden,
    get_accessible_assessment,
    has_company_access,
    require_owner_or_admin,
    user_profiles,
)
from services.roi_assessment.services.audit import AuditLogger
from services.roi_assessment.services.mentions import extract_mentions
from services.roi_assessment.services.workflow import (
    AssessmentWorkflow,
    WorkflowError,
    status_change_entry,
)


logger = get_logger(__name__)

router = APIRouter()

workflow = AssessmentWorkflow()


async def _ensure_company(
    db: AsyncIOMotorDatabase,  # type: ignore[type-arg]
    user: User,
    company_id: str,
) -> None:
    await fetch_or_404(db.companies, company_id, "Company")
    if not await has_company_access(db, user, company_id):
        raise forbidden("You do not have access to this company")


@router.get("", response_model=PaginatedResponse[Assessment])
async def list_assessments(
    company_id: str | None = Query(default=None, description="Filter by company"),
    status: AssessmentStatus | None = Query(default=None, description="Filter by status"),
    pagination: Pagination = Depends(get_pagination),
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
) -> PaginatedResponse[Assessment]:
    """
    List assessments, newest first.

    Non-administrators only see assessments they created or are assigned to.
    """
    query: dict[str, Any] = {}

    if company_id:
        ensure_object_id(company_id, "company ID")
        if not await has_company_access(db, current_user, company_id):
            raise forbidden("You do not have access to this company")
        query["company_id"] = company_id

    if status:
        query["status"] = status.value

    if not current_user.is_admin:
        query["$or"] = [{"created_by": current_user.id}, {"assigned_to": current_user.id}]

    total = await db.assessments.count_documents(query)
    cursor = (
        db.assessments.find(query)
        .sort("created_at", -1)
        .skip(pagination.offset)
        .limit(pagination.limit)
    )
    items = [Assessment.from_document(doc) async for doc in cursor]

    logger.debug("assessments_listed", total=total, page=pagination.page, user_id=current_user.id)

    return PaginatedResponse.build(items, total, pagination.page, pagination.page_size)


@router.post("", response_model=Assessment, status_code=status.HTTP_201_CREATED)
async def create_assessment(
    assessment: AssessmentCreate,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> Assessment:
    """
    Create an assessment for a company.

    The creator is assigned when no assignees are given.
    """
    ensure_object_id(assessment.company_id, "company ID")
    await _ensure_company(db, current_user, assessment.company_id)
    for user_id in assessment.assigned_to:
        ensure_object_id(user_id, "user ID")

    now = utc_now()
    doc = to_document(assessment)
    doc.update(
        {
            "_id": new_id(),
            "assigned_to": assessment.assigned_to or [current_user.id],
            "status": AssessmentStatus.DRAFT.value,
            "start_date": assessment.start_date or now,
            "completion_date": None,
            "created_by": current_user.id,
            "current_stage": AssessmentStage.QUESTIONNAIRE.value,
            "total_stages": TOTAL_STAGES,
            "status_history": [
                status_change_entry(AssessmentStatus.DRAFT, None, current_user.id, changed_at=now)
            ],
            "created_at": now,
            "updated_at": now,
        }
    )
    await db.assessments.insert_one(doc)

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.CREATE,
        entity_type=AuditEntityType.ASSESSMENT,
        entity_id=doc["_id"],
        details={"name": assessment.name, "company_id": assessment.company_id},
        request=request,
    )
    logger.info(
        "assessment_created",
        assessment_id=doc["_id"],
        company_id=assessment.company_id,
        user_id=current_user.id,
    )

    return Assessment.from_document(doc)


@router.get("/{assessment_id}", response_model=Assessment)
async def get_assessment(
    assessment_id: str,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
) -> Assessment:
    """Get an assessment by ID."""
    return Assessment.from_document(
        await get_accessible_assessment(db, current_user, assessment_id)
    )


@router.put("/{assessment_id}", response_model=Assessment)
async def update_assessment(
    assessment_id: str,
    update: AssessmentUpdate,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> Assessment:
    """
    Update assessment details.

    Status changes go through ``PUT /{assessment_id}/status``.
    """
    doc = await get_accessible_assessment(db, current_user, assessment_id)
    changes = to_document(update, exclude_unset=True, exclude_none=True)

    new_company = changes.get("company_id")
    if new_company and new_company != doc.get("company_id"):
        ensure_object_id(new_company, "company ID")
        await _ensure_company(db, current_user, new_company)

    for user_id in changes.get("assigned_to") or []:
        ensure_object_id(user_id, "user ID")

    changes["updated_at"] = utc_now()
    await db.assessments.update_one({"_id": assessment_id}, {"$set": changes})

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.UPDATE,
        entity_type=AuditEntityType.ASSESSMENT,
        entity_id=assessment_id,
        details={"fields": sorted(k for k in changes if k != "updated_at")},
        request=request,
    )
    logger.info("assessment_updated", assessment_id=assessment_id, user_id=current_user.id)

    return Assessment.from_document({**doc, **changes})


@router.delete("/{assessment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_assessment(
    assessment_id: str,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> None:
    """
    Delete an assessment and its comments.

    Only the creator or an administrator may delete.
    """
    doc = await fetch_or_404(db.assessments, assessment_id, "Assessment")
    require_owner_or_admin(current_user, doc.get("created_by"), "delete this assessment")

    await db.assessments.delete_one({"_id": assessment_id})
    await db.comments.delete_many({"assessment_id": assessment_id})

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.DELETE,
        entity_type=AuditEntityType.ASSESSMENT,
        entity_id=assessment_id,
        details={"name": doc.get("name")},
        request=request,
    )
    logger.info("assessment_deleted", assessment_id=assessment_id, user_id=current_user.id)


@router.get("/{assessment_id}/status", response_model=dict[str, Any])
async def get_status_options(
    assessment_id: str,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
) -> dict[str, Any]:
    """Current status, the statuses it can move to, and which of those need a comment."""
    doc = await get_accessible_assessment(db, current_user, assessment_id)
    current = AssessmentStatus(doc["status"])
    allowed = workflow.allowed_transitions(current)
    return {
        "status": current.value,
        "allowed_transitions": [s.value for s in allowed],
        "comment_required": [s.value for s in allowed if workflow.requires_comment(s)],
    }


@router.put("/{assessment_id}/status", response_model=Assessment)
async def change_status(
    assessment_id: str,
    change: StatusUpdate,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> Assessment:
    """
    Move an assessment through the status workflow.

    The change is appended to the status history; any comment is also
    posted to the assessment's discussion.
    """
    doc = await get_accessible_assessment(db, current_user, assessment_id)
    current = AssessmentStatus(doc["status"])

    try:
        workflow.validate(current, change.status, change.comment)
    except WorkflowError as e:
        logger.warning(
            "assessment_transition_rejected",
            assessment_id=assessment_id,
            from_status=current.value,
            to_status=change.status.value,
        )
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    now = utc_now()
    comment = change.comment.strip() if change.comment else None
    entry = status_change_entry(change.status, current, current_user.id, comment, changed_at=now)
    updates: dict[str, Any] = {"status": change.status.value, "updated_at": now}
    if change.status == AssessmentStatus.COMPLETED:
        updates["completion_date"] = now

    # The status filter keeps two concurrent transitions from both applying
    result = await db.assessments.update_one(
        {"_id": assessment_id, "status": current.value},
        {"$set": updates, "$push": {"status_history": entry}},
    )
    if result.modified_count == 0:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Assessment status changed concurrently; reload and retry",
        )

    if comment:
        await db.comments.insert_one(
            {
                "_id": new_id(),
                "assessment_id": assessment_id,
                "author_id": current_user.id,
                "content": comment,
                "section": CommentSection.GENERAL.value,
                "mentions": extract_mentions(comment),
                "created_at": now,
                "updated_at": now,
            }
        )

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.UPDATE,
        entity_type=AuditEntityType.ASSESSMENT,
        entity_id=assessment_id,
        details={"from_status": current.value, "to_status": change.status.value, "comment": comment},
        request=request,
    )
    logger.info(
        "assessment_status_changed",
        assessment_id=assessment_id,
        from_status=current.value,
        to_status=change.status.value,
        user_id=current_user.id,
    )

    doc.update(updates)
    doc["status_history"] = [*doc.get("status_history", []), entry]
    return Assessment.from_document(doc)


# =============================================================================
# Assignments
# =============================================================================


@router.get("/{assessment_id}/assignments", response_model=Assignments)
async def list_assessment_assignments(
    assessment_id: str,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
) -> Assignments:
    """List the users assigned to an assessment."""
    doc = await get_accessible_assessment(db, current_user, assessment_id)
    users = await user_profiles(db, {"_id": {"$in": doc.get("assigned_to", [])}})
    return Assignments(entity_id=assessment_id, name=doc["name"], users=users)


@router.post("/{assessment_id}/assignments", response_model=BaseResponse[Assignments])
async def assign_assessment_users(
    assessment_id: str,
    body: AssignmentRequest,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> BaseResponse[Assignments]:
    """
    Assign users to an assessment.

    Only the creator or an administrator may change assignments.

    Raises:
        HTTPException: 404 if any of the users does not exist
    """
    doc = await get_accessible_assessment(db, current_user, assessment_id)
    require_owner_or_admin(current_user, doc.get("created_by"), "assign users to this assessment")
    user_ids = await ensure_users_exist(db, body.user_ids)

    current = doc.get("assigned_to", [])
    added = [user_id for user_id in user_ids if user_id not in current]
    assigned_to = [*current, *added]

    if added:
        await db.assessments.update_one(
            {"_id": assessment_id},
            {"$set": {"assigned_to": assigned_to, "updated_at": utc_now()}},
        )
        await audit.record(
            user_id=current_user.id,
            action=AuditAction.ASSIGN,
            entity_type=AuditEntityType.ASSESSMENT,
            entity_id=assessment_id,
            details={"user_ids": added, "assessment_name": doc["name"]},
            request=request,
        )
    logger.info("assessment_users_assigned", assessment_id=assessment_id, added=len(added))

    users = await user_profiles(db, {"_id": {"$in": assigned_to}})
    return BaseResponse(
        data=Assignments(entity_id=assessment_id, name=doc["name"], users=users),
        message=f"{len(added)} users assigned, {len(user_ids) - len(added)} already assigned",
    )


@router.delete("/{assessment_id}/assignments/{user_id}", response_model=Assignments)
async def unassign_assessment_user(
    assessment_id: str,
    user_id: str,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> Assignments:
    """Remove a user from an assessment. Only the creator or an administrator may do this."""
    doc = await get_accessible_assessment(db, current_user, assessment_id)
    require_owner_or_admin(
        current_user, doc.get("created_by"), "unassign users from this assessment"
    )
    ensure_object_id(user_id, "user ID")

    current = doc.get("assigned_to", [])
    assigned_to = [uid for uid in current if uid != user_id]

    if len(assigned_to) != len(current):
        await db.assessments.update_one(
            {"_id": assessment_id},
            {"$set": {"assigned_to": assigned_to, "updated_at": utc_now()}},
        )
        await audit.record(
            user_id=current_user.id,
            action=AuditAction.UNASSIGN,
            entity_type=AuditEntityType.ASSESSMENT,
            entity_id=assessment_id,
            details={"user_ids": [user_id], "assessment_name": doc["name"]},
            request=request,
        )
        logger.info(
            "assessment_user_unassigned",
            assessment_id=assessment_id,
            unassigned_user_id=user_id,
        )

    users = await user_profiles(db, {"_id": {"$in": assigned_to}})
    return Assignments(entity_id=assessment_id, name=doc["name"], users=users)
