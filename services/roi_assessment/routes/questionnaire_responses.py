"""
Questionnaire Responses Routes
==============================

Answers collected for an assessment. Starting a response moves the
assessment into stage 2; completing it moves it to stage 3.

Version: 0.1.0
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from shared.auth import User, get_current_active_user, require_writer
from shared.database import get_mongodb, new_id
from shared.logging import get_logger
from shared.models.assessment import AssessmentStage, AssessmentStatus
from shared.models.audit import AuditAction, AuditEntityType
from shared.models.common import to_document, utc_now
from shared.models.questionnaire import (
    QuestionnaireResponse,
    QuestionnaireResponseCreate,
    QuestionnaireResponseUpdate,
    ResponseStatus,
)

from services.roi_assessment.dependencies import get_audit_logger
from services.roi_assessment.services.access import (
    fetch_or_404,
    get_accessible_assessment,
    require_owner_or_admin,
)
from services.roi_assessment.services.audit import AuditLogger
from services.roi_assessment.services.questionnaires import find_missing_answers
from services.roi_assessment.services.workflow import advance_stage, status_change_entry


logger = get_logger(__name__)

router = APIRouter()


@router.get("", response_model=list[QuestionnaireResponse])
async def list_responses(
    assessment_id: str | None = Query(default=None, description="Assessment to list responses for"),
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
) -> list[QuestionnaireResponse]:
    """List the responses recorded for an assessment."""
    if not assessment_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="assessment_id is required",
        )
    await get_accessible_assessment(db, current_user, assessment_id)

    cursor = db.questionnaire_responses.find({"assessment_id": assessment_id}).sort(
        "started_at", -1
    )
    return [QuestionnaireResponse.from_document(doc) async for doc in cursor]


@router.post("", response_model=QuestionnaireResponse, status_code=status.HTTP_201_CREATED)
async def create_response(
    body: QuestionnaireResponseCreate,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> QuestionnaireResponse:
    """
    Start a response for an assessment.

    Only one response per assessment and questionnaire is allowed.
    """
    assessment = await get_accessible_assessment(db, current_user, body.assessment_id)
    await fetch_or_404(db.questionnaires, body.questionnaire_id, "Questionnaire")

    existing = await db.questionnaire_responses.find_one(
        {"assessment_id": body.assessment_id, "questionnaire_id": body.questionnaire_id}
    )
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A response already exists for this assessment: {existing['_id']}",
        )

    now = utc_now()
    doc = to_document(body)
    doc.update(
        {
            "_id": new_id(),
            "respondent_id": current_user.id,
            "status": ResponseStatus.IN_PROGRESS.value,
            "started_at": now,
            "completed_at": None,
            "last_saved_at": now,
        }
    )
    await db.questionnaire_responses.insert_one(doc)

    await advance_stage(
        db,
        body.assessment_id,
        AssessmentStage.QUESTIONNAIRE,
        AssessmentStage.QUESTIONNAIRE_IN_PROGRESS,
    )
    if assessment.get("status") == AssessmentStatus.DRAFT.value:
        await db.assessments.update_one(
            {"_id": body.assessment_id, "status": AssessmentStatus.DRAFT.value},
            {
                "$set": {"status": AssessmentStatus.IN_PROGRESS.value, "updated_at": now},
                "$push": {
                    "status_history": status_change_entry(
                        AssessmentStatus.IN_PROGRESS,
                        AssessmentStatus.DRAFT,
                        current_user.id,
                        "Questionnaire started",
                        changed_at=now,
                    )
                },
            },
        )

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.CREATE,
        entity_type=AuditEntityType.QUESTIONNAIRE_RESPONSE,
        entity_id=doc["_id"],
        details={"assessment_id": body.assessment_id, "questionnaire_id": body.questionnaire_id},
        request=request,
    )
    logger.info(
        "questionnaire_response_started",
        response_id=doc["_id"],
        assessment_id=body.assessment_id,
    )

    return QuestionnaireResponse.from_document(doc)


async def _load_response(
    db: AsyncIOMotorDatabase,  # type: ignore[type-arg]
    user: User,
    response_id: str,
) -> dict[str, Any]:
    doc = await fetch_or_404(db.questionnaire_responses, response_id, "Questionnaire response")
    await get_accessible_assessment(db, user, doc["assessment_id"])
    return doc


@router.get("/{response_id}", response_model=QuestionnaireResponse)
async def get_response(
    response_id: str,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
) -> QuestionnaireResponse:
    """Get a questionnaire response by ID."""
    return QuestionnaireResponse.from_document(await _load_response(db, current_user, response_id))


@router.put("/{response_id}", response_model=QuestionnaireResponse)
async def update_response(
    response_id: str,
    update: QuestionnaireResponseUpdate,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> QuestionnaireResponse:
    """
    Save answers and optionally complete the response.

    Completing requires every applicable required question to be answered.
    """
    doc = await _load_response(db, current_user, response_id)

    now = utc_now()
    changes = to_document(update, exclude_unset=True, exclude_none=True)
    changes["last_saved_at"] = now

    completing = (
        update.status == ResponseStatus.COMPLETED
        and doc.get("status") != ResponseStatus.COMPLETED.value
    )
    if completing:
        questionnaire = await fetch_or_404(
            db.questionnaires, doc["questionnaire_id"], "Questionnaire"
        )
        sections = changes.get("sections", doc.get("sections", []))
        missing = find_missing_answers(questionnaire, sections)
        if missing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Required questions are unanswered: {', '.join(missing)}",
            )
        changes["completed_at"] = now
    elif update.status == ResponseStatus.IN_PROGRESS:
        changes["completed_at"] = None

    await db.questionnaire_responses.update_one({"_id": response_id}, {"$set": changes})

    if completing:
        await advance_stage(
            db,
            doc["assessment_id"],
            AssessmentStage.QUESTIONNAIRE_IN_PROGRESS,
            AssessmentStage.ROI_CALCULATION,
        )

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.COMPLETE if completing else AuditAction.UPDATE,
        entity_type=AuditEntityType.QUESTIONNAIRE_RESPONSE,
        entity_id=response_id,
        details={"assessment_id": doc["assessment_id"]},
        request=request,
    )
    logger.info(
        "questionnaire_response_saved",
        response_id=response_id,
        completed=completing,
    )

    return QuestionnaireResponse.from_document({**doc, **changes})


@router.delete("/{response_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_response(
    response_id: str,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> None:
    """
    Delete a questionnaire response.

    Only the respondent or an administrator may delete.
    """
    doc = await _load_response(db, current_user, response_id)
    require_owner_or_admin(current_user, doc.get("respondent_id"), "delete this response")

    await db.questionnaire_responses.delete_one({"_id": response_id})

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.DELETE,
        entity_type=AuditEntityType.QUESTIONNAIRE_RESPONSE,
        entity_id=response_id,
        details={"assessment_id": doc["assessment_id"]},
        request=request,
    )
    logger.info("questionnaire_response_deleted", response_id=response_id)
