"""
Questionnaires Routes
=====================

API endpoints for questionnaire definitions.

Version: 0.1.0
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from shared.auth import User, get_current_active_user, require_admin
from shared.database import get_mongodb, new_id
from shared.logging import get_logger
from shared.models.audit import AuditAction, AuditEntityType
from shared.models.common import to_document, utc_now
from shared.models.questionnaire import Questionnaire, QuestionnaireCreate, QuestionnaireUpdate

from services.roi_assessment.dependencies import get_audit_logger
from services.roi_assessment.services.access import fetch_or_404
from services.roi_assessment.services.audit import AuditLogger


logger = get_logger(__name__)

router = APIRouter()


def _require_sections(sections: list[Any] | None) -> None:
    if not sections:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Questionnaire must have at least one section",
        )


async def _ensure_unique_active_version(
    db: AsyncIOMotorDatabase,  # type: ignore[type-arg]
    version: str,
    exclude_id: str | None = None,
) -> None:
    query: dict[str, Any] = {"version": version, "is_active": True}
    if exclude_id:
        query["_id"] = {"$ne": exclude_id}
    if await db.questionnaires.find_one(query):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"An active questionnaire with version {version} already exists",
        )


@router.get("", response_model=list[Questionnaire])
async def list_questionnaires(
    is_active: bool | None = Query(default=None, description="Filter by active flag"),
    version: str | None = Query(default=None, description="Filter by version"),
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
) -> list[Questionnaire]:
    """List questionnaires, latest version first."""
    query: dict[str, Any] = {}
    if is_active is not None:
        query["is_active"] = is_active
    if version:
        query["version"] = version

    cursor = db.questionnaires.find(query).sort([("version", -1), ("created_at", -1)])
    return [Questionnaire.from_document(doc) async for doc in cursor]


@router.post("", response_model=Questionnaire, status_code=status.HTTP_201_CREATED)
async def create_questionnaire(
    questionnaire: QuestionnaireCreate,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_admin),
    audit: AuditLogger = Depends(get_audit_logger),
) -> Questionnaire:
    """
    Create a questionnaire.

    Requires administrator role.
    """
    _require_sections(questionnaire.sections)
    if questionnaire.is_active:
        await _ensure_unique_active_version(db, questionnaire.version)

    now = utc_now()
    doc = to_document(questionnaire)
    doc.update({"_id": new_id(), "created_by": current_user.id, "created_at": now, "updated_at": now})
    await db.questionnaires.insert_one(doc)

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.CREATE,
        entity_type=AuditEntityType.QUESTIONNAIRE,
        entity_id=doc["_id"],
        details={"title": questionnaire.title, "version": questionnaire.version},
        request=request,
    )
    logger.info(
        "questionnaire_created",
        questionnaire_id=doc["_id"],
        version=questionnaire.version,
        sections=len(questionnaire.sections),
    )

    return Questionnaire.from_document(doc)


@router.get("/{questionnaire_id}", response_model=Questionnaire)
async def get_questionnaire(
    questionnaire_id: str,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
) -> Questionnaire:
    """Get a questionnaire by ID."""
    return Questionnaire.from_document(
        await fetch_or_404(db.questionnaires, questionnaire_id, "Questionnaire")
    )


@router.put("/{questionnaire_id}", response_model=Questionnaire)
async def update_questionnaire(
    questionnaire_id: str,
    update: QuestionnaireUpdate,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_admin),
    audit: AuditLogger = Depends(get_audit_logger),
) -> Questionnaire:
    """
    Update a questionnaire.

    Requires administrator role.
    """
    doc = await fetch_or_404(db.questionnaires, questionnaire_id, "Questionnaire")
    changes = to_document(update, exclude_unset=True, exclude_none=True)

    if "sections" in changes:
        _require_sections(changes["sections"])

    merged = {**doc, **changes}
    if merged.get("is_active") and ("version" in changes or "is_active" in changes):
        await _ensure_unique_active_version(db, merged["version"], exclude_id=questionnaire_id)

    changes["updated_at"] = utc_now()
    await db.questionnaires.update_one({"_id": questionnaire_id}, {"$set": changes})

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.UPDATE,
        entity_type=AuditEntityType.QUESTIONNAIRE,
        entity_id=questionnaire_id,
        details={"fields": sorted(k for k in changes if k != "updated_at")},
        request=request,
    )
    logger.info("questionnaire_updated", questionnaire_id=questionnaire_id)

    return Questionnaire.from_document({**doc, **changes})


@router.delete("/{questionnaire_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_questionnaire(
    questionnaire_id: str,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_admin),
    audit: AuditLogger = Depends(get_audit_logger),
) -> None:
    """
    Delete a questionnaire.

    Requires administrator role.
    """
    doc = await fetch_or_404(db.questionnaires, questionnaire_id, "Questionnaire")
    await db.questionnaires.delete_one({"_id": questionnaire_id})

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.DELETE,
        entity_type=AuditEntityType.QUESTIONNAIRE,
        entity_id=questionnaire_id,
        details={"title": doc.get("title"), "version": doc.get("version")},
        request=request,
    )
    logger.info("questionnaire_deleted", questionnaire_id=questionnaire_id)
