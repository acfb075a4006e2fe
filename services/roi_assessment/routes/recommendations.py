"""
Recommendations Routes
======================

API endpoints for improvement recommendations.

Version: 0.1.0
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from shared.auth import User, get_current_active_user, require_writer
from shared.database import get_mongodb, new_id
from shared.logging import get_logger
from shared.models.audit import AuditAction, AuditEntityType
from shared.models.common import to_document, utc_now
from shared.models.recommendation import (
    PRIORITY_ORDER,
    Priority,
    Recommendation,
    RecommendationCreate,
    RecommendationUpdate,
)

from services.roi_assessment.dependencies import get_audit_logger
from services.roi_assessment.services.access import (
    ensure_calculation_in_assessment,
    fetch_or_404,
    get_accessible_assessment,
    require_owner_or_admin,
)
from services.roi_assessment.services.audit import AuditLogger


logger = get_logger(__name__)

router = APIRouter()


@router.get("", response_model=list[Recommendation])
async def list_recommendations(
    assessment_id: str | None = Query(default=None),
    roi_calculation_id: str | None = Query(default=None),
    priority: Priority | None = Query(default=None),
    category: str | None = Query(default=None),
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
) -> list[Recommendation]:
    """
    List recommendations for an assessment or ROI calculation.

    Ordered by priority (high first), then newest.
    """
    if not assessment_id and not roi_calculation_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="assessment_id or roi_calculation_id is required",
        )

    query: dict[str, Any] = {}
    if roi_calculation_id:
        calculation = await fetch_or_404(db.roi_calculations, roi_calculation_id, "ROI calculation")
        query["roi_calculation_id"] = roi_calculation_id
        assessment_id = assessment_id or calculation["assessment_id"]

    await get_accessible_assessment(db, current_user, assessment_id)  # type: ignore[arg-type]
    query["assessment_id"] = assessment_id
    if priority:
        query["priority"] = priority.value
    if category:
        query["category"] = category

    cursor = db.recommendations.find(query).sort("created_at", -1)
    docs = [doc async for doc in cursor]
    docs.sort(key=lambda d: PRIORITY_ORDER.get(d.get("priority"), len(PRIORITY_ORDER)))
    return [Recommendation.from_document(doc) for doc in docs]


@router.post("", response_model=Recommendation, status_code=status.HTTP_201_CREATED)
async def create_recommendation(
    body: RecommendationCreate,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> Recommendation:
    """Create a recommendation for an assessment."""
    await get_accessible_assessment(db, current_user, body.assessment_id)
    if body.roi_calculation_id:
        await ensure_calculation_in_assessment(db, body.roi_calculation_id, body.assessment_id)

    now = utc_now()
    doc = to_document(body)
    doc.update({"_id": new_id(), "created_by": current_user.id, "created_at": now, "updated_at": now})
    await db.recommendations.insert_one(doc)

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.CREATE,
        entity_type=AuditEntityType.RECOMMENDATION,
        entity_id=doc["_id"],
        details={"assessment_id": body.assessment_id, "priority": doc["priority"]},
        request=request,
    )
    logger.info(
        "recommendation_created",
        recommendation_id=doc["_id"],
        assessment_id=body.assessment_id,
    )

    return Recommendation.from_document(doc)


@router.get("/{recommendation_id}", response_model=Recommendation)
async def get_recommendation(
    recommendation_id: str,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
) -> Recommendation:
    """Get a recommendation by ID."""
    doc = await fetch_or_404(db.recommendations, recommendation_id, "Recommendation")
    await get_accessible_assessment(db, current_user, doc["assessment_id"])
    return Recommendation.from_document(doc)


@router.put("/{recommendation_id}", response_model=Recommendation)
async def update_recommendation(
    recommendation_id: str,
    update: RecommendationUpdate,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> Recommendation:
    """Update a recommendation."""
    doc = await fetch_or_404(db.recommendations, recommendation_id, "Recommendation")
    await get_accessible_assessment(db, current_user, doc["assessment_id"])

    changes = to_document(update, exclude_unset=True, exclude_none=True)
    changes["updated_at"] = utc_now()
    await db.recommendations.update_one({"_id": recommendation_id}, {"$set": changes})

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.UPDATE,
        entity_type=AuditEntityType.RECOMMENDATION,
        entity_id=recommendation_id,
        details={"fields": sorted(k for k in changes if k != "updated_at")},
        request=request,
    )
    logger.info("recommendation_updated", recommendation_id=recommendation_id)

    return Recommendation.from_document({**doc, **changes})


@router.delete("/{recommendation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recommendation(
    recommendation_id: str,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> None:
    """
    Delete a recommendation.

    Only the creator or an administrator may delete.
    """
    doc = await fetch_or_404(db.recommendations, recommendation_id, "Recommendation")
    require_owner_or_admin(current_user, doc.get("created_by"), "delete this recommendation")

    await db.recommendations.delete_one({"_id": recommendation_id})

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.DELETE,
        entity_type=AuditEntityType.RECOMMENDATION,
        entity_id=recommendation_id,
        details={"assessment_id": doc["assessment_id"]},
        request=request,
    )
    logger.info("recommendation_deleted", recommendation_id=recommendation_id)
