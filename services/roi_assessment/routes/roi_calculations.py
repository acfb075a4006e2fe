"""
ROI Calculations Routes
=======================

Compute and store ROI projections for assessments. Storing the first
calculation moves the assessment to stage 4; finalizing one moves it
to stage 5.

Version: 0.1.0
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from shared.auth import User, get_current_active_user, require_writer
from shared.database import get_mongodb, new_id
from shared.logging import get_logger
from shared.models.assessment import AssessmentStage
from shared.models.audit import AuditAction, AuditEntityType
from shared.models.common import to_document, utc_now
from shared.models.roi import (
    CalculationStatus,
    RoiCalculation,
    RoiCalculationCreate,
    RoiCalculationUpdate,
    RoiInputs,
    RoiResults,
)

from services.roi_assessment.dependencies import get_audit_logger
from services.roi_assessment.services.access import (
    fetch_or_404,
    get_accessible_assessment,
    require_owner_or_admin,
)
from services.roi_assessment.services.audit import AuditLogger
from services.roi_assessment.services.roi_calculator import RoiCalculator
from services.roi_assessment.services.workflow import advance_stage


logger = get_logger(__name__)

router = APIRouter()

calculator = RoiCalculator()


@router.post("/preview", response_model=RoiResults)
async def preview_calculation(
    inputs: RoiInputs,
    current_user: User = Depends(get_current_active_user),
) -> RoiResults:
    """Compute a projection without storing it."""
    return calculator.calculate(inputs)


@router.get("", response_model=list[RoiCalculation])
async def list_calculations(
    assessment_id: str | None = Query(default=None, description="Assessment to list calculations for"),
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
) -> list[RoiCalculation]:
    """List an assessment's ROI calculations, newest first."""
    if not assessment_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="assessment_id is required",
        )
    await get_accessible_assessment(db, current_user, assessment_id)

    cursor = db.roi_calculations.find({"assessment_id": assessment_id}).sort("calculated_at", -1)
    return [RoiCalculation.from_document(doc) async for doc in cursor]


@router.post("", response_model=RoiCalculation, status_code=status.HTTP_201_CREATED)
async def create_calculation(
    body: RoiCalculationCreate,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> RoiCalculation:
    """
    Compute and store an ROI projection for an assessment.
    """
    await get_accessible_assessment(db, current_user, body.assessment_id)

    results = calculator.calculate(body.inputs)
    now = utc_now()
    doc = to_document(body)
    doc.update(
        {
            "_id": new_id(),
            "results": results.model_dump(),
            "status": CalculationStatus.DRAFT.value,
            "calculated_by": current_user.id,
            "calculated_at": now,
            "updated_at": now,
        }
    )
    await db.roi_calculations.insert_one(doc)

    await advance_stage(
        db,
        body.assessment_id,
        AssessmentStage.ROI_CALCULATION,
        AssessmentStage.RECOMMENDATIONS,
    )

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.CALCULATE,
        entity_type=AuditEntityType.ROI_CALCULATION,
        entity_id=doc["_id"],
        details={
            "assessment_id": body.assessment_id,
            "implementation_cost": results.implementation_cost,
            "likely_savings": results.likely.annual_savings,
        },
        request=request,
    )
    logger.info(
        "roi_calculation_created",
        calculation_id=doc["_id"],
        assessment_id=body.assessment_id,
        user_id=current_user.id,
    )

    return RoiCalculation.from_document(doc)


@router.get("/{calculation_id}", response_model=RoiCalculation)
async def get_calculation(
    calculation_id: str,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
) -> RoiCalculation:
    """Get an ROI calculation by ID."""
    doc = await fetch_or_404(db.roi_calculations, calculation_id, "ROI calculation")
    await get_accessible_assessment(db, current_user, doc["assessment_id"])
    return RoiCalculation.from_document(doc)


@router.put("/{calculation_id}", response_model=RoiCalculation)
async def update_calculation(
    calculation_id: str,
    update: RoiCalculationUpdate,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> RoiCalculation:
    """
    Recalculate with new inputs and/or change the calculation status.

    A finalized calculation can no longer change its inputs.
    """
    doc = await fetch_or_404(db.roi_calculations, calculation_id, "ROI calculation")
    await get_accessible_assessment(db, current_user, doc["assessment_id"])

    if update.inputs is not None and doc.get("status") == CalculationStatus.FINAL.value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A finalized calculation cannot be recalculated",
        )

    changes = to_document(update, exclude_unset=True, exclude_none=True)
    if update.inputs is not None:
        changes["results"] = calculator.calculate(update.inputs).model_dump()
        changes["calculated_at"] = utc_now()

    finalizing = (
        update.status == CalculationStatus.FINAL
        and doc.get("status") != CalculationStatus.FINAL.value
    )
    changes["updated_at"] = utc_now()
    await db.roi_calculations.update_one({"_id": calculation_id}, {"$set": changes})

    if finalizing:
        await advance_stage(
            db,
            doc["assessment_id"],
            AssessmentStage.RECOMMENDATIONS,
            AssessmentStage.REPORT,
        )

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.APPROVE if finalizing else AuditAction.UPDATE,
        entity_type=AuditEntityType.ROI_CALCULATION,
        entity_id=calculation_id,
        details={"assessment_id": doc["assessment_id"], "recalculated": update.inputs is not None},
        request=request,
    )
    logger.info("roi_calculation_updated", calculation_id=calculation_id, finalized=finalizing)

    return RoiCalculation.from_document({**doc, **changes})


@router.delete("/{calculation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_calculation(
    calculation_id: str,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> None:
    """
    Delete an ROI calculation.

    Only the user who ran it or an administrator may delete.
    """
    doc = await fetch_or_404(db.roi_calculations, calculation_id, "ROI calculation")
    require_owner_or_admin(current_user, doc.get("calculated_by"), "delete this calculation")

    await db.roi_calculations.delete_one({"_id": calculation_id})

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.DELETE,
        entity_type=AuditEntityType.ROI_CALCULATION,
        entity_id=calculation_id,
        details={"assessment_id": doc["assessment_id"]},
        request=request,
    )
    logger.info("roi_calculation_deleted", calculation_id=calculation_id)
