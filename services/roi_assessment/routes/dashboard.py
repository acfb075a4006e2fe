"""
Dashboard Routes
================

Landing-page summary scoped to what the current user can see.

Version: 0.1.0
"""

from typing import Any

from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase

from shared.auth import User, get_current_active_user
from shared.database import get_mongodb
from shared.logging import get_logger
from shared.models.assessment import Assessment, AssessmentStatus
from shared.models.dashboard import DashboardSummary, RoiTotals
from shared.models.report import Report, ReportStatus

from services.roi_assessment.services.access import (
    assigned_companies,
    ensure_object_id,
    forbidden,
    has_company_access,
    report_visibility_query,
)
from services.roi_assessment.services.roi_calculator import round_half_up


logger = get_logger(__name__)

router = APIRouter()


async def _status_counts(
    collection: AsyncIOMotorCollection,  # type: ignore[type-arg]
    query: dict[str, Any],
    statuses: list[str],
) -> dict[str, int]:
    counts = dict.fromkeys(statuses, 0)
    pipeline: list[dict[str, Any]] = [
        {"$match": query},
        {"$group": {"_id": "$status", "count": {"$sum": 1}}},
    ]
    async for row in collection.aggregate(pipeline):
        if row.get("_id"):
            counts[row["_id"]] = row["count"]
    return counts


async def _roi_totals(
    db: AsyncIOMotorDatabase,  # type: ignore[type-arg]
    assessment_ids: list[str],
) -> RoiTotals:
    cursor = db.roi_calculations.find(
        {"assessment_id": {"$in": assessment_ids}}, {"results": 1}
    )
    results = [doc.get("results") or {} async for doc in cursor]
    if not results:
        return RoiTotals()

    likely = [r.get("likely") or {} for r in results]
    return RoiTotals(
        calculations=len(results),
        total_implementation_cost=sum(r.get("implementation_cost", 0) for r in results),
        total_likely_savings=sum(s.get("annual_savings", 0) for s in likely),
        average_likely_roi=round_half_up(
            sum(s.get("three_year_roi", 0) for s in likely) / len(likely), 1
        ),
    )


@router.get("", response_model=DashboardSummary)
async def get_dashboard(
    company_id: str | None = Query(default=None, description="Restrict to one company"),
    recent: int = Query(default=5, ge=1, le=20, description="Recent items to include"),
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
) -> DashboardSummary:
    """
    Counts, status breakdowns, recent activity and ROI totals.

    Administrators see everything. Other users see the assessments they
    created or are assigned to, the reports visible to them and the
    companies assigned to them.
    """
    assessment_query: dict[str, Any] = {}
    report_query: dict[str, Any] = report_visibility_query(current_user)

    if company_id:
        ensure_object_id(company_id, "company ID")
        if not await has_company_access(db, current_user, company_id):
            raise forbidden("You do not have access to this company")
        assessment_query["company_id"] = company_id
        report_query["company_id"] = company_id

    if not current_user.is_admin:
        assessment_query["$or"] = [
            {"created_by": current_user.id},
            {"assigned_to": current_user.id},
        ]

    if company_id:
        total_companies = 1
    elif current_user.is_admin:
        total_companies = await db.companies.count_documents({})
    else:
        total_companies = len(await assigned_companies(db, current_user) or [])

    assessment_ids = [
        doc["_id"] async for doc in db.assessments.find(assessment_query, {"_id": 1})
    ]
    recent_assessments = [
        Assessment.from_document(doc)
        async for doc in db.assessments.find(assessment_query).sort("created_at", -1).limit(recent)
    ]
    recent_reports = [
        Report.from_document(doc)
        async for doc in db.reports.find(report_query).sort("last_modified", -1).limit(recent)
    ]

    summary = DashboardSummary(
        total_assessments=len(assessment_ids),
        total_companies=total_companies,
        total_reports=await db.reports.count_documents(report_query),
        assessments_by_status=await _status_counts(
            db.assessments, assessment_query, [s.value for s in AssessmentStatus]
        ),
        reports_by_status=await _status_counts(
            db.reports, report_query, [s.value for s in ReportStatus]
        ),
        recent_assessments=recent_assessments,
        recent_reports=recent_reports,
        roi=await _roi_totals(db, assessment_ids),
    )

    logger.debug(
        "dashboard_built",
        user_id=current_user.id,
        company_id=company_id,
        assessments=summary.total_assessments,
        reports=summary.total_reports,
    )
    return summary
