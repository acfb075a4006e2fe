"""
Report Versions Routes
======================

Saved versions of a report's sections: snapshot, browse, restore and compare.

Version: 0.1.0
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from shared.auth import User, get_current_active_user, require_writer
from shared.database import get_mongodb
from shared.logging import get_logger
from shared.models.audit import AuditAction, AuditEntityType
from shared.models.common import utc_now
from shared.models.report import (
    CompareRequest,
    ComparedSide,
    Report,
    ReportVersion,
    ReportVersionSummary,
    RestoreRequest,
    VersionComparison,
    VersionCreate,
)

from services.roi_assessment.dependencies import get_audit_logger
from services.roi_assessment.routes.reports import ensure_unlocked
from services.roi_assessment.services.access import (
    fetch_or_404,
    get_accessible_report,
    require_owner_or_admin,
)
from services.roi_assessment.services.audit import AuditLogger
from services.roi_assessment.services.versioning import (
    backup_name,
    build_version,
    compare_sections,
    find_version,
    snapshot_sections,
)


logger = get_logger(__name__)

router = APIRouter()


def _version_or_404(report: dict[str, Any], version_id: str) -> dict[str, Any]:
    version = find_version(report, version_id)
    if version is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Version not found: {version_id}",
        )
    return version


def _side(report: dict[str, Any], version_id: str | None) -> tuple[ComparedSide, list[dict]]:
    """Resolve one side of a comparison; ``None`` is the current report state."""
    if version_id is None:
        side = ComparedSide(
            version_id=None,
            name="Current version",
            created_at=report.get("last_modified") or report.get("generated_at"),
        )
        return side, report.get("sections", [])

    version = _version_or_404(report, version_id)
    side = ComparedSide(
        version_id=version_id,
        name=version["name"],
        created_at=version.get("created_at"),
    )
    return side, version.get("sections", [])


@router.post(
    "/{report_id}/versions",
    response_model=ReportVersion,
    status_code=status.HTTP_201_CREATED,
)
async def create_version(
    report_id: str,
    body: VersionCreate,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> ReportVersion:
    """Save the report's current sections as a named version."""
    if not body.name.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Version name is required",
        )

    report = await fetch_or_404(db.reports, report_id, "Report")
    require_owner_or_admin(current_user, report.get("generated_by"), "create report versions")

    version = build_version(
        body.name,
        report.get("sections", []),
        current_user.id,
        description=body.description,
    )
    await db.reports.update_one({"_id": report_id}, {"$push": {"versions": version}})

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.CREATE,
        entity_type=AuditEntityType.REPORT_VERSION,
        entity_id=version["id"],
        details={"report_id": report_id, "name": version["name"]},
        request=request,
    )
    logger.info("report_version_created", report_id=report_id, version_id=version["id"])

    return ReportVersion.model_validate(version)


@router.get("/{report_id}/versions", response_model=list[ReportVersionSummary])
async def list_versions(
    report_id: str,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
    audit: AuditLogger = Depends(get_audit_logger),
) -> list[ReportVersionSummary]:
    """List saved versions, newest first, without their section payloads."""
    report = await get_accessible_report(db, current_user, report_id)

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.READ,
        entity_type=AuditEntityType.REPORT_VERSION,
        entity_id=None,
        details={"report_id": report_id},
        request=request,
    )

    summaries = Report.from_document(report).versions
    return sorted(summaries, key=lambda v: v.created_at, reverse=True)


@router.post("/{report_id}/versions/compare", response_model=VersionComparison)
async def compare_versions(
    report_id: str,
    body: CompareRequest,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
    audit: AuditLogger = Depends(get_audit_logger),
) -> VersionComparison:
    """
    Compare two states of a report section by section.

    The base side is ``version_id_1``, or the current report when
    ``compare_current`` is set. The target side is ``version_id_2``, or the
    current report when omitted.
    """
    if not body.compare_current and not body.version_id_1:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="version_id_1 is required unless compare_current is set",
        )

    report = await get_accessible_report(db, current_user, report_id)
    base, base_sections = _side(report, None if body.compare_current else body.version_id_1)
    target, target_sections = _side(report, body.version_id_2)

    result = compare_sections(base_sections, target_sections)

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.READ,
        entity_type=AuditEntityType.REPORT_VERSION,
        entity_id=body.version_id_2 or body.version_id_1,
        details={
            "report_id": report_id,
            "base": base.version_id,
            "target": target.version_id,
            "summary": result["summary"],
        },
        request=request,
    )

    return VersionComparison.model_validate({"base": base, "target": target, **result})


@router.get("/{report_id}/versions/{version_id}", response_model=ReportVersion)
async def get_version(
    report_id: str,
    version_id: str,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
    audit: AuditLogger = Depends(get_audit_logger),
) -> ReportVersion:
    """Get one saved version including its sections."""
    report = await get_accessible_report(db, current_user, report_id)
    version = _version_or_404(report, version_id)

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.READ,
        entity_type=AuditEntityType.REPORT_VERSION,
        entity_id=version_id,
        details={"report_id": report_id},
        request=request,
    )

    return ReportVersion.model_validate(version)


@router.post("/{report_id}/versions/{version_id}/restore", response_model=Report)
async def restore_version(
    report_id: str,
    version_id: str,
    request: Request,
    body: RestoreRequest | None = None,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> Report:
    """
    Replace the report's sections with a saved version.

    Unless ``create_backup`` is false, the current sections are saved first
    as an automatic backup version.
    """
    options = body or RestoreRequest()
    report = await fetch_or_404(db.reports, report_id, "Report")
    require_owner_or_admin(current_user, report.get("generated_by"), "restore report versions")
    ensure_unlocked(report)
    version = _version_or_404(report, version_id)

    now = utc_now()
    changes: dict[str, Any] = {
        "sections": snapshot_sections(version.get("sections", [])),
        "last_modified": now,
        "last_modified_by": current_user.id,
    }
    update: dict[str, Any] = {"$set": changes}
    versions = list(report.get("versions", []))

    backup = None
    if options.create_backup:
        backup = build_version(
            backup_name(version["name"]),
            report.get("sections", []),
            current_user.id,
            is_auto_backup=True,
            created_at=now,
        )
        update["$push"] = {"versions": backup}
        versions.append(backup)

    await db.reports.update_one({"_id": report_id}, update)

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.RESTORE,
        entity_type=AuditEntityType.REPORT,
        entity_id=report_id,
        details={
            "version_id": version_id,
            "version_name": version["name"],
            "backup_version_id": backup["id"] if backup else None,
        },
        request=request,
    )
    logger.info(
        "report_version_restored",
        report_id=report_id,
        version_id=version_id,
        backup_created=backup is not None,
    )

    return Report.from_document({**report, **changes, "versions": versions})
