"""
Access Control Service
======================

Document lookups and ownership/visibility rules shared by the routes.

Rules:
- Administrators (admin, super_admin) can access everything.
- Company access comes from the user's ``assigned_companies``.
- An assessment is visible to its creator, its assignees and anyone
  with access to its company.
- A report is visible to its generator, users it is shared with, everyone
  when public, and anyone who can see its assessment.

Version: 0.1.0
"""

from typing import Any

from fastapi import HTTPException, status
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase

from shared.auth import User
from shared.database import is_valid_id
from shared.logging import get_logger
from shared.models.user import UserProfile


logger = get_logger(__name__)


def ensure_object_id(value: str | None, label: str = "ID") -> str:
    """
    Validate a document id taken from the request.

    Raises:
        HTTPException: 400 if the id is malformed
    """
    if not is_valid_id(value):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {label}: {value}",
        )
    return value  # type: ignore[return-value]


async def fetch_or_404(
    collection: AsyncIOMotorCollection,  # type: ignore[type-arg]
    doc_id: str,
    label: str,
) -> dict[str, Any]:
    """
    Load a document by id.

    Raises:
        HTTPException: 400 on a malformed id, 404 if missing
    """
    ensure_object_id(doc_id, f"{label.lower()} ID")
    doc = await collection.find_one({"_id": doc_id})
    if not doc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{label} not found: {doc_id}",
        )
    return doc


async def ensure_users_exist(
    db: AsyncIOMotorDatabase,  # type: ignore[type-arg]
    user_ids: list[str],
) -> list[str]:
    """
    De-duplicate user ids from a request body and check each account exists.

    Raises:
        HTTPException: 400 on a malformed id, 404 listing the unknown users
    """
    unique = list(dict.fromkeys(user_ids))
    for user_id in unique:
        ensure_object_id(user_id, "user ID")
    found = {u["_id"] async for u in db.users.find({"_id": {"$in": unique}}, {"_id": 1})}
    missing = [user_id for user_id in unique if user_id not in found]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Users not found: {', '.join(missing)}",
        )
    return unique


async def user_profiles(
    db: AsyncIOMotorDatabase,  # type: ignore[type-arg]
    query: dict[str, Any],
) -> list[UserProfile]:
    cursor = db.users.find(query, {"password_hash": 0}).sort("username", 1)
    return [UserProfile.from_document(doc) async for doc in cursor]


def forbidden(detail: str = "Access denied") -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def is_owner_or_admin(user: User, owner_id: str | None) -> bool:
    return user.is_admin or (owner_id is not None and owner_id == user.id)


def require_owner_or_admin(user: User, owner_id: str | None, action: str) -> None:
    """
    Raises:
        HTTPException: 403 unless the user owns the record or is an administrator
    """
    if not is_owner_or_admin(user, owner_id):
        logger.warning("ownership_check_failed", user_id=user.id, owner_id=owner_id, action=action)
        raise forbidden(f"Only the owner or an administrator can {action}")


async def assigned_companies(
    db: AsyncIOMotorDatabase,  # type: ignore[type-arg]
    user: User,
) -> list[str] | None:
    """Company ids assigned to the user, or None if the account no longer exists."""
    doc = await db.users.find_one({"_id": user.id}, {"assigned_companies": 1})
    if doc is None:
        return None
    return list(doc.get("assigned_companies", []))


async def has_company_access(
    db: AsyncIOMotorDatabase,  # type: ignore[type-arg]
    user: User,
    company_id: str | None,
) -> bool:
    if user.is_admin:
        return True
    if not company_id:
        return False
    companies = await assigned_companies(db, user)
    return company_id in (companies or [])


async def can_access_assessment(
    db: AsyncIOMotorDatabase,  # type: ignore[type-arg]
    user: User,
    assessment: dict[str, Any],
) -> bool:
    if user.is_admin:
        return True
    if assessment.get("created_by") == user.id:
        return True
    if user.id in assessment.get("assigned_to", []):
        return True
    return await has_company_access(db, user, assessment.get("company_id"))


async def get_accessible_assessment(
    db: AsyncIOMotorDatabase,  # type: ignore[type-arg]
    user: User,
    assessment_id: str,
) -> dict[str, Any]:
    """
    Load an assessment the user is allowed to see.

    Raises:
        HTTPException: 400 malformed id, 404 missing, 403 no access
    """
    assessment = await fetch_or_404(db.assessments, assessment_id, "Assessment")
    if not await can_access_assessment(db, user, assessment):
        logger.warning("assessment_access_denied", assessment_id=assessment_id, user_id=user.id)
        raise forbidden("You do not have access to this assessment")
    return assessment


async def can_access_report(
    db: AsyncIOMotorDatabase,  # type: ignore[type-arg]
    user: User,
    report: dict[str, Any],
) -> bool:
    if user.is_admin or report.get("is_public"):
        return True
    if report.get("generated_by") == user.id or user.id in report.get("shared_with", []):
        return True
    assessment = await db.assessments.find_one({"_id": report.get("assessment_id")})
    return assessment is not None and await can_access_assessment(db, user, assessment)


async def get_accessible_report(
    db: AsyncIOMotorDatabase,  # type: ignore[type-arg]
    user: User,
    report_id: str,
) -> dict[str, Any]:
    """
    Load a report the user is allowed to see.

    Raises:
        HTTPException: 400 malformed id, 404 missing, 403 no access
    """
    report = await fetch_or_404(db.reports, report_id, "Report")
    if not await can_access_report(db, user, report):
        logger.warning("report_access_denied", report_id=report_id, user_id=user.id)
        raise forbidden("You do not have access to this report")
    return report


def report_visibility_query(user: User) -> dict[str, Any]:
    """Mongo filter for the reports a non-admin may list."""
    if user.is_admin:
        return {}
    return {
        "$or": [
            {"generated_by": user.id},
            {"shared_with": user.id},
            {"is_public": True},
        ]
    }


async def ensure_calculation_in_assessment(
    db: AsyncIOMotorDatabase,  # type: ignore[type-arg]
    calculation_id: str,
    assessment_id: str,
) -> dict[str, Any]:
    """
    Raises:
        HTTPException: 400 malformed id, 404 unless the ROI calculation belongs to the assessment
    """
    ensure_object_id(calculation_id, "ROI calculation ID")
    calculation = await db.roi_calculations.find_one(
        {"_id": calculation_id, "assessment_id": assessment_id}
    )
    if not calculation:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"ROI calculation not found for this assessment: {calculation_id}",
        )
    return calculation
