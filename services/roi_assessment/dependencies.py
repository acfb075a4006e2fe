"""
Shared route dependencies.

Version: 0.1.0
"""

from fastapi import Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from shared.config import settings
from shared.database import get_mongodb
from shared.models.common import Pagination

from services.roi_assessment.services.audit import AuditLogger


async def get_audit_logger(
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
) -> AuditLogger:
    return AuditLogger(db)


def get_pagination(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(
        default=settings.pagination.default_page_size,
        ge=1,
        le=settings.pagination.max_page_size,
    ),
) -> Pagination:
    return Pagination(page=page, page_size=page_size)
