"""
Audit Logging Service
=====================

Writes audit entries for every state-changing operation and builds the
queries used to browse and purge them.

Version: 0.1.0
"""

from datetime import UTC, date, datetime, time
from typing import Any

from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from shared.auth import User
from shared.database import new_id
from shared.logging import get_logger
from shared.logging.logger import censor_value
from shared.models.audit import AuditAction, AuditEntityType
from shared.models.common import utc_now


logger = get_logger(__name__)

SERVER_ADDRESS = "server"
UNKNOWN = "unknown"


def client_ip(request: Request | None) -> str:
    """
    Resolve the caller's address.

    Proxy headers win over the socket peer; the first ``x-forwarded-for``
    hop is the original client.
    """
    if request is None:
        return SERVER_ADDRESS
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN


def user_agent(request: Request | None) -> str:
    if request is None:
        return SERVER_ADDRESS
    return request.headers.get("user-agent", UNKNOWN)


class AuditLogger:
    """
    Records audit entries in the ``audit_logs`` collection.

    A failed audit write is logged and does not fail the request that
    triggered it.
    """

    def __init__(self, db: AsyncIOMotorDatabase) -> None:  # type: ignore[type-arg]
        self.db = db

    async def record(
        self,
        *,
        user_id: str | None,
        action: AuditAction,
        entity_type: AuditEntityType,
        entity_id: str | None = None,
        details: dict[str, Any] | None = None,
        request: Request | None = None,
    ) -> str | None:
        """
        Write one audit entry.

        Returns:
            The new entry id, or None if the write failed
        """
        doc = {
            "_id": new_id(),
            "user_id": user_id,
            "action": action.value,
            "entity_type": entity_type.value,
            "entity_id": entity_id,
            "details": censor_value("details", details or {}),
            "ip_address": client_ip(request),
            "user_agent": user_agent(request),
            "timestamp": utc_now(),
        }
        try:
            await self.db.audit_logs.insert_one(doc)
        except PyMongoError as e:
            logger.error(
                "audit_log_write_failed",
                action=action.value,
                entity_type=entity_type.value,
                entity_id=entity_id,
                error=str(e),
            )
            return None

        logger.debug(
            "audit_log_recorded",
            action=action.value,
            entity_type=entity_type.value,
            entity_id=entity_id,
            user_id=user_id,
        )
        return doc["_id"]


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=UTC)


def end_of_day(day: date) -> datetime:
    """Last representable instant of ``day`` so date ranges are inclusive."""
    return datetime.combine(day, time.max, tzinfo=UTC)


def build_audit_query(
    user: User,
    *,
    user_id: str | None = None,
    action: AuditAction | None = None,
    entity_type: AuditEntityType | None = None,
    entity_id: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
) -> dict[str, Any]:
    """
    Build the Mongo filter for browsing audit logs.

    Non-administrators are always restricted to their own entries,
    whatever ``user_id`` they ask for.
    """
    query: dict[str, Any] = {}

    if not user.is_admin:
        query["user_id"] = user.id
    elif user_id:
        query["user_id"] = user_id

    if action:
        query["action"] = action.value
    if entity_type:
        query["entity_type"] = entity_type.value
    if entity_id:
        query["entity_id"] = entity_id

    if start_date or end_date:
        window: dict[str, datetime] = {}
        if start_date:
            window["$gte"] = start_of_day(start_date)
        if end_date:
            window["$lte"] = end_of_day(end_date)
        query["timestamp"] = window

    return query


def build_purge_query(
    older_than: date,
    *,
    user_id: str | None = None,
    action: AuditAction | None = None,
    entity_type: AuditEntityType | None = None,
) -> dict[str, Any]:
    """Filter for deleting entries written before the start of ``older_than``."""
    query: dict[str, Any] = {"timestamp": {"$lt": start_of_day(older_than)}}
    if user_id:
        query["user_id"] = user_id
    if action:
        query["action"] = action.value
    if entity_type:
        query["entity_type"] = entity_type.value
    return query
