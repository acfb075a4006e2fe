"""
Audit Log Models
================

Who did what to which record, and from where.

Version: 0.1.0
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from shared.models.common import DocumentModel


class AuditAction(str, Enum):
    """Recorded action verbs."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    LOGIN = "login"
    LOGOUT = "logout"
    EXPORT = "export"
    IMPORT = "import"
    GENERATE = "generate"
    ASSIGN = "assign"
    UNASSIGN = "unassign"
    COMPLETE = "complete"
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    CALCULATE = "calculate"
    RESTORE = "restore"
    SHARE = "share"
    LOCK = "lock"
    UNLOCK = "unlock"


class AuditEntityType(str, Enum):
    """Kinds of record an audit entry can point at."""

    USER = "user"
    COMPANY = "company"
    ASSESSMENT = "assessment"
    COMMENT = "comment"
    QUESTIONNAIRE = "questionnaire"
    QUESTIONNAIRE_RESPONSE = "questionnaire_response"
    ROI_CALCULATION = "roi_calculation"
    RECOMMENDATION = "recommendation"
    TEMPLATE = "template"
    REPORT = "report"
    REPORT_VERSION = "report_version"
    SETTING = "setting"
    SYSTEM = "system"


class AuditSortField(str, Enum):
    TIMESTAMP = "timestamp"
    ACTION = "action"
    ENTITY_TYPE = "entity_type"
    USER_ID = "user_id"


class AuditLogCreate(BaseModel):
    """Client-submitted audit entry."""

    action: AuditAction
    entity_type: AuditEntityType
    entity_id: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)


class AuditLog(DocumentModel):
    """Stored audit entry."""

    user_id: str | None = None
    action: AuditAction
    entity_type: AuditEntityType
    entity_id: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    ip_address: str = "unknown"
    user_agent: str = "unknown"
    timestamp: datetime


class AuditPurgeResult(BaseModel):
    deleted_count: int
