"""
Shared Models
=============

Pydantic models for the WMS ROI assessment service.

Each resource follows the same layout: ``<Name>Create`` and ``<Name>Update``
request bodies plus the full ``<Name>`` model read back from MongoDB.
"""

from shared.models.assessment import (
    Assessment,
    AssessmentCreate,
    AssessmentStage,
    AssessmentStatus,
    AssessmentUpdate,
    StatusUpdate,
)
from shared.models.audit import AuditAction, AuditEntityType, AuditLog, AuditLogCreate
from shared.models.comment import Comment, CommentCreate, CommentSection, CommentUpdate
from shared.models.common import (
    BaseResponse,
    DocumentModel,
    HealthResponse,
    PaginatedResponse,
    Pagination,
    utc_now,
)
from shared.models.company import Company, CompanyCreate, CompanySize, CompanyUpdate
from shared.models.questionnaire import (
    Questionnaire,
    QuestionnaireCreate,
    QuestionnaireResponse,
    QuestionnaireResponseCreate,
    QuestionnaireResponseUpdate,
    QuestionnaireUpdate,
)
from shared.models.recommendation import (
    Recommendation,
    RecommendationCreate,
    RecommendationUpdate,
)
from shared.models.report import Report, ReportCreate, ReportSection, ReportUpdate, ReportVersion
from shared.models.roi import RoiCalculation, RoiInputs, RoiResults
from shared.models.setting import Setting, SettingCreate, SettingScope, SettingUpdate
from shared.models.template import Template, TemplateCreate, TemplateType, TemplateUpdate
from shared.models.user import UserCreate, UserProfile

__all__ = [
    # Common
    "BaseResponse",
    "DocumentModel",
    "HealthResponse",
    "PaginatedResponse",
    "Pagination",
    "utc_now",
    # Resources
    "Assessment",
    "AssessmentCreate",
    "AssessmentStage",
    "AssessmentStatus",
    "AssessmentUpdate",
    "StatusUpdate",
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "AuditLogCreate",
    "Comment",
    "CommentCreate",
    "CommentSection",
    "CommentUpdate",
    "Company",
    "CompanyCreate",
    "CompanySize",
    "CompanyUpdate",
    "Questionnaire",
    "QuestionnaireCreate",
    "QuestionnaireResponse",
    "QuestionnaireResponseCreate",
    "QuestionnaireResponseUpdate",
    "QuestionnaireUpdate",
    "Recommendation",
    "RecommendationCreate",
    "RecommendationUpdate",
    "Report",
    "ReportCreate",
    "ReportSection",
    "ReportUpdate",
    "ReportVersion",
    "RoiCalculation",
    "RoiInputs",
    "RoiResults",
    "Setting",
    "SettingCreate",
    "SettingScope",
    "SettingUpdate",
    "Template",
    "TemplateCreate",
    "TemplateType",
    "TemplateUpdate",
    "UserCreate",
    "UserProfile",
]
