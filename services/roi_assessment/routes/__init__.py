"""
ROI Assessment Routes
=====================

API route handlers for the ROI Assessment Service.
"""

from services.roi_assessment.routes import (
    assessments,
    audit_logs,
    auth,
    comments,
    companies,
    dashboard,
    questionnaire_responses,
    questionnaires,
    recommendations,
    report_versions,
    reports,
    roi_calculations,
    settings,
    templates,
    users,
)


__all__ = [
    "assessments",
    "audit_logs",
    "auth",
    "comments",
    "companies",
    "dashboard",
    "questionnaire_responses",
    "questionnaires",
    "recommendations",
    "report_versions",
    "reports",
    "roi_calculations",
    "settings",
    "templates",
    "users",
]
