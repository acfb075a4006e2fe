"""Business logic for the WMS ROI assessment service."""

from services.roi_assessment.services.audit import AuditLogger
from services.roi_assessment.services.roi_calculator import RoiCalculator
from services.roi_assessment.services.workflow import AssessmentWorkflow, WorkflowError

__all__ = [
    "AssessmentWorkflow",
    "AuditLogger",
    "RoiCalculator",
    "WorkflowError",
]
