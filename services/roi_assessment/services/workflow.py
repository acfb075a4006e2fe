"""
Assessment Workflow Service
===========================

Status state machine and stage progression for assessments.

Status workflow:
    draft -> in_progress -> data_collection -> analysis -> review -> completed -> archived
    (any active status may be cancelled; a cancelled assessment returns to draft)

Stage progression (1-5) is driven by the records produced along the way:
questionnaire response started, response completed, ROI calculated,
ROI finalized, report generated.

Version: 0.1.0
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from shared.logging import get_logger
from shared.models.assessment import AssessmentStage, AssessmentStatus
from shared.models.common import utc_now


logger = get_logger(__name__)


class WorkflowError(ValueError):
    """Raised when a requested status change is not allowed."""


@dataclass
class AssessmentWorkflow:
    """Assessment status state machine."""

    transitions: dict[AssessmentStatus, frozenset[AssessmentStatus]] = field(
        default_factory=lambda: {
            AssessmentStatus.DRAFT: frozenset(
                {AssessmentStatus.IN_PROGRESS, AssessmentStatus.CANCELLED}
            ),
            AssessmentStatus.IN_PROGRESS: frozenset(
                {AssessmentStatus.DATA_COLLECTION, AssessmentStatus.CANCELLED}
            ),
            AssessmentStatus.DATA_COLLECTION: frozenset(
                {
                    AssessmentStatus.ANALYSIS,
                    AssessmentStatus.IN_PROGRESS,
                    AssessmentStatus.CANCELLED,
                }
            ),
            AssessmentStatus.ANALYSIS: frozenset(
                {
                    AssessmentStatus.REVIEW,
                    AssessmentStatus.DATA_COLLECTION,
                    AssessmentStatus.CANCELLED,
                }
            ),
            AssessmentStatus.REVIEW: frozenset(
                {
                    AssessmentStatus.COMPLETED,
                    AssessmentStatus.ANALYSIS,
                    AssessmentStatus.CANCELLED,
                }
            ),
            AssessmentStatus.COMPLETED: frozenset({AssessmentStatus.ARCHIVED}),
            AssessmentStatus.CANCELLED: frozenset({AssessmentStatus.DRAFT}),
            AssessmentStatus.ARCHIVED: frozenset(),
        }
    )

    # Moving into these states must be justified with a comment
    comment_required: frozenset[AssessmentStatus] = frozenset(
        {
            AssessmentStatus.CANCELLED,
            AssessmentStatus.REVIEW,
            AssessmentStatus.COMPLETED,
        }
    )

    def allowed_transitions(self, current: AssessmentStatus) -> list[AssessmentStatus]:
        """Statuses reachable from ``current``, in declaration order."""
        allowed = self.transitions.get(current, frozenset())
        return [s for s in AssessmentStatus if s in allowed]

    def can_transition(self, current: AssessmentStatus, target: AssessmentStatus) -> bool:
        """Check if transition is valid."""
        return target in self.transitions.get(current, frozenset())

    def requires_comment(self, target: AssessmentStatus) -> bool:
        return target in self.comment_required

    def validate(
        self,
        current: AssessmentStatus,
        target: AssessmentStatus,
        comment: str | None,
    ) -> None:
        """
        Check a requested transition.

        Raises:
            WorkflowError: If the transition is not allowed or lacks a required comment
        """
        if not self.can_transition(current, target):
            allowed = ", ".join(s.value for s in self.allowed_transitions(current)) or "none"
            raise WorkflowError(
                f"Invalid status transition from {current.value} to {target.value}. "
                f"Allowed transitions: {allowed}"
            )
        if self.requires_comment(target) and not (comment and comment.strip()):
            raise WorkflowError(f"A comment is required when changing status to {target.value}")


def status_change_entry(
    status: AssessmentStatus,
    previous_status: AssessmentStatus | None,
    changed_by: str,
    comment: str | None = None,
    changed_at: datetime | None = None,
) -> dict[str, Any]:
    """Build a status_history entry."""
    return {
        "status": status.value,
        "previous_status": previous_status.value if previous_status else None,
        "changed_by": changed_by,
        "changed_at": changed_at or utc_now(),
        "comment": comment,
    }


async def advance_stage(
    db: AsyncIOMotorDatabase,  # type: ignore[type-arg]
    assessment_id: str,
    from_stage: AssessmentStage,
    to_stage: AssessmentStage,
    extra: dict[str, Any] | None = None,
) -> bool:
    """
    Move an assessment forward one stage if it is still at ``from_stage``.

    The stage check is part of the update filter, so concurrent requests
    advance the stage at most once.

    Returns:
        True if the assessment was advanced
    """
    update = {"current_stage": to_stage.value, "updated_at": utc_now(), **(extra or {})}
    result = await db.assessments.update_one(
        {"_id": assessment_id, "current_stage": from_stage.value},
        {"$set": update},
    )
    advanced = result.modified_count > 0
    if advanced:
        logger.info(
            "assessment_stage_advanced",
            assessment_id=assessment_id,
            from_stage=from_stage.value,
            to_stage=to_stage.value,
        )
    return advanced
