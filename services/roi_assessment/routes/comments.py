"""
Comments Routes
===============

Discussion on assessments, with @username mentions.

Version: 0.1.0
"""

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from shared.auth import User, get_current_active_user
from shared.database import get_mongodb, new_id
from shared.logging import get_logger
from shared.models.audit import AuditAction, AuditEntityType
from shared.models.comment import Comment, CommentCreate, CommentUpdate
from shared.models.common import PaginatedResponse, Pagination, to_document, utc_now

from services.roi_assessment.dependencies import get_audit_logger, get_pagination
from services.roi_assessment.services.access import (
    fetch_or_404,
    get_accessible_assessment,
    require_owner_or_admin,
)
from services.roi_assessment.services.audit import AuditLogger
from services.roi_assessment.services.mentions import added_mentions, extract_mentions


logger = get_logger(__name__)

router = APIRouter()


def _require_content(content: str | None) -> str:
    if content is None or not content.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Comment content is required",
        )
    return content.strip()


@router.get("/assessments/{assessment_id}/comments", response_model=PaginatedResponse[Comment])
async def list_comments(
    assessment_id: str,
    request: Request,
    sort_order: Literal["asc", "desc"] = Query(default="desc"),
    pagination: Pagination = Depends(get_pagination),
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
    audit: AuditLogger = Depends(get_audit_logger),
) -> PaginatedResponse[Comment]:
    """
    List an assessment's comments by creation time.
    """
    await get_accessible_assessment(db, current_user, assessment_id)

    query = {"assessment_id": assessment_id}
    total = await db.comments.count_documents(query)
    cursor = (
        db.comments.find(query)
        .sort("created_at", 1 if sort_order == "asc" else -1)
        .skip(pagination.offset)
        .limit(pagination.limit)
    )
    items = [Comment.from_document(doc) async for doc in cursor]

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.READ,
        entity_type=AuditEntityType.COMMENT,
        entity_id=assessment_id,
        details={"assessment_id": assessment_id, "count": len(items)},
        request=request,
    )

    return PaginatedResponse.build(items, total, pagination.page, pagination.page_size)


@router.post(
    "/assessments/{assessment_id}/comments",
    response_model=Comment,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    assessment_id: str,
    comment: CommentCreate,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
    audit: AuditLogger = Depends(get_audit_logger),
) -> Comment:
    """
    Post a comment on an assessment.

    Mentions are stored as the list of mentioned usernames.
    """
    content = _require_content(comment.content)
    await get_accessible_assessment(db, current_user, assessment_id)

    now = utc_now()
    doc = to_document(comment)
    doc.update(
        {
            "_id": new_id(),
            "assessment_id": assessment_id,
            "author_id": current_user.id,
            "content": content,
            "mentions": extract_mentions(content),
            "created_at": now,
            "updated_at": now,
        }
    )
    await db.comments.insert_one(doc)

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.CREATE,
        entity_type=AuditEntityType.COMMENT,
        entity_id=doc["_id"],
        details={"assessment_id": assessment_id, "section": doc["section"]},
        request=request,
    )
    logger.info(
        "comment_created",
        comment_id=doc["_id"],
        assessment_id=assessment_id,
        mentions=doc["mentions"],
    )

    return Comment.from_document(doc)


@router.get("/comments/{comment_id}", response_model=Comment)
async def get_comment(
    comment_id: str,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
) -> Comment:
    """Get a comment by ID."""
    doc = await fetch_or_404(db.comments, comment_id, "Comment")
    await get_accessible_assessment(db, current_user, doc["assessment_id"])
    return Comment.from_document(doc)


@router.put("/comments/{comment_id}", response_model=Comment)
async def update_comment(
    comment_id: str,
    update: CommentUpdate,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
    audit: AuditLogger = Depends(get_audit_logger),
) -> Comment:
    """
    Edit a comment.

    Only the author or an administrator may edit.
    """
    doc = await fetch_or_404(db.comments, comment_id, "Comment")
    require_owner_or_admin(current_user, doc.get("author_id"), "edit this comment")

    changes = to_document(update, exclude_unset=True, exclude_none=True)
    new_mentions: list[str] = []
    if "content" in changes:
        changes["content"] = _require_content(changes["content"])
        changes["mentions"] = extract_mentions(changes["content"])
        new_mentions = added_mentions(doc.get("mentions", []), changes["mentions"])

    changes["updated_at"] = utc_now()
    await db.comments.update_one({"_id": comment_id}, {"$set": changes})

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.UPDATE,
        entity_type=AuditEntityType.COMMENT,
        entity_id=comment_id,
        details={"assessment_id": doc["assessment_id"], "added_mentions": new_mentions},
        request=request,
    )
    logger.info("comment_updated", comment_id=comment_id, added_mentions=new_mentions)

    return Comment.from_document({**doc, **changes})


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: str,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
    audit: AuditLogger = Depends(get_audit_logger),
) -> None:
    """
    Delete a comment.

    Only the author or an administrator may delete.
    """
    doc = await fetch_or_404(db.comments, comment_id, "Comment")
    require_owner_or_admin(current_user, doc.get("author_id"), "delete this comment")

    await db.comments.delete_one({"_id": comment_id})

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.DELETE,
        entity_type=AuditEntityType.COMMENT,
        entity_id=comment_id,
        details={"assessment_id": doc["assessment_id"]},
        request=request,
    )
    logger.info("comment_deleted", comment_id=comment_id, user_id=current_user.id)
