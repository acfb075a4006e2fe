"""
Templates Routes
================

API endpoints for report, assessment, questionnaire and chart templates.

Version: 0.1.0
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from shared.auth import User, get_current_active_user, require_writer
from shared.database import get_mongodb, new_id
from shared.logging import get_logger
from shared.models.audit import AuditAction, AuditEntityType
from shared.models.common import to_document, utc_now
from shared.models.template import Template, TemplateCreate, TemplateType, TemplateUpdate

from services.roi_assessment.dependencies import get_audit_logger
from services.roi_assessment.services.access import (
    fetch_or_404,
    forbidden,
    require_owner_or_admin,
)
from services.roi_assessment.services.audit import AuditLogger


logger = get_logger(__name__)

router = APIRouter()


def can_view_template(user: User, template: dict[str, Any]) -> bool:
    return user.is_admin or template.get("is_public", False) or template.get("created_by") == user.id


async def _ensure_unique_name(
    db: AsyncIOMotorDatabase,  # type: ignore[type-arg]
    name: str,
    exclude_id: str | None = None,
) -> None:
    query: dict[str, Any] = {"name": name}
    if exclude_id:
        query["_id"] = {"$ne": exclude_id}
    if await db.templates.find_one(query):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Template already exists: {name}",
        )


@router.get("", response_model=list[Template])
async def list_templates(
    type: TemplateType | None = Query(default=None, description="Filter by template type"),
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
) -> list[Template]:
    """
    List templates by name.

    Non-administrators see public templates and their own.
    """
    query: dict[str, Any] = {}
    if type:
        query["type"] = type.value
    if not current_user.is_admin:
        query["$or"] = [{"is_public": True}, {"created_by": current_user.id}]

    cursor = db.templates.find(query).sort("name", 1)
    return [Template.from_document(doc) async for doc in cursor]


@router.post("", response_model=Template, status_code=status.HTTP_201_CREATED)
async def create_template(
    template: TemplateCreate,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> Template:
    """
    Create a template.

    Only administrators may publish templates.
    """
    if template.is_public and not current_user.is_admin:
        raise forbidden("Only administrators can create public templates")
    await _ensure_unique_name(db, template.name)

    now = utc_now()
    doc = to_document(template)
    doc.update(
        {
            "_id": new_id(),
            "is_system": False,
            "created_by": current_user.id,
            "updated_by": current_user.id,
            "created_at": now,
            "updated_at": now,
        }
    )
    await db.templates.insert_one(doc)

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.CREATE,
        entity_type=AuditEntityType.TEMPLATE,
        entity_id=doc["_id"],
        details={"name": template.name, "type": doc["type"]},
        request=request,
    )
    logger.info("template_created", template_id=doc["_id"], type=doc["type"])

    return Template.from_document(doc)


@router.get("/{template_id}", response_model=Template)
async def get_template(
    template_id: str,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
) -> Template:
    """Get a template by ID."""
    doc = await fetch_or_404(db.templates, template_id, "Template")
    if not can_view_template(current_user, doc):
        raise forbidden("You do not have access to this template")
    return Template.from_document(doc)


@router.put("/{template_id}", response_model=Template)
async def update_template(
    template_id: str,
    update: TemplateUpdate,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> Template:
    """
    Update a template.

    Only the owner or an administrator may edit; only administrators may
    make a template public.
    """
    doc = await fetch_or_404(db.templates, template_id, "Template")
    require_owner_or_admin(current_user, doc.get("created_by"), "update this template")

    if update.is_public and not doc.get("is_public") and not current_user.is_admin:
        raise forbidden("Only administrators can make templates public")

    changes = to_document(update, exclude_unset=True, exclude_none=True)
    if changes.get("name") and changes["name"] != doc.get("name"):
        await _ensure_unique_name(db, changes["name"], exclude_id=template_id)

    changes["updated_by"] = current_user.id
    changes["updated_at"] = utc_now()
    await db.templates.update_one({"_id": template_id}, {"$set": changes})

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.UPDATE,
        entity_type=AuditEntityType.TEMPLATE,
        entity_id=template_id,
        details={"fields": sorted(k for k in changes if k not in ("updated_at", "updated_by"))},
        request=request,
    )
    logger.info("template_updated", template_id=template_id)

    return Template.from_document({**doc, **changes})


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(
    template_id: str,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(require_writer),
    audit: AuditLogger = Depends(get_audit_logger),
) -> None:
    """
    Delete a template.

    System templates cannot be deleted.
    """
    doc = await fetch_or_404(db.templates, template_id, "Template")
    if doc.get("is_system"):
        raise forbidden("System templates cannot be deleted")
    require_owner_or_admin(current_user, doc.get("created_by"), "delete this template")

    await db.templates.delete_one({"_id": template_id})

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.DELETE,
        entity_type=AuditEntityType.TEMPLATE,
        entity_id=template_id,
        details={"name": doc.get("name")},
        request=request,
    )
    logger.info("template_deleted", template_id=template_id)
