"""
Settings Routes
===============

Scoped key/value settings. A key can exist once per scope, and once per
user within the user scope.

Version: 0.1.0
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from shared.auth import User, get_current_active_user
from shared.database import get_mongodb, new_id
from shared.logging import get_logger
from shared.models.audit import AuditAction, AuditEntityType
from shared.models.common import utc_now
from shared.models.setting import (
    Setting,
    SettingCreate,
    SettingDataType,
    SettingScope,
    SettingUpdate,
)

from services.roi_assessment.dependencies import get_audit_logger
from services.roi_assessment.services.access import forbidden
from services.roi_assessment.services.audit import AuditLogger
from services.roi_assessment.services.settings_scope import (
    can_read_scope,
    can_write_scope,
    resolve_owner,
    setting_filter,
    value_matches_type,
    visible_settings_query,
)


logger = get_logger(__name__)

router = APIRouter()


def _check_value(value: object, data_type: SettingDataType) -> None:
    if not value_matches_type(value, data_type):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Value does not match data type {data_type.value}",
        )


def _check_write(user: User, scope: SettingScope) -> None:
    if not can_write_scope(user, scope):
        raise forbidden(f"Only administrators can modify {scope.value} settings")


async def _find_setting(
    db: AsyncIOMotorDatabase,  # type: ignore[type-arg]
    key: str,
    scope: SettingScope,
    owner_id: str | None,
) -> dict:
    doc = await db.settings.find_one(setting_filter(key, scope, owner_id))
    if not doc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Setting not found: {key} ({scope.value})",
        )
    return doc


@router.get("", response_model=list[Setting])
async def list_settings(
    scope: SettingScope | None = Query(default=None, description="Filter by scope"),
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
) -> list[Setting]:
    """
    List settings visible to the current user.

    Non-administrators see public settings and their own user settings.
    """
    query = visible_settings_query(current_user, scope)
    if query is None:
        raise forbidden("Only administrators can view system settings")

    cursor = db.settings.find(query).sort([("scope", 1), ("key", 1)])
    return [Setting.from_document(doc) async for doc in cursor]


@router.post("", response_model=Setting, status_code=status.HTTP_201_CREATED)
async def create_setting(
    setting: SettingCreate,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
    audit: AuditLogger = Depends(get_audit_logger),
) -> Setting:
    """
    Create a setting.

    System and public settings require administrator role.
    """
    if setting.value is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Setting value is required",
        )
    _check_write(current_user, setting.scope)
    _check_value(setting.value, setting.data_type)

    owner_id = resolve_owner(current_user, setting.scope, setting.user_id)
    if await db.settings.find_one(setting_filter(setting.key, setting.scope, owner_id)):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Setting already exists: {setting.key} ({setting.scope.value})",
        )

    now = utc_now()
    doc = {
        "_id": new_id(),
        "key": setting.key,
        "value": setting.value,
        "scope": setting.scope.value,
        "user_id": owner_id,
        "description": setting.description,
        "data_type": setting.data_type.value,
        "created_by": current_user.id,
        "created_at": now,
        "last_modified_by": current_user.id,
        "last_modified_at": now,
    }
    try:
        await db.settings.insert_one(doc)
    except DuplicateKeyError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Setting already exists: {setting.key} ({setting.scope.value})",
        ) from e

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.CREATE,
        entity_type=AuditEntityType.SETTING,
        entity_id=doc["_id"],
        details={"key": setting.key, "scope": setting.scope.value, "owner_id": owner_id},
        request=request,
    )
    logger.info("setting_created", key=setting.key, scope=setting.scope.value, owner_id=owner_id)

    return Setting.from_document(doc)


@router.get("/{key}", response_model=Setting)
async def get_setting(
    key: str,
    scope: SettingScope = Query(default=SettingScope.PUBLIC),
    user_id: str | None = Query(default=None, description="Owner (administrators only)"),
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
) -> Setting:
    """Get a setting by key within a scope."""
    if not can_read_scope(current_user, scope):
        raise forbidden("Only administrators can view system settings")

    owner_id = resolve_owner(current_user, scope, user_id)
    return Setting.from_document(await _find_setting(db, key, scope, owner_id))


@router.put("/{key}", response_model=Setting)
async def update_setting(
    key: str,
    update: SettingUpdate,
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
    audit: AuditLogger = Depends(get_audit_logger),
) -> Setting:
    """
    Update a setting's value, description or data type.

    The scope (and owner for user settings) is taken from the body.
    """
    _check_write(current_user, update.scope)
    owner_id = resolve_owner(current_user, update.scope, update.user_id)
    doc = await _find_setting(db, key, update.scope, owner_id)

    changes: dict[str, object] = {}
    if "value" in update.model_fields_set:
        changes["value"] = update.value
    if update.description is not None:
        changes["description"] = update.description
    if update.data_type is not None:
        changes["data_type"] = update.data_type.value

    data_type = SettingDataType(changes.get("data_type", doc.get("data_type", "string")))
    _check_value(changes.get("value", doc.get("value")), data_type)

    changes["last_modified_by"] = current_user.id
    changes["last_modified_at"] = utc_now()
    await db.settings.update_one({"_id": doc["_id"]}, {"$set": changes})

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.UPDATE,
        entity_type=AuditEntityType.SETTING,
        entity_id=doc["_id"],
        details={"key": key, "scope": update.scope.value, "owner_id": owner_id},
        request=request,
    )
    logger.info("setting_updated", key=key, scope=update.scope.value, owner_id=owner_id)

    return Setting.from_document({**doc, **changes})


@router.delete("/{key}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_setting(
    key: str,
    request: Request,
    scope: SettingScope = Query(default=SettingScope.PUBLIC),
    user_id: str | None = Query(default=None, description="Owner (administrators only)"),
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
    current_user: User = Depends(get_current_active_user),
    audit: AuditLogger = Depends(get_audit_logger),
) -> None:
    """Delete a setting by key within a scope."""
    _check_write(current_user, scope)
    owner_id = resolve_owner(current_user, scope, user_id)
    doc = await _find_setting(db, key, scope, owner_id)

    await db.settings.delete_one({"_id": doc["_id"]})

    await audit.record(
        user_id=current_user.id,
        action=AuditAction.DELETE,
        entity_type=AuditEntityType.SETTING,
        entity_id=doc["_id"],
        details={"key": key, "scope": scope.value, "owner_id": owner_id},
        request=request,
    )
    logger.info("setting_deleted", key=key, scope=scope.value, owner_id=owner_id)
