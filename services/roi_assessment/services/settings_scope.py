"""
Settings Scoping
================

A setting is identified by (key, scope, user_id):

- ``system``: internal configuration, administrators only
- ``public``: readable by everyone, written by administrators
- ``user``: one value per user; administrators may act on any user's copy

Version: 0.1.0
"""

from datetime import date, datetime
from typing import Any

from shared.auth import User
from shared.models.setting import SettingDataType, SettingScope


def can_read_scope(user: User, scope: SettingScope) -> bool:
    return scope != SettingScope.SYSTEM or user.is_admin


def can_write_scope(user: User, scope: SettingScope) -> bool:
    return scope == SettingScope.USER or user.is_admin


def resolve_owner(user: User, scope: SettingScope, requested_user_id: str | None = None) -> str | None:
    """
    Owner id stored with the setting.

    Only user-scoped settings have an owner. Non-administrators always act
    on their own copy.
    """
    if scope != SettingScope.USER:
        return None
    if user.is_admin and requested_user_id:
        return requested_user_id
    return user.id


def setting_filter(key: str, scope: SettingScope, owner_id: str | None) -> dict[str, Any]:
    return {"key": key, "scope": scope.value, "user_id": owner_id}


def visible_settings_query(user: User, scope: SettingScope | None = None) -> dict[str, Any] | None:
    """
    Filter for listing settings.

    Returns:
        The Mongo filter, or None if the user may not list the requested scope
    """
    if user.is_admin:
        return {"scope": scope.value} if scope else {}

    if scope == SettingScope.SYSTEM:
        return None
    if scope == SettingScope.PUBLIC:
        return {"scope": SettingScope.PUBLIC.value}
    if scope == SettingScope.USER:
        return {"scope": SettingScope.USER.value, "user_id": user.id}
    return {
        "$or": [
            {"scope": SettingScope.PUBLIC.value},
            {"scope": SettingScope.USER.value, "user_id": user.id},
        ]
    }


def _is_iso_date(value: Any) -> bool:
    if isinstance(value, (date, datetime)):
        return True
    if not isinstance(value, str):
        return False
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return False
    return True


def value_matches_type(value: Any, data_type: SettingDataType) -> bool:
    """Check a JSON value against the declared data type."""
    if data_type == SettingDataType.STRING:
        return isinstance(value, str)
    if data_type == SettingDataType.NUMBER:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if data_type == SettingDataType.BOOLEAN:
        return isinstance(value, bool)
    if data_type == SettingDataType.OBJECT:
        return isinstance(value, dict)
    if data_type == SettingDataType.ARRAY:
        return isinstance(value, list)
    return _is_iso_date(value)
