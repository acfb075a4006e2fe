"""
Report Versioning Service
=========================

Snapshots of report sections, restore backups, and section-level
comparison between two report states.

Sections are matched by ``section_id``. A section present on both sides is
modified when its title, content, data or metadata differ; ``data`` and
``metadata`` are diffed key by key.

Version: 0.1.0
"""

import copy
from datetime import datetime
from typing import Any

from shared.database import new_id
from shared.logging import get_logger
from shared.models.common import utc_now


logger = get_logger(__name__)

CHANGE_ADDED = "added"
CHANGE_REMOVED = "removed"
CHANGE_MODIFIED = "modified"


def snapshot_sections(sections: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Deep copy so later edits to the report never alter a saved version."""
    return copy.deepcopy(list(sections or []))


def build_version(
    name: str,
    sections: list[dict[str, Any]],
    created_by: str,
    description: str | None = None,
    is_auto_backup: bool = False,
    created_at: datetime | None = None,
) -> dict[str, Any]:
    """Create a version entry for a report's ``versions`` array."""
    return {
        "id": new_id(),
        "name": name.strip(),
        "description": description,
        "sections": snapshot_sections(sections),
        "created_by": created_by,
        "created_at": created_at or utc_now(),
        "is_auto_backup": is_auto_backup,
    }


def backup_name(version_name: str) -> str:
    return f"Backup before restoring {version_name}"


def find_version(report: dict[str, Any], version_id: str) -> dict[str, Any] | None:
    for version in report.get("versions", []):
        if version.get("id") == version_id:
            return version
    return None


def diff_mapping(
    before: dict[str, Any] | None,
    after: dict[str, Any] | None,
) -> list[dict[str, Any]]:
    """
    Key-level differences between two flat mappings.

    Returns:
        One entry per changed key with ``key``, ``change_type``, ``from`` and ``to``
    """
    before = before or {}
    after = after or {}
    changes: list[dict[str, Any]] = []

    for key in sorted(set(before) | set(after)):
        if key not in before:
            changes.append(
                {"key": key, "change_type": CHANGE_ADDED, "from": None, "to": after[key]}
            )
        elif key not in after:
            changes.append(
                {"key": key, "change_type": CHANGE_REMOVED, "from": before[key], "to": None}
            )
        elif before[key] != after[key]:
            changes.append(
                {
                    "key": key,
                    "change_type": CHANGE_MODIFIED,
                    "from": before[key],
                    "to": after[key],
                }
            )
    return changes


def diff_section(before: dict[str, Any], after: dict[str, Any]) -> dict[str, Any] | None:
    """Changes between two versions of one section, or None if identical."""
    changes: dict[str, Any] = {
        "title": None,
        "content": None,
        "data": diff_mapping(before.get("data"), after.get("data")),
        "metadata": diff_mapping(before.get("metadata"), after.get("metadata")),
    }
    if before.get("title") != after.get("title"):
        changes["title"] = {"from": before.get("title"), "to": after.get("title")}
    if before.get("content") != after.get("content"):
        changes["content"] = {"from": before.get("content"), "to": after.get("content")}

    if any(changes.values()):
        return changes
    return None


def compare_sections(
    base: list[dict[str, Any]],
    target: list[dict[str, Any]],
) -> dict[str, Any]:
    """
    Compare two lists of sections.

    Args:
        base: Sections of the older/left side
        target: Sections of the newer/right side

    Returns:
        dict with ``added``, ``removed`` and ``modified`` sections and a ``summary``
    """
    base_by_id = {s["section_id"]: s for s in base}
    target_by_id = {s["section_id"]: s for s in target}

    added = [s for sid, s in target_by_id.items() if sid not in base_by_id]
    removed = [s for sid, s in base_by_id.items() if sid not in target_by_id]

    modified = []
    unchanged = 0
    for sid, section in target_by_id.items():
        if sid not in base_by_id:
            continue
        changes = diff_section(base_by_id[sid], section)
        if changes is None:
            unchanged += 1
        else:
            modified.append(
                {"section_id": sid, "title": section.get("title", ""), "changes": changes}
            )

    return {
        "added": added,
        "removed": removed,
        "modified": modified,
        "summary": {
            "added": len(added),
            "removed": len(removed),
            "modified": len(modified),
            "unchanged": unchanged,
        },
    }
