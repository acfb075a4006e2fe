"""
Report Versioning Tests
=======================

Tests for section snapshots and section-level comparison.

Version: 0.1.0
"""

from typing import Any

import pytest

from services.roi_assessment.services.versioning import (
    backup_name,
    build_version,
    compare_sections,
    diff_mapping,
    find_version,
    snapshot_sections,
)


@pytest.fixture
def sections() -> list[dict[str, Any]]:
    return [
        {
            "section_id": "summary",
            "title": "Executive Summary",
            "order": 0,
            "content": {"type": "text", "text": "Savings look strong."},
            "data": {"savings": 100},
            "metadata": {"author": "a"},
        },
        {
            "section_id": "roi",
            "title": "ROI",
            "order": 1,
            "content": None,
            "data": {},
            "metadata": {},
        },
    ]


class TestSnapshots:
    """Tests for version snapshots."""

    def test_snapshot_is_deep_copy(self, sections: list[dict[str, Any]]) -> None:
        snapshot = snapshot_sections(sections)
        sections[0]["data"]["savings"] = 999

        assert snapshot[0]["data"]["savings"] == 100

    def test_build_version(self, sections: list[dict[str, Any]]) -> None:
        version = build_version("  Draft 1 ", sections, "u1", description="first cut")

        assert version["name"] == "Draft 1"
        assert version["created_by"] == "u1"
        assert version["is_auto_backup"] is False
        assert version["sections"] == sections
        assert version["sections"] is not sections

    def test_find_version(self, sections: list[dict[str, Any]]) -> None:
        version = build_version("v1", sections, "u1")
        report = {"versions": [version]}

        assert find_version(report, version["id"]) is version
        assert find_version(report, "missing") is None

    def test_backup_name(self) -> None:
        assert backup_name("Draft 1") == "Backup before restoring Draft 1"


class TestDiffMapping:
    """Tests for key-level map differences."""

    def test_added_removed_modified(self) -> None:
        changes = diff_mapping({"a": 1, "b": 2, "c": 3}, {"a": 1, "b": 5, "d": 4})

        assert changes == [
            {"key": "b", "change_type": "modified", "from": 2, "to": 5},
            {"key": "c", "change_type": "removed", "from": 3, "to": None},
            {"key": "d", "change_type": "added", "from": None, "to": 4},
        ]

    def test_missing_maps_are_empty(self) -> None:
        assert diff_mapping(None, None) == []


class TestCompareSections:
    """Tests for section-level comparison."""

    def test_identical_sections(self, sections: list[dict[str, Any]]) -> None:
        result = compare_sections(sections, snapshot_sections(sections))

        assert result["summary"] == {"added": 0, "removed": 0, "modified": 0, "unchanged": 2}

    def test_added_and_removed(self, sections: list[dict[str, Any]]) -> None:
        target = [sections[0], {"section_id": "next", "title": "Next Steps"}]

        result = compare_sections(sections, target)

        assert [s["section_id"] for s in result["added"]] == ["next"]
        assert [s["section_id"] for s in result["removed"]] == ["roi"]
        assert result["summary"]["unchanged"] == 1

    def test_modified_section_changes(self, sections: list[dict[str, Any]]) -> None:
        target = snapshot_sections(sections)
        target[0]["title"] = "Summary"
        target[0]["data"] = {"savings": 120, "payback": 4.2}

        result = compare_sections(sections, target)

        assert result["summary"]["modified"] == 1
        modified = result["modified"][0]
        assert modified["section_id"] == "summary"
        assert modified["changes"]["title"] == {"from": "Executive Summary", "to": "Summary"}
        assert modified["changes"]["content"] is None
        assert [c["key"] for c in modified["changes"]["data"]] == ["payback", "savings"]
        assert modified["changes"]["metadata"] == []
