"""
Report Routes Tests
===================

Tests for report CRUD, cloning, visibility, locking, sharing and tags.

Version: 0.1.0
"""

from typing import Any

import pytest_asyncio
from bson import ObjectId
from fastapi import status
from httpx import AsyncClient


@pytest_asyncio.fixture
async def report(
    client: AsyncClient,
    user_headers: dict[str, str],
    assessment: dict[str, Any],
) -> dict[str, Any]:
    """Draft report owned by the regular user."""
    response = await client.post(
        "/api/v1/reports",
        json={
            "name": "Leeds DC ROI report",
            "assessment_id": assessment["id"],
            "tags": [" warehouse ", "roi", "warehouse"],
            "sections": [
                {
                    "section_id": "summary",
                    "title": "Executive summary",
                    "order": 0,
                    "content": {"type": "text", "text": "Savings outweigh cost."},
                }
            ],
        },
        headers=user_headers,
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


# =============================================================================
# CRUD
# =============================================================================


class TestReportCrud:
    """Tests for creating, reading, updating and deleting reports."""

    async def test_create_report(self, report: dict[str, Any], regular_user: dict[str, Any]) -> None:
        assert report["status"] == "draft"
        assert report["generated_by"] == regular_user["_id"]
        assert report["tags"] == ["warehouse", "roi"]
        assert report["locked"] is False
        assert report["versions"] == []
        assert report["shared_with"] == []

    async def test_create_does_not_complete_early_assessment(
        self,
        client: AsyncClient,
        user_headers: dict[str, str],
        assessment: dict[str, Any],
        report: dict[str, Any],
    ) -> None:
        response = await client.get(f"/api/v1/assessments/{assessment['id']}", headers=user_headers)

        assert response.json()["status"] == "draft"

    async def test_create_viewer_forbidden(
        self,
        client: AsyncClient,
        viewer_headers: dict[str, str],
        assessment: dict[str, Any],
    ) -> None:
        response = await client.post(
            "/api/v1/reports",
            json={"name": "Viewer report", "assessment_id": assessment["id"]},
            headers=viewer_headers,
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_create_unknown_assessment(
        self, client: AsyncClient, user_headers: dict[str, str]
    ) -> None:
        response = await client.post(
            "/api/v1/reports",
            json={"name": "Orphan", "assessment_id": str(ObjectId())},
            headers=user_headers,
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_get_malformed_id(self, client: AsyncClient, user_headers: dict[str, str]) -> None:
        response = await client.get("/api/v1/reports/not-an-id", headers=user_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_update_report(
        self,
        client: AsyncClient,
        user_headers: dict[str, str],
        report: dict[str, Any],
        regular_user: dict[str, Any],
    ) -> None:
        response = await client.put(
            f"/api/v1/reports/{report['id']}",
            json={"name": "Renamed", "status": "final", "tags": ["q3", " q3 "]},
            headers=user_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["name"] == "Renamed"
        assert data["status"] == "final"
        assert data["tags"] == ["q3"]
        assert data["last_modified_by"] == regular_user["_id"]

    async def test_null_sections_leave_report_readable(
        self,
        client: AsyncClient,
        user_headers: dict[str, str],
        report: dict[str, Any],
    ) -> None:
        response = await client.put(
            f"/api/v1/reports/{report['id']}",
            json={"sections": None, "name": None, "tags": None},
            headers=user_headers,
        )
        assert response.status_code == status.HTTP_200_OK

        fetched = await client.get(f"/api/v1/reports/{report['id']}", headers=user_headers)
        assert fetched.status_code == status.HTTP_200_OK
        data = fetched.json()
        assert data["name"] == report["name"]
        assert [s["section_id"] for s in data["sections"]] == ["summary"]
        assert data["tags"] == report["tags"]

    async def test_update_ignores_ownership_fields(
        self,
        client: AsyncClient,
        user_headers: dict[str, str],
        report: dict[str, Any],
    ) -> None:
        response = await client.put(
            f"/api/v1/reports/{report['id']}",
            json={"generated_by": "someone-else", "versions": []},
            headers=user_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["generated_by"] == report["generated_by"]

    async def test_update_by_non_owner_forbidden(
        self,
        client: AsyncClient,
        other_headers: dict[str, str],
        report: dict[str, Any],
    ) -> None:
        response = await client.put(
            f"/api/v1/reports/{report['id']}",
            json={"name": "Hijacked"},
            headers=other_headers,
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_delete_report(
        self,
        client: AsyncClient,
        user_headers: dict[str, str],
        report: dict[str, Any],
    ) -> None:
        response = await client.delete(f"/api/v1/reports/{report['id']}", headers=user_headers)
        assert response.status_code == status.HTTP_204_NO_CONTENT

        response = await client.get(f"/api/v1/reports/{report['id']}", headers=user_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestTemplateSeeding:
    """Tests for seeding report sections from a template."""

    async def test_sections_seeded_from_template(
        self,
        client: AsyncClient,
        user_headers: dict[str, str],
        assessment: dict[str, Any],
    ) -> None:
        template = await client.post(
            "/api/v1/templates",
            json={
                "name": "Standard ROI report",
                "type": "report",
                "content": {
                    "sections": [
                        {"id": "summary", "title": "Summary"},
                        {"title": "Findings", "content": {"type": "text", "text": ""}},
                    ]
                },
            },
            headers=user_headers,
        )
        assert template.status_code == status.HTTP_201_CREATED

        response = await client.post(
            "/api/v1/reports",
            json={
                "name": "Seeded",
                "assessment_id": assessment["id"],
                "template_id": template.json()["id"],
            },
            headers=user_headers,
        )

        assert response.status_code == status.HTTP_201_CREATED
        sections = response.json()["sections"]
        assert [(s["section_id"], s["title"], s["order"]) for s in sections] == [
            ("summary", "Summary", 0),
            ("section-2", "Findings", 1),
        ]

    async def test_private_template_of_another_user(
        self,
        client: AsyncClient,
        user_headers: dict[str, str],
        other_headers: dict[str, str],
        assessment: dict[str, Any],
    ) -> None:
        template = await client.post(
            "/api/v1/templates",
            json={"name": "Private layout", "type": "report"},
            headers=other_headers,
        )

        response = await client.post(
            "/api/v1/reports",
            json={
                "name": "Borrowed",
                "assessment_id": assessment["id"],
                "template_id": template.json()["id"],
            },
            headers=user_headers,
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN


# =============================================================================
# Visibility and Sharing
# =============================================================================


class TestVisibility:
    """Tests for who can see a report."""

    async def test_outsider_cannot_read(
        self,
        client: AsyncClient,
        other_headers: dict[str, str],
        report: dict[str, Any],
    ) -> None:
        response = await client.get(f"/api/v1/reports/{report['id']}", headers=other_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_list_scoped_to_visible(
        self,
        client: AsyncClient,
        user_headers: dict[str, str],
        other_headers: dict[str, str],
        admin_headers: dict[str, str],
        report: dict[str, Any],
    ) -> None:
        own = (await client.get("/api/v1/reports", headers=user_headers)).json()
        outsider = (await client.get("/api/v1/reports", headers=other_headers)).json()
        admin = (await client.get("/api/v1/reports", headers=admin_headers)).json()

        assert own["total"] == 1
        assert outsider["total"] == 0
        assert admin["total"] == 1

    async def test_list_filters(
        self,
        client: AsyncClient,
        user_headers: dict[str, str],
        report: dict[str, Any],
    ) -> None:
        by_tag = await client.get("/api/v1/reports", params={"tag": "roi"}, headers=user_headers)
        by_status = await client.get(
            "/api/v1/reports", params={"status": "final"}, headers=user_headers
        )

        assert by_tag.json()["total"] == 1
        assert by_status.json()["total"] == 0

    async def test_public_report_visible(
        self,
        client: AsyncClient,
        user_headers: dict[str, str],
        other_headers: dict[str, str],
        report: dict[str, Any],
    ) -> None:
        await client.put(
            f"/api/v1/reports/{report['id']}", json={"is_public": True}, headers=user_headers
        )

        response = await client.get(f"/api/v1/reports/{report['id']}", headers=other_headers)

        assert response.status_code == status.HTTP_200_OK

    async def test_share_and_unshare(
        self,
        client: AsyncClient,
        user_headers: dict[str, str],
        other_headers: dict[str, str],
        other_user: dict[str, Any],
        report: dict[str, Any],
    ) -> None:
        shared = await client.post(
            f"/api/v1/reports/{report['id']}/share",
            json={"user_ids": [other_user["_id"], other_user["_id"]]},
            headers=user_headers,
        )
        assert shared.status_code == status.HTTP_200_OK
        assert shared.json()["shared_with"] == [other_user["_id"]]

        listed = (await client.get("/api/v1/reports", headers=other_headers)).json()
        assert listed["total"] == 1

        unshared = await client.delete(
            f"/api/v1/reports/{report['id']}/share/{other_user['_id']}",
            headers=user_headers,
        )
        assert unshared.json()["shared_with"] == []

        response = await client.get(f"/api/v1/reports/{report['id']}", headers=other_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_share_with_unknown_user(
        self,
        client: AsyncClient,
        user_headers: dict[str, str],
        report: dict[str, Any],
    ) -> None:
        missing = str(ObjectId())

        response = await client.post(
            f"/api/v1/reports/{report['id']}/share",
            json={"user_ids": [missing]},
            headers=user_headers,
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert missing in response.json()["error"]


# =============================================================================
# Locking
# =============================================================================


class TestLocking:
    """Tests for report lock and unlock."""

    async def test_locked_report_is_read_only(
        self,
        client: AsyncClient,
        user_headers: dict[str, str],
        report: dict[str, Any],
    ) -> None:
        locked = await client.post(f"/api/v1/reports/{report['id']}/lock", headers=user_headers)
        assert locked.json()["locked"] is True

        update = await client.put(
            f"/api/v1/reports/{report['id']}", json={"name": "Edited"}, headers=user_headers
        )
        assert update.status_code == status.HTTP_403_FORBIDDEN
        assert update.json()["error"] == "Report is locked"

        delete = await client.delete(f"/api/v1/reports/{report['id']}", headers=user_headers)
        assert delete.status_code == status.HTTP_403_FORBIDDEN

        await client.post(f"/api/v1/reports/{report['id']}/unlock", headers=user_headers)
        update = await client.put(
            f"/api/v1/reports/{report['id']}", json={"name": "Edited"}, headers=user_headers
        )
        assert update.status_code == status.HTTP_200_OK

    async def test_lock_by_non_owner_forbidden(
        self,
        client: AsyncClient,
        other_headers: dict[str, str],
        report: dict[str, Any],
    ) -> None:
        response = await client.post(f"/api/v1/reports/{report['id']}/lock", headers=other_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN


# =============================================================================
# Tags
# =============================================================================


class TestTags:
    """Tests for the report tag list."""

    async def test_create_tags_requires_admin(
        self, client: AsyncClient, user_headers: dict[str, str]
    ) -> None:
        response = await client.post(
            "/api/v1/reports/tags", json={"tags": ["logistics"]}, headers=user_headers
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_create_returns_only_new_tags(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        report: dict[str, Any],
    ) -> None:
        response = await client.post(
            "/api/v1/reports/tags",
            json={"tags": ["roi", "logistics", " logistics "]},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body["data"] == ["logistics"]
        assert body["message"] == "1 tags added"

    async def test_create_existing_tags(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        report: dict[str, Any],
    ) -> None:
        response = await client.post(
            "/api/v1/reports/tags", json={"tags": ["roi"]}, headers=admin_headers
        )

        body = response.json()
        assert body["data"] == []
        assert body["message"] == "All tags already exist"

    async def test_blank_tags_rejected(
        self, client: AsyncClient, admin_headers: dict[str, str]
    ) -> None:
        response = await client.post(
            "/api/v1/reports/tags", json={"tags": ["  "]}, headers=admin_headers
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_list_tags_union(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        other_headers: dict[str, str],
        report: dict[str, Any],
    ) -> None:
        await client.post("/api/v1/reports/tags", json={"tags": ["logistics"]}, headers=admin_headers)

        admin_tags = await client.get("/api/v1/reports/tags", headers=admin_headers)
        outsider_tags = await client.get("/api/v1/reports/tags", headers=other_headers)

        assert admin_tags.json() == ["logistics", "roi", "warehouse"]
        # Tags of reports the outsider cannot see are not listed
        assert outsider_tags.json() == ["logistics"]


# =============================================================================
# Cloning
# =============================================================================


class TestCloning:
    """Tests for POST /reports/{id}/clone."""

    async def test_clone_is_fresh_draft(
        self,
        client: AsyncClient,
        user_headers: dict[str, str],
        admin_headers: dict[str, str],
        report: dict[str, Any],
        admin_user: dict[str, Any],
        other_user: dict[str, Any],
        db: Any,
    ) -> None:
        await client.post(
            f"/api/v1/reports/{report['id']}/share",
            json={"user_ids": [other_user["_id"]]},
            headers=user_headers,
        )
        await client.post(f"/api/v1/reports/{report['id']}/lock", headers=user_headers)

        response = await client.post(
            f"/api/v1/reports/{report['id']}/clone",
            json={"name": "  Leeds DC copy  "},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_201_CREATED
        clone = response.json()
        assert clone["id"] != report["id"]
        assert clone["name"] == "Leeds DC copy"
        assert clone["generated_by"] == admin_user["_id"]
        assert clone["cloned_from"] == report["id"]
        assert clone["status"] == "draft"
        assert clone["locked"] is False
        assert clone["shared_with"] == []
        assert clone["versions"] == []
        assert clone["sections"] == report["sections"]
        assert clone["tags"] == report["tags"]
        assert clone["assessment_id"] == report["assessment_id"]

        entry = await db.audit_logs.find_one({"entity_id": clone["id"], "action": "create"})
        assert entry["details"]["cloned_from"] == report["id"]

    async def test_clone_can_keep_sharing_and_versions(
        self,
        client: AsyncClient,
        user_headers: dict[str, str],
        report: dict[str, Any],
        other_user: dict[str, Any],
    ) -> None:
        await client.post(
            f"/api/v1/reports/{report['id']}/share",
            json={"user_ids": [other_user["_id"]]},
            headers=user_headers,
        )
        await client.post(
            f"/api/v1/reports/{report['id']}/versions",
            json={"name": "v1"},
            headers=user_headers,
        )

        response = await client.post(
            f"/api/v1/reports/{report['id']}/clone",
            json={"name": "Shared copy", "include_versions": True, "share_with_same_users": True},
            headers=user_headers,
        )

        assert response.status_code == status.HTTP_201_CREATED
        clone = response.json()
        assert clone["shared_with"] == [other_user["_id"]]
        assert [v["name"] for v in clone["versions"]] == ["v1"]

    async def test_clone_leaves_source_untouched(
        self,
        client: AsyncClient,
        user_headers: dict[str, str],
        report: dict[str, Any],
    ) -> None:
        clone = (
            await client.post(
                f"/api/v1/reports/{report['id']}/clone",
                json={"name": "Working copy"},
                headers=user_headers,
            )
        ).json()
        await client.put(
            f"/api/v1/reports/{clone['id']}",
            json={"sections": []},
            headers=user_headers,
        )

        source = await client.get(f"/api/v1/reports/{report['id']}", headers=user_headers)
        assert len(source.json()["sections"]) == 1

    async def test_duplicate_name_for_owner(
        self,
        client: AsyncClient,
        user_headers: dict[str, str],
        report: dict[str, Any],
    ) -> None:
        response = await client.post(
            f"/api/v1/reports/{report['id']}/clone",
            json={"name": report["name"]},
            headers=user_headers,
        )

        assert response.status_code == status.HTTP_409_CONFLICT

    async def test_invisible_report_cannot_be_cloned(
        self,
        client: AsyncClient,
        other_headers: dict[str, str],
        report: dict[str, Any],
    ) -> None:
        response = await client.post(
            f"/api/v1/reports/{report['id']}/clone",
            json={"name": "Stolen"},
            headers=other_headers,
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_blank_name_rejected(
        self,
        client: AsyncClient,
        user_headers: dict[str, str],
        report: dict[str, Any],
    ) -> None:
        response = await client.post(
            f"/api/v1/reports/{report['id']}/clone",
            json={"name": "   "},
            headers=user_headers,
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
