"""
Assessment Routes Tests
=======================

Tests for assessment CRUD, visibility and the status workflow endpoints.

Version: 0.1.0
"""

from typing import Any

from fastapi import status
from httpx import AsyncClient


# =============================================================================
# CRUD
# =============================================================================


class TestAssessmentCrud:
    """Tests for /assessments CRUD."""

    async def test_create_defaults(
        self, assessment: dict[str, Any], regular_user: dict[str, Any]
    ) -> None:
        assert assessment["status"] == "draft"
        assert assessment["current_stage"] == 1
        assert assessment["total_stages"] == 5
        assert assessment["assigned_to"] == [regular_user["_id"]]
        assert assessment["status_history"][0]["status"] == "draft"

    async def test_viewer_cannot_create(
        self,
        client: AsyncClient,
        viewer_headers: dict[str, str],
        company: dict[str, Any],
    ) -> None:
        response = await client.post(
            "/api/v1/assessments",
            json={"name": "Nope", "company_id": company["id"]},
            headers=viewer_headers,
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_create_needs_company_access(
        self,
        client: AsyncClient,
        other_headers: dict[str, str],
        company: dict[str, Any],
    ) -> None:
        response = await client.post(
            "/api/v1/assessments",
            json={"name": "Nope", "company_id": company["id"]},
            headers=other_headers,
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_list_visibility(
        self,
        client: AsyncClient,
        assessment: dict[str, Any],
        user_headers: dict[str, str],
        other_headers: dict[str, str],
        admin_headers: dict[str, str],
    ) -> None:
        mine = (await client.get("/api/v1/assessments", headers=user_headers)).json()
        theirs = (await client.get("/api/v1/assessments", headers=other_headers)).json()
        everything = (await client.get("/api/v1/assessments", headers=admin_headers)).json()

        assert mine["total"] == 1
        assert theirs["total"] == 0
        assert everything["items"][0]["id"] == assessment["id"]

    async def test_get_without_access(
        self,
        client: AsyncClient,
        assessment: dict[str, Any],
        other_headers: dict[str, str],
    ) -> None:
        response = await client.get(
            f"/api/v1/assessments/{assessment['id']}", headers=other_headers
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_update(
        self,
        client: AsyncClient,
        assessment: dict[str, Any],
        user_headers: dict[str, str],
    ) -> None:
        response = await client.put(
            f"/api/v1/assessments/{assessment['id']}",
            json={"warehouse_name": "Leeds DC North", "notes": "Two shifts"},
            headers=user_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["warehouse_name"] == "Leeds DC North"
        assert response.json()["status"] == "draft"

    async def test_null_company_is_not_stored(
        self,
        client: AsyncClient,
        assessment: dict[str, Any],
        user_headers: dict[str, str],
        db: Any,
    ) -> None:
        response = await client.put(
            f"/api/v1/assessments/{assessment['id']}",
            json={"company_id": None, "name": None, "notes": "Night shift only"},
            headers=user_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["company_id"] == assessment["company_id"]
        assert response.json()["notes"] == "Night shift only"
        stored = await db.assessments.find_one({"_id": assessment["id"]})
        assert stored["company_id"] == assessment["company_id"]
        assert stored["name"] == assessment["name"]

        fetched = await client.get(f"/api/v1/assessments/{assessment['id']}", headers=user_headers)
        assert fetched.status_code == status.HTTP_200_OK

    async def test_delete_removes_comments(
        self,
        client: AsyncClient,
        assessment: dict[str, Any],
        user_headers: dict[str, str],
        db: Any,
    ) -> None:
        await client.post(
            f"/api/v1/assessments/{assessment['id']}/comments",
            json={"content": "first"},
            headers=user_headers,
        )

        response = await client.delete(
            f"/api/v1/assessments/{assessment['id']}", headers=user_headers
        )

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert await db.comments.count_documents({"assessment_id": assessment["id"]}) == 0


# =============================================================================
# Status Workflow
# =============================================================================


class TestStatusWorkflow:
    """Tests for /assessments/{id}/status."""

    async def test_status_options(
        self,
        client: AsyncClient,
        assessment: dict[str, Any],
        user_headers: dict[str, str],
    ) -> None:
        response = await client.get(
            f"/api/v1/assessments/{assessment['id']}/status", headers=user_headers
        )

        assert response.json() == {
            "status": "draft",
            "allowed_transitions": ["in_progress", "cancelled"],
            "comment_required": ["cancelled"],
        }

    async def test_valid_transition(
        self,
        client: AsyncClient,
        assessment: dict[str, Any],
        user_headers: dict[str, str],
    ) -> None:
        response = await client.put(
            f"/api/v1/assessments/{assessment['id']}/status",
            json={"status": "in_progress"},
            headers=user_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "in_progress"
        assert [h["status"] for h in data["status_history"]] == ["draft", "in_progress"]
        assert data["status_history"][-1]["previous_status"] == "draft"

    async def test_invalid_transition(
        self,
        client: AsyncClient,
        assessment: dict[str, Any],
        user_headers: dict[str, str],
    ) -> None:
        response = await client.put(
            f"/api/v1/assessments/{assessment['id']}/status",
            json={"status": "completed", "comment": "done"},
            headers=user_headers,
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "Allowed transitions" in response.json()["error"]

    async def test_cancel_requires_comment(
        self,
        client: AsyncClient,
        assessment: dict[str, Any],
        user_headers: dict[str, str],
    ) -> None:
        response = await client.put(
            f"/api/v1/assessments/{assessment['id']}/status",
            json={"status": "cancelled"},
            headers=user_headers,
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_comment_is_posted(
        self,
        client: AsyncClient,
        assessment: dict[str, Any],
        user_headers: dict[str, str],
        db: Any,
    ) -> None:
        response = await client.put(
            f"/api/v1/assessments/{assessment['id']}/status",
            json={"status": "cancelled", "comment": "Client paused the project @admin"},
            headers=user_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        comment = await db.comments.find_one({"assessment_id": assessment["id"]})
        assert comment["content"] == "Client paused the project @admin"
        assert comment["mentions"] == ["admin"]

    async def test_viewer_cannot_change_status(
        self,
        client: AsyncClient,
        assessment: dict[str, Any],
        viewer_headers: dict[str, str],
    ) -> None:
        response = await client.put(
            f"/api/v1/assessments/{assessment['id']}/status",
            json={"status": "in_progress"},
            headers=viewer_headers,
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN


# =============================================================================
# Assignments
# =============================================================================


class TestAssessmentAssignments:
    """Tests for /assessments/{id}/assignments."""

    async def test_creator_assigns_user(
        self,
        client: AsyncClient,
        assessment: dict[str, Any],
        user_headers: dict[str, str],
        other_headers: dict[str, str],
        other_user: dict[str, Any],
        db: Any,
    ) -> None:
        before = await client.get(f"/api/v1/assessments/{assessment['id']}", headers=other_headers)
        assert before.status_code == status.HTTP_403_FORBIDDEN

        response = await client.post(
            f"/api/v1/assessments/{assessment['id']}/assignments",
            json={"user_ids": [other_user["_id"]]},
            headers=user_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert [u["username"] for u in response.json()["data"]["users"]] == [
            "analyst",
            "outsider",
        ]
        after = await client.get(f"/api/v1/assessments/{assessment['id']}", headers=other_headers)
        assert after.status_code == status.HTTP_200_OK
        assert other_user["_id"] in after.json()["assigned_to"]

        entry = await db.audit_logs.find_one({"entity_id": assessment["id"], "action": "assign"})
        assert entry["details"]["user_ids"] == [other_user["_id"]]

    async def test_list_assignments(
        self,
        client: AsyncClient,
        assessment: dict[str, Any],
        user_headers: dict[str, str],
        regular_user: dict[str, Any],
    ) -> None:
        response = await client.get(
            f"/api/v1/assessments/{assessment['id']}/assignments", headers=user_headers
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["name"] == assessment["name"]
        assert [u["id"] for u in data["users"]] == [regular_user["_id"]]
        assert "password_hash" not in data["users"][0]

    async def test_only_creator_or_admin_assigns(
        self,
        client: AsyncClient,
        assessment: dict[str, Any],
        admin_headers: dict[str, str],
        other_headers: dict[str, str],
        other_user: dict[str, Any],
        viewer_user: dict[str, Any],
        db: Any,
    ) -> None:
        await db.assessments.update_one(
            {"_id": assessment["id"]}, {"$push": {"assigned_to": other_user["_id"]}}
        )

        denied = await client.post(
            f"/api/v1/assessments/{assessment['id']}/assignments",
            json={"user_ids": [viewer_user["_id"]]},
            headers=other_headers,
        )
        allowed = await client.post(
            f"/api/v1/assessments/{assessment['id']}/assignments",
            json={"user_ids": [viewer_user["_id"]]},
            headers=admin_headers,
        )

        assert denied.status_code == status.HTTP_403_FORBIDDEN
        assert allowed.status_code == status.HTTP_200_OK

    async def test_unassign(
        self,
        client: AsyncClient,
        assessment: dict[str, Any],
        user_headers: dict[str, str],
        regular_user: dict[str, Any],
        db: Any,
    ) -> None:
        response = await client.delete(
            f"/api/v1/assessments/{assessment['id']}/assignments/{regular_user['_id']}",
            headers=user_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["users"] == []
        stored = await db.assessments.find_one({"_id": assessment["id"]})
        assert stored["assigned_to"] == []
        assert await db.audit_logs.count_documents({"action": "unassign"}) == 1
