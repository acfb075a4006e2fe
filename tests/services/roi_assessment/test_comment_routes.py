"""
Comment Routes Tests
====================

Tests for assessment discussion threads.

Version: 0.1.0
"""

from typing import Any

import pytest_asyncio
from fastapi import status
from httpx import AsyncClient


@pytest_asyncio.fixture
async def comment(
    client: AsyncClient,
    assessment: dict[str, Any],
    user_headers: dict[str, str],
) -> dict[str, Any]:
    response = await client.post(
        f"/api/v1/assessments/{assessment['id']}/comments",
        json={"content": "  Please review the pick rates @admin  ", "section": "roi"},
        headers=user_headers,
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


class TestComments:
    """Tests for comment endpoints."""

    async def test_create_strips_and_extracts_mentions(self, comment: dict[str, Any]) -> None:
        assert comment["content"] == "Please review the pick rates @admin"
        assert comment["mentions"] == ["admin"]
        assert comment["section"] == "roi"

    async def test_blank_content_rejected(
        self,
        client: AsyncClient,
        assessment: dict[str, Any],
        user_headers: dict[str, str],
    ) -> None:
        response = await client.post(
            f"/api/v1/assessments/{assessment['id']}/comments",
            json={"content": "   "},
            headers=user_headers,
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_list_paginated(
        self,
        client: AsyncClient,
        assessment: dict[str, Any],
        user_headers: dict[str, str],
        comment: dict[str, Any],
    ) -> None:
        await client.post(
            f"/api/v1/assessments/{assessment['id']}/comments",
            json={"content": "second"},
            headers=user_headers,
        )

        response = await client.get(
            f"/api/v1/assessments/{assessment['id']}/comments",
            params={"sort_order": "asc", "page_size": 1},
            headers=user_headers,
        )

        data = response.json()
        assert data["total"] == 2
        assert data["pages"] == 2
        assert len(data["items"]) == 1

    async def test_list_without_access(
        self,
        client: AsyncClient,
        assessment: dict[str, Any],
        other_headers: dict[str, str],
    ) -> None:
        response = await client.get(
            f"/api/v1/assessments/{assessment['id']}/comments", headers=other_headers
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_edit_updates_mentions(
        self,
        client: AsyncClient,
        comment: dict[str, Any],
        user_headers: dict[str, str],
        db: Any,
    ) -> None:
        response = await client.put(
            f"/api/v1/comments/{comment['id']}",
            json={"content": "@admin and @outsider please check"},
            headers=user_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["mentions"] == ["admin", "outsider"]
        entry = await db.audit_logs.find_one({"entity_id": comment["id"], "action": "update"})
        assert entry["details"]["added_mentions"] == ["outsider"]

    async def test_null_content_is_not_stored(
        self,
        client: AsyncClient,
        comment: dict[str, Any],
        user_headers: dict[str, str],
        db: Any,
    ) -> None:
        response = await client.put(
            f"/api/v1/comments/{comment['id']}",
            json={"content": None, "section": None},
            headers=user_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        stored = await db.comments.find_one({"_id": comment["id"]})
        assert stored["content"] == comment["content"]
        assert stored["section"] == "roi"

        listed = await client.get(
            f"/api/v1/assessments/{comment['assessment_id']}/comments", headers=user_headers
        )
        assert listed.status_code == status.HTTP_200_OK

    async def test_only_author_or_admin_edits(
        self,
        client: AsyncClient,
        comment: dict[str, Any],
        other_headers: dict[str, str],
        admin_headers: dict[str, str],
    ) -> None:
        denied = await client.put(
            f"/api/v1/comments/{comment['id']}",
            json={"content": "hijack"},
            headers=other_headers,
        )
        allowed = await client.delete(f"/api/v1/comments/{comment['id']}", headers=admin_headers)

        assert denied.status_code == status.HTTP_403_FORBIDDEN
        assert allowed.status_code == status.HTTP_204_NO_CONTENT
