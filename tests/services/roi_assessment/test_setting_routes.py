"""
Setting Routes Tests
====================

Tests for scoped settings over HTTP.

Version: 0.1.0
"""

from typing import Any

from fastapi import status
from httpx import AsyncClient


async def _create(client: AsyncClient, headers: dict[str, str], **payload: Any) -> Any:
    return await client.post("/api/v1/settings", json=payload, headers=headers)


class TestCreateSetting:
    """Tests for creating settings."""

    async def test_admin_creates_public_setting(
        self, client: AsyncClient, admin_headers: dict[str, str], admin_user: dict[str, Any]
    ) -> None:
        response = await _create(
            client,
            admin_headers,
            key="currency",
            value="GBP",
            scope="public",
            description="Reporting currency",
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["user_id"] is None
        assert data["created_by"] == admin_user["_id"]

    async def test_user_cannot_create_public(
        self, client: AsyncClient, user_headers: dict[str, str]
    ) -> None:
        response = await _create(client, user_headers, key="currency", value="GBP", scope="public")

        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_user_setting_owned_by_caller(
        self,
        client: AsyncClient,
        user_headers: dict[str, str],
        regular_user: dict[str, Any],
        other_user: dict[str, Any],
    ) -> None:
        response = await _create(
            client,
            user_headers,
            key="theme",
            value="dark",
            scope="user",
            user_id=other_user["_id"],
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["user_id"] == regular_user["_id"]

    async def test_same_key_per_user(
        self,
        client: AsyncClient,
        user_headers: dict[str, str],
        other_headers: dict[str, str],
    ) -> None:
        first = await _create(client, user_headers, key="theme", value="dark", scope="user")
        second = await _create(client, other_headers, key="theme", value="light", scope="user")
        duplicate = await _create(client, user_headers, key="theme", value="light", scope="user")

        assert first.status_code == status.HTTP_201_CREATED
        assert second.status_code == status.HTTP_201_CREATED
        assert duplicate.status_code == status.HTTP_409_CONFLICT

    async def test_value_required(self, client: AsyncClient, user_headers: dict[str, str]) -> None:
        response = await _create(client, user_headers, key="theme", value=None, scope="user")

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_value_must_match_type(
        self, client: AsyncClient, user_headers: dict[str, str]
    ) -> None:
        response = await _create(
            client, user_headers, key="page_size", value="twenty", scope="user", data_type="number"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "number" in response.json()["error"]


class TestReadSettings:
    """Tests for reading and listing settings."""

    async def test_list_scoped_for_user(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        user_headers: dict[str, str],
        other_headers: dict[str, str],
    ) -> None:
        await _create(client, admin_headers, key="currency", value="GBP", scope="public")
        await _create(client, admin_headers, key="smtp_host", value="mail", scope="system")
        await _create(client, user_headers, key="theme", value="dark", scope="user")
        await _create(client, other_headers, key="theme", value="light", scope="user")

        response = await client.get("/api/v1/settings", headers=user_headers)

        assert response.status_code == status.HTTP_200_OK
        pairs = sorted((s["key"], s["value"]) for s in response.json())
        assert pairs == [("currency", "GBP"), ("theme", "dark")]

    async def test_admin_lists_everything(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        user_headers: dict[str, str],
    ) -> None:
        await _create(client, admin_headers, key="smtp_host", value="mail", scope="system")
        await _create(client, user_headers, key="theme", value="dark", scope="user")

        response = await client.get("/api/v1/settings", headers=admin_headers)

        assert len(response.json()) == 2

    async def test_system_scope_hidden_from_users(
        self, client: AsyncClient, user_headers: dict[str, str]
    ) -> None:
        listed = await client.get("/api/v1/settings", params={"scope": "system"}, headers=user_headers)
        fetched = await client.get(
            "/api/v1/settings/smtp_host", params={"scope": "system"}, headers=user_headers
        )

        assert listed.status_code == status.HTTP_403_FORBIDDEN
        assert fetched.status_code == status.HTTP_403_FORBIDDEN

    async def test_get_own_user_setting(
        self,
        client: AsyncClient,
        user_headers: dict[str, str],
        other_headers: dict[str, str],
    ) -> None:
        await _create(client, user_headers, key="theme", value="dark", scope="user")

        own = await client.get("/api/v1/settings/theme", params={"scope": "user"}, headers=user_headers)
        other = await client.get(
            "/api/v1/settings/theme", params={"scope": "user"}, headers=other_headers
        )

        assert own.json()["value"] == "dark"
        assert other.status_code == status.HTTP_404_NOT_FOUND


class TestWriteSettings:
    """Tests for updating and deleting settings."""

    async def test_update_value(self, client: AsyncClient, user_headers: dict[str, str]) -> None:
        await _create(client, user_headers, key="theme", value="dark", scope="user")

        response = await client.put(
            "/api/v1/settings/theme",
            json={"value": "light", "scope": "user"},
            headers=user_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["value"] == "light"

    async def test_update_checks_type(
        self, client: AsyncClient, admin_headers: dict[str, str]
    ) -> None:
        await _create(
            client, admin_headers, key="page_size", value=20, scope="public", data_type="number"
        )

        response = await client.put(
            "/api/v1/settings/page_size",
            json={"value": "twenty", "scope": "public"},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_update_missing(self, client: AsyncClient, user_headers: dict[str, str]) -> None:
        response = await client.put(
            "/api/v1/settings/theme",
            json={"value": "light", "scope": "user"},
            headers=user_headers,
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_delete_user_setting(
        self, client: AsyncClient, user_headers: dict[str, str], db: Any
    ) -> None:
        await _create(client, user_headers, key="theme", value="dark", scope="user")

        response = await client.delete(
            "/api/v1/settings/theme", params={"scope": "user"}, headers=user_headers
        )

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert await db.settings.count_documents({}) == 0

    async def test_user_cannot_delete_public(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        user_headers: dict[str, str],
    ) -> None:
        await _create(client, admin_headers, key="currency", value="GBP", scope="public")

        response = await client.delete("/api/v1/settings/currency", headers=user_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN
