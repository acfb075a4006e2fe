"""
Auth and User Routes Tests
==========================

Tests for login, token refresh, profile and user administration endpoints.

Version: 0.1.0
"""

from typing import Any

from fastapi import status
from httpx import AsyncClient

TEST_PASSWORD = "password123"


# =============================================================================
# Login
# =============================================================================


class TestLogin:
    """Tests for POST /auth/login."""

    async def test_login_with_username(
        self, client: AsyncClient, regular_user: dict[str, Any], db: Any
    ) -> None:
        response = await client.post(
            "/api/v1/auth/login",
            json={"username": "analyst", "password": TEST_PASSWORD},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["tokens"]["token_type"] == "bearer"
        assert data["user"]["username"] == "analyst"
        assert "password_hash" not in data["user"]

        stored = await db.users.find_one({"_id": regular_user["_id"]})
        assert stored["last_login"] is not None

    async def test_login_with_email(self, client: AsyncClient, regular_user: dict[str, Any]) -> None:
        response = await client.post(
            "/api/v1/auth/login",
            json={"username": "ANALYST@example.com", "password": TEST_PASSWORD},
        )

        assert response.status_code == status.HTTP_200_OK

    async def test_wrong_password(self, client: AsyncClient, regular_user: dict[str, Any]) -> None:
        response = await client.post(
            "/api/v1/auth/login",
            json={"username": "analyst", "password": "wrong-password"},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["success"] is False

    async def test_disabled_account(
        self, client: AsyncClient, regular_user: dict[str, Any], db: Any
    ) -> None:
        await db.users.update_one({"_id": regular_user["_id"]}, {"$set": {"is_active": False}})

        response = await client.post(
            "/api/v1/auth/login",
            json={"username": "analyst", "password": TEST_PASSWORD},
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_login_is_audited(
        self, client: AsyncClient, regular_user: dict[str, Any], db: Any
    ) -> None:
        await client.post(
            "/api/v1/auth/login",
            json={"username": "analyst", "password": TEST_PASSWORD},
            headers={"x-forwarded-for": "203.0.113.5"},
        )

        entry = await db.audit_logs.find_one({"action": "login"})
        assert entry["user_id"] == regular_user["_id"]
        assert entry["ip_address"] == "203.0.113.5"


class TestTokens:
    """Tests for refresh and protected access."""

    async def test_refresh(self, client: AsyncClient, regular_user: dict[str, Any]) -> None:
        login = await client.post(
            "/api/v1/auth/login",
            json={"username": "analyst", "password": TEST_PASSWORD},
        )
        refresh_token = login.json()["tokens"]["refresh_token"]

        response = await client.post(
            "/api/v1/auth/refresh", json={"refresh_token": refresh_token}
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["access_token"]

    async def test_refresh_rejects_access_token(
        self, client: AsyncClient, user_headers: dict[str, str]
    ) -> None:
        access_token = user_headers["Authorization"].removeprefix("Bearer ")

        response = await client.post(
            "/api/v1/auth/refresh", json={"refresh_token": access_token}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_missing_token(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/auth/profile")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.headers["www-authenticate"] == "Bearer"


# =============================================================================
# Profile
# =============================================================================


class TestProfile:
    """Tests for GET/PUT /auth/profile."""

    async def test_get_profile(self, client: AsyncClient, user_headers: dict[str, str]) -> None:
        response = await client.get("/api/v1/auth/profile", headers=user_headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["role"] == "user"

    async def test_change_password_requires_current(
        self, client: AsyncClient, user_headers: dict[str, str]
    ) -> None:
        response = await client.put(
            "/api/v1/auth/profile",
            json={"current_password": "not-it", "new_password": "new-password-1"},
            headers=user_headers,
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_change_password(
        self, client: AsyncClient, user_headers: dict[str, str]
    ) -> None:
        response = await client.put(
            "/api/v1/auth/profile",
            json={"current_password": TEST_PASSWORD, "new_password": "new-password-1"},
            headers=user_headers,
        )
        assert response.status_code == status.HTTP_200_OK

        login = await client.post(
            "/api/v1/auth/login",
            json={"username": "analyst", "password": "new-password-1"},
        )
        assert login.status_code == status.HTTP_200_OK

    async def test_email_clash(
        self,
        client: AsyncClient,
        user_headers: dict[str, str],
        other_user: dict[str, Any],
    ) -> None:
        response = await client.put(
            "/api/v1/auth/profile",
            json={"email": other_user["email"]},
            headers=user_headers,
        )

        assert response.status_code == status.HTTP_409_CONFLICT

    async def test_null_email_is_ignored(
        self,
        client: AsyncClient,
        user_headers: dict[str, str],
        regular_user: dict[str, Any],
    ) -> None:
        response = await client.put(
            "/api/v1/auth/profile",
            json={"email": None, "first_name": "Ana"},
            headers=user_headers,
        )
        assert response.status_code == status.HTTP_200_OK

        profile = await client.get("/api/v1/auth/profile", headers=user_headers)
        assert profile.status_code == status.HTTP_200_OK
        assert profile.json()["email"] == regular_user["email"]
        assert profile.json()["first_name"] == "Ana"


# =============================================================================
# User Administration
# =============================================================================


class TestUserAdministration:
    """Tests for /users (administrators only)."""

    async def test_non_admin_refused(
        self, client: AsyncClient, user_headers: dict[str, str]
    ) -> None:
        response = await client.get("/api/v1/users", headers=user_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_create_user(self, client: AsyncClient, admin_headers: dict[str, str]) -> None:
        response = await client.post(
            "/api/v1/users",
            json={
                "username": "new.analyst",
                "email": "New.Analyst@example.com",
                "password": "long-enough-1",
                "role": "viewer",
            },
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["email"] == "new.analyst@example.com"
        assert data["role"] == "viewer"

    async def test_duplicate_username(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        regular_user: dict[str, Any],
    ) -> None:
        response = await client.post(
            "/api/v1/users",
            json={"username": "analyst", "email": "x@example.com", "password": "long-enough-1"},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_409_CONFLICT

    async def test_short_password_is_validation_error(
        self, client: AsyncClient, admin_headers: dict[str, str]
    ) -> None:
        response = await client.post(
            "/api/v1/users",
            json={"username": "shorty", "email": "s@example.com", "password": "short"},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["details"][0]["field"] == "body.password"

    async def test_null_role_is_ignored(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        regular_user: dict[str, Any],
    ) -> None:
        response = await client.put(
            f"/api/v1/users/{regular_user['_id']}",
            json={"role": None, "assigned_companies": None, "is_active": True},
            headers=admin_headers,
        )
        assert response.status_code == status.HTTP_200_OK

        fetched = await client.get(f"/api/v1/users/{regular_user['_id']}", headers=admin_headers)
        assert fetched.status_code == status.HTTP_200_OK
        assert fetched.json()["role"] == "user"
        assert fetched.json()["assigned_companies"] == []
