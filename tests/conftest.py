"""
Test Configuration
==================

Pytest fixtures for WMS ROI tests.

Route tests run the FastAPI app in-process against an in-memory MongoDB
(mongomock-motor); the application lifespan is not started.
"""

import os
from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

# Set test environment
os.environ["ENVIRONMENT"] = "testing"
os.environ["BCRYPT_ROUNDS"] = "4"

TEST_PASSWORD = "password123"


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for async tests."""
    return "asyncio"


@pytest.fixture
def db() -> Any:
    """Fresh in-memory database per test."""
    client = AsyncMongoMockClient(tz_aware=True)
    return client["wms_roi_test"]


@pytest_asyncio.fixture
async def client(db: Any) -> AsyncGenerator[AsyncClient, None]:
    """Create test client for the ROI Assessment Service."""
    from services.roi_assessment.main import app
    from shared.database import get_mongodb

    async def override_mongodb() -> Any:
        return db

    app.dependency_overrides[get_mongodb] = override_mongodb

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()


# =============================================================================
# Users
# =============================================================================


async def _insert_user(db: Any, username: str, role: str, **extra: Any) -> dict[str, Any]:
    from shared.auth import hash_password
    from shared.database import new_id
    from shared.models.common import utc_now

    now = utc_now()
    doc = {
        "_id": new_id(),
        "username": username,
        "email": f"{username}@example.com",
        "first_name": None,
        "last_name": None,
        "password_hash": hash_password(TEST_PASSWORD),
        "role": role,
        "assigned_companies": [],
        "is_active": True,
        "last_login": None,
        "created_at": now,
        "updated_at": now,
        **extra,
    }
    await db.users.insert_one(doc)
    return doc


def _headers(user_doc: dict[str, Any]) -> dict[str, str]:
    from shared.auth import create_access_token, user_claims

    token = create_access_token(user_claims(user_doc))
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def admin_user(db: Any) -> dict[str, Any]:
    return await _insert_user(db, "admin", "admin")


@pytest_asyncio.fixture
async def regular_user(db: Any) -> dict[str, Any]:
    return await _insert_user(db, "analyst", "user")


@pytest_asyncio.fixture
async def other_user(db: Any) -> dict[str, Any]:
    return await _insert_user(db, "outsider", "user")


@pytest_asyncio.fixture
async def viewer_user(db: Any) -> dict[str, Any]:
    return await _insert_user(db, "viewer", "viewer")


@pytest.fixture
def admin_headers(admin_user: dict[str, Any]) -> dict[str, str]:
    return _headers(admin_user)


@pytest.fixture
def user_headers(regular_user: dict[str, Any]) -> dict[str, str]:
    return _headers(regular_user)


@pytest.fixture
def other_headers(other_user: dict[str, Any]) -> dict[str, str]:
    return _headers(other_user)


@pytest.fixture
def viewer_headers(viewer_user: dict[str, Any]) -> dict[str, str]:
    return _headers(viewer_user)


# =============================================================================
# Sample Data
# =============================================================================


@pytest.fixture
def sample_company_data() -> dict[str, Any]:
    """Sample company payload."""
    return {
        "name": "Acme Distribution",
        "industry": "Wholesale",
        "size": "large",
        "annual_revenue": 100_000_000,
        "contact_name": "Jane Smith",
        "contact_email": "Jane.Smith@Acme-Distribution.com",
        "address": {"city": "Leeds", "country": "UK"},
    }


@pytest.fixture
def sample_roi_inputs() -> dict[str, Any]:
    """Figures for a mid-size manufacturer with its own warehouse."""
    return {
        "annual_revenue": 100_000_000,
        "operating_margin": 4.5,
        "mfg_managers": 15,
        "mfg_manager_cost": 62_500,
        "shop_floor_ftes": 420,
        "shop_floor_cost": 30_000,
        "annual_waste_cost": 500_000,
        "warehouse_managers": 10,
        "warehouse_manager_cost": 90_000,
        "warehouse_employees": 400,
        "warehouse_employee_cost": 30_000,
        "annual_logistics_cost": 2_000_000,
    }


@pytest_asyncio.fixture
async def company(
    client: AsyncClient,
    admin_headers: dict[str, str],
    sample_company_data: dict[str, Any],
    db: Any,
    regular_user: dict[str, Any],
) -> dict[str, Any]:
    """Company created by the admin and assigned to the regular user."""
    response = await client.post(
        "/api/v1/companies", json=sample_company_data, headers=admin_headers
    )
    assert response.status_code == 201
    data = response.json()
    await db.users.update_one(
        {"_id": regular_user["_id"]},
        {"$set": {"assigned_companies": [data["id"]]}},
    )
    return data


@pytest_asyncio.fixture
async def assessment(
    client: AsyncClient,
    user_headers: dict[str, str],
    company: dict[str, Any],
) -> dict[str, Any]:
    """Draft assessment owned by the regular user."""
    response = await client.post(
        "/api/v1/assessments",
        json={
            "name": "Leeds DC assessment",
            "company_id": company["id"],
            "warehouse_name": "Leeds DC",
        },
        headers=user_headers,
    )
    assert response.status_code == 201
    return response.json()
