"""
MongoDB Client
==============

Async MongoDB client using Motor. One client is cached per process and
shared by every request.

Version: 0.1.0
"""

import time
from typing import Any

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, IndexModel
from pymongo.errors import PyMongoError

from shared.config import settings
from shared.logging import get_logger

logger = get_logger(__name__)


COLLECTION_INDEXES: dict[str, list[IndexModel]] = {
    "users": [
        IndexModel("username", unique=True),
        IndexModel("email", unique=True),
    ],
    "companies": [
        IndexModel("name", unique=True),
        IndexModel("industry"),
    ],
    "assessments": [
        IndexModel("company_id"),
        IndexModel("created_by"),
        IndexModel("assigned_to"),
        IndexModel("status"),
        IndexModel([("created_at", DESCENDING)]),
    ],
    "comments": [
        IndexModel([("assessment_id", ASCENDING), ("created_at", DESCENDING)]),
        IndexModel("author_id"),
    ],
    "questionnaires": [
        IndexModel([("version", ASCENDING), ("is_active", ASCENDING)]),
    ],
    "questionnaire_responses": [
        IndexModel([("assessment_id", ASCENDING), ("questionnaire_id", ASCENDING)], unique=True),
    ],
    "roi_calculations": [
        IndexModel("assessment_id"),
    ],
    "recommendations": [
        IndexModel("assessment_id"),
        IndexModel("roi_calculation_id"),
        IndexModel("priority"),
    ],
    "templates": [
        IndexModel("name", unique=True),
        IndexModel("type"),
    ],
    "reports": [
        IndexModel("assessment_id"),
        IndexModel("generated_by"),
        IndexModel("shared_with"),
        IndexModel("tags"),
    ],
    "report_tags": [
        IndexModel("name", unique=True),
    ],
    "settings": [
        IndexModel(
            [("key", ASCENDING), ("scope", ASCENDING), ("user_id", ASCENDING)],
            unique=True,
        ),
    ],
    "audit_logs": [
        IndexModel([("timestamp", DESCENDING)]),
        IndexModel([("user_id", ASCENDING), ("timestamp", DESCENDING)]),
        IndexModel([("entity_type", ASCENDING), ("entity_id", ASCENDING)]),
        IndexModel("action"),
    ],
}


def new_id() -> str:
    """Generate a document id (24-hex ObjectId string)."""
    return str(ObjectId())


def is_valid_id(value: str | None) -> bool:
    """Check that a value is a well-formed document id."""
    return bool(value) and ObjectId.is_valid(value)


class MongoDBClient:
    """
    Async MongoDB client wrapper.

    Manages client lifecycle and provides database access.
    """

    _client: AsyncIOMotorClient | None = None  # type: ignore[type-arg]

    @classmethod
    def get_client(cls) -> AsyncIOMotorClient:  # type: ignore[type-arg]
        """Get or create the async client."""
        if cls._client is None:
            cls._client = AsyncIOMotorClient(
                settings.mongodb.uri,
                maxPoolSize=settings.mongodb.max_pool_size,
                minPoolSize=settings.mongodb.min_pool_size,
                serverSelectionTimeoutMS=settings.mongodb.server_selection_timeout_ms,
                connectTimeoutMS=settings.mongodb.connect_timeout_ms,
                tz_aware=True,
            )
            logger.info(
                "mongodb_client_created",
                host=settings.mongodb.host,
                database=settings.mongodb.db,
            )
        return cls._client

    @classmethod
    def get_database(cls, name: str | None = None) -> AsyncIOMotorDatabase:  # type: ignore[type-arg]
        """
        Get a database instance.

        Args:
            name: Database name (default from settings)
        """
        client = cls.get_client()
        return client[name or settings.mongodb.db]

    @classmethod
    async def close(cls) -> None:
        """Close the client and release all connections."""
        if cls._client is not None:
            cls._client.close()
            cls._client = None
            logger.info("mongodb_client_closed")

    @classmethod
    async def health_check(cls) -> dict[str, Any]:
        """
        Ping the server.

        Returns:
            dict with status and latency
        """
        try:
            start = time.perf_counter()
            result = await cls.get_client().admin.command("ping")
            latency_ms = (time.perf_counter() - start) * 1000
            return {
                "status": "healthy" if result.get("ok") == 1 else "unhealthy",
                "latency_ms": round(latency_ms, 2),
            }
        except PyMongoError as e:
            logger.error("mongodb_health_check_failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e),
            }

    @classmethod
    async def create_indexes(
        cls,
        db: AsyncIOMotorDatabase | None = None,  # type: ignore[type-arg]
    ) -> None:
        """Create indexes for all collections."""
        db = db if db is not None else cls.get_database()
        for collection, indexes in COLLECTION_INDEXES.items():
            await db[collection].create_indexes(indexes)
            logger.debug("mongodb_collection_indexed", collection=collection, count=len(indexes))
        logger.info("mongodb_indexes_created", collections=len(COLLECTION_INDEXES))

    @classmethod
    async def drop_collections(
        cls,
        db: AsyncIOMotorDatabase | None = None,  # type: ignore[type-arg]
    ) -> None:
        """Drop every application collection."""
        db = db if db is not None else cls.get_database()
        for collection in COLLECTION_INDEXES:
            await db.drop_collection(collection)
        logger.warning("mongodb_collections_dropped", collections=list(COLLECTION_INDEXES))


async def get_mongodb() -> AsyncIOMotorDatabase:  # type: ignore[type-arg]
    """
    Dependency that provides the MongoDB database.

    Usage:
        @router.get("/companies")
        async def companies(db: AsyncIOMotorDatabase = Depends(get_mongodb)):
            return await db.companies.find({}).to_list(100)
    """
    return MongoDBClient.get_database()
