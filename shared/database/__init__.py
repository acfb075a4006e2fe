"""
Database Module
===============

Async MongoDB access through Motor.

Usage:
    from shared.database import get_mongodb

    @router.get("/example")
    async def example(db: AsyncIOMotorDatabase = Depends(get_mongodb)):
        doc = await db.reports.find_one({"_id": report_id})
"""

from shared.database.mongodb import (
    COLLECTION_INDEXES,
    MongoDBClient,
    get_mongodb,
    is_valid_id,
    new_id,
)

__all__ = [
    "COLLECTION_INDEXES",
    "MongoDBClient",
    "get_mongodb",
    "is_valid_id",
    "new_id",
]
