#!/usr/bin/env python3
"""
Database Initialization Script
==============================

Prepare the WMS ROI MongoDB database: collections and indexes.

Usage:
    python scripts/init_databases.py
    python scripts/init_databases.py --drop-first
    MONGODB_URI=mongodb://localhost:27017/wms_roi python scripts/init_databases.py

Version: 0.1.0
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pymongo.errors import PyMongoError

from shared.logging import get_logger, setup_logging

setup_logging(log_level="INFO", json_logs=False, service_name="init-db")
logger = get_logger(__name__)


async def init_mongodb(drop_first: bool) -> bool:
    """Initialize MongoDB with collections and indexes."""
    from shared.database import MongoDBClient

    logger.info("Initializing MongoDB...")

    try:
        client = MongoDBClient.get_client()

        if drop_first:
            await MongoDBClient.drop_collections()

        await MongoDBClient.create_indexes()

        # Verify connection
        info = await client.server_info()
        logger.info(f"MongoDB connected: v{info['version']}")

        logger.info("MongoDB initialized successfully")
        return True

    except PyMongoError as e:
        logger.error(f"MongoDB initialization failed: {e}")
        return False


async def main(args: argparse.Namespace) -> int:
    """Main initialization function."""
    from shared.database import MongoDBClient

    logger.info("=" * 60)
    logger.info("WMS ROI Database Initialization")
    logger.info("=" * 60)

    results = {"MongoDB": await init_mongodb(args.drop_first)}

    await MongoDBClient.close()

    # Summary
    logger.info("=" * 60)
    logger.info("Initialization Summary")
    logger.info("=" * 60)

    failed = []
    for name, success in results.items():
        status = "OK" if success else "FAILED"
        logger.info(f"  {name}: {status}")
        if not success:
            failed.append(name)

    if failed:
        logger.error(f"Failed: {', '.join(failed)}")
        return 1

    logger.info("Database initialized successfully")
    return 0


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Initialize the WMS ROI database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--drop-first",
        action="store_true",
        help="Drop all application collections before creating indexes",
    )

    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    exit_code = asyncio.run(main(args))
    sys.exit(exit_code)
