"""Setup MongoDB indexes for the binding service.

Collections:
- devices: Device aggregate documents
- elders / app_users: owner documents (back-references indexed)
- activities: live activities (device_id + _id drives archival paging)
- anonymous_activities: archived, ownership-free activity copies
- notification_points: tenant- and device-scoped notification points
- admin_users: administrator registry (lookups by _id only)

Usage:
    python scripts/setup_mongodb_indexes.py

Environment Variables:
    MONGODB_URI: MongoDB connection string (required)
    MONGODB_DATABASE: Database name (default: beacontrack)
"""

import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, List, Tuple

import structlog
from dotenv import load_dotenv
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from beacontrack.infrastructure.config import get_mongodb_database, get_mongodb_uri
from beacontrack.infrastructure.logging_config import configure_logging

env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

logger = structlog.get_logger(__name__)

# collection -> [(keys, options)]
INDEXES: Dict[str, List[Tuple[List[Tuple[str, int]], Dict[str, Any]]]] = {
    "devices": [
        ([("serial", ASCENDING)], {"name": "idx_serial", "unique": True}),
        (
            [("bound_to", ASCENDING), ("binding_type", ASCENDING)],
            {"name": "idx_bound_to_type"},
        ),
        ([("tags", ASCENDING)], {"name": "idx_tags"}),
        ([("binding_type", ASCENDING)], {"name": "idx_binding_type"}),
        (
            [("service_id", ASCENDING), ("group_number", ASCENDING), ("unit_number", ASCENDING)],
            {"name": "idx_beacon_identity", "unique": True},
        ),
    ],
    "elders": [
        ([("device_id", ASCENDING)], {"name": "idx_device"}),
        ([("tenant_id", ASCENDING)], {"name": "idx_tenant"}),
    ],
    "app_users": [
        ([("bound_device_id", ASCENDING)], {"name": "idx_bound_device"}),
    ],
    "activities": [
        ([("device_id", ASCENDING), ("_id", ASCENDING)], {"name": "idx_device_paging"}),
    ],
    "anonymous_activities": [
        ([("archive_session_id", ASCENDING)], {"name": "idx_archive_session"}),
        ([("device_id", ASCENDING)], {"name": "idx_device"}),
    ],
    "notification_points": [
        ([("tenant_id", ASCENDING), ("is_active", ASCENDING)], {"name": "idx_tenant_active"}),
        ([("device_id", ASCENDING)], {"name": "idx_device"}),
    ],
}


async def create_indexes(db: AsyncIOMotorDatabase[Dict[str, Any]]) -> int:
    """Create every index; returns how many were requested."""
    created = 0
    for collection_name, specs in INDEXES.items():
        collection = db[collection_name]
        for keys, options in specs:
            await collection.create_index(keys, **options)
            created += 1
            logger.info("indexes.created", collection=collection_name, index=options["name"])
    return created


async def main() -> int:
    """Connect, create indexes, report. Returns process exit code."""
    uri = get_mongodb_uri()
    if not uri:
        logger.error("indexes.missing_uri", hint="Set MONGODB_URI")
        return 1

    client: AsyncIOMotorClient[Dict[str, Any]] = AsyncIOMotorClient(uri)
    try:
        db = client[get_mongodb_database()]
        created = await create_indexes(db)
        logger.info("indexes.done", database=get_mongodb_database(), count=created)
        return 0
    except PyMongoError as e:
        logger.error("indexes.failed", error=str(e))
        return 1
    finally:
        client.close()


if __name__ == "__main__":
    configure_logging()
    sys.exit(asyncio.run(main()))
