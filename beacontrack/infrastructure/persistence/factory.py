"""Persistence factory for environment-based selection.

Creates the repositories and batch factory for the backend named by the
REPOSITORY_BACKEND environment variable:
- "inmemory": shared InMemoryDatabase (for testing and local runs)
- "mongodb": motor repositories and transactional batches (for production)

Default: inmemory
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import structlog
from motor.motor_asyncio import AsyncIOMotorClient

from beacontrack.domain.activity.ports import IActivityStore
from beacontrack.domain.admin.ports import IAdminRepository
from beacontrack.domain.device.ports import IDeviceRepository
from beacontrack.domain.notification.ports import INotificationPointRepository
from beacontrack.domain.owner.ports import IElderRepository, IMapUserRepository
from beacontrack.domain.shared.ports.write_batch import IBatchFactory
from beacontrack.infrastructure.config import (
    get_batch_operation_limit,
    get_mongodb_database,
    get_mongodb_uri,
    get_repository_backend,
)
from beacontrack.infrastructure.persistence.in_memory.store import (
    InMemoryActivityStore,
    InMemoryAdminRepository,
    InMemoryBatchFactory,
    InMemoryDatabase,
    InMemoryDeviceRepository,
    InMemoryElderRepository,
    InMemoryMapUserRepository,
    InMemoryNotificationPointRepository,
)
from beacontrack.infrastructure.persistence.mongodb.activity_store import MongoActivityStore
from beacontrack.infrastructure.persistence.mongodb.admin_repository import MongoAdminRepository
from beacontrack.infrastructure.persistence.mongodb.device_repository import (
    MongoDeviceRepository,
)
from beacontrack.infrastructure.persistence.mongodb.notification_point_repository import (
    MongoNotificationPointRepository,
)
from beacontrack.infrastructure.persistence.mongodb.owner_repositories import (
    MongoElderRepository,
    MongoMapUserRepository,
)
from beacontrack.infrastructure.persistence.mongodb.write_batch import MongoBatchFactory

logger = structlog.get_logger(__name__)


@dataclass
class Persistence:
    """Every persistence port, bound to one backend."""

    devices: IDeviceRepository
    elders: IElderRepository
    map_users: IMapUserRepository
    activities: IActivityStore
    notification_points: INotificationPointRepository
    admins: IAdminRepository
    batches: IBatchFactory
    client: Optional[AsyncIOMotorClient[Dict[str, Any]]] = None

    def close(self) -> None:
        """Close the MongoDB connection, if any."""
        if self.client is not None:
            self.client.close()


def create_in_memory_persistence(db: Optional[InMemoryDatabase] = None) -> Persistence:
    """In-memory persistence over one shared database."""
    db = db or InMemoryDatabase()
    return Persistence(
        devices=InMemoryDeviceRepository(db),
        elders=InMemoryElderRepository(db),
        map_users=InMemoryMapUserRepository(db),
        activities=InMemoryActivityStore(db),
        notification_points=InMemoryNotificationPointRepository(db),
        admins=InMemoryAdminRepository(db),
        batches=InMemoryBatchFactory(db),
    )


def create_mongo_persistence(
    client: Optional[AsyncIOMotorClient[Dict[str, Any]]] = None,
) -> Persistence:
    """
    MongoDB persistence.

    Raises:
        ValueError: If no client is given and MONGODB_URI is not configured
    """
    if client is None:
        uri = get_mongodb_uri()
        if not uri:
            raise ValueError(
                "MONGODB_URI not configured. "
                "Set MONGODB_URI, MONGODB_USER, "
                "and MONGODB_PASSWORD environment variables."
            )
        client = AsyncIOMotorClient(uri)

    db = client[get_mongodb_database()]
    devices = MongoDeviceRepository(db)
    elders = MongoElderRepository(db)
    map_users = MongoMapUserRepository(db)
    activities = MongoActivityStore(db)
    notification_points = MongoNotificationPointRepository(db)

    return Persistence(
        devices=devices,
        elders=elders,
        map_users=map_users,
        activities=activities,
        notification_points=notification_points,
        admins=MongoAdminRepository(db),
        batches=MongoBatchFactory(
            client,
            devices,
            elders,
            map_users,
            activities,
            notification_points,
            max_operations=get_batch_operation_limit(),
        ),
        client=client,
    )


def create_persistence() -> Persistence:
    """Create persistence based on environment configuration.

    Environment Variables:
        REPOSITORY_BACKEND: "inmemory" | "mongodb" (default: inmemory)
        MONGODB_URI: MongoDB connection string (required for mongodb)
        MONGODB_DATABASE: Database name (default: beacontrack)
    """
    backend = get_repository_backend()
    logger.info("persistence.backend_selected", backend=backend)

    if backend == "mongodb":
        return create_mongo_persistence()
    return create_in_memory_persistence()


# Singleton instance
_persistence: Optional[Persistence] = None


def get_persistence() -> Persistence:
    """Get singleton persistence instance."""
    global _persistence

    if _persistence is None:
        _persistence = create_persistence()

    return _persistence


def reset_persistence() -> None:
    """Reset the singleton (for testing purposes)."""
    global _persistence
    if _persistence is not None:
        _persistence.close()
    _persistence = None
