"""In-memory document store for tests and local runs."""

from beacontrack.infrastructure.persistence.in_memory.store import (
    InMemoryActivityStore,
    InMemoryAdminRepository,
    InMemoryBatchFactory,
    InMemoryDatabase,
    InMemoryDeviceRepository,
    InMemoryElderRepository,
    InMemoryMapUserRepository,
    InMemoryNotificationPointRepository,
    InMemoryWriteBatch,
)

__all__ = [
    "InMemoryActivityStore",
    "InMemoryAdminRepository",
    "InMemoryBatchFactory",
    "InMemoryDatabase",
    "InMemoryDeviceRepository",
    "InMemoryElderRepository",
    "InMemoryMapUserRepository",
    "InMemoryNotificationPointRepository",
    "InMemoryWriteBatch",
]
