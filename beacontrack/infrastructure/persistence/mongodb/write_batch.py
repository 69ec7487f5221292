"""MongoDB write batch.

Staged operations run inside one multi-document transaction on a client
session, so a batch commits entirely or not at all. Transactions need a
replica set (Atlas clusters are).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import structlog
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from beacontrack.domain.activity.models import AnonymizedActivity
from beacontrack.domain.device.models import Device
from beacontrack.domain.owner.models import Elder, MapUser
from beacontrack.domain.shared.errors import BatchLimitExceededError, DatabaseError
from beacontrack.domain.shared.ports.write_batch import IBatchFactory, IWriteBatch
from beacontrack.infrastructure.persistence.mongodb.activity_store import MongoActivityStore
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

logger = structlog.get_logger(__name__)

# (collection, method name, positional args, keyword args)
Operation = Tuple[Any, str, Tuple[Any, ...], Dict[str, Any]]


class MongoWriteBatch(IWriteBatch):
    """Collects writes and applies them in one transaction."""

    def __init__(self, factory: "MongoBatchFactory"):
        self._factory = factory
        self._operations: List[Operation] = []

    def _replace(self, collection: Any, document: Dict[str, Any]) -> None:
        self._operations.append(
            (collection, "replace_one", ({"_id": document["_id"]}, document), {"upsert": True})
        )

    def save_device(self, device: Device) -> None:
        repo = self._factory.devices
        self._replace(repo.collection, repo.to_document(device))

    def save_elder(self, elder: Elder) -> None:
        repo = self._factory.elders
        self._replace(repo.collection, repo.to_document(elder))

    def save_map_user(self, user: MapUser) -> None:
        repo = self._factory.map_users
        self._replace(repo.collection, repo.to_document(user))

    def set_inherited_points(
        self, device_id: str, gateway_ids: Optional[List[str]]
    ) -> None:
        repo = self._factory.devices
        self._operations.append(
            (
                repo.collection,
                "update_one",
                ({"_id": device_id}, repo.inherited_points_update(gateway_ids)),
                {},
            )
        )

    def add_anonymized_activity(self, record: AnonymizedActivity) -> None:
        store = self._factory.activities
        self._operations.append(
            (store.anonymized_collection, "insert_one", (store.to_anonymized_document(record),), {})
        )

    def delete_activity(self, activity_id: str) -> None:
        self._operations.append(
            (self._factory.activities.collection, "delete_one", ({"_id": activity_id},), {})
        )

    def delete_notification_point(self, point_id: str) -> None:
        self._operations.append(
            (self._factory.notification_points.collection, "delete_one", ({"_id": point_id},), {})
        )

    def __len__(self) -> int:
        return len(self._operations)

    async def commit(self) -> None:
        """
        Run every staged operation in one transaction.

        Raises:
            BatchLimitExceededError: If more than the per-commit limit is staged
            DatabaseError: If the transaction fails (nothing is applied)
        """
        if len(self._operations) > self._factory.max_operations:
            raise BatchLimitExceededError(self._factory.max_operations)
        if not self._operations:
            return

        try:
            async with await self._factory.client.start_session() as session:
                async with session.start_transaction():
                    for collection, method, args, kwargs in self._operations:
                        await getattr(collection, method)(*args, session=session, **kwargs)
        except PyMongoError as e:
            logger.error(
                "mongodb.batch_commit_failed",
                operations=len(self._operations),
                error=str(e),
            )
            raise DatabaseError(f"Batch commit failed: {e}") from e

        logger.debug("mongodb.batch_committed", operations=len(self._operations))
        self._operations.clear()


class MongoBatchFactory(IBatchFactory):
    """Creates transactional batches over the repositories' collections."""

    def __init__(
        self,
        client: AsyncIOMotorClient[Dict[str, Any]],
        devices: MongoDeviceRepository,
        elders: MongoElderRepository,
        map_users: MongoMapUserRepository,
        activities: MongoActivityStore,
        notification_points: MongoNotificationPointRepository,
        max_operations: int,
    ):
        self.client = client
        self.devices = devices
        self.elders = elders
        self.map_users = map_users
        self.activities = activities
        self.notification_points = notification_points
        self.max_operations = max_operations

    def new_batch(self) -> MongoWriteBatch:
        return MongoWriteBatch(self)
