"""MongoDB notification point repository."""

from typing import Any, Dict, List

from beacontrack.domain.notification.models import NotificationPoint
from beacontrack.domain.notification.ports import INotificationPointRepository
from beacontrack.infrastructure.persistence.mongodb.base import MongoBaseRepository


class MongoNotificationPointRepository(
    MongoBaseRepository[NotificationPoint], INotificationPointRepository
):
    """
    Tenant- and device-scoped notification points in one collection.

    Storage design:
    - Collection: notification_points
    - Index on (tenant_id, is_active), device_id
    """

    @property
    def collection_name(self) -> str:
        return "notification_points"

    def to_document(self, point: NotificationPoint) -> Dict[str, Any]:
        return {
            "_id": point.point_id,
            "gateway_id": point.gateway_id,
            "name": point.name,
            "is_active": point.is_active,
            "tenant_id": point.tenant_id,
            "device_id": point.device_id,
        }

    def from_document(self, doc: Dict[str, Any]) -> NotificationPoint:
        return NotificationPoint(
            point_id=doc["_id"],
            gateway_id=doc["gateway_id"],
            name=doc.get("name", ""),
            is_active=doc.get("is_active", True),
            tenant_id=doc.get("tenant_id"),
            device_id=doc.get("device_id"),
        )

    async def find_active_for_tenant(self, tenant_id: str) -> List[NotificationPoint]:
        docs = await self._find_many({"tenant_id": tenant_id, "is_active": True})
        return [self.from_document(doc) for doc in docs]

    async def find_for_device(self, device_id: str, limit: int) -> List[NotificationPoint]:
        docs = await self._find_many({"device_id": device_id}, limit=limit)
        return [self.from_document(doc) for doc in docs]

    async def add(self, point: NotificationPoint) -> None:
        await self._insert_one(self.to_document(point))
