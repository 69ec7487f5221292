"""MongoDB elder and map user repositories."""

from typing import Any, Dict, List, Optional

from beacontrack.domain.owner.models import Elder, MapUser
from beacontrack.domain.owner.ports import IElderRepository, IMapUserRepository
from beacontrack.infrastructure.persistence.mongodb.base import MongoBaseRepository


class MongoElderRepository(MongoBaseRepository[Elder], IElderRepository):
    """
    MongoDB implementation of the elder repository.

    Storage design:
    - Collection: elders
    - _id: elder_id
    - Index on device_id, tenant_id
    """

    @property
    def collection_name(self) -> str:
        return "elders"

    def to_document(self, elder: Elder) -> Dict[str, Any]:
        return {
            "_id": elder.elder_id,
            "tenant_id": elder.tenant_id,
            "name": elder.name,
            "device_id": elder.device_id,
            "is_active": elder.is_active,
            "updated_at": self.datetime_to_iso(elder.updated_at),
        }

    def from_document(self, doc: Dict[str, Any]) -> Elder:
        return Elder(
            elder_id=doc["_id"],
            tenant_id=doc["tenant_id"],
            name=doc.get("name", ""),
            device_id=doc.get("device_id"),
            is_active=doc.get("is_active", True),
            updated_at=self.iso_to_datetime(doc["updated_at"]),
        )

    async def get(self, elder_id: str) -> Optional[Elder]:
        doc = await self._find_one({"_id": elder_id})
        return self.from_document(doc) if doc else None

    async def find_by_device(self, device_id: str) -> List[Elder]:
        docs = await self._find_many({"device_id": device_id})
        return [self.from_document(doc) for doc in docs]

    async def save(self, elder: Elder) -> None:
        await self._replace_one(self.to_document(elder))


class MongoMapUserRepository(MongoBaseRepository[MapUser], IMapUserRepository):
    """
    MongoDB implementation of the map user repository.

    Storage design:
    - Collection: app_users
    - _id: user_id
    - Index on bound_device_id
    """

    @property
    def collection_name(self) -> str:
        return "app_users"

    def to_document(self, user: MapUser) -> Dict[str, Any]:
        return {
            "_id": user.user_id,
            "bound_device_id": user.bound_device_id,
            "push_token": user.push_token,
            "avatar": user.avatar,
            "is_deleted": user.is_deleted,
            "updated_at": self.datetime_to_iso(user.updated_at),
        }

    def from_document(self, doc: Dict[str, Any]) -> MapUser:
        return MapUser(
            user_id=doc["_id"],
            bound_device_id=doc.get("bound_device_id"),
            push_token=doc.get("push_token"),
            avatar=doc.get("avatar"),
            is_deleted=doc.get("is_deleted", False),
            updated_at=self.iso_to_datetime(doc["updated_at"]),
        )

    async def get(self, user_id: str) -> Optional[MapUser]:
        doc = await self._find_one({"_id": user_id})
        return self.from_document(doc) if doc else None

    async def find_by_bound_device(self, device_id: str) -> List[MapUser]:
        docs = await self._find_many({"bound_device_id": device_id})
        return [self.from_document(doc) for doc in docs]

    async def save(self, user: MapUser) -> None:
        await self._replace_one(self.to_document(user))
