"""MongoDB administrator repository."""

from typing import Any, Dict, Optional

from beacontrack.domain.admin.models import AdminRole, AdminUser
from beacontrack.domain.admin.ports import IAdminRepository
from beacontrack.infrastructure.persistence.mongodb.base import MongoBaseRepository


class MongoAdminRepository(MongoBaseRepository[AdminUser], IAdminRepository):
    """Administrator registry (collection: admin_users, _id: admin_id)."""

    @property
    def collection_name(self) -> str:
        return "admin_users"

    def to_document(self, admin: AdminUser) -> Dict[str, Any]:
        return {"_id": admin.admin_id, "role": admin.role.value, "tenant_id": admin.tenant_id}

    def from_document(self, doc: Dict[str, Any]) -> AdminUser:
        return AdminUser(
            admin_id=doc["_id"],
            role=AdminRole(doc["role"]),
            tenant_id=doc.get("tenant_id"),
        )

    async def get(self, admin_id: str) -> Optional[AdminUser]:
        doc = await self._find_one({"_id": admin_id})
        return self.from_document(doc) if doc else None

    async def save(self, admin: AdminUser) -> None:
        await self._replace_one(self.to_document(admin))
