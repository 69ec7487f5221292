"""MongoDB device repository."""

from typing import Any, Dict, List, Optional

from beacontrack.domain.device.models import BindingType, Device, utc_now
from beacontrack.domain.device.ports import IDeviceRepository
from beacontrack.domain.shared.value_objects import BeaconIdentity, Gender
from beacontrack.infrastructure.persistence.mongodb.base import MongoBaseRepository


class MongoDeviceRepository(MongoBaseRepository[Device], IDeviceRepository):
    """
    MongoDB implementation of the device repository.

    Storage design:
    - Collection: devices
    - _id: device_id
    - Unique index on serial
    - Index on (bound_to, binding_type), tags, binding_type
    """

    @property
    def collection_name(self) -> str:
        return "devices"

    def to_document(self, device: Device) -> Dict[str, Any]:
        return {
            "_id": device.device_id,
            "service_id": device.identity.service_id,
            "group_number": device.identity.group_number,
            "unit_number": device.identity.unit_number,
            "serial": device.serial,
            "binding_type": device.binding_type.value,
            "bound_to": device.bound_to,
            "bound_at": self.datetime_to_iso(device.bound_at),
            "tags": list(device.tags),
            "inherited_notification_point_ids": device.inherited_notification_point_ids,
            "nickname": device.nickname,
            "age": device.age,
            "gender": device.gender.value if device.gender else None,
            "push_token": device.push_token,
            "notification_enabled": device.notification_enabled,
            "is_active": device.is_active,
            "created_at": self.datetime_to_iso(device.created_at),
            "updated_at": self.datetime_to_iso(device.updated_at),
        }

    def from_document(self, doc: Dict[str, Any]) -> Device:
        gender = doc.get("gender")
        return Device(
            device_id=doc["_id"],
            identity=BeaconIdentity(
                service_id=doc["service_id"],
                group_number=doc["group_number"],
                unit_number=doc["unit_number"],
            ),
            serial=doc["serial"],
            binding_type=BindingType(doc.get("binding_type", BindingType.UNBOUND.value)),
            bound_to=doc.get("bound_to"),
            bound_at=self.iso_to_datetime(doc.get("bound_at")),
            tags=list(doc.get("tags") or []),
            inherited_notification_point_ids=doc.get("inherited_notification_point_ids"),
            nickname=doc.get("nickname"),
            age=doc.get("age"),
            gender=Gender(gender) if gender else None,
            push_token=doc.get("push_token"),
            notification_enabled=doc.get("notification_enabled"),
            is_active=doc.get("is_active", True),
            created_at=self.iso_to_datetime(doc["created_at"]),
            updated_at=self.iso_to_datetime(doc["updated_at"]),
        )

    async def get(self, device_id: str) -> Optional[Device]:
        doc = await self._find_one({"_id": device_id})
        return self.from_document(doc) if doc else None

    async def find_by_serial(self, serial: str) -> Optional[Device]:
        doc = await self._find_one({"serial": serial})
        return self.from_document(doc) if doc else None

    async def find_bound_to(self, owner_id: str, binding_type: BindingType) -> List[Device]:
        docs = await self._find_many({"bound_to": owner_id, "binding_type": binding_type.value})
        return [self.from_document(doc) for doc in docs]

    async def find_by_tag(self, tag: str) -> List[Device]:
        docs = await self._find_many({"tags": tag})
        return [self.from_document(doc) for doc in docs]

    async def find_by_binding_type(self, binding_type: BindingType) -> List[Device]:
        docs = await self._find_many({"binding_type": binding_type.value})
        return [self.from_document(doc) for doc in docs]

    async def save(self, device: Device) -> None:
        await self._replace_one(self.to_document(device))

    async def set_inherited_points(
        self, device_id: str, gateway_ids: Optional[List[str]]
    ) -> None:
        await self._update_one({"_id": device_id}, self.inherited_points_update(gateway_ids))

    def inherited_points_update(self, gateway_ids: Optional[List[str]]) -> Dict[str, Any]:
        """Field-level update document, shared with the write batch."""
        return {
            "$set": {
                "inherited_notification_point_ids": (
                    list(gateway_ids) if gateway_ids is not None else None
                ),
                "updated_at": self.datetime_to_iso(utc_now()),
            }
        }
