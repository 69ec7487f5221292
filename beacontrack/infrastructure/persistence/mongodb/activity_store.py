"""MongoDB activity store.

Live activities live in ``activities`` (``_id`` = activity id, indexed with
device_id); archived copies go to the global ``anonymous_activities`` sink.
"""

from __future__ import annotations

from typing import Any, Dict, List

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from beacontrack.domain.activity.models import Activity, AnonymizedActivity, ArchiveReason
from beacontrack.domain.activity.ports import IActivityStore
from beacontrack.infrastructure.persistence.mongodb.base import MongoBaseRepository

ANONYMIZED_COLLECTION = "anonymous_activities"


class MongoActivityStore(MongoBaseRepository[Activity], IActivityStore):
    """MongoDB implementation of the activity store."""

    def __init__(self, db: AsyncIOMotorDatabase[Dict[str, Any]]):
        super().__init__(db)
        self._anonymized = db[ANONYMIZED_COLLECTION]

    @property
    def collection_name(self) -> str:
        return "activities"

    @property
    def anonymized_collection(self) -> Any:
        return self._anonymized

    def to_document(self, activity: Activity) -> Dict[str, Any]:
        return {
            "_id": activity.activity_id,
            "device_id": activity.device_id,
            "timestamp": self.datetime_to_iso(activity.timestamp),
            "gateway_id": activity.gateway_id,
            "gateway_name": activity.gateway_name,
            "gateway_type": activity.gateway_type,
            "latitude": activity.latitude,
            "longitude": activity.longitude,
            "rssi": activity.rssi,
            "binding_type": activity.binding_type,
            "triggered_notification": activity.triggered_notification,
            "notification_type": activity.notification_type,
            "notification_point_id": activity.notification_point_id,
        }

    def from_document(self, doc: Dict[str, Any]) -> Activity:
        return Activity(
            activity_id=doc["_id"],
            device_id=doc["device_id"],
            timestamp=self.iso_to_datetime(doc["timestamp"]),
            gateway_id=doc.get("gateway_id"),
            gateway_name=doc.get("gateway_name"),
            gateway_type=doc.get("gateway_type"),
            latitude=doc.get("latitude"),
            longitude=doc.get("longitude"),
            rssi=doc.get("rssi"),
            binding_type=doc.get("binding_type"),
            triggered_notification=doc.get("triggered_notification", False),
            notification_type=doc.get("notification_type"),
            notification_point_id=doc.get("notification_point_id"),
        )

    def to_anonymized_document(self, record: AnonymizedActivity) -> Dict[str, Any]:
        return {
            "_id": record.record_id,
            "device_id": record.device_id,
            "timestamp": self.datetime_to_iso(record.timestamp),
            "gateway_id": record.gateway_id,
            "gateway_name": record.gateway_name,
            "gateway_type": record.gateway_type,
            "latitude": record.latitude,
            "longitude": record.longitude,
            "rssi": record.rssi,
            "triggered_notification": record.triggered_notification,
            "notification_type": record.notification_type,
            "notification_point_id": record.notification_point_id,
            "binding_type": record.binding_type,
            "bound_to": None,
            "anonymized_reason": record.anonymized_reason.value,
            "anonymized_at": self.datetime_to_iso(record.anonymized_at),
            "archive_session_id": record.archive_session_id,
            "original_activity_id": record.original_activity_id,
        }

    def from_anonymized_document(self, doc: Dict[str, Any]) -> AnonymizedActivity:
        return AnonymizedActivity(
            record_id=doc["_id"],
            device_id=doc["device_id"],
            timestamp=self.iso_to_datetime(doc.get("timestamp")),
            gateway_id=doc.get("gateway_id"),
            gateway_name=doc.get("gateway_name"),
            gateway_type=doc.get("gateway_type"),
            latitude=doc.get("latitude"),
            longitude=doc.get("longitude"),
            rssi=doc.get("rssi"),
            triggered_notification=doc.get("triggered_notification", False),
            notification_type=doc.get("notification_type"),
            notification_point_id=doc.get("notification_point_id"),
            anonymized_reason=ArchiveReason(doc["anonymized_reason"]),
            anonymized_at=self.iso_to_datetime(doc["anonymized_at"]),
            archive_session_id=doc["archive_session_id"],
            original_activity_id=doc["original_activity_id"],
        )

    async def first_page(self, device_id: str, limit: int) -> List[Activity]:
        docs = await self._find_many(
            {"device_id": device_id}, sort=[("_id", ASCENDING)], limit=limit
        )
        return [self.from_document(doc) for doc in docs]

    async def count_live(self, device_id: str) -> int:
        return await self._count({"device_id": device_id})

    async def add(self, activity: Activity) -> None:
        await self._insert_one(self.to_document(activity))

    async def count_anonymized(self, device_id: str) -> int:
        filter_dict = {"device_id": device_id}
        try:
            return await self._anonymized.count_documents(filter_dict)
        except PyMongoError as e:
            raise self._wrap("count_anonymized", filter_dict, e) from e

    async def find_by_session(self, archive_session_id: str) -> List[AnonymizedActivity]:
        filter_dict = {"archive_session_id": archive_session_id}
        try:
            docs = await self._anonymized.find(filter_dict).to_list(length=None)
        except PyMongoError as e:
            raise self._wrap("find_by_session", filter_dict, e) from e
        return [self.from_anonymized_document(doc) for doc in docs]
