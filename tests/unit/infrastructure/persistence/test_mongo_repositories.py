"""Unit tests for the MongoDB repositories and transactional write batch.

Motor is mocked: collections are MagicMocks whose awaitable methods are
AsyncMocks, and ``find`` returns a chainable cursor.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import OperationFailure, PyMongoError

from beacontrack.domain.activity.models import (
    Activity,
    AnonymizedActivity,
    ArchiveReason,
)
from beacontrack.domain.device.models import BindingType, Device
from beacontrack.domain.shared.errors import BatchLimitExceededError, DatabaseError
from beacontrack.domain.shared.value_objects import (
    ArchiveSessionId,
    BeaconIdentity,
    Gender,
    MapUserProfile,
)
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
from beacontrack.infrastructure.persistence.mongodb.write_batch import MongoBatchFactory

NOW = datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)


def mock_collection(docs: Optional[List[Dict[str, Any]]] = None) -> MagicMock:
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=docs or [])

    collection = MagicMock()
    collection.find = MagicMock(return_value=cursor)
    collection.find_one = AsyncMock(return_value=None)
    collection.replace_one = AsyncMock()
    collection.insert_one = AsyncMock()
    collection.update_one = AsyncMock(return_value=MagicMock(modified_count=1))
    collection.delete_one = AsyncMock()
    collection.count_documents = AsyncMock(return_value=0)
    return collection


@pytest.fixture
def collections() -> Dict[str, MagicMock]:
    names = [
        "devices",
        "elders",
        "app_users",
        "activities",
        "anonymous_activities",
        "notification_points",
    ]
    return {name: mock_collection() for name in names}


@pytest.fixture
def mongo_db(collections):
    db = MagicMock()
    db.__getitem__ = MagicMock(side_effect=lambda name: collections[name])
    return db


def bound_device() -> Device:
    device = Device.register(
        "dev_1",
        BeaconIdentity(
            service_id="FDA50693-A4E2-4FB1-AFCF-C6EB07647825", group_number=1, unit_number=2
        ),
        "abcdef0001",
        tags=["tenant_a"],
    )
    device.bind(
        BindingType.MAP_USER, "user_y", NOW, MapUserProfile(nickname="Nana", gender=Gender.FEMALE)
    )
    device.stage_push_token("tok")
    return device


class TestMongoDeviceRepository:
    def test_document_round_trip(self, mongo_db):
        repo = MongoDeviceRepository(mongo_db)
        device = bound_device()

        doc = repo.to_document(device)
        restored = repo.from_document(doc)

        assert doc["_id"] == "dev_1"
        assert doc["serial"] == "ABCDEF0001"
        assert doc["service_id"] == "fda50693-a4e2-4fb1-afcf-c6eb07647825"
        assert doc["binding_type"] == "MAP_USER"
        assert doc["bound_at"] == NOW.isoformat()
        assert restored.bound_at == NOW
        assert restored.gender == Gender.FEMALE
        assert restored.push_token == "tok"

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, mongo_db, collections):
        repo = MongoDeviceRepository(mongo_db)

        assert await repo.get("missing") is None
        collections["devices"].find_one.assert_awaited_once_with({"_id": "missing"})

    @pytest.mark.asyncio
    async def test_save_upserts_by_id(self, mongo_db, collections):
        repo = MongoDeviceRepository(mongo_db)

        await repo.save(bound_device())

        args, kwargs = collections["devices"].replace_one.call_args
        assert args[0] == {"_id": "dev_1"}
        assert kwargs == {"upsert": True}

    @pytest.mark.asyncio
    async def test_find_bound_to_filters_on_type(self, mongo_db, collections):
        repo = MongoDeviceRepository(mongo_db)

        await repo.find_bound_to("elder_1", BindingType.ELDER)

        collections["devices"].find.assert_called_once_with(
            {"bound_to": "elder_1", "binding_type": "ELDER"}
        )

    @pytest.mark.asyncio
    async def test_set_inherited_points_is_field_update(self, mongo_db, collections):
        repo = MongoDeviceRepository(mongo_db)

        await repo.set_inherited_points("dev_1", None)

        filter_dict, update = collections["devices"].update_one.call_args[0]
        assert filter_dict == {"_id": "dev_1"}
        assert update["$set"]["inherited_notification_point_ids"] is None

    @pytest.mark.asyncio
    async def test_driver_error_becomes_database_error(self, mongo_db, collections):
        collections["devices"].find_one.side_effect = PyMongoError("connection lost")
        repo = MongoDeviceRepository(mongo_db)

        with pytest.raises(DatabaseError) as exc:
            await repo.get("dev_1")

        assert "devices" in str(exc.value)


class TestMongoOwnerRepositories:
    @pytest.mark.asyncio
    async def test_elder_find_by_device(self, mongo_db, collections):
        collections["elders"].find.return_value.to_list.return_value = [
            {
                "_id": "elder_1",
                "tenant_id": "tenant_a",
                "device_id": "dev_1",
                "updated_at": NOW.isoformat(),
            }
        ]
        repo = MongoElderRepository(mongo_db)

        elders = await repo.find_by_device("dev_1")

        assert [e.elder_id for e in elders] == ["elder_1"]
        assert elders[0].is_active is True

    @pytest.mark.asyncio
    async def test_map_user_collection(self, mongo_db, collections):
        repo = MongoMapUserRepository(mongo_db)

        await repo.find_by_bound_device("dev_1")

        collections["app_users"].find.assert_called_once_with({"bound_device_id": "dev_1"})


class TestMongoActivityStore:
    @pytest.mark.asyncio
    async def test_first_page_sorted_and_limited(self, mongo_db, collections):
        cursor = collections["activities"].find.return_value
        cursor.to_list.return_value = [
            {"_id": "a1", "device_id": "dev_1", "timestamp": NOW.isoformat()}
        ]
        store = MongoActivityStore(mongo_db)

        page = await store.first_page("dev_1", 500)

        assert page[0].activity_id == "a1"
        cursor.sort.assert_called_once_with([("_id", 1)])
        cursor.limit.assert_called_once_with(500)

    def test_anonymized_document_drops_owner(self, mongo_db):
        store = MongoActivityStore(mongo_db)
        activity = Activity(activity_id="a1", device_id="dev_1", timestamp=NOW, rssi=-70)
        record = AnonymizedActivity.from_activity(
            activity, ArchiveReason.REBIND, ArchiveSessionId.generate(), NOW
        )

        doc = store.to_anonymized_document(record)

        assert doc["binding_type"] == "ANONYMOUS"
        assert doc["bound_to"] is None
        assert doc["anonymized_reason"] == "REBIND"
        assert doc["original_activity_id"] == "a1"
        assert store.from_anonymized_document(doc).rssi == -70


class TestMongoNotificationPointRepository:
    @pytest.mark.asyncio
    async def test_active_tenant_points(self, mongo_db, collections):
        collections["notification_points"].find.return_value.to_list.return_value = [
            {"_id": "np_1", "gateway_id": "gw_1", "tenant_id": "tenant_a"}
        ]
        repo = MongoNotificationPointRepository(mongo_db)

        points = await repo.find_active_for_tenant("tenant_a")

        assert points[0].gateway_id == "gw_1"
        collections["notification_points"].find.assert_called_once_with(
            {"tenant_id": "tenant_a", "is_active": True}
        )


@pytest.fixture
def session():
    session = MagicMock()
    session.__aenter__.return_value = session
    session.__aexit__.return_value = False
    transaction = MagicMock()
    transaction.__aexit__.return_value = False
    session.start_transaction = MagicMock(return_value=transaction)
    return session


@pytest.fixture
def batch_factory(mongo_db, session):
    client = MagicMock()
    client.start_session = AsyncMock(return_value=session)
    return MongoBatchFactory(
        client,
        MongoDeviceRepository(mongo_db),
        MongoElderRepository(mongo_db),
        MongoMapUserRepository(mongo_db),
        MongoActivityStore(mongo_db),
        MongoNotificationPointRepository(mongo_db),
        max_operations=1000,
    )


class TestMongoWriteBatch:
    @pytest.mark.asyncio
    async def test_commit_runs_every_operation_in_session(
        self, batch_factory, collections, session
    ):
        batch = batch_factory.new_batch()
        batch.save_device(bound_device())
        batch.delete_activity("a1")
        batch.set_inherited_points("dev_1", ["gw_1"])

        await batch.commit()

        session.start_transaction.assert_called_once()
        assert collections["devices"].replace_one.call_args.kwargs == {
            "session": session,
            "upsert": True,
        }
        collections["activities"].delete_one.assert_awaited_once_with(
            {"_id": "a1"}, session=session
        )
        assert collections["devices"].update_one.await_count == 1
        assert len(batch) == 0

    @pytest.mark.asyncio
    async def test_empty_batch_opens_no_session(self, batch_factory):
        await batch_factory.new_batch().commit()

        batch_factory.client.start_session.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_transaction_failure(self, batch_factory, collections):
        collections["activities"].delete_one.side_effect = OperationFailure("aborted")
        batch = batch_factory.new_batch()
        batch.delete_activity("a1")

        with pytest.raises(DatabaseError):
            await batch.commit()

    @pytest.mark.asyncio
    async def test_limit_checked_before_session(self, batch_factory):
        batch_factory.max_operations = 1
        batch = batch_factory.new_batch()
        batch.delete_activity("a1")
        batch.delete_activity("a2")

        with pytest.raises(BatchLimitExceededError):
            await batch.commit()

        batch_factory.client.start_session.assert_not_awaited()
