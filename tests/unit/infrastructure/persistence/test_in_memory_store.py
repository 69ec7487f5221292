"""Tests for the in-memory repositories and write batch."""

import pytest

from beacontrack.domain.device.models import BindingType, Device
from beacontrack.domain.shared.errors import BatchLimitExceededError, DatabaseError
from beacontrack.domain.shared.value_objects import BeaconIdentity
from beacontrack.infrastructure.persistence.in_memory.store import InMemoryBatchFactory

IDENTITY = BeaconIdentity(
    service_id="fda50693-a4e2-4fb1-afcf-c6eb07647825", group_number=1, unit_number=1
)


def make_device(number: int) -> Device:
    return Device.register(f"dev_{number}", IDENTITY, f"ABCDEF{number:04d}")


class TestRepositories:
    @pytest.mark.asyncio
    async def test_reads_are_copies(self, persistence):
        await persistence.devices.save(make_device(1))

        loaded = await persistence.devices.get("dev_1")
        loaded.tags.append("mutated")

        assert (await persistence.devices.get("dev_1")).tags == []

    @pytest.mark.asyncio
    async def test_find_bound_to_filters_binding_type(self, persistence):
        device = make_device(1)
        device.bind(BindingType.ELDER, "owner_1")
        await persistence.devices.save(device)

        assert await persistence.devices.find_bound_to("owner_1", BindingType.ELDER)
        assert await persistence.devices.find_bound_to("owner_1", BindingType.MAP_USER) == []

    @pytest.mark.asyncio
    async def test_first_page_ordered_by_id(self, persistence, add_activities):
        await add_activities("dev_1", 5)

        page = await persistence.activities.first_page("dev_1", 3)

        assert [a.activity_id for a in page] == [
            "dev_1_act_00000",
            "dev_1_act_00001",
            "dev_1_act_00002",
        ]


class TestWriteBatch:
    @pytest.mark.asyncio
    async def test_nothing_visible_before_commit(self, persistence, db):
        batch = persistence.batches.new_batch()
        batch.save_device(make_device(1))

        assert "dev_1" not in db.devices
        await batch.commit()
        assert "dev_1" in db.devices

    @pytest.mark.asyncio
    async def test_failed_commit_applies_nothing(self, db):
        batches = InMemoryBatchFactory(db, fail_on_attempts={1})
        batch = batches.new_batch()
        batch.save_device(make_device(1))
        batch.save_device(make_device(2))

        with pytest.raises(DatabaseError):
            await batch.commit()

        assert db.devices == {}
        assert batches.attempts == 1
        assert batches.committed == 0

    @pytest.mark.asyncio
    async def test_operation_limit(self, db):
        batches = InMemoryBatchFactory(db, max_operations=2)
        batch = batches.new_batch()
        for number in range(3):
            batch.save_device(make_device(number))

        assert len(batch) == 3
        with pytest.raises(BatchLimitExceededError) as exc:
            await batch.commit()

        assert exc.value.limit == 2
        assert batches.attempts == 0

    @pytest.mark.asyncio
    async def test_set_inherited_points_on_missing_device_is_ignored(self, persistence, db):
        batch = persistence.batches.new_batch()
        batch.set_inherited_points("missing", ["gw_1"])

        await batch.commit()

        assert "missing" not in db.devices

    def test_default_limit_is_two_pages(self, db):
        assert InMemoryBatchFactory(db).max_operations == 1000
