"""Shared fixtures: an in-memory store with the binding services wired on top."""

from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, List, Optional

import pytest

from beacontrack.application.services import BindingServices, build_services
from beacontrack.domain.activity.models import Activity
from beacontrack.domain.admin.models import AdminRole, AdminUser, Principal
from beacontrack.domain.device.models import Device
from beacontrack.domain.notification.models import NotificationPoint
from beacontrack.domain.owner.models import Elder, MapUser
from beacontrack.domain.shared.value_objects import BeaconIdentity
from beacontrack.infrastructure.persistence.factory import (
    Persistence,
    create_in_memory_persistence,
)
from beacontrack.infrastructure.persistence.in_memory.store import (
    InMemoryBatchFactory,
    InMemoryDatabase,
)

SERVICE_ID = "fda50693-a4e2-4fb1-afcf-c6eb07647825"
BASE_TIME = datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)


def make_device(number: int, tags: Optional[List[str]] = None) -> Device:
    """UNBOUND device ``dev_<number>`` with serial ``ABCDEF<number:04d>``."""
    return Device.register(
        device_id=f"dev_{number}",
        identity=BeaconIdentity(service_id=SERVICE_ID, group_number=1, unit_number=number),
        serial=f"ABCDEF{number:04d}",
        tags=tags,
    )


def make_activities(device_id: str, count: int) -> List[Activity]:
    return [
        Activity(
            activity_id=f"{device_id}_act_{i:05d}",
            device_id=device_id,
            timestamp=BASE_TIME + timedelta(minutes=i),
            gateway_id=f"gw_{i % 3}",
            gateway_name=f"Gateway {i % 3}",
            gateway_type="SAFE_ZONE",
            latitude=25.03,
            longitude=121.56,
            rssi=-60 - (i % 20),
            binding_type="ELDER",
        )
        for i in range(count)
    ]


@pytest.fixture
def db() -> InMemoryDatabase:
    return InMemoryDatabase()


@pytest.fixture
def persistence(db: InMemoryDatabase) -> Persistence:
    return create_in_memory_persistence(db)


@pytest.fixture
def batches(persistence: Persistence) -> InMemoryBatchFactory:
    """Batch factory exposing commit counters and failure injection."""
    assert isinstance(persistence.batches, InMemoryBatchFactory)
    return persistence.batches


@pytest.fixture
def services(persistence: Persistence) -> BindingServices:
    return build_services(
        devices=persistence.devices,
        elders=persistence.elders,
        map_users=persistence.map_users,
        activities=persistence.activities,
        notification_points=persistence.notification_points,
        admins=persistence.admins,
        batches=persistence.batches,
        page_size=500,
    )


@pytest.fixture
def add_device(persistence: Persistence) -> Callable[..., Awaitable[Device]]:
    async def _add(number: int, tags: Optional[List[str]] = None) -> Device:
        device = make_device(number, tags)
        await persistence.devices.save(device)
        return device

    return _add


@pytest.fixture
def add_elder(persistence: Persistence) -> Callable[..., Awaitable[Elder]]:
    async def _add(elder_id: str, tenant_id: str = "tenant_a", is_active: bool = True) -> Elder:
        elder = Elder(elder_id=elder_id, tenant_id=tenant_id, name=elder_id, is_active=is_active)
        await persistence.elders.save(elder)
        return elder

    return _add


@pytest.fixture
def add_map_user(persistence: Persistence) -> Callable[..., Awaitable[MapUser]]:
    async def _add(
        user_id: str, push_token: Optional[str] = None, is_deleted: bool = False
    ) -> MapUser:
        user = MapUser(user_id=user_id, push_token=push_token, is_deleted=is_deleted)
        await persistence.map_users.save(user)
        return user

    return _add


@pytest.fixture
def add_activities(persistence: Persistence) -> Callable[..., Awaitable[List[Activity]]]:
    async def _add(device_id: str, count: int) -> List[Activity]:
        activities = make_activities(device_id, count)
        for activity in activities:
            await persistence.activities.add(activity)
        return activities

    return _add


@pytest.fixture
def add_tenant_point(persistence: Persistence) -> Callable[..., Awaitable[NotificationPoint]]:
    async def _add(
        point_id: str, tenant_id: str, gateway_id: str, is_active: bool = True
    ) -> NotificationPoint:
        point = NotificationPoint(
            point_id=point_id, gateway_id=gateway_id, tenant_id=tenant_id, is_active=is_active
        )
        await persistence.notification_points.add(point)
        return point

    return _add


@pytest.fixture
def super_admin(db: InMemoryDatabase) -> Principal:
    db.admins["admin_root"] = AdminUser(admin_id="admin_root", role=AdminRole.SUPER_ADMIN)
    return Principal(principal_id="admin_root")


@pytest.fixture
def tenant_admin(db: InMemoryDatabase) -> Principal:
    db.admins["admin_a"] = AdminUser(
        admin_id="admin_a", role=AdminRole.TENANT_ADMIN, tenant_id="tenant_a"
    )
    return Principal(principal_id="admin_a")
