"""In-memory repositories sharing one InMemoryDatabase.

Entities are deep-copied on every read and write so callers never share
state with the store, matching the document store's value semantics.
Write batches apply all staged operations at once on commit, or none.

Examples:
    >>> db = InMemoryDatabase()
    >>> devices = InMemoryDeviceRepository(db)
    >>> batches = InMemoryBatchFactory(db)
    >>> batch = batches.new_batch()
    >>> batch.save_device(device)
    >>> await batch.commit()
    >>> batches.committed
    1
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Set

from beacontrack.domain.activity.models import Activity, AnonymizedActivity
from beacontrack.domain.activity.ports import IActivityStore
from beacontrack.domain.admin.models import AdminUser
from beacontrack.domain.admin.ports import IAdminRepository
from beacontrack.domain.device.models import BindingType, Device, utc_now
from beacontrack.domain.device.ports import IDeviceRepository
from beacontrack.domain.notification.models import NotificationPoint
from beacontrack.domain.notification.ports import INotificationPointRepository
from beacontrack.domain.owner.models import Elder, MapUser
from beacontrack.domain.owner.ports import IElderRepository, IMapUserRepository
from beacontrack.domain.shared.errors import BatchLimitExceededError, DatabaseError
from beacontrack.domain.shared.ports.write_batch import IBatchFactory, IWriteBatch
from beacontrack.infrastructure.config import get_batch_operation_limit


class InMemoryDatabase:
    """Collections keyed by document id."""

    def __init__(self) -> None:
        self.devices: Dict[str, Device] = {}
        self.elders: Dict[str, Elder] = {}
        self.map_users: Dict[str, MapUser] = {}
        self.activities: Dict[str, Activity] = {}
        self.anonymized: Dict[str, AnonymizedActivity] = {}
        self.notification_points: Dict[str, NotificationPoint] = {}
        self.admins: Dict[str, AdminUser] = {}

    def clear(self) -> None:
        """Remove every document (for testing)."""
        for collection in vars(self).values():
            collection.clear()


# ═══════════════════════════════════════════════════════════
# REPOSITORIES
# ═══════════════════════════════════════════════════════════


class InMemoryDeviceRepository(IDeviceRepository):
    """In-memory implementation of the device repository."""

    def __init__(self, db: InMemoryDatabase):
        self._db = db

    async def get(self, device_id: str) -> Optional[Device]:
        return deepcopy(self._db.devices.get(device_id))

    async def find_by_serial(self, serial: str) -> Optional[Device]:
        for device in self._db.devices.values():
            if device.serial == serial:
                return deepcopy(device)
        return None

    async def find_bound_to(self, owner_id: str, binding_type: BindingType) -> List[Device]:
        return [
            deepcopy(d)
            for d in self._db.devices.values()
            if d.bound_to == owner_id and d.binding_type == binding_type
        ]

    async def find_by_tag(self, tag: str) -> List[Device]:
        return [deepcopy(d) for d in self._db.devices.values() if tag in d.tags]

    async def find_by_binding_type(self, binding_type: BindingType) -> List[Device]:
        return [deepcopy(d) for d in self._db.devices.values() if d.binding_type == binding_type]

    async def save(self, device: Device) -> None:
        self._db.devices[device.device_id] = deepcopy(device)

    async def set_inherited_points(
        self, device_id: str, gateway_ids: Optional[List[str]]
    ) -> None:
        _set_inherited_points(self._db, device_id, gateway_ids)


class InMemoryElderRepository(IElderRepository):
    """In-memory implementation of the elder repository."""

    def __init__(self, db: InMemoryDatabase):
        self._db = db

    async def get(self, elder_id: str) -> Optional[Elder]:
        return deepcopy(self._db.elders.get(elder_id))

    async def find_by_device(self, device_id: str) -> List[Elder]:
        return [deepcopy(e) for e in self._db.elders.values() if e.device_id == device_id]

    async def save(self, elder: Elder) -> None:
        self._db.elders[elder.elder_id] = deepcopy(elder)


class InMemoryMapUserRepository(IMapUserRepository):
    """In-memory implementation of the map user repository."""

    def __init__(self, db: InMemoryDatabase):
        self._db = db

    async def get(self, user_id: str) -> Optional[MapUser]:
        return deepcopy(self._db.map_users.get(user_id))

    async def find_by_bound_device(self, device_id: str) -> List[MapUser]:
        return [
            deepcopy(u) for u in self._db.map_users.values() if u.bound_device_id == device_id
        ]

    async def save(self, user: MapUser) -> None:
        self._db.map_users[user.user_id] = deepcopy(user)


class InMemoryActivityStore(IActivityStore):
    """In-memory live activities and anonymized sink."""

    def __init__(self, db: InMemoryDatabase):
        self._db = db

    async def first_page(self, device_id: str, limit: int) -> List[Activity]:
        live = sorted(
            (a for a in self._db.activities.values() if a.device_id == device_id),
            key=lambda a: a.activity_id,
        )
        return live[:limit]

    async def count_live(self, device_id: str) -> int:
        return sum(1 for a in self._db.activities.values() if a.device_id == device_id)

    async def add(self, activity: Activity) -> None:
        self._db.activities[activity.activity_id] = activity

    async def count_anonymized(self, device_id: str) -> int:
        return sum(1 for r in self._db.anonymized.values() if r.device_id == device_id)

    async def find_by_session(self, archive_session_id: str) -> List[AnonymizedActivity]:
        return [
            r for r in self._db.anonymized.values() if r.archive_session_id == archive_session_id
        ]


class InMemoryNotificationPointRepository(INotificationPointRepository):
    """In-memory notification points (tenant and device scope)."""

    def __init__(self, db: InMemoryDatabase):
        self._db = db

    async def find_active_for_tenant(self, tenant_id: str) -> List[NotificationPoint]:
        return [
            p
            for p in self._db.notification_points.values()
            if p.tenant_id == tenant_id and p.is_active
        ]

    async def find_for_device(self, device_id: str, limit: int) -> List[NotificationPoint]:
        points = [p for p in self._db.notification_points.values() if p.device_id == device_id]
        return points[:limit]

    async def add(self, point: NotificationPoint) -> None:
        self._db.notification_points[point.point_id] = point


class InMemoryAdminRepository(IAdminRepository):
    """In-memory administrator registry."""

    def __init__(self, db: InMemoryDatabase):
        self._db = db

    async def get(self, admin_id: str) -> Optional[AdminUser]:
        return deepcopy(self._db.admins.get(admin_id))

    async def save(self, admin: AdminUser) -> None:
        self._db.admins[admin.admin_id] = deepcopy(admin)


# ═══════════════════════════════════════════════════════════
# WRITE BATCH
# ═══════════════════════════════════════════════════════════


def _set_inherited_points(
    db: InMemoryDatabase, device_id: str, gateway_ids: Optional[List[str]]
) -> None:
    device = db.devices.get(device_id)
    if device is None:
        return
    db.devices[device_id] = replace(
        device,
        inherited_notification_point_ids=list(gateway_ids) if gateway_ids is not None else None,
        updated_at=utc_now(),
    )


class InMemoryWriteBatch(IWriteBatch):
    """Stages mutations and applies them together on commit."""

    def __init__(self, factory: InMemoryBatchFactory):
        self._factory = factory
        self._db = factory.db
        self._operations: List[Callable[[], None]] = []

    def save_device(self, device: Device) -> None:
        snapshot = deepcopy(device)
        self._operations.append(lambda: self._db.devices.__setitem__(snapshot.device_id, snapshot))

    def save_elder(self, elder: Elder) -> None:
        snapshot = deepcopy(elder)
        self._operations.append(lambda: self._db.elders.__setitem__(snapshot.elder_id, snapshot))

    def save_map_user(self, user: MapUser) -> None:
        snapshot = deepcopy(user)
        self._operations.append(lambda: self._db.map_users.__setitem__(snapshot.user_id, snapshot))

    def set_inherited_points(
        self, device_id: str, gateway_ids: Optional[List[str]]
    ) -> None:
        ids = list(gateway_ids) if gateway_ids is not None else None
        self._operations.append(lambda: _set_inherited_points(self._db, device_id, ids))

    def add_anonymized_activity(self, record: AnonymizedActivity) -> None:
        self._operations.append(lambda: self._db.anonymized.__setitem__(record.record_id, record))

    def delete_activity(self, activity_id: str) -> None:
        self._operations.append(lambda: self._db.activities.pop(activity_id, None))

    def delete_notification_point(self, point_id: str) -> None:
        self._operations.append(lambda: self._db.notification_points.pop(point_id, None))

    def __len__(self) -> int:
        return len(self._operations)

    async def commit(self) -> None:
        if len(self._operations) > self._factory.max_operations:
            raise BatchLimitExceededError(self._factory.max_operations)

        self._factory.attempts += 1
        if self._factory.attempts in self._factory.fail_on_attempts:
            raise DatabaseError(f"Injected commit failure (attempt {self._factory.attempts})")

        for operation in self._operations:
            operation()
        self._operations.clear()
        self._factory.committed += 1


class InMemoryBatchFactory(IBatchFactory):
    """Creates in-memory batches and records commit statistics.

    Attributes:
        attempts: Commit attempts so far (1-based numbering)
        committed: Successful commits so far
        fail_on_attempts: Attempt numbers that raise DatabaseError instead
            of applying anything
    """

    def __init__(
        self,
        db: InMemoryDatabase,
        max_operations: Optional[int] = None,
        fail_on_attempts: Optional[Set[int]] = None,
    ):
        self.db = db
        self.max_operations = max_operations or get_batch_operation_limit()
        self.fail_on_attempts: Set[int] = set(fail_on_attempts or ())
        self.attempts = 0
        self.committed = 0

    def new_batch(self) -> InMemoryWriteBatch:
        return InMemoryWriteBatch(self)
