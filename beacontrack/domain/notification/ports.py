"""Notification point repository port (interface)."""

from abc import ABC, abstractmethod
from typing import List

from beacontrack.domain.notification.models import NotificationPoint


class INotificationPointRepository(ABC):
    """Read access to tenant- and device-scoped notification points."""

    @abstractmethod
    async def find_active_for_tenant(self, tenant_id: str) -> List[NotificationPoint]:
        """Active tenant-scoped points, in store order."""
        pass

    @abstractmethod
    async def find_for_device(self, device_id: str, limit: int) -> List[NotificationPoint]:
        """Up to ``limit`` device-scoped points (active or not)."""
        pass

    @abstractmethod
    async def add(self, point: NotificationPoint) -> None:
        """Insert a point (administrative path and tests)."""
        pass
