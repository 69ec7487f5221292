"""Atomic write batch port.

Every binding change and every archival page is applied through one batch,
so that the device, its owners and the activity records commit together or
not at all.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from beacontrack.domain.activity.models import AnonymizedActivity
from beacontrack.domain.device.models import Device
from beacontrack.domain.owner.models import Elder, MapUser


class IWriteBatch(ABC):
    """Collects writes; nothing is visible until ``commit`` succeeds."""

    @abstractmethod
    def save_device(self, device: Device) -> None:
        pass

    @abstractmethod
    def save_elder(self, elder: Elder) -> None:
        pass

    @abstractmethod
    def save_map_user(self, user: MapUser) -> None:
        pass

    @abstractmethod
    def set_inherited_points(
        self, device_id: str, gateway_ids: Optional[List[str]]
    ) -> None:
        """Field-level update of a device's inherited points."""
        pass

    @abstractmethod
    def add_anonymized_activity(self, record: AnonymizedActivity) -> None:
        pass

    @abstractmethod
    def delete_activity(self, activity_id: str) -> None:
        pass

    @abstractmethod
    def delete_notification_point(self, point_id: str) -> None:
        pass

    @abstractmethod
    def __len__(self) -> int:
        """Number of staged operations."""
        pass

    @abstractmethod
    async def commit(self) -> None:
        """Apply every staged operation atomically.

        Raises:
            BatchLimitExceededError: If the batch holds too many operations
            InfrastructureError: If the store rejects the commit
        """
        pass


class IBatchFactory(ABC):
    """Creates write batches against one store."""

    @abstractmethod
    def new_batch(self) -> IWriteBatch:
        pass
