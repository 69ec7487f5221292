"""Device repository port (interface)."""

from abc import ABC, abstractmethod
from typing import List, Optional

from beacontrack.domain.device.models import BindingType, Device


class IDeviceRepository(ABC):
    """Repository interface for the Device aggregate.

    Binding changes are never saved through this port directly: they go
    through a write batch so that the device and its owners commit
    atomically. ``save`` is for tag and inheritance bookkeeping.
    """

    @abstractmethod
    async def get(self, device_id: str) -> Optional[Device]:
        """Find device by id.

        Returns:
            Device if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_by_serial(self, serial: str) -> Optional[Device]:
        """Find device by product serial (already normalized upper-case)."""
        pass

    @abstractmethod
    async def find_bound_to(self, owner_id: str, binding_type: BindingType) -> List[Device]:
        """Find every device whose bound_to is owner_id with the given type.

        Note:
            More than one result means a stale back-reference that the
            binding manager must correct.
        """
        pass

    @abstractmethod
    async def find_by_tag(self, tag: str) -> List[Device]:
        """Find devices whose tags contain the given tag (array-contains)."""
        pass

    @abstractmethod
    async def find_by_binding_type(self, binding_type: BindingType) -> List[Device]:
        """Find devices currently in the given binding state."""
        pass

    @abstractmethod
    async def save(self, device: Device) -> None:
        """Create or replace a device document."""
        pass

    @abstractmethod
    async def set_inherited_points(
        self, device_id: str, gateway_ids: Optional[List[str]]
    ) -> None:
        """Persist inherited notification-point gateway ids (None clears)."""
        pass
