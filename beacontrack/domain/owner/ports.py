"""Owner repository ports (interfaces)."""

from abc import ABC, abstractmethod
from typing import List, Optional

from beacontrack.domain.owner.models import Elder, MapUser


class IElderRepository(ABC):
    """Repository interface for elders."""

    @abstractmethod
    async def get(self, elder_id: str) -> Optional[Elder]:
        """Find elder by id (active or not)."""
        pass

    @abstractmethod
    async def find_by_device(self, device_id: str) -> List[Elder]:
        """Find every elder whose back-reference points at device_id."""
        pass

    @abstractmethod
    async def save(self, elder: Elder) -> None:
        """Create or replace an elder document."""
        pass


class IMapUserRepository(ABC):
    """Repository interface for map-app users."""

    @abstractmethod
    async def get(self, user_id: str) -> Optional[MapUser]:
        """Find user by id."""
        pass

    @abstractmethod
    async def find_by_bound_device(self, device_id: str) -> List[MapUser]:
        """Find every user whose back-reference points at device_id."""
        pass

    @abstractmethod
    async def save(self, user: MapUser) -> None:
        """Create or replace a user document."""
        pass
