"""Administrator and identity ports (interfaces)."""

from abc import ABC, abstractmethod
from typing import Optional

from beacontrack.domain.admin.models import AdminUser, Principal


class IAdminRepository(ABC):
    """Repository interface for administrator records."""

    @abstractmethod
    async def get(self, admin_id: str) -> Optional[AdminUser]:
        pass

    @abstractmethod
    async def save(self, admin: AdminUser) -> None:
        pass


class ITokenVerifier(ABC):
    """Turns a bearer credential into a Principal."""

    @abstractmethod
    async def verify(self, token: str) -> Principal:
        """Verify a bearer credential.

        Raises:
            AuthorizationError: If the credential is missing, invalid or expired
        """
        pass
