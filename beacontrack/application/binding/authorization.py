"""Access policy for binding operations.

Map-app callers may only act on their own MapUser record. Elder operations
need SUPER_ADMIN, or TENANT_ADMIN of the elder's tenant. Elevation comes
from the administrator registry, not from the caller's own claims alone.
"""

from __future__ import annotations

from typing import Optional

import structlog

from beacontrack.domain.admin.models import Principal
from beacontrack.domain.admin.ports import IAdminRepository
from beacontrack.domain.device.models import BindingType
from beacontrack.domain.device.ports import IDeviceRepository
from beacontrack.domain.owner.ports import IElderRepository
from beacontrack.domain.shared.errors import AuthorizationError

logger = structlog.get_logger(__name__)


class AccessPolicy:
    """Decides whether a principal may run a binding operation.

    Every ``ensure_*`` method raises AuthorizationError or returns the
    effective (possibly elevated) principal. Missing targets are let
    through for administrators so that the manager reports the precise
    not-found code.
    """

    def __init__(
        self,
        admins: IAdminRepository,
        elders: IElderRepository,
        devices: IDeviceRepository,
    ):
        self._admins = admins
        self._elders = elders
        self._devices = devices

    async def effective(self, principal: Principal) -> Principal:
        """Principal with role and tenant taken from the administrator registry."""
        admin = await self._admins.get(principal.principal_id)
        if admin is None:
            return principal
        return Principal(
            principal_id=principal.principal_id,
            role=admin.role,
            tenant_id=admin.tenant_id,
        )

    async def ensure_can_manage_map_user(self, principal: Principal, user_id: str) -> Principal:
        """Self, or any administrator."""
        if principal.principal_id == user_id:
            return principal
        caller = await self.effective(principal)
        if caller.is_admin:
            return caller
        raise self._deny(caller, f"{caller.principal_id} cannot act on map user {user_id}")

    async def ensure_can_manage_elder(self, principal: Principal, elder_id: str) -> Principal:
        """SUPER_ADMIN, or TENANT_ADMIN of the elder's tenant."""
        caller = await self.effective(principal)
        elder = await self._elders.get(elder_id)
        tenant_id = elder.tenant_id if elder is not None else None

        if caller.is_super_admin or (elder is None and caller.is_admin):
            return caller
        if caller.administers_tenant(tenant_id):
            return caller
        raise self._deny(caller, f"{caller.principal_id} cannot act on elder {elder_id}")

    async def ensure_can_unbind(self, principal: Principal, device_id: str) -> Principal:
        """Depends on who holds the device.

        ELDER: administrator of the elder's tenant. MAP_USER: the holder or
        any administrator. UNBOUND: administrator of the device's tenant.
        """
        device = await self._devices.get(device_id)
        if device is None:
            caller = await self.effective(principal)
            if caller.is_admin:
                return caller
            raise self._deny(caller, f"{caller.principal_id} cannot unbind {device_id}")

        if device.binding_type == BindingType.MAP_USER:
            return await self.ensure_can_manage_map_user(principal, device.bound_to or "")
        if device.binding_type == BindingType.ELDER:
            return await self.ensure_can_manage_elder(principal, device.bound_to or "")
        return await self.ensure_can_administer_device(principal, device.tenant_scope)

    async def ensure_can_administer_device(
        self, principal: Principal, tenant_id: Optional[str]
    ) -> Principal:
        """SUPER_ADMIN, or TENANT_ADMIN of the device's effective tenant."""
        caller = await self.effective(principal)
        if caller.administers_tenant(tenant_id):
            return caller
        raise self._deny(caller, f"{caller.principal_id} does not administer tenant {tenant_id}")

    @staticmethod
    def _deny(caller: Principal, message: str) -> AuthorizationError:
        logger.warning(
            "authorization.denied",
            principal_id=caller.principal_id,
            role=caller.role.value if caller.role else None,
            detail=message,
        )
        return AuthorizationError(message)
