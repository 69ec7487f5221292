"""Bind device to elder command."""

from dataclasses import dataclass

from beacontrack.application.binding.authorization import AccessPolicy
from beacontrack.application.binding.lifecycle_manager import BindingLifecycleManager
from beacontrack.domain.admin.models import Principal
from beacontrack.domain.device.models import Device


@dataclass
class BindDeviceToElderCommand:
    """Command to hand a device to an elder.

    Examples:
        >>> command = BindDeviceToElderCommand(manager, policy)
        >>> device = await command.execute(admin, "dev_1", "elder_1")
        >>> device.binding_type
        <BindingType.ELDER: 'ELDER'>
    """

    manager: BindingLifecycleManager
    policy: AccessPolicy

    async def execute(self, principal: Principal, device_id: str, elder_id: str) -> Device:
        """Execute bind device to elder command.

        Args:
            principal: Verified caller
            device_id: Device to bind
            elder_id: Target elder

        Returns:
            Bound device

        Raises:
            AuthorizationError: If caller doesn't administer the elder's tenant
            DeviceNotFoundError: If device doesn't exist
            OwnerNotFoundError: If elder doesn't exist or is inactive
            AlreadyBoundError: If a map user holds the device
        """
        await self.policy.ensure_can_manage_elder(principal, elder_id)
        return await self.manager.bind_to_elder(device_id, elder_id)
