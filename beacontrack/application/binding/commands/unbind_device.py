"""Unbind device command."""

from dataclasses import dataclass

from beacontrack.application.binding.authorization import AccessPolicy
from beacontrack.application.binding.lifecycle_manager import BindingLifecycleManager
from beacontrack.domain.admin.models import Principal
from beacontrack.domain.device.models import Device


@dataclass
class UnbindDeviceCommand:
    """Command to return a device to UNBOUND, whatever holds it."""

    manager: BindingLifecycleManager
    policy: AccessPolicy

    async def execute(self, principal: Principal, device_id: str) -> Device:
        """Execute unbind device command.

        Raises:
            AuthorizationError: If caller may not release this device
            DeviceNotFoundError: If device doesn't exist
        """
        await self.policy.ensure_can_unbind(principal, device_id)
        return await self.manager.unbind(device_id)
