"""Update device tags command."""

from dataclasses import dataclass
from typing import List

from beacontrack.application.binding.authorization import AccessPolicy
from beacontrack.application.binding.lifecycle_manager import BindingLifecycleManager
from beacontrack.domain.admin.models import Principal
from beacontrack.domain.device.models import Device
from beacontrack.domain.device.ports import IDeviceRepository
from beacontrack.domain.shared.errors import DeviceNotFoundError


@dataclass
class UpdateDeviceTagsCommand:
    """Command to replace a device's tenant tags.

    Caller must administer the device's current effective tenant.
    """

    manager: BindingLifecycleManager
    policy: AccessPolicy
    devices: IDeviceRepository

    async def execute(self, principal: Principal, device_id: str, tags: List[str]) -> Device:
        """Execute update device tags command.

        Raises:
            DeviceNotFoundError: If device doesn't exist
            AuthorizationError: If caller doesn't administer the device's tenant
        """
        device = await self.devices.get(device_id)
        if device is None:
            raise DeviceNotFoundError(device_id)

        await self.policy.ensure_can_administer_device(principal, device.tenant_scope)
        return await self.manager.update_device_tags(device_id, tags)
