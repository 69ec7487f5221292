"""Recompute inheritance command."""

from dataclasses import dataclass
from typing import List, Optional

from beacontrack.application.binding.authorization import AccessPolicy
from beacontrack.application.inheritance.resolver import NotificationInheritanceResolver
from beacontrack.domain.admin.models import Principal
from beacontrack.domain.device.ports import IDeviceRepository
from beacontrack.domain.shared.errors import DeviceNotFoundError


@dataclass
class RecomputeInheritanceCommand:
    """Administrative command to recompute one device's inherited points."""

    resolver: NotificationInheritanceResolver
    policy: AccessPolicy
    devices: IDeviceRepository

    async def execute(self, principal: Principal, device_id: str) -> Optional[List[str]]:
        device = await self.devices.get(device_id)
        if device is None:
            raise DeviceNotFoundError(device_id)

        await self.policy.ensure_can_administer_device(principal, device.tenant_scope)
        return await self.resolver.recompute(device_id)
