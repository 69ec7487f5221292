"""Archive device activities command."""

from dataclasses import dataclass

from beacontrack.application.archival.pipeline import ActivityArchivalPipeline, ArchivalResult
from beacontrack.application.binding.authorization import AccessPolicy
from beacontrack.domain.activity.models import ArchiveReason
from beacontrack.domain.admin.models import Principal
from beacontrack.domain.device.ports import IDeviceRepository
from beacontrack.domain.shared.errors import DeviceNotFoundError


@dataclass
class ArchiveDeviceActivitiesCommand:
    """Administrative command to (re-)run archival for one device.

    Used to finish an archival that failed during an unbind. Returns the
    result as is, failed or not.

    Examples:
        >>> command = ArchiveDeviceActivitiesCommand(pipeline, policy, devices)
        >>> result = await command.execute(admin, "dev_1")
        >>> result.succeeded
        True
    """

    pipeline: ActivityArchivalPipeline
    policy: AccessPolicy
    devices: IDeviceRepository

    async def execute(
        self,
        principal: Principal,
        device_id: str,
        reason: ArchiveReason = ArchiveReason.GHOST_DEVICE_CLEANUP,
    ) -> ArchivalResult:
        device = await self.devices.get(device_id)
        if device is None:
            raise DeviceNotFoundError(device_id)

        await self.policy.ensure_can_administer_device(principal, device.tenant_scope)
        return await self.pipeline.archive(device_id, reason)
