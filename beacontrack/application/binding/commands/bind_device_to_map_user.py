"""Bind device to map user command."""

from dataclasses import dataclass
from typing import Optional

from beacontrack.application.binding.authorization import AccessPolicy
from beacontrack.application.binding.lifecycle_manager import BindingLifecycleManager
from beacontrack.domain.admin.models import Principal
from beacontrack.domain.device.models import Device
from beacontrack.domain.shared.value_objects import MapUserProfile


@dataclass
class BindDeviceToMapUserCommand:
    """Command to hand a device, by id or product serial, to a map user.

    Examples:
        >>> command = BindDeviceToMapUserCommand(manager, policy)
        >>> device = await command.execute(caller, "ABCDEF1234", "user_1")
        >>> device.bound_to
        'user_1'
    """

    manager: BindingLifecycleManager
    policy: AccessPolicy

    async def execute(
        self,
        principal: Principal,
        device_or_serial: str,
        user_id: str,
        profile: Optional[MapUserProfile] = None,
    ) -> Device:
        """Execute bind device to map user command.

        Raises:
            AuthorizationError: If caller is neither the user nor an administrator
            DeviceNotFoundError: If neither id nor serial matches
            UserNotFoundError: If user doesn't exist
            AccountDeletedError: If user's account is deleted
            AlreadyBoundError: If an elder or another user holds the device
        """
        await self.policy.ensure_can_manage_map_user(principal, user_id)
        return await self.manager.bind_to_map_user(device_or_serial, user_id, profile)
