"""Unbind map user device command."""

from dataclasses import dataclass

from beacontrack.application.binding.authorization import AccessPolicy
from beacontrack.application.binding.lifecycle_manager import BindingLifecycleManager
from beacontrack.domain.admin.models import Principal
from beacontrack.domain.device.models import Device


@dataclass
class UnbindMapUserDeviceCommand:
    """Command for a map user to release the device it holds.

    Examples:
        >>> command = UnbindMapUserDeviceCommand(manager, policy)
        >>> device = await command.execute(caller, "user_1")
        >>> device.is_bound
        False
    """

    manager: BindingLifecycleManager
    policy: AccessPolicy

    async def execute(self, principal: Principal, user_id: str) -> Device:
        """Execute unbind map user device command.

        Raises:
            AuthorizationError: If caller is neither the user nor an administrator
            UserNotFoundError: If user doesn't exist
            AccountDeletedError: If user's account is deleted
            NoBoundDeviceError: If user holds no device
        """
        await self.policy.ensure_can_manage_map_user(principal, user_id)
        return await self.manager.unbind_map_user(user_id)
