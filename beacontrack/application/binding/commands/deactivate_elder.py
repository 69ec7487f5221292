"""Deactivate elder command."""

from dataclasses import dataclass

from beacontrack.application.binding.authorization import AccessPolicy
from beacontrack.application.binding.lifecycle_manager import BindingLifecycleManager
from beacontrack.domain.admin.models import Principal
from beacontrack.domain.owner.models import Elder


@dataclass
class DeactivateElderCommand:
    """Command to soft-delete an elder.

    The elder's device is released first and its activities archived as
    ELDER_DELETION.
    """

    manager: BindingLifecycleManager
    policy: AccessPolicy

    async def execute(self, principal: Principal, elder_id: str) -> Elder:
        await self.policy.ensure_can_manage_elder(principal, elder_id)
        return await self.manager.deactivate_elder(elder_id)
