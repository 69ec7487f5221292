"""Binding command objects: authorization, then delegation to the manager."""

from beacontrack.application.binding.commands.archive_device_activities import (
    ArchiveDeviceActivitiesCommand,
)
from beacontrack.application.binding.commands.bind_device_to_elder import (
    BindDeviceToElderCommand,
)
from beacontrack.application.binding.commands.bind_device_to_map_user import (
    BindDeviceToMapUserCommand,
)
from beacontrack.application.binding.commands.deactivate_elder import DeactivateElderCommand
from beacontrack.application.binding.commands.recompute_inheritance import (
    RecomputeInheritanceCommand,
)
from beacontrack.application.binding.commands.unbind_device import UnbindDeviceCommand
from beacontrack.application.binding.commands.unbind_map_user_device import (
    UnbindMapUserDeviceCommand,
)
from beacontrack.application.binding.commands.update_device_tags import (
    UpdateDeviceTagsCommand,
)

__all__ = [
    "ArchiveDeviceActivitiesCommand",
    "BindDeviceToElderCommand",
    "BindDeviceToMapUserCommand",
    "DeactivateElderCommand",
    "RecomputeInheritanceCommand",
    "UnbindDeviceCommand",
    "UnbindMapUserDeviceCommand",
    "UpdateDeviceTagsCommand",
]
