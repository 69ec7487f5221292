"""Wires the use cases over a set of persistence ports."""

from dataclasses import dataclass

from beacontrack.application.archival.pipeline import ActivityArchivalPipeline
from beacontrack.application.binding.authorization import AccessPolicy
from beacontrack.application.binding.commands import (
    ArchiveDeviceActivitiesCommand,
    BindDeviceToElderCommand,
    BindDeviceToMapUserCommand,
    DeactivateElderCommand,
    RecomputeInheritanceCommand,
    UnbindDeviceCommand,
    UnbindMapUserDeviceCommand,
    UpdateDeviceTagsCommand,
)
from beacontrack.application.binding.lifecycle_manager import BindingLifecycleManager
from beacontrack.application.inheritance.resolver import NotificationInheritanceResolver
from beacontrack.application.maintenance.ghost_cleanup import GhostActivityCleanup
from beacontrack.domain.activity.ports import IActivityStore
from beacontrack.domain.admin.ports import IAdminRepository
from beacontrack.domain.device.ports import IDeviceRepository
from beacontrack.domain.notification.ports import INotificationPointRepository
from beacontrack.domain.owner.ports import IElderRepository, IMapUserRepository
from beacontrack.domain.shared.ports.write_batch import IBatchFactory


@dataclass
class BindingServices:
    """Every use case the transport layer and scripts call."""

    archival: ActivityArchivalPipeline
    resolver: NotificationInheritanceResolver
    manager: BindingLifecycleManager
    policy: AccessPolicy
    ghost_cleanup: GhostActivityCleanup
    bind_device_to_elder: BindDeviceToElderCommand
    bind_device_to_map_user: BindDeviceToMapUserCommand
    unbind_device: UnbindDeviceCommand
    unbind_map_user_device: UnbindMapUserDeviceCommand
    deactivate_elder: DeactivateElderCommand
    update_device_tags: UpdateDeviceTagsCommand
    recompute_inheritance: RecomputeInheritanceCommand
    archive_device_activities: ArchiveDeviceActivitiesCommand


def build_services(
    devices: IDeviceRepository,
    elders: IElderRepository,
    map_users: IMapUserRepository,
    activities: IActivityStore,
    notification_points: INotificationPointRepository,
    admins: IAdminRepository,
    batches: IBatchFactory,
    page_size: int,
) -> BindingServices:
    """Build the pipeline, resolver, manager, policy and commands."""
    archival = ActivityArchivalPipeline(activities, batches, page_size)
    resolver = NotificationInheritanceResolver(devices, notification_points, batches)
    manager = BindingLifecycleManager(
        devices, elders, map_users, notification_points, batches, archival, resolver
    )
    policy = AccessPolicy(admins, elders, devices)

    return BindingServices(
        archival=archival,
        resolver=resolver,
        manager=manager,
        policy=policy,
        ghost_cleanup=GhostActivityCleanup(devices, activities, archival),
        bind_device_to_elder=BindDeviceToElderCommand(manager, policy),
        bind_device_to_map_user=BindDeviceToMapUserCommand(manager, policy),
        unbind_device=UnbindDeviceCommand(manager, policy),
        unbind_map_user_device=UnbindMapUserDeviceCommand(manager, policy),
        deactivate_elder=DeactivateElderCommand(manager, policy),
        update_device_tags=UpdateDeviceTagsCommand(manager, policy, devices),
        recompute_inheritance=RecomputeInheritanceCommand(resolver, policy, devices),
        archive_device_activities=ArchiveDeviceActivitiesCommand(archival, policy, devices),
    )
