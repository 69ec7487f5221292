"""Ghost activity cleanup.

A ghost device is an UNBOUND device that still carries live activities,
typically left behind by an unbind whose archival failed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

import structlog

from beacontrack.application.archival.pipeline import ActivityArchivalPipeline
from beacontrack.domain.activity.models import ArchiveReason
from beacontrack.domain.activity.ports import IActivityStore
from beacontrack.domain.device.models import BindingType
from beacontrack.domain.device.ports import IDeviceRepository

logger = structlog.get_logger(__name__)


@dataclass
class CleanupStats:
    """Sweep report. ``ghost_devices`` maps device id to live count found."""

    dry_run: bool
    scanned_devices: int = 0
    ghost_devices: Dict[str, int] = field(default_factory=dict)
    archived_count: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def ghost_activity_count(self) -> int:
        return sum(self.ghost_devices.values())


@dataclass
class GhostActivityCleanup:
    """Archives live activities still attached to UNBOUND devices.

    Examples:
        >>> cleanup = GhostActivityCleanup(devices, activities, pipeline)
        >>> stats = await cleanup.run(dry_run=True)
        >>> stats.archived_count
        0
    """

    devices: IDeviceRepository
    activities: IActivityStore
    pipeline: ActivityArchivalPipeline

    async def run(self, dry_run: bool = True) -> CleanupStats:
        """Sweep every UNBOUND device.

        Per-device failures are collected in ``errors``; the sweep never
        stops early.
        """
        stats = CleanupStats(dry_run=dry_run)
        unbound = await self.devices.find_by_binding_type(BindingType.UNBOUND)

        for device in unbound:
            stats.scanned_devices += 1
            live = await self.activities.count_live(device.device_id)
            if live == 0:
                continue

            stats.ghost_devices[device.device_id] = live
            logger.info(
                "ghost_cleanup.device_found",
                device_id=device.device_id,
                live_activities=live,
                dry_run=dry_run,
            )
            if dry_run:
                continue

            result = await self.pipeline.archive(
                device.device_id, ArchiveReason.GHOST_DEVICE_CLEANUP
            )
            stats.archived_count += result.archived_count
            if result.failed:
                stats.errors.append(f"{device.device_id}: {result.error}")

        logger.info(
            "ghost_cleanup.finished",
            dry_run=dry_run,
            scanned_devices=stats.scanned_devices,
            ghost_devices=len(stats.ghost_devices),
            archived_count=stats.archived_count,
            errors=len(stats.errors),
        )
        return stats
