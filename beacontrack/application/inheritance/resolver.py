"""Notification-point inheritance resolver.

A device inherits the active notification points of its effective tenant,
which is its first tag. "No tags" and "tenant has no active points" both
collapse to None so that consumers only ever test for None.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

import structlog

from beacontrack.domain.device.ports import IDeviceRepository
from beacontrack.domain.notification.ports import INotificationPointRepository
from beacontrack.domain.shared.errors import DeviceNotFoundError, DomainError
from beacontrack.domain.shared.ports.write_batch import IBatchFactory

logger = structlog.get_logger(__name__)

# Devices written per batch commit during a tenant sync.
SYNC_CHUNK_SIZE = 500


@dataclass
class TenantSyncReport:
    """Result of syncing every device of one tenant."""

    tenant_id: str
    scanned: int = 0
    updated: List[str] = field(default_factory=list)

    @property
    def unchanged(self) -> int:
        return self.scanned - len(self.updated)


@dataclass
class MultiTenantSyncReport:
    """Per-tenant reports plus tenants whose sync failed."""

    reports: Dict[str, TenantSyncReport] = field(default_factory=dict)
    failures: Dict[str, str] = field(default_factory=dict)


def _same_points(current: Optional[List[str]], computed: Optional[List[str]]) -> bool:
    if current is None or computed is None:
        return current is computed
    return set(current) == set(computed)


class NotificationInheritanceResolver:
    """Computes and persists inherited notification points.

    Examples:
        >>> resolver = NotificationInheritanceResolver(devices, points)
        >>> await resolver.resolve([]) is None
        True
        >>> await resolver.resolve(["tenant_a"])
        ['gw_1', 'gw_2']
    """

    def __init__(
        self,
        devices: IDeviceRepository,
        notification_points: INotificationPointRepository,
        batch_factory: IBatchFactory,
    ):
        self._devices = devices
        self._points = notification_points
        self._batches = batch_factory

    async def resolve(self, tags: Sequence[str]) -> Optional[List[str]]:
        """Gateway ids a device with these tags inherits, or None."""
        if not tags:
            return None

        tenant_id = tags[0]
        points = await self._points.find_active_for_tenant(tenant_id)
        gateway_ids = list(dict.fromkeys(p.gateway_id for p in points))
        return gateway_ids or None

    async def recompute(self, device_id: str) -> Optional[List[str]]:
        """Recompute and persist one device's inherited points.

        Raises:
            DeviceNotFoundError: If the device doesn't exist
            InfrastructureError: If a query or the write fails
        """
        device = await self._devices.get(device_id)
        if device is None:
            raise DeviceNotFoundError(device_id)

        gateway_ids = await self.resolve(device.tags)
        await self._devices.set_inherited_points(device_id, gateway_ids)

        logger.info(
            "inheritance.recomputed",
            device_id=device_id,
            tenant_id=device.tenant_scope,
            inherited_count=len(gateway_ids or []),
        )
        return gateway_ids

    async def sync_tenant(self, tenant_id: str) -> TenantSyncReport:
        """Recompute every device whose effective tenant is ``tenant_id``.

        Only devices whose inherited set actually changes are written.
        """
        report = TenantSyncReport(tenant_id=tenant_id)
        gateway_ids = await self.resolve([tenant_id])

        changed: List[str] = []
        for device in await self._devices.find_by_tag(tenant_id):
            if device.tenant_scope != tenant_id:
                continue
            report.scanned += 1
            if not _same_points(device.inherited_notification_point_ids, gateway_ids):
                changed.append(device.device_id)

        for start in range(0, len(changed), SYNC_CHUNK_SIZE):
            chunk = changed[start : start + SYNC_CHUNK_SIZE]
            batch = self._batches.new_batch()
            for device_id in chunk:
                batch.set_inherited_points(device_id, gateway_ids)
            await batch.commit()
            report.updated.extend(chunk)

        logger.info(
            "inheritance.tenant_synced",
            tenant_id=tenant_id,
            scanned=report.scanned,
            updated=len(report.updated),
        )
        return report

    async def sync_all_tenants(self, tenant_ids: Iterable[str]) -> MultiTenantSyncReport:
        """Sync several tenants; one tenant failing doesn't stop the others."""
        result = MultiTenantSyncReport()
        for tenant_id in tenant_ids:
            try:
                result.reports[tenant_id] = await self.sync_tenant(tenant_id)
            except DomainError as e:
                logger.error("inheritance.tenant_sync_failed", tenant_id=tenant_id, error=str(e))
                result.failures[tenant_id] = str(e)
        return result
