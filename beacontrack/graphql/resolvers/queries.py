"""Device GraphQL queries."""

from typing import Optional

import strawberry
from strawberry.types import Info

from beacontrack.graphql.resolvers.errors import require_principal
from beacontrack.graphql.types import DeviceType


@strawberry.type
class DeviceQueries:
    """Read-only device lookups for authenticated callers."""

    @strawberry.field
    async def device(self, info: Info, device_id: str) -> Optional[DeviceType]:
        """Device by id, or null."""
        require_principal(info)
        device = await info.context.get("services").manager.get_device(device_id)
        return DeviceType.from_entity(device) if device else None

    @strawberry.field
    async def device_by_serial(self, info: Info, serial: str) -> Optional[DeviceType]:
        """Device by product serial (case-insensitive), or null."""
        require_principal(info)
        device = await info.context.get("services").manager.find_device_by_serial(serial)
        return DeviceType.from_entity(device) if device else None
