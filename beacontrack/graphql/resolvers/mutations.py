"""Binding GraphQL mutations."""

from typing import List, Optional

import strawberry
from pydantic import ValidationError as PydanticValidationError
from strawberry.types import Info

from beacontrack.application.services import BindingServices
from beacontrack.domain.shared.errors import DomainError
from beacontrack.graphql.resolvers.errors import raise_graphql_error, require_principal
from beacontrack.graphql.types import (
    ArchivalReportType,
    ArchiveReasonEnum,
    DeviceType,
    ElderType,
    MapUserProfileInput,
)


def _services(info: Info) -> BindingServices:
    services = info.context.get("services")
    if services is None:
        raise RuntimeError("services not found in context")
    return services


@strawberry.type
class BindingMutations:
    """Device binding mutations.

    Every mutation requires a verified caller. Domain failures surface as
    GraphQL errors whose ``extensions.code`` is the stable error code.

    Examples:
        mutation {
          bindDeviceToMapUser(deviceOrSerial: "ABCDEF1234", userId: "user_1",
                              profile: { nickname: "Grandpa", age: 81 }) {
            deviceId
            bindingType
            nickname
          }
        }
    """

    @strawberry.mutation
    async def bind_device_to_elder(self, info: Info, device_id: str, elder_id: str) -> DeviceType:
        """Bind a device to an elder.

        Errors: DEVICE_NOT_FOUND, OWNER_NOT_FOUND, ALREADY_BOUND, UNAUTHORIZED
        """
        principal = require_principal(info)
        try:
            device = await _services(info).bind_device_to_elder.execute(
                principal, device_id, elder_id
            )
        except DomainError as e:
            raise_graphql_error(e)
        return DeviceType.from_entity(device)

    @strawberry.mutation
    async def bind_device_to_map_user(
        self,
        info: Info,
        device_or_serial: str,
        user_id: str,
        profile: Optional[MapUserProfileInput] = None,
    ) -> DeviceType:
        """Bind a device, by id or product serial, to a map user.

        Errors: DEVICE_NOT_FOUND, USER_NOT_FOUND, ALREADY_BOUND,
        ACCOUNT_DELETED, VALIDATION_ERROR, UNAUTHORIZED
        """
        principal = require_principal(info)
        try:
            value = profile.to_value_object() if profile is not None else None
            device = await _services(info).bind_device_to_map_user.execute(
                principal, device_or_serial, user_id, value
            )
        except (DomainError, PydanticValidationError) as e:
            raise_graphql_error(e)
        return DeviceType.from_entity(device)

    @strawberry.mutation
    async def unbind_device(self, info: Info, device_id: str) -> bool:
        """Return a device to UNBOUND.

        Errors: DEVICE_NOT_FOUND, UNAUTHORIZED
        """
        principal = require_principal(info)
        try:
            await _services(info).unbind_device.execute(principal, device_id)
        except DomainError as e:
            raise_graphql_error(e)
        return True

    @strawberry.mutation
    async def unbind_map_user_device(self, info: Info, user_id: str) -> bool:
        """Release the device a map user holds.

        Errors: USER_NOT_FOUND, NO_BOUND_DEVICE, ACCOUNT_DELETED, UNAUTHORIZED
        """
        principal = require_principal(info)
        try:
            await _services(info).unbind_map_user_device.execute(principal, user_id)
        except DomainError as e:
            raise_graphql_error(e)
        return True

    @strawberry.mutation
    async def deactivate_elder(self, info: Info, elder_id: str) -> ElderType:
        """Soft-delete an elder, releasing its device first."""
        principal = require_principal(info)
        try:
            elder = await _services(info).deactivate_elder.execute(principal, elder_id)
        except DomainError as e:
            raise_graphql_error(e)
        return ElderType.from_entity(elder)

    @strawberry.mutation
    async def update_device_tags(self, info: Info, device_id: str, tags: List[str]) -> DeviceType:
        """Replace a device's tenant tags and refresh inherited notification points."""
        principal = require_principal(info)
        try:
            device = await _services(info).update_device_tags.execute(principal, device_id, tags)
        except DomainError as e:
            raise_graphql_error(e)
        return DeviceType.from_entity(device)

    @strawberry.mutation
    async def recompute_inheritance(self, info: Info, device_id: str) -> Optional[List[str]]:
        """Recompute a device's inherited notification points (administrative)."""
        principal = require_principal(info)
        try:
            return await _services(info).recompute_inheritance.execute(principal, device_id)
        except DomainError as e:
            raise_graphql_error(e)

    @strawberry.mutation
    async def archive_device_activities(
        self,
        info: Info,
        device_id: str,
        reason: Optional[ArchiveReasonEnum] = None,
    ) -> ArchivalReportType:
        """Archive a device's live activities (administrative).

        A failed archival is reported in the result, not raised.
        """
        principal = require_principal(info)
        command = _services(info).archive_device_activities
        try:
            if reason is None:
                result = await command.execute(principal, device_id)
            else:
                result = await command.execute(principal, device_id, reason)
        except DomainError as e:
            raise_graphql_error(e)
        return ArchivalReportType.from_result(result)
