"""Device binding lifecycle manager.

Owns the UNBOUND / ELDER / MAP_USER state machine. Every transition that
ends an owner relationship archives that owner's activities first, then
commits the new binding together with every owner back-reference in one
atomic batch, so that one device has one owner and one owner has one
device after each commit.

Concurrent requests against the same device or owner are not serialized:
the last commit wins.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import structlog

from beacontrack.application.archival.pipeline import (
    ActivityArchivalPipeline,
    ArchivalResult,
)
from beacontrack.application.inheritance.resolver import NotificationInheritanceResolver
from beacontrack.domain.activity.models import ArchiveReason
from beacontrack.domain.device.models import BindingType, Device, utc_now
from beacontrack.domain.device.ports import IDeviceRepository
from beacontrack.domain.notification.ports import INotificationPointRepository
from beacontrack.domain.owner.models import Bindable, Elder, MapUser
from beacontrack.domain.owner.ports import IElderRepository, IMapUserRepository
from beacontrack.domain.shared.errors import (
    AccountDeletedError,
    AlreadyBoundError,
    DeviceNotFoundError,
    DomainError,
    InfrastructureError,
    NoBoundDeviceError,
    OwnerNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from beacontrack.domain.shared.ports.write_batch import IBatchFactory
from beacontrack.domain.shared.value_objects import MapUserProfile, normalize_serial

logger = structlog.get_logger(__name__)

UNBIND_REASONS: Dict[BindingType, ArchiveReason] = {
    BindingType.ELDER: ArchiveReason.ELDER_UNBIND,
    BindingType.MAP_USER: ArchiveReason.MAP_USER_UNBIND,
    BindingType.UNBOUND: ArchiveReason.DEVICE_UNBIND,
}


class BindingLifecycleManager:
    """Binds and unbinds devices.

    Examples:
        >>> manager = BindingLifecycleManager(
        ...     devices, elders, map_users, points, batches, archival, resolver
        ... )
        >>> device = await manager.bind_to_elder("dev_1", "elder_1")
        >>> device.bound_to
        'elder_1'
    """

    def __init__(
        self,
        devices: IDeviceRepository,
        elders: IElderRepository,
        map_users: IMapUserRepository,
        notification_points: INotificationPointRepository,
        batch_factory: IBatchFactory,
        archival: ActivityArchivalPipeline,
        resolver: NotificationInheritanceResolver,
    ):
        self._devices = devices
        self._elders = elders
        self._map_users = map_users
        self._points = notification_points
        self._batches = batch_factory
        self._archival = archival
        self._resolver = resolver

    # ═══════════════════════════════════════════════════════════
    # ELDER
    # ═══════════════════════════════════════════════════════════

    async def bind_to_elder(self, device_id: str, elder_id: str) -> Device:
        """Bind a device to an elder, displacing any previous elder binding.

        Raises:
            DeviceNotFoundError: If the device doesn't exist
            OwnerNotFoundError: If the elder doesn't exist or is inactive
            AlreadyBoundError: If a map user holds the device
        """
        device = await self._load_device(device_id)
        elder = await self._load_elder(elder_id)

        if device.binding_type == BindingType.MAP_USER:
            raise AlreadyBoundError(device_id, device.binding_type.value)

        same_owner = device.is_bound_to(BindingType.ELDER, elder_id)
        if same_owner and elder.device_id == device_id:
            return device

        if device.is_bound and not same_owner:
            await self._archive(device_id, ArchiveReason.REBIND)

        displaced = [
            d
            for d in await self._devices.find_bound_to(elder_id, BindingType.ELDER)
            if d.device_id != device_id
        ]
        for other in displaced:
            await self._archive(other.device_id, ArchiveReason.ELDER_UNBIND)

        stale_elders = [
            e for e in await self._elders.find_by_device(device_id) if e.elder_id != elder_id
        ]
        stale_users = await self._map_users.find_by_bound_device(device_id)

        now = utc_now()
        batch = self._batches.new_batch()
        for other in displaced:
            other.unbind(now)
            batch.save_device(other)
        for stale in stale_elders:
            stale.detach(now)
            batch.save_elder(stale)
        for stale_user in stale_users:
            stale_user.detach(now)
            batch.save_map_user(stale_user)
        elder.attach(device_id, now)
        batch.save_elder(elder)
        device.bind(BindingType.ELDER, elder_id, now)
        batch.save_device(device)
        await batch.commit()

        self._log_corrections(device_id, displaced, [*stale_elders, *stale_users])
        logger.info(
            "binding.elder_bound",
            device_id=device_id,
            elder_id=elder_id,
            tenant_id=elder.tenant_id,
        )
        return device

    async def deactivate_elder(self, elder_id: str) -> Elder:
        """Release the elder's device (archived as ELDER_DELETION), then soft-delete.

        Raises:
            OwnerNotFoundError: If the elder doesn't exist or is already inactive
        """
        elder = await self._load_elder(elder_id)

        held: Dict[str, Device] = {
            d.device_id: d
            for d in await self._devices.find_bound_to(elder_id, BindingType.ELDER)
        }
        if elder.device_id and elder.device_id not in held:
            device = await self._devices.get(elder.device_id)
            if device is not None and device.is_bound_to(BindingType.ELDER, elder_id):
                held[device.device_id] = device

        for device_id in held:
            await self.unbind(device_id, reason=ArchiveReason.ELDER_DELETION)

        elder = await self._load_elder(elder_id)
        elder.deactivate(utc_now())
        batch = self._batches.new_batch()
        batch.save_elder(elder)
        await batch.commit()

        logger.info(
            "binding.elder_deactivated",
            elder_id=elder_id,
            released_devices=list(held),
        )
        return elder

    # ═══════════════════════════════════════════════════════════
    # MAP USER
    # ═══════════════════════════════════════════════════════════

    async def bind_to_map_user(
        self,
        device_or_serial: str,
        user_id: str,
        profile: Optional[MapUserProfile] = None,
    ) -> Device:
        """Bind a device, looked up by id or product serial, to a map user.

        A user holding another device gets that device fully unbound first.
        Binding the device the user already holds refreshes the shadow
        profile and staged token without archival.

        Raises:
            ValidationError: If no device id or serial is given
            UserNotFoundError: If the user doesn't exist
            AccountDeletedError: If the user's account is deleted
            DeviceNotFoundError: If neither id nor serial matches
            AlreadyBoundError: If an elder or another user holds the device
        """
        if not device_or_serial or not device_or_serial.strip():
            raise ValidationError("deviceId or serial is required")

        user = await self._load_active_user(user_id)
        device = await self._resolve_device(device_or_serial.strip())
        device_id = device.device_id

        if device.binding_type == BindingType.ELDER or (
            device.binding_type == BindingType.MAP_USER and device.bound_to != user_id
        ):
            raise AlreadyBoundError(device_id, device.binding_type.value)

        profile = profile or MapUserProfile()
        same_owner = device.is_bound_to(BindingType.MAP_USER, user_id)

        if not same_owner and user.bound_device_id and user.bound_device_id != device_id:
            previous = await self._devices.get(user.bound_device_id)
            if previous is not None and previous.is_bound_to(BindingType.MAP_USER, user_id):
                logger.info(
                    "binding.map_user_switching_device",
                    user_id=user_id,
                    from_device_id=previous.device_id,
                    to_device_id=device_id,
                )
                await self.unbind(previous.device_id)
                user = await self._load_active_user(user_id)

        displaced = [
            d
            for d in await self._devices.find_bound_to(user_id, BindingType.MAP_USER)
            if d.device_id != device_id
        ]
        for other in displaced:
            await self._archive(other.device_id, ArchiveReason.MAP_USER_UNBIND)

        stale_users = [
            u for u in await self._map_users.find_by_bound_device(device_id) if u.user_id != user_id
        ]
        stale_elders = await self._elders.find_by_device(device_id)

        now = utc_now()
        batch = self._batches.new_batch()
        for other in displaced:
            other.unbind(now)
            batch.save_device(other)
        for stale in stale_users:
            stale.detach(now)
            batch.save_map_user(stale)
        for stale_elder in stale_elders:
            stale_elder.detach(now)
            batch.save_elder(stale_elder)

        if same_owner:
            device.apply_profile(profile, now)
            device.clear_push_token()
        else:
            device.bind(BindingType.MAP_USER, user_id, now, profile)
        if user.push_token:
            device.stage_push_token(user.push_token)
        batch.save_device(device)

        user.attach(device_id, now)
        if profile.avatar:
            user.avatar = profile.avatar
        batch.save_map_user(user)
        await batch.commit()

        self._log_corrections(device_id, displaced, [*stale_users, *stale_elders])
        logger.info(
            "binding.map_user_bound",
            device_id=device_id,
            user_id=user_id,
            refreshed=same_owner,
            push_token_staged=device.push_token is not None,
        )
        return device

    async def unbind_map_user(self, user_id: str) -> Device:
        """Release whichever device the user holds.

        The user's device reference is only trusted when the device is bound
        to that user; a stale reference is cleared and the devices bound to
        the user are used instead.

        Raises:
            UserNotFoundError: If the user doesn't exist
            AccountDeletedError: If the user's account is deleted
            NoBoundDeviceError: If the user holds no device
        """
        user = await self._load_active_user(user_id)

        if user.bound_device_id:
            device = await self._devices.get(user.bound_device_id)
            if device is not None and device.is_bound_to(BindingType.MAP_USER, user_id):
                return await self.unbind(device.device_id)
            await self._clear_stale_user_reference(user)

        held = await self._devices.find_bound_to(user_id, BindingType.MAP_USER)
        if not held:
            raise NoBoundDeviceError(user_id)
        return await self.unbind(held[0].device_id)

    # ═══════════════════════════════════════════════════════════
    # UNBIND
    # ═══════════════════════════════════════════════════════════

    async def unbind(self, device_id: str, reason: Optional[ArchiveReason] = None) -> Device:
        """Return a device to UNBOUND, whatever holds it.

        Activities are archived first; an archival failure is logged and the
        device is unbound anyway. Owner back-references pointing at the
        device, stale ones included, are cleared in the same commit.

        Raises:
            DeviceNotFoundError: If the device doesn't exist
        """
        device = await self._load_device(device_id)
        previous_type = device.binding_type
        previous_owner = device.bound_to

        await self._archive(device_id, reason or UNBIND_REASONS[previous_type])

        if previous_type == BindingType.MAP_USER:
            await self._purge_device_notification_points(device_id)

        stale_elders = await self._elders.find_by_device(device_id)
        stale_users = await self._map_users.find_by_bound_device(device_id)

        now = utc_now()
        batch = self._batches.new_batch()
        for elder in stale_elders:
            elder.detach(now)
            batch.save_elder(elder)
        for user in stale_users:
            user.detach(now)
            batch.save_map_user(user)
        device.unbind(now)
        batch.save_device(device)
        await batch.commit()

        logger.info(
            "binding.device_unbound",
            device_id=device_id,
            previous_binding_type=previous_type.value,
            previous_owner=previous_owner,
            cleared_elders=[e.elder_id for e in stale_elders],
            cleared_users=[u.user_id for u in stale_users],
        )
        return device

    # ═══════════════════════════════════════════════════════════
    # TAGS
    # ═══════════════════════════════════════════════════════════

    async def update_device_tags(self, device_id: str, tags: Sequence[str]) -> Device:
        """Replace a device's tags, then recompute inherited points if the set changed.

        The tag write is committed before recompute; a recompute failure is
        logged and leaves the new tags in place.

        Raises:
            DeviceNotFoundError: If the device doesn't exist
        """
        device = await self._load_device(device_id)
        previous_tags = list(device.tags)
        changed = device.replace_tags(tags)
        if device.tags == previous_tags:
            return device
        await self._devices.save(device)

        if not changed:
            return device

        try:
            device.inherited_notification_point_ids = await self._resolver.recompute(device_id)
        except DomainError as e:
            logger.error(
                "inheritance.recompute_failed",
                device_id=device_id,
                tags=device.tags,
                error=str(e),
            )
        return device

    # ═══════════════════════════════════════════════════════════
    # LOOKUPS
    # ═══════════════════════════════════════════════════════════

    async def get_device(self, device_id: str) -> Optional[Device]:
        return await self._devices.get(device_id)

    async def find_device_by_serial(self, serial: str) -> Optional[Device]:
        return await self._devices.find_by_serial(normalize_serial(serial))

    # ═══════════════════════════════════════════════════════════
    # HELPERS
    # ═══════════════════════════════════════════════════════════

    async def _load_device(self, device_id: str) -> Device:
        device = await self._devices.get(device_id)
        if device is None:
            raise DeviceNotFoundError(device_id)
        return device

    async def _resolve_device(self, device_or_serial: str) -> Device:
        """Look up by device id, falling back to product serial."""
        device = await self._devices.get(device_or_serial)
        if device is None:
            device = await self._devices.find_by_serial(normalize_serial(device_or_serial))
        if device is None:
            raise DeviceNotFoundError(device_or_serial)
        return device

    async def _load_elder(self, elder_id: str) -> Elder:
        elder = await self._elders.get(elder_id)
        if elder is None or not elder.is_active:
            raise OwnerNotFoundError(elder_id, kind="Elder")
        return elder

    async def _load_active_user(self, user_id: str) -> MapUser:
        user = await self._map_users.get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        if user.is_deleted:
            raise AccountDeletedError(user_id)
        return user

    async def _clear_stale_user_reference(self, user: MapUser) -> None:
        stale_device_id = user.bound_device_id
        user.detach(utc_now())
        batch = self._batches.new_batch()
        batch.save_map_user(user)
        await batch.commit()
        logger.warning(
            "binding.stale_owner_reference_cleared",
            owner_id=user.user_id,
            binding_type=BindingType.MAP_USER.value,
            device_id=stale_device_id,
        )

    async def _archive(self, device_id: str, reason: ArchiveReason) -> ArchivalResult:
        """Archive and swallow failure; the pipeline already logged details."""
        result = await self._archival.archive(device_id, reason)
        if result.failed:
            logger.warning(
                "binding.archival_failed_continuing",
                device_id=device_id,
                reason=reason.value,
                archive_session_id=result.session_id.value,
                archived_count=result.archived_count,
            )
        return result

    async def _purge_device_notification_points(self, device_id: str) -> int:
        """Delete a map-user device's own notification points. Best-effort."""
        limit = self._archival.page_size
        deleted = 0
        try:
            while True:
                points = await self._points.find_for_device(device_id, limit)
                if not points:
                    break
                batch = self._batches.new_batch()
                for point in points:
                    batch.delete_notification_point(point.point_id)
                await batch.commit()
                deleted += len(points)
                if len(points) < limit:
                    break
        except InfrastructureError as e:
            logger.warning(
                "binding.notification_points_purge_failed",
                device_id=device_id,
                deleted=deleted,
                error=str(e),
            )
        return deleted

    @staticmethod
    def _log_corrections(
        device_id: str, displaced: List[Device], stale_owners: Sequence[Bindable]
    ) -> None:
        for other in displaced:
            logger.info(
                "binding.device_displaced",
                device_id=other.device_id,
                for_device_id=device_id,
            )
        for owner in stale_owners:
            logger.warning(
                "binding.stale_owner_reference_cleared",
                owner_id=owner.owner_id,
                binding_type=owner.binding_type.value,
                device_id=device_id,
            )
