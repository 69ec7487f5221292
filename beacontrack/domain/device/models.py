"""Device aggregate root."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, List, Optional

from beacontrack.domain.shared.errors import InvalidBindingStateError
from beacontrack.domain.shared.value_objects import (
    BeaconIdentity,
    Gender,
    MapUserProfile,
    normalize_serial,
)


class BindingType(str, Enum):
    """Which kind of owner currently holds a device."""

    UNBOUND = "UNBOUND"
    ELDER = "ELDER"
    MAP_USER = "MAP_USER"


def utc_now() -> datetime:
    """Current time, timezone-aware UTC."""
    return datetime.now(timezone.utc)


@dataclass
class Device:
    """Device aggregate root.

    A physical beacon, named by its beacon identity and product serial,
    and loaned to at most one owner at a time.

    Invariants:
    - bound_to is None iff binding_type is UNBOUND
    - bound_at is None iff binding_type is UNBOUND
    - nickname/age/gender and the staged push token are None unless
      binding_type is MAP_USER

    Examples:
        >>> device = Device.register("dev_1", identity, "ABCDEF1234")
        >>> device.binding_type
        <BindingType.UNBOUND: 'UNBOUND'>

        >>> device.bind(BindingType.ELDER, "elder_1")
        >>> device.bound_to
        'elder_1'
    """

    device_id: str
    identity: BeaconIdentity
    serial: str
    binding_type: BindingType = BindingType.UNBOUND
    bound_to: Optional[str] = None
    bound_at: Optional[datetime] = None
    tags: List[str] = field(default_factory=list)
    inherited_notification_point_ids: Optional[List[str]] = None
    nickname: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[Gender] = None
    push_token: Optional[str] = None
    notification_enabled: Optional[bool] = None
    is_active: bool = True
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        """Normalize serial and validate invariants."""
        self.serial = normalize_serial(self.serial)
        self.check_invariants()

    @staticmethod
    def register(
        device_id: str,
        identity: BeaconIdentity,
        serial: str,
        tags: Optional[Iterable[str]] = None,
    ) -> "Device":
        """Factory method for a newly registered (UNBOUND) device."""
        return Device(
            device_id=device_id,
            identity=identity,
            serial=serial,
            tags=list(tags or []),
        )

    @property
    def is_bound(self) -> bool:
        """True when an owner currently holds the device."""
        return self.binding_type != BindingType.UNBOUND

    def is_bound_to(self, binding_type: BindingType, owner_id: str) -> bool:
        """True when held by the given owner through the given binding type."""
        return self.binding_type == binding_type and self.bound_to == owner_id

    @property
    def tenant_scope(self) -> Optional[str]:
        """Effective tenant for notification inheritance (first tag)."""
        return self.tags[0] if self.tags else None

    def bind(
        self,
        binding_type: BindingType,
        owner_id: str,
        at: Optional[datetime] = None,
        profile: Optional[MapUserProfile] = None,
    ) -> None:
        """Hand the device to an owner.

        Shadow profile fields are written for MAP_USER bindings and cleared
        for ELDER bindings; any staged push token is dropped (the caller
        stages the new owner's token afterwards).

        Raises:
            InvalidBindingStateError: If binding_type is UNBOUND or
                owner_id is empty
        """
        if binding_type == BindingType.UNBOUND:
            raise InvalidBindingStateError("Use unbind() to release a device")
        if not owner_id:
            raise InvalidBindingStateError("owner_id is required to bind a device")

        now = at or utc_now()
        self.binding_type = binding_type
        self.bound_to = owner_id
        self.bound_at = now
        self._clear_owner_fields()
        if binding_type == BindingType.MAP_USER and profile is not None:
            self.apply_profile(profile, now)
        self.updated_at = now
        self.check_invariants()

    def apply_profile(self, profile: MapUserProfile, at: Optional[datetime] = None) -> None:
        """Write the map-user shadow profile."""
        if self.binding_type != BindingType.MAP_USER:
            raise InvalidBindingStateError(
                f"Device {self.device_id} is not bound to a map user"
            )
        self.nickname = profile.nickname
        self.age = profile.age
        self.gender = profile.gender
        self.updated_at = at or utc_now()

    def stage_push_token(self, token: str) -> None:
        """Copy the owner's push token for the dispatch collaborator."""
        if self.binding_type != BindingType.MAP_USER:
            raise InvalidBindingStateError(
                f"Device {self.device_id} is not bound to a map user"
            )
        self.push_token = token
        self.notification_enabled = True

    def clear_push_token(self) -> None:
        """Drop the staged token (owner has none, or the binding ended)."""
        self.push_token = None
        self.notification_enabled = None

    def unbind(self, at: Optional[datetime] = None) -> None:
        """Return the device to UNBOUND, clearing every owner-derived field."""
        self.binding_type = BindingType.UNBOUND
        self.bound_to = None
        self.bound_at = None
        self._clear_owner_fields()
        self.updated_at = at or utc_now()
        self.check_invariants()

    def replace_tags(self, tags: Iterable[str]) -> bool:
        """Replace tags; return True when the tag *set* changed.

        Order is kept as given (the first tag is the tenant scope) but only
        set membership counts as a change.
        """
        new_tags = list(dict.fromkeys(t.strip() for t in tags if t and t.strip()))
        changed = set(new_tags) != set(self.tags)
        if new_tags != self.tags:
            self.tags = new_tags
            self.updated_at = utc_now()
        return changed

    def _clear_owner_fields(self) -> None:
        self.nickname = None
        self.age = None
        self.gender = None
        self.clear_push_token()

    def check_invariants(self) -> None:
        """Validate binding invariants.

        Raises:
            InvalidBindingStateError: On any violation
        """
        if (self.bound_to is None) != (self.binding_type == BindingType.UNBOUND):
            raise InvalidBindingStateError(
                f"Device {self.device_id}: bound_to={self.bound_to!r} "
                f"inconsistent with binding_type={self.binding_type.value}"
            )
        if (self.bound_at is None) != (self.binding_type == BindingType.UNBOUND):
            raise InvalidBindingStateError(
                f"Device {self.device_id}: bound_at inconsistent with "
                f"binding_type={self.binding_type.value}"
            )
        if self.binding_type != BindingType.MAP_USER:
            shadow = (
                self.nickname,
                self.age,
                self.gender,
                self.push_token,
                self.notification_enabled,
            )
            if any(value is not None for value in shadow):
                raise InvalidBindingStateError(
                    f"Device {self.device_id}: map-user fields set on "
                    f"{self.binding_type.value} device"
                )

    def __eq__(self, other: object) -> bool:
        """Equality based on device_id (aggregate identity)."""
        if not isinstance(other, Device):
            return False
        return self.device_id == other.device_id

    def __hash__(self) -> int:
        """Hash based on device_id (aggregate identity)."""
        return hash(self.device_id)
