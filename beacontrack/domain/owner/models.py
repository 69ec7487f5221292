"""Owner entities: the two variants that can hold a device."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from beacontrack.domain.device.models import BindingType, utc_now


@runtime_checkable
class Bindable(Protocol):
    """Capability shared by every owner that can hold a device.

    ``device_ref`` must agree with the held device's ``bound_to``.
    """

    @property
    def owner_id(self) -> str: ...

    @property
    def binding_type(self) -> BindingType: ...

    @property
    def device_ref(self) -> Optional[str]: ...

    def attach(self, device_id: str, at: Optional[datetime] = None) -> None: ...

    def detach(self, at: Optional[datetime] = None) -> None: ...


@dataclass
class Elder:
    """Supervised person, scoped to a tenant (community).

    Examples:
        >>> elder = Elder(elder_id="elder_1", tenant_id="tenant_a", name="Mei")
        >>> elder.attach("dev_1")
        >>> elder.device_ref
        'dev_1'
    """

    elder_id: str
    tenant_id: str
    name: str = ""
    device_id: Optional[str] = None
    is_active: bool = True
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def owner_id(self) -> str:
        return self.elder_id

    @property
    def binding_type(self) -> BindingType:
        return BindingType.ELDER

    @property
    def device_ref(self) -> Optional[str]:
        return self.device_id

    def attach(self, device_id: str, at: Optional[datetime] = None) -> None:
        self.device_id = device_id
        self.updated_at = at or utc_now()

    def detach(self, at: Optional[datetime] = None) -> None:
        self.device_id = None
        self.updated_at = at or utc_now()

    def deactivate(self, at: Optional[datetime] = None) -> None:
        """Soft-delete the elder. Caller releases the device first."""
        self.is_active = False
        self.detach(at)


@dataclass
class MapUser:
    """Self-registered map-app user.

    Carries an optional push-messaging token that is staged onto the
    bound device for the external dispatch service.
    """

    user_id: str
    bound_device_id: Optional[str] = None
    push_token: Optional[str] = None
    avatar: Optional[str] = None
    is_deleted: bool = False
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def owner_id(self) -> str:
        return self.user_id

    @property
    def binding_type(self) -> BindingType:
        return BindingType.MAP_USER

    @property
    def device_ref(self) -> Optional[str]:
        return self.bound_device_id

    def attach(self, device_id: str, at: Optional[datetime] = None) -> None:
        self.bound_device_id = device_id
        self.updated_at = at or utc_now()

    def detach(self, at: Optional[datetime] = None) -> None:
        self.bound_device_id = None
        self.updated_at = at or utc_now()
