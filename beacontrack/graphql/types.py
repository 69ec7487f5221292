"""GraphQL types for devices, owners and archival reports."""

from datetime import datetime
from typing import List, Optional

import strawberry

from beacontrack.application.archival.pipeline import ArchivalResult
from beacontrack.domain.activity.models import ArchiveReason
from beacontrack.domain.device.models import BindingType, Device
from beacontrack.domain.owner.models import Elder
from beacontrack.domain.shared.value_objects import Gender, MapUserProfile

BindingTypeEnum = strawberry.enum(BindingType, name="BindingType")
GenderEnum = strawberry.enum(Gender, name="Gender")
ArchiveReasonEnum = strawberry.enum(ArchiveReason, name="ArchiveReason")


@strawberry.type
class BeaconIdentityType:
    """Beacon identity triplet."""

    service_id: str
    group_number: int
    unit_number: int


@strawberry.type
class DeviceType:
    """Device GraphQL type.

    Examples:
        mutation {
          bindDeviceToElder(deviceId: "dev_1", elderId: "elder_1") {
            deviceId
            bindingType
            boundTo
          }
        }
    """

    device_id: str
    serial: str
    identity: BeaconIdentityType
    binding_type: BindingTypeEnum
    bound_to: Optional[str]
    bound_at: Optional[datetime]
    tags: List[str]
    inherited_notification_point_ids: Optional[List[str]]
    nickname: Optional[str]
    age: Optional[int]
    gender: Optional[GenderEnum]
    notification_enabled: Optional[bool]
    is_active: bool
    updated_at: datetime

    @staticmethod
    def from_entity(device: Device) -> "DeviceType":
        """Map a Device; the staged push token is never exposed."""
        return DeviceType(
            device_id=device.device_id,
            serial=device.serial,
            identity=BeaconIdentityType(
                service_id=device.identity.service_id,
                group_number=device.identity.group_number,
                unit_number=device.identity.unit_number,
            ),
            binding_type=device.binding_type,
            bound_to=device.bound_to,
            bound_at=device.bound_at,
            tags=list(device.tags),
            inherited_notification_point_ids=device.inherited_notification_point_ids,
            nickname=device.nickname,
            age=device.age,
            gender=device.gender,
            notification_enabled=device.notification_enabled,
            is_active=device.is_active,
            updated_at=device.updated_at,
        )


@strawberry.type
class ElderType:
    """Elder GraphQL type."""

    elder_id: str
    tenant_id: str
    name: str
    device_id: Optional[str]
    is_active: bool

    @staticmethod
    def from_entity(elder: Elder) -> "ElderType":
        return ElderType(
            elder_id=elder.elder_id,
            tenant_id=elder.tenant_id,
            name=elder.name,
            device_id=elder.device_id,
            is_active=elder.is_active,
        )


@strawberry.type
class ArchivalReportType:
    """Outcome of an administrative archival run.

    A failed run reports ``errorCode`` ARCHIVAL_FAILED and how many records
    were archived before the failing page.
    """

    device_id: str
    reason: ArchiveReasonEnum
    archive_session_id: str
    archived_count: int
    succeeded: bool
    error_code: Optional[str]
    error_message: Optional[str]

    @staticmethod
    def from_result(result: ArchivalResult) -> "ArchivalReportType":
        return ArchivalReportType(
            device_id=result.device_id,
            reason=result.reason,
            archive_session_id=result.session_id.value,
            archived_count=result.archived_count,
            succeeded=result.succeeded,
            error_code=result.error.code.value if result.error else None,
            error_message=str(result.error) if result.error else None,
        )


@strawberry.input
class MapUserProfileInput:
    """Profile shadowed onto a device bound to a map user."""

    nickname: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[GenderEnum] = None
    avatar: Optional[str] = None

    def to_value_object(self) -> MapUserProfile:
        """
        Raises:
            pydantic.ValidationError: If nickname or age is out of range
        """
        return MapUserProfile(
            nickname=self.nickname,
            age=self.age,
            gender=self.gender,
            avatar=self.avatar,
        )
