"""Activity domain models.

``Activity`` is a live beacon sighting owned by one device.
``AnonymizedActivity`` is its privacy-stripped archive copy: device
identity and positional/statistical fields are kept, ownership is dropped.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from beacontrack.domain.shared.value_objects import ArchiveSessionId, generate_id

ANONYMOUS_BINDING = "ANONYMOUS"


class ArchiveReason(str, Enum):
    """Why a device's live activities were archived."""

    REBIND = "REBIND"
    ELDER_UNBIND = "ELDER_UNBIND"
    MAP_USER_UNBIND = "MAP_USER_UNBIND"
    DEVICE_UNBIND = "DEVICE_UNBIND"
    ELDER_DELETION = "ELDER_DELETION"
    GHOST_DEVICE_CLEANUP = "GHOST_DEVICE_CLEANUP"


@dataclass(frozen=True)
class Activity:
    """Beacon sighting recorded by a gateway.

    ``binding_type`` is the device's binding type at sighting time.
    """

    activity_id: str
    device_id: str
    timestamp: datetime
    gateway_id: Optional[str] = None
    gateway_name: Optional[str] = None
    gateway_type: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    rssi: Optional[int] = None
    binding_type: Optional[str] = None
    triggered_notification: bool = False
    notification_type: Optional[str] = None
    notification_point_id: Optional[str] = None


@dataclass(frozen=True)
class AnonymizedActivity:
    """Archived, ownership-free copy of an Activity. Never mutated."""

    record_id: str
    device_id: str
    timestamp: Optional[datetime]
    gateway_id: Optional[str]
    gateway_name: Optional[str]
    gateway_type: Optional[str]
    latitude: Optional[float]
    longitude: Optional[float]
    rssi: Optional[int]
    triggered_notification: bool
    notification_type: Optional[str]
    notification_point_id: Optional[str]
    anonymized_reason: ArchiveReason
    anonymized_at: datetime
    archive_session_id: str
    original_activity_id: str
    binding_type: str = ANONYMOUS_BINDING
    bound_to: Optional[str] = None

    @staticmethod
    def from_activity(
        activity: Activity,
        reason: ArchiveReason,
        session_id: ArchiveSessionId,
        anonymized_at: datetime,
    ) -> "AnonymizedActivity":
        """Strip ownership from a live activity.

        Examples:
            >>> record = AnonymizedActivity.from_activity(
            ...     activity, ArchiveReason.REBIND, session_id, now
            ... )
            >>> record.bound_to is None
            True
        """
        return AnonymizedActivity(
            record_id=generate_id("anon"),
            device_id=activity.device_id,
            timestamp=activity.timestamp,
            gateway_id=activity.gateway_id,
            gateway_name=activity.gateway_name,
            gateway_type=activity.gateway_type,
            latitude=activity.latitude,
            longitude=activity.longitude,
            rssi=activity.rssi,
            triggered_notification=activity.triggered_notification,
            notification_type=activity.notification_type,
            notification_point_id=activity.notification_point_id,
            anonymized_reason=reason,
            anonymized_at=anonymized_at,
            archive_session_id=session_id.value,
            original_activity_id=activity.activity_id,
        )
