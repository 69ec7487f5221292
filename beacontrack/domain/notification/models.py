"""Notification point model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class NotificationPoint:
    """Gateway flagged as worth alerting on.

    Exactly one of ``tenant_id`` (tenant scope, inherited by tagged devices)
    or ``device_id`` (device scope, owned by a map user's device) is set.
    """

    point_id: str
    gateway_id: str
    name: str = ""
    is_active: bool = True
    tenant_id: Optional[str] = None
    device_id: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.tenant_id is None) == (self.device_id is None):
            raise ValueError(
                f"Notification point {self.point_id} needs exactly one of "
                "tenant_id or device_id"
            )

    @property
    def is_device_scoped(self) -> bool:
        return self.device_id is not None
