"""
Shared value objects.

Immutable, validated domain primitives.
Following DDD value object pattern.
"""

from __future__ import annotations

import re
import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SERIAL_PATTERN = re.compile(r"^[A-Z]{6}[0-9]{4}$")


class BeaconIdentity(BaseModel):
    """
    Beacon identity triplet.

    service_id (iBeacon UUID), group_number (major) and unit_number (minor).
    The service id is normalized to lower case so lookups are
    case-insensitive.

    Example:
        >>> identity = BeaconIdentity(
        ...     service_id="FDA50693-A4E2-4FB1-AFCF-C6EB07647825",
        ...     group_number=1,
        ...     unit_number=42,
        ... )
        >>> identity.service_id
        'fda50693-a4e2-4fb1-afcf-c6eb07647825'
    """

    model_config = ConfigDict(frozen=True)

    service_id: str = Field(..., min_length=1, description="Beacon service UUID")
    group_number: int = Field(..., ge=0, le=65535, description="Beacon major")
    unit_number: int = Field(..., ge=0, le=65535, description="Beacon minor")

    @field_validator("service_id")
    @classmethod
    def normalize_service_id(cls, v: str) -> str:
        """Lower-case and strip the service UUID."""
        if not v.strip():
            raise ValueError("service_id cannot be empty or whitespace")
        return v.strip().lower()

    def __str__(self) -> str:
        """String representation."""
        return f"{self.service_id}/{self.group_number}/{self.unit_number}"


def normalize_serial(serial: str) -> str:
    """Normalize a product serial to its stored (upper-case) form."""
    return serial.strip().upper()


def is_valid_serial(serial: str) -> bool:
    """Check a product serial: six letters followed by four digits."""
    return bool(SERIAL_PATTERN.match(normalize_serial(serial)))


class Gender(str, Enum):
    """Map-user gender as declared at binding time."""

    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class MapUserProfile(BaseModel):
    """
    Owner profile shadowed onto a device bound to a map user.

    Example:
        >>> profile = MapUserProfile(nickname="Grandpa", age=81)
        >>> profile.gender is None
        True
    """

    model_config = ConfigDict(frozen=True)

    nickname: Optional[str] = Field(None, max_length=50)
    age: Optional[int] = Field(None, ge=0, le=150)
    gender: Optional[Gender] = None
    avatar: Optional[str] = Field(None, description="Stored on the user, not the device")

    @field_validator("nickname")
    @classmethod
    def blank_nickname_is_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat blank nicknames as missing."""
        if v is None or not v.strip():
            return None
        return v.strip()


class ArchiveSessionId(BaseModel):
    """
    Archive session identifier.

    Shared by every anonymized record produced by one archival run.
    Format: "archive_<32_hex_chars>"

    Example:
        >>> session_id = ArchiveSessionId.generate()
        >>> session_id.value.startswith("archive_")
        True
    """

    model_config = ConfigDict(frozen=True)

    value: str = Field(..., pattern=r"^archive_[a-f0-9]{32}$")

    def __str__(self) -> str:
        """String representation."""
        return self.value

    def __repr__(self) -> str:
        """Debug representation."""
        return f"ArchiveSessionId('{self.value}')"

    def __hash__(self) -> int:
        """Allow use as dict key."""
        return hash(self.value)

    @classmethod
    def generate(cls) -> ArchiveSessionId:
        """Generate a new random session id."""
        return cls(value=f"archive_{uuid.uuid4().hex}")


def generate_id(prefix: str) -> str:
    """Generate a prefixed random document id (e.g. "anon_3f2a...")."""
    return f"{prefix}_{uuid.uuid4().hex}"
