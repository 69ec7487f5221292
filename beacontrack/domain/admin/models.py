"""Administrators and the authenticated caller."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AdminRole(str, Enum):
    """Elevated roles. Anything else is a plain map-app caller."""

    SUPER_ADMIN = "SUPER_ADMIN"
    TENANT_ADMIN = "TENANT_ADMIN"


@dataclass
class AdminUser:
    """Administrator record, used only for elevation checks."""

    admin_id: str
    role: AdminRole
    tenant_id: Optional[str] = None


class Principal(BaseModel):
    """
    Verified caller identity.

    ``role`` is None for map-app users. ``tenant_id`` scopes TENANT_ADMIN.

    Example:
        >>> Principal(principal_id="user_1").is_admin
        False
    """

    model_config = ConfigDict(frozen=True)

    principal_id: str = Field(..., min_length=1)
    role: Optional[AdminRole] = None
    tenant_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role is not None

    @property
    def is_super_admin(self) -> bool:
        return self.role == AdminRole.SUPER_ADMIN

    def administers_tenant(self, tenant_id: Optional[str]) -> bool:
        """SUPER_ADMIN administers every tenant, TENANT_ADMIN only its own."""
        if self.is_super_admin:
            return True
        return (
            self.role == AdminRole.TENANT_ADMIN
            and tenant_id is not None
            and self.tenant_id == tenant_id
        )
