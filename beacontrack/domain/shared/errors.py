"""
Domain exceptions.

Typed exceptions for explicit error handling.
Every exception carries a stable ``code`` reported to callers unchanged.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """Stable error codes exposed to callers."""

    DEVICE_NOT_FOUND = "DEVICE_NOT_FOUND"
    OWNER_NOT_FOUND = "OWNER_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    ALREADY_BOUND = "ALREADY_BOUND"
    ACCOUNT_DELETED = "ACCOUNT_DELETED"
    NO_BOUND_DEVICE = "NO_BOUND_DEVICE"
    UNAUTHORIZED = "UNAUTHORIZED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    ARCHIVAL_FAILED = "ARCHIVAL_FAILED"
    DATABASE_ERROR = "DATABASE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# ═══════════════════════════════════════════════════════════
# BASE EXCEPTION
# ═══════════════════════════════════════════════════════════


class DomainError(Exception):
    """
    Base exception for all domain errors.

    All domain-specific exceptions inherit from this.
    Allows catching all domain errors with single except clause.
    """

    code: ErrorCode = ErrorCode.INTERNAL_ERROR


# ═══════════════════════════════════════════════════════════
# BINDING EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class BindingError(DomainError):
    """Base exception for binding validation failures."""

    pass


class DeviceNotFoundError(BindingError):
    """
    Device could not be resolved.

    Raised when:
    - Device id doesn't exist
    - Product serial doesn't match any device

    Example:
        >>> raise DeviceNotFoundError("dev_123")
    """

    code = ErrorCode.DEVICE_NOT_FOUND

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"Device not found: {identifier}")


class OwnerNotFoundError(BindingError):
    """
    Owner (elder) could not be resolved.

    Raised when:
    - Elder id doesn't exist
    - Elder was soft-deleted
    """

    code = ErrorCode.OWNER_NOT_FOUND

    def __init__(self, identifier: str, kind: str = "Owner"):
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")


class UserNotFoundError(OwnerNotFoundError):
    """Map-app user could not be resolved."""

    code = ErrorCode.USER_NOT_FOUND

    def __init__(self, identifier: str):
        super().__init__(identifier, kind="User")


class AlreadyBoundError(BindingError):
    """
    Device is held by an owner the request cannot displace.

    Raised when:
    - Device is bound to an elder and a map user asks for it
    - Device is bound to another map user
    - Device is bound to a map user and an elder binding is requested

    Example:
        >>> raise AlreadyBoundError("dev_123", "MAP_USER")
    """

    code = ErrorCode.ALREADY_BOUND

    def __init__(self, device_id: str, binding_type: str):
        self.device_id = device_id
        self.binding_type = binding_type
        super().__init__(f"Device {device_id} is already bound ({binding_type})")


class AccountDeletedError(BindingError):
    """Map-app user account is flagged as deleted."""

    code = ErrorCode.ACCOUNT_DELETED

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"Account has been deleted: {user_id}")


class NoBoundDeviceError(BindingError):
    """Map-app user has no bound device to release."""

    code = ErrorCode.NO_BOUND_DEVICE

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User has no bound device: {user_id}")


class InvalidBindingStateError(DomainError):
    """
    Device binding invariant violated.

    Raised when:
    - bound_to is set on an UNBOUND device (or missing on a bound one)
    - Map-user shadow fields are set on a device not held by a map user
    """

    pass


# ═══════════════════════════════════════════════════════════
# VALIDATION / AUTHORIZATION EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class ValidationError(DomainError):
    """
    Input validation failed.

    Example:
        >>> raise ValidationError("deviceId or serial is required")
    """

    code = ErrorCode.VALIDATION_ERROR


class AuthorizationError(DomainError):
    """
    Authorization failed.

    Raised when:
    - Bearer credential missing, invalid or expired
    - Caller tries to bind/unbind an owner record that isn't theirs

    Example:
        >>> raise AuthorizationError("user_1 cannot unbind devices of user_2")
    """

    code = ErrorCode.UNAUTHORIZED


# ═══════════════════════════════════════════════════════════
# ARCHIVAL EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class ArchivalFailedError(DomainError):
    """
    Activity archival stopped on a failed batch commit.

    Pages committed before the failure stay archived; the remaining live
    activities are untouched and a later archive run resumes from them.
    """

    code = ErrorCode.ARCHIVAL_FAILED

    def __init__(
        self,
        device_id: str,
        reason: str,
        archive_session_id: str,
        archived_count: int,
        cause: Optional[BaseException] = None,
    ):
        self.device_id = device_id
        self.reason = reason
        self.archive_session_id = archive_session_id
        self.archived_count = archived_count
        self.cause = cause
        super().__init__(
            f"Archival failed for device {device_id} "
            f"(reason={reason}, session={archive_session_id}, "
            f"archived={archived_count}): {cause}"
        )


# ═══════════════════════════════════════════════════════════
# INFRASTRUCTURE EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class InfrastructureError(DomainError):
    """
    Infrastructure layer error.

    Base class for document store errors.
    """

    code = ErrorCode.DATABASE_ERROR


class DatabaseError(InfrastructureError):
    """
    Database operation failed.

    Raised when:
    - Connection lost
    - Query failed
    - Transaction aborted

    Example:
        >>> raise DatabaseError("MongoDB connection lost")
    """

    pass


class BatchLimitExceededError(InfrastructureError):
    """Write batch would exceed the store's per-commit operation limit."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Write batch exceeds {limit} operations")
