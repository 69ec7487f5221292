"""Translate domain errors into GraphQL errors carrying stable codes."""

from typing import NoReturn

import structlog
from graphql import GraphQLError
from pydantic import ValidationError as PydanticValidationError
from strawberry.types import Info

from beacontrack.domain.admin.models import Principal
from beacontrack.domain.shared.errors import DomainError, ErrorCode

logger = structlog.get_logger(__name__)


def raise_graphql_error(error: Exception) -> NoReturn:
    """
    Re-raise a domain or validation error as a GraphQLError.

    ``extensions.code`` is the stable error code (e.g. ALREADY_BOUND).
    """
    if isinstance(error, DomainError):
        code = error.code
    elif isinstance(error, PydanticValidationError):
        code = ErrorCode.VALIDATION_ERROR
    else:
        raise error

    logger.info("graphql.domain_error", code=code.value, error=str(error))
    raise GraphQLError(str(error), extensions={"code": code.value}) from error


def require_principal(info: Info) -> Principal:
    """Verified caller from context, or an UNAUTHORIZED GraphQL error."""
    principal = info.context.get("principal")
    if principal is None:
        raise GraphQLError(
            "Not authenticated", extensions={"code": ErrorCode.UNAUTHORIZED.value}
        )
    return principal
