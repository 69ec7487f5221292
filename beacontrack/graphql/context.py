"""GraphQL context factory for dependency injection."""

from typing import Any, Optional

from fastapi import Request
from strawberry.fastapi import BaseContext

from beacontrack.application.services import BindingServices
from beacontrack.domain.admin.models import Principal


class GraphQLContext(BaseContext):
    """GraphQL context with all dependencies.

    Resolvers access dependencies using ``info.context.get("services")``
    and the verified caller using ``info.context.principal``.

    Attributes:
        services: Use cases (commands, manager, resolver, pipeline)
        request: FastAPI request object (carries the principal set by AuthMiddleware)
        principal: Verified caller, None if unauthenticated
    """

    def __init__(
        self,
        services: BindingServices,
        request: Optional[Request] = None,
        principal: Optional[Principal] = None,
    ) -> None:
        super().__init__()
        self.services = services
        self.request = request
        self.principal: Optional[Principal] = principal or (
            getattr(request.state, "principal", None) if request else None
        )

    def get(self, key: str) -> Any:
        """Get dependency by name (for resolver compatibility).

        Example:
            >>> services = info.context.get("services")
        """
        return getattr(self, key, None)
