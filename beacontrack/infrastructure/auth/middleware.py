"""FastAPI authentication middleware."""

from typing import Any, Optional

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from beacontrack.domain.admin.ports import ITokenVerifier
from beacontrack.domain.shared.errors import AuthorizationError
from beacontrack.infrastructure.auth.jwt_verifier import JWTTokenVerifier
from beacontrack.infrastructure.config import is_auth_required

logger = structlog.get_logger(__name__)

PUBLIC_PATHS = ("/health", "/version")


class AuthMiddleware(BaseHTTPMiddleware):
    """FastAPI middleware for bearer-token authentication.

    Verifies the token from the Authorization header and sets
    ``request.state.principal`` for downstream handlers.

    Environment Variables:
    - AUTH_REQUIRED: "true" to require auth on all routes (default: "true")

    Examples:
        >>> app.add_middleware(AuthMiddleware)
        >>> # In a resolver:
        >>> principal = info.context.principal
    """

    def __init__(
        self,
        app: Any,
        verifier: Optional[ITokenVerifier] = None,
        auth_required: Optional[bool] = None,
    ) -> None:
        super().__init__(app)
        self.verifier = verifier or JWTTokenVerifier()
        self.auth_required = is_auth_required() if auth_required is None else auth_required

    async def dispatch(self, request: Request, call_next: Any) -> Any:
        """Verify the bearer token, then hand over to the next handler."""
        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        token = self._extract_token(request.headers.get("Authorization"))

        if not token:
            if self.auth_required:
                return JSONResponse(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    content={"error": "UNAUTHORIZED", "message": "Missing authorization token"},
                )
            request.state.principal = None
            return await call_next(request)

        try:
            request.state.principal = await self.verifier.verify(token)
        except AuthorizationError as e:
            logger.info("auth.token_rejected", error=str(e))
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"error": e.code.value, "message": str(e)},
            )

        return await call_next(request)

    def _extract_token(self, auth_header: Optional[str]) -> Optional[str]:
        """Extract Bearer token from Authorization header.

        Examples:
            >>> self._extract_token("Bearer eyJ...")
            'eyJ...'
            >>> self._extract_token("eyJ...") is None
            True
        """
        if not auth_header:
            return None

        parts = auth_header.split()
        if len(parts) != 2:
            return None

        scheme, token = parts
        if scheme.lower() != "bearer":
            return None

        return token
