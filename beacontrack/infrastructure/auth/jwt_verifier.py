"""JWT token verifier.

Credentials are issued elsewhere; this adapter only verifies them and maps
the claims onto a Principal:

- ``sub``: principal id (a map user id or an administrator id)
- ``role``: optional, SUPER_ADMIN or TENANT_ADMIN
- ``tenant_id``: optional, scope of a TENANT_ADMIN
"""

from typing import Any, Dict, List, Optional

import jwt
import structlog
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError as JWTError

from beacontrack.domain.admin.models import AdminRole, Principal
from beacontrack.domain.admin.ports import ITokenVerifier
from beacontrack.domain.shared.errors import AuthorizationError
from beacontrack.infrastructure.config import (
    get_jwt_algorithms,
    get_jwt_audience,
    get_jwt_issuer,
    get_jwt_secret,
)

logger = structlog.get_logger(__name__)


class JWTTokenVerifier(ITokenVerifier):
    """PyJWT-based implementation of the token verifier.

    Environment Variables:
    - JWT_SECRET: verification key (required)
    - JWT_ALGORITHMS: accepted algorithms, comma separated (default: HS256)
    - JWT_AUDIENCE / JWT_ISSUER: validated when set

    Examples:
        >>> verifier = JWTTokenVerifier(secret="s3cret")
        >>> principal = await verifier.verify(token)
        >>> principal.principal_id
        'user_1'
    """

    def __init__(
        self,
        secret: Optional[str] = None,
        algorithms: Optional[List[str]] = None,
        audience: Optional[str] = None,
        issuer: Optional[str] = None,
    ):
        """Initialize verifier.

        Raises:
            ValueError: If no secret is given or configured
        """
        self.secret = secret or get_jwt_secret()
        if not self.secret:
            raise ValueError("JWT_SECRET not configured")
        self.algorithms = algorithms or get_jwt_algorithms()
        self.audience = audience or get_jwt_audience()
        self.issuer = issuer or get_jwt_issuer()

    def decode(self, token: str) -> Dict[str, Any]:
        """Decode and validate a token.

        Raises:
            AuthorizationError: If token is expired or invalid
        """
        options = {"verify_aud": self.audience is not None, "require": ["sub", "exp"]}
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=self.algorithms,
                audience=self.audience,
                issuer=self.issuer,
                options=options,
            )
        except ExpiredSignatureError as e:
            raise AuthorizationError("Token has expired") from e
        except JWTError as e:
            raise AuthorizationError(f"Invalid token: {e}") from e

    async def verify(self, token: str) -> Principal:
        if not token:
            raise AuthorizationError("Missing authorization token")

        claims = self.decode(token)
        role = claims.get("role")
        try:
            return Principal(
                principal_id=claims["sub"],
                role=AdminRole(role) if role else None,
                tenant_id=claims.get("tenant_id"),
            )
        except ValueError as e:
            logger.warning("auth.invalid_claims", sub=claims.get("sub"), role=role)
            raise AuthorizationError(f"Invalid token claims: {e}") from e
