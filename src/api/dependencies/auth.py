"""Bearer-token authentication for the inbox routes.

Every inbox session is keyed on the profile id carried in the token, so the
only thing a route needs from here is :data:`CurrentUser`.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.exceptions import AuthenticationError, ErrorCode
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import TokenUser

bearer_scheme = HTTPBearer(
    auto_error=False,
    description="Access token whose subject is the inbox owner's profile id",
)

Bearer = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


@lru_cache
def get_auth_provider() -> JWTAuthProvider:
    """Process-wide provider; it owns the cached JWKS keys."""
    return JWTAuthProvider()


async def get_current_user(
    credentials: Bearer,
    auth_provider: JWTAuthProvider = Depends(get_auth_provider),
) -> TokenUser:
    """Resolve the inbox owner from the bearer token.

    Raises:
        AuthenticationError: missing header (``UNAUTHORIZED``) or a token
            that fails verification (``INVALID_TOKEN``).
    """
    if credentials is None:
        raise AuthenticationError("Authorization header required", ErrorCode.UNAUTHORIZED)

    owner = await auth_provider.validate_token(credentials.credentials)
    if owner is None:
        raise AuthenticationError("Invalid or expired token", ErrorCode.INVALID_TOKEN)
    return owner


CurrentUser = Annotated[TokenUser, Depends(get_current_user)]
