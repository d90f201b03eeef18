"""Authentication provider protocol."""

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass
class TokenUser:
    """The signed-in user as described by a bearer token.

    ``id`` is the identity provider's subject and is also the profile id.
    """

    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    role: Optional[str] = None


class IAuthProvider(Protocol):
    """Protocol for authentication providers."""

    async def validate_token(self, token: str) -> Optional[TokenUser]:
        """Return the token's user, or None if the token is not acceptable."""
        ...

    def create_token(self, user: TokenUser) -> str:
        """Issue a locally signed token for ``user``."""
        ...
