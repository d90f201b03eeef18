"""JWT authentication provider.

Accepts ES256 tokens from the identity provider, verified against the keys
published at ``settings.jwks_url``, and HS256 tokens signed with the local
secret (used by tests and local tooling).

Payload fields read:
    {
        "sub": "<profile id>",
        "email": "user@example.com",
        "role": "authenticated",
        "user_metadata": { "display_name": "Jane" },
        "exp": 1234567890
    }
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

import httpx
from jose import JWTError, jwt
from jose.backends import ECKey

from core.config import settings
from infrastructure.auth.provider import TokenUser

logger = logging.getLogger(__name__)


class JWKSKeyStore:
    """Caches the identity provider's signing keys by ``kid``."""

    def __init__(self, url: str, timeout: float = 10.0) -> None:
        self._url = url
        self._timeout = timeout
        self._keys: dict[str, Any] | None = None

    async def get(self, kid: str) -> dict[str, Any] | None:
        """Return the key for ``kid``, refetching once on a miss (key rotation)."""
        keys = await self._load()
        if kid not in keys:
            self._keys = None
            keys = await self._load()
        return keys.get(kid)

    async def _load(self) -> dict[str, Any]:
        if self._keys is not None:
            return self._keys
        if not self._url:
            return {}

        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(self._url, timeout=self._timeout)
                response.raise_for_status()
                body = response.json()
        except (httpx.HTTPError, ValueError):
            logger.exception("Failed to fetch JWKS from %s", self._url)
            return {}

        self._keys = {key["kid"]: key for key in body.get("keys", []) if key.get("kid")}
        logger.info("Fetched %d JWKS keys", len(self._keys))
        return self._keys


class JWTAuthProvider:
    """Validates bearer tokens and issues local test tokens."""

    def __init__(
        self,
        secret_key: str = settings.jwt_secret_key,
        algorithm: str = settings.jwt_algorithm,
        expire_minutes: int = settings.jwt_expire_minutes,
        key_store: JWKSKeyStore | None = None,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes
        self._key_store = key_store or JWKSKeyStore(settings.jwks_url)

    async def validate_token(self, token: str) -> Optional[TokenUser]:
        """Validate a JWT and extract the user.

        Returns:
            TokenUser if valid, None if invalid, expired or without a subject
        """
        try:
            header = jwt.get_unverified_header(token)
            if header.get("alg") == "ES256":
                payload = await self._decode_es256(token, header)
            else:
                payload = jwt.decode(
                    token,
                    self._secret_key,
                    algorithms=[self._algorithm],
                    options={"verify_aud": False},
                )
        except JWTError:
            return None

        if not payload or not payload.get("sub"):
            return None

        metadata = payload.get("user_metadata") or {}
        return TokenUser(
            id=str(payload["sub"]),
            email=payload.get("email"),
            display_name=(
                metadata.get("display_name") or metadata.get("name") or payload.get("name")
            ),
            role=payload.get("role"),
        )

    async def _decode_es256(self, token: str, header: dict) -> Optional[dict]:
        kid = header.get("kid")
        if not kid:
            return None

        key_data = await self._key_store.get(kid)
        if not key_data:
            logger.warning("JWKS key not found for kid=%s", kid)
            return None

        return jwt.decode(
            token,
            ECKey(key_data, algorithm="ES256"),
            algorithms=["ES256"],
            options={"verify_aud": False},
        )

    def create_token(self, user: TokenUser) -> str:
        """Create an HS256 token for ``user``."""
        payload: dict = {
            "sub": user.id,
            "email": user.email,
            "role": user.role or "authenticated",
            "exp": datetime.utcnow() + timedelta(minutes=self._expire_minutes),
            "user_metadata": {"display_name": user.display_name},
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
