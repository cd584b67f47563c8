"""JWT authentication provider implementation.

Token payload structure:
    {
        "sub": "user@example.com",
        "email": "user@example.com",
        "email_verified": true,
        "user_metadata": { "display_name": "Ada" },
        "exp": 1234567890
    }

``sub`` may also be an opaque user id; the identity key is always ``email``.
"""

from datetime import datetime, timedelta
from typing import Optional

import structlog
from jose import JWTError, jwt

from core.config import settings
from domain.entities.identity import Identity

logger = structlog.get_logger()


class JWTAuthProvider:
    """JWT-based authentication provider using a shared secret."""

    def __init__(
        self,
        secret_key: str = settings.jwt_secret_key,
        algorithm: str = settings.jwt_algorithm,
        expire_minutes: int = settings.jwt_expire_minutes,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes

    async def validate_token(self, token: str) -> Optional[Identity]:
        """
        Validate a JWT token and extract the identity.

        Args:
            token: The JWT to validate

        Returns:
            Identity if valid, None if invalid, expired or missing an email
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_aud": False},
            )
        except JWTError as exc:
            logger.debug("token_rejected", reason=str(exc))
            return None

        email = payload.get("email")
        if not payload.get("sub") or not email:
            return None

        user_metadata = payload.get("user_metadata") or {}
        display_name = (
            user_metadata.get("display_name")
            or user_metadata.get("name")
            or payload.get("name")
        )

        return Identity(
            email=email,
            display_name=display_name,
            email_verified=bool(payload.get("email_verified", True)),
        )

    def create_token(self, identity: Identity) -> str:
        """
        Create a JWT token for an identity (used for tests and local development).

        Args:
            identity: The identity to create a token for

        Returns:
            The generated JWT string
        """
        expire = datetime.utcnow() + timedelta(minutes=self._expire_minutes)

        payload: dict = {
            "sub": identity.email,
            "email": identity.email,
            "email_verified": identity.email_verified,
            "exp": expire,
            "user_metadata": {
                "display_name": identity.display_name,
            },
        }

        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
