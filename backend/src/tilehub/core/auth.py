"""Authentication service: session token creation and verification.

Session tokens are HS256 JWTs signed with ``jwt_secret_key``. They travel
either in the session cookie or in an ``Authorization: Bearer`` header.
"""

from __future__ import annotations

import secrets
import time
from typing import TYPE_CHECKING

import structlog
from jose import JWTError, jwt

from tilehub.core.config import settings
from tilehub.core.exceptions import UnauthorisedError
from tilehub.core.schemas import TokenClaims

if TYPE_CHECKING:
    from tilehub.core.models import User

logger = structlog.get_logger()


def generate_api_key() -> str:
    """Return a new random API key (40 hex characters)."""
    return secrets.token_hex(20)


def api_keys_match(presented: str, stored: str) -> bool:
    return secrets.compare_digest(presented.encode("utf-8"), stored.encode("utf-8"))


class AuthService:
    def verify_token(self, token: str) -> TokenClaims:
        """Validate JWT signature, expiry, and required claims. Raises 401 on failure."""
        try:
            payload = jwt.decode(
                token,
                settings.jwt_secret_key,
                algorithms=[settings.jwt_algorithm],
                options={"verify_aud": False, "verify_iss": False},
            )
        except JWTError as exc:
            logger.warning("auth_session_invalid", error=str(exc))
            raise UnauthorisedError("Invalid or expired session.") from exc

        sub = payload.get("sub")
        username = payload.get("username")
        exp = payload.get("exp")

        if not all([sub, username, exp]):
            raise UnauthorisedError("Session missing required claims.")

        return TokenClaims(sub=str(sub), username=str(username), exp=int(exp))

    def create_session_token(self, user: User) -> str:
        """Create a signed session token for ``user``."""
        now = int(time.time())
        payload = {
            "sub": str(user.id),
            "username": user.username,
            "exp": now + settings.session_expire_minutes * 60,
            "iat": now,
        }
        result: str = jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
        return result
