"""Identity resolution: turn presented credentials into a User or a 401.

Two kinds of credential are accepted:

* an API key, which is only valid together with the username (user domain)
  it belongs to;
* a session token, optionally scoped by a user domain that must then match
  the token's owner.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from tilehub.core.auth import AuthService, api_keys_match
from tilehub.core.exceptions import UnauthorisedError
from tilehub.core.models import User

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from tilehub.core.schemas import Credentials

logger = structlog.get_logger()


class IdentityResolver:
    def __init__(self, session: AsyncSession, auth_service: AuthService | None = None) -> None:
        self._session = session
        self._auth_service = auth_service or AuthService()

    async def resolve_identity(self, credentials: Credentials) -> User:
        """Return the authenticated user. Raises UnauthorisedError otherwise."""
        if credentials.api_key:
            return await self._resolve_api_key(credentials.api_key, credentials.user_domain)
        if credentials.token:
            return await self._resolve_session(credentials.token, credentials.user_domain)
        raise UnauthorisedError()

    async def _resolve_api_key(self, api_key: str, user_domain: str | None) -> User:
        if not user_domain:
            logger.warning("auth_api_key_rejected", reason="missing_user_domain")
            raise UnauthorisedError()

        result = await self._session.execute(
            select(User)
            .options(selectinload(User.organization))
            .where(User.username == user_domain)
        )
        user = result.scalar_one_or_none()
        if user is None or not api_keys_match(api_key, user.api_key):
            logger.warning("auth_api_key_rejected", user_domain=user_domain)
            raise UnauthorisedError()
        return user

    async def _resolve_session(self, token: str, user_domain: str | None) -> User:
        claims = self._auth_service.verify_token(token)
        try:
            user_id = UUID(claims.sub)
        except ValueError as exc:
            raise UnauthorisedError("Session missing required claims.") from exc

        result = await self._session.execute(
            select(User).options(selectinload(User.organization)).where(User.id == user_id)
        )
        user = result.scalar_one_or_none()
        if user is None:
            logger.warning("auth_session_invalid", reason="unknown_user")
            raise UnauthorisedError()

        if user_domain is not None and user_domain != user.username:
            logger.warning(
                "auth_domain_mismatch",
                user_id=str(user.id),
                user_domain=user_domain,
            )
            raise UnauthorisedError()
        return user
