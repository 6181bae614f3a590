"""FastAPI dependency functions for authentication.

These dependencies are injected into route handlers via ``Depends()``.
"""

from __future__ import annotations

from uuid import UUID

import structlog
from fastapi import Depends, Header, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from tilehub.core.config import settings
from tilehub.core.database import get_db_session
from tilehub.core.exceptions import UnauthorisedError
from tilehub.core.identity import IdentityResolver
from tilehub.core.models import User
from tilehub.core.schemas import Credentials

logger = structlog.get_logger()

_bearer_scheme = HTTPBearer(auto_error=False)


async def get_credentials(
    request: Request,
    bearer: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    api_key: str | None = Query(None),
    x_api_key: str | None = Header(None),
) -> Credentials:
    """Collect the session token, API key and user domain of the request."""
    token = bearer.credentials if bearer is not None else None
    if token is None:
        token = request.cookies.get(settings.session_cookie_name)
    return Credentials(
        token=token,
        api_key=api_key or x_api_key,
        user_domain=request.path_params.get("user_domain"),
    )


async def get_current_user(
    request: Request,
    credentials: Credentials = Depends(get_credentials),
    session: AsyncSession = Depends(get_db_session),
) -> User:
    """Resolve the caller to a User. Raises 401 when no credential matches."""
    resolver = IdentityResolver(session)
    user = await resolver.resolve_identity(credentials)
    request.state.user_id = user.id
    return user


async def get_target_user(
    user_id: str,
    user: User = Depends(get_current_user),
) -> User:
    """The current user, provided it is the one addressed by ``{user_id}``.

    Users may only modify their own account; any other target is a 401.
    """
    try:
        target = UUID(user_id)
    except ValueError:
        target = None
    if target != user.id:
        logger.warning("auth_target_mismatch", user_id=str(user.id), target=user_id)
        raise UnauthorisedError()
    return user
