"""User routes: current account info and self-service account updates.

Every route is served twice: at the root, where only a session identifies
the caller, and under ``/u/{user_domain}``, where an API key may be used
together with the username it belongs to.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tilehub.core.database import get_db_session
from tilehub.core.middleware import get_current_user, get_target_user
from tilehub.core.models import User
from tilehub.core.schemas import MeResponse, UpdateMeRequest, UserResponse
from tilehub.core.users import UserService

router = APIRouter(tags=["users"])


@router.get("/api/v3/users/me", response_model=MeResponse)
@router.get("/u/{user_domain}/api/v3/users/me", response_model=MeResponse)
async def get_me(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> MeResponse:
    """Return the current user with its default basemap and pending notifications."""
    user_service = UserService(session)
    return await user_service.get_me(user)


@router.put("/api/v3/users/{user_id}", response_model=UserResponse)
@router.put("/u/{user_domain}/api/v3/users/{user_id}", response_model=UserResponse)
async def update_me(
    body: UpdateMeRequest,
    user: User = Depends(get_target_user),
    session: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    """Update the current user's account and profile fields."""
    user_service = UserService(session)
    result = await user_service.update_me(user, body.user)
    await session.commit()
    return result
