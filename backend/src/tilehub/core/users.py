"""User service: read the current account and apply partial updates to it.

Accounts are provisioned elsewhere; this service only reads and mutates an
existing row within the caller's request transaction.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import func, select

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

from tilehub.core.basemaps import default_basemap_for
from tilehub.core.enums import NotificationCategory
from tilehub.core.exceptions import AccountValidationError
from tilehub.core.models import Notification, User
from tilehub.core.passwords import hash_password
from tilehub.core.schemas import (
    ACCOUNT_FIELDS,
    PROFILE_FIELDS,
    MeResponse,
    NotificationResponse,
    OrganizationSummary,
    UpdateMe,
    UserResponse,
)
from tilehub.core.validation import AccountValidator

logger = structlog.get_logger()


class UserService:
    def __init__(self, session: AsyncSession, validator: AccountValidator | None = None) -> None:
        self._session = session
        self._validator = validator or AccountValidator()

    async def notifications_for_category(
        self, user_id: UUID, category: NotificationCategory
    ) -> list[NotificationResponse]:
        """Unread notifications of one category, newest first."""
        result = await self._session.execute(
            select(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.category == category,
                Notification.read_at.is_(None),
            )
            .order_by(Notification.created_at.desc(), Notification.id.desc())
        )
        return [NotificationResponse.model_validate(n) for n in result.scalars()]

    async def get_me(self, user: User) -> MeResponse:
        organization = (
            OrganizationSummary.model_validate(user.organization)
            if user.organization is not None
            else None
        )
        return MeResponse(
            user_data=UserResponse.model_validate(user),
            organization=organization,
            default_fallback_basemap=default_basemap_for(user),
            dashboard_notifications=await self.notifications_for_category(
                user.id, NotificationCategory.DASHBOARD
            ),
            organization_notifications=await self.notifications_for_category(
                user.id, NotificationCategory.ORGANIZATION
            ),
        )

    async def update_me(self, user: User, data: UpdateMe) -> UserResponse:
        """Apply the fields present in ``data`` to ``user``, all or nothing.

        Raises AccountValidationError (400) with every failing field.
        """
        staged = data.model_dump(exclude_unset=True)
        account = {k: v for k, v in staged.items() if k in ACCOUNT_FIELDS}
        profile = {k: v for k, v in staged.items() if k in PROFILE_FIELDS}

        errors = self._validator.validate(account, user)
        if "email" not in errors and "email" in account:
            if await self._email_taken(account["email"], user.id):
                errors.setdefault("email", []).append("has already been taken")

        if errors:
            logger.info(
                "account_update_rejected",
                user_id=str(user.id),
                fields=sorted(errors),
            )
            raise AccountValidationError(errors=errors)

        changed = self._apply(user, account, profile)
        await self._session.flush()
        logger.info("account_updated", user_id=str(user.id), fields=changed)
        return UserResponse.model_validate(user)

    async def _email_taken(self, email: str, user_id: UUID) -> bool:
        result = await self._session.execute(
            select(User.id).where(func.lower(User.email) == email.lower(), User.id != user_id)
        )
        return result.first() is not None

    def _apply(self, user: User, account: dict[str, Any], profile: dict[str, Any]) -> list[str]:
        changed: list[str] = []
        now = datetime.now(UTC)

        # null clears the column
        for field, value in profile.items():
            setattr(user, field, value)
            changed.append(field)

        if "email" in account:
            user.email = account["email"]
            changed.append("email")

        if "new_password" in account:
            user.crypted_password = hash_password(account["new_password"])
            user.last_password_change_date = now
            changed.append("password")
            logger.info("password_changed", user_id=str(user.id))

        user.updated_at = now
        return sorted(changed)
