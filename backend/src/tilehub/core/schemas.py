"""Pydantic v2 request/response schemas for the users API."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from tilehub.core.enums import NotificationCategory

# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Standard error response body."""

    code: str
    message: str
    detail: dict[str, object] | None = None
    errors: dict[str, list[str]] | None = None


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class TokenClaims(BaseModel):
    sub: str
    username: str
    exp: int


class Credentials(BaseModel):
    """Everything a request presented that could identify its caller."""

    token: str | None = None
    api_key: str | None = None
    user_domain: str | None = None


# ---------------------------------------------------------------------------
# Organization
# ---------------------------------------------------------------------------


class OrganizationSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str


# ---------------------------------------------------------------------------
# Notification
# ---------------------------------------------------------------------------


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    category: NotificationCategory
    body: str
    created_at: datetime
    read_at: datetime | None = None


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    email: str
    organization_id: UUID | None = None
    name: str | None
    last_name: str | None
    website: str | None
    description: str | None
    location: str | None
    twitter_username: str | None
    disqus_shortname: str | None
    available_for_hire: bool | None
    last_password_change_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class MeResponse(BaseModel):
    """The current user plus the derived data the dashboard needs on load."""

    user_data: UserResponse
    organization: OrganizationSummary | None
    default_fallback_basemap: dict[str, object]
    dashboard_notifications: list[NotificationResponse]
    organization_notifications: list[NotificationResponse]


ACCOUNT_FIELDS = frozenset({"email", "old_password", "new_password", "confirm_password"})
PROFILE_FIELDS = frozenset(
    {
        "name",
        "last_name",
        "website",
        "description",
        "location",
        "twitter_username",
        "disqus_shortname",
        "available_for_hire",
    }
)


class UpdateMe(BaseModel):
    """Fields a user can change on their own account.

    Only keys present in the request are applied; a key sent as null clears
    the stored value. Use ``model_dump(exclude_unset=True)`` to tell the two
    apart.
    """

    model_config = ConfigDict(extra="ignore")

    # Account
    email: str | None = None
    old_password: str | None = None
    new_password: str | None = None
    confirm_password: str | None = None

    # Profile
    name: str | None = None
    last_name: str | None = None
    website: str | None = None
    description: str | None = None
    location: str | None = None
    twitter_username: str | None = None
    disqus_shortname: str | None = None
    available_for_hire: bool | None = None


class UpdateMeRequest(BaseModel):
    user: UpdateMe
