"""SQLAlchemy 2.0 models for accounts, organizations and notifications.

Uses dialect-agnostic types (JSON, DateTime, Uuid) so models work with
both PostgreSQL (production) and SQLite (unit tests).
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from uuid_utils.compat import uuid7

from tilehub.core.database import Base
from tilehub.core.enums import NotificationCategory


class Organization(Base):
    """A group of users sharing a namespace and default map settings."""

    __tablename__ = "organizations"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid7)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    basemaps: Mapped[dict | None] = mapped_column(JSON, nullable=True)  # type: ignore[type-arg]
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    users: Mapped[list[User]] = relationship(back_populates="organization")


class User(Base):
    """A platform account. ``username`` is the tenant domain its API lives under."""

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid7)
    organization_id: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="SET NULL"), nullable=True, index=True
    )
    username: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    crypted_password: Mapped[str] = mapped_column(Text, nullable=False)
    api_key: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    # Profile
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    website: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    twitter_username: Mapped[str | None] = mapped_column(Text, nullable=True)
    disqus_shortname: Mapped[str | None] = mapped_column(Text, nullable=True)
    available_for_hire: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    basemaps: Mapped[dict | None] = mapped_column(JSON, nullable=True)  # type: ignore[type-arg]
    last_password_change_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    organization: Mapped[Organization | None] = relationship(
        back_populates="users", lazy="selectin"
    )
    notifications: Mapped[list[Notification]] = relationship(
        back_populates="recipient", cascade="all, delete-orphan"
    )


class Notification(Base):
    """A notification received by a user, grouped by category."""

    __tablename__ = "notifications"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid7)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category: Mapped[NotificationCategory] = mapped_column(String, nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    recipient: Mapped[User] = relationship(back_populates="notifications")
