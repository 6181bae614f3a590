"""Shared StrEnum definitions stored as plain strings in the database."""

from enum import StrEnum


class NotificationCategory(StrEnum):
    DASHBOARD = "dashboard"
    BUILDER = "builder"
    ORGANIZATION = "organization"
