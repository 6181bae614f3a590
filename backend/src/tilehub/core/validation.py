"""Field-level validation for account updates.

Each rule looks at the staged field map (only the keys the client sent) and
yields ``(field, reason)`` pairs. Every rule runs; the collected errors are
returned together so a client can fix all of them in one round trip.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Iterable, Iterator
from typing import TYPE_CHECKING, Any

from email_validator import EmailNotValidError, validate_email

from tilehub.core.config import settings
from tilehub.core.passwords import BCRYPT_MAX_BYTES, verify_password

if TYPE_CHECKING:
    from tilehub.core.models import User

Rule = Callable[[dict[str, Any], "User"], Iterable[tuple[str, str]]]


def email_rule(staged: dict[str, Any], _user: User) -> Iterator[tuple[str, str]]:
    if "email" not in staged:
        return
    email = staged["email"]
    if not email:
        yield "email", "can't be blank"
        return
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        yield "email", "is not a valid address"


def old_password_rule(staged: dict[str, Any], user: User) -> Iterator[tuple[str, str]]:
    if "new_password" not in staged:
        return
    old_password = staged.get("old_password")
    if not old_password or not verify_password(old_password, user.crypted_password):
        yield "old_password", "Old password not valid"


def new_password_rule(staged: dict[str, Any], _user: User) -> Iterator[tuple[str, str]]:
    if "new_password" not in staged:
        return
    new_password = staged["new_password"]
    if not new_password:
        yield "new_password", "New password can't be blank"
        return

    if len(new_password) < settings.min_password_length:
        yield (
            "new_password",
            f"New password must be at least {settings.min_password_length} characters long",
        )
    elif (
        len(new_password) > settings.max_password_length
        or len(new_password.encode("utf-8")) > BCRYPT_MAX_BYTES
    ):
        yield (
            "new_password",
            f"New password must be at most {settings.max_password_length} characters long",
        )

    if new_password != staged.get("confirm_password"):
        yield "new_password", "New password doesn't match confirmation"


DEFAULT_RULES: tuple[Rule, ...] = (email_rule, old_password_rule, new_password_rule)


class AccountValidator:
    def __init__(self, rules: Iterable[Rule] = DEFAULT_RULES) -> None:
        self._rules = tuple(rules)

    def validate(self, staged: dict[str, Any], user: User) -> dict[str, list[str]]:
        """Run every rule and return ``{field: [reasons]}``; empty when valid."""
        errors: dict[str, list[str]] = defaultdict(list)
        for rule in self._rules:
            for field, reason in rule(staged, user):
                errors[field].append(reason)
        return dict(errors)
