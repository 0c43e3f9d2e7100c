"""Input shape checks run before any store access."""

from __future__ import annotations

import re

from config import PASSWORD_MIN_LENGTH

from .errors import ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_USERNAME_MAX = 64


def validate_email(email: str | None) -> str:
    value = (email or "").strip().lower()
    if not value:
        raise ValidationError("Email is required.")
    if not _EMAIL_RE.match(value):
        raise ValidationError("Email is not valid.")
    return value


def validate_username(username: str | None) -> str:
    value = (username or "").strip()
    if not value:
        raise ValidationError("Username is required.")
    if len(value) > _USERNAME_MAX:
        raise ValidationError(f"Username must be at most {_USERNAME_MAX} characters.")
    return value


def validate_password(password: str | None, *, min_length: int | None = None) -> str:
    min_len = PASSWORD_MIN_LENGTH if min_length is None else min_length
    if not password or len(password) < min_len:
        raise ValidationError(f"Password must be at least {min_len} characters.")
    return password


def validate_registration(
    username: str | None,
    email: str | None,
    password: str | None,
    *,
    min_password_length: int | None = None,
) -> tuple[str, str, str]:
    """Return normalized ``(username, email, password)`` or raise ValidationError."""
    return (
        validate_username(username),
        validate_email(email),
        validate_password(password, min_length=min_password_length),
    )
