"""Input validation rules shared by the admin and user flows."""

import re
from typing import Optional

from aiquiz.config import MIN_PASSWORD_LENGTH
from aiquiz.core.exceptions import ValidationError

PIN_PATTERN = re.compile(r"[0-9]{4}")


def is_valid_pin(pin: Optional[str]) -> bool:
    return bool(pin) and PIN_PATTERN.fullmatch(pin) is not None


def require_pin(pin: Optional[str], message: str = "PIN must be exactly 4 digits") -> str:
    if not is_valid_pin(pin):
        raise ValidationError(message)
    return pin


def require_username(username: Optional[str], min_length: int = 1) -> str:
    """Strip and check a username.

    Args:
        username: Raw username from the request.
        min_length: Minimum length after stripping. Self-registration uses
            MIN_USERNAME_LENGTH, admin flows only require non-empty.

    Returns:
        The stripped username.

    Raises:
        ValidationError: If the username is empty or too short.
    """
    value = (username or "").strip()
    if not value:
        raise ValidationError("Username is required")
    if len(value) < min_length:
        raise ValidationError(f"Username must be at least {min_length} characters")
    return value


def require_password(password: Optional[str]) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    return password


def require_daily_limit(limit: int) -> int:
    if limit < 0:
        raise ValidationError("Daily AI limit cannot be negative")
    return limit
