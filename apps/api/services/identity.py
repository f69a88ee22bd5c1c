"""Shared id and account-identity normalization helpers."""

from __future__ import annotations

import re
import uuid
from typing import Any, Optional

from services.errors import ForbiddenError, InvalidArgumentError

_USERNAME_PATTERN = re.compile(r"^[a-z0-9._-]{3,30}$")
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def is_valid_entity_id(value: Any) -> bool:
    if not isinstance(value, str) or not value.strip():
        return False
    try:
        uuid.UUID(value.strip())
    except ValueError:
        return False
    return True


def ensure_entity_id(value: Any, field: str = "id") -> str:
    """Return the canonical form of an entity id or raise a client error."""
    if not is_valid_entity_id(value):
        raise InvalidArgumentError(f"Invalid {field}")
    return str(uuid.UUID(value.strip()))


def ensure_optional_entity_id(value: Any, field: str = "id") -> Optional[str]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return ensure_entity_id(value, field)


def normalize_text(value: Any) -> str:
    return str(value or "").strip()


def require_text(value: Any, field: str) -> str:
    text = normalize_text(value)
    if not text:
        raise InvalidArgumentError(f"{field} is required")
    return text


def normalize_username(value: Any) -> str:
    """Lower-case a username, dropping a leading @ handle prefix."""
    text = normalize_text(value).lower()
    if text.startswith("@"):
        text = text[1:]
    return text


def ensure_username(value: Any) -> str:
    username = normalize_username(value)
    if not username:
        raise InvalidArgumentError("username is required")
    if not _USERNAME_PATTERN.match(username):
        raise InvalidArgumentError(
            "username must be 3-30 characters of letters, digits, '.', '_' or '-'"
        )
    return username


def normalize_email(value: Any) -> str:
    return normalize_text(value).lower()


def ensure_email(value: Any) -> str:
    email = normalize_email(value)
    if not email:
        raise InvalidArgumentError("email is required")
    if not _EMAIL_PATTERN.match(email):
        raise InvalidArgumentError("email is not a valid address")
    return email


def ensure_owner(auth_user_id: str, owner_id: Optional[str], action: str) -> None:
    """Reject mutations of entities owned by someone else."""
    if owner_id != auth_user_id:
        raise ForbiddenError(f"Only the owner can {action}.")
