"""Shared utilities used across the consultation scheduler."""

import re
from datetime import datetime

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("(512) 555-0134")
        '5125550134'
        >>> normalize_phone("+1 512 555 0134")
        '+15125550134'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def format_phone_e164(value: str) -> str:
    """Format a US phone number as E.164 for the messaging platform.

    Numbers that don't look like US numbers are returned normalized but
    otherwise unchanged.

    Examples:
        >>> format_phone_e164("512-555-0134")
        '+15125550134'
        >>> format_phone_e164("1 (512) 555-0134")
        '+15125550134'
    """
    cleaned = normalize_phone(value)
    if cleaned.startswith("+"):
        return cleaned
    if len(cleaned) == 10:
        return f"+1{cleaned}"
    if len(cleaned) == 11 and cleaned.startswith("1"):
        return f"+{cleaned}"
    return cleaned


def is_valid_email(value: str) -> bool:
    """Check an email address has the shape ``user@domain.ext``."""
    if not value or not isinstance(value, str):
        return False
    return EMAIL_PATTERN.match(value.strip()) is not None


def require_aware(value: datetime, name: str) -> datetime:
    """Reject naive datetimes; every instant in the scheduler carries a zone."""
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        raise ValueError(f"{name} must be timezone-aware, got {value!r}")
    return value
