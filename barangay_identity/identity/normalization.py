"""Contact value normalization applied before any store comparison."""

from __future__ import annotations


def normalize_email(value: str | None) -> str | None:
    """Trim and lower-case an email; blank values normalize to None."""
    if value is None:
        return None
    normalized = value.strip().lower()
    return normalized or None


def normalize_phone(value: str | None) -> str | None:
    """Trim a phone number. No reformatting: stored values are compared exactly."""
    if value is None:
        return None
    normalized = value.strip()
    return normalized or None
