"""Validation of user-supplied publication slugs and feed URLs.

Every identifier that reaches the fetcher or the library store passes through
here first, so nothing with path traversal or a foreign scheme gets as far as
the network or the filesystem.
"""

import re
from dataclasses import dataclass
from typing import Any, Optional


SLUG_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]{0,62}$")
FEED_URL_PATTERN = re.compile(
    r"^https?://"
    r"(?:[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?\.)+[A-Za-z]{2,}"
    r"(?::\d{1,5})?"
    r"(?:/[A-Za-z0-9\-._~:/?#\[\]@!$&'()*+,;=%]*)?$"
)

EMPTY_INPUT = "Input must be a non-empty string"
BLANK_INPUT = "Input cannot be empty"
INVALID_URL = "Invalid feed URL format"
INVALID_CHARACTERS = "Invalid characters in input"
INVALID_SLUG = "Invalid slug format. Use only letters, numbers, hyphens, and underscores."


class ValidationError(ValueError):
    """Raised when a slug or feed URL is rejected."""


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one identifier."""
    valid: bool
    error: Optional[str] = None


def _check_present(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not value:
        return EMPTY_INPUT
    if not value.strip():
        return BLANK_INPUT
    return None


def _check_slug(trimmed: str) -> ValidationResult:
    if ".." in trimmed or "//" in trimmed:
        return ValidationResult(False, INVALID_CHARACTERS)
    if not SLUG_PATTERN.match(trimmed):
        return ValidationResult(False, INVALID_SLUG)
    return ValidationResult(True)


def _check_feed_url(trimmed: str) -> ValidationResult:
    if not FEED_URL_PATTERN.match(trimmed):
        return ValidationResult(False, INVALID_URL)
    return ValidationResult(True)


def validate_slug_or_url(value: Any) -> ValidationResult:
    """Validate a publication slug or a feed URL."""
    error = _check_present(value)
    if error:
        return ValidationResult(False, error)

    trimmed = value.strip()
    if "://" in trimmed:
        return _check_feed_url(trimmed)
    return _check_slug(trimmed)


def validate_slug(value: Any) -> ValidationResult:
    """Validate a storage slug. URLs are rejected."""
    error = _check_present(value)
    if error:
        return ValidationResult(False, error)
    return _check_slug(value.strip())


def validate_feed_url(value: Any) -> ValidationResult:
    """Validate a feed URL. Bare slugs are rejected."""
    error = _check_present(value)
    if error:
        return ValidationResult(False, error)
    return _check_feed_url(value.strip())


def _require(result: ValidationResult, value: Any) -> str:
    if not result.valid:
        raise ValidationError(result.error)
    return value.strip()


def require_valid(value: Any) -> str:
    """Return the trimmed identifier or raise ValidationError."""
    return _require(validate_slug_or_url(value), value)


def require_slug(value: Any) -> str:
    """Return the trimmed slug or raise ValidationError.

    Slugs name library directories, so anything URL-shaped is refused.
    """
    return _require(validate_slug(value), value)


def require_feed_url(value: Any) -> str:
    """Return the trimmed feed URL or raise ValidationError."""
    return _require(validate_feed_url(value), value)
