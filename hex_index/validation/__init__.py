"""Input validation for publication identifiers."""

from .input_validator import (
    ValidationError,
    ValidationResult,
    require_feed_url,
    require_slug,
    require_valid,
    validate_feed_url,
    validate_slug,
    validate_slug_or_url,
)

__all__ = [
    "ValidationError",
    "ValidationResult",
    "require_feed_url",
    "require_slug",
    "require_valid",
    "validate_feed_url",
    "validate_slug",
    "validate_slug_or_url",
]
