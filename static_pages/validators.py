"""Input validation for cache keys, durations and upstream URLs.

Used by the content cache to reject malformed keys and lifetimes before any
state changes, and by settings validation to catch misconfigured upstreams.
"""

from __future__ import annotations

import re
from urllib.parse import urlparse


class ValidationError(ValueError):
    """Raised when input validation fails."""
    pass


def validate_cache_key(key: str) -> str:
    """Validate a cache key.

    Cache keys must be:
    - A non-empty string, at most 128 characters
    - Alphanumeric with hyphens, underscores, dots or colons

    Returns the key with surrounding whitespace stripped.
    Raises ValidationError if invalid.
    """
    if not isinstance(key, str) or not key.strip():
        raise ValidationError("Cache key cannot be empty")

    key = key.strip()

    if len(key) > 128:
        raise ValidationError("Cache key must be 128 characters or less")

    if not re.match(r'^[A-Za-z0-9][A-Za-z0-9_.:-]*$', key):
        raise ValidationError(
            "Cache key must be alphanumeric with optional "
            "hyphens, underscores, dots and colons"
        )

    return key


def validate_positive_duration(value: float, name: str = "Duration") -> float:
    """Validate that a duration in seconds is a positive number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number of seconds")
    if value <= 0:
        raise ValidationError(f"{name} must be positive, got {value}")
    return float(value)


def validate_upstream_url(url: str) -> str:
    """Validate the URL of an upstream content source.

    - Must use http or https
    - Must include a host

    Returns the stripped URL.
    Raises ValidationError if invalid.
    """
    if not url:
        raise ValidationError("Upstream URL cannot be empty")

    url = url.strip()
    parsed = urlparse(url)

    if parsed.scheme not in ("https", "http"):
        raise ValidationError(f"Upstream URL must use HTTP or HTTPS: {url}")

    if not parsed.netloc:
        raise ValidationError(f"Upstream URL must include a host: {url}")

    return url
