"""Format checks for values typed in by the user."""

import re
from urllib.parse import urlparse

from wallpanel.errors import ValidationError

_TIME_RE = re.compile(r"([0-9]{2}):([0-9]{2})")


def validate_time(value: str, field: str = "time") -> str:
    """Accept a 24-hour ``HH:MM`` time and return it unchanged."""
    match = _TIME_RE.fullmatch(value or "")
    if not match:
        raise ValidationError(field, f"'{value}' must be in HH:MM format")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise ValidationError(field, f"'{value}' hours must be 00-23 and minutes 00-59")
    return value


def validate_url(value: str, field: str = "url") -> str:
    """Accept an http(s) URL with a host, e.g. ``http://homeassistant.local:8123``."""
    if not value or any(c.isspace() for c in value):
        raise ValidationError(field, "URL must not be empty or contain whitespace")
    try:
        parsed = urlparse(value)
    except ValueError:
        raise ValidationError(field, f"'{value}' is not a valid URL")
    if parsed.scheme not in ("http", "https"):
        raise ValidationError(field, f"'{value}' must start with http:// or https://")
    if not parsed.netloc:
        raise ValidationError(field, f"'{value}' has no host")
    return value


def validate_percentage(value: str, field: str = "percentage") -> int:
    """Accept a whole number between 0 and 100."""
    text = (value or "").strip()
    if not re.fullmatch(r"[0-9]+", text):
        raise ValidationError(field, f"'{value}' must be a whole number")
    percent = int(text)
    if not 0 <= percent <= 100:
        raise ValidationError(field, f"{percent} must be between 0 and 100")
    return percent


_MODE_RE = re.compile(r"[0-9]+x[0-9]+(@[0-9]+(\.[0-9]+)?)?")


def validate_mode(value: str, field: str = "resolution_mode") -> str:
    """Accept ``preferred`` or a ``WxH[@R]`` display mode."""
    value = (value or "").strip()
    if value != "preferred" and not _MODE_RE.fullmatch(value):
        raise ValidationError(field, f"'{value}' must look like 1920x1080@60")
    return value
