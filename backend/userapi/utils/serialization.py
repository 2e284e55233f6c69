"""Serialization utilities for converting models to API responses."""
import html
import re
from datetime import datetime
from typing import Optional

_TAG_RE = re.compile(r"<[^>]*>")


def serialize_datetime(value: Optional[datetime]) -> Optional[str]:
    """
    Serialize datetime to ISO format string.

    Args:
        value: Datetime value or None

    Returns:
        ISO format string or None
    """
    return value.isoformat() if value else None


def sanitize_text(value: str) -> str:
    """
    Strip markup tags and HTML-escape the remainder.

    Args:
        value: Raw client-supplied text

    Returns:
        Text safe to store and echo back
    """
    return html.escape(_TAG_RE.sub("", value))
