"""Input validation utilities."""

import re
from typing import List, Optional, Tuple


def validate_email(email: str) -> Tuple[bool, str]:
    """
    Validate email address format.

    Args:
        email: Email address to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not email or len(email) > 255:
        return False, "Email address is required and must be less than 255 characters"

    # Basic email regex pattern
    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'

    if not re.match(pattern, email):
        return False, "Invalid email address format"

    return True, ""


def sanitize_input(text: Optional[str], max_length: int = 1000) -> str:
    """
    Sanitize user input by removing potentially dangerous characters.

    Args:
        text: Input text to sanitize
        max_length: Maximum allowed length

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    # Remove null bytes
    text = text.replace('\x00', '')

    # Trim to max length
    if len(text) > max_length:
        text = text[:max_length]

    return text.strip()


def parse_tags(raw: Optional[str]) -> List[str]:
    """
    Split a comma separated tag string.

    Tags are trimmed and blank entries dropped.

    Args:
        raw: Comma separated tags, e.g. "vlog, travel,,food"

    Returns:
        List of tags in input order
    """
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def safe_file_name(name: Optional[str]) -> str:
    """Strip path separators and control characters from an uploaded file name."""
    if not name:
        return "upload"
    name = name.replace("\\", "/").rsplit("/", 1)[-1]
    name = re.sub(r'[\x00-\x1f]', '', name).strip()
    return name or "upload"


def mime_subtype(mime_type: Optional[str], default: str = "bin") -> str:
    """Return the subtype of a MIME type (``video/mp4`` -> ``mp4``)."""
    if not mime_type or "/" not in mime_type:
        return default
    subtype = mime_type.split("/", 1)[1].split(";", 1)[0].strip()
    return subtype or default
