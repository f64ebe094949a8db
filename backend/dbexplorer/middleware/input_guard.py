"""Validation and sanitization for user-supplied connection strings and names."""

import logging
import re

from dbexplorer.middleware.error_handler import ValidationError

logger = logging.getLogger(__name__)

# --- Constants ---

MAX_CONNECTION_STRING_LENGTH = 2048
MAX_CONNECTION_NAME_LENGTH = 100

# Dangerous invisible/control characters to strip.
_DANGEROUS_CHARS_RE = re.compile(
    r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f"
    r"\u200b-\u200f\u2028-\u202f\u2060\ufeff]"
)


# --- Public API ---


def validate_connection_string(connection_string: str | None) -> str:
    """Strip invisible characters and surrounding whitespace from a connection string."""
    if connection_string is None:
        raise ValidationError("Missing connectionString")

    cleaned = _strip_dangerous_chars(connection_string).strip()
    if not cleaned:
        raise ValidationError("Missing connectionString")
    if len(cleaned) > MAX_CONNECTION_STRING_LENGTH:
        raise ValidationError(
            f"Connection string too long (max {MAX_CONNECTION_STRING_LENGTH} characters)"
        )
    if cleaned != connection_string.strip():
        logger.warning("Stripped control characters from connection string")
    return cleaned


def validate_connection_name(name: str | None) -> str:
    """Validate the display name of a saved connection."""
    if name is None:
        raise ValidationError("Missing required fields", detail="name is required")

    cleaned = _strip_dangerous_chars(name).strip()
    if not cleaned or len(cleaned) > MAX_CONNECTION_NAME_LENGTH:
        raise ValidationError(
            f"Connection name must be 1-{MAX_CONNECTION_NAME_LENGTH} characters"
        )
    return cleaned


# --- Private helpers ---


def _strip_dangerous_chars(text: str) -> str:
    return _DANGEROUS_CHARS_RE.sub("", text)
