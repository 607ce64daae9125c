"""
Text validation helpers shared by the Pydantic schemas.
"""

import re
import unicodedata
from typing import Optional


def sanitize_string(value: str, max_length: Optional[int] = None) -> str:
    """
    Sanitize a string by normalizing unicode and trimming whitespace.

    Args:
        value: The string to sanitize
        max_length: Maximum allowed length

    Returns:
        Sanitized string
    """
    normalized = unicodedata.normalize("NFKC", value)

    # Strip and collapse runs of whitespace
    sanitized = re.sub(r"\s+", " ", normalized.strip())

    if max_length and len(sanitized) > max_length:
        sanitized = sanitized[:max_length].rstrip()

    return sanitized


def sanitize_text(value: Optional[str]) -> Optional[str]:
    """
    Sanitize multi-line free text such as notes or a diagnosis.

    Line breaks are kept, surrounding whitespace is trimmed and empty
    values become None.
    """
    if value is None:
        return None
    normalized = unicodedata.normalize("NFKC", value)
    lines = [re.sub(r"[ \t]+", " ", line).strip() for line in normalized.splitlines()]
    text = "\n".join(lines).strip()
    return text or None


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user search text matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
