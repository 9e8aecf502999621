"""Strip script markup and surrounding whitespace from untrusted request input.

Only string values are touched. Numbers, booleans and lists pass through as-is;
list fields such as ``tags`` are cleaned item by item later, during schema
normalization (see ``validators.normalize_bug_fields``).
"""

import re
from typing import Any

# A complete <script ...> ... </script> block, content included, across newlines.
_SCRIPT_BLOCK_RE = re.compile(r"<script\b[^>]*>.*?</script\s*>", re.IGNORECASE | re.DOTALL)
# Any opening or closing script tag left behind once whole blocks are gone.
_SCRIPT_TAG_RE = re.compile(r"</?script\b[^>]*>", re.IGNORECASE)


def clean_text(value: str) -> str:
    """Remove script markup from a single string and trim it."""
    # Repeat until stable: removing one tag can splice the pieces of another together.
    while True:
        stripped = _SCRIPT_TAG_RE.sub("", _SCRIPT_BLOCK_RE.sub("", value))
        if stripped == value:
            return value.strip()
        value = stripped


def sanitize_input(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``data`` with every string value passed through ``clean_text``."""
    sanitized: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            sanitized[key] = clean_text(value)
        else:
            sanitized[key] = value
    return sanitized
