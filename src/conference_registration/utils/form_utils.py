"""Helpers for coercing raw multipart form values"""

import uuid
from typing import Any, Optional

DECLARATION_TRUE_STRINGS = ("true", "on", "1")


def parse_declaration(raw: Any) -> bool:
    """Interpret the declaration checkbox.

    Exactly the literals "true", "on", "1", True and 1 mean accepted; anything
    else (including "TRUE", "yes", 2 or a missing value) is False.
    """
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int):
        return raw == 1
    if isinstance(raw, str):
        return raw in DECLARATION_TRUE_STRINGS
    return False


def file_extension(filename: str) -> str:
    """Lower-cased text after the last '.', or "" when there is no dot."""
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()


def parse_uuid(value: Any) -> Optional[uuid.UUID]:
    """Return value as a UUID, or None when it is not a well-formed id."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None
