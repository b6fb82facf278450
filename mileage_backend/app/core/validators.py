"""
Identifier and timestamp validation.

Shift and driver identifiers are UUIDs. Malformed values are rejected here,
before any query is issued, so callers can tell them apart from "not found".
"""

import uuid
from datetime import datetime, timezone
from typing import Optional, Union

from mileage_backend.app.core.exceptions import InvalidIdentifierError


def parse_identifier(value: Union[str, uuid.UUID, None], field: str) -> uuid.UUID:
    """
    Parse a UUID identifier.

    Args:
        value: Raw identifier (string or UUID)
        field: Name used in the error message (e.g. "shift_id")

    Returns:
        Parsed UUID

    Raises:
        InvalidIdentifierError: If the value is missing or not a UUID
    """
    if isinstance(value, uuid.UUID):
        return value
    if not isinstance(value, str):
        raise InvalidIdentifierError(field, value)
    try:
        return uuid.UUID(value.strip())
    except ValueError:
        raise InvalidIdentifierError(field, value)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to naive datetimes and convert aware ones to UTC.

    Some drivers (SQLite) hand back naive timestamps for timezone-aware
    columns; every stored timestamp is UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
