"""
Identifier validation for path parameters.

Todo and sub-todo ids are UUIDs. Malformed values are rejected here, before
any storage access, so that a bad id is never reported as "not found".
"""

import uuid

from app.exceptions import InvalidIdentifier


def parse_identifier(raw: str | uuid.UUID | None, kind: str = "todo") -> uuid.UUID:
    """Return the UUID for ``raw`` or raise InvalidIdentifier."""
    if isinstance(raw, uuid.UUID):
        return raw
    if raw is None or not isinstance(raw, str) or not raw.strip():
        raise InvalidIdentifier(f"Invalid {kind} id: a value is required.")
    try:
        return uuid.UUID(raw.strip())
    except ValueError as e:
        raise InvalidIdentifier(f"Invalid {kind} id format: '{raw}'") from e
