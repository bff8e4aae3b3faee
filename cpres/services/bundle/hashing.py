"""Content digests and entry identifiers.

Digests are plain SHA-256 over the payload bytes (no salt), so the same
bytes always hash the same. Entry ids are random UUID4 strings and are
independent of content.
"""

import hashlib
import uuid

SHORT_ID_LENGTH = 8


def sha256_hex(data: bytes) -> str:
    """Lowercase hex SHA-256 of data."""
    return hashlib.sha256(data).hexdigest()


def new_entry_id() -> str:
    """Fresh unique id for an imported entry."""
    return str(uuid.uuid4())


def short_id(entry_id: str) -> str:
    """First 8 hex characters of an id, used in in-bundle paths.

    Args:
        entry_id: UUID string (hyphens are ignored)

    Returns:
        8 lowercase hex characters
    """
    hex_chars = entry_id.replace("-", "").lower()
    if len(hex_chars) < SHORT_ID_LENGTH:
        raise ValueError(f"Entry id too short for a bundle path: {entry_id!r}")
    return hex_chars[:SHORT_ID_LENGTH]
