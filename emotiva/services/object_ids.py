"""
ObjectId parsing for ids received in URLs and bodies.
"""

from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId


def parse_object_id(value: Optional[str]) -> Optional[ObjectId]:
    """Parse an id string, returning None when it is not a valid ObjectId."""
    if not value:
        return None
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def isoformat(value) -> Optional[str]:
    if not value:
        return None
    # Older rows may already hold ISO strings
    if isinstance(value, str):
        return value
    return value.isoformat()
