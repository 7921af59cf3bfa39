"""
Face descriptor helpers.

A descriptor is a 128-element numeric vector computed by the client.
It is stored as JSON text in the `users.descriptor` column.
"""
import json
import math
from numbers import Real
from typing import Any, List, Optional

from config import DESCRIPTOR_LENGTH


def _load(value: Any) -> Any:
    """Decode JSON text; other values pass through unchanged."""
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        return json.loads(value)
    return value


def _is_number(item: Any) -> bool:
    # bool is an int subclass but never a descriptor component
    if isinstance(item, bool) or not isinstance(item, Real):
        return False
    try:
        return math.isfinite(item)
    except OverflowError:
        # int too large for a float
        return False


def parse_descriptor(value: Any) -> Optional[List[float]]:
    """
    Parse a descriptor given as a sequence or as its JSON text.

    Args:
        value: List/tuple of numbers, JSON string, or anything else

    Returns:
        List of floats if the value is a valid descriptor, None otherwise.
        Never raises.
    """
    if not value:
        return None

    try:
        parsed = _load(value)
    except (ValueError, RecursionError):
        return None

    if not isinstance(parsed, (list, tuple)) or len(parsed) != DESCRIPTOR_LENGTH:
        return None
    if not all(_is_number(item) for item in parsed):
        return None
    return [float(item) for item in parsed]


def is_valid_descriptor(value: Any) -> bool:
    """True iff value is (or decodes to) exactly 128 finite numbers."""
    return parse_descriptor(value) is not None


def serialize_descriptor(value: Any) -> str:
    """
    Serialise a descriptor to canonical JSON text for storage.

    Text input is decoded first so it is never double encoded.

    Raises:
        ValueError: If value is not a valid descriptor
    """
    parsed = parse_descriptor(value)
    if parsed is None:
        raise ValueError("Invalid face descriptor format")
    return json.dumps(parsed)
