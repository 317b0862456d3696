"""Face descriptor serialization helpers."""

import json
import math
from collections.abc import Sequence

from face_attendance.domain.errors import InvalidInputError


def normalize_descriptor(values: Sequence[float]) -> tuple[float, ...]:
    """Return a descriptor as a tuple of finite floats."""
    if isinstance(values, str | bytes):
        raise InvalidInputError("Face descriptor must be a sequence of numbers")
    try:
        descriptor = tuple(float(value) for value in values)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError("Face descriptor must contain only numbers") from exc
    if not descriptor:
        raise InvalidInputError("Face descriptor must not be empty")
    if not all(math.isfinite(value) for value in descriptor):
        raise InvalidInputError("Face descriptor contains non-finite values")
    return descriptor


def descriptor_to_text(descriptor: Sequence[float]) -> str:
    """Serialize a descriptor to an order-preserving JSON list."""
    return json.dumps([float(value) for value in descriptor])


def text_to_descriptor(text: str) -> tuple[float, ...]:
    """Parse a descriptor stored as a JSON list."""
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidInputError("Stored face descriptor is not valid JSON") from exc
    if not isinstance(raw, list):
        raise InvalidInputError("Stored face descriptor must be a JSON list")
    return normalize_descriptor(raw)
