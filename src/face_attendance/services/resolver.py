"""Nearest-neighbour identity resolution over an enrolled gallery."""

from collections.abc import Sequence

import numpy as np

from face_attendance.domain.descriptors import normalize_descriptor
from face_attendance.domain.employees import GalleryEntry
from face_attendance.domain.errors import InvalidInputError
from face_attendance.domain.recognition import Match, NoMatch, NoMatchReason

DEFAULT_THRESHOLD = 0.6


def resolve(
    query: Sequence[float],
    gallery: Sequence[GalleryEntry],
    threshold: float = DEFAULT_THRESHOLD,
    expected_dimension: int | None = None,
) -> Match | NoMatch:
    """Return the closest gallery entry under ``threshold`` or a NoMatch.

    Distances are Euclidean. The first minimum in gallery order wins ties,
    so callers should pass the gallery in a stable order.
    """
    if not 0.0 <= threshold <= 1.0:
        raise InvalidInputError("Threshold must be within [0, 1]")
    vector = np.asarray(normalize_descriptor(query), dtype=np.float64)
    if expected_dimension is not None and vector.shape[0] != expected_dimension:
        raise InvalidInputError(
            f"Face descriptor must have {expected_dimension} values, "
            f"got {vector.shape[0]}"
        )
    if not gallery:
        return NoMatch(reason=NoMatchReason.EMPTY_GALLERY)

    matrix = _stack(gallery)
    if matrix.shape[1] != vector.shape[0]:
        raise InvalidInputError(
            f"Face descriptor must have {matrix.shape[1]} values, "
            f"got {vector.shape[0]}"
        )
    distances = np.linalg.norm(matrix - vector, axis=1)
    best_index = int(np.argmin(distances))
    best_distance = float(distances[best_index])
    if best_distance < threshold:
        return Match(
            employee_id=gallery[best_index].employee_id,
            confidence=1.0 - best_distance,
            distance=best_distance,
        )
    return NoMatch(
        reason=NoMatchReason.NO_CANDIDATE_WITHIN_THRESHOLD,
        best_distance=best_distance,
    )


def _stack(gallery: Sequence[GalleryEntry]) -> np.ndarray:
    dimensions = {len(entry.descriptor) for entry in gallery}
    if len(dimensions) != 1:
        raise InvalidInputError("Gallery descriptors have mixed dimensions")
    return np.asarray([entry.descriptor for entry in gallery], dtype=np.float64)
