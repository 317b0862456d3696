"""Identity resolution results."""

from dataclasses import dataclass
from enum import Enum


class NoMatchReason(str, Enum):
    """Why a query descriptor was not resolved to an employee."""

    EMPTY_GALLERY = "empty_gallery"
    NO_CANDIDATE_WITHIN_THRESHOLD = "no_candidate_within_threshold"


@dataclass(frozen=True)
class Match:
    """A gallery entry accepted under the threshold."""

    employee_id: int
    confidence: float
    distance: float


@dataclass(frozen=True)
class NoMatch:
    """Resolution finished without accepting any candidate."""

    reason: NoMatchReason
    best_distance: float | None = None
