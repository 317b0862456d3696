"""Tests for nearest-neighbour identity resolution."""

import math

import pytest

from face_attendance.domain.employees import GalleryEntry
from face_attendance.domain.errors import InvalidInputError
from face_attendance.domain.recognition import Match, NoMatch, NoMatchReason
from face_attendance.services.resolver import DEFAULT_THRESHOLD, resolve


def _gallery() -> list[GalleryEntry]:
    return [
        GalleryEntry(employee_id=1, descriptor=(0.0, 0.0, 0.0)),
        GalleryEntry(employee_id=2, descriptor=(1.0, 0.0, 0.0)),
        GalleryEntry(employee_id=3, descriptor=(0.0, 1.0, 0.0)),
    ]


def test_exact_descriptor_matches_with_full_confidence() -> None:
    gallery = [GalleryEntry(employee_id=7, descriptor=(0.25, -0.5, 0.75))]

    result = resolve((0.25, -0.5, 0.75), gallery)

    assert isinstance(result, Match)
    assert result.employee_id == 7
    assert result.distance == 0.0
    assert result.confidence == pytest.approx(1.0)


def test_nearest_candidate_wins() -> None:
    result = resolve((0.9, 0.1, 0.0), _gallery())

    assert isinstance(result, Match)
    assert result.employee_id == 2
    assert result.confidence == pytest.approx(1 - math.hypot(0.1, 0.1))


def test_repeated_calls_return_same_outcome() -> None:
    gallery = _gallery()
    query = (0.2, 0.3, 0.1)

    results = {resolve(query, gallery) for _ in range(5)}

    assert len(results) == 1


def test_distance_equal_to_threshold_is_no_match() -> None:
    gallery = [GalleryEntry(employee_id=1, descriptor=(0.0, 0.0))]

    result = resolve((0.5, 0.0), gallery, threshold=0.5)

    assert result == NoMatch(
        reason=NoMatchReason.NO_CANDIDATE_WITHIN_THRESHOLD, best_distance=0.5
    )


def test_distance_just_under_threshold_matches() -> None:
    gallery = [GalleryEntry(employee_id=1, descriptor=(0.0, 0.0))]

    result = resolve((0.5 - 1e-9, 0.0), gallery, threshold=0.5)

    assert isinstance(result, Match)
    assert result.employee_id == 1


@pytest.mark.parametrize("threshold", [0.0, 0.6, 1.0])
@pytest.mark.parametrize("query", [(0.0,), (1.0, 2.0, 3.0)])
def test_empty_gallery_is_no_match(query: tuple[float, ...], threshold: float) -> None:
    result = resolve(query, [], threshold=threshold)

    assert result == NoMatch(reason=NoMatchReason.EMPTY_GALLERY)


def test_far_query_reports_best_distance() -> None:
    result = resolve((5.0, 5.0, 5.0), _gallery())

    assert isinstance(result, NoMatch)
    assert result.reason is NoMatchReason.NO_CANDIDATE_WITHIN_THRESHOLD
    assert result.best_distance is not None
    assert result.best_distance > DEFAULT_THRESHOLD


def test_equidistant_candidates_resolve_to_first_in_order() -> None:
    gallery = [
        GalleryEntry(employee_id=9, descriptor=(0.1, 0.0)),
        GalleryEntry(employee_id=4, descriptor=(-0.1, 0.0)),
    ]

    result = resolve((0.0, 0.0), gallery)

    assert isinstance(result, Match)
    assert result.employee_id == 9


def test_wrong_dimension_is_invalid_input() -> None:
    with pytest.raises(InvalidInputError):
        resolve((0.0, 0.0), _gallery())


def test_expected_dimension_is_enforced_even_for_empty_gallery() -> None:
    with pytest.raises(InvalidInputError):
        resolve((0.0, 0.0), [], expected_dimension=128)


@pytest.mark.parametrize("query", [(), (float("nan"), 0.0, 0.0), ("x", 1, 2)])
def test_malformed_query_is_invalid_input(query: tuple) -> None:
    with pytest.raises(InvalidInputError):
        resolve(query, _gallery())


def test_threshold_outside_unit_interval_is_rejected() -> None:
    with pytest.raises(InvalidInputError):
        resolve((0.0, 0.0, 0.0), _gallery(), threshold=1.5)
