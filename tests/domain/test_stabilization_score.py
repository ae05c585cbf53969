# tests/domain/test_stabilization_score.py
"""
Unit tests for StabilizationScore.
"""
import pytest

from framealign.domain.alignment.value_objects.landmark_point import LandmarkPoint
from framealign.domain.alignment.value_objects.stabilization_score import StabilizationScore
from framealign.domain.shared.errors import InvalidArgumentError


def _score_for_offset(offset: float, canvas_height: int) -> StabilizationScore:
    """Both eyes displaced horizontally by the same pixel offset."""
    return StabilizationScore.calculate(
        200 + offset, 256, 312 + offset, 256,
        200, 256, 312, 256,
        canvas_height,
    )


def test_perfect_alignment_scores_zero():
    score = _score_for_offset(0.0, 512)
    assert score.value == 0.0
    assert score.is_success
    assert not score.needs_correction


def test_score_halves_when_canvas_height_doubles():
    at_512 = _score_for_offset(5.12, 512)
    at_1024 = _score_for_offset(5.12, 1024)
    assert at_512.value == pytest.approx(10.0)
    assert at_1024.value == pytest.approx(5.0)
    assert at_512.value == pytest.approx(2 * at_1024.value)


def test_ten_percent_offset_scores_one_hundred():
    score = StabilizationScore.calculate(251.2, 256, 363.2, 256, 200, 256, 312, 256, 512)
    assert score.value == pytest.approx(100.0)
    assert score.left_eye_distance == pytest.approx(51.2)
    assert score.right_eye_distance == pytest.approx(51.2)
    assert score.needs_correction
    assert not score.is_success


def test_average_of_both_eyes():
    # Left eye off by 3-4-5 triangle, right eye exact
    score = StabilizationScore.calculate(203, 260, 312, 256, 200, 256, 312, 256, 1000)
    assert score.left_eye_distance == pytest.approx(5.0)
    assert score.right_eye_distance == 0.0
    assert score.value == pytest.approx(2.5)


@pytest.mark.parametrize(
    "value, is_success, needs_correction",
    [
        (19.999, True, True),
        (20.001, False, True),
        (0.499, True, False),
        (0.501, True, True),
        (20.0, False, True),
        (0.5, True, False),
    ],
)
def test_threshold_boundaries(value, is_success, needs_correction):
    score = StabilizationScore(value=value, left_eye_distance=0.0, right_eye_distance=0.0)
    assert score.is_success is is_success
    assert score.needs_correction is needs_correction


def test_custom_thresholds():
    score = StabilizationScore.calculate(
        210, 256, 322, 256, 200, 256, 312, 256, 512,
        success_threshold=10.0, no_action_threshold=25.0,
    )
    assert score.value == pytest.approx(19.53125)
    assert not score.is_success
    assert not score.needs_correction


@pytest.mark.parametrize("canvas_height", [0, -512])
def test_non_positive_canvas_height_rejected(canvas_height):
    with pytest.raises(InvalidArgumentError):
        _score_for_offset(1.0, canvas_height)


def test_from_points_matches_calculate():
    score = StabilizationScore.from_points(
        LandmarkPoint(x=251.2, y=256), LandmarkPoint(x=363.2, y=256),
        LandmarkPoint(x=200, y=256), LandmarkPoint(x=312, y=256),
        512,
    )
    assert score.value == pytest.approx(100.0)


def test_worst_score_is_never_success():
    worst = StabilizationScore.worst()
    assert not worst.is_success
    assert worst.needs_correction
