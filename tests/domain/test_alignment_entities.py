# tests/domain/test_alignment_entities.py
"""
Unit tests for landmark, keypoint and stabilization result entities.
"""
import pytest

from framealign.domain.alignment.entities.feature_keypoint import FeatureKeypoint
from framealign.domain.alignment.entities.stabilization_result import (
    EarlyStopReason,
    StabilizationPass,
    StabilizationProgress,
    StabilizationResult,
    StabilizationStage,
)
from framealign.domain.alignment.value_objects.alignment_matrix import AlignmentMatrix
from framealign.domain.alignment.value_objects.stabilization_score import StabilizationScore
from framealign.domain.alignment.value_objects.stabilization_settings import StabilizationMode
from framealign.domain.shared.errors import InvalidArgumentError


def test_face_references_are_eye_centres(make_face_landmarks):
    face = make_face_landmarks(left=(0.4, 0.45), right=(0.6, 0.45))
    assert face.reference_point_left() is face.left_eye_center
    assert face.reference_point_right() is face.right_eye_center
    assert face.eye_distance == pytest.approx(0.2)


def test_body_references_are_shoulders(make_body_landmarks):
    body = make_body_landmarks(left_shoulder=(0.3, 0.3), right_shoulder=(0.7, 0.32))
    assert body.reference_point_left() is body.left_shoulder
    assert body.reference_point_right() is body.right_shoulder
    assert body.shoulder_center.x == pytest.approx(0.5)
    assert body.shoulder_center.y == pytest.approx(0.31)
    assert body.hip_center.y == pytest.approx(0.66)
    assert body.shoulder_distance == pytest.approx((0.4 ** 2 + 0.02 ** 2) ** 0.5)


@pytest.mark.parametrize("confidence", [-0.1, 1.5])
def test_confidence_out_of_range_rejected(make_face_landmarks, confidence):
    with pytest.raises(InvalidArgumentError):
        make_face_landmarks(confidence=confidence)


def test_feature_keypoint_pixel_conversion():
    keypoint = FeatureKeypoint.from_pixel_coordinates(320, 120, 640, 480, response=0.8, size=31.0, octave=2)
    assert keypoint.position.x == pytest.approx(0.5)
    assert keypoint.position.y == pytest.approx(0.25)
    assert keypoint.to_pixel_coordinates(640, 480) == pytest.approx((320, 120))
    assert keypoint.angle == -1.0


def test_stabilization_pass_improvement():
    improving = StabilizationPass(1, StabilizationStage.TRANSLATION_REFINE, score_before=12.0, score_after=4.5, converged=False)
    assert improving.improvement == pytest.approx(7.5)
    assert improving.improved
    worsening = StabilizationPass(2, StabilizationStage.TRANSLATION_REFINE, score_before=4.5, score_after=6.0, converged=False)
    assert not worsening.improved


def test_stabilization_result_summary():
    result = StabilizationResult(
        success=True,
        final_score=StabilizationScore(value=2.0, left_eye_distance=1.0, right_eye_distance=1.0),
        initial_score=8.0,
        passes_executed=2,
        mode=StabilizationMode.FAST,
        matrix=AlignmentMatrix.identity(),
        early_stop_reason=EarlyStopReason.SCORE_BELOW_THRESHOLD,
    )
    assert result.total_improvement == pytest.approx(6.0)
    assert result.improvement_percent == pytest.approx(75.0)
    assert result.terminated_early


def test_progress_percent_is_clamped():
    progress = StabilizationProgress(
        current_pass=5, max_passes=4, stage=StabilizationStage.CLEANUP, current_score=1.0, mode=StabilizationMode.FAST
    )
    assert progress.progress_percent == 1.0
