"""
Scoring use cases.

Measure how far a frame is from its goal composition: the stabilization
score, the per-eye overshoot, and a sanity check of the detected face.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from framealign.domain.alignment.entities.landmarks import FaceLandmarks, Landmarks
from framealign.domain.alignment.value_objects.landmark_point import LandmarkPoint
from framealign.domain.alignment.value_objects.overshoot_correction import OvershootCorrection
from framealign.domain.alignment.value_objects.stabilization_score import StabilizationScore
from framealign.domain.alignment.value_objects.stabilization_settings import (
    AlignmentSettings,
    StabilizationSettings,
)
from framealign.domain.shared.errors import InvalidArgumentError
from framealign.domain.shared.result import Result

logger = logging.getLogger(__name__)

MIN_EYE_DISTANCE = 0.02


def to_canvas_pixels(point: LandmarkPoint, canvas_width: int, canvas_height: int) -> LandmarkPoint:
    """Convert a normalized landmark into canvas pixel coordinates."""
    x, y = point.to_pixels(canvas_width, canvas_height)
    return LandmarkPoint(x=x, y=y, z=point.z)


def eye_pixels(
    landmarks: Landmarks, canvas_width: int, canvas_height: int
) -> Tuple[LandmarkPoint, LandmarkPoint]:
    return (
        to_canvas_pixels(landmarks.reference_point_left(), canvas_width, canvas_height),
        to_canvas_pixels(landmarks.reference_point_right(), canvas_width, canvas_height),
    )


class CalculateStabilizationScoreUseCase:
    """Scores detected eye positions against their goal positions."""

    def __init__(self, settings: Optional[StabilizationSettings] = None):
        self.settings = settings or StabilizationSettings()

    def __call__(
        self,
        detected_left_x: float,
        detected_left_y: float,
        detected_right_x: float,
        detected_right_y: float,
        goal_left_x: float,
        goal_left_y: float,
        goal_right_x: float,
        goal_right_y: float,
        canvas_height: int,
    ) -> Result[StabilizationScore]:
        """
        Score pixel-space eye positions.

        Returns:
            Result with the score, or InvalidArgumentError if canvas_height <= 0
        """
        try:
            score = StabilizationScore.calculate(
                detected_left_x, detected_left_y,
                detected_right_x, detected_right_y,
                goal_left_x, goal_left_y,
                goal_right_x, goal_right_y,
                canvas_height,
                success_threshold=self.settings.success_score_threshold,
                no_action_threshold=self.settings.no_action_score_threshold,
            )
        except InvalidArgumentError as e:
            logger.warning(f"Stabilization score rejected: {e}")
            return Result.failure(e)

        logger.debug(
            f"Stabilization score {score.value:.3f} (left {score.left_eye_distance:.2f}px, "
            f"right {score.right_eye_distance:.2f}px, canvas height {canvas_height})"
        )
        return Result.success(score)

    def from_landmarks(
        self,
        landmarks: Landmarks,
        goal_left: LandmarkPoint,
        goal_right: LandmarkPoint,
        canvas_width: int,
        canvas_height: int,
    ) -> Result[StabilizationScore]:
        """Score normalized landmarks against pixel-space goal eyes."""
        left, right = eye_pixels(landmarks, canvas_width, canvas_height)
        return self(
            left.x, left.y, right.x, right.y,
            goal_left.x, goal_left.y, goal_right.x, goal_right.y,
            canvas_height,
        )


class DetectOvershootUseCase:
    """Computes per-eye overshoot relative to the goal positions."""

    def __init__(self, settings: Optional[StabilizationSettings] = None):
        self.settings = settings or StabilizationSettings()

    def __call__(
        self,
        detected_left: LandmarkPoint,
        detected_right: LandmarkPoint,
        goal_left: LandmarkPoint,
        goal_right: LandmarkPoint,
        current_score: float,
    ) -> OvershootCorrection:
        """All points in canvas pixels."""
        overshoot = OvershootCorrection.calculate(
            detected_left=detected_left,
            detected_right=detected_right,
            goal_left=goal_left,
            goal_right=goal_right,
            current_score=current_score,
            no_action_threshold=self.settings.no_action_score_threshold,
        )
        logger.debug(
            f"Overshoot avg=({overshoot.average_overshoot_x:.2f}, {overshoot.average_overshoot_y:.2f})px, "
            f"needs_correction={overshoot.needs_correction}"
        )
        return overshoot

    def from_landmarks(
        self,
        landmarks: Landmarks,
        goal_left: LandmarkPoint,
        goal_right: LandmarkPoint,
        current_score: StabilizationScore,
        canvas_width: int,
        canvas_height: int,
    ) -> OvershootCorrection:
        left, right = eye_pixels(landmarks, canvas_width, canvas_height)
        return self(left, right, goal_left, goal_right, current_score.value)


@dataclass
class ValidationResult:
    """Outcome of landmark validation."""
    is_valid: bool
    issues: List[str] = field(default_factory=list)


class ValidateAlignmentUseCase:
    """
    Checks that a face detection is usable as an alignment anchor.

    A detection passes when its confidence reaches the configured minimum,
    the eyes are separated with the right eye to the right of the left eye,
    and the face box is large enough.
    """

    def __init__(self, settings: Optional[AlignmentSettings] = None):
        self.settings = settings or AlignmentSettings()

    def __call__(self, landmarks: FaceLandmarks, expected_eye_distance: Optional[float] = None) -> bool:
        return self.get_detailed_validation(landmarks, expected_eye_distance).is_valid

    def validate_confidence(self, landmarks: FaceLandmarks) -> bool:
        return landmarks.confidence >= self.settings.min_confidence

    def validate_eye_distance(self, landmarks: FaceLandmarks, expected_eye_distance: Optional[float] = None) -> bool:
        """
        Eye separation check in normalized units.

        When expected_eye_distance is given, the detected distance must also
        reach eye_validity_ratio of it.
        """
        delta_x = landmarks.right_eye_center.x - landmarks.left_eye_center.x
        distance = landmarks.eye_distance
        if distance <= MIN_EYE_DISTANCE or delta_x <= 0:
            return False
        if expected_eye_distance:
            return distance >= expected_eye_distance * self.settings.stabilization.eye_validity_ratio
        return True

    def validate_bounding_box(self, landmarks: FaceLandmarks) -> bool:
        box = landmarks.bounding_box
        min_size = self.settings.stabilization.min_face_size_ratio
        return box.width > min_size and box.height > min_size

    def get_detailed_validation(
        self, landmarks: FaceLandmarks, expected_eye_distance: Optional[float] = None
    ) -> ValidationResult:
        issues = []
        if not self.validate_confidence(landmarks):
            issues.append("Low detection confidence")
        if not self.validate_eye_distance(landmarks, expected_eye_distance):
            issues.append("Invalid eye detection")
        if not self.validate_bounding_box(landmarks):
            issues.append("Face too small or partially visible")

        if issues:
            logger.debug(f"Landmark validation failed: {', '.join(issues)}")
        return ValidationResult(is_valid=not issues, issues=issues)
