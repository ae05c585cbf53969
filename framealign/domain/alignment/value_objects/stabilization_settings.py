"""
Immutable per-attempt configuration for alignment and stabilization.

These are built from framealign.core.config.Settings by the caller and handed
to the use cases; the use cases never read global configuration themselves.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple

from framealign.domain.alignment.value_objects.landmark_point import LandmarkPoint
from framealign.domain.shared.errors import InvalidArgumentError
from framealign.domain.shared.value_objects.base_value_object import BaseValueObject


class StabilizationMode(Enum):
    """Multi-pass stabilization mode."""
    FAST = "fast"  # face: initial + translation passes; landscape: single homography
    SLOW = "slow"  # face: rotation, scale, translation, cleanup; landscape: three refine stages


MAX_PASSES_FAST = 4
MAX_PASSES_SLOW = 11  # 10 refinement passes + 1 cleanup
LANDSCAPE_MAX_PASSES_FAST = 1
LANDSCAPE_MAX_PASSES_SLOW = 10


def _goal_positions(center: Tuple[float, float], distance: float) -> Tuple[LandmarkPoint, LandmarkPoint]:
    """Two points on a level line, distance apart and centred on center."""
    center_x, center_y = center
    half = distance / 2
    return (
        LandmarkPoint(x=center_x - half, y=center_y),
        LandmarkPoint(x=center_x + half, y=center_y),
    )


@dataclass(frozen=True)
class StabilizationSettings(BaseValueObject):
    """
    Thresholds of the face stabilization loop.

    rotation_stop_threshold and scale_error_threshold are canvas pixels.
    rotation_damping is the fraction of the measured eye-line tilt that one
    rotation refinement removes.
    """

    mode: StabilizationMode = StabilizationMode.FAST
    rotation_stop_threshold: float = 0.1
    rotation_damping: float = 0.5
    scale_error_threshold: float = 1.0
    convergence_threshold: float = 0.05
    success_score_threshold: float = 20.0
    no_action_score_threshold: float = 0.5
    min_face_size_ratio: float = 0.1
    eye_validity_ratio: float = 0.75

    def _validate(self) -> None:
        if self.rotation_stop_threshold <= 0:
            raise InvalidArgumentError("Rotation stop threshold must be positive")
        if not 0 < self.rotation_damping <= 1:
            raise InvalidArgumentError("Rotation damping must be in (0, 1]")
        if self.scale_error_threshold <= 0:
            raise InvalidArgumentError("Scale error threshold must be positive")
        if self.convergence_threshold <= 0:
            raise InvalidArgumentError("Convergence threshold must be positive")
        if self.success_score_threshold <= 0:
            raise InvalidArgumentError("Success score threshold must be positive")
        if self.no_action_score_threshold < 0:
            raise InvalidArgumentError("No-action score threshold must be non-negative")
        if not 0 <= self.min_face_size_ratio <= 1:
            raise InvalidArgumentError("Minimum face size ratio must be between 0 and 1")
        if not 0 <= self.eye_validity_ratio <= 1:
            raise InvalidArgumentError("Eye validity ratio must be between 0 and 1")

    @property
    def max_passes(self) -> int:
        return MAX_PASSES_FAST if self.mode is StabilizationMode.FAST else MAX_PASSES_SLOW


@dataclass(frozen=True)
class AlignmentSettings(BaseValueObject):
    """Face framing: where the eyes should land on a square output canvas."""

    min_confidence: float = 0.7
    target_eye_distance: float = 0.3
    output_size: int = 512
    vertical_offset: float = 0.1
    stabilization: StabilizationSettings = field(default_factory=StabilizationSettings)

    def _validate(self) -> None:
        if not 0 <= self.min_confidence <= 1:
            raise InvalidArgumentError("Minimum confidence must be between 0 and 1")
        if not 0.1 <= self.target_eye_distance <= 0.9:
            raise InvalidArgumentError("Target eye distance must be between 0.1 and 0.9")
        if not 128 <= self.output_size <= 2048:
            raise InvalidArgumentError("Output size must be between 128 and 2048")
        if not -0.5 <= self.vertical_offset <= 0.5:
            raise InvalidArgumentError("Vertical offset must be between -0.5 and 0.5")

    @property
    def target_reference_distance(self) -> float:
        """Goal distance between the two reference points, in output pixels."""
        return self.output_size * self.target_eye_distance

    @property
    def target_center(self) -> Tuple[float, float]:
        return (self.output_size / 2, self.output_size * (0.5 - self.vertical_offset))

    def goal_eye_positions(self) -> Tuple[LandmarkPoint, LandmarkPoint]:
        """Goal (left, right) eye positions in output pixels."""
        return _goal_positions(self.target_center, self.target_reference_distance)

    def goal_reference_positions(self) -> Tuple[LandmarkPoint, LandmarkPoint]:
        return self.goal_eye_positions()


@dataclass(frozen=True)
class BodyAlignmentSettings(BaseValueObject):
    """Upper-body framing anchored on the shoulders."""

    min_confidence: float = 0.5
    target_shoulder_distance: float = 0.35
    output_size: int = 512
    vertical_offset: float = 0.1
    head_to_waist_ratio: float = 0.6

    def _validate(self) -> None:
        if not 0 <= self.min_confidence <= 1:
            raise InvalidArgumentError("Minimum confidence must be between 0 and 1")
        if not 0.1 <= self.target_shoulder_distance <= 0.9:
            raise InvalidArgumentError("Target shoulder distance must be between 0.1 and 0.9")
        if not 128 <= self.output_size <= 2048:
            raise InvalidArgumentError("Output size must be between 128 and 2048")
        if not -0.5 <= self.vertical_offset <= 0.5:
            raise InvalidArgumentError("Vertical offset must be between -0.5 and 0.5")
        if not 0 < self.head_to_waist_ratio <= 1:
            raise InvalidArgumentError("Head-to-waist ratio must be in (0, 1]")

    @property
    def target_reference_distance(self) -> float:
        return self.output_size * self.target_shoulder_distance

    @property
    def target_center(self) -> Tuple[float, float]:
        vertical_adjustment = self.output_size * (1 - self.head_to_waist_ratio) * 0.3
        return (
            self.output_size / 2,
            self.output_size * (0.5 - self.vertical_offset) - vertical_adjustment,
        )

    def goal_reference_positions(self) -> Tuple[LandmarkPoint, LandmarkPoint]:
        """Goal (left, right) shoulder positions in output pixels."""
        return _goal_positions(self.target_center, self.target_reference_distance)


@dataclass(frozen=True)
class LandscapeStabilizationSettings(BaseValueObject):
    """
    Feature-based (homography) alignment thresholds.

    RANSAC and reprojection thresholds are pixels. min/max_determinant bound
    what the solver accepts at all; the perspective_* bounds, scale factor
    bounds and max_rotation_degrees are the tighter limits the perspective
    stability pass holds a homography to.
    """

    mode: StabilizationMode = StabilizationMode.FAST

    ransac_threshold: float = 5.0
    min_ransac_threshold: float = 1.5
    ransac_threshold_reduction_factor: float = 0.6
    mean_reproj_error_threshold: float = 1.0
    reprojection_inlier_threshold: float = 5.0
    max_keypoints: int = 500
    min_inlier_ratio: float = 0.2
    min_determinant: float = 0.01
    max_determinant: float = 100.0
    inlier_ratio_improvement_threshold: float = 0.01
    min_perspective_determinant: float = 0.5
    max_perspective_determinant: float = 2.0
    min_scale_factor: float = 0.5
    max_scale_factor: float = 2.0
    max_rotation_degrees: float = 45.0
    determinant_change_threshold: float = 0.01
    perspective_blend_factor: float = 0.5
    success_confidence_threshold: float = 0.7

    def _validate(self) -> None:
        if self.ransac_threshold <= 0 or self.min_ransac_threshold <= 0:
            raise InvalidArgumentError("RANSAC thresholds must be positive")
        if self.min_ransac_threshold > self.ransac_threshold:
            raise InvalidArgumentError("Minimum RANSAC threshold cannot exceed the initial threshold")
        if not 0 < self.ransac_threshold_reduction_factor < 1:
            raise InvalidArgumentError("RANSAC threshold reduction factor must be in (0, 1)")
        if self.mean_reproj_error_threshold <= 0 or self.reprojection_inlier_threshold <= 0:
            raise InvalidArgumentError("Reprojection thresholds must be positive")
        if self.max_keypoints <= 0:
            raise InvalidArgumentError("Max keypoints must be positive")
        if not 0 <= self.min_inlier_ratio <= 1:
            raise InvalidArgumentError("Minimum inlier ratio must be between 0 and 1")
        if not 0 < self.min_determinant < self.max_determinant:
            raise InvalidArgumentError("Determinant bounds must satisfy 0 < min < max")
        if self.inlier_ratio_improvement_threshold <= 0:
            raise InvalidArgumentError("Inlier ratio improvement threshold must be positive")
        if not 0 < self.min_perspective_determinant < self.max_perspective_determinant:
            raise InvalidArgumentError("Perspective determinant bounds must satisfy 0 < min < max")
        if not 0 < self.min_scale_factor < self.max_scale_factor:
            raise InvalidArgumentError("Scale factor bounds must satisfy 0 < min < max")
        if not 0 < self.max_rotation_degrees <= 180:
            raise InvalidArgumentError("Max rotation must be in (0, 180] degrees")
        if self.determinant_change_threshold <= 0:
            raise InvalidArgumentError("Determinant change threshold must be positive")
        if not 0 <= self.perspective_blend_factor <= 1:
            raise InvalidArgumentError("Perspective blend factor must be between 0 and 1")
        if not 0 <= self.success_confidence_threshold <= 1:
            raise InvalidArgumentError("Success confidence threshold must be between 0 and 1")

    @property
    def max_passes(self) -> int:
        if self.mode is StabilizationMode.FAST:
            return LANDSCAPE_MAX_PASSES_FAST
        return LANDSCAPE_MAX_PASSES_SLOW
