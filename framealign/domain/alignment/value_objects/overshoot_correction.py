"""
Overshoot correction value object.

During multi-pass stabilization the eyes can move past their goal positions.
Each overshoot is detected minus goal in pixels, so positive x means the eye
sits right of its goal and positive y means it sits below.
"""
from dataclasses import dataclass

from framealign.domain.alignment.value_objects.landmark_point import LandmarkPoint
from framealign.domain.alignment.value_objects.stabilization_score import NO_ACTION_THRESHOLD
from framealign.domain.shared.value_objects.base_value_object import BaseValueObject


def _same_sign(a: float, b: float) -> bool:
    return (a > 0 and b > 0) or (a < 0 and b < 0)


@dataclass(frozen=True)
class OvershootCorrection(BaseValueObject):
    """Per-eye overshoot plus the decision whether to correct it."""

    left_eye_overshoot_x: float
    left_eye_overshoot_y: float
    right_eye_overshoot_x: float
    right_eye_overshoot_y: float
    needs_correction: bool
    current_score: float = 0.0

    @property
    def average_overshoot_x(self) -> float:
        return (self.left_eye_overshoot_x + self.right_eye_overshoot_x) / 2

    @property
    def average_overshoot_y(self) -> float:
        return (self.left_eye_overshoot_y + self.right_eye_overshoot_y) / 2

    @property
    def same_direction_x(self) -> bool:
        """Both eyes overshot the same way horizontally."""
        return _same_sign(self.left_eye_overshoot_x, self.right_eye_overshoot_x)

    @property
    def same_direction_y(self) -> bool:
        """Both eyes overshot the same way vertically."""
        return _same_sign(self.left_eye_overshoot_y, self.right_eye_overshoot_y)

    @classmethod
    def calculate(
        cls,
        detected_left: LandmarkPoint,
        detected_right: LandmarkPoint,
        goal_left: LandmarkPoint,
        goal_right: LandmarkPoint,
        current_score: float,
        no_action_threshold: float = NO_ACTION_THRESHOLD,
    ) -> 'OvershootCorrection':
        """
        Build the correction from pixel-space eye positions.

        Correction is needed when the score is above the no-action threshold
        or both eyes overshot in the same direction on either axis.
        """
        left_x = detected_left.x - goal_left.x
        left_y = detected_left.y - goal_left.y
        right_x = detected_right.x - goal_right.x
        right_y = detected_right.y - goal_right.y

        needs_correction = (
            current_score > no_action_threshold
            or _same_sign(left_x, right_x)
            or _same_sign(left_y, right_y)
        )
        return cls(
            left_eye_overshoot_x=left_x,
            left_eye_overshoot_y=left_y,
            right_eye_overshoot_x=right_x,
            right_eye_overshoot_y=right_y,
            needs_correction=needs_correction,
            current_score=current_score,
        )
