"""
Stabilization score value object.

The score measures how far the detected eye positions are from their goal
positions, normalized by canvas height so the same relative error yields the
same score at any resolution:

    score = ((dist(left, goal_left) + dist(right, goal_right)) / 2) * 1000 / canvas_height

Lower is better. Below the no-action threshold the residual is noise; below
the success threshold the frame counts as stabilized.
"""
from dataclasses import dataclass
import math

from framealign.domain.alignment.value_objects.landmark_point import LandmarkPoint
from framealign.domain.shared.errors import InvalidArgumentError
from framealign.domain.shared.value_objects.base_value_object import BaseValueObject

SUCCESS_THRESHOLD = 20.0
NO_ACTION_THRESHOLD = 0.5
SCORE_SCALE = 1000.0


@dataclass(frozen=True)
class StabilizationScore(BaseValueObject):
    """Alignment quality of one frame against the goal eye positions."""

    value: float
    left_eye_distance: float
    right_eye_distance: float
    success_threshold: float = SUCCESS_THRESHOLD
    no_action_threshold: float = NO_ACTION_THRESHOLD

    def _validate(self) -> None:
        if self.value < 0 or self.left_eye_distance < 0 or self.right_eye_distance < 0:
            raise InvalidArgumentError("Score and eye distances must be non-negative")

    @property
    def is_success(self) -> bool:
        return self.value < self.success_threshold

    @property
    def needs_correction(self) -> bool:
        return self.value > self.no_action_threshold

    @classmethod
    def calculate(
        cls,
        detected_left_x: float,
        detected_left_y: float,
        detected_right_x: float,
        detected_right_y: float,
        goal_left_x: float,
        goal_left_y: float,
        goal_right_x: float,
        goal_right_y: float,
        canvas_height: int,
        success_threshold: float = SUCCESS_THRESHOLD,
        no_action_threshold: float = NO_ACTION_THRESHOLD,
    ) -> 'StabilizationScore':
        """
        Compute the score from pixel coordinates.

        Raises:
            InvalidArgumentError: If canvas_height is not positive
        """
        if canvas_height <= 0:
            raise InvalidArgumentError(f"Canvas height must be positive, got {canvas_height}")

        left_distance = math.hypot(detected_left_x - goal_left_x, detected_left_y - goal_left_y)
        right_distance = math.hypot(detected_right_x - goal_right_x, detected_right_y - goal_right_y)
        average_distance = (left_distance + right_distance) / 2

        return cls(
            value=average_distance * SCORE_SCALE / canvas_height,
            left_eye_distance=left_distance,
            right_eye_distance=right_distance,
            success_threshold=success_threshold,
            no_action_threshold=no_action_threshold,
        )

    @classmethod
    def from_points(
        cls,
        detected_left: LandmarkPoint,
        detected_right: LandmarkPoint,
        goal_left: LandmarkPoint,
        goal_right: LandmarkPoint,
        canvas_height: int,
        **thresholds: float,
    ) -> 'StabilizationScore':
        """Compute the score from points already expressed in pixels."""
        return cls.calculate(
            detected_left.x, detected_left.y,
            detected_right.x, detected_right.y,
            goal_left.x, goal_left.y,
            goal_right.x, goal_right.y,
            canvas_height,
            **thresholds,
        )

    @classmethod
    def worst(cls) -> 'StabilizationScore':
        """Placeholder used before any pass has been scored."""
        return cls(value=float('inf'), left_eye_distance=0.0, right_eye_distance=0.0)
