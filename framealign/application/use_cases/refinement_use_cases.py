"""
Refinement use cases for the iterative stabilization loop.

Each refiner takes the current source-to-canvas matrix plus landmarks
re-detected on the transformed canvas, and returns an updated matrix with a
convergence flag. Landmarks are normalized and converted to canvas pixels
here; every threshold is in canvas pixels.
"""
import logging
import math
from dataclasses import dataclass
from typing import Optional

from framealign.domain.alignment.entities.landmarks import Landmarks
from framealign.domain.alignment.value_objects.alignment_matrix import AlignmentMatrix
from framealign.domain.alignment.value_objects.overshoot_correction import OvershootCorrection
from framealign.domain.alignment.value_objects.stabilization_settings import StabilizationSettings
from framealign.domain.shared.errors import InvalidArgumentError
from framealign.domain.shared.result import Result

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RotationResult:
    """Output of one rotation refinement."""
    matrix: AlignmentMatrix
    converged: bool
    eye_delta_y: float  # |right.y - left.y| in canvas pixels
    correction_degrees: float = 0.0


@dataclass(frozen=True)
class ScaleResult:
    """Output of one scale refinement."""
    matrix: AlignmentMatrix
    converged: bool
    scale_error: float
    current_eye_distance: float
    scale_factor: float = 1.0


@dataclass(frozen=True)
class TranslationResult:
    """Output of one translation refinement."""
    matrix: AlignmentMatrix
    converged: bool
    applied_dx: float = 0.0
    applied_dy: float = 0.0


def _check_canvas(canvas_width: int, canvas_height: int) -> Optional[InvalidArgumentError]:
    if canvas_width <= 0 or canvas_height <= 0:
        return InvalidArgumentError(f"Canvas dimensions must be positive, got {canvas_width}x{canvas_height}")
    return None


class RefineRotationUseCase:
    """
    Levels the eye line with a damped rotation of the matrix's linear part.

    Each call rotates by -rotation_damping * atan2(dy, dx) of the current eye
    vector, so with the default damping of 0.5 the residual tilt halves on
    every pass. The translation column is left untouched.
    """

    def __init__(self, settings: Optional[StabilizationSettings] = None):
        self.settings = settings or StabilizationSettings()

    def __call__(
        self,
        current_matrix: AlignmentMatrix,
        landmarks: Landmarks,
        canvas_width: int,
        canvas_height: int,
        settings: Optional[StabilizationSettings] = None,
    ) -> Result[RotationResult]:
        error = _check_canvas(canvas_width, canvas_height)
        if error:
            logger.warning(f"Rotation refinement rejected: {error}")
            return Result.failure(error)
        settings = settings or self.settings

        left_x, left_y = landmarks.reference_point_left().to_pixels(canvas_width, canvas_height)
        right_x, right_y = landmarks.reference_point_right().to_pixels(canvas_width, canvas_height)
        delta_x = right_x - left_x
        delta_y = right_y - left_y

        # Coincident eyes carry no orientation
        if delta_x == 0 and delta_y == 0:
            logger.debug("Rotation refinement: coincident reference points, treating as converged")
            return Result.success(RotationResult(matrix=current_matrix, converged=True, eye_delta_y=0.0))

        if abs(delta_y) <= settings.rotation_stop_threshold:
            return Result.success(RotationResult(matrix=current_matrix, converged=True, eye_delta_y=abs(delta_y)))

        correction = -settings.rotation_damping * math.atan2(delta_y, delta_x)
        refined = current_matrix.rotate_linear(correction)
        logger.debug(
            f"Rotation refinement: eye dY={delta_y:.3f}px, correcting {math.degrees(correction):.3f} deg"
        )
        return Result.success(
            RotationResult(
                matrix=refined,
                converged=False,
                eye_delta_y=abs(delta_y),
                correction_degrees=math.degrees(correction),
            )
        )


class RefineScaleUseCase:
    """Brings the eye distance on the canvas to the goal eye distance."""

    def __init__(self, settings: Optional[StabilizationSettings] = None):
        self.settings = settings or StabilizationSettings()

    def __call__(
        self,
        current_matrix: AlignmentMatrix,
        landmarks: Landmarks,
        goal_eye_distance: float,
        canvas_width: int,
        canvas_height: int,
        settings: Optional[StabilizationSettings] = None,
    ) -> Result[ScaleResult]:
        """goal_eye_distance is in canvas pixels."""
        error = _check_canvas(canvas_width, canvas_height)
        if error is None and goal_eye_distance <= 0:
            error = InvalidArgumentError(f"Goal eye distance must be positive, got {goal_eye_distance}")
        if error:
            logger.warning(f"Scale refinement rejected: {error}")
            return Result.failure(error)
        settings = settings or self.settings

        left_x, left_y = landmarks.reference_point_left().to_pixels(canvas_width, canvas_height)
        right_x, right_y = landmarks.reference_point_right().to_pixels(canvas_width, canvas_height)
        current_distance = math.hypot(right_x - left_x, right_y - left_y)
        scale_error = abs(current_distance - goal_eye_distance)

        if current_distance == 0 or scale_error <= settings.scale_error_threshold:
            return Result.success(
                ScaleResult(
                    matrix=current_matrix,
                    converged=True,
                    scale_error=scale_error,
                    current_eye_distance=current_distance,
                )
            )

        factor = goal_eye_distance / current_distance
        logger.debug(
            f"Scale refinement: eye distance {current_distance:.2f}px vs goal {goal_eye_distance:.2f}px, "
            f"factor {factor:.4f}"
        )
        return Result.success(
            ScaleResult(
                matrix=current_matrix.scale_linear(factor),
                converged=False,
                scale_error=scale_error,
                current_eye_distance=current_distance,
                scale_factor=factor,
            )
        )


class RefineTranslationUseCase:
    """
    Cancels the average eye overshoot by shifting the translation.

    Convergence follows the overshoot's needs_correction flag; this refiner
    applies no threshold of its own.
    """

    def __call__(self, current_matrix: AlignmentMatrix, overshoot: OvershootCorrection) -> Result[TranslationResult]:
        if not overshoot.needs_correction:
            return Result.success(TranslationResult(matrix=current_matrix, converged=True))

        dx = -overshoot.average_overshoot_x
        dy = -overshoot.average_overshoot_y
        logger.debug(f"Translation refinement: shifting by ({dx:.2f}, {dy:.2f})px")
        return Result.success(
            TranslationResult(
                matrix=current_matrix.translate(dx, dy),
                converged=False,
                applied_dx=dx,
                applied_dy=dy,
            )
        )
