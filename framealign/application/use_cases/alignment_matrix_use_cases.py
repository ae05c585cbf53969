"""
Initial alignment matrix use case.

Builds the source-to-canvas affine matrix that levels the two reference
points (eyes or shoulders), scales their distance to the target distance and
places their midpoint at the target centre of the square output canvas.
"""
import logging
import math
from typing import Optional, Union

from framealign.domain.alignment.entities.landmarks import BodyLandmarks, Landmarks
from framealign.domain.alignment.value_objects.alignment_matrix import AlignmentMatrix
from framealign.domain.alignment.value_objects.stabilization_settings import (
    AlignmentSettings,
    BodyAlignmentSettings,
)
from framealign.domain.shared.errors import InvalidArgumentError
from framealign.domain.shared.result import Result

logger = logging.getLogger(__name__)

FramingSettings = Union[AlignmentSettings, BodyAlignmentSettings]


class CalculateAlignmentMatrixUseCase:
    """Computes the first-pass matrix for face or body landmarks."""

    def __init__(
        self,
        alignment_settings: Optional[AlignmentSettings] = None,
        body_settings: Optional[BodyAlignmentSettings] = None,
    ):
        self.alignment_settings = alignment_settings or AlignmentSettings()
        self.body_settings = body_settings or BodyAlignmentSettings()

    def __call__(
        self,
        landmarks: Landmarks,
        source_width: int,
        source_height: int,
        settings: Optional[FramingSettings] = None,
    ) -> Result[AlignmentMatrix]:
        """
        Compute the matrix mapping source image pixels to output canvas pixels.

        Args:
            landmarks: Normalized landmarks detected on the source image
            source_width: Source image width in pixels
            source_height: Source image height in pixels
            settings: Framing override; defaults to body settings for
                BodyLandmarks and face settings otherwise

        Returns:
            Result with the AlignmentMatrix, or InvalidArgumentError for
            non-positive source dimensions
        """
        if source_width <= 0 or source_height <= 0:
            error = InvalidArgumentError(f"Source dimensions must be positive, got {source_width}x{source_height}")
            logger.warning(f"Alignment matrix rejected: {error}")
            return Result.failure(error)

        if settings is None:
            settings = self.body_settings if isinstance(landmarks, BodyLandmarks) else self.alignment_settings

        left_x, left_y = landmarks.reference_point_left().to_pixels(source_width, source_height)
        right_x, right_y = landmarks.reference_point_right().to_pixels(source_width, source_height)
        delta_x = right_x - left_x
        delta_y = right_y - left_y
        distance = math.hypot(delta_x, delta_y)

        if distance > 0:
            angle = math.atan2(delta_y, delta_x)
            scale = settings.target_reference_distance / distance
        else:
            angle = 0.0
            scale = 1.0

        linear = AlignmentMatrix.from_rotation(-angle).scale_linear(scale)
        mid_x = (left_x + right_x) / 2
        mid_y = (left_y + right_y) / 2
        mapped_x, mapped_y = linear.transform_point(mid_x, mid_y)
        target_x, target_y = settings.target_center
        matrix = linear.translate(target_x - mapped_x, target_y - mapped_y)

        logger.debug(
            f"Initial alignment: angle {math.degrees(angle):.2f} deg, scale {scale:.4f}, "
            f"reference midpoint ({mid_x:.1f}, {mid_y:.1f}) -> ({target_x:.1f}, {target_y:.1f})"
        )
        return Result.success(matrix)
