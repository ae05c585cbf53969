"""
Affine alignment matrix value object.

Row-major 2x3 map from source image pixels to output canvas pixels:

    | x' |   | scale_x  skew_x  translate_x |   | x |
    | y' | = | skew_y   scale_y translate_y | * | y |
                                                | 1 |

The layout matches what cv2.warpAffine expects, so to_numpy() can be handed
to the external image transformer unchanged.
"""
from dataclasses import dataclass
from typing import Tuple
import math

import numpy as np

from framealign.domain.shared.errors import InvalidArgumentError
from framealign.domain.shared.value_objects.base_value_object import BaseValueObject


@dataclass(frozen=True)
class AlignmentMatrix(BaseValueObject):
    """2D affine transform (rotation, scale, skew, translation; no perspective)."""

    scale_x: float
    skew_x: float
    translate_x: float
    skew_y: float
    scale_y: float
    translate_y: float

    def _validate(self) -> None:
        values = (self.scale_x, self.skew_x, self.translate_x, self.skew_y, self.scale_y, self.translate_y)
        if not all(math.isfinite(v) for v in values):
            raise InvalidArgumentError(f"Alignment matrix contains NaN or infinite values: {values}")

    @classmethod
    def identity(cls) -> 'AlignmentMatrix':
        return cls(scale_x=1.0, skew_x=0.0, translate_x=0.0, skew_y=0.0, scale_y=1.0, translate_y=0.0)

    @classmethod
    def from_rotation(cls, angle_radians: float) -> 'AlignmentMatrix':
        """Counter-clockwise rotation about the origin (y axis pointing down renders it clockwise)."""
        cos_a = math.cos(angle_radians)
        sin_a = math.sin(angle_radians)
        return cls(scale_x=cos_a, skew_x=-sin_a, translate_x=0.0, skew_y=sin_a, scale_y=cos_a, translate_y=0.0)

    @classmethod
    def from_numpy(cls, array: np.ndarray) -> 'AlignmentMatrix':
        """Create from a 2x3 (or 3x3 with an affine last row) array."""
        matrix = np.asarray(array, dtype=np.float64)
        if matrix.shape not in ((2, 3), (3, 3)):
            raise InvalidArgumentError(f"Affine matrix must be 2x3, got shape {matrix.shape}")
        if matrix.shape == (3, 3) and not np.allclose(matrix[2], (0.0, 0.0, 1.0)):
            raise InvalidArgumentError(f"Last row of a 3x3 affine matrix must be [0, 0, 1], got {matrix[2].tolist()}")
        return cls(
            scale_x=float(matrix[0, 0]),
            skew_x=float(matrix[0, 1]),
            translate_x=float(matrix[0, 2]),
            skew_y=float(matrix[1, 0]),
            scale_y=float(matrix[1, 1]),
            translate_y=float(matrix[1, 2]),
        )

    @property
    def determinant(self) -> float:
        """Determinant of the linear part."""
        return self.scale_x * self.scale_y - self.skew_x * self.skew_y

    @property
    def rotation_degrees(self) -> float:
        """Approximate rotation of the linear part, ignoring skew."""
        return math.degrees(math.atan2(self.skew_y, self.scale_x))

    @property
    def uniform_scale(self) -> float:
        """Approximate scale factor from the first column."""
        return math.hypot(self.scale_x, self.skew_y)

    def transform_point(self, x: float, y: float) -> Tuple[float, float]:
        return (
            self.scale_x * x + self.skew_x * y + self.translate_x,
            self.skew_y * x + self.scale_y * y + self.translate_y,
        )

    def compose(self, other: 'AlignmentMatrix') -> 'AlignmentMatrix':
        """Return self ∘ other: apply other first, then self."""
        return AlignmentMatrix(
            scale_x=self.scale_x * other.scale_x + self.skew_x * other.skew_y,
            skew_x=self.scale_x * other.skew_x + self.skew_x * other.scale_y,
            translate_x=self.scale_x * other.translate_x + self.skew_x * other.translate_y + self.translate_x,
            skew_y=self.skew_y * other.scale_x + self.scale_y * other.skew_y,
            scale_y=self.skew_y * other.skew_x + self.scale_y * other.scale_y,
            translate_y=self.skew_y * other.translate_x + self.scale_y * other.translate_y + self.translate_y,
        )

    def rotate_linear(self, angle_radians: float) -> 'AlignmentMatrix':
        """
        Pre-multiply the linear part by a rotation, keeping the translation.

        Output-space vectors (e.g. the eye line) rotate by exactly angle_radians
        while the translation column stays where it was.
        """
        cos_a = math.cos(angle_radians)
        sin_a = math.sin(angle_radians)
        return AlignmentMatrix(
            scale_x=cos_a * self.scale_x - sin_a * self.skew_y,
            skew_x=cos_a * self.skew_x - sin_a * self.scale_y,
            translate_x=self.translate_x,
            skew_y=sin_a * self.scale_x + cos_a * self.skew_y,
            scale_y=sin_a * self.skew_x + cos_a * self.scale_y,
            translate_y=self.translate_y,
        )

    def scale_linear(self, factor: float) -> 'AlignmentMatrix':
        """Multiply the linear part by factor, keeping the translation."""
        return AlignmentMatrix(
            scale_x=self.scale_x * factor,
            skew_x=self.skew_x * factor,
            translate_x=self.translate_x,
            skew_y=self.skew_y * factor,
            scale_y=self.scale_y * factor,
            translate_y=self.translate_y,
        )

    def translate(self, dx: float, dy: float) -> 'AlignmentMatrix':
        """Add (dx, dy) to the translation, keeping scale and skew."""
        return AlignmentMatrix(
            scale_x=self.scale_x,
            skew_x=self.skew_x,
            translate_x=self.translate_x + dx,
            skew_y=self.skew_y,
            scale_y=self.scale_y,
            translate_y=self.translate_y + dy,
        )

    def is_near_identity(self, tolerance: float = 1e-6) -> bool:
        return np.allclose(self.to_numpy(), AlignmentMatrix.identity().to_numpy(), atol=tolerance)

    def to_numpy(self) -> np.ndarray:
        """2x3 float64 array in cv2.warpAffine layout."""
        return np.array(
            [
                [self.scale_x, self.skew_x, self.translate_x],
                [self.skew_y, self.scale_y, self.translate_y],
            ],
            dtype=np.float64,
        )

    def to_list(self):
        """Flat [scale_x, skew_x, translate_x, skew_y, scale_y, translate_y]."""
        return [self.scale_x, self.skew_x, self.translate_x, self.skew_y, self.scale_y, self.translate_y]

    def to_homography(self):
        """Lift to a 3x3 homography with an affine last row."""
        from framealign.domain.alignment.value_objects.homography_matrix import HomographyMatrix

        return HomographyMatrix.from_double_array(self.to_list() + [0.0, 0.0, 1.0])
