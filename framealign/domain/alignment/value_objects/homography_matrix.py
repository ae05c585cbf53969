"""
Homography matrix value object for perspective alignment.

Provides type-safe 3x3 projective transform handling with validation and operations.
"""
from dataclasses import dataclass
from typing import List, Sequence, Tuple
import math

import numpy as np

from framealign.domain.alignment.value_objects.alignment_matrix import AlignmentMatrix
from framealign.domain.shared.errors import DegenerateTransformError, InvalidArgumentError
from framealign.domain.shared.value_objects.base_value_object import BaseValueObject

# |w| below this is treated as a point at infinity
W_EPSILON = 1e-6
DETERMINANT_EPSILON = 1e-6
AFFINE_TOLERANCE = 0.001
DEFAULT_IDENTITY_TOLERANCE = 0.01


@dataclass(frozen=True, eq=False)
class HomographyMatrix(BaseValueObject):
    """
    Homography matrix value object.

    Represents a row-major 3x3 matrix mapping (x, y) to
    ((h11*x + h12*y + h13) / w, (h21*x + h22*y + h23) / w) with
    w = h31*x + h32*y + h33.
    """

    matrix: np.ndarray  # 3x3 homography matrix

    def __post_init__(self):
        """Post-initialization validation."""
        super().__post_init__()
        # Make matrix immutable
        self.matrix.flags.writeable = False

    def _validate(self) -> None:
        """Validate homography matrix."""
        if not isinstance(self.matrix, np.ndarray):
            raise InvalidArgumentError("Matrix must be a numpy array")

        if self.matrix.shape != (3, 3):
            raise InvalidArgumentError(f"Matrix must be 3x3, got shape {self.matrix.shape}")

        if not np.isfinite(self.matrix).all():
            raise InvalidArgumentError("Matrix contains invalid values (NaN or infinite)")

    @classmethod
    def from_numpy(cls, matrix: np.ndarray) -> 'HomographyMatrix':
        """Create from a 3x3 array (e.g. the output of cv2.findHomography)."""
        return cls(matrix=np.array(matrix, dtype=np.float64, copy=True))

    @classmethod
    def from_double_array(cls, values: Sequence[float]) -> 'HomographyMatrix':
        """
        Create from 9 values in row-major order.

        Raises:
            InvalidArgumentError: If values does not hold exactly 9 numbers
        """
        flat = np.asarray(values, dtype=np.float64).ravel()
        if flat.size != 9:
            raise InvalidArgumentError(f"Homography matrix requires exactly 9 values, got {flat.size}")
        return cls(matrix=flat.reshape(3, 3).copy())

    @classmethod
    def identity(cls) -> 'HomographyMatrix':
        """Create identity homography matrix."""
        return cls(matrix=np.eye(3, dtype=np.float64))

    @classmethod
    def translation(cls, tx: float, ty: float) -> 'HomographyMatrix':
        return cls.from_double_array([1.0, 0.0, tx, 0.0, 1.0, ty, 0.0, 0.0, 1.0])

    @classmethod
    def scale(cls, sx: float, sy: float) -> 'HomographyMatrix':
        return cls.from_double_array([sx, 0.0, 0.0, 0.0, sy, 0.0, 0.0, 0.0, 1.0])

    @classmethod
    def rotation(cls, degrees: float) -> 'HomographyMatrix':
        """Rotation about the origin, counter-clockwise positive."""
        radians = math.radians(degrees)
        cos_a, sin_a = math.cos(radians), math.sin(radians)
        return cls.from_double_array([cos_a, -sin_a, 0.0, sin_a, cos_a, 0.0, 0.0, 0.0, 1.0])

    # Element accessors
    @property
    def h11(self) -> float:
        return float(self.matrix[0, 0])

    @property
    def h12(self) -> float:
        return float(self.matrix[0, 1])

    @property
    def h13(self) -> float:
        return float(self.matrix[0, 2])

    @property
    def h21(self) -> float:
        return float(self.matrix[1, 0])

    @property
    def h22(self) -> float:
        return float(self.matrix[1, 1])

    @property
    def h23(self) -> float:
        return float(self.matrix[1, 2])

    @property
    def h31(self) -> float:
        return float(self.matrix[2, 0])

    @property
    def h32(self) -> float:
        return float(self.matrix[2, 1])

    @property
    def h33(self) -> float:
        return float(self.matrix[2, 2])

    @property
    def determinant(self) -> float:
        """Get matrix determinant."""
        return float(np.linalg.det(self.matrix))

    @property
    def is_valid(self) -> bool:
        """Non-singular, i.e. usable as a warp."""
        return abs(self.determinant) > DETERMINANT_EPSILON

    def is_near_identity(self, tolerance: float = DEFAULT_IDENTITY_TOLERANCE) -> bool:
        return bool(np.all(np.abs(self.matrix - np.eye(3)) < tolerance))

    def is_near_affine(self, tolerance: float = AFFINE_TOLERANCE) -> bool:
        """True when the perspective row is negligible (|h31|, |h32| < tolerance)."""
        return abs(self.h31) < tolerance and abs(self.h32) < tolerance

    def approximate_rotation_degrees(self) -> float:
        """Rotation estimate that ignores perspective distortion."""
        return math.degrees(math.atan2(self.h21, self.h11))

    def approximate_scale(self) -> float:
        """Scale estimate from the first column."""
        return math.hypot(self.h11, self.h21)

    def transform_point(self, x: float, y: float) -> Tuple[float, float]:
        """
        Transform a single point using the homography.

        Raises:
            DegenerateTransformError: If the point maps to infinity (|w| < 1e-6)
        """
        w = self.h31 * x + self.h32 * y + self.h33
        if abs(w) < W_EPSILON:
            raise DegenerateTransformError(f"Point ({x}, {y}) projects to infinity (w={w})")
        x_prime = (self.h11 * x + self.h12 * y + self.h13) / w
        y_prime = (self.h21 * x + self.h22 * y + self.h23) / w
        return (x_prime, y_prime)

    def transform_points(self, points: List[Tuple[float, float]]) -> List[Tuple[float, float]]:
        return [self.transform_point(x, y) for x, y in points]

    def to_alignment_matrix(self) -> AlignmentMatrix:
        """
        Collapse a near-affine homography into an AlignmentMatrix.

        The top two rows are divided by h33 (1 is used when h33 is ~0).

        Raises:
            InvalidArgumentError: If the matrix has a perspective component
        """
        if not self.is_near_affine():
            raise InvalidArgumentError(
                f"Homography has a perspective component (h31={self.h31}, h32={self.h32})"
            )
        divisor = self.h33 if abs(self.h33) >= W_EPSILON else 1.0
        return AlignmentMatrix(
            scale_x=self.h11 / divisor,
            skew_x=self.h12 / divisor,
            translate_x=self.h13 / divisor,
            skew_y=self.h21 / divisor,
            scale_y=self.h22 / divisor,
            translate_y=self.h23 / divisor,
        )

    def inverse(self) -> 'HomographyMatrix':
        """
        Get inverse homography matrix.

        Raises:
            DegenerateTransformError: If matrix is not invertible
        """
        if not self.is_valid:
            raise DegenerateTransformError(f"Matrix is not invertible (det={self.determinant})")
        return HomographyMatrix.from_numpy(np.linalg.inv(self.matrix))

    def compose(self, other: 'HomographyMatrix') -> 'HomographyMatrix':
        """Return self ∘ other: apply other first, then self."""
        return HomographyMatrix.from_numpy(self.matrix @ other.matrix)

    def to_list(self) -> List[float]:
        """Row-major list of 9 values."""
        return [float(v) for v in self.matrix.ravel()]

    def to_numpy(self) -> np.ndarray:
        """Writable 3x3 float64 copy, e.g. for cv2.warpPerspective."""
        return np.array(self.matrix, dtype=np.float64, copy=True)

    def to_dict(self) -> dict:
        return {
            'matrix': self.matrix.tolist(),
            'determinant': self.determinant,
            'is_near_affine': self.is_near_affine(),
            'approximate_rotation_degrees': self.approximate_rotation_degrees(),
            'approximate_scale': self.approximate_scale(),
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HomographyMatrix):
            return NotImplemented
        return bool(np.array_equal(self.matrix, other.matrix))

    def __hash__(self) -> int:
        return hash(tuple(self.to_list()))

    def __str__(self) -> str:
        """String representation."""
        return f"HomographyMatrix(det={self.determinant:.3f}, affine={self.is_near_affine()})"
