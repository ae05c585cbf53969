"""
Landmark point value object.

The point carries no unit of its own. Detector output (landmarks, keypoints)
is normalized to [0, 1] in x and y; goal positions and landmarks converted
with to_canvas_pixels are canvas pixels. Each signature states which one it
expects. z is detector dependent and unitless.
"""
from dataclasses import dataclass
from typing import Tuple
import math

from framealign.domain.shared.value_objects.base_value_object import BaseValueObject


@dataclass(frozen=True)
class LandmarkPoint(BaseValueObject):
    """A single detected landmark."""

    x: float
    y: float
    z: float = 0.0

    def to_pixels(self, width: float, height: float) -> Tuple[float, float]:
        """Scale the normalized position to pixel coordinates."""
        return (self.x * width, self.y * height)

    def distance_to(self, other: 'LandmarkPoint') -> float:
        """Euclidean distance in the x/y plane."""
        return math.hypot(self.x - other.x, self.y - other.y)

    @staticmethod
    def midpoint(a: 'LandmarkPoint', b: 'LandmarkPoint') -> 'LandmarkPoint':
        return LandmarkPoint(x=(a.x + b.x) / 2, y=(a.y + b.y) / 2, z=(a.z + b.z) / 2)
