"""
Normalized bounding box value object.

Detectors report boxes as (left, top, right, bottom) in [0, 1]. The box is
clamped into the unit square on creation and must keep a positive extent.
"""
from dataclasses import dataclass
from typing import Tuple

from framealign.domain.shared.errors import InvalidArgumentError
from framealign.domain.shared.value_objects.base_value_object import BaseValueObject


def _clamp_unit(value: float) -> float:
    return min(max(float(value), 0.0), 1.0)


@dataclass(frozen=True)
class BoundingBox(BaseValueObject):
    """Axis-aligned box in normalized image coordinates."""

    left: float
    top: float
    right: float
    bottom: float

    def _validate(self) -> None:
        for name in ("left", "top", "right", "bottom"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise InvalidArgumentError(f"Bounding box {name} must be within [0, 1], got {value}")
        if self.left >= self.right:
            raise InvalidArgumentError(f"Bounding box left ({self.left}) must be less than right ({self.right})")
        if self.top >= self.bottom:
            raise InvalidArgumentError(f"Bounding box top ({self.top}) must be less than bottom ({self.bottom})")

    @classmethod
    def create(cls, left: float, top: float, right: float, bottom: float) -> 'BoundingBox':
        """
        Create a bounding box, clamping every edge into [0, 1].

        Raises:
            InvalidArgumentError: If the clamped box has no positive width or height
        """
        return cls(
            left=_clamp_unit(left),
            top=_clamp_unit(top),
            right=_clamp_unit(right),
            bottom=_clamp_unit(bottom),
        )

    @classmethod
    def from_pixels(
        cls, left: float, top: float, right: float, bottom: float, image_width: int, image_height: int
    ) -> 'BoundingBox':
        """Create from pixel edges of an image of the given size."""
        if image_width <= 0 or image_height <= 0:
            raise InvalidArgumentError("Image dimensions must be positive")
        return cls.create(
            left / image_width, top / image_height, right / image_width, bottom / image_height
        )

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def center_x(self) -> float:
        return self.left + self.width / 2

    @property
    def center_y(self) -> float:
        return self.top + self.height / 2

    @property
    def area(self) -> float:
        return self.width * self.height

    def to_pixels(self, image_width: int, image_height: int) -> Tuple[float, float, float, float]:
        """Convert to (left, top, right, bottom) pixel edges."""
        return (
            self.left * image_width,
            self.top * image_height,
            self.right * image_width,
            self.bottom * image_height,
        )

    def contains_point(self, x: float, y: float) -> bool:
        return self.left <= x <= self.right and self.top <= y <= self.bottom
