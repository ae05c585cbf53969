"""
Feature keypoint entity.

Position is normalized; response, size, angle and octave are detector
specific (ORB, AKAZE) and only feed quality scoring, never transform math.
"""
from dataclasses import dataclass
from typing import Tuple

from framealign.domain.alignment.value_objects.landmark_point import LandmarkPoint


@dataclass(frozen=True)
class FeatureKeypoint:
    """A single detected feature."""

    position: LandmarkPoint
    response: float = 0.0
    size: float = 0.0
    angle: float = -1.0  # -1 when the detector does not compute orientation
    octave: int = 0

    def to_pixel_coordinates(self, image_width: int, image_height: int) -> Tuple[float, float]:
        return self.position.to_pixels(image_width, image_height)

    @classmethod
    def from_pixel_coordinates(
        cls,
        x: float,
        y: float,
        image_width: int,
        image_height: int,
        response: float = 0.0,
        size: float = 0.0,
        angle: float = -1.0,
        octave: int = 0,
    ) -> 'FeatureKeypoint':
        return cls(
            position=LandmarkPoint(x=x / image_width, y=y / image_height),
            response=response,
            size=size,
            angle=angle,
            octave=octave,
        )
