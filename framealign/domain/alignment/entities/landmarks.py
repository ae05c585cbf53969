"""
Landmark entities produced by external face/body detectors.

All positions are normalized to [0, 1]. The alignment core reads them and
never mutates them; a fresh instance is built for every detection.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from framealign.domain.alignment.value_objects.landmark_point import LandmarkPoint
from framealign.domain.shared.errors import InvalidArgumentError
from framealign.domain.shared.value_objects.bounding_box import BoundingBox


def _check_confidence(confidence: float) -> None:
    if not 0 <= confidence <= 1:
        raise InvalidArgumentError(f"Detection confidence must be between 0 and 1, got {confidence}")


class Landmarks(ABC):
    """Common view of any detection that provides two alignment reference points."""

    bounding_box: BoundingBox
    confidence: float

    @abstractmethod
    def reference_point_left(self) -> LandmarkPoint:
        """Left anchor of the alignment line."""
        pass

    @abstractmethod
    def reference_point_right(self) -> LandmarkPoint:
        """Right anchor of the alignment line."""
        pass


@dataclass(frozen=True)
class FaceLandmarks(Landmarks):
    """Face mesh detection; the eye centres anchor the alignment."""

    left_eye_center: LandmarkPoint
    right_eye_center: LandmarkPoint
    bounding_box: BoundingBox
    confidence: float
    nose_tip: Optional[LandmarkPoint] = None
    points: List[LandmarkPoint] = field(default_factory=list)

    def __post_init__(self):
        _check_confidence(self.confidence)

    def reference_point_left(self) -> LandmarkPoint:
        return self.left_eye_center

    def reference_point_right(self) -> LandmarkPoint:
        return self.right_eye_center

    @property
    def eye_distance(self) -> float:
        """Normalized distance between the eye centres."""
        return self.left_eye_center.distance_to(self.right_eye_center)


@dataclass(frozen=True)
class BodyLandmarks(Landmarks):
    """Pose detection; the shoulders anchor the alignment."""

    left_shoulder: LandmarkPoint
    right_shoulder: LandmarkPoint
    left_hip: LandmarkPoint
    right_hip: LandmarkPoint
    neck_center: LandmarkPoint
    bounding_box: BoundingBox
    confidence: float
    keypoints: List[LandmarkPoint] = field(default_factory=list)

    def __post_init__(self):
        _check_confidence(self.confidence)

    def reference_point_left(self) -> LandmarkPoint:
        return self.left_shoulder

    def reference_point_right(self) -> LandmarkPoint:
        return self.right_shoulder

    @property
    def shoulder_center(self) -> LandmarkPoint:
        return LandmarkPoint.midpoint(self.left_shoulder, self.right_shoulder)

    @property
    def hip_center(self) -> LandmarkPoint:
        return LandmarkPoint.midpoint(self.left_hip, self.right_hip)

    @property
    def shoulder_distance(self) -> float:
        return self.left_shoulder.distance_to(self.right_shoulder)
