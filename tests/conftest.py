"""
Global fixtures for the framealign test suite.
"""
import pytest

from framealign.core.config import Settings
from framealign.domain.alignment.entities.feature_keypoint import FeatureKeypoint
from framealign.domain.alignment.entities.landmarks import BodyLandmarks, FaceLandmarks
from framealign.domain.alignment.value_objects.landmark_point import LandmarkPoint
from framealign.domain.alignment.value_objects.stabilization_settings import (
    AlignmentSettings,
    LandscapeStabilizationSettings,
    StabilizationMode,
    StabilizationSettings,
)
from framealign.domain.shared.value_objects.bounding_box import BoundingBox

CANVAS_SIZE = 512


@pytest.fixture
def stabilization_settings() -> StabilizationSettings:
    return StabilizationSettings()


@pytest.fixture
def alignment_settings() -> AlignmentSettings:
    return AlignmentSettings()


@pytest.fixture
def slow_alignment_settings() -> AlignmentSettings:
    return AlignmentSettings(stabilization=StabilizationSettings(mode=StabilizationMode.SLOW))


@pytest.fixture
def landscape_settings() -> LandscapeStabilizationSettings:
    return LandscapeStabilizationSettings()


@pytest.fixture
def mock_settings() -> Settings:
    """Settings built from explicit values only, ignoring any local .env file."""
    return Settings(_env_file=None, APP_NAME="FrameAlign Test", LOG_LEVEL="DEBUG")


@pytest.fixture
def goal_eyes():
    """Goal eyes for a 512px canvas: 112px apart on the centre line."""
    return LandmarkPoint(x=200.0, y=256.0), LandmarkPoint(x=312.0, y=256.0)


@pytest.fixture
def make_face_landmarks():
    """Factory building FaceLandmarks from normalized (x, y) eye positions."""

    def _make(left=(0.4, 0.4), right=(0.6, 0.4), confidence=0.95, box=(0.25, 0.2, 0.75, 0.8)):
        left_eye = LandmarkPoint(x=left[0], y=left[1])
        right_eye = LandmarkPoint(x=right[0], y=right[1])
        return FaceLandmarks(
            left_eye_center=left_eye,
            right_eye_center=right_eye,
            nose_tip=LandmarkPoint.midpoint(left_eye, right_eye),
            bounding_box=BoundingBox.create(*box),
            confidence=confidence,
            points=[left_eye, right_eye],
        )

    return _make


@pytest.fixture
def make_body_landmarks():
    """Factory building BodyLandmarks from normalized shoulder positions."""

    def _make(left_shoulder=(0.35, 0.3), right_shoulder=(0.65, 0.3), confidence=0.9):
        ls = LandmarkPoint(x=left_shoulder[0], y=left_shoulder[1])
        rs = LandmarkPoint(x=right_shoulder[0], y=right_shoulder[1])
        return BodyLandmarks(
            left_shoulder=ls,
            right_shoulder=rs,
            left_hip=LandmarkPoint(x=ls.x + 0.03, y=ls.y + 0.35),
            right_hip=LandmarkPoint(x=rs.x - 0.03, y=rs.y + 0.35),
            neck_center=LandmarkPoint(x=(ls.x + rs.x) / 2, y=ls.y - 0.05),
            bounding_box=BoundingBox.create(0.2, 0.1, 0.8, 0.9),
            confidence=confidence,
        )

    return _make


@pytest.fixture
def grid_keypoints():
    """Factory for a 5x5 grid of normalized keypoints, optionally shifted in pixels."""

    def _make(width=640, height=480, dx=0.0, dy=0.0):
        keypoints = []
        for row in range(5):
            for col in range(5):
                x = 80 + col * 110 + (row * 7) % 13
                y = 60 + row * 85 + (col * 11) % 17
                keypoints.append(FeatureKeypoint.from_pixel_coordinates(x + dx, y + dy, width, height, response=0.5))
        return keypoints

    return _make
