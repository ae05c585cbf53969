# tests/domain/test_geometry_value_objects.py
"""
Unit tests for BoundingBox, LandmarkPoint and the settings value objects.
"""
import pytest

from framealign.domain.alignment.value_objects.landmark_point import LandmarkPoint
from framealign.domain.alignment.value_objects.stabilization_settings import (
    AlignmentSettings,
    BodyAlignmentSettings,
    LandscapeStabilizationSettings,
    StabilizationMode,
    StabilizationSettings,
)
from framealign.domain.shared.errors import InvalidArgumentError
from framealign.domain.shared.value_objects.bounding_box import BoundingBox


class TestBoundingBox:
    def test_create_clamps_into_unit_square(self):
        box = BoundingBox.create(-0.2, 0.1, 1.3, 0.9)
        assert (box.left, box.top, box.right, box.bottom) == (0.0, 0.1, 1.0, 0.9)

    def test_derived_geometry(self):
        box = BoundingBox.create(0.2, 0.1, 0.6, 0.5)
        assert box.width == pytest.approx(0.4)
        assert box.height == pytest.approx(0.4)
        assert box.center_x == pytest.approx(0.4)
        assert box.center_y == pytest.approx(0.3)
        assert box.area == pytest.approx(0.16)
        assert box.contains_point(0.3, 0.3)
        assert not box.contains_point(0.7, 0.3)

    @pytest.mark.parametrize(
        "edges",
        [
            (0.5, 0.1, 0.5, 0.9),   # zero width
            (0.6, 0.1, 0.4, 0.9),   # inverted
            (0.1, 0.5, 0.9, 0.2),
            (1.2, 0.1, 1.5, 0.9),   # collapses to the right edge after clamping
        ],
    )
    def test_empty_box_rejected(self, edges):
        with pytest.raises(InvalidArgumentError):
            BoundingBox.create(*edges)

    def test_direct_construction_outside_unit_square_rejected(self):
        with pytest.raises(InvalidArgumentError):
            BoundingBox(left=-0.1, top=0.0, right=0.5, bottom=0.5)

    def test_pixel_round_trip(self):
        box = BoundingBox.from_pixels(64, 48, 320, 240, image_width=640, image_height=480)
        assert box.to_pixels(640, 480) == pytest.approx((64, 48, 320, 240))


class TestLandmarkPoint:
    def test_to_pixels(self):
        assert LandmarkPoint(x=0.5, y=0.25).to_pixels(640, 480) == (320.0, 120.0)

    def test_distance_ignores_z(self):
        a = LandmarkPoint(x=0.0, y=0.0, z=5.0)
        b = LandmarkPoint(x=0.3, y=0.4, z=-5.0)
        assert a.distance_to(b) == pytest.approx(0.5)

    def test_midpoint(self):
        mid = LandmarkPoint.midpoint(LandmarkPoint(x=0.2, y=0.4), LandmarkPoint(x=0.6, y=0.4))
        assert (mid.x, mid.y) == pytest.approx((0.4, 0.4))


class TestSettings:
    def test_stabilization_defaults(self):
        settings = StabilizationSettings()
        assert settings.mode is StabilizationMode.FAST
        assert settings.rotation_stop_threshold == 0.1
        assert settings.rotation_damping == 0.5
        assert settings.max_passes == 4
        assert StabilizationSettings(mode=StabilizationMode.SLOW).max_passes == 11

    @pytest.mark.parametrize(
        "overrides",
        [
            {"rotation_stop_threshold": 0.0},
            {"rotation_damping": 0.0},
            {"rotation_damping": 1.5},
            {"scale_error_threshold": -1.0},
            {"eye_validity_ratio": 1.2},
        ],
    )
    def test_invalid_stabilization_settings(self, overrides):
        with pytest.raises(InvalidArgumentError):
            StabilizationSettings(**overrides)

    def test_goal_eye_positions_follow_framing(self):
        settings = AlignmentSettings(output_size=512, target_eye_distance=0.3, vertical_offset=0.1)
        left, right = settings.goal_eye_positions()
        assert right.x - left.x == pytest.approx(153.6)
        assert (left.x + right.x) / 2 == pytest.approx(256.0)
        assert left.y == right.y == pytest.approx(204.8)

    @pytest.mark.parametrize(
        "overrides",
        [{"output_size": 64}, {"target_eye_distance": 0.95}, {"vertical_offset": 0.6}, {"min_confidence": 1.1}],
    )
    def test_invalid_alignment_settings(self, overrides):
        with pytest.raises(InvalidArgumentError):
            AlignmentSettings(**overrides)

    def test_body_target_centre_is_lifted(self):
        body = BodyAlignmentSettings(output_size=500, vertical_offset=0.1, head_to_waist_ratio=0.6)
        x, y = body.target_center
        assert x == 250.0
        assert y == pytest.approx(500 * 0.4 - 500 * 0.4 * 0.3)
        assert body.target_reference_distance == pytest.approx(175.0)

    def test_body_goals_follow_shoulder_framing(self):
        left, right = BodyAlignmentSettings().goal_reference_positions()
        assert (left.x, left.y) == pytest.approx((166.4, 143.36))
        assert (right.x, right.y) == pytest.approx((345.6, 143.36))

    def test_face_goal_reference_positions_are_the_eyes(self):
        settings = AlignmentSettings()
        assert settings.goal_reference_positions() == settings.goal_eye_positions()

    def test_landscape_threshold_ordering(self):
        with pytest.raises(InvalidArgumentError):
            LandscapeStabilizationSettings(ransac_threshold=1.0, min_ransac_threshold=2.0)
        with pytest.raises(InvalidArgumentError):
            LandscapeStabilizationSettings(min_determinant=10.0, max_determinant=1.0)
