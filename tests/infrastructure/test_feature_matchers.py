# tests/infrastructure/test_feature_matchers.py
"""
Tests for the OpenCV-backed and unavailable feature matchers.
"""
import cv2
import numpy as np
import pytest

from framealign.domain.shared.errors import (
    DegenerateTransformError,
    FeatureMatchingUnavailableError,
    InsufficientCorrespondencesError,
    InvalidArgumentError,
)
from framealign.infrastructure.feature_matching.opencv_feature_matcher import OpenCvFeatureMatcher
from framealign.infrastructure.feature_matching.unavailable_feature_matcher import UnavailableFeatureMatcher

WIDTH, HEIGHT = 640, 480
FIND_HOMOGRAPHY = "framealign.infrastructure.feature_matching.opencv_feature_matcher.cv2.findHomography"


@pytest.fixture
def matches():
    return [(i, i) for i in range(25)]


@pytest.fixture
def matcher():
    return OpenCvFeatureMatcher(max_keypoints=100)


class TestOpenCvFeatureMatcher:
    def test_is_available(self, matcher):
        assert matcher.is_available

    def test_converts_keypoints_to_pixels(self, mocker, matcher, grid_keypoints, matches):
        find = mocker.patch(FIND_HOMOGRAPHY, return_value=(np.eye(3), np.ones((25, 1), dtype=np.uint8)))
        source = grid_keypoints(WIDTH, HEIGHT)
        reference = grid_keypoints(WIDTH, HEIGHT, dx=5.0)
        matcher.compute_homography(source, reference, matches, 3.0, WIDTH, HEIGHT)

        source_points, reference_points = find.call_args.args
        assert source_points.shape == (25, 1, 2)
        assert source_points.dtype == np.float32
        assert tuple(source_points[0, 0]) == pytest.approx(source[0].to_pixel_coordinates(WIDTH, HEIGHT))
        assert tuple(reference_points[0, 0] - source_points[0, 0]) == pytest.approx((5.0, 0.0), abs=1e-3)
        assert find.call_args.kwargs == {"method": cv2.RANSAC, "ransacReprojThreshold": 3.0}

    def test_recovers_scale_and_shift(self, matcher, grid_keypoints, matches):
        source = grid_keypoints(WIDTH, HEIGHT)
        reference = []
        for keypoint in source:
            x, y = keypoint.to_pixel_coordinates(WIDTH, HEIGHT)
            reference.append(type(keypoint).from_pixel_coordinates(1.1 * x + 3.0, 1.1 * y - 2.0, WIDTH, HEIGHT))

        estimate = matcher.compute_homography(source, reference, matches, 2.0, WIDTH, HEIGHT).unwrap()
        affine = estimate.homography.to_alignment_matrix()
        assert affine.scale_x == pytest.approx(1.1, abs=1e-3)
        assert affine.translate_x == pytest.approx(3.0, abs=0.1)
        assert estimate.inlier_ratio == 1.0
        # 25 matches against a 100 keypoint cap
        assert estimate.confidence == pytest.approx(0.6 + 0.25 * 0.4)

    def test_outlier_is_rejected(self, matcher, grid_keypoints, matches):
        source = grid_keypoints(WIDTH, HEIGHT)
        reference = grid_keypoints(WIDTH, HEIGHT, dx=10.0, dy=10.0)
        reference[7] = type(reference[7]).from_pixel_coordinates(600.0, 20.0, WIDTH, HEIGHT)

        estimate = matcher.compute_homography(source, reference, matches, 3.0, WIDTH, HEIGHT).unwrap()
        assert estimate.inlier_count == 24
        assert estimate.match_count == 25

    def test_too_few_matches(self, matcher, grid_keypoints):
        keypoints = grid_keypoints(WIDTH, HEIGHT)
        result = matcher.compute_homography(keypoints, keypoints, [(0, 0), (1, 1), (2, 2)], 3.0, WIDTH, HEIGHT)
        assert isinstance(result.error, InsufficientCorrespondencesError)

    def test_index_out_of_range(self, matcher, grid_keypoints, matches):
        keypoints = grid_keypoints(WIDTH, HEIGHT)
        result = matcher.compute_homography(keypoints, keypoints[:10], matches, 3.0, WIDTH, HEIGHT)
        assert isinstance(result.error, InvalidArgumentError)

    def test_none_from_opencv(self, mocker, matcher, grid_keypoints, matches):
        mocker.patch(FIND_HOMOGRAPHY, return_value=(None, None))
        keypoints = grid_keypoints(WIDTH, HEIGHT)
        result = matcher.compute_homography(keypoints, keypoints, matches, 3.0, WIDTH, HEIGHT)
        assert isinstance(result.error, DegenerateTransformError)

    def test_opencv_error(self, mocker, matcher, grid_keypoints, matches):
        mocker.patch(FIND_HOMOGRAPHY, side_effect=cv2.error("bad input"))
        keypoints = grid_keypoints(WIDTH, HEIGHT)
        result = matcher.compute_homography(keypoints, keypoints, matches, 3.0, WIDTH, HEIGHT)
        assert isinstance(result.error, DegenerateTransformError)

    def test_context_manager_releases(self, mocker):
        with OpenCvFeatureMatcher() as matcher:
            release = mocker.spy(matcher, "release")
        release.assert_called_once()


class TestUnavailableFeatureMatcher:
    def test_reports_unavailable(self, grid_keypoints, matches):
        matcher = UnavailableFeatureMatcher("no backend on this host")
        keypoints = grid_keypoints(WIDTH, HEIGHT)

        assert not matcher.is_available
        result = matcher.compute_homography(keypoints, keypoints, matches, 3.0, WIDTH, HEIGHT)
        assert isinstance(result.error, FeatureMatchingUnavailableError)
        assert result.message == "no backend on this host"
