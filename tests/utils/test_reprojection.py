# tests/utils/test_reprojection.py
"""
Tests for reprojection error diagnostics.
"""
import pytest

from framealign.domain.alignment.value_objects.homography_matrix import HomographyMatrix
from framealign.domain.shared.errors import NoValidMatchesError
from framealign.utils.reprojection import calculate_reprojection_error

WIDTH, HEIGHT = 640, 480


@pytest.fixture
def matches():
    return [(i, i) for i in range(25)]


def test_exact_homography_has_zero_error(grid_keypoints, matches):
    source = grid_keypoints(WIDTH, HEIGHT)
    reference = grid_keypoints(WIDTH, HEIGHT, dx=20.0, dy=5.0)

    result = calculate_reprojection_error(
        HomographyMatrix.translation(20.0, 5.0), source, reference, matches, WIDTH, HEIGHT
    ).unwrap()
    assert result.mean_error == pytest.approx(0.0, abs=1e-6)
    assert result.max_error == pytest.approx(0.0, abs=1e-6)
    assert result.inlier_count == 25
    assert result.inlier_ratio == 1.0


def test_statistics_with_one_outlier(grid_keypoints, matches):
    source = grid_keypoints(WIDTH, HEIGHT)
    reference = grid_keypoints(WIDTH, HEIGHT)
    x, y = reference[0].to_pixel_coordinates(WIDTH, HEIGHT)
    reference[0] = type(reference[0]).from_pixel_coordinates(x + 30.0, y + 40.0, WIDTH, HEIGHT)

    result = calculate_reprojection_error(HomographyMatrix.identity(), source, reference, matches, WIDTH, HEIGHT).unwrap()
    assert result.max_error == pytest.approx(50.0)
    assert result.mean_error == pytest.approx(2.0)
    assert result.median_error == pytest.approx(0.0, abs=1e-6)
    assert result.inlier_count == 24
    assert len(result.per_match_errors) == 25


def test_inlier_threshold_is_inclusive(grid_keypoints):
    source = grid_keypoints(WIDTH, HEIGHT)
    result = calculate_reprojection_error(
        HomographyMatrix.translation(3.0, 4.0), source, source, [(0, 0), (1, 1)], WIDTH, HEIGHT, inlier_threshold=5.0
    ).unwrap()
    assert result.per_match_errors == pytest.approx([5.0, 5.0])
    assert result.inlier_count == 2


def test_out_of_range_matches_are_skipped(grid_keypoints, caplog):
    source = grid_keypoints(WIDTH, HEIGHT)
    result = calculate_reprojection_error(
        HomographyMatrix.identity(), source, source, [(0, 0), (1, 1), (99, 0), (0, -1)], WIDTH, HEIGHT
    ).unwrap()
    assert result.total_matches == 2
    assert "Skipped 2 of 4 matches" in caplog.text


def test_points_at_infinity_are_skipped(grid_keypoints):
    source = grid_keypoints(WIDTH, HEIGHT)
    x, _ = source[0].to_pixel_coordinates(WIDTH, HEIGHT)
    # w = 1 - x/x0 vanishes on the vertical line through source[0]
    homography = HomographyMatrix.from_double_array([1, 0, 0, 0, 1, 0, -1.0 / x, 0, 1])

    result = calculate_reprojection_error(homography, source, source, [(0, 0), (1, 1)], WIDTH, HEIGHT).unwrap()
    assert result.total_matches == 1


def test_empty_matches():
    result = calculate_reprojection_error(HomographyMatrix.identity(), [], [], [], WIDTH, HEIGHT)
    assert isinstance(result.error, NoValidMatchesError)


def test_all_matches_skipped(grid_keypoints):
    source = grid_keypoints(WIDTH, HEIGHT)
    result = calculate_reprojection_error(HomographyMatrix.identity(), source, source, [(50, 50)], WIDTH, HEIGHT)
    assert isinstance(result.error, NoValidMatchesError)
