# tests/domain/test_alignment_matrix.py
"""
Unit tests for the AlignmentMatrix value object.
"""
import math

import numpy as np
import pytest

from framealign.domain.alignment.value_objects.alignment_matrix import AlignmentMatrix
from framealign.domain.alignment.value_objects.homography_matrix import HomographyMatrix
from framealign.domain.shared.errors import InvalidArgumentError


def test_identity_components():
    m = AlignmentMatrix.identity()
    assert m.to_list() == [1.0, 0.0, 0.0, 0.0, 1.0, 0.0]
    assert m.is_near_identity()
    assert m.determinant == 1.0


def test_transform_point_applies_linear_part_then_translation():
    m = AlignmentMatrix(scale_x=2.0, skew_x=0.5, translate_x=10.0, skew_y=0.0, scale_y=3.0, translate_y=-4.0)
    assert m.transform_point(1.0, 2.0) == (2.0 + 1.0 + 10.0, 6.0 - 4.0)


def test_compose_applies_other_first():
    shift = AlignmentMatrix.identity().translate(5.0, 0.0)
    double = AlignmentMatrix.identity().scale_linear(2.0)
    # double(shift(p)) = 2 * (p + 5)
    assert double.compose(shift).transform_point(1.0, 1.0) == (12.0, 2.0)
    # shift(double(p)) = 2p + 5
    assert shift.compose(double).transform_point(1.0, 1.0) == (7.0, 2.0)


def test_from_rotation_quarter_turn():
    m = AlignmentMatrix.from_rotation(math.pi / 2)
    x, y = m.transform_point(1.0, 0.0)
    assert x == pytest.approx(0.0, abs=1e-12)
    assert y == pytest.approx(1.0)
    assert m.rotation_degrees == pytest.approx(90.0)


def test_rotate_linear_keeps_translation():
    m = AlignmentMatrix(scale_x=1.5, skew_x=0.0, translate_x=40.0, skew_y=0.0, scale_y=1.5, translate_y=25.0)
    rotated = m.rotate_linear(math.radians(10))
    assert rotated.translate_x == 40.0
    assert rotated.translate_y == 25.0
    assert rotated.uniform_scale == pytest.approx(1.5)
    assert rotated.rotation_degrees == pytest.approx(10.0)


def test_scale_linear_and_translate_touch_only_their_components():
    m = AlignmentMatrix(scale_x=1.0, skew_x=0.2, translate_x=3.0, skew_y=-0.2, scale_y=1.0, translate_y=4.0)
    scaled = m.scale_linear(2.0)
    assert (scaled.translate_x, scaled.translate_y) == (3.0, 4.0)
    assert (scaled.scale_x, scaled.skew_x, scaled.skew_y, scaled.scale_y) == (2.0, 0.4, -0.4, 2.0)

    moved = m.translate(-1.0, 6.0)
    assert (moved.translate_x, moved.translate_y) == (2.0, 10.0)
    assert (moved.scale_x, moved.skew_x, moved.skew_y, moved.scale_y) == (1.0, 0.2, -0.2, 1.0)


def test_to_numpy_is_warp_affine_layout():
    m = AlignmentMatrix(scale_x=1.0, skew_x=2.0, translate_x=3.0, skew_y=4.0, scale_y=5.0, translate_y=6.0)
    array = m.to_numpy()
    assert array.shape == (2, 3)
    assert array.dtype == np.float64
    assert np.array_equal(array, [[1, 2, 3], [4, 5, 6]])
    assert AlignmentMatrix.from_numpy(array) == m


def test_from_numpy_rejects_wrong_shape():
    with pytest.raises(InvalidArgumentError):
        AlignmentMatrix.from_numpy(np.zeros((4, 4)))


def test_from_numpy_accepts_affine_3x3():
    array = np.array([[1.0, 0.0, 5.0], [0.0, 2.0, -3.0], [0.0, 0.0, 1.0]])
    m = AlignmentMatrix.from_numpy(array)
    assert (m.scale_x, m.scale_y, m.translate_x, m.translate_y) == (1.0, 2.0, 5.0, -3.0)


@pytest.mark.parametrize("last_row", [[0.001, 0.0, 1.0], [0.0, 0.0, 2.0], [0.0, 0.0, 0.0]])
def test_from_numpy_rejects_perspective_row(last_row):
    array = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], last_row])
    with pytest.raises(InvalidArgumentError):
        AlignmentMatrix.from_numpy(array)


def test_non_finite_values_rejected():
    with pytest.raises(InvalidArgumentError):
        AlignmentMatrix(scale_x=float("nan"), skew_x=0.0, translate_x=0.0, skew_y=0.0, scale_y=1.0, translate_y=0.0)


def test_to_homography_lifts_with_affine_row():
    m = AlignmentMatrix(scale_x=2.0, skew_x=0.0, translate_x=7.0, skew_y=0.0, scale_y=2.0, translate_y=-3.0)
    h = m.to_homography()
    assert isinstance(h, HomographyMatrix)
    assert h.to_list() == [2.0, 0.0, 7.0, 0.0, 2.0, -3.0, 0.0, 0.0, 1.0]
    assert h.to_alignment_matrix() == m
