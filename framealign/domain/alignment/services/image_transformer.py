"""
Abstract image transformer interface.

Applies the matrices computed by the alignment core to pixel buffers. The
core never touches pixels; it only hands matrices to an implementation of
this interface.
"""
from abc import ABC, abstractmethod

import numpy as np

from framealign.domain.alignment.value_objects.alignment_matrix import AlignmentMatrix
from framealign.domain.alignment.value_objects.homography_matrix import HomographyMatrix


class ImageTransformer(ABC):
    """Affine and perspective warps."""

    @abstractmethod
    def apply_affine(
        self,
        image: np.ndarray,
        matrix: AlignmentMatrix,
        output_width: int,
        output_height: int,
    ) -> np.ndarray:
        """Warp image through an affine matrix into an output canvas."""
        pass

    @abstractmethod
    def apply_perspective(
        self,
        image: np.ndarray,
        matrix: HomographyMatrix,
        output_width: int,
        output_height: int,
    ) -> np.ndarray:
        """Warp image through a homography into an output canvas."""
        pass
