"""
Feature matcher capability interface.

Keypoint detection and descriptor matching belong to an image-processing
collaborator. This interface covers the part the alignment core consumes:
turning matched correspondences into a homography. Implementations that
cannot run on the current platform report is_available = False and fail with
FeatureMatchingUnavailableError.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from framealign.domain.alignment.entities.feature_keypoint import FeatureKeypoint
from framealign.domain.alignment.value_objects.homography_matrix import HomographyMatrix
from framealign.domain.shared.result import Result

Match = Tuple[int, int]  # (source index, reference index)


@dataclass(frozen=True)
class HomographyEstimate:
    """Homography plus the RANSAC statistics it was estimated with."""

    homography: HomographyMatrix
    inlier_count: int
    match_count: int
    confidence: float

    @property
    def inlier_ratio(self) -> float:
        if self.match_count == 0:
            return 0.0
        return self.inlier_count / self.match_count


class FeatureMatcher(ABC):
    """Computes homographies from matched feature correspondences."""

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Whether this matcher can run here."""
        pass

    @abstractmethod
    def compute_homography(
        self,
        source_keypoints: Sequence[FeatureKeypoint],
        reference_keypoints: Sequence[FeatureKeypoint],
        matches: List[Match],
        ransac_threshold: float,
        image_width: int,
        image_height: int,
    ) -> Result[HomographyEstimate]:
        """
        Estimate the homography mapping source keypoints onto reference keypoints.

        Keypoints are converted to pixels with image_width and image_height
        before estimation; ransac_threshold is in pixels.
        """
        pass

    def release(self) -> None:
        """Free native resources. Default is a no-op."""
        pass

    def __enter__(self) -> 'FeatureMatcher':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
