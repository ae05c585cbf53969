"""Feature matcher for platforms without an image-processing backend."""
from typing import List, Sequence

from framealign.domain.alignment.entities.feature_keypoint import FeatureKeypoint
from framealign.domain.alignment.services.feature_matcher import FeatureMatcher, HomographyEstimate, Match
from framealign.domain.shared.errors import FeatureMatchingUnavailableError
from framealign.domain.shared.result import Result


class UnavailableFeatureMatcher(FeatureMatcher):
    """Always reports unavailable; every call fails uniformly."""

    def __init__(self, reason: str = "Feature matching is not available on this platform"):
        self.reason = reason

    @property
    def is_available(self) -> bool:
        return False

    def compute_homography(
        self,
        source_keypoints: Sequence[FeatureKeypoint],
        reference_keypoints: Sequence[FeatureKeypoint],
        matches: List[Match],
        ransac_threshold: float,
        image_width: int,
        image_height: int,
    ) -> Result[HomographyEstimate]:
        return Result.failure(FeatureMatchingUnavailableError(self.reason))
