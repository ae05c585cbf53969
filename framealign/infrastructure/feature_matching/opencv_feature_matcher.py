"""
OpenCV-backed feature matcher.

Estimates the source-to-reference homography from matched keypoints with
cv2.findHomography and RANSAC.
"""
import logging
from typing import List, Sequence

import cv2
import numpy as np

from framealign.domain.alignment.entities.feature_keypoint import FeatureKeypoint
from framealign.domain.alignment.services.feature_matcher import FeatureMatcher, HomographyEstimate, Match
from framealign.domain.alignment.value_objects.homography_matrix import HomographyMatrix
from framealign.domain.shared.errors import (
    DegenerateTransformError,
    InsufficientCorrespondencesError,
    InvalidArgumentError,
)
from framealign.domain.shared.result import Result
from framealign.utils.confidence import calculate_match_confidence

logger = logging.getLogger(__name__)

MIN_MATCHES_FOR_HOMOGRAPHY = 4


class OpenCvFeatureMatcher(FeatureMatcher):
    """RANSAC homography estimation through OpenCV."""

    def __init__(self, max_keypoints: int = 500):
        self.max_keypoints = max_keypoints
        logger.debug(f"OpenCvFeatureMatcher initialized (OpenCV {cv2.__version__}, max_keypoints={max_keypoints})")

    @property
    def is_available(self) -> bool:
        return True

    def compute_homography(
        self,
        source_keypoints: Sequence[FeatureKeypoint],
        reference_keypoints: Sequence[FeatureKeypoint],
        matches: List[Match],
        ransac_threshold: float,
        image_width: int,
        image_height: int,
    ) -> Result[HomographyEstimate]:
        if len(matches) < MIN_MATCHES_FOR_HOMOGRAPHY:
            return Result.failure(
                InsufficientCorrespondencesError(
                    f"Need at least {MIN_MATCHES_FOR_HOMOGRAPHY} matches, got {len(matches)}"
                )
            )
        for source_index, reference_index in matches:
            if not (0 <= source_index < len(source_keypoints) and 0 <= reference_index < len(reference_keypoints)):
                return Result.failure(
                    InvalidArgumentError(f"Match index out of range: ({source_index}, {reference_index})")
                )

        # Shape (N, 1, 2) float32 as expected by findHomography
        source_points = np.array(
            [source_keypoints[s].to_pixel_coordinates(image_width, image_height) for s, _ in matches],
            dtype=np.float32,
        ).reshape(-1, 1, 2)
        reference_points = np.array(
            [reference_keypoints[r].to_pixel_coordinates(image_width, image_height) for _, r in matches],
            dtype=np.float32,
        ).reshape(-1, 1, 2)

        try:
            matrix, mask = cv2.findHomography(
                source_points,
                reference_points,
                method=cv2.RANSAC,
                ransacReprojThreshold=float(ransac_threshold),
            )
        except cv2.error as e:
            logger.warning(f"cv2.findHomography raised: {e}")
            return Result.failure(DegenerateTransformError(f"Homography estimation failed: {e}"))

        if matrix is None:
            logger.warning(f"cv2.findHomography returned None for {len(matches)} matches")
            return Result.failure(DegenerateTransformError("RANSAC found no consistent homography"))

        inlier_count = int(np.count_nonzero(mask)) if mask is not None else 0
        estimate = HomographyEstimate(
            homography=HomographyMatrix.from_numpy(matrix),
            inlier_count=inlier_count,
            match_count=len(matches),
            confidence=calculate_match_confidence(len(matches), inlier_count, self.max_keypoints),
        )
        logger.debug(
            f"Homography estimated from {len(matches)} matches: {inlier_count} inliers "
            f"(threshold {ransac_threshold}px), confidence {estimate.confidence:.3f}"
        )
        return Result.success(estimate)
