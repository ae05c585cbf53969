"""
Homography use cases for feature-based (landscape) alignment.

Turns matched feature correspondences into a validated source-to-reference
homography and measures its reprojection error. The refiners each run one
pass of a refinement stage: match quality filtering, RANSAC threshold
tightening and perspective stability.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from framealign.domain.alignment.entities.feature_keypoint import FeatureKeypoint
from framealign.domain.alignment.services.feature_matcher import FeatureMatcher, HomographyEstimate, Match
from framealign.domain.alignment.value_objects.homography_matrix import HomographyMatrix
from framealign.domain.alignment.value_objects.stabilization_settings import LandscapeStabilizationSettings
from framealign.domain.shared.errors import (
    DegenerateTransformError,
    FeatureMatchingUnavailableError,
    InsufficientCorrespondencesError,
    InvalidArgumentError,
)
from framealign.domain.shared.result import Result
from framealign.utils.reprojection import ReprojectionErrorResult, calculate_reprojection_error

logger = logging.getLogger(__name__)

MIN_MATCHES_FOR_HOMOGRAPHY = 4


class CalculateHomographyMatrixUseCase:
    """Estimates and validates the homography between two keypoint sets."""

    def __init__(self, feature_matcher: FeatureMatcher, settings: Optional[LandscapeStabilizationSettings] = None):
        self.feature_matcher = feature_matcher
        self.settings = settings or LandscapeStabilizationSettings()

    @property
    def is_available(self) -> bool:
        return self.feature_matcher.is_available

    def __call__(
        self,
        source_keypoints: Sequence[FeatureKeypoint],
        reference_keypoints: Sequence[FeatureKeypoint],
        matches: List[Match],
        image_width: int,
        image_height: int,
        ransac_threshold: Optional[float] = None,
    ) -> Result[HomographyEstimate]:
        """
        Compute the homography mapping source keypoints onto reference keypoints.

        Args:
            source_keypoints: Normalized keypoints of the frame being aligned
            reference_keypoints: Normalized keypoints of the reference frame
            matches: (source index, reference index) pairs
            image_width: Width used to convert keypoints to pixels
            image_height: Height used to convert keypoints to pixels
            ransac_threshold: Inlier threshold in pixels; defaults to settings

        Returns:
            Result with a HomographyEstimate. Failures carry
            InvalidArgumentError, InsufficientCorrespondencesError,
            FeatureMatchingUnavailableError or DegenerateTransformError.
        """
        threshold = self.settings.ransac_threshold if ransac_threshold is None else ransac_threshold

        error = self._validate_inputs(
            source_keypoints, reference_keypoints, matches, image_width, image_height, threshold
        )
        if error is not None:
            logger.warning(f"Homography request rejected: {error}")
            return Result.failure(error)

        if not self.feature_matcher.is_available:
            return Result.failure(FeatureMatchingUnavailableError("Feature matching is not available"))

        result = self.feature_matcher.compute_homography(
            source_keypoints=source_keypoints,
            reference_keypoints=reference_keypoints,
            matches=matches,
            ransac_threshold=threshold,
            image_width=image_width,
            image_height=image_height,
        )
        if result.is_error:
            logger.warning(f"Homography estimation failed: {result.message}")
            return result

        estimate = result.value
        error = self._check_estimate(estimate)
        if error is not None:
            logger.warning(f"Homography rejected: {error}")
            return Result.failure(error)
        return result

    def _validate_inputs(
        self,
        source_keypoints: Sequence[FeatureKeypoint],
        reference_keypoints: Sequence[FeatureKeypoint],
        matches: List[Match],
        image_width: int,
        image_height: int,
        threshold: float,
    ):
        if not source_keypoints:
            return InvalidArgumentError("Source keypoints list is empty")
        if not reference_keypoints:
            return InvalidArgumentError("Reference keypoints list is empty")
        if len(matches) < MIN_MATCHES_FOR_HOMOGRAPHY:
            return InsufficientCorrespondencesError(
                f"At least {MIN_MATCHES_FOR_HOMOGRAPHY} matches required, got {len(matches)}"
            )
        if threshold <= 0:
            return InvalidArgumentError(f"RANSAC threshold must be positive, got {threshold}")
        if image_width <= 0 or image_height <= 0:
            return InvalidArgumentError(f"Image dimensions must be positive, got {image_width}x{image_height}")
        for source_index, reference_index in matches:
            if not 0 <= source_index < len(source_keypoints):
                return InvalidArgumentError(f"Source index {source_index} out of range")
            if not 0 <= reference_index < len(reference_keypoints):
                return InvalidArgumentError(f"Reference index {reference_index} out of range")
        return None

    def _check_estimate(self, estimate: HomographyEstimate):
        homography = estimate.homography
        if not homography.is_valid:
            return DegenerateTransformError("Homography is singular")
        determinant = abs(homography.determinant)
        if not self.settings.min_determinant <= determinant <= self.settings.max_determinant:
            return DegenerateTransformError(
                f"Homography determinant {determinant:.4g} outside "
                f"[{self.settings.min_determinant}, {self.settings.max_determinant}]"
            )
        if estimate.inlier_ratio < self.settings.min_inlier_ratio:
            return DegenerateTransformError(
                f"Inlier ratio {estimate.inlier_ratio:.2f} below {self.settings.min_inlier_ratio}"
            )
        return None


class CalculateReprojectionErrorUseCase:
    """Reprojection diagnostics with the configured inlier threshold."""

    def __init__(self, settings: Optional[LandscapeStabilizationSettings] = None):
        self.settings = settings or LandscapeStabilizationSettings()

    def __call__(
        self,
        homography: HomographyMatrix,
        source_keypoints: Sequence[FeatureKeypoint],
        reference_keypoints: Sequence[FeatureKeypoint],
        matches: List[Match],
        image_width: int,
        image_height: int,
    ) -> Result[ReprojectionErrorResult]:
        return calculate_reprojection_error(
            homography,
            source_keypoints,
            reference_keypoints,
            matches,
            image_width,
            image_height,
            inlier_threshold=self.settings.reprojection_inlier_threshold,
        )


@dataclass(frozen=True)
class RansacRefinementResult:
    """One RANSAC tightening pass."""
    estimate: HomographyEstimate
    reprojection: ReprojectionErrorResult
    ransac_threshold: float
    previous_threshold: float
    converged: bool

    @property
    def homography(self) -> HomographyMatrix:
        return self.estimate.homography

    @property
    def inlier_ratio(self) -> float:
        return self.estimate.inlier_ratio

    @property
    def mean_reprojection_error(self) -> float:
        return self.reprojection.mean_error


class RefineRansacThresholdUseCase:
    """
    Re-estimates the homography with a tighter RANSAC threshold.

    The new threshold is previous * reduction_factor, floored at the minimum.
    The pass converges once the mean reprojection error drops below the
    configured bound or the floor is reached.
    """

    def __init__(
        self,
        calculate_homography: CalculateHomographyMatrixUseCase,
        calculate_reprojection_error: Optional[CalculateReprojectionErrorUseCase] = None,
        settings: Optional[LandscapeStabilizationSettings] = None,
    ):
        self.settings = settings or calculate_homography.settings
        self.calculate_homography = calculate_homography
        self.calculate_reprojection_error = calculate_reprojection_error or CalculateReprojectionErrorUseCase(
            self.settings
        )

    def next_threshold(self, previous_threshold: float) -> float:
        return max(
            previous_threshold * self.settings.ransac_threshold_reduction_factor,
            self.settings.min_ransac_threshold,
        )

    def __call__(
        self,
        source_keypoints: Sequence[FeatureKeypoint],
        reference_keypoints: Sequence[FeatureKeypoint],
        matches: List[Match],
        previous_threshold: float,
        image_width: int,
        image_height: int,
    ) -> Result[RansacRefinementResult]:
        if previous_threshold <= 0:
            return Result.failure(
                InvalidArgumentError(f"Previous RANSAC threshold must be positive, got {previous_threshold}")
            )
        threshold = self.next_threshold(previous_threshold)

        homography_result = self.calculate_homography(
            source_keypoints, reference_keypoints, matches, image_width, image_height,
            ransac_threshold=threshold,
        )
        if homography_result.is_error:
            return Result.failure(
                homography_result.error,
                f"Failed to compute homography with threshold {threshold}: {homography_result.message}",
            )
        estimate = homography_result.value

        reprojection_result = self.calculate_reprojection_error(
            estimate.homography, source_keypoints, reference_keypoints, matches, image_width, image_height
        )
        if reprojection_result.is_error:
            return Result.failure(reprojection_result.error, reprojection_result.message)
        reprojection = reprojection_result.value

        converged = (
            reprojection.mean_error < self.settings.mean_reproj_error_threshold
            or threshold <= self.settings.min_ransac_threshold
        )
        logger.debug(
            f"RANSAC threshold {previous_threshold:.2f} -> {threshold:.2f}px, "
            f"mean error {reprojection.mean_error:.3f}px, converged={converged}"
        )
        return Result.success(
            RansacRefinementResult(
                estimate=estimate,
                reprojection=reprojection,
                ransac_threshold=threshold,
                previous_threshold=previous_threshold,
                converged=converged,
            )
        )


# Fraction of the current matches kept by each match quality pass
MATCH_KEEP_FRACTIONS = {2: 0.85, 3: 0.70, 4: 0.55}
MIN_MATCH_KEEP_FRACTION = 0.40


def match_keep_fraction(pass_number: int) -> float:
    """Share of matches a match quality pass keeps; pass 1 keeps everything."""
    if pass_number <= 1:
        return 1.0
    return MATCH_KEEP_FRACTIONS.get(pass_number, MIN_MATCH_KEEP_FRACTION)


@dataclass(frozen=True)
class MatchQualityRefinementResult:
    """One match quality pass."""
    estimate: HomographyEstimate
    matches: List[Match]
    previous_inlier_ratio: float
    converged: bool

    @property
    def homography(self) -> HomographyMatrix:
        return self.estimate.homography

    @property
    def inlier_count(self) -> int:
        return self.estimate.inlier_count

    @property
    def inlier_ratio(self) -> float:
        return self.estimate.inlier_ratio

    @property
    def improvement(self) -> float:
        return self.inlier_ratio - self.previous_inlier_ratio


class RefineMatchQualityUseCase:
    """
    Re-estimates the homography from the strongest matches only.

    Matches are ranked by the product of their two keypoint responses and the
    top match_keep_fraction(pass_number) of them are kept (never fewer than
    the homography minimum). The pass converges when the inlier ratio improves
    by less than inlier_ratio_improvement_threshold.
    """

    def __init__(
        self,
        calculate_homography: CalculateHomographyMatrixUseCase,
        settings: Optional[LandscapeStabilizationSettings] = None,
    ):
        self.calculate_homography = calculate_homography
        self.settings = settings or calculate_homography.settings

    @property
    def is_available(self) -> bool:
        return self.calculate_homography.is_available

    def __call__(
        self,
        source_keypoints: Sequence[FeatureKeypoint],
        reference_keypoints: Sequence[FeatureKeypoint],
        matches: List[Match],
        previous_inlier_ratio: float,
        pass_number: int,
        image_width: int,
        image_height: int,
    ) -> Result[MatchQualityRefinementResult]:
        if not source_keypoints:
            return Result.failure(InvalidArgumentError("Source keypoints list is empty"))
        if not reference_keypoints:
            return Result.failure(InvalidArgumentError("Reference keypoints list is empty"))
        if len(matches) < MIN_MATCHES_FOR_HOMOGRAPHY:
            return Result.failure(
                InsufficientCorrespondencesError(
                    f"At least {MIN_MATCHES_FOR_HOMOGRAPHY} matches required, got {len(matches)}"
                )
            )
        if not self.is_available:
            return Result.failure(FeatureMatchingUnavailableError("Feature matching is not available"))

        valid = [
            (source_index, reference_index)
            for source_index, reference_index in matches
            if 0 <= source_index < len(source_keypoints) and 0 <= reference_index < len(reference_keypoints)
        ]
        if len(valid) < len(matches):
            logger.warning(f"Skipped {len(matches) - len(valid)} matches with out-of-range keypoint indices")
        if len(valid) < MIN_MATCHES_FOR_HOMOGRAPHY:
            return Result.failure(
                InsufficientCorrespondencesError(f"Only {len(valid)} matches have valid keypoint indices")
            )

        ranked = sorted(
            valid,
            key=lambda match: source_keypoints[match[0]].response * reference_keypoints[match[1]].response,
            reverse=True,
        )
        keep_count = int(len(ranked) * match_keep_fraction(pass_number))
        keep_count = min(max(keep_count, MIN_MATCHES_FOR_HOMOGRAPHY), len(ranked))
        kept = ranked[:keep_count]

        homography_result = self.calculate_homography(
            source_keypoints, reference_keypoints, kept, image_width, image_height,
            ransac_threshold=self.settings.ransac_threshold,
        )
        if homography_result.is_error:
            return Result.failure(
                homography_result.error,
                f"Failed to compute homography from {keep_count} filtered matches: {homography_result.message}",
            )

        estimate = homography_result.value
        improvement = estimate.inlier_ratio - previous_inlier_ratio
        converged = improvement < self.settings.inlier_ratio_improvement_threshold
        logger.debug(
            f"Match quality pass {pass_number}: kept {keep_count}/{len(ranked)} matches, "
            f"inlier ratio {previous_inlier_ratio:.3f} -> {estimate.inlier_ratio:.3f}, converged={converged}"
        )
        return Result.success(
            MatchQualityRefinementResult(
                estimate=estimate,
                matches=kept,
                previous_inlier_ratio=previous_inlier_ratio,
                converged=converged,
            )
        )


UNIT_SQUARE = ((0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0))
CROSS_PRODUCT_EPSILON = 1e-6


def is_convex_quadrilateral(points: Sequence[Tuple[float, float]]) -> bool:
    """True when consecutive edge cross products never change sign."""
    if len(points) != 4:
        return False
    last_sign = 0
    for i in range(4):
        ax, ay = points[i]
        bx, by = points[(i + 1) % 4]
        cx, cy = points[(i + 2) % 4]
        cross = (bx - ax) * (cy - by) - (by - ay) * (cx - bx)
        if abs(cross) <= CROSS_PRODUCT_EPSILON:
            continue
        sign = 1 if cross > 0 else -1
        if last_sign and sign != last_sign:
            return False
        last_sign = sign
    return last_sign != 0


def blend_with_identity(homography: HomographyMatrix, factor: float) -> HomographyMatrix:
    """Linear blend; factor 1 keeps the homography, 0 gives identity."""
    t = min(max(factor, 0.0), 1.0)
    identity = np.eye(3, dtype=np.float64)
    return HomographyMatrix.from_numpy(identity + (homography.matrix - identity) * t)


@dataclass(frozen=True)
class PerspectiveRefinementResult:
    """One perspective stability pass."""
    homography: HomographyMatrix
    perspective_valid: bool
    blend_factor: float
    converged: bool
    determinant_change: float
    issues: List[str] = field(default_factory=list)

    @property
    def determinant(self) -> float:
        return self.homography.determinant

    @property
    def approximate_scale(self) -> float:
        return self.homography.approximate_scale()

    @property
    def approximate_rotation_degrees(self) -> float:
        return self.homography.approximate_rotation_degrees()


class RefinePerspectiveStabilityUseCase:
    """
    Keeps a homography within plausible perspective bounds.

    A homography is valid when its determinant, approximate scale and
    approximate rotation are within the configured bounds and the unit square
    maps to a convex quadrilateral. Invalid homographies are blended towards
    identity by perspective_blend_factor. The pass converges once a valid
    homography's determinant changes by less than determinant_change_threshold
    from the previous pass, or immediately on the first pass.
    """

    def __init__(self, settings: Optional[LandscapeStabilizationSettings] = None):
        self.settings = settings or LandscapeStabilizationSettings()

    def find_issues(self, homography: HomographyMatrix) -> List[str]:
        settings = self.settings
        issues = []
        determinant = homography.determinant
        if not settings.min_perspective_determinant <= determinant <= settings.max_perspective_determinant:
            issues.append(
                f"Determinant {determinant:.4g} outside "
                f"[{settings.min_perspective_determinant}, {settings.max_perspective_determinant}]"
            )
        scale = homography.approximate_scale()
        if not settings.min_scale_factor <= scale <= settings.max_scale_factor:
            issues.append(f"Scale {scale:.4g} outside [{settings.min_scale_factor}, {settings.max_scale_factor}]")
        rotation = homography.approximate_rotation_degrees()
        if abs(rotation) > settings.max_rotation_degrees:
            issues.append(f"Rotation {rotation:.2f} exceeds {settings.max_rotation_degrees} degrees")
        if not self._corners_convex(homography):
            issues.append("Unit square corners map to a non-convex or degenerate quadrilateral")
        return issues

    @staticmethod
    def _corners_convex(homography: HomographyMatrix) -> bool:
        try:
            corners = homography.transform_points(list(UNIT_SQUARE))
        except DegenerateTransformError:
            return False
        return is_convex_quadrilateral(corners)

    def __call__(
        self,
        homography: HomographyMatrix,
        previous_determinant: Optional[float] = None,
    ) -> Result[PerspectiveRefinementResult]:
        if not homography.is_valid:
            return Result.failure(DegenerateTransformError("Homography is singular"))

        issues = self.find_issues(homography)
        perspective_valid = not issues
        if perspective_valid:
            refined, blend_factor = homography, 1.0
        else:
            blend_factor = min(max(self.settings.perspective_blend_factor, 0.0), 1.0)
            refined = blend_with_identity(homography, blend_factor)

        if previous_determinant is None:
            determinant_change = math.inf
        else:
            determinant_change = abs(homography.determinant - previous_determinant)
        converged = perspective_valid and (
            previous_determinant is None or determinant_change < self.settings.determinant_change_threshold
        )

        if issues:
            logger.debug(f"Perspective blended with identity ({blend_factor}): {'; '.join(issues)}")
        logger.debug(f"Perspective pass: det {refined.determinant:.4f}, converged={converged}")
        return Result.success(
            PerspectiveRefinementResult(
                homography=refined,
                perspective_valid=perspective_valid,
                blend_factor=blend_factor,
                converged=converged,
                determinant_change=determinant_change,
                issues=issues,
            )
        )
