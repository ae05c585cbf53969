"""
Reprojection error diagnostics for an estimated homography.

Each correspondence's source keypoint is pushed through the homography and
compared with its matched reference keypoint. Distances are in pixels.
"""
import logging
import math
import statistics
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from framealign.domain.alignment.entities.feature_keypoint import FeatureKeypoint
from framealign.domain.alignment.value_objects.homography_matrix import HomographyMatrix
from framealign.domain.shared.errors import DegenerateTransformError, NoValidMatchesError
from framealign.domain.shared.result import Result

logger = logging.getLogger(__name__)

DEFAULT_INLIER_THRESHOLD = 5.0


@dataclass(frozen=True)
class ReprojectionErrorResult:
    """Summary statistics of per-match reprojection errors."""

    mean_error: float
    median_error: float
    max_error: float
    inlier_count: int
    total_matches: int
    per_match_errors: List[float] = field(default_factory=list)

    @property
    def inlier_ratio(self) -> float:
        if self.total_matches == 0:
            return 0.0
        return self.inlier_count / self.total_matches


def calculate_reprojection_error(
    homography: HomographyMatrix,
    source_keypoints: Sequence[FeatureKeypoint],
    reference_keypoints: Sequence[FeatureKeypoint],
    matches: Sequence[Tuple[int, int]],
    image_width: int,
    image_height: int,
    inlier_threshold: float = DEFAULT_INLIER_THRESHOLD,
) -> Result[ReprojectionErrorResult]:
    """
    Measure how well the homography maps each source keypoint onto its match.

    Matches with an out-of-range index, or whose source point lands on the
    homography's line at infinity, are skipped. total_matches counts the
    matches that were actually measured.

    Returns:
        Result with ReprojectionErrorResult, or NoValidMatchesError when the
        match list is empty or every match was skipped
    """
    if not matches:
        return Result.failure(NoValidMatchesError("No matches to evaluate"))

    errors: List[float] = []
    skipped = 0
    for source_index, reference_index in matches:
        if not (0 <= source_index < len(source_keypoints) and 0 <= reference_index < len(reference_keypoints)):
            skipped += 1
            continue

        source_x, source_y = source_keypoints[source_index].to_pixel_coordinates(image_width, image_height)
        reference_x, reference_y = reference_keypoints[reference_index].to_pixel_coordinates(image_width, image_height)
        try:
            projected_x, projected_y = homography.transform_point(source_x, source_y)
        except DegenerateTransformError:
            skipped += 1
            continue
        errors.append(math.hypot(projected_x - reference_x, projected_y - reference_y))

    if skipped:
        logger.warning(f"Skipped {skipped} of {len(matches)} matches while computing reprojection error")

    if not errors:
        return Result.failure(NoValidMatchesError("All matches were out of range or degenerate"))

    result = ReprojectionErrorResult(
        mean_error=sum(errors) / len(errors),
        median_error=statistics.median(errors),
        max_error=max(errors),
        inlier_count=sum(1 for e in errors if e <= inlier_threshold),
        total_matches=len(errors),
        per_match_errors=errors,
    )
    logger.debug(
        f"Reprojection error over {result.total_matches} matches: mean={result.mean_error:.3f}px, "
        f"median={result.median_error:.3f}px, max={result.max_error:.3f}px, inliers={result.inlier_count}"
    )
    return Result.success(result)
