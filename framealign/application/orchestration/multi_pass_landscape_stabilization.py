"""
Multi-pass homography refinement for feature-based (landscape) alignment.

Pass 1 estimates the homography from all matches. FAST mode stops there.
SLOW mode then runs up to three passes of each refinement stage:

    match quality (2-4) -> RANSAC threshold (5-7) -> perspective stability (8-10)

A stage ends at its first converged pass and hands over to the next one. A
failed pass stops the run with HOMOGRAPHY_INVALID and keeps the best
homography found so far. Passes are scored as (1 - inlier ratio) * 100; the
perspective stage adds a penalty of 20 for a pass whose input had to be
blended towards identity.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from framealign.application.use_cases.homography_use_cases import (
    CalculateHomographyMatrixUseCase,
    RefineMatchQualityUseCase,
    RefinePerspectiveStabilityUseCase,
    RefineRansacThresholdUseCase,
)
from framealign.domain.alignment.entities.feature_keypoint import FeatureKeypoint
from framealign.domain.alignment.entities.stabilization_result import (
    EarlyStopReason,
    LandscapeStabilizationResult,
    StabilizationPass,
    StabilizationProgress,
    StabilizationStage,
)
from framealign.domain.alignment.services.feature_matcher import Match
from framealign.domain.alignment.value_objects.homography_matrix import HomographyMatrix
from framealign.domain.alignment.value_objects.stabilization_settings import (
    LandscapeStabilizationSettings,
    StabilizationMode,
)
from framealign.domain.shared.result import Result

logger = logging.getLogger(__name__)

STAGE_PASSES = 3
INITIAL_SCORE_BEFORE = 100.0
INVALID_PERSPECTIVE_PENALTY = 20.0
ProgressCallback = Callable[[StabilizationProgress], None]


def inlier_score(inlier_ratio: float) -> float:
    """Lower is better, 0 when every match is an inlier."""
    return (1.0 - inlier_ratio) * 100.0


@dataclass
class _LandscapeRunState:
    """Mutable bookkeeping for a single run."""
    homography: HomographyMatrix
    matches: List[Match]
    inlier_ratio: float
    best_homography: HomographyMatrix
    best_inlier_ratio: float
    ransac_threshold: float
    mean_reprojection_error: Optional[float] = None
    pass_number: int = 1
    passes: List[StabilizationPass] = field(default_factory=list)
    early_stop_reason: Optional[EarlyStopReason] = None

    def keep_if_better(self) -> None:
        if self.inlier_ratio > self.best_inlier_ratio:
            self.best_homography = self.homography
            self.best_inlier_ratio = self.inlier_ratio


class MultiPassLandscapeStabilizationUseCase:
    """
    Iteratively refines the homography between two keypoint sets.

    Args:
        calculate_homography: Validated homography estimation
        settings: Landscape thresholds and mode; defaults to the settings of
            calculate_homography
        clock: Monotonic clock in seconds, injectable for tests
    """

    def __init__(
        self,
        calculate_homography: CalculateHomographyMatrixUseCase,
        refine_match_quality: Optional[RefineMatchQualityUseCase] = None,
        refine_ransac_threshold: Optional[RefineRansacThresholdUseCase] = None,
        refine_perspective_stability: Optional[RefinePerspectiveStabilityUseCase] = None,
        settings: Optional[LandscapeStabilizationSettings] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.settings = settings or calculate_homography.settings
        self.calculate_homography = calculate_homography
        self.refine_match_quality = refine_match_quality or RefineMatchQualityUseCase(
            calculate_homography, self.settings
        )
        self.refine_ransac_threshold = refine_ransac_threshold or RefineRansacThresholdUseCase(
            calculate_homography, settings=self.settings
        )
        self.refine_perspective_stability = refine_perspective_stability or RefinePerspectiveStabilityUseCase(
            self.settings
        )
        self.clock = clock

    @property
    def is_available(self) -> bool:
        return self.calculate_homography.is_available

    def __call__(
        self,
        source_keypoints: Sequence[FeatureKeypoint],
        reference_keypoints: Sequence[FeatureKeypoint],
        matches: List[Match],
        image_width: int,
        image_height: int,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Result[LandscapeStabilizationResult]:
        """
        Refine the source-to-reference homography.

        Args:
            source_keypoints: Normalized keypoints of the frame being aligned
            reference_keypoints: Normalized keypoints of the reference frame
            matches: (source index, reference index) pairs
            image_width: Width used to convert keypoints to pixels
            image_height: Height used to convert keypoints to pixels
            on_progress: Called after every pass

        Returns:
            Result with the LandscapeStabilizationResult, or the failure of
            the initial homography estimate
        """
        start = self.clock()
        mode = self.settings.mode

        initial = self.calculate_homography(
            source_keypoints, reference_keypoints, matches, image_width, image_height,
            ransac_threshold=self.settings.ransac_threshold,
        )
        if initial.is_error:
            logger.warning(f"Initial homography failed: {initial.message}")
            return Result.failure(initial.error, initial.message)

        estimate = initial.value
        state = _LandscapeRunState(
            homography=estimate.homography,
            matches=list(matches),
            inlier_ratio=estimate.inlier_ratio,
            best_homography=estimate.homography,
            best_inlier_ratio=estimate.inlier_ratio,
            ransac_threshold=self.settings.ransac_threshold,
        )
        self._record(
            state, StabilizationStage.INITIAL, INITIAL_SCORE_BEFORE, inlier_score(state.inlier_ratio), False,
            on_progress,
        )

        if mode is StabilizationMode.SLOW:
            sizes = (image_width, image_height)
            for stage in (self._match_quality_stage, self._ransac_stage, self._perspective_stage):
                stage(source_keypoints, reference_keypoints, sizes, state, on_progress)
                if state.early_stop_reason is EarlyStopReason.HOMOGRAPHY_INVALID:
                    break

        if state.early_stop_reason is None:
            state.early_stop_reason = EarlyStopReason.MAX_PASSES_REACHED

        result = LandscapeStabilizationResult(
            success=state.best_inlier_ratio >= self.settings.success_confidence_threshold,
            homography=state.best_homography,
            inlier_ratio=state.best_inlier_ratio,
            final_score=inlier_score(state.best_inlier_ratio),
            initial_score=state.passes[0].score_after,
            passes_executed=len(state.passes),
            mode=mode,
            matches=state.matches,
            passes=state.passes,
            early_stop_reason=state.early_stop_reason,
            mean_reprojection_error=state.mean_reprojection_error,
            ransac_threshold=state.ransac_threshold,
            total_duration_ms=(self.clock() - start) * 1000,
        )
        logger.info(
            f"Landscape stabilization finished ({mode.value}): inlier ratio {result.inlier_ratio:.3f} "
            f"in {result.passes_executed} passes, stop reason {result.early_stop_reason.value}"
        )
        return Result.success(result)

    def _match_quality_stage(self, source_keypoints, reference_keypoints, sizes, state, on_progress) -> None:
        for _ in range(STAGE_PASSES):
            refined = self.refine_match_quality(
                source_keypoints, reference_keypoints, state.matches, state.inlier_ratio,
                state.pass_number + 1, *sizes,
            )
            if refined.is_error:
                self._fail(state, StabilizationStage.MATCH_QUALITY_REFINE, refined.message)
                return
            result = refined.value
            score_before = inlier_score(state.inlier_ratio)
            state.homography = result.homography
            state.matches = result.matches
            state.inlier_ratio = result.inlier_ratio
            self._record(
                state, StabilizationStage.MATCH_QUALITY_REFINE, score_before, inlier_score(state.inlier_ratio),
                result.converged, on_progress,
            )
            state.keep_if_better()
            if result.converged:
                return

    def _ransac_stage(self, source_keypoints, reference_keypoints, sizes, state, on_progress) -> None:
        for _ in range(STAGE_PASSES):
            refined = self.refine_ransac_threshold(
                source_keypoints, reference_keypoints, state.matches, state.ransac_threshold, *sizes
            )
            if refined.is_error:
                self._fail(state, StabilizationStage.RANSAC_THRESHOLD_REFINE, refined.message)
                return
            result = refined.value
            score_before = inlier_score(state.inlier_ratio)
            state.homography = result.homography
            state.inlier_ratio = result.inlier_ratio
            state.ransac_threshold = result.ransac_threshold
            state.mean_reprojection_error = result.mean_reprojection_error
            self._record(
                state, StabilizationStage.RANSAC_THRESHOLD_REFINE, score_before, inlier_score(state.inlier_ratio),
                result.converged, on_progress,
            )
            state.keep_if_better()
            if result.converged:
                return

    def _perspective_stage(self, source_keypoints, reference_keypoints, sizes, state, on_progress) -> None:
        previous_determinant = None
        for _ in range(STAGE_PASSES):
            refined = self.refine_perspective_stability(state.homography, previous_determinant)
            if refined.is_error:
                self._fail(state, StabilizationStage.PERSPECTIVE_STABILITY_REFINE, refined.message)
                return
            result = refined.value
            score_before = inlier_score(state.inlier_ratio)
            previous_determinant = state.homography.determinant
            state.homography = result.homography
            penalty = 0.0 if result.perspective_valid else INVALID_PERSPECTIVE_PENALTY
            self._record(
                state, StabilizationStage.PERSPECTIVE_STABILITY_REFINE, score_before,
                inlier_score(state.inlier_ratio) + penalty, result.converged, on_progress,
            )
            if result.perspective_valid and state.inlier_ratio >= state.best_inlier_ratio:
                state.best_homography = state.homography
                state.best_inlier_ratio = state.inlier_ratio
            if result.converged:
                state.early_stop_reason = EarlyStopReason.PERSPECTIVE_CONVERGED
                return

    @staticmethod
    def _fail(state: _LandscapeRunState, stage: StabilizationStage, message: Optional[str]) -> None:
        state.early_stop_reason = EarlyStopReason.HOMOGRAPHY_INVALID
        logger.warning(
            f"{stage.value} pass {state.pass_number + 1} failed: {message}; keeping best homography so far"
        )

    def _record(
        self,
        state: _LandscapeRunState,
        stage: StabilizationStage,
        score_before: float,
        score_after: float,
        converged: bool,
        on_progress: Optional[ProgressCallback],
    ) -> None:
        if stage is not StabilizationStage.INITIAL:
            state.pass_number += 1
        state.passes.append(
            StabilizationPass(
                pass_number=state.pass_number,
                stage=stage,
                score_before=score_before,
                score_after=score_after,
                converged=converged,
            )
        )
        logger.debug(f"Pass {state.pass_number} ({stage.value}): score {score_before:.2f} -> {score_after:.2f}")
        if on_progress is not None:
            on_progress(
                StabilizationProgress(
                    current_pass=state.pass_number,
                    max_passes=self.settings.max_passes,
                    stage=stage,
                    current_score=score_after,
                    mode=self.settings.mode,
                )
            )
