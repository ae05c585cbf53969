"""
Stabilization result entities.

A StabilizationResult summarizes one multi-pass run for one frame. Each pass
is recorded as a StabilizationPass so callers can inspect how the score
evolved.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from framealign.domain.alignment.value_objects.alignment_matrix import AlignmentMatrix
from framealign.domain.alignment.value_objects.homography_matrix import HomographyMatrix
from framealign.domain.alignment.value_objects.stabilization_score import StabilizationScore
from framealign.domain.alignment.value_objects.stabilization_settings import StabilizationMode


class StabilizationStage(Enum):
    """Stage a pass belongs to."""
    INITIAL = "initial"
    ROTATION_REFINE = "rotation_refine"
    SCALE_REFINE = "scale_refine"
    TRANSLATION_REFINE = "translation_refine"
    CLEANUP = "cleanup"
    MATCH_QUALITY_REFINE = "match_quality_refine"
    RANSAC_THRESHOLD_REFINE = "ransac_threshold_refine"
    PERSPECTIVE_STABILITY_REFINE = "perspective_stability_refine"


class EarlyStopReason(Enum):
    """Why the multi-pass loop stopped."""
    SCORE_BELOW_THRESHOLD = "score_below_threshold"
    NO_IMPROVEMENT = "no_improvement"
    MAX_PASSES_REACHED = "max_passes_reached"
    DETECTION_LOST = "detection_lost"
    PERSPECTIVE_CONVERGED = "perspective_converged"
    HOMOGRAPHY_INVALID = "homography_invalid"


@dataclass(frozen=True)
class StabilizationPass:
    """Record of one refinement pass."""

    pass_number: int
    stage: StabilizationStage
    score_before: float
    score_after: float
    converged: bool
    duration_ms: float = 0.0

    @property
    def improvement(self) -> float:
        return self.score_before - self.score_after

    @property
    def improved(self) -> bool:
        return self.score_after < self.score_before


@dataclass(frozen=True)
class StabilizationProgress:
    """Progress snapshot handed to an optional callback after each pass."""

    current_pass: int
    max_passes: int
    stage: StabilizationStage
    current_score: float
    mode: StabilizationMode

    @property
    def progress_percent(self) -> float:
        if self.max_passes <= 0:
            return 0.0
        return min(1.0, max(0.0, self.current_pass / self.max_passes))


@dataclass(frozen=True)
class StabilizationResult:
    """Outcome of a multi-pass stabilization run."""

    success: bool
    final_score: StabilizationScore
    initial_score: float
    passes_executed: int
    mode: StabilizationMode
    matrix: AlignmentMatrix
    passes: List[StabilizationPass] = field(default_factory=list)
    early_stop_reason: Optional[EarlyStopReason] = None
    goal_eye_distance: Optional[float] = None  # between the goal reference points: eyes or shoulders
    total_duration_ms: float = 0.0

    @property
    def total_improvement(self) -> float:
        return self.initial_score - self.final_score.value

    @property
    def improvement_percent(self) -> float:
        if self.initial_score > 0:
            return self.total_improvement / self.initial_score * 100
        return 0.0

    @property
    def terminated_early(self) -> bool:
        return self.early_stop_reason is not None


@dataclass(frozen=True)
class LandscapeStabilizationResult:
    """
    Outcome of a multi-pass homography refinement.

    Scores are (1 - inlier ratio) * 100, so lower is better as in the face
    loop. success means the best inlier ratio reached the configured
    confidence threshold.
    """

    success: bool
    homography: HomographyMatrix
    inlier_ratio: float
    final_score: float
    initial_score: float
    passes_executed: int
    mode: StabilizationMode
    matches: List[Tuple[int, int]] = field(default_factory=list)
    passes: List[StabilizationPass] = field(default_factory=list)
    early_stop_reason: Optional[EarlyStopReason] = None
    mean_reprojection_error: Optional[float] = None
    ransac_threshold: Optional[float] = None
    total_duration_ms: float = 0.0

    @property
    def confidence(self) -> float:
        return self.inlier_ratio
