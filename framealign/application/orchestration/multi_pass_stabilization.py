"""
Multi-pass stabilization driver.

Drives the serial refinement protocol for one frame:

    detect on source -> initial matrix -> warp -> re-detect -> score -> refine -> warp -> ...

Pass 1 warps with the initial matrix and scores it. Every later pass applies
one correction to the accumulated source-to-canvas matrix, warps the original
source image with it, re-detects landmarks on the result and scores them. The
best-scoring matrix seen across all passes is returned.

FAST mode runs the initial pass plus up to three translation passes. SLOW mode
runs the initial pass, up to three rotation passes, up to three scale passes,
up to three translation passes and a cleanup translation pass when the best
score is still not a success. A rotation or scale stage ends at its first
converged pass; the run itself only stops early on the stop reasons in
EarlyStopReason.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import numpy as np

from framealign.application.use_cases.alignment_matrix_use_cases import CalculateAlignmentMatrixUseCase
from framealign.application.use_cases.refinement_use_cases import (
    RefineRotationUseCase,
    RefineScaleUseCase,
    RefineTranslationUseCase,
)
from framealign.application.use_cases.scoring_use_cases import (
    CalculateStabilizationScoreUseCase,
    DetectOvershootUseCase,
)
from framealign.domain.alignment.entities.landmarks import BodyLandmarks, Landmarks
from framealign.domain.alignment.entities.stabilization_result import (
    EarlyStopReason,
    StabilizationPass,
    StabilizationProgress,
    StabilizationResult,
    StabilizationStage,
)
from framealign.domain.alignment.services.image_transformer import ImageTransformer
from framealign.domain.alignment.services.landmark_detector import LandmarkDetector
from framealign.domain.alignment.value_objects.alignment_matrix import AlignmentMatrix
from framealign.domain.alignment.value_objects.landmark_point import LandmarkPoint
from framealign.domain.alignment.value_objects.stabilization_score import StabilizationScore
from framealign.domain.alignment.value_objects.stabilization_settings import (
    AlignmentSettings,
    BodyAlignmentSettings,
    StabilizationMode,
)
from framealign.domain.shared.errors import InvalidArgumentError, LandmarksNotDetectedError
from framealign.domain.shared.result import Result

logger = logging.getLogger(__name__)

STAGE_PASSES = 3
ProgressCallback = Callable[[StabilizationProgress], None]


class _DetectionLost(Exception):
    """Re-detection returned nothing; ends the run early."""


@dataclass
class _RunState:
    """Mutable bookkeeping for a single run."""
    matrix: AlignmentMatrix
    best_matrix: AlignmentMatrix
    output_size: int
    best_score: Optional[StabilizationScore] = None
    last_score: Optional[float] = None
    initial_score: Optional[float] = None
    passes: List[StabilizationPass] = field(default_factory=list)
    early_stop_reason: Optional[EarlyStopReason] = None


class MultiPassStabilizationUseCase:
    """
    Iteratively refines the alignment of one frame.

    Face detections are framed with settings, body detections with
    body_settings; the goal reference points and canvas size follow the
    framing that matches the detection.

    Args:
        detector: Landmark detector run on the source and on every warped canvas
        transformer: Applies affine matrices to the source image
        settings: Face framing and stabilization settings
        body_settings: Body framing; defaults to BodyAlignmentSettings with the
            same output size
        clock: Monotonic clock in seconds, injectable for tests
    """

    def __init__(
        self,
        detector: LandmarkDetector,
        transformer: ImageTransformer,
        settings: Optional[AlignmentSettings] = None,
        body_settings: Optional[BodyAlignmentSettings] = None,
        calculate_matrix: Optional[CalculateAlignmentMatrixUseCase] = None,
        calculate_score: Optional[CalculateStabilizationScoreUseCase] = None,
        detect_overshoot: Optional[DetectOvershootUseCase] = None,
        refine_rotation: Optional[RefineRotationUseCase] = None,
        refine_scale: Optional[RefineScaleUseCase] = None,
        refine_translation: Optional[RefineTranslationUseCase] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.detector = detector
        self.transformer = transformer
        self.settings = settings or AlignmentSettings()
        stabilization = self.settings.stabilization
        self.body_settings = body_settings or BodyAlignmentSettings(output_size=self.settings.output_size)
        self.calculate_matrix = calculate_matrix or CalculateAlignmentMatrixUseCase(self.settings, self.body_settings)
        self.calculate_score = calculate_score or CalculateStabilizationScoreUseCase(stabilization)
        self.detect_overshoot = detect_overshoot or DetectOvershootUseCase(stabilization)
        self.refine_rotation = refine_rotation or RefineRotationUseCase(stabilization)
        self.refine_scale = refine_scale or RefineScaleUseCase(stabilization)
        self.refine_translation = refine_translation or RefineTranslationUseCase()
        self.clock = clock

    def __call__(
        self,
        image: np.ndarray,
        goal_left: Optional[LandmarkPoint] = None,
        goal_right: Optional[LandmarkPoint] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Result[StabilizationResult]:
        """
        Stabilize one source image.

        Args:
            image: Source image; only its shape is read here
            goal_left: Goal left reference point in canvas pixels; defaults to
                the framing that matches the detected landmarks
            goal_right: Goal right reference point in canvas pixels
            on_progress: Called after every pass

        Returns:
            Result with the StabilizationResult, or LandmarksNotDetectedError
            when nothing is detected on the source image
        """
        start = self.clock()
        mode = self.settings.stabilization.mode

        source_height, source_width = image.shape[:2]
        landmarks = self.detector.detect(image)
        if landmarks is None:
            logger.warning("No landmarks detected on source image; skipping frame")
            return Result.failure(LandmarksNotDetectedError("No landmarks detected on source image"))

        framing = self.body_settings if isinstance(landmarks, BodyLandmarks) else self.settings
        if goal_left is None or goal_right is None:
            goal_left, goal_right = framing.goal_reference_positions()
        goal_eye_distance = goal_left.distance_to(goal_right)

        matrix_result = self.calculate_matrix(landmarks, source_width, source_height, framing)
        if matrix_result.is_error:
            return Result.failure(matrix_result.error, matrix_result.message)

        state = _RunState(
            matrix=matrix_result.value,
            best_matrix=matrix_result.value,
            output_size=framing.output_size,
        )
        goals = (goal_left, goal_right)
        try:
            if mode is StabilizationMode.FAST:
                self._run_fast(image, goals, state, on_progress)
            else:
                self._run_slow(image, goals, goal_eye_distance, state, on_progress)
        except _DetectionLost:
            state.early_stop_reason = EarlyStopReason.DETECTION_LOST
            logger.warning(f"Landmarks lost after {len(state.passes)} passes; keeping best result so far")
        except InvalidArgumentError as e:
            return Result.failure(e)

        if state.early_stop_reason is None:
            state.early_stop_reason = EarlyStopReason.MAX_PASSES_REACHED

        final_score = state.best_score or StabilizationScore.worst()
        result = StabilizationResult(
            success=final_score.is_success,
            final_score=final_score,
            initial_score=state.initial_score if state.initial_score is not None else final_score.value,
            passes_executed=len(state.passes),
            mode=mode,
            matrix=state.best_matrix,
            passes=state.passes,
            early_stop_reason=state.early_stop_reason,
            goal_eye_distance=goal_eye_distance,
            total_duration_ms=(self.clock() - start) * 1000,
        )
        logger.info(
            f"Stabilization finished ({mode.value}): score {result.initial_score:.2f} -> "
            f"{final_score.value:.2f} in {result.passes_executed} passes, "
            f"stop reason {result.early_stop_reason.value}"
        )
        return Result.success(result)

    def _run_fast(self, image, goals, state: _RunState, on_progress) -> None:
        landmarks, score = self._measure(image, goals, state)
        if self._initial_pass(state, score, on_progress):
            return
        for pass_number in range(2, self.settings.stabilization.max_passes + 1):
            stage = StabilizationStage.TRANSLATION_REFINE
            landmarks, score, stop = self._translation_pass(
                image, goals, state, pass_number, stage, landmarks, score, on_progress
            )
            if stop:
                return

    def _run_slow(self, image, goals, goal_eye_distance: float, state: _RunState, on_progress) -> None:
        output_size = state.output_size
        landmarks, score = self._measure(image, goals, state)
        if self._initial_pass(state, score, on_progress):
            return
        pass_number = 1

        for _ in range(STAGE_PASSES):
            pass_number += 1
            rotation = self.refine_rotation(state.matrix, landmarks, output_size, output_size).unwrap()
            if rotation.converged:
                self._record(state, pass_number, StabilizationStage.ROTATION_REFINE, score, True, on_progress)
                break
            state.matrix = rotation.matrix
            landmarks, score = self._measure(image, goals, state)
            self._record(state, pass_number, StabilizationStage.ROTATION_REFINE, score, False, on_progress)

        for _ in range(STAGE_PASSES):
            pass_number += 1
            scale = self.refine_scale(state.matrix, landmarks, goal_eye_distance, output_size, output_size).unwrap()
            if scale.converged:
                self._record(state, pass_number, StabilizationStage.SCALE_REFINE, score, True, on_progress)
                break
            state.matrix = scale.matrix
            landmarks, score = self._measure(image, goals, state)
            self._record(state, pass_number, StabilizationStage.SCALE_REFINE, score, False, on_progress)

        for _ in range(STAGE_PASSES):
            pass_number += 1
            landmarks, score, stop = self._translation_pass(
                image, goals, state, pass_number, StabilizationStage.TRANSLATION_REFINE, landmarks, score, on_progress
            )
            if stop:
                return

        if not state.best_score.is_success:
            pass_number += 1
            self._translation_pass(
                image, goals, state, pass_number, StabilizationStage.CLEANUP, landmarks, score, on_progress
            )

    def _initial_pass(self, state: _RunState, score: StabilizationScore, on_progress) -> bool:
        """Record pass 1. Returns True when the initial matrix needs no refinement."""
        converged = not score.needs_correction
        self._record(state, 1, StabilizationStage.INITIAL, score, converged, on_progress)
        if converged:
            state.early_stop_reason = EarlyStopReason.SCORE_BELOW_THRESHOLD
        return converged

    def _translation_pass(
        self,
        image,
        goals,
        state: _RunState,
        pass_number: int,
        stage: StabilizationStage,
        landmarks: Landmarks,
        score: StabilizationScore,
        on_progress,
    ) -> Tuple[Landmarks, StabilizationScore, bool]:
        """
        Correct the overshoot measured on the previous canvas, then re-measure.

        Returns the new landmarks and score plus whether the run should stop.
        """
        goal_left, goal_right = goals
        output_size = state.output_size
        overshoot = self.detect_overshoot.from_landmarks(
            landmarks, goal_left, goal_right, score, output_size, output_size
        )
        state.matrix = self.refine_translation(state.matrix, overshoot).unwrap().matrix
        new_landmarks, new_score = self._measure(image, goals, state)

        converged = not new_score.needs_correction
        self._record(state, pass_number, stage, new_score, converged, on_progress)
        if converged:
            state.early_stop_reason = EarlyStopReason.SCORE_BELOW_THRESHOLD
            return new_landmarks, new_score, True
        if score.value - new_score.value < self.settings.stabilization.convergence_threshold:
            state.early_stop_reason = EarlyStopReason.NO_IMPROVEMENT
            return new_landmarks, new_score, True
        return new_landmarks, new_score, False

    def _measure(self, image, goals, state: _RunState) -> Tuple[Landmarks, StabilizationScore]:
        """Warp with the current matrix, re-detect and score. Tracks the best matrix."""
        output_size = state.output_size
        canvas = self.transformer.apply_affine(image, state.matrix, output_size, output_size)
        landmarks = self.detector.detect(canvas)
        if landmarks is None:
            raise _DetectionLost()

        goal_left, goal_right = goals
        score = self.calculate_score.from_landmarks(
            landmarks, goal_left, goal_right, output_size, output_size
        ).unwrap()

        if state.initial_score is None:
            state.initial_score = score.value
        if state.best_score is None or score.value < state.best_score.value:
            state.best_score = score
            state.best_matrix = state.matrix
        return landmarks, score

    def _record(
        self,
        state: _RunState,
        pass_number: int,
        stage: StabilizationStage,
        score: StabilizationScore,
        converged: bool,
        on_progress: Optional[ProgressCallback],
    ) -> None:
        score_before = state.last_score if state.last_score is not None else score.value
        state.passes.append(
            StabilizationPass(
                pass_number=pass_number,
                stage=stage,
                score_before=score_before,
                score_after=score.value,
                converged=converged,
            )
        )
        state.last_score = score.value
        logger.debug(f"Pass {pass_number} ({stage.value}): score {score_before:.3f} -> {score.value:.3f}")
        if on_progress is not None:
            on_progress(
                StabilizationProgress(
                    current_pass=pass_number,
                    max_passes=self.settings.stabilization.max_passes,
                    stage=stage,
                    current_score=score.value,
                    mode=self.settings.stabilization.mode,
                )
            )
