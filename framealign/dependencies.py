"""
Providers wiring configuration into the alignment use cases.

Each provider builds its object once from framealign.core.config.settings.
Landmark detectors and image transformers are platform collaborators and are
passed in by the caller.
"""
import logging
from functools import lru_cache

from framealign.application.orchestration.multi_pass_landscape_stabilization import (
    MultiPassLandscapeStabilizationUseCase,
)
from framealign.application.orchestration.multi_pass_stabilization import MultiPassStabilizationUseCase
from framealign.application.use_cases.alignment_matrix_use_cases import CalculateAlignmentMatrixUseCase
from framealign.application.use_cases.homography_use_cases import (
    CalculateHomographyMatrixUseCase,
    CalculateReprojectionErrorUseCase,
    RefineMatchQualityUseCase,
    RefinePerspectiveStabilityUseCase,
    RefineRansacThresholdUseCase,
)
from framealign.application.use_cases.refinement_use_cases import (
    RefineRotationUseCase,
    RefineScaleUseCase,
    RefineTranslationUseCase,
)
from framealign.application.use_cases.scoring_use_cases import (
    CalculateStabilizationScoreUseCase,
    DetectOvershootUseCase,
    ValidateAlignmentUseCase,
)
from framealign.core.config import settings
from framealign.domain.alignment.services.feature_matcher import FeatureMatcher
from framealign.domain.alignment.services.image_transformer import ImageTransformer
from framealign.domain.alignment.services.landmark_detector import LandmarkDetector
from framealign.infrastructure.feature_matching.opencv_feature_matcher import OpenCvFeatureMatcher
from framealign.infrastructure.feature_matching.unavailable_feature_matcher import UnavailableFeatureMatcher

logger = logging.getLogger(__name__)


# --- Scoring and refinement ---

@lru_cache()
def get_calculate_score_use_case() -> CalculateStabilizationScoreUseCase:
    return CalculateStabilizationScoreUseCase(settings.stabilization_settings)


@lru_cache()
def get_detect_overshoot_use_case() -> DetectOvershootUseCase:
    return DetectOvershootUseCase(settings.stabilization_settings)


@lru_cache()
def get_validate_alignment_use_case() -> ValidateAlignmentUseCase:
    return ValidateAlignmentUseCase(settings.alignment_settings)


@lru_cache()
def get_calculate_alignment_matrix_use_case() -> CalculateAlignmentMatrixUseCase:
    return CalculateAlignmentMatrixUseCase(settings.alignment_settings, settings.body_alignment_settings)


@lru_cache()
def get_refine_rotation_use_case() -> RefineRotationUseCase:
    return RefineRotationUseCase(settings.stabilization_settings)


@lru_cache()
def get_refine_scale_use_case() -> RefineScaleUseCase:
    return RefineScaleUseCase(settings.stabilization_settings)


@lru_cache()
def get_refine_translation_use_case() -> RefineTranslationUseCase:
    return RefineTranslationUseCase()


# --- Feature-based alignment ---

@lru_cache()
def get_feature_matcher() -> FeatureMatcher:
    """OpenCV matcher, or the unavailable stub when feature matching is disabled."""
    if not settings.FEATURE_MATCHING_ENABLED:
        logger.info("Feature matching disabled by configuration")
        return UnavailableFeatureMatcher("Feature matching disabled by configuration")
    return OpenCvFeatureMatcher(max_keypoints=settings.MAX_KEYPOINTS)


@lru_cache()
def get_calculate_homography_use_case() -> CalculateHomographyMatrixUseCase:
    return CalculateHomographyMatrixUseCase(get_feature_matcher(), settings.landscape_settings)


@lru_cache()
def get_calculate_reprojection_error_use_case() -> CalculateReprojectionErrorUseCase:
    return CalculateReprojectionErrorUseCase(settings.landscape_settings)


@lru_cache()
def get_refine_ransac_threshold_use_case() -> RefineRansacThresholdUseCase:
    return RefineRansacThresholdUseCase(
        get_calculate_homography_use_case(),
        get_calculate_reprojection_error_use_case(),
        settings.landscape_settings,
    )


@lru_cache()
def get_refine_match_quality_use_case() -> RefineMatchQualityUseCase:
    return RefineMatchQualityUseCase(get_calculate_homography_use_case(), settings.landscape_settings)


@lru_cache()
def get_refine_perspective_stability_use_case() -> RefinePerspectiveStabilityUseCase:
    return RefinePerspectiveStabilityUseCase(settings.landscape_settings)


@lru_cache()
def get_multi_pass_landscape_stabilization_use_case() -> MultiPassLandscapeStabilizationUseCase:
    return MultiPassLandscapeStabilizationUseCase(
        calculate_homography=get_calculate_homography_use_case(),
        refine_match_quality=get_refine_match_quality_use_case(),
        refine_ransac_threshold=get_refine_ransac_threshold_use_case(),
        refine_perspective_stability=get_refine_perspective_stability_use_case(),
        settings=settings.landscape_settings,
    )


# --- Multi-pass driver ---

def get_multi_pass_stabilization_use_case(
    detector: LandmarkDetector,
    transformer: ImageTransformer,
) -> MultiPassStabilizationUseCase:
    """Not cached: detector and transformer are owned by the caller."""
    return MultiPassStabilizationUseCase(
        detector=detector,
        transformer=transformer,
        settings=settings.alignment_settings,
        body_settings=settings.body_alignment_settings,
        calculate_matrix=get_calculate_alignment_matrix_use_case(),
        calculate_score=get_calculate_score_use_case(),
        detect_overshoot=get_detect_overshoot_use_case(),
        refine_rotation=get_refine_rotation_use_case(),
        refine_scale=get_refine_scale_use_case(),
        refine_translation=get_refine_translation_use_case(),
    )
