from framealign.application.use_cases.alignment_matrix_use_cases import CalculateAlignmentMatrixUseCase
from framealign.application.use_cases.homography_use_cases import (
    CalculateHomographyMatrixUseCase,
    CalculateReprojectionErrorUseCase,
    MatchQualityRefinementResult,
    PerspectiveRefinementResult,
    RansacRefinementResult,
    RefineMatchQualityUseCase,
    RefinePerspectiveStabilityUseCase,
    RefineRansacThresholdUseCase,
)
from framealign.application.use_cases.refinement_use_cases import (
    RefineRotationUseCase,
    RefineScaleUseCase,
    RefineTranslationUseCase,
    RotationResult,
    ScaleResult,
    TranslationResult,
)
from framealign.application.use_cases.scoring_use_cases import (
    CalculateStabilizationScoreUseCase,
    DetectOvershootUseCase,
    ValidateAlignmentUseCase,
    ValidationResult,
)

__all__ = [
    "CalculateAlignmentMatrixUseCase",
    "CalculateHomographyMatrixUseCase",
    "CalculateReprojectionErrorUseCase",
    "MatchQualityRefinementResult",
    "PerspectiveRefinementResult",
    "RansacRefinementResult",
    "RefineMatchQualityUseCase",
    "RefinePerspectiveStabilityUseCase",
    "RefineRansacThresholdUseCase",
    "RefineRotationUseCase",
    "RefineScaleUseCase",
    "RefineTranslationUseCase",
    "RotationResult",
    "ScaleResult",
    "TranslationResult",
    "CalculateStabilizationScoreUseCase",
    "DetectOvershootUseCase",
    "ValidateAlignmentUseCase",
    "ValidationResult",
]
