from framealign.domain.alignment.entities.landmarks import (
    BodyLandmarks,
    FaceLandmarks,
    Landmarks,
)
from framealign.domain.alignment.entities.feature_keypoint import FeatureKeypoint
from framealign.domain.alignment.entities.stabilization_result import (
    EarlyStopReason,
    LandscapeStabilizationResult,
    StabilizationPass,
    StabilizationProgress,
    StabilizationResult,
    StabilizationStage,
)

__all__ = [
    "BodyLandmarks",
    "FaceLandmarks",
    "Landmarks",
    "FeatureKeypoint",
    "EarlyStopReason",
    "LandscapeStabilizationResult",
    "StabilizationPass",
    "StabilizationProgress",
    "StabilizationResult",
    "StabilizationStage",
]
