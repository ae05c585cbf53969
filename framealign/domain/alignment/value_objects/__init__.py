from framealign.domain.alignment.value_objects.landmark_point import LandmarkPoint
from framealign.domain.alignment.value_objects.alignment_matrix import AlignmentMatrix
from framealign.domain.alignment.value_objects.homography_matrix import HomographyMatrix
from framealign.domain.alignment.value_objects.stabilization_score import StabilizationScore
from framealign.domain.alignment.value_objects.overshoot_correction import OvershootCorrection
from framealign.domain.alignment.value_objects.stabilization_settings import (
    AlignmentSettings,
    BodyAlignmentSettings,
    LandscapeStabilizationSettings,
    StabilizationMode,
    StabilizationSettings,
)

__all__ = [
    "LandmarkPoint",
    "AlignmentMatrix",
    "HomographyMatrix",
    "StabilizationScore",
    "OvershootCorrection",
    "AlignmentSettings",
    "BodyAlignmentSettings",
    "LandscapeStabilizationSettings",
    "StabilizationMode",
    "StabilizationSettings",
]
