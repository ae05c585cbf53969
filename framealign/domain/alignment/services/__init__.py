from framealign.domain.alignment.services.feature_matcher import FeatureMatcher, HomographyEstimate, Match
from framealign.domain.alignment.services.image_transformer import ImageTransformer
from framealign.domain.alignment.services.landmark_detector import LandmarkDetector

__all__ = [
    "FeatureMatcher",
    "HomographyEstimate",
    "Match",
    "ImageTransformer",
    "LandmarkDetector",
]
