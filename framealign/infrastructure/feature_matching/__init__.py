from framealign.infrastructure.feature_matching.opencv_feature_matcher import OpenCvFeatureMatcher
from framealign.infrastructure.feature_matching.unavailable_feature_matcher import UnavailableFeatureMatcher

__all__ = ["OpenCvFeatureMatcher", "UnavailableFeatureMatcher"]
