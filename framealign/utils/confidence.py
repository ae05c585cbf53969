"""Confidence scores reported alongside alignment results."""
from framealign.domain.alignment.entities.stabilization_result import StabilizationResult
from framealign.domain.alignment.value_objects.stabilization_score import (
    NO_ACTION_THRESHOLD,
    SUCCESS_THRESHOLD,
)

INLIER_WEIGHT = 0.6
MATCH_COUNT_WEIGHT = 0.4


def calculate_match_confidence(match_count: int, inlier_count: int, max_keypoints: int) -> float:
    """Blend inlier ratio and match count into a confidence in [0, 1]."""
    if match_count <= 0 or max_keypoints <= 0:
        return 0.0
    inlier_ratio = inlier_count / match_count
    match_ratio = min(match_count / max_keypoints, 1.0)
    confidence = inlier_ratio * INLIER_WEIGHT + match_ratio * MATCH_COUNT_WEIGHT
    return max(0.0, min(1.0, confidence))


def confidence_from_score(score: float) -> float:
    """Map a stabilization score onto a confidence in [0.3, 1.0]."""
    if score < NO_ACTION_THRESHOLD:
        return 1.0
    if score < SUCCESS_THRESHOLD:
        return 0.7 + (SUCCESS_THRESHOLD - score) / SUCCESS_THRESHOLD * 0.29
    return max(0.3, 0.7 - (score - SUCCESS_THRESHOLD) / 100 * 0.4)


def confidence_from_stabilization(result: StabilizationResult) -> float:
    return confidence_from_score(result.final_score.value)
