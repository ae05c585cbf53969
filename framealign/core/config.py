from pydantic import Field, validator
from pydantic_settings import BaseSettings

from framealign.domain.alignment.value_objects.stabilization_settings import (
    AlignmentSettings,
    BodyAlignmentSettings,
    LandscapeStabilizationSettings,
    StabilizationMode,
    StabilizationSettings,
)


class Settings(BaseSettings):
    APP_NAME: str = "FrameAlign"
    LOG_LEVEL: str = "INFO"

    # --- Face stabilization loop ---
    STABILIZATION_MODE: str = Field(default="fast", description="Multi-pass mode: 'fast' or 'slow'.")
    ROTATION_STOP_THRESHOLD: float = Field(default=0.1, gt=0, description="Eye dY in canvas pixels at which rotation converges.")
    ROTATION_DAMPING: float = Field(default=0.5, gt=0, le=1, description="Fraction of the measured tilt corrected per pass.")
    SCALE_ERROR_THRESHOLD: float = Field(default=1.0, gt=0, description="Eye distance error in canvas pixels at which scale converges.")
    CONVERGENCE_THRESHOLD: float = Field(default=0.05, gt=0, description="Minimum score improvement between translation passes.")
    SUCCESS_SCORE_THRESHOLD: float = Field(default=20.0, gt=0)
    NO_ACTION_SCORE_THRESHOLD: float = Field(default=0.5, ge=0)
    MIN_FACE_SIZE_RATIO: float = Field(default=0.1, ge=0, le=1)
    EYE_VALIDITY_RATIO: float = Field(default=0.75, ge=0, le=1)

    # --- Output framing ---
    MIN_CONFIDENCE: float = Field(default=0.7, ge=0, le=1)
    OUTPUT_SIZE: int = Field(default=512, ge=128, le=2048, description="Square output canvas size in pixels.")
    TARGET_EYE_DISTANCE: float = Field(default=0.3, ge=0.1, le=0.9, description="Goal eye distance as a fraction of OUTPUT_SIZE.")
    VERTICAL_OFFSET: float = Field(default=0.1, ge=-0.5, le=0.5, description="Goal eye line offset above the canvas centre.")
    TARGET_SHOULDER_DISTANCE: float = Field(default=0.35, ge=0.1, le=0.9)
    HEAD_TO_WAIST_RATIO: float = Field(default=0.6, gt=0, le=1)

    # --- Feature-based (landscape) alignment ---
    FEATURE_MATCHING_ENABLED: bool = Field(default=True, description="When false, homography requests fail as unavailable.")
    RANSAC_THRESHOLD: float = Field(default=5.0, gt=0, description="Initial RANSAC inlier threshold in pixels.")
    MIN_RANSAC_THRESHOLD: float = Field(default=1.5, gt=0)
    RANSAC_THRESHOLD_REDUCTION_FACTOR: float = Field(default=0.6, gt=0, lt=1)
    MEAN_REPROJ_ERROR_THRESHOLD: float = Field(default=1.0, gt=0)
    REPROJECTION_INLIER_THRESHOLD: float = Field(default=5.0, gt=0)
    MAX_KEYPOINTS: int = Field(default=500, gt=0)
    MIN_INLIER_RATIO: float = Field(default=0.2, ge=0, le=1)
    MIN_DETERMINANT: float = Field(default=0.01, gt=0)
    MAX_DETERMINANT: float = Field(default=100.0, gt=0)
    LANDSCAPE_STABILIZATION_MODE: str = Field(default="fast", description="'fast': one homography; 'slow': three refinement stages.")
    INLIER_RATIO_IMPROVEMENT_THRESHOLD: float = Field(default=0.01, gt=0)
    MIN_PERSPECTIVE_DETERMINANT: float = Field(default=0.5, gt=0)
    MAX_PERSPECTIVE_DETERMINANT: float = Field(default=2.0, gt=0)
    MIN_SCALE_FACTOR: float = Field(default=0.5, gt=0)
    MAX_SCALE_FACTOR: float = Field(default=2.0, gt=0)
    MAX_ROTATION_DEGREES: float = Field(default=45.0, gt=0, le=180)
    DETERMINANT_CHANGE_THRESHOLD: float = Field(default=0.01, gt=0)
    PERSPECTIVE_BLEND_FACTOR: float = Field(default=0.5, ge=0, le=1, description="Share of an implausible homography kept when blending with identity.")
    SUCCESS_CONFIDENCE_THRESHOLD: float = Field(default=0.7, ge=0, le=1)

    @validator('STABILIZATION_MODE', 'LANDSCAPE_STABILIZATION_MODE', pre=True)
    def validate_stabilization_mode(cls, v):
        """Accept the mode name in any case."""
        if isinstance(v, str):
            v = v.lower()
        if v not in {mode.value for mode in StabilizationMode}:
            raise ValueError(f"Invalid stabilization mode: {v}")
        return v

    @validator('LOG_LEVEL', pre=True)
    def validate_log_level(cls, v):
        if isinstance(v, str):
            v = v.upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return v

    model_config = {
        "extra": "ignore",
        "env_file": ".env",
        "env_file_encoding": "utf-8"
    }

    @property
    def stabilization_settings(self) -> StabilizationSettings:
        return StabilizationSettings(
            mode=StabilizationMode(self.STABILIZATION_MODE),
            rotation_stop_threshold=self.ROTATION_STOP_THRESHOLD,
            rotation_damping=self.ROTATION_DAMPING,
            scale_error_threshold=self.SCALE_ERROR_THRESHOLD,
            convergence_threshold=self.CONVERGENCE_THRESHOLD,
            success_score_threshold=self.SUCCESS_SCORE_THRESHOLD,
            no_action_score_threshold=self.NO_ACTION_SCORE_THRESHOLD,
            min_face_size_ratio=self.MIN_FACE_SIZE_RATIO,
            eye_validity_ratio=self.EYE_VALIDITY_RATIO,
        )

    @property
    def alignment_settings(self) -> AlignmentSettings:
        return AlignmentSettings(
            min_confidence=self.MIN_CONFIDENCE,
            target_eye_distance=self.TARGET_EYE_DISTANCE,
            output_size=self.OUTPUT_SIZE,
            vertical_offset=self.VERTICAL_OFFSET,
            stabilization=self.stabilization_settings,
        )

    @property
    def body_alignment_settings(self) -> BodyAlignmentSettings:
        return BodyAlignmentSettings(
            target_shoulder_distance=self.TARGET_SHOULDER_DISTANCE,
            output_size=self.OUTPUT_SIZE,
            vertical_offset=self.VERTICAL_OFFSET,
            head_to_waist_ratio=self.HEAD_TO_WAIST_RATIO,
        )

    @property
    def landscape_settings(self) -> LandscapeStabilizationSettings:
        return LandscapeStabilizationSettings(
            mode=StabilizationMode(self.LANDSCAPE_STABILIZATION_MODE),
            ransac_threshold=self.RANSAC_THRESHOLD,
            min_ransac_threshold=self.MIN_RANSAC_THRESHOLD,
            ransac_threshold_reduction_factor=self.RANSAC_THRESHOLD_REDUCTION_FACTOR,
            mean_reproj_error_threshold=self.MEAN_REPROJ_ERROR_THRESHOLD,
            reprojection_inlier_threshold=self.REPROJECTION_INLIER_THRESHOLD,
            max_keypoints=self.MAX_KEYPOINTS,
            min_inlier_ratio=self.MIN_INLIER_RATIO,
            min_determinant=self.MIN_DETERMINANT,
            max_determinant=self.MAX_DETERMINANT,
            inlier_ratio_improvement_threshold=self.INLIER_RATIO_IMPROVEMENT_THRESHOLD,
            min_perspective_determinant=self.MIN_PERSPECTIVE_DETERMINANT,
            max_perspective_determinant=self.MAX_PERSPECTIVE_DETERMINANT,
            min_scale_factor=self.MIN_SCALE_FACTOR,
            max_scale_factor=self.MAX_SCALE_FACTOR,
            max_rotation_degrees=self.MAX_ROTATION_DEGREES,
            determinant_change_threshold=self.DETERMINANT_CHANGE_THRESHOLD,
            perspective_blend_factor=self.PERSPECTIVE_BLEND_FACTOR,
            success_confidence_threshold=self.SUCCESS_CONFIDENCE_THRESHOLD,
        )

settings = Settings()
