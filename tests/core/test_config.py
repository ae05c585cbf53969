# tests/core/test_config.py
"""
Unit tests for framealign.core.config and the logging bootstrap.
"""
import logging

import pytest
from pydantic import ValidationError

from framealign.core.config import Settings
from framealign.core.log_config import setup_logging
from framealign.domain.alignment.value_objects.stabilization_settings import StabilizationMode


def test_defaults(mock_settings):
    assert mock_settings.APP_NAME == "FrameAlign Test"
    assert mock_settings.STABILIZATION_MODE == "fast"
    assert mock_settings.OUTPUT_SIZE == 512
    assert mock_settings.RANSAC_THRESHOLD == 5.0
    assert mock_settings.FEATURE_MATCHING_ENABLED is True


def test_stabilization_mode_is_case_insensitive():
    settings = Settings(_env_file=None, STABILIZATION_MODE="SLOW")
    assert settings.STABILIZATION_MODE == "slow"
    assert settings.stabilization_settings.mode is StabilizationMode.SLOW
    assert settings.stabilization_settings.max_passes == 11


def test_log_level_is_normalized():
    assert Settings(_env_file=None, LOG_LEVEL="warning").LOG_LEVEL == "WARNING"


@pytest.mark.parametrize(
    "overrides",
    [
        {"STABILIZATION_MODE": "turbo"},
        {"LOG_LEVEL": "verbose"},
        {"OUTPUT_SIZE": 64},
        {"ROTATION_DAMPING": 0.0},
        {"TARGET_EYE_DISTANCE": 0.95},
        {"RANSAC_THRESHOLD_REDUCTION_FACTOR": 1.0},
        {"LANDSCAPE_STABILIZATION_MODE": "turbo"},
        {"PERSPECTIVE_BLEND_FACTOR": 1.5},
    ],
)
def test_invalid_values_rejected(overrides):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **overrides)


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("OUTPUT_SIZE", "1024")
    monkeypatch.setenv("FEATURE_MATCHING_ENABLED", "false")
    settings = Settings(_env_file=None)
    assert settings.OUTPUT_SIZE == 1024
    assert settings.FEATURE_MATCHING_ENABLED is False


def test_domain_settings_are_built_from_fields():
    settings = Settings(
        _env_file=None,
        OUTPUT_SIZE=1024,
        TARGET_EYE_DISTANCE=0.25,
        ROTATION_STOP_THRESHOLD=0.2,
        MIN_RANSAC_THRESHOLD=2.0,
        MAX_KEYPOINTS=800,
    )
    alignment = settings.alignment_settings
    assert alignment.output_size == 1024
    assert alignment.target_reference_distance == pytest.approx(256.0)
    assert alignment.stabilization.rotation_stop_threshold == 0.2
    assert settings.body_alignment_settings.output_size == 1024
    landscape = settings.landscape_settings
    assert landscape.min_ransac_threshold == 2.0
    assert landscape.max_keypoints == 800


def test_landscape_refinement_fields():
    settings = Settings(
        _env_file=None,
        LANDSCAPE_STABILIZATION_MODE="Slow",
        MAX_ROTATION_DEGREES=30.0,
        DETERMINANT_CHANGE_THRESHOLD=0.05,
    )
    landscape = settings.landscape_settings
    assert landscape.mode is StabilizationMode.SLOW
    assert landscape.max_passes == 10
    assert landscape.max_rotation_degrees == 30.0
    assert landscape.determinant_change_threshold == 0.05
    assert Settings(_env_file=None).landscape_settings.max_passes == 1


def test_setup_logging(mocker):
    basic_config = mocker.patch("framealign.core.log_config.logging.basicConfig")
    setup_logging("debug")
    basic_config.assert_called_once()
    assert basic_config.call_args.kwargs["level"] == logging.DEBUG
    assert basic_config.call_args.kwargs["format"] == '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
