"""Tests for configuration defaults and immutability."""

import pytest

from smartpress.config import (
    CompressionConfig,
    ConvergenceConfig,
    ImageConfig,
    StrategyLimits,
)
from smartpress.core.config import LLMConfig


def test_llm_config_defaults():
    config = LLMConfig()
    assert config.max_retries == 3
    assert config.temperature == 0.0
    assert config.max_tokens == 1024


def test_llm_config_frozen():
    config = LLMConfig()
    with pytest.raises(AttributeError):
        config.max_retries = 5


def test_convergence_defaults():
    config = ConvergenceConfig()
    assert config.max_iterations == 4
    assert config.tolerance == 0.05
    assert config.oracle_timeout_seconds > 0


def test_strategy_limits_defaults():
    limits = StrategyLimits()
    assert (limits.min_quality, limits.max_quality) == (0.05, 1.0)
    assert (limits.min_scale, limits.max_scale) == (0.1, 1.0)
    assert limits.default_quality == 0.8
    assert limits.default_scale == 1.0
    assert limits.fallback_quality == 0.5
    assert limits.fallback_scale == 0.7
    assert limits.fallback_method == "Safety Fallback"


def test_image_config_defaults():
    config = ImageConfig()
    assert config.lossy_threshold == 0.85
    assert "PNG" in config.lossless_formats
    assert "JPEG" not in config.lossless_formats


def test_compression_config_composes_subconfigs():
    config = CompressionConfig()
    assert config.max_file_size_bytes == 500 * 1024 * 1024
    assert isinstance(config.convergence, ConvergenceConfig)
    assert isinstance(config.strategy, StrategyLimits)
    assert isinstance(config.llm, LLMConfig)


def test_compression_config_frozen():
    config = CompressionConfig()
    with pytest.raises(AttributeError):
        config.max_file_size_bytes = 1
