"""Tests for data models — properties, construction, immutability."""

import pytest

from smartpress.models import (
    CompressionResult,
    CompressionStrategy,
    EncodedOutput,
    FileCategory,
    RunPhase,
    StrategyRequest,
)


class TestCompressionStrategy:
    def test_effective_scale_defaults_to_one(self):
        assert CompressionStrategy(quality=0.5).effective_scale == 1.0
        assert CompressionStrategy(quality=0.5, scale=0.3).effective_scale == 0.3

    def test_frozen(self):
        strategy = CompressionStrategy(quality=0.5)
        with pytest.raises(AttributeError):
            strategy.quality = 0.9


class TestStrategyRequest:
    def test_payload_with_previous_size(self):
        request = StrategyRequest(FileCategory.IMAGE, 2000, 1000, 2, previous_size=1500)
        assert request.to_payload() == {
            "category": "image",
            "originalSizeBytes": 2000,
            "targetSizeBytes": 1000,
            "iteration": 2,
            "previousAchievedSizeBytes": 1500,
        }

    def test_payload_without_previous_size(self):
        payload = StrategyRequest(FileCategory.TEXT, 2000, 1000, 1).to_payload()
        assert "previousAchievedSizeBytes" not in payload


class TestCompressionResult:
    def _result(self, compressed=400, original=1000, target=500.0):
        return CompressionResult(
            original_size=original,
            compressed_size=compressed,
            data=b"x" * compressed,
            format="image/webp",
            strategy_used=CompressionStrategy(quality=0.5),
            target_size=target,
        )

    def test_target_met(self):
        assert self._result(compressed=500).target_met
        assert not self._result(compressed=501).target_met

    def test_ratio_and_savings(self):
        result = self._result(compressed=250)
        assert result.ratio == 0.25
        assert result.savings_percent == 75.0

    def test_empty_original(self):
        assert self._result(compressed=0, original=0).ratio == 1.0

    def test_frozen(self):
        with pytest.raises(AttributeError):
            self._result().data = b""


def test_encoded_output_size():
    assert EncodedOutput(data=b"abcd", media_type="x").size == 4


def test_run_phase_terminal():
    assert not RunPhase.IDLE.is_terminal
    assert not RunPhase.RUNNING.is_terminal
    for phase in (RunPhase.CONVERGED, RunPhase.EXHAUSTED, RunPhase.FAILED, RunPhase.CANCELLED):
        assert phase.is_terminal
