"""Tests for smartpress.runner — caller-facing API and session state."""

import asyncio
import gzip

import pytest

from smartpress.config import CompressionConfig, ImageConfig
from smartpress.core.errors import EncodeFailureError, FileTooLargeError, InvalidTargetError
from smartpress.models import FileCategory, RunPhase
from smartpress.runner import CompressionSession, start_run, validate_request


class RecordingOracle:
    def __init__(self, proposal=None):
        self.proposal = proposal or {"quality": 0.5, "scale": 0.8, "method": "test", "reasoning": ""}
        self.requests = []

    async def propose(self, request):
        self.requests.append(request)
        return self.proposal


class TestValidateRequest:
    def test_file_too_large(self):
        config = CompressionConfig(max_file_size_bytes=100)
        with pytest.raises(FileTooLargeError):
            validate_request(101, 50, config)

    def test_size_at_limit_allowed(self):
        validate_request(100, 50, CompressionConfig(max_file_size_bytes=100))

    def test_size_checked_before_target(self):
        config = CompressionConfig(max_file_size_bytes=100)
        with pytest.raises(FileTooLargeError):
            validate_request(200, 500, config)

    @pytest.mark.parametrize("target", [0, -1, 1000, 2000, float("nan"), "abc"])
    def test_invalid_targets(self, target):
        with pytest.raises(InvalidTargetError):
            validate_request(1000, target)


class TestStartRun:
    @pytest.mark.asyncio
    async def test_text_converges_in_one_iteration(self, text_bytes):
        oracle = RecordingOracle()
        result = await start_run(text_bytes, "text/plain", len(text_bytes) // 2, oracle=oracle)
        assert result.status == RunPhase.CONVERGED
        assert result.iterations == 1
        assert result.format == "application/gzip"
        assert gzip.decompress(result.data) == text_bytes
        assert oracle.requests[0].category == FileCategory.TEXT

    @pytest.mark.asyncio
    async def test_target_equal_to_size_rejected_without_oracle_call(self, text_bytes):
        oracle = RecordingOracle()
        with pytest.raises(InvalidTargetError):
            await start_run(text_bytes, "text/plain", len(text_bytes), oracle=oracle)
        assert oracle.requests == []

    @pytest.mark.asyncio
    async def test_file_too_large_rejected(self, text_bytes):
        config = CompressionConfig(max_file_size_bytes=10)
        with pytest.raises(FileTooLargeError):
            await start_run(text_bytes, "text/plain", 5, config=config)

    @pytest.mark.asyncio
    async def test_video_passes_through_and_exhausts(self):
        data = b"\x00\x00\x00\x18ftypmp42" + b"\x01" * 500
        result = await start_run(data, "video/mp4", 100, oracle=RecordingOracle())
        assert result.data == data
        assert result.status == RunPhase.EXHAUSTED
        assert result.iterations == 4
        assert result.format == "video/mp4"

    @pytest.mark.asyncio
    async def test_image_run_shrinks(self, png_bytes):
        result = await start_run(png_bytes, "image/png", len(png_bytes) * 0.9)
        assert result.compressed_size < len(png_bytes)
        assert result.format.startswith("image/")

    @pytest.mark.asyncio
    async def test_image_config_reaches_encoder(self, png_bytes):
        oracle = RecordingOracle({"quality": 0.5, "method": "test", "reasoning": ""})
        config = CompressionConfig(image=ImageConfig(lossy_threshold=0.3))
        result = await start_run(png_bytes, "image/png", len(png_bytes) - 1, oracle=oracle, config=config)
        assert result.format == "image/png"

    @pytest.mark.asyncio
    async def test_default_image_config_switches_to_webp(self, png_bytes):
        oracle = RecordingOracle({"quality": 0.5, "method": "test", "reasoning": ""})
        result = await start_run(png_bytes, "image/png", len(png_bytes) - 1, oracle=oracle)
        assert result.format == "image/webp"

    @pytest.mark.asyncio
    async def test_corrupt_image_fails(self):
        with pytest.raises(EncodeFailureError):
            await start_run(b"not an image at all", "image/png", 5, oracle=RecordingOracle())

    @pytest.mark.asyncio
    async def test_input_is_not_mutated(self):
        data = bytearray(b"abc" * 300)
        snapshot = bytes(data)
        await start_run(data, "text/plain", 100, oracle=RecordingOracle())
        assert bytes(data) == snapshot

    @pytest.mark.asyncio
    async def test_default_oracle_used_when_none_given(self, text_bytes):
        result = await start_run(text_bytes, "text/plain", len(text_bytes) // 2)
        assert result.strategy_used.method == "GZIP"


class TestCompressionSession:
    @pytest.mark.asyncio
    async def test_successful_run_updates_state(self, text_bytes):
        events = []
        session = CompressionSession(oracle=RecordingOracle(), listener=events.append)
        result = await session.compress(text_bytes, "text/plain", len(text_bytes) // 2)
        assert session.result is result
        assert session.phase == RunPhase.CONVERGED
        assert session.progress == 100
        assert session.iteration == 1
        assert session.error is None
        assert not session.is_running
        assert events

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_result(self, text_bytes):
        session = CompressionSession(oracle=RecordingOracle())
        first = await session.compress(text_bytes, "text/plain", len(text_bytes) // 2)

        with pytest.raises(InvalidTargetError):
            await session.compress(text_bytes, "text/plain", len(text_bytes) * 2)

        assert session.result is first
        assert session.error is not None
        assert session.phase == RunPhase.FAILED
        assert not session.is_running

    @pytest.mark.asyncio
    async def test_retry_after_failure(self, text_bytes):
        session = CompressionSession(oracle=RecordingOracle())
        with pytest.raises(EncodeFailureError):
            await session.compress(b"not an image", "image/png", 5)
        assert session.phase == RunPhase.FAILED

        result = await session.compress(text_bytes, "text/plain", len(text_bytes) // 2)
        assert result is not None
        assert session.error is None
        assert session.phase == RunPhase.CONVERGED

    @pytest.mark.asyncio
    async def test_reset_during_run_discards_it(self, text_bytes):
        session = CompressionSession()

        class ResettingOracle(RecordingOracle):
            async def propose(self, request):
                session.reset()
                return await super().propose(request)

        session.oracle = ResettingOracle()
        result = await session.compress(text_bytes, "text/plain", 10)
        assert result is None
        assert session.result is None
        assert session.phase == RunPhase.IDLE
        assert session.progress == 0

    @pytest.mark.asyncio
    async def test_superseded_run_cannot_touch_new_state(self, text_bytes):
        session = CompressionSession()
        entered = asyncio.Event()
        release = asyncio.Event()

        class GatedOracle(RecordingOracle):
            async def propose(self, request):
                entered.set()
                await release.wait()
                return await super().propose(request)

        session.oracle = GatedOracle()
        first = asyncio.create_task(session.compress(text_bytes, "text/plain", 10))
        await entered.wait()

        session.oracle = RecordingOracle()
        second = await session.compress(text_bytes, "text/plain", len(text_bytes) // 2)

        release.set()
        assert await first is None
        assert session.result is second
        assert session.phase == RunPhase.CONVERGED
        assert session.progress == 100
