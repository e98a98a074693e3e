"""Tests for smartpress.assembler — result construction."""

from smartpress.assembler import assemble
from smartpress.models import CompressionStrategy, EncodedOutput, IterationRecord, RunPhase

STRATEGY = CompressionStrategy(quality=0.6, scale=0.9, method="WebP", reasoning="r")


def test_compressed_size_from_bytes():
    result = assemble(1000, EncodedOutput(data=b"x" * 400, media_type="image/webp"), STRATEGY)
    assert result.original_size == 1000
    assert result.compressed_size == 400
    assert result.format == "image/webp"
    assert result.strategy_used is STRATEGY


def test_passthrough_keeps_source_media_type():
    result = assemble(
        10, EncodedOutput(data=b"x" * 10, media_type=""), STRATEGY, source_media_type="audio/mpeg"
    )
    assert result.format == "audio/mpeg"


def test_unknown_format_defaults_to_octet_stream():
    result = assemble(10, EncodedOutput(data=b"x", media_type=""), STRATEGY)
    assert result.format == "application/octet-stream"


def test_status_inferred_from_target():
    over = assemble(1000, EncodedOutput(b"x" * 600, "t"), STRATEGY, target_size=500)
    under = assemble(1000, EncodedOutput(b"x" * 400, "t"), STRATEGY, target_size=500)
    assert over.status == RunPhase.EXHAUSTED
    assert under.status == RunPhase.CONVERGED


def test_explicit_status_and_history():
    record = IterationRecord(iteration=1, strategy=STRATEGY, achieved_size=520)
    result = assemble(
        1000,
        EncodedOutput(b"x" * 520, "t"),
        STRATEGY,
        target_size=500,
        iterations=1,
        status=RunPhase.CONVERGED,
        history=[record],
    )
    assert result.status == RunPhase.CONVERGED
    assert result.history == (record,)
    # Converged inside the tolerance band, but above the exact target.
    assert not result.target_met
