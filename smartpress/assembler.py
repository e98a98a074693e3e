"""Result assembly. Pure construction from already-validated inputs."""

from __future__ import annotations

from typing import Optional, Sequence

from smartpress.models import (
    CompressionResult,
    CompressionStrategy,
    EncodedOutput,
    IterationRecord,
    RunPhase,
)

DEFAULT_FORMAT = "application/octet-stream"


def assemble(
    original_size: int,
    encoded: EncodedOutput,
    strategy_used: CompressionStrategy,
    *,
    source_media_type: str = "",
    target_size: Optional[float] = None,
    iterations: int = 0,
    status: Optional[RunPhase] = None,
    history: Sequence[IterationRecord] = (),
) -> CompressionResult:
    """Package the accepted encoder output into a CompressionResult.

    The format is the encoder's media type, or the input's declared type
    when the encoder passed the bytes through. Without an explicit status,
    the size comparison against target_size decides it.
    """
    compressed_size = len(encoded.data)
    if status is None:
        met = target_size is None or compressed_size <= target_size
        status = RunPhase.CONVERGED if met else RunPhase.EXHAUSTED
    return CompressionResult(
        original_size=original_size,
        compressed_size=compressed_size,
        data=encoded.data,
        format=encoded.media_type or source_media_type or DEFAULT_FORMAT,
        strategy_used=strategy_used,
        target_size=target_size,
        iterations=iterations,
        status=status,
        history=tuple(history),
    )
