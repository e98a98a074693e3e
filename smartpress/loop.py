"""Convergence loop graph (LangGraph StateGraph).

Graph topology:
    strategize -> encode -> decide
                              ├── "continue" -> strategize (loop back)
                              └── "stop"     -> END

Each run builds its own ConvergenceState; nothing is shared between
runs except the (stateless) oracle and encoders.
"""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Any, Callable, Optional

from langgraph.graph import END, START, StateGraph
from langgraph.graph.state import CompiledStateGraph

from smartpress.assembler import assemble
from smartpress.config import CompressionConfig, ConvergenceConfig
from smartpress.core.errors import (
    EncodeFailureError,
    InvalidTargetError,
    RunCancelledError,
)
from smartpress.encoders import Encoder, encode
from smartpress.models import (
    CompressionResult,
    ConvergenceState,
    EncodedOutput,
    FileCategory,
    IterationRecord,
    ProgressEvent,
    RunPhase,
    StrategyRequest,
)
from smartpress.oracle import HeuristicOracle, StrategyOracle, obtain_strategy

logger = logging.getLogger(__name__)

EventCallback = Callable[[ProgressEvent], None]


class CancelToken:
    """Cooperative cancellation flag, checked between iterations."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


def progress_percent(iteration: int, config: ConvergenceConfig = ConvergenceConfig()) -> int:
    """Coarse progress for display, capped at 100."""
    return min(100, config.progress_base + iteration * config.progress_per_iteration)


def within_tolerance(achieved_size: int, target_size: float, tolerance: float) -> bool:
    """Stopping rule: achieved size inside the band above the target."""
    return achieved_size <= target_size * (1 + tolerance)


def check_target(target_size: Any, original_size: int) -> None:
    """Reject targets the loop cannot aim for.

    Raises:
        InvalidTargetError: non-numeric, NaN, non-positive, or not below original_size.
    """
    if (
        isinstance(target_size, bool)
        or not isinstance(target_size, (int, float))
        or math.isnan(target_size)
    ):
        raise InvalidTargetError(f"Target size must be a number, got {target_size!r}")
    if target_size <= 0:
        raise InvalidTargetError(f"Target size must be positive, got {target_size}")
    if target_size >= original_size:
        raise InvalidTargetError(
            f"Target size ({target_size:g} bytes) must be smaller than "
            f"the original ({original_size} bytes)"
        )


def _noop(event: ProgressEvent) -> None:
    pass


# =============================================================================
# Nodes
# =============================================================================


def _make_strategize_node(
    oracle: StrategyOracle,
    config: CompressionConfig,
    emit: EventCallback,
):
    """Create a strategize node that closes over the oracle and config.

    LangGraph nodes must have signature (state) -> dict, so dependencies
    are captured via closure rather than passed as arguments.
    """
    convergence = config.convergence

    async def strategize_node(state: ConvergenceState) -> dict:
        """Advance the iteration and obtain a clamped strategy for it."""
        iteration = state.get("iteration", 0) + 1
        emit(
            ProgressEvent(
                phase=RunPhase.RUNNING,
                iteration=iteration,
                percent=progress_percent(iteration, convergence),
                message=f"Requesting strategy for iteration {iteration}",
            )
        )
        request = StrategyRequest(
            category=state["category"],
            original_size=state["original_size"],
            target_size=state["target_size"],
            iteration=iteration,
            previous_size=state.get("last_achieved_size"),
        )
        strategy, used_fallback = await obtain_strategy(
            oracle,
            request,
            limits=config.strategy,
            timeout_seconds=convergence.oracle_timeout_seconds,
        )
        return {
            "iteration": iteration,
            "strategy": strategy,
            "used_fallback": used_fallback,
        }

    return strategize_node


def _make_encode_node(
    registry: Optional[dict[FileCategory, Encoder]],
    config: CompressionConfig,
    emit: EventCallback,
):
    """Create an encode node that closes over the encoder registry.

    asyncio.to_thread keeps the event loop non-blocking while the
    codec works.
    """
    convergence = config.convergence

    async def encode_node(state: ConvergenceState) -> dict:
        """Apply the category's encoder and record what it achieved."""
        iteration = state["iteration"]
        strategy = state["strategy"]
        try:
            output: EncodedOutput = await asyncio.to_thread(
                encode,
                state["category"],
                state["raw_bytes"],
                strategy,
                registry,
                config.image,
            )
        except Exception as e:
            logger.error("Encoder failed on iteration %d: %s", iteration, e)
            return {"encode_error": f"{type(e).__name__}: {e}"}

        converged = within_tolerance(output.size, state["target_size"], convergence.tolerance)
        record = IterationRecord(
            iteration=iteration,
            strategy=strategy,
            achieved_size=output.size,
            used_fallback=state.get("used_fallback", False),
        )
        logger.info(
            "Iteration %d: %s (quality=%.2f, scale=%.2f) -> %d bytes (target %g)%s",
            iteration,
            strategy.method,
            strategy.quality,
            strategy.effective_scale,
            output.size,
            state["target_size"],
            ", converged" if converged else "",
        )
        emit(
            ProgressEvent(
                phase=RunPhase.RUNNING,
                iteration=iteration,
                percent=progress_percent(iteration, convergence),
                strategy=strategy,
                achieved_size=output.size,
            )
        )
        return {
            "last_achieved_size": output.size,
            "best_blob": output.data,
            "best_media_type": output.media_type,
            "history": state.get("history", []) + [record],
            "encode_error": None,
            "converged": converged,
        }

    return encode_node


def _make_should_continue(config: ConvergenceConfig, cancel_token: CancelToken):
    """Create a should_continue function that captures config and the token.

    LangGraph conditional edge functions only receive state.
    Config access is closed over via this factory.
    """

    def should_continue(state: ConvergenceState) -> str:
        """Conditional edge: decide whether to run another iteration.

        Returns:
            "continue" -> back to strategize
            "stop"     -> end the loop

        Stop conditions (checked in order):
        1. encode_error is set (no bytes to work with)
        2. achieved size within tolerance of the target
        3. caller cancelled the run
        4. iteration >= max_iterations
        """
        if state.get("encode_error"):
            return "stop"
        if state.get("converged", False):
            return "stop"
        if cancel_token.cancelled:
            return "stop"
        max_iterations = state.get("max_iterations", config.max_iterations)
        if state.get("iteration", 0) >= max_iterations:
            return "stop"
        return "continue"

    return should_continue


# =============================================================================
# Graph construction and entry point
# =============================================================================


def build_convergence_graph(
    oracle: Optional[StrategyOracle] = None,
    config: CompressionConfig = CompressionConfig(),
    registry: Optional[dict[FileCategory, Encoder]] = None,
    on_event: Optional[EventCallback] = None,
    cancel_token: Optional[CancelToken] = None,
) -> CompiledStateGraph:
    """Build the compression loop as a LangGraph StateGraph.

    Args:
        oracle: Strategy source. Default: HeuristicOracle.
        config: Loop, strategy and encoder settings.
        registry: Category -> Encoder mapping. Default: the global registry.
        on_event: Receives ProgressEvents as the loop advances.
        cancel_token: Checked between iterations.

    Returns a compiled StateGraph ready to invoke.
    """
    emit = on_event or _noop
    graph = StateGraph(ConvergenceState)

    graph.add_node(
        "strategize", _make_strategize_node(oracle or HeuristicOracle(), config, emit)
    )
    graph.add_node("encode", _make_encode_node(registry, config, emit))

    graph.add_edge(START, "strategize")
    graph.add_edge("strategize", "encode")
    graph.add_conditional_edges(
        "encode",
        _make_should_continue(config.convergence, cancel_token or CancelToken()),
        {"continue": "strategize", "stop": END},
    )

    return graph.compile()


async def run_convergence(
    raw_bytes: bytes,
    category: FileCategory,
    original_size: int,
    target_size: float,
    *,
    oracle: Optional[StrategyOracle] = None,
    config: Optional[CompressionConfig] = None,
    registry: Optional[dict[FileCategory, Encoder]] = None,
    on_event: Optional[EventCallback] = None,
    cancel_token: Optional[CancelToken] = None,
    media_type: str = "",
) -> CompressionResult:
    """Drive the loop until convergence or exhaustion.

    Exhaustion is not an error: the last iteration's bytes are returned
    with status EXHAUSTED.

    Raises:
        InvalidTargetError: Before any work, if the target is unusable.
        EncodeFailureError: If an encoder could not produce output.
        RunCancelledError: If cancel_token was cancelled.
    """
    check_target(target_size, original_size)

    config = config or CompressionConfig()
    convergence = config.convergence
    emit = on_event or _noop
    token = cancel_token or CancelToken()

    if token.cancelled:
        raise RunCancelledError("Run cancelled before it started")

    graph = build_convergence_graph(oracle, config, registry, emit, token)
    initial: ConvergenceState = {
        "raw_bytes": raw_bytes,
        "category": category,
        "original_size": original_size,
        "target_size": target_size,
        "max_iterations": convergence.max_iterations,
        "iteration": 0,
        "last_achieved_size": original_size,
        "history": [],
        "converged": False,
    }
    emit(ProgressEvent(phase=RunPhase.RUNNING, iteration=0, percent=convergence.progress_start))

    final = await graph.ainvoke(
        initial, config={"recursion_limit": convergence.max_iterations * 2 + 5}
    )
    iteration = final.get("iteration", 0)

    if final.get("encode_error"):
        message = f"Encoding failed on iteration {iteration}: {final['encode_error']}"
        emit(ProgressEvent(phase=RunPhase.FAILED, iteration=iteration, percent=0, message=message))
        raise EncodeFailureError(message, iteration=iteration)

    if token.cancelled:
        emit(ProgressEvent(phase=RunPhase.CANCELLED, iteration=iteration, percent=0))
        raise RunCancelledError(f"Run cancelled after iteration {iteration}")

    status = RunPhase.CONVERGED if final.get("converged") else RunPhase.EXHAUSTED
    if status == RunPhase.EXHAUSTED:
        logger.info(
            "Target %g not reached after %d iterations; returning last attempt (%d bytes)",
            target_size, iteration, final["last_achieved_size"],
        )

    result = assemble(
        original_size,
        EncodedOutput(data=final["best_blob"], media_type=final.get("best_media_type", "")),
        final["strategy"],
        source_media_type=media_type,
        target_size=target_size,
        iterations=iteration,
        status=status,
        history=final.get("history", []),
    )
    emit(
        ProgressEvent(
            phase=status,
            iteration=iteration,
            percent=100,
            strategy=result.strategy_used,
            achieved_size=result.compressed_size,
        )
    )
    return result
