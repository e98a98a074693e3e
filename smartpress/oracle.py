"""Strategy oracle boundary.

The convergence loop asks an oracle for parameters each iteration and
never trusts the answer: proposals are validated, clamped and defaulted
by resolve_strategy(). Any oracle failure, timeout or malformed
proposal degrades to the fallback strategy instead of failing the run.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Mapping
from typing import Any, Optional, Protocol, runtime_checkable

from smartpress.config import StrategyLimits
from smartpress.core.config import LLMConfig
from smartpress.core.errors import OracleError
from smartpress.core.llm import LLMClient
from smartpress.core.parsing import parse_json_from_response
from smartpress.models import CompressionStrategy, FileCategory, StrategyRequest
from smartpress.prompts.strategy import SYSTEM_PROMPT, build_user_prompt

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("quality", "method")


@runtime_checkable
class StrategyOracle(Protocol):
    """Protocol for strategy sources.

    Implementations return a raw proposal mapping with the keys
    quality, scale, bitrate, method and reasoning. They may raise
    anything; the caller treats every exception as an oracle failure.
    """

    async def propose(self, request: StrategyRequest) -> Mapping[str, Any]:
        ...


# =============================================================================
# Proposal normalization
# =============================================================================


def _as_number(value: Any) -> Optional[float]:
    """Finite float for JSON numbers and numeric strings, else None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def resolve_strategy(
    proposal: Any,
    limits: StrategyLimits = StrategyLimits(),
) -> CompressionStrategy:
    """Turn a raw oracle proposal into a strategy safe to hand to an encoder.

    Raises:
        OracleError: If the proposal is not a mapping or lacks a required field.
    """
    if not isinstance(proposal, Mapping):
        raise OracleError(
            f"Strategy proposal must be an object, got {type(proposal).__name__}"
        )
    missing = [key for key in REQUIRED_FIELDS if key not in proposal]
    if missing:
        raise OracleError(f"Strategy proposal missing required fields: {missing}")

    quality = _as_number(proposal.get("quality"))
    if quality is None:
        quality = limits.default_quality
    scale = _as_number(proposal.get("scale"))
    if scale is None:
        scale = limits.default_scale
    bitrate = _as_number(proposal.get("bitrate"))
    if bitrate is not None and bitrate <= 0:
        bitrate = None

    method = proposal.get("method")
    reasoning = proposal.get("reasoning")

    return CompressionStrategy(
        quality=_clamp(quality, limits.min_quality, limits.max_quality),
        scale=_clamp(scale, limits.min_scale, limits.max_scale),
        bitrate=bitrate,
        method=str(method).strip() if method else limits.default_method,
        reasoning=str(reasoning).strip() if reasoning else limits.default_reasoning,
    )


def fallback_strategy(limits: StrategyLimits = StrategyLimits()) -> CompressionStrategy:
    """Conservative strategy used whenever the oracle cannot be trusted."""
    return CompressionStrategy(
        quality=limits.fallback_quality,
        scale=limits.fallback_scale,
        method=limits.fallback_method,
        reasoning=limits.fallback_reasoning,
    )


async def obtain_strategy(
    oracle: StrategyOracle,
    request: StrategyRequest,
    limits: StrategyLimits = StrategyLimits(),
    timeout_seconds: Optional[float] = None,
) -> tuple[CompressionStrategy, bool]:
    """Query the oracle and normalize its answer.

    Returns:
        (strategy, used_fallback). Never raises for oracle problems;
        cancellation of the awaiting task still propagates.
    """
    try:
        proposal = await asyncio.wait_for(oracle.propose(request), timeout=timeout_seconds)
        return resolve_strategy(proposal, limits), False
    except asyncio.TimeoutError:
        logger.warning(
            "Strategy oracle timed out after %ss on iteration %d, using fallback",
            timeout_seconds, request.iteration,
        )
    except Exception as e:
        logger.warning(
            "Strategy oracle failed on iteration %d, using fallback: %s",
            request.iteration, e,
        )
    return fallback_strategy(limits), True


# =============================================================================
# Oracle implementations
# =============================================================================


class LLMStrategyOracle:
    """Oracle backed by an LLM text-completion call.

    Stateless: each proposal depends only on the request, so one
    instance can serve concurrent runs.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        config: LLMConfig = LLMConfig(),
        model: Optional[str] = None,
    ) -> None:
        self.llm_client = llm_client
        self.config = config
        self.model = model

    async def propose(self, request: StrategyRequest) -> Mapping[str, Any]:
        try:
            raw_response = await self.llm_client.complete(
                system=SYSTEM_PROMPT,
                user=build_user_prompt(request),
                model=self.model,
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
                json_mode=True,
            )
        except Exception as e:
            raise OracleError(f"LLM call failed during strategy selection: {e}") from e

        try:
            data = parse_json_from_response(raw_response)
        except ValueError as e:
            raise OracleError(f"Unparseable strategy response: {e}") from e

        if not isinstance(data, dict):
            raise OracleError(f"Expected JSON object, got {type(data).__name__}")
        return data


_METHODS = {
    FileCategory.IMAGE: "Resample + Lossy Re-encode",
    FileCategory.DOCUMENT: "Metadata Strip + Object Streams",
    FileCategory.TEXT: "GZIP",
    FileCategory.ARCHIVE: "GZIP",
}


class HeuristicOracle:
    """Deterministic, offline oracle.

    Starts from the square root of the size ratio. After the first
    attempt, an overshoot tightens quality by decay**steps and by the
    square root of the overshoot; scale moves by the square root of
    that factor. An attempt at or under the target keeps the baseline.
    """

    def __init__(self, quality_ceiling: float = 0.92, decay: float = 0.75) -> None:
        self.quality_ceiling = quality_ceiling
        self.decay = decay

    async def propose(self, request: StrategyRequest) -> Mapping[str, Any]:
        ratio = request.target_size / max(request.original_size, 1)
        previous = request.previous_size or request.original_size
        overshoot = previous / max(request.target_size, 1)
        steps = max(request.iteration - 1, 0)

        quality = self.quality_ceiling * math.sqrt(ratio)
        scale = min(1.0, math.sqrt(ratio) * 1.2)
        if steps and overshoot > 1:
            factor = self.decay**steps / math.sqrt(overshoot)
            quality *= factor
            scale *= math.sqrt(factor)

        return {
            "quality": round(quality, 3),
            "scale": round(scale, 3),
            "bitrate": None,
            "method": _METHODS.get(request.category, "Pass-through"),
            "reasoning": (
                f"Target is {ratio:.0%} of the original; previous attempt was "
                f"{overshoot:.2f}x the target after {steps} adjustment(s)."
            ),
        }
