"""Compression configuration.

Composes all sub-configs. Each module receives the relevant slice.
Uses field(default_factory=...) for nested defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from smartpress.core.config import LLMConfig


@dataclass(frozen=True)
class ConvergenceConfig:
    """Configurable parameters for the convergence loop.

    Declarative: behavior is driven by these values, not if-else chains.
    """

    max_iterations: int = 4
    # Allowed overshoot above the target still counted as converged.
    tolerance: float = 0.05
    oracle_timeout_seconds: float = 30.0

    # Coarse UI progress: progress_base + iteration * progress_per_iteration
    progress_start: int = 5
    progress_base: int = 10
    progress_per_iteration: int = 20


@dataclass(frozen=True)
class StrategyLimits:
    """Domains, defaults and fallback values applied to oracle proposals."""

    min_quality: float = 0.05
    max_quality: float = 1.0
    min_scale: float = 0.1
    max_scale: float = 1.0

    default_quality: float = 0.8
    default_scale: float = 1.0
    default_method: str = "Standard"
    default_reasoning: str = "Optimizing for target size."

    fallback_quality: float = 0.5
    fallback_scale: float = 0.7
    fallback_method: str = "Safety Fallback"
    fallback_reasoning: str = (
        "Strategy service unavailable or response unusable, "
        "using conservative defaults."
    )


@dataclass(frozen=True)
class ImageConfig:
    """Image encoder format selection."""

    # Below this quality the encoder switches to WEBP.
    lossy_threshold: float = 0.85
    # Inputs in these formats are kept lossless (re-encoded as PNG) at high quality.
    lossless_formats: frozenset[str] = frozenset({"PNG", "GIF", "BMP", "TIFF"})


@dataclass(frozen=True)
class CompressionConfig:
    """Top-level configuration for a compression run."""

    max_file_size_bytes: int = 500 * 1024 * 1024

    convergence: ConvergenceConfig = field(default_factory=ConvergenceConfig)
    strategy: StrategyLimits = field(default_factory=StrategyLimits)
    image: ImageConfig = field(default_factory=ImageConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
