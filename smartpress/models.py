"""SmartPress data models and convergence state.

Contains all dataclasses that cross module boundaries.
ConvergenceState is the LangGraph TypedDict for the convergence loop.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, TypedDict


# --- Enums ---


class FileCategory(str, Enum):
    """Closed set of input categories. Fixed at ingestion."""

    IMAGE = "image"
    DOCUMENT = "document"
    VIDEO = "video"
    AUDIO = "audio"
    TEXT = "text"
    ARCHIVE = "archive"
    UNKNOWN = "unknown"


class RunPhase(str, Enum):
    """Lifecycle of a single compression run."""

    IDLE = "idle"
    RUNNING = "running"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self not in (RunPhase.IDLE, RunPhase.RUNNING)


# --- Dataclasses ---


@dataclass(frozen=True)
class CompressionStrategy:
    """Parameters applied by an encoder for one iteration.

    Immutable. quality and scale are already clamped when an
    instance reaches an encoder.
    """

    quality: float
    scale: Optional[float] = None
    bitrate: Optional[float] = None
    method: str = ""
    reasoning: str = ""

    @property
    def effective_scale(self) -> float:
        """Scale factor to apply; an absent scale means no scaling."""
        return 1.0 if self.scale is None else self.scale


@dataclass(frozen=True)
class StrategyRequest:
    """Loop state sent to the strategy oracle for one iteration."""

    category: FileCategory
    original_size: int
    target_size: float
    iteration: int
    previous_size: Optional[int] = None

    def to_payload(self) -> dict[str, Any]:
        """Wire form of the request."""
        payload: dict[str, Any] = {
            "category": self.category.value,
            "originalSizeBytes": self.original_size,
            "targetSizeBytes": self.target_size,
            "iteration": self.iteration,
        }
        if self.previous_size is not None:
            payload["previousAchievedSizeBytes"] = self.previous_size
        return payload


@dataclass(frozen=True)
class EncodedOutput:
    """Bytes produced by an encoder together with their media type."""

    data: bytes
    media_type: str

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class IterationRecord:
    """What one pass of the loop tried and achieved."""

    iteration: int
    strategy: CompressionStrategy
    achieved_size: int
    used_fallback: bool = False


@dataclass(frozen=True)
class ProgressEvent:
    """State transition pushed to whatever presentation layer is attached."""

    phase: RunPhase
    iteration: int
    percent: int
    strategy: Optional[CompressionStrategy] = None
    achieved_size: Optional[int] = None
    message: str = ""


@dataclass(frozen=True)
class CompressionResult:
    """Final output of a successful run. Never mutated after construction."""

    original_size: int
    compressed_size: int
    data: bytes
    format: str
    strategy_used: CompressionStrategy
    target_size: Optional[float] = None
    iterations: int = 0
    status: RunPhase = RunPhase.CONVERGED
    history: tuple[IterationRecord, ...] = ()

    @property
    def target_met(self) -> bool:
        """True when the output is at or below the exact target size."""
        if self.target_size is None:
            return True
        return self.compressed_size <= self.target_size

    @property
    def ratio(self) -> float:
        """Compressed size as a fraction of the original."""
        if self.original_size == 0:
            return 1.0
        return self.compressed_size / self.original_size

    @property
    def savings_percent(self) -> float:
        """Size reduction in percent (negative if the output grew)."""
        return (1.0 - self.ratio) * 100.0


# --- Convergence Loop State (LangGraph TypedDict) ---


class ConvergenceState(TypedDict, total=False):
    """LangGraph state for one compression run.

    total=False: all fields optional, enabling incremental building.
    Owned by a single run; never shared across runs.
    """

    # Set by initialization
    raw_bytes: bytes
    category: FileCategory
    original_size: int
    target_size: float
    max_iterations: int

    # Loop tracking
    iteration: int
    last_achieved_size: int
    history: list[IterationRecord]

    # Strategize output
    strategy: CompressionStrategy
    used_fallback: bool

    # Encode output
    best_blob: bytes
    best_media_type: str
    encode_error: Optional[str]

    # Stop decision
    converged: bool
