"""Caller-facing API.

start_run() is the single entry point for one compression. The
CompressionSession wraps it for interactive front ends: it tracks the
latest run's progress and result, and ignores anything reported by runs
that were superseded or reset.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from smartpress.classifier import classify
from smartpress.config import CompressionConfig
from smartpress.core.errors import FileTooLargeError, RunCancelledError, SmartPressError
from smartpress.loop import CancelToken, EventCallback, check_target, run_convergence
from smartpress.models import CompressionResult, ProgressEvent, RunPhase
from smartpress.oracle import StrategyOracle

logger = logging.getLogger(__name__)

__all__ = [
    "CancelToken",
    "CompressionSession",
    "start_run",
    "validate_request",
]


def validate_request(
    size: int,
    target_size: Any,
    config: CompressionConfig = CompressionConfig(),
) -> None:
    """Synchronous precondition check, run before any asynchronous work.

    Raises:
        FileTooLargeError: size exceeds config.max_file_size_bytes.
        InvalidTargetError: target is not a positive number below size.
    """
    if size > config.max_file_size_bytes:
        raise FileTooLargeError(size, config.max_file_size_bytes)
    check_target(target_size, size)


async def start_run(
    data: bytes,
    media_type: str,
    target_size: float,
    *,
    oracle: Optional[StrategyOracle] = None,
    config: Optional[CompressionConfig] = None,
    on_event: Optional[EventCallback] = None,
    cancel_token: Optional[CancelToken] = None,
) -> CompressionResult:
    """Compress data toward target_size bytes.

    Args:
        data: Input file contents. Never modified.
        media_type: Declared media type, used for classification.
        target_size: Desired output size in bytes.
        oracle: Strategy source. Default: HeuristicOracle.
        config: Limits and loop settings.
        on_event: Receives ProgressEvents (iteration, percent, phase).
        cancel_token: Cancel between iterations.

    Raises:
        FileTooLargeError, InvalidTargetError: Rejected before any work.
        EncodeFailureError: The encoder produced no output.
        RunCancelledError: The run was abandoned.
    """
    config = config or CompressionConfig()
    data = bytes(data)
    validate_request(len(data), target_size, config)

    category = classify(media_type)
    logger.info(
        "Compressing %d bytes of %s (%s) toward %g bytes",
        len(data), media_type or "unknown type", category.value, target_size,
    )
    return await run_convergence(
        data,
        category,
        len(data),
        target_size,
        oracle=oracle,
        config=config,
        on_event=on_event,
        cancel_token=cancel_token,
        media_type=media_type,
    )


class CompressionSession:
    """Holds the outcome of the most recent run for a front end.

    Only the current run may update the session. Starting a new run or
    calling reset() cancels the previous one; its late events and its
    result are dropped. A failed run keeps the previous result.
    """

    def __init__(
        self,
        oracle: Optional[StrategyOracle] = None,
        config: Optional[CompressionConfig] = None,
        listener: Optional[EventCallback] = None,
    ) -> None:
        self.oracle = oracle
        self.config = config or CompressionConfig()
        self.listener = listener

        self.phase = RunPhase.IDLE
        self.iteration = 0
        self.progress = 0
        self.result: Optional[CompressionResult] = None
        self.error: Optional[str] = None

        self._run_id = 0
        self._token: Optional[CancelToken] = None

    @property
    def is_running(self) -> bool:
        return self.phase == RunPhase.RUNNING

    def _begin(self) -> tuple[int, CancelToken]:
        if self._token is not None:
            self._token.cancel()
        self._run_id += 1
        self._token = CancelToken()
        return self._run_id, self._token

    def _make_listener(self, run_id: int) -> EventCallback:
        def on_event(event: ProgressEvent) -> None:
            if run_id != self._run_id:
                return
            self.phase = event.phase
            self.iteration = event.iteration
            self.progress = event.percent
            if self.listener is not None:
                self.listener(event)

        return on_event

    async def compress(
        self,
        data: bytes,
        media_type: str,
        target_size: float,
    ) -> Optional[CompressionResult]:
        """Run a compression, superseding any run still in flight.

        Returns the result, or None if this run was itself superseded.

        Raises:
            SmartPressError: Precondition or encode failures, after
                recording them in self.error.
        """
        run_id, token = self._begin()
        self.error = None
        self.iteration = 0
        try:
            result = await start_run(
                data,
                media_type,
                target_size,
                oracle=self.oracle,
                config=self.config,
                on_event=self._make_listener(run_id),
                cancel_token=token,
            )
        except RunCancelledError:
            logger.debug("Run %d abandoned", run_id)
            return None
        except SmartPressError as e:
            if run_id != self._run_id:
                return None
            self.error = str(e)
            self.phase = RunPhase.FAILED
            self.progress = 0
            raise

        if run_id != self._run_id:
            return None
        self.result = result
        self.phase = result.status
        self.progress = 100
        return result

    def reset(self) -> None:
        """Abandon any run in flight and clear everything."""
        if self._token is not None:
            self._token.cancel()
            self._token = None
        self._run_id += 1
        self.phase = RunPhase.IDLE
        self.iteration = 0
        self.progress = 0
        self.result = None
        self.error = None
