"""Exception hierarchy for SmartPress.

SmartPressError is the root. All exceptions inherit from it so callers
can catch broad categories or specific types.
"""

from __future__ import annotations

from typing import Optional


class SmartPressError(Exception):
    """Root exception for the entire project."""


# --- Shared errors ---


class ConfigError(SmartPressError):
    """Configuration errors: unknown provider, invalid config values."""


class LLMError(SmartPressError):
    """LLM API call failures: network errors, rate limits, malformed responses."""


# --- Request preconditions (user-correctable, raised before any work) ---


class RequestError(SmartPressError):
    """Base for rejected compression requests."""


class FileTooLargeError(RequestError):
    """Input exceeds the configured maximum file size."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"File is {size} bytes, limit is {limit} bytes")
        self.size = size
        self.limit = limit


class InvalidTargetError(RequestError):
    """Target size is non-numeric, non-positive, or not below the original size."""


# --- Loop errors ---


class OracleError(SmartPressError):
    """Strategy oracle failed or returned a malformed proposal.

    Internal only: the convergence loop always recovers with the
    fallback strategy and never surfaces this to the caller.
    """


class EncodeError(SmartPressError):
    """An encoder could not produce any output (corrupt or undecodable input)."""


class EncodeFailureError(SmartPressError):
    """Terminal run failure caused by an EncodeError."""

    def __init__(self, message: str, iteration: Optional[int] = None) -> None:
        super().__init__(message)
        self.iteration = iteration


class RunCancelledError(SmartPressError):
    """The caller abandoned the run between iterations."""
