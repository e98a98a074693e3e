"""SmartPress: compress any file toward a target byte size."""

from smartpress.classifier import classify
from smartpress.models import CompressionResult, CompressionStrategy, FileCategory, RunPhase
from smartpress.runner import CancelToken, CompressionSession, start_run, validate_request

__version__ = "0.1.0"

__all__ = [
    "CancelToken",
    "CompressionResult",
    "CompressionSession",
    "CompressionStrategy",
    "FileCategory",
    "RunPhase",
    "classify",
    "start_run",
    "validate_request",
]
