"""Human-facing size helpers: formatting, parsing and target suggestions."""

from __future__ import annotations

import math
import re
from pathlib import PurePath
from typing import Union

from smartpress.core.errors import InvalidTargetError

UNITS = {"B": 1, "KB": 1024, "MB": 1024 * 1024}

SUGGESTED_TARGET_FRACTION = 0.4
AGGRESSIVE_TARGET_FRACTION = 0.05

_SIZE_PATTERN = re.compile(r"^\s*([0-9]*\.?[0-9]+)\s*([a-zA-Z]*)\s*$")

_IMAGE_EXTENSIONS = {
    "image/webp": ".webp",
    "image/jpeg": ".jpg",
    "image/png": ".png",
}


def format_size(num_bytes: float) -> str:
    """'512 B', '1.5 KB', '2.0 MB'."""
    if num_bytes is None or math.isnan(num_bytes):
        return "0 B"
    if num_bytes < 1024:
        return f"{num_bytes:.0f} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / (1024 * 1024):.1f} MB"


def parse_size(value: Union[str, float], unit: str = "B") -> float:
    """Convert a value in B, KB or MB (1024-based) to bytes.

    Raises:
        InvalidTargetError: If the value is not a number or the unit is unknown.
    """
    multiplier = UNITS.get(unit.strip().upper())
    if multiplier is None:
        raise InvalidTargetError(f"Unknown size unit '{unit}'. Valid: {list(UNITS)}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidTargetError(f"Please enter a valid target size, got {value!r}") from None
    if math.isnan(number):
        raise InvalidTargetError("Please enter a valid target size, got NaN")
    return number * multiplier


def parse_target(text: str) -> float:
    """Parse strings such as '500KB', '1.5 MB' or '2048' into bytes."""
    match = _SIZE_PATTERN.match(text or "")
    if not match:
        raise InvalidTargetError(f"Please enter a valid target size, got {text!r}")
    value, unit = match.groups()
    return parse_size(value, unit or "B")


def suggest_target(original_size: int) -> tuple[str, str]:
    """Default target (40% of the original) as (value, unit) for display."""
    suggested = original_size * SUGGESTED_TARGET_FRACTION
    if suggested > UNITS["MB"]:
        return f"{suggested / UNITS['MB']:.1f}", "MB"
    if suggested > UNITS["KB"]:
        return f"{suggested / UNITS['KB']:.0f}", "KB"
    return f"{suggested:.0f}", "B"


def is_aggressive_target(original_size: int, target_size: float) -> bool:
    """True when the target asks for less than 5% of the original."""
    return target_size < original_size * AGGRESSIVE_TARGET_FRACTION


def output_filename(name: str, media_type: str = "") -> str:
    """Download name for a result: 'smart_' prefix, extension matching the output."""
    path = PurePath(name)
    if media_type == "application/gzip":
        return f"smart_{path.name}.gz"
    extension = _IMAGE_EXTENSIONS.get(media_type)
    suffix = path.suffix.lower().replace(".jpeg", ".jpg")
    if extension and suffix != extension:
        return f"smart_{path.stem}{extension}"
    return f"smart_{path.name}"
