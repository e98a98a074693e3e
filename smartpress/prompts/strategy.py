"""Prompt templates for compression strategy selection.

Separated from oracle.py so prompt iteration doesn't touch logic.
"""

from __future__ import annotations

from smartpress.models import StrategyRequest

SYSTEM_PROMPT = """You are an expert compression systems architect. Given a file category, its size, a target size and the outcome of the previous attempt, choose encoder parameters that reach the target in as few attempts as possible.

Rules:
1. If the previous attempt was too large, reduce quality and scale significantly.
2. quality is the lossy encoder fidelity, from 0.05 to 1.0.
3. scale is the resolution factor applied to both image dimensions, from 0.1 to 1.0.
4. For images: quality affects JPEG/WebP quality, scale affects resolution. Quality below 0.85 switches to WebP.
5. For text and archives: method should be 'GZIP'; parameters are not used.
6. For documents: focus on metadata removal and object stream packing.
"""

OUTPUT_FORMAT = """Respond with a single JSON object:

{
    "quality": 0.75,
    "scale": 0.9,
    "bitrate": null,
    "method": "Name of the algorithm",
    "reasoning": "Brief reasoning for these parameters"
}

quality, method and reasoning are required."""


# (payload key, prompt label, render as size)
_FIELDS = (
    ("category", "File Category", False),
    ("originalSizeBytes", "Original Size", True),
    ("targetSizeBytes", "Target Size", True),
    ("iteration", "Iteration", False),
    ("previousAchievedSizeBytes", "Previous Attempt Size", True),
)


def _kb(size: float) -> str:
    return f"{size / 1024:.2f} KB"


def build_user_prompt(request: StrategyRequest) -> str:
    """Render the request's wire payload as prompt lines. Pure function."""
    payload = request.to_payload()
    lines = ["Analyze this compression request:"]
    for key, label, is_size in _FIELDS:
        if key not in payload:
            continue
        value = payload[key]
        lines.append(f"- {label}: {_kb(value) if is_size else value}")
    lines.append("")
    lines.append(OUTPUT_FORMAT)
    return "\n".join(lines)
