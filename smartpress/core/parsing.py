"""Response parsing utilities for extracting JSON from LLM responses.

Pure string manipulation, no external dependencies.
"""

from __future__ import annotations

import json
import re
from typing import Any


def parse_json_from_response(raw_response: str) -> Any:
    """Extract and parse JSON from an LLM response.

    Handles:
    - Markdown fenced blocks (```json ... ```)
    - Plain JSON responses
    - JSON embedded in prose (extracts first valid JSON object/array)

    Raises ValueError if no valid JSON is found.
    """
    if not raw_response:
        raise ValueError("Empty LLM response")

    # Try fenced JSON blocks first
    pattern = r"```(?:json)?\s*\n(.*?)```"
    matches = re.findall(pattern, raw_response, re.DOTALL)
    for match in matches:
        try:
            return json.loads(match.strip())
        except json.JSONDecodeError:
            continue

    # Try parsing the entire response as JSON
    stripped = raw_response.strip()
    try:
        return json.loads(stripped)
    except json.JSONDecodeError:
        pass

    # Try to find JSON object or array embedded in prose
    for pattern in [r"\{[^{}]*(?:\{[^{}]*\}[^{}]*)*\}", r"\[.*?\]"]:
        matches = re.findall(pattern, stripped, re.DOTALL)
        for match in matches:
            try:
                return json.loads(match)
            except json.JSONDecodeError:
                continue

    raise ValueError("No valid JSON found in LLM response")
