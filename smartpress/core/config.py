"""Foundation configuration dataclasses.

LLMConfig is shared by every LLM client implementation.
All behavior-controlling parameters live here, not as magic numbers in code.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class LLMConfig:
    """Vendor-neutral configuration for LLM API calls.

    Controls call parameters only. Auth (API keys) is handled
    by each client implementation, not here.
    """

    max_retries: int = 3
    temperature: float = 0.0
    max_tokens: int = 1024
