"""Pass-through encoder for categories without an in-scope codec.

Video and audio would need a transcoding engine; unknown types have no
safe transformation. All of them return the input unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass

from smartpress.encoders import encoder
from smartpress.models import CompressionStrategy, EncodedOutput, FileCategory


@encoder(FileCategory.VIDEO, FileCategory.AUDIO, FileCategory.UNKNOWN)
@dataclass(frozen=True)
class PassthroughEncoder:
    category: FileCategory = FileCategory.UNKNOWN

    def __call__(self, data: bytes, strategy: CompressionStrategy) -> EncodedOutput:
        # Empty media type: the output keeps the declared type of the input.
        return EncodedOutput(data=data, media_type="")
