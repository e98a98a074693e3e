"""Generic lossless byte-stream compression (gzip).

Used for text and archives. Consumes no strategy parameters.
"""

from __future__ import annotations

import gzip
from dataclasses import dataclass

from smartpress.encoders import encoder
from smartpress.models import CompressionStrategy, EncodedOutput, FileCategory

GZIP_MEDIA_TYPE = "application/gzip"
_COMPRESS_LEVEL = 9


@encoder(FileCategory.TEXT, FileCategory.ARCHIVE)
@dataclass(frozen=True)
class GzipEncoder:
    category: FileCategory = FileCategory.TEXT

    def __call__(self, data: bytes, strategy: CompressionStrategy) -> EncodedOutput:
        # mtime=0 keeps the header, and so the output, deterministic.
        compressed = gzip.compress(data, compresslevel=_COMPRESS_LEVEL, mtime=0)
        return EncodedOutput(data=compressed, media_type=GZIP_MEDIA_TYPE)


def decompress(data: bytes) -> bytes:
    """Invert GzipEncoder."""
    return gzip.decompress(data)
