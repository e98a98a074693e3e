"""PDF optimization with pikepdf.

Strips descriptive metadata and rewrites the file with object streams.
Page content is never touched. Any failure yields the original bytes.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass

import pikepdf

from smartpress.encoders import encoder
from smartpress.models import CompressionStrategy, EncodedOutput, FileCategory

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
STRIPPED_FIELDS = ("/Title", "/Author", "/Creator", "/Producer")


@encoder(FileCategory.DOCUMENT)
@dataclass(frozen=True)
class PdfEncoder:
    category: FileCategory = FileCategory.DOCUMENT

    def __call__(self, data: bytes, strategy: CompressionStrategy) -> EncodedOutput:
        try:
            optimized = self._optimize(data)
        except Exception as e:
            logger.warning("PDF optimization failed, returning input unchanged: %s", e)
            return EncodedOutput(data=data, media_type=PDF_MEDIA_TYPE)
        return EncodedOutput(data=optimized, media_type=PDF_MEDIA_TYPE)

    @staticmethod
    def _optimize(data: bytes) -> bytes:
        out = io.BytesIO()
        with pikepdf.open(io.BytesIO(data)) as pdf:
            info = pdf.docinfo
            for key in STRIPPED_FIELDS:
                if key in info:
                    del info[key]
            pdf.save(
                out,
                compress_streams=True,
                object_stream_mode=pikepdf.ObjectStreamMode.generate,
                deterministic_id=True,
            )
        return out.getvalue()
