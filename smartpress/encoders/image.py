"""Image re-encoding with Pillow.

Scale shrinks both dimensions; quality drives format choice and the
lossy encoder's fidelity. EXIF and other ancillary chunks are dropped,
as a canvas re-encode would.
"""

from __future__ import annotations

import io
import logging
import math
from dataclasses import dataclass, field

from PIL import Image, UnidentifiedImageError

from smartpress.config import ImageConfig
from smartpress.core.errors import EncodeError
from smartpress.encoders import encoder
from smartpress.models import CompressionStrategy, EncodedOutput, FileCategory

logger = logging.getLogger(__name__)

_MEDIA_TYPES = {
    "WEBP": "image/webp",
    "PNG": "image/png",
    "JPEG": "image/jpeg",
}


def scaled_dimensions(width: int, height: int, scale: float) -> tuple[int, int]:
    """Multiply both dimensions by scale, rounding down, never below 1px."""
    return max(1, math.floor(width * scale)), max(1, math.floor(height * scale))


def select_format(quality: float, source_format: str, config: ImageConfig) -> str:
    """Pick the output format for a quality level and source format."""
    if quality < config.lossy_threshold:
        return "WEBP"
    if source_format in config.lossless_formats:
        return "PNG"
    return "JPEG"


def _has_alpha(img: Image.Image) -> bool:
    return img.mode in ("RGBA", "LA", "PA") or (
        img.mode == "P" and "transparency" in img.info
    )


def _prepare_mode(img: Image.Image, fmt: str) -> Image.Image:
    """Convert to a pixel mode the target format can store."""
    if fmt == "JPEG":
        if _has_alpha(img):
            rgba = img.convert("RGBA")
            background = Image.new("RGB", rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.split()[-1])
            return background
        if img.mode not in ("RGB", "L"):
            return img.convert("RGB")
        return img
    if fmt == "WEBP":
        return img.convert("RGBA" if _has_alpha(img) else "RGB")
    # PNG
    if img.mode in ("CMYK", "YCbCr", "LAB", "HSV", "F"):
        return img.convert("RGB")
    return img


def _pillow_quality(quality: float) -> int:
    return max(1, min(100, round(quality * 100)))


@encoder(FileCategory.IMAGE)
@dataclass(frozen=True)
class ImageEncoder:
    category: FileCategory = FileCategory.IMAGE
    config: ImageConfig = field(default_factory=ImageConfig)

    def __call__(self, data: bytes, strategy: CompressionStrategy) -> EncodedOutput:
        try:
            img = Image.open(io.BytesIO(data))
            img.load()
        except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
            raise EncodeError(f"Failed to load image source: {e}") from e

        source_format = (img.format or "").upper()
        original_size = img.size
        size = scaled_dimensions(img.width, img.height, strategy.effective_scale)
        if size != original_size:
            img = img.resize(size, Image.Resampling.LANCZOS)

        fmt = select_format(strategy.quality, source_format, self.config)
        img = _prepare_mode(img, fmt)

        if fmt == "PNG":
            save_kwargs = {"optimize": True}
        elif fmt == "WEBP":
            save_kwargs = {"quality": _pillow_quality(strategy.quality), "method": 4}
        else:
            save_kwargs = {"quality": _pillow_quality(strategy.quality), "optimize": True}

        buf = io.BytesIO()
        try:
            img.save(buf, format=fmt, **save_kwargs)
        except (OSError, ValueError) as e:
            raise EncodeError(f"Image encoding failed: {e}") from e

        logger.debug(
            "Encoded %s %dx%d -> %s %dx%d (%d bytes)",
            source_format or "?", *original_size, fmt, *size, buf.tell(),
        )
        return EncodedOutput(data=buf.getvalue(), media_type=_MEDIA_TYPES[fmt])
