"""Media type classification.

Maps a declared media type to a FileCategory. First match wins;
the order of _RULES is the priority order.
"""

from __future__ import annotations

import mimetypes
from typing import Callable, Optional

from smartpress.models import FileCategory

_ARCHIVE_MARKERS = ("zip", "tar", "rar")
_TEXT_MARKERS = ("word", "document")

_RULES: list[tuple[Callable[[str], bool], FileCategory]] = [
    (lambda t: t.startswith("image/"), FileCategory.IMAGE),
    (lambda t: t.startswith("video/"), FileCategory.VIDEO),
    (lambda t: t.startswith("audio/"), FileCategory.AUDIO),
    (lambda t: t == "application/pdf", FileCategory.DOCUMENT),
    (lambda t: any(m in t for m in _ARCHIVE_MARKERS), FileCategory.ARCHIVE),
    (
        lambda t: t.startswith("text/") or any(m in t for m in _TEXT_MARKERS),
        FileCategory.TEXT,
    ),
]


def classify(media_type: Optional[str]) -> FileCategory:
    """Return the category for a declared media type. Never raises."""
    normalized = (media_type or "").strip().lower()
    if not normalized:
        return FileCategory.UNKNOWN
    for predicate, category in _RULES:
        if predicate(normalized):
            return category
    return FileCategory.UNKNOWN


def guess_media_type(filename: str) -> str:
    """Best guess at the declared media type for a file name ("" if unknown)."""
    media_type, _ = mimetypes.guess_type(filename)
    return media_type or ""
