# smartpress/encoders/__init__.py

from __future__ import annotations

from dataclasses import replace
from typing import Optional, Protocol, runtime_checkable

from smartpress.config import ImageConfig
from smartpress.models import CompressionStrategy, EncodedOutput, FileCategory


@runtime_checkable
class Encoder(Protocol):
    """Protocol for a category-specific encoder.

    Encoders are deterministic and never mutate the input bytes.
    They may raise EncodeError when no output can be produced at all.
    """

    @property
    def category(self) -> FileCategory:
        """Category this encoder is registered for."""
        ...

    def __call__(self, data: bytes, strategy: CompressionStrategy) -> EncodedOutput:
        """Encode data with the given strategy."""
        ...


# --- Registry ---

_ENCODERS: dict[FileCategory, Encoder] = {}


def register_encoder(instance: Encoder) -> Encoder:
    """Register an encoder instance under its category."""
    _ENCODERS[instance.category] = instance
    return instance


def get_registered_encoders() -> dict[FileCategory, Encoder]:
    """Return all registered encoders. The convergence loop calls this."""
    return dict(_ENCODERS)


def encoder(*categories: FileCategory):
    """Decorator for registering an encoder class under one or more categories.

    Usage:
        @encoder(FileCategory.TEXT, FileCategory.ARCHIVE)
        class GzipEncoder:
            def __init__(self, category): ...
            def __call__(self, data, strategy) -> EncodedOutput:
                ...

    A new category only needs a new module and an import line below.
    """
    def decorator(cls):
        for category in categories:
            register_encoder(cls(category))
        return cls
    return decorator


def get_encoder(
    category: FileCategory,
    registry: dict[FileCategory, Encoder] | None = None,
    image_config: Optional[ImageConfig] = None,
) -> Encoder:
    """Look up the encoder for a category; unregistered categories pass through.

    When image_config is given, an encoder carrying an ImageConfig is
    returned as a copy bound to it. The registered instance is left as is.
    """
    encoders = _ENCODERS if registry is None else registry
    found = encoders.get(category)
    if found is None:
        from smartpress.encoders.passthrough import PassthroughEncoder

        return PassthroughEncoder(category)
    if image_config is not None and isinstance(getattr(found, "config", None), ImageConfig):
        return replace(found, config=image_config)
    return found


def encode(
    category: FileCategory,
    data: bytes,
    strategy: CompressionStrategy,
    registry: dict[FileCategory, Encoder] | None = None,
    image_config: Optional[ImageConfig] = None,
) -> EncodedOutput:
    """Dispatch to the encoder for category. The convergence loop calls this."""
    return get_encoder(category, registry, image_config)(data, strategy)


# --- Explicit imports to trigger registration ---
# Each encoder module uses @encoder() which registers on import.
# New encoders: add an import line here.
from smartpress.encoders import image  # noqa: E402,F401  registers ImageEncoder
from smartpress.encoders import generic  # noqa: E402,F401  registers GzipEncoder
from smartpress.encoders import document  # noqa: E402,F401  registers PdfEncoder
from smartpress.encoders import passthrough  # noqa: E402,F401  registers PassthroughEncoder
