"""OCR collaborators that feed screenshot text into the parser."""

from .providers import (
    GoogleVisionProvider,
    OcrProvider,
    OcrSpaceProvider,
    OpenAIVisionProvider,
    StatementImage,
    default_providers,
    extract_text,
    load_image,
)

__all__ = [
    "GoogleVisionProvider",
    "OcrProvider",
    "OcrSpaceProvider",
    "OpenAIVisionProvider",
    "StatementImage",
    "default_providers",
    "extract_text",
    "load_image",
]
