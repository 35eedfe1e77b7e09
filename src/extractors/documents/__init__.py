"""
Document extractors - content embedded in office documents.

Usage:
    from extractors.documents.embedded_images import EmbeddedImageExtractor
"""

from __future__ import annotations

from .embedded_images import EmbeddedImageExtractor

__all__ = [
    "EmbeddedImageExtractor",
]
