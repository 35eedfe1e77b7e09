"""
Embedded image extraction from Office documents.

Supports Word, PowerPoint and Excel in both the 97-2003 binary formats and
Office Open XML. See ``extractor.EmbeddedImageExtractor`` for the entry point.
"""

from .classifier import FormatClassifier, classify_mime_type
from .descriptors import DescriptorEmitter, ExtractedImageDescriptor, build_relative_path
from .documents import InMemoryDocument, LocalFileDocument, unique_name
from .extractor import EmbeddedImageExtractor, ExtractionResult
from .output import EncodedOutputSink

__all__ = [
    "DescriptorEmitter",
    "EmbeddedImageExtractor",
    "EncodedOutputSink",
    "ExtractedImageDescriptor",
    "ExtractionResult",
    "FormatClassifier",
    "InMemoryDocument",
    "LocalFileDocument",
    "build_relative_path",
    "classify_mime_type",
    "unique_name",
]
