"""
Extractors that derive new case files from ingested documents.

Folder Structure:
- documents/       Document artifacts (embedded_images)
- _shared/         Shared utilities (office_art, ole_helpers)
"""

from .callbacks import (
    CaseFileSystem,
    DerivedFileRegistrar,
    FileTypeDetector,
    IngestJobContext,
    InputDocument,
)
from .exceptions import (
    ClassificationError,
    ContainerOpenError,
    DirectoryCreateError,
    ExtractorError,
    RecordReadError,
    RegistrationError,
    WriteError,
)
from . import documents

__all__ = [
    'CaseFileSystem',
    'DerivedFileRegistrar',
    'FileTypeDetector',
    'IngestJobContext',
    'InputDocument',
    'ExtractorError',
    'ClassificationError',
    'ContainerOpenError',
    'RecordReadError',
    'DirectoryCreateError',
    'WriteError',
    'RegistrationError',
    'documents',
]
