"""
Core Enumerations

Centralized enum definitions for consistent typing across the codebase.
Using StrEnum (Python 3.11+) for string-based enums that serialize naturally.
"""

from enum import StrEnum


class ContainerFormat(StrEnum):
    """Container formats that support embedded picture extraction, keyed by MIME type."""

    DOC = "application/msword"
    DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    PPT = "application/vnd.ms-powerpoint"
    PPTX = "application/vnd.openxmlformats-officedocument.presentationml.presentation"
    XLS = "application/vnd.ms-excel"
    XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

    @property
    def mime_type(self) -> str:
        return self.value

    @classmethod
    def compound_binary_formats(cls) -> tuple["ContainerFormat", ...]:
        """Return the legacy OLE compound-binary formats."""
        return (cls.DOC, cls.PPT, cls.XLS)

    @classmethod
    def zip_package_formats(cls) -> tuple["ContainerFormat", ...]:
        """Return the zip-based Office Open XML formats."""
        return (cls.DOCX, cls.PPTX, cls.XLSX)


class ExtractionOutcome(StrEnum):
    """Terminal states of one document's extraction pass."""

    ALREADY_DONE = "already_done"
    UNSUPPORTED = "unsupported"
    NO_IMAGES = "no_images"
    PARSE_FAILED = "parse_failed"
    EXTRACTED = "extracted"
    SKIPPED = "skipped"  # Sentinel lookup failed; document left untouched
    OUTPUT_FAILED = "output_failed"  # Per-document output directory could not be created


class ParseStatus(StrEnum):
    """Outcome of a container parser run."""

    RECORDS = "records"
    EMPTY = "empty"
    FAILED = "failed"


class EncodingType(StrEnum):
    """On-disk encodings for derived files."""

    NONE = "none"
    XOR1 = "xor1"
