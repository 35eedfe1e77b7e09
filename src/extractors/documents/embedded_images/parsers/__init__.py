"""Per-format container parsers for embedded picture extraction."""

from __future__ import annotations

from logging import Logger
from typing import Dict, Optional

from core.config import DEFAULT_MAX_RECORD_BYTES
from core.enums import ContainerFormat

from .base import ContainerParser, ParseResult, PictureRecord
from .ooxml import OfficeOpenXmlParser
from .slideshow import SlideshowParser
from .word import WordDocumentParser
from .workbook import WorkbookParser


def build_parsers(
    max_record_bytes: int = DEFAULT_MAX_RECORD_BYTES,
    logger: Optional[Logger] = None,
) -> Dict[ContainerFormat, ContainerParser]:
    """Return one parser per supported container format."""
    parsers: Dict[ContainerFormat, ContainerParser] = {
        ContainerFormat.DOC: WordDocumentParser(max_record_bytes, logger),
        ContainerFormat.PPT: SlideshowParser(max_record_bytes, logger),
        ContainerFormat.XLS: WorkbookParser(max_record_bytes, logger),
    }
    for container_format in ContainerFormat.zip_package_formats():
        parsers[container_format] = OfficeOpenXmlParser(container_format, max_record_bytes, logger)
    return parsers


__all__ = [
    "ContainerParser",
    "OfficeOpenXmlParser",
    "ParseResult",
    "PictureRecord",
    "SlideshowParser",
    "WordDocumentParser",
    "WorkbookParser",
    "build_parsers",
]
