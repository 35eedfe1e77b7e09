"""
Container parser contract.

Every parser turns an input document into a ParseResult and never lets an
exception escape: container faults, truncated records and library errors on
hostile input all become ``ParseResult.failed(reason)``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from logging import Logger
from typing import BinaryIO, Iterable, List, Optional, Tuple

from core.config import DEFAULT_MAX_RECORD_BYTES
from core.enums import ContainerFormat, ParseStatus
from core.logging import get_logger
from extractors.callbacks import InputDocument
from extractors.exceptions import ContainerOpenError, RecordReadError

LOGGER = get_logger("extractors.embedded_images.parsers")


@dataclass(frozen=True, slots=True)
class PictureRecord:
    """
    One picture pulled out of a container.

    Attributes:
        data: Picture file bytes
        name_hint: File name the container supplies, if any
        extension: Suggested extension without the dot
    """

    data: bytes
    name_hint: Optional[str] = None
    extension: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Outcome of one parser run: records, no pictures, or failure."""

    status: ParseStatus
    records: Tuple[PictureRecord, ...] = ()
    reason: str = ""

    @classmethod
    def of(cls, records: Iterable[PictureRecord]) -> ParseResult:
        records = tuple(records)
        if not records:
            return cls(ParseStatus.EMPTY)
        return cls(ParseStatus.RECORDS, records)

    @classmethod
    def failed(cls, reason: str) -> ParseResult:
        return cls(ParseStatus.FAILED, reason=reason)


class ContainerParser(ABC):
    """
    Base class for per-format picture parsers.

    Subclasses set ``container_format`` and implement ``_read_pictures``, raising
    ContainerOpenError for structural problems and RecordReadError when a
    picture's bytes cannot be read. A RecordReadError aborts the whole
    document: no partial record list is ever returned.
    """

    container_format: ContainerFormat

    def __init__(self, max_record_bytes: int = DEFAULT_MAX_RECORD_BYTES, logger: Optional[Logger] = None):
        self.max_record_bytes = max_record_bytes
        self.logger = logger or LOGGER

    def parse(self, document: InputDocument) -> ParseResult:
        """Enumerate the pictures in ``document``."""
        label = self.container_format.name
        try:
            with document.open() as stream:
                records = self._read_pictures(stream)
        except RecordReadError as exc:
            self.logger.warning("Aborting %s picture extraction for %s: %s", label, document.name, exc)
            return ParseResult.failed(str(exc))
        except ContainerOpenError as exc:
            self.logger.warning("Could not open %s container %s: %s", label, document.name, exc)
            return ParseResult.failed(str(exc))
        except Exception as exc:
            # Third-party readers raise arbitrary errors on corrupt input
            self.logger.warning(
                "Unexpected %s while parsing %s container %s: %s",
                type(exc).__name__, label, document.name, exc,
                exc_info=True,
            )
            return ParseResult.failed(f"{type(exc).__name__}: {exc}")

        result = ParseResult.of(records)
        if result.status is ParseStatus.EMPTY:
            self.logger.debug("No pictures in %s container %s", label, document.name)
        else:
            self.logger.debug("Found %d pictures in %s container %s", len(result.records), label, document.name)
        return result

    @abstractmethod
    def _read_pictures(self, stream: BinaryIO) -> List[PictureRecord]:
        """Return every picture in the container, in container order."""
        pass
