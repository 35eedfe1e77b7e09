"""
Collaborator interfaces supplied by the host ingest framework.

The embedded image extractor never reaches into case storage, the file type
detector or the job scheduler directly; the host hands it objects satisfying
these protocols. Implementations can be plain Python objects (for testing) or
adapters over the real case database.
"""

from __future__ import annotations

from typing import Any, BinaryIO, Protocol, Sequence, runtime_checkable


@runtime_checkable
class InputDocument(Protocol):
    """
    A document under analysis.

    Attributes:
        id: Stable identifier within the case (numeric or text)
        name: File name as found in the evidence

    The byte stream returned by ``open()`` must be seekable. It is borrowed for
    the duration of one extraction pass and closed by the caller's ``with``.
    """

    id: Any
    name: str

    def open(self) -> BinaryIO:
        ...


class FileTypeDetector(Protocol):
    """Content type detection (already computed by the host's detector)."""

    def get_file_type(self, document: InputDocument) -> str:
        """
        Return the MIME type of ``document``.

        Raises:
            ClassificationError: If detection failed
        """
        ...


class CaseFileSystem(Protocol):
    """Case file hierarchy lookups."""

    def has_derived_children(self, document: InputDocument) -> bool:
        """
        Return True if ``document`` already has derived files registered.

        Raises:
            LookupError: If the case database could not be queried
        """
        ...


class DerivedFileRegistrar(Protocol):
    """File manager that persists derived files in the case."""

    def register_derived_file(self, descriptor: Any) -> Any:
        """
        Register an extracted file and return the persisted handle.

        Raises:
            RegistrationError: If the case rejected the file
        """
        ...


class IngestJobContext(Protocol):
    """Ingest job and event services."""

    def notify_new_content(self, document: InputDocument) -> None:
        """Announce that ``document`` gained derived content."""
        ...

    def add_files_to_job(self, handles: Sequence[Any]) -> None:
        """Queue newly registered derived files for the rest of the ingest pipeline."""
        ...
