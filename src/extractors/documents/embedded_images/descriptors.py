"""
Derived-file descriptors and their registration.

A descriptor is built for every picture that reached disk and handed to the
host's registrar. A rejected registration drops that picture only; the parent
document is announced once if anything was registered.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import Logger
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

from core.config import normalize_relative_dir
from core.enums import EncodingType
from core.logging import get_logger
from extractors.callbacks import DerivedFileRegistrar, IngestJobContext, InputDocument
from extractors.exceptions import RegistrationError

LOGGER = get_logger("extractors.embedded_images.descriptors")


@dataclass(frozen=True, slots=True)
class ExtractedImageDescriptor:
    """
    Derived file handed to the registrar.

    Attributes:
        file_name: Name unique within the parent's directory
        relative_path: ``/<module dir>/<parent unique name>/<file name>``
        size: Decoded picture size in bytes
        parent: Source document
        local_path: Encoded file on disk, for diagnostics
    """

    file_name: str
    relative_path: str
    size: int
    parent: InputDocument = field(compare=False)
    tool_name: str = ""
    tool_version: str = ""
    local_path: Optional[Path] = None
    # Office containers carry no per-picture timestamps
    ctime: int = 0
    crtime: int = 0
    atime: int = 0
    mtime: int = 0
    is_file: bool = True
    encoding: EncodingType = EncodingType.XOR1


def build_relative_path(relative_dir: str, parent_name: str, file_name: str) -> str:
    """Join the case-relative path of a picture with forward slashes."""
    parts = [normalize_relative_dir(relative_dir), parent_name, file_name]
    return "/" + "/".join(part for part in parts if part)


class DescriptorEmitter:
    """Registers descriptors and notifies the ingest job about new content."""

    def __init__(
        self,
        registrar: DerivedFileRegistrar,
        job: IngestJobContext,
        tool_name: str,
        tool_version: str,
        logger: Optional[Logger] = None,
    ):
        self._registrar = registrar
        self._job = job
        self.tool_name = tool_name
        self.tool_version = tool_version
        self._logger = logger or LOGGER

    def describe(
        self,
        document: InputDocument,
        relative_dir: str,
        parent_name: str,
        file_name: str,
        size: int,
        local_path: Optional[Path] = None,
    ) -> ExtractedImageDescriptor:
        return ExtractedImageDescriptor(
            file_name=file_name,
            relative_path=build_relative_path(relative_dir, parent_name, file_name),
            size=size,
            parent=document,
            tool_name=self.tool_name,
            tool_version=self.tool_version,
            local_path=local_path,
        )

    def emit(
        self,
        document: InputDocument,
        descriptors: Sequence[ExtractedImageDescriptor],
    ) -> List[Tuple[ExtractedImageDescriptor, Any]]:
        """
        Register every descriptor, then announce the parent once.

        Returns:
            (descriptor, handle) for each successful registration
        """
        registered: List[Tuple[ExtractedImageDescriptor, Any]] = []
        for descriptor in descriptors:
            try:
                handle = self._registrar.register_derived_file(descriptor)
            except RegistrationError as exc:
                self._logger.error(
                    "Could not register %s derived from %s: %s", descriptor.relative_path, document.name, exc
                )
                continue
            registered.append((descriptor, handle))

        if registered:
            self._job.notify_new_content(document)
            self._job.add_files_to_job([handle for _, handle in registered])
        return registered
