"""
Output sink for extracted pictures.

Each parent document gets its own directory under the module output root,
named by the document's unique name. The directory is created on the first
write only, so documents without pictures leave nothing on disk. Every
picture goes through the XOR1 encoding writer.
"""

from __future__ import annotations

from logging import Logger
from pathlib import Path
from typing import Optional

from core.config import ModuleOutputConfig
from core.encoding import EncodedFileWriter
from core.logging import get_logger
from extractors.exceptions import DirectoryCreateError, WriteError

LOGGER = get_logger("extractors.embedded_images.output")


class DocumentOutput:
    """Writer for one parent document's output directory."""

    def __init__(self, directory: Path, logger: Optional[Logger] = None):
        self.directory = directory
        self._logger = logger or LOGGER
        self._ready = False

    def ensure_directory(self) -> None:
        """
        Create the directory and missing ancestors, once.

        Raises:
            DirectoryCreateError: If the directory cannot be created
        """
        if self._ready:
            return
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise DirectoryCreateError(f"cannot create output directory {self.directory}: {exc}") from exc
        self._ready = True

    def write(self, file_name: str, data: bytes) -> Path:
        """
        Encode ``data`` into ``file_name`` inside the document directory.

        Returns:
            Absolute path of the written file

        Raises:
            DirectoryCreateError: If the directory cannot be created
            WriteError: If the file cannot be written; partial output is removed
        """
        self.ensure_directory()
        path = self.directory / file_name
        try:
            with EncodedFileWriter(path) as writer:
                writer.write(data)
        except OSError as exc:
            try:
                path.unlink(missing_ok=True)
            except OSError as cleanup_exc:
                self._logger.debug("Could not remove partial file %s: %s", path, cleanup_exc)
            raise WriteError(f"cannot write {path}: {exc}") from exc
        self._logger.debug("Wrote %d bytes to %s", len(data), path)
        return path


class EncodedOutputSink:
    """Resolves per-document output directories under the module output root."""

    def __init__(self, output: ModuleOutputConfig, logger: Optional[Logger] = None):
        self.output = output
        self._logger = logger or LOGGER

    def directory_for(self, parent_name: str) -> Path:
        return self.output.absolute_dir / parent_name

    def output_exists(self, parent_name: str) -> bool:
        return self.directory_for(parent_name).is_dir()

    def for_document(self, parent_name: str) -> DocumentOutput:
        return DocumentOutput(self.directory_for(parent_name), self._logger)
