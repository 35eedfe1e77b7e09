"""Maps detected MIME types to the container formats with a picture parser."""

from __future__ import annotations

from logging import Logger
from typing import Optional

from core.enums import ContainerFormat
from core.logging import get_logger
from extractors.callbacks import FileTypeDetector, InputDocument
from extractors.exceptions import ClassificationError

LOGGER = get_logger("extractors.embedded_images.classifier")

_FORMATS_BY_MIME = {fmt.mime_type: fmt for fmt in ContainerFormat}


def classify_mime_type(mime_type: Optional[str]) -> Optional[ContainerFormat]:
    """Return the format whose MIME type equals ``mime_type`` exactly, else None."""
    if not mime_type:
        return None
    return _FORMATS_BY_MIME.get(mime_type)


class FormatClassifier:
    """Classifies documents by the MIME type the host's detector already computed."""

    def __init__(self, detector: FileTypeDetector, logger: Optional[Logger] = None):
        self._detector = detector
        self._logger = logger or LOGGER

    def classify(self, document: InputDocument) -> Optional[ContainerFormat]:
        """
        Return the document's container format, or None when unsupported.

        A detector failure is logged and treated as unsupported.
        """
        try:
            mime_type = self._detector.get_file_type(document)
        except ClassificationError as exc:
            self._logger.error("File type detection failed for %s (id %s): %s", document.name, document.id, exc)
            return None
        return classify_mime_type(mime_type)
