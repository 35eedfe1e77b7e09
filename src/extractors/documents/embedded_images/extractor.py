"""
Embedded image extraction coordinator.

Per document:
    1. Classify the detected MIME type; unsupported documents stop here
    2. Skip documents already processed (derived children plus output folder)
    3. Parse the container into picture records
    4. Write each picture, XOR1-encoded, under ``<module output>/<name>_<id>/``
    5. Register a derived file per written picture
    6. Announce the parent once and queue the new files

Parser faults end as PARSE_FAILED and never reach the caller. Write and
registration faults drop the affected picture only; a per-document folder
that cannot be created ends the document as OUTPUT_FAILED.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import Logger
from typing import Any, Dict, List, Mapping, Optional, Tuple

from core.app_version import get_app_version
from core.config import DEFAULT_MAX_RECORD_BYTES, DEFAULT_MODULE_NAME, EmbeddedImagesConfig, ModuleOutputConfig
from core.enums import ContainerFormat, ExtractionOutcome, ParseStatus
from core.logging import get_logger
from extractors.callbacks import (
    CaseFileSystem,
    DerivedFileRegistrar,
    FileTypeDetector,
    IngestJobContext,
    InputDocument,
)
from extractors.exceptions import DirectoryCreateError, WriteError

from .classifier import FormatClassifier
from .descriptors import DescriptorEmitter, ExtractedImageDescriptor
from .documents import unique_name
from .naming import FileNamer
from .output import EncodedOutputSink
from .parsers import ContainerParser, build_parsers

LOGGER = get_logger("extractors.embedded_images.extractor")


@dataclass(slots=True)
class ExtractionResult:
    """
    What one ``extract`` call did.

    Attributes:
        outcome: Terminal state reached
        container_format: Classified format, None when unsupported or skipped early
        descriptors: Descriptors the registrar accepted
        handles: Handles the registrar returned, in the same order
        failed_writes: File names whose bytes could not be written
    """

    outcome: ExtractionOutcome
    container_format: Optional[ContainerFormat] = None
    descriptors: List[ExtractedImageDescriptor] = field(default_factory=list)
    handles: List[Any] = field(default_factory=list)
    failed_writes: List[str] = field(default_factory=list)


class EmbeddedImageExtractor:
    """Extracts pictures embedded in Office documents into derived files."""

    def __init__(
        self,
        file_type_detector: FileTypeDetector,
        case_fs: CaseFileSystem,
        registrar: DerivedFileRegistrar,
        job: IngestJobContext,
        output: ModuleOutputConfig,
        *,
        max_record_bytes: int = DEFAULT_MAX_RECORD_BYTES,
        tool_name: str = DEFAULT_MODULE_NAME,
        tool_version: Optional[str] = None,
        parsers: Optional[Mapping[ContainerFormat, ContainerParser]] = None,
        logger: Optional[Logger] = None,
    ):
        self._logger = logger or LOGGER
        self._case_fs = case_fs
        self._output = output
        self._classifier = FormatClassifier(file_type_detector, self._logger)
        self._sink = EncodedOutputSink(output, self._logger)
        self._emitter = DescriptorEmitter(
            registrar,
            job,
            tool_name=tool_name,
            tool_version=tool_version or get_app_version(),
            logger=self._logger,
        )
        self._parsers: Dict[ContainerFormat, ContainerParser] = dict(
            parsers if parsers is not None else build_parsers(max_record_bytes, self._logger)
        )

    @classmethod
    def from_config(
        cls,
        config: EmbeddedImagesConfig,
        output: ModuleOutputConfig,
        file_type_detector: FileTypeDetector,
        case_fs: CaseFileSystem,
        registrar: DerivedFileRegistrar,
        job: IngestJobContext,
        logger: Optional[Logger] = None,
    ) -> EmbeddedImageExtractor:
        """Build an extractor from the ``embedded_images`` config section."""
        return cls(
            file_type_detector,
            case_fs,
            registrar,
            job,
            output,
            max_record_bytes=config.max_record_bytes,
            tool_name=config.module_name,
            logger=logger,
        )

    @property
    def supported_formats(self) -> Tuple[ContainerFormat, ...]:
        return tuple(self._parsers)

    def extract(self, document: InputDocument) -> ExtractionResult:
        """Classify ``document`` and extract its pictures."""
        container_format = self._classifier.classify(document)
        parser = self._parsers.get(container_format) if container_format else None
        if parser is None:
            self._logger.debug("No picture parser for %s (id %s)", document.name, document.id)
            return ExtractionResult(ExtractionOutcome.UNSUPPORTED)

        parent_name = unique_name(document)
        try:
            already_done = self._case_fs.has_derived_children(document) and self._sink.output_exists(parent_name)
        except LookupError as exc:
            self._logger.error("Could not check derived files of %s (id %s): %s", document.name, document.id, exc)
            return ExtractionResult(ExtractionOutcome.SKIPPED, container_format)
        if already_done:
            self._logger.info("Embedded images of %s already extracted, skipping", document.name)
            return ExtractionResult(ExtractionOutcome.ALREADY_DONE, container_format)

        parsed = parser.parse(document)
        if parsed.status is ParseStatus.FAILED:
            return ExtractionResult(ExtractionOutcome.PARSE_FAILED, container_format)
        if parsed.status is ParseStatus.EMPTY:
            return ExtractionResult(ExtractionOutcome.NO_IMAGES, container_format)

        destination = self._sink.for_document(parent_name)
        try:
            destination.ensure_directory()
        except DirectoryCreateError as exc:
            self._logger.error("Cannot extract pictures from %s: %s", document.name, exc)
            return ExtractionResult(ExtractionOutcome.OUTPUT_FAILED, container_format)

        result = ExtractionResult(ExtractionOutcome.EXTRACTED, container_format)
        descriptors = self._write_records(document, parent_name, destination, parsed.records, result)
        for descriptor, handle in self._emitter.emit(document, descriptors):
            result.descriptors.append(descriptor)
            result.handles.append(handle)

        self._logger.info(
            "Extracted %d of %d pictures from %s (%s)",
            len(result.descriptors), len(parsed.records), document.name, container_format.name,
        )
        return result

    def _write_records(self, document, parent_name, destination, records, result) -> List[ExtractedImageDescriptor]:
        namer = FileNamer()
        descriptors: List[ExtractedImageDescriptor] = []
        for record in records:
            file_name = namer.name_for(record)
            try:
                path = destination.write(file_name, record.data)
            except (WriteError, DirectoryCreateError) as exc:
                self._logger.warning("Could not write %s from %s: %s", file_name, document.name, exc)
                result.failed_writes.append(file_name)
                continue
            descriptors.append(
                self._emitter.describe(
                    document,
                    self._output.relative_dir,
                    parent_name,
                    file_name,
                    record.size,
                    local_path=path,
                )
            )
        return descriptors
