"""
Office Open XML (.docx, .pptx, .xlsx) picture parser.

The three zip-based formats share one package model (OPC): the main part
is named by the package relationship in ``_rels/.rels`` and typed in
``[Content_Types].xml``, and every picture is a part that some other part
references through an ``.../relationships/image`` relationship.
"""

from __future__ import annotations

import posixpath
import xml.etree.ElementTree as ET
import zipfile
import zlib
from dataclasses import dataclass, field
from logging import Logger
from typing import BinaryIO, Dict, List, Optional, Set
from urllib.parse import unquote

from core.config import DEFAULT_MAX_RECORD_BYTES
from core.enums import ContainerFormat
from core.logging import get_logger
from extractors.exceptions import ContainerOpenError, RecordReadError

from .base import ContainerParser, PictureRecord

LOGGER = get_logger("extractors.embedded_images.parsers.ooxml")

CONTENT_TYPES_PART = "[Content_Types].xml"
PACKAGE_RELS_PART = "_rels/.rels"
RELS_SUFFIX = ".rels"

CONTENT_TYPES_NS = "{http://schemas.openxmlformats.org/package/2006/content-types}"
RELATIONSHIPS_NS = "{http://schemas.openxmlformats.org/package/2006/relationships}"

OFFICE_DOCUMENT_RELATIONSHIPS = frozenset({
    "http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument",
    "http://purl.oclc.org/ooxml/officeDocument/relationships/officeDocument",
})
IMAGE_RELATIONSHIP_SUFFIX = "/image"

# Main part content types accepted for each format, including macro-enabled
# and template variants
MAIN_CONTENT_TYPES: Dict[ContainerFormat, frozenset] = {
    ContainerFormat.DOCX: frozenset({
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.template.main+xml",
        "application/vnd.ms-word.document.macroenabled.main+xml",
        "application/vnd.ms-word.template.macroenabledtemplate.main+xml",
    }),
    ContainerFormat.PPTX: frozenset({
        "application/vnd.openxmlformats-officedocument.presentationml.presentation.main+xml",
        "application/vnd.openxmlformats-officedocument.presentationml.template.main+xml",
        "application/vnd.openxmlformats-officedocument.presentationml.slideshow.main+xml",
        "application/vnd.ms-powerpoint.presentation.macroenabled.main+xml",
        "application/vnd.ms-powerpoint.template.macroenabled.main+xml",
        "application/vnd.ms-powerpoint.slideshow.macroenabled.main+xml",
    }),
    ContainerFormat.XLSX: frozenset({
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet.main+xml",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.template.main+xml",
        "application/vnd.ms-excel.sheet.macroenabled.main+xml",
        "application/vnd.ms-excel.template.macroenabled.main+xml",
    }),
}


@dataclass(slots=True)
class ContentTypes:
    """Parsed ``[Content_Types].xml``: extension defaults and per-part overrides."""

    defaults: Dict[str, str] = field(default_factory=dict)
    overrides: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_xml(cls, xml_bytes: bytes) -> ContentTypes:
        root = _parse_xml(xml_bytes, CONTENT_TYPES_PART)
        types = cls()
        for element in root.iter(f"{CONTENT_TYPES_NS}Default"):
            extension = element.get("Extension")
            content_type = element.get("ContentType")
            if extension and content_type:
                types.defaults[extension.lower()] = content_type.lower()
        for element in root.iter(f"{CONTENT_TYPES_NS}Override"):
            part_name = element.get("PartName")
            content_type = element.get("ContentType")
            if part_name and content_type:
                types.overrides[part_name.lstrip("/").lower()] = content_type.lower()
        return types

    def content_type_of(self, part_name: str) -> Optional[str]:
        key = part_name.lstrip("/").lower()
        if key in self.overrides:
            return self.overrides[key]
        _, dot, extension = key.rpartition(".")
        return self.defaults.get(extension) if dot else None


def _parse_xml(xml_bytes: bytes, part_name: str) -> ET.Element:
    try:
        return ET.fromstring(xml_bytes)
    except ET.ParseError as exc:
        raise ContainerOpenError(f"malformed XML in '{part_name}': {exc}") from exc


def rels_source_dir(rels_name: str) -> str:
    """Directory relationship targets in ``rels_name`` resolve against."""
    rels_dir = posixpath.dirname(rels_name)  # ".../_rels"
    return posixpath.dirname(rels_dir)


def resolve_target(source_dir: str, target: str) -> Optional[str]:
    """Resolve a relationship target to a package part name, None if it escapes the package."""
    target = unquote(target.split("#", 1)[0])
    if not target:
        return None
    if target.startswith("/"):
        resolved = posixpath.normpath(target.lstrip("/"))
    else:
        resolved = posixpath.normpath(posixpath.join(source_dir, target))
    if resolved.startswith("..") or resolved in (".", ""):
        return None
    return resolved


class OfficeOpenXmlParser(ContainerParser):
    """Image parts of one Office Open XML package flavour."""

    def __init__(
        self,
        container_format: ContainerFormat,
        max_record_bytes: int = DEFAULT_MAX_RECORD_BYTES,
        logger: Optional[Logger] = None,
    ):
        if container_format not in MAIN_CONTENT_TYPES:
            raise ValueError(f"{container_format.name} is not an Office Open XML format")
        super().__init__(max_record_bytes, logger or LOGGER)
        self.container_format = container_format

    def _read_pictures(self, stream: BinaryIO) -> List[PictureRecord]:
        try:
            package = zipfile.ZipFile(stream)
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, ValueError) as exc:
            raise ContainerOpenError(f"not a readable zip package: {exc}") from exc

        with package:
            members: Dict[str, zipfile.ZipInfo] = {}
            for info in package.infolist():
                if not info.is_dir():
                    members.setdefault(info.filename.lower(), info)

            self._check_main_part(package, members)
            image_parts = self._image_part_names(package, members)

            pictures: List[PictureRecord] = []
            for info in package.infolist():
                key = info.filename.lower()
                if key not in image_parts or members.get(key) is not info:
                    continue
                data = self._read_bounded(package, info)
                name = posixpath.basename(info.filename)
                _, dot, suffix = name.rpartition(".")
                pictures.append(PictureRecord(data, name, suffix.lower() if dot and suffix else None))
            return pictures

    def _check_main_part(self, package: zipfile.ZipFile, members: Dict[str, zipfile.ZipInfo]) -> None:
        if CONTENT_TYPES_PART.lower() not in members:
            raise ContainerOpenError(f"missing '{CONTENT_TYPES_PART}'")
        content_types = ContentTypes.from_xml(self._read_xml_part(package, members[CONTENT_TYPES_PART.lower()]))

        rels = members.get(PACKAGE_RELS_PART)
        if rels is None:
            raise ContainerOpenError(f"missing '{PACKAGE_RELS_PART}'")
        main_part = None
        root = _parse_xml(self._read_xml_part(package, rels), PACKAGE_RELS_PART)
        for relationship in root.iter(f"{RELATIONSHIPS_NS}Relationship"):
            if relationship.get("Type") in OFFICE_DOCUMENT_RELATIONSHIPS:
                main_part = resolve_target("", relationship.get("Target", ""))
                break
        if main_part is None:
            raise ContainerOpenError("package has no officeDocument relationship")
        if main_part.lower() not in members:
            raise ContainerOpenError(f"main part '{main_part}' is missing")

        content_type = content_types.content_type_of(main_part)
        if content_type not in MAIN_CONTENT_TYPES[self.container_format]:
            raise ContainerOpenError(
                f"main part '{main_part}' has content type {content_type!r}, "
                f"not a {self.container_format.name} document"
            )

    def _image_part_names(self, package: zipfile.ZipFile, members: Dict[str, zipfile.ZipInfo]) -> Set[str]:
        image_parts: Set[str] = set()
        for key, info in members.items():
            if not key.endswith(RELS_SUFFIX) or posixpath.basename(posixpath.dirname(key)) != "_rels":
                continue
            root = _parse_xml(self._read_xml_part(package, info), info.filename)
            source_dir = rels_source_dir(info.filename)
            for relationship in root.iter(f"{RELATIONSHIPS_NS}Relationship"):
                if not relationship.get("Type", "").endswith(IMAGE_RELATIONSHIP_SUFFIX):
                    continue
                if relationship.get("TargetMode", "Internal") == "External":
                    continue
                part = resolve_target(source_dir, relationship.get("Target", ""))
                if part is None:
                    continue
                if part.lower() in members:
                    image_parts.add(part.lower())
                else:
                    self.logger.debug("Image relationship in %s targets missing part %s", info.filename, part)
        return image_parts

    def _read_xml_part(self, package: zipfile.ZipFile, info: zipfile.ZipInfo) -> bytes:
        try:
            return self._read_bounded(package, info)
        except RecordReadError as exc:
            raise ContainerOpenError(str(exc)) from exc

    def _read_bounded(self, package: zipfile.ZipFile, info: zipfile.ZipInfo) -> bytes:
        if info.file_size > self.max_record_bytes:
            raise RecordReadError(
                f"part '{info.filename}' is {info.file_size} bytes, above the {self.max_record_bytes} byte limit",
                info.header_offset,
            )
        try:
            with package.open(info) as handle:
                data = handle.read(self.max_record_bytes + 1)
        except (zipfile.BadZipFile, zlib.error, RuntimeError, NotImplementedError, OSError, EOFError) as exc:
            raise RecordReadError(f"cannot read part '{info.filename}': {exc}", info.header_offset) from exc
        if len(data) > self.max_record_bytes:
            raise RecordReadError(f"part '{info.filename}' inflates past the byte limit", info.header_offset)
        return data
