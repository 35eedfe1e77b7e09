"""Tests for the container parser contract."""

import struct

import pytest

from core.enums import ContainerFormat, ParseStatus
from extractors.documents.embedded_images.documents import InMemoryDocument
from extractors.documents.embedded_images.parsers import build_parsers
from extractors.documents.embedded_images.parsers.base import ContainerParser, ParseResult, PictureRecord
from extractors.exceptions import ContainerOpenError, RecordReadError


class _Raising(ContainerParser):
    container_format = ContainerFormat.DOC

    def __init__(self, exc):
        super().__init__()
        self.exc = exc

    def _read_pictures(self, stream):
        raise self.exc


class TestParseResult:
    """Tests for ParseResult constructors."""

    def test_of_records(self):
        result = ParseResult.of([PictureRecord(b"abc", "a.png", "png")])
        assert result.status is ParseStatus.RECORDS
        assert result.records[0].size == 3

    def test_of_nothing(self):
        result = ParseResult.of([])
        assert result.status is ParseStatus.EMPTY
        assert result.records == ()

    def test_failed(self):
        result = ParseResult.failed("bad header")
        assert result.status is ParseStatus.FAILED
        assert result.reason == "bad header"


class TestFaultContainment:
    """parse() never raises."""

    @pytest.mark.parametrize(
        "exc",
        [
            ContainerOpenError("bad container"),
            RecordReadError("bad record", 0x40),
            struct.error("unpack requires a buffer"),
            MemoryError(),
            KeyError("missing"),
        ],
    )
    def test_errors_become_failed(self, exc):
        result = _Raising(exc).parse(InMemoryDocument(1, "x.doc", b""))
        assert result.status is ParseStatus.FAILED

    def test_record_error_reports_offset(self):
        result = _Raising(RecordReadError("bad record", 0x40)).parse(InMemoryDocument(1, "x.doc", b""))
        assert result.reason == "bad record (offset 0x40)"

    def test_open_failure_contained(self):
        class Unopenable:
            id = 1
            name = "gone.doc"

            def open(self):
                raise OSError("evidence unavailable")

        result = _Raising(AssertionError()).parse(Unopenable())
        assert result.status is ParseStatus.FAILED
        assert "evidence unavailable" in result.reason


class TestBuildParsers:
    """Tests for build_parsers()."""

    def test_one_parser_per_format(self):
        parsers = build_parsers(1024)
        assert set(parsers) == set(ContainerFormat)
        for container_format, parser in parsers.items():
            assert parser.container_format is container_format
            assert parser.max_record_bytes == 1024
