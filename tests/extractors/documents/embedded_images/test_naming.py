"""Tests for extracted picture file names."""

import pytest

from extractors.documents.embedded_images.documents import InMemoryDocument, LocalFileDocument, unique_name
from extractors.documents.embedded_images.naming import FileNamer, sanitize_extension, sanitize_name_hint
from extractors.documents.embedded_images.parsers.base import PictureRecord


class TestFileNamer:
    """Tests for FileNamer.name_for()."""

    def test_hintless_records_numbered_from_zero(self):
        namer = FileNamer()
        names = [namer.name_for(PictureRecord(b"x", None, ext)) for ext in ("png", "jpg", "png")]
        assert names == ["image_0.png", "image_1.jpg", "image_2.png"]

    def test_hints_kept_and_do_not_consume_indices(self):
        namer = FileNamer()
        assert namer.name_for(PictureRecord(b"x", "image1.png", "png")) == "image1.png"
        assert namer.name_for(PictureRecord(b"x", None, "emf")) == "image_0.emf"

    def test_collisions_get_suffix(self):
        namer = FileNamer()
        names = [namer.name_for(PictureRecord(b"x", hint, "png")) for hint in ("a.png", "A.PNG", "a.png")]
        assert names == ["a.png", "A_1.PNG", "a_2.png"]

    def test_hint_collides_with_synthesized_name(self):
        namer = FileNamer()
        assert namer.name_for(PictureRecord(b"x", None, "png")) == "image_0.png"
        assert namer.name_for(PictureRecord(b"x", "image_0.png", "png")) == "image_0_1.png"

    def test_missing_extension_defaults_to_bin(self):
        assert FileNamer().name_for(PictureRecord(b"x")) == "image_0.bin"

    def test_hint_without_extension(self):
        namer = FileNamer()
        assert namer.name_for(PictureRecord(b"x", "picture")) == "picture"
        assert namer.name_for(PictureRecord(b"x", "picture")) == "picture_1"


class TestSanitizers:
    """Tests for sanitize_name_hint() and sanitize_extension()."""

    @pytest.mark.parametrize(
        "hint,expected",
        [
            ("image1.png", "image1.png"),
            ("word/media/image1.png", "image1.png"),
            ("..\\..\\evil.png", "evil.png"),
            ("a:b*c?.png", "a_b_c_.png"),
            ("..", None),
            ("dir/", None),
            ("", None),
            (None, None),
        ],
    )
    def test_sanitize_name_hint(self, hint, expected):
        assert sanitize_name_hint(hint) == expected

    @pytest.mark.parametrize(
        "extension,expected",
        [("png", "png"), (".JPG", "jpg"), ("we/ird", "weird"), ("", "bin"), (None, "bin")],
    )
    def test_sanitize_extension(self, extension, expected):
        assert sanitize_extension(extension) == expected


class TestDocuments:
    """Tests for input document helpers."""

    def test_unique_name(self):
        assert unique_name(InMemoryDocument(42, "report.doc", b"")) == "report.doc_42"

    def test_unique_name_replaces_separators(self):
        assert unique_name(InMemoryDocument(7, "a/b\\c.xls", b"")) == "a_b_c.xls_7"

    def test_in_memory_document_stream(self):
        with InMemoryDocument(1, "x", b"abc").open() as stream:
            assert stream.read() == b"abc"

    def test_local_file_document_stream(self, tmp_path):
        path = tmp_path / "deck.ppt"
        path.write_bytes(b"data")
        with LocalFileDocument(1, "deck.ppt", path).open() as stream:
            assert stream.read() == b"data"
