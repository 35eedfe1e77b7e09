"""
Tests for magic-byte picture detection.

Covers the formats Office containers embed and the extension fallback.
"""

import struct

import pytest

from tests.fixtures.images import bmp_bytes, emf_bytes, gif_bytes, jpeg_bytes, png_bytes, wmf_bytes


class TestDetectImageType:
    """Tests for detect_image_type() function."""

    def test_jpeg_jfif(self):
        """Test JPEG/JFIF detection."""
        from extractors.image_signatures import detect_image_type

        data = b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01'
        assert detect_image_type(data) == ('jpeg', '.jpg')

    def test_jpeg_exif(self):
        """Test JPEG/EXIF detection."""
        from extractors.image_signatures import detect_image_type

        data = b'\xff\xd8\xff\xe1\x00\x00Exif\x00\x00'
        assert detect_image_type(data) == ('jpeg', '.jpg')

    def test_jpeg_generic(self):
        """Unknown marker after FFD8FF still detects as JPEG."""
        from extractors.image_signatures import detect_image_type

        data = b'\xff\xd8\xff\xc0' + b'\x00' * 20
        assert detect_image_type(data) == ('jpeg', '.jpg')

    def test_pillow_payloads(self):
        """Real encoder output is recognised."""
        from extractors.image_signatures import detect_image_type

        assert detect_image_type(png_bytes()) == ('png', '.png')
        assert detect_image_type(jpeg_bytes()) == ('jpeg', '.jpg')
        assert detect_image_type(gif_bytes()) == ('gif', '.gif')
        assert detect_image_type(bmp_bytes()) == ('bmp', '.bmp')

    def test_tiff_both_byte_orders(self):
        from extractors.image_signatures import detect_image_type

        assert detect_image_type(b'II*\x00' + b'\x00' * 8) == ('tiff', '.tiff')
        assert detect_image_type(b'MM\x00*' + b'\x00' * 8) == ('tiff', '.tiff')

    def test_placeable_wmf(self):
        """Aldus placeable key identifies WMF."""
        from extractors.image_signatures import detect_image_type

        data = struct.pack('<I', 0x9AC6CDD7) + b'\x00' * 18
        assert detect_image_type(data) == ('wmf', '.wmf')

    def test_standard_wmf(self):
        from extractors.image_signatures import detect_image_type

        assert detect_image_type(wmf_bytes()) == ('wmf', '.wmf')

    def test_emf(self):
        from extractors.image_signatures import detect_image_type

        assert detect_image_type(emf_bytes()) == ('emf', '.emf')

    def test_emf_without_signature(self):
        """EMR_HEADER type alone is not enough."""
        from extractors.image_signatures import detect_image_type

        data = bytearray(emf_bytes())
        data[40:44] = b'XXXX'
        assert detect_image_type(bytes(data)) is None

    def test_bmp_with_bad_size_rejected(self):
        """A 'BM' prefix with a nonsensical size field is not a bitmap."""
        from extractors.image_signatures import detect_image_type

        data = b'BM' + struct.pack('<I', 0xFFFFFFF0) + b'\x00' * 40
        assert detect_image_type(data) is None

    def test_ico(self):
        from extractors.image_signatures import detect_image_type

        assert detect_image_type(b'\x00\x00\x01\x00\x01\x00') == ('ico', '.ico')

    @pytest.mark.parametrize("data", [b'', b'\xff', b'not an image at all'])
    def test_not_an_image(self, data):
        from extractors.image_signatures import detect_image_type

        assert detect_image_type(data) is None


class TestSuggestExtension:
    """Tests for suggest_extension()."""

    def test_known_payload(self):
        from extractors.image_signatures import suggest_extension

        assert suggest_extension(png_bytes()) == 'png'
        assert suggest_extension(jpeg_bytes()) == 'jpg'

    def test_default_for_unknown(self):
        from extractors.image_signatures import suggest_extension

        assert suggest_extension(b'\x01\x02\x03\x04') == 'bin'
        assert suggest_extension(b'\x01\x02\x03\x04', default='dat') == 'dat'
