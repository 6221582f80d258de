"""
Tests for screenshot ingestion.
"""

import base64

import pytest

from conftest import PNG_BYTES
from screendoc.core.exceptions import InvalidScreenshotError
from screendoc.services.image_loader import (
    BytesSource,
    EncodedSource,
    PathSource,
    detect_mime_type,
    load_screenshot,
)

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 16
WEBP_BYTES = b"RIFF\x00\x00\x00\x00WEBPVP8 " + b"\x00" * 8
GIF_BYTES = b"GIF89a" + b"\x00" * 8


class TestMimeDetection:

    @pytest.mark.parametrize("data,expected", [
        (PNG_BYTES, "image/png"),
        (JPEG_BYTES, "image/jpeg"),
        (WEBP_BYTES, "image/webp"),
        (GIF_BYTES, "image/gif"),
        (b"plain text", "image/png"),
    ])
    def test_magic_bytes(self, data, expected):
        assert detect_mime_type(data) == expected


class TestLoadScreenshot:

    @pytest.mark.asyncio
    async def test_from_path(self, png_file):
        screenshot = await load_screenshot(PathSource(png_file))

        assert screenshot.data == PNG_BYTES
        assert screenshot.filename == "acme.png"
        assert screenshot.mimetype == "image/png"
        assert screenshot.size == len(PNG_BYTES)

    @pytest.mark.asyncio
    async def test_from_bytes_detects_real_type(self):
        # Extension says png, content is JPEG
        screenshot = await load_screenshot(BytesSource(JPEG_BYTES, "shot.png"))

        assert screenshot.mimetype == "image/jpeg"

    @pytest.mark.asyncio
    async def test_from_base64(self):
        encoded = base64.b64encode(GIF_BYTES).decode("ascii")

        screenshot = await load_screenshot(EncodedSource(encoded, "anim.gif"))

        assert screenshot.data == GIF_BYTES
        assert screenshot.mimetype == "image/gif"

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        with pytest.raises(InvalidScreenshotError, match="not found"):
            await load_screenshot(PathSource(tmp_path / "missing.png"))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("filename", ["notes.txt", "archive.zip", "noext"])
    async def test_bad_extension(self, filename):
        with pytest.raises(InvalidScreenshotError, match="Invalid file type"):
            await load_screenshot(BytesSource(PNG_BYTES, filename))

    @pytest.mark.asyncio
    async def test_uppercase_extension_allowed(self):
        screenshot = await load_screenshot(BytesSource(PNG_BYTES, "SHOT.PNG"))

        assert screenshot.filename == "SHOT.PNG"

    @pytest.mark.asyncio
    async def test_bad_base64(self):
        with pytest.raises(InvalidScreenshotError, match="base64"):
            await load_screenshot(EncodedSource("***not base64***", "shot.png"))

    @pytest.mark.asyncio
    async def test_empty(self):
        with pytest.raises(InvalidScreenshotError, match="empty"):
            await load_screenshot(BytesSource(b"", "shot.png"))

    @pytest.mark.asyncio
    async def test_too_large(self):
        with pytest.raises(InvalidScreenshotError, match="too large"):
            await load_screenshot(BytesSource(PNG_BYTES, "shot.png"), max_bytes=10)
