"""
Screenshot ingestion.

A screenshot can arrive as raw bytes (upload), a file path (CLI) or a
base64 string. ``load_screenshot`` resolves any of them once into the
canonical in-memory ``Screenshot`` the pipeline works with.
"""

import asyncio
import base64
import binascii
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from screendoc.ai.stages.contracts import Screenshot
from screendoc.core.config import settings
from screendoc.core.exceptions import InvalidScreenshotError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = (".png", ".jpg", ".jpeg", ".webp", ".gif")


@dataclass(frozen=True)
class BytesSource:
    data: bytes
    filename: str


@dataclass(frozen=True)
class PathSource:
    path: Path


@dataclass(frozen=True)
class EncodedSource:
    data_base64: str
    filename: str


ScreenshotSource = Union[BytesSource, PathSource, EncodedSource]


def detect_mime_type(data: bytes) -> str:
    """Detect the image type from its magic bytes (PNG when unknown)."""
    if data[:4] == b"\x89PNG":
        return "image/png"
    if data[:3] == b"\xff\xd8\xff":
        return "image/jpeg"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    if data[:3] == b"GIF":
        return "image/gif"

    logger.warning("Could not detect image type from buffer, defaulting to image/png")
    return "image/png"


def check_filename(filename: str) -> None:
    if Path(filename).suffix.lower() not in ALLOWED_EXTENSIONS:
        raise InvalidScreenshotError("Invalid file type. Use PNG, JPG, WEBP or GIF")


def _read_path(path: Path) -> bytes:
    if not path.is_file():
        raise InvalidScreenshotError(f"Screenshot file not found: {path}")
    return path.read_bytes()


async def load_screenshot(source: ScreenshotSource, max_bytes: Optional[int] = None) -> Screenshot:
    """
    Resolve a screenshot source into bytes and validate it.

    Raises:
        InvalidScreenshotError: Missing file, bad extension, bad encoding,
            empty or oversized image
    """
    limit = settings.MAX_UPLOAD_BYTES if max_bytes is None else max_bytes

    if isinstance(source, BytesSource):
        filename, data = source.filename, source.data
        check_filename(filename)
    elif isinstance(source, PathSource):
        filename = source.path.name
        check_filename(filename)
        data = await asyncio.to_thread(_read_path, source.path)
    elif isinstance(source, EncodedSource):
        filename = source.filename
        check_filename(filename)
        try:
            data = base64.b64decode(source.data_base64, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidScreenshotError(f"Invalid base64 screenshot: {e}") from e
    else:
        raise InvalidScreenshotError(f"Unsupported screenshot source: {type(source).__name__}")

    if not data:
        raise InvalidScreenshotError("Screenshot is empty")
    if len(data) > limit:
        raise InvalidScreenshotError(f"File too large (max {limit // (1024 * 1024)}MB)")

    screenshot = Screenshot(data=data, filename=filename, mimetype=detect_mime_type(data))
    logger.info(f"Screenshot loaded: {filename} ({screenshot.size / 1024:.2f} KB, {screenshot.mimetype})")
    return screenshot
