"""
Packaging utilities for documentation packages.

- Output file naming (sanitized application name + date)
- Required-contents check for deliverable packages
- FILE-STRUCTURE.txt summary document
- ZIP archive writing
"""

import asyncio
import io
import logging
import re
import zipfile
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path, PurePosixPath
from typing import Dict, List, Mapping, Optional, Union

logger = logging.getLogger(__name__)

FileContent = Union[str, bytes]

# A deliverable package contains at least these files
REQUIRED_FILES = ("guide.html", "README.md", "screenshot.png")

FILE_STRUCTURE_FILENAME = "FILE-STRUCTURE.txt"

_UNSAFE_CHARS = re.compile(r"[^a-z0-9]", re.IGNORECASE)


@dataclass
class PackageCheck:
    """Outcome of the required-contents check."""
    valid: bool
    errors: List[str] = field(default_factory=list)


def generate_output_filename(app_name: str, today: Optional[date] = None, fmt: str = "zip") -> str:
    """
    Build the package file name for an application.

    Example:
        generate_output_filename("Acme Viewer", date(2025, 1, 31))
        -> "acme-viewer-guide-2025-01-31.zip"
    """
    stamp = (today or date.today()).isoformat()
    sanitized = _UNSAFE_CHARS.sub("-", app_name).lower()
    return f"{sanitized}-guide-{stamp}.{fmt}"


def validate_package_contents(files: Mapping[str, FileContent]) -> PackageCheck:
    """Check that the required files exist and no file is empty."""
    missing = [name for name in REQUIRED_FILES if not files.get(name)]
    if missing:
        return PackageCheck(valid=False, errors=[f"Missing required files: {', '.join(missing)}"])

    empty = []
    for name, content in files.items():
        if not content or (isinstance(content, str) and not content.strip()):
            empty.append(name)
    if empty:
        return PackageCheck(valid=False, errors=[f"Empty files found: {', '.join(empty)}"])

    return PackageCheck(valid=True)


def format_bytes(size: int) -> str:
    """Human readable size, e.g. 1536 -> '1.5 KB'."""
    if size == 0:
        return "0 Bytes"

    units = ["Bytes", "KB", "MB", "GB"]
    exponent = 0
    while size >= 1024 ** (exponent + 1) and exponent < len(units) - 1:
        exponent += 1
    value = round(size / (1024 ** exponent), 2)
    if value == int(value):
        value = int(value)
    return f"{value} {units[exponent]}"


def get_file_structure(files: Mapping[str, FileContent]) -> Dict:
    """Counts, sizes and extensions of the package files."""
    structure = {"total_files": 0, "total_size": 0, "file_types": {}, "files": []}

    for name, content in files.items():
        size = len(content.encode("utf-8")) if isinstance(content, str) else len(content)
        ext = PurePosixPath(name).suffix or "no-extension"

        structure["total_files"] += 1
        structure["total_size"] += size
        structure["file_types"][ext] = structure["file_types"].get(ext, 0) + 1
        structure["files"].append({"name": name, "size": size, "type": ext})

    return structure


def create_file_structure_doc(files: Mapping[str, FileContent]) -> str:
    structure = get_file_structure(files)

    lines = [
        "FILE STRUCTURE",
        "=============",
        "",
        f"Total Files: {structure['total_files']}",
        f"Total Size: {format_bytes(structure['total_size'])}",
        "",
        "Files:",
        "------",
    ]
    for entry in sorted(structure["files"], key=lambda f: f["name"]):
        lines.append(f"{entry['name'].ljust(30)} {format_bytes(entry['size']).rjust(10)}")

    return "\n".join(lines) + "\n"


def build_zip_bytes(files: Mapping[str, FileContent]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as archive:
        for name, content in files.items():
            if isinstance(content, (str, bytes)):
                archive.writestr(name, content)
            else:
                logger.warning(f"Skipping file {name}: unsupported content type")
    return buffer.getvalue()


def _write_file(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


async def write_zip_package(files: Mapping[str, FileContent], output_path: Union[str, Path]) -> Path:
    """Zip ``files`` into ``output_path`` (parent directories are created)."""
    output_path = Path(output_path)
    data = await asyncio.to_thread(build_zip_bytes, files)
    await asyncio.to_thread(_write_file, output_path, data)
    logger.info(f"Package created: {output_path} ({format_bytes(len(data))})")
    return output_path
