"""
Tests for package naming, the required-contents check and ZIP output.
"""

import io
import zipfile
from datetime import date

import pytest

from conftest import PNG_BYTES
from screendoc.services.packager import (
    FILE_STRUCTURE_FILENAME,
    build_zip_bytes,
    create_file_structure_doc,
    format_bytes,
    generate_output_filename,
    get_file_structure,
    validate_package_contents,
    write_zip_package,
)

COMPLETE = {
    "guide.html": "<html></html>",
    "README.md": "# Guide",
    "screenshot.png": PNG_BYTES,
}


class TestOutputFilename:

    def test_sanitized_and_dated(self):
        assert generate_output_filename("Acme Viewer", date(2025, 1, 31)) == "acme-viewer-guide-2025-01-31.zip"

    def test_every_unsafe_character_replaced(self):
        name = generate_output_filename("Ünïcode & Co. v2/3", date(2025, 1, 1))

        assert name == "-n-code---co--v2-3-guide-2025-01-01.zip"

    def test_custom_format(self):
        assert generate_output_filename("A", date(2025, 1, 1), fmt="tar") == "a-guide-2025-01-01.tar"


class TestPackageContents:

    def test_complete_package(self):
        check = validate_package_contents(COMPLETE)

        assert check.valid is True
        assert check.errors == []

    @pytest.mark.parametrize("missing", ["guide.html", "README.md", "screenshot.png"])
    def test_missing_required_file(self, missing):
        files = {k: v for k, v in COMPLETE.items() if k != missing}

        check = validate_package_contents(files)

        assert check.valid is False
        assert check.errors == [f"Missing required files: {missing}"]

    def test_empty_extra_file(self):
        check = validate_package_contents({**COMPLETE, "launcher.bat": "   "})

        assert check.valid is False
        assert check.errors == ["Empty files found: launcher.bat"]


class TestFileStructure:

    @pytest.mark.parametrize("size,expected", [
        (0, "0 Bytes"),
        (512, "512 Bytes"),
        (1024, "1 KB"),
        (1536, "1.5 KB"),
        (1048576, "1 MB"),
    ])
    def test_format_bytes(self, size, expected):
        assert format_bytes(size) == expected

    def test_structure_counts(self):
        structure = get_file_structure({"a.html": "héllo", "b.png": b"\x00" * 10})

        assert structure["total_files"] == 2
        assert structure["total_size"] == 6 + 10
        assert structure["file_types"] == {".html": 1, ".png": 1}

    def test_document(self):
        doc = create_file_structure_doc(COMPLETE)

        assert doc.startswith("FILE STRUCTURE\n")
        assert "Total Files: 3" in doc
        assert "guide.html" in doc


class TestZip:

    def test_zip_contents(self):
        data = build_zip_bytes(COMPLETE)

        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            assert sorted(archive.namelist()) == sorted(COMPLETE)
            assert archive.read("screenshot.png") == PNG_BYTES
            assert archive.getinfo("guide.html").compress_type == zipfile.ZIP_DEFLATED

    @pytest.mark.asyncio
    async def test_write_creates_parent_directories(self, tmp_path):
        files = {**COMPLETE, FILE_STRUCTURE_FILENAME: create_file_structure_doc(COMPLETE)}
        target = tmp_path / "output" / "nested" / "acme.zip"

        path = await write_zip_package(files, target)

        assert path == target
        with zipfile.ZipFile(path) as archive:
            assert FILE_STRUCTURE_FILENAME in archive.namelist()
