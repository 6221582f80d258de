"""
Tests for the command line entry point.
"""

import zipfile

import pytest

from conftest import ScriptedProvider, HAPPY_PATH, build_pipeline
from screendoc.ai.prompts.stage_prompts import VALIDATOR_ROLE
from screendoc.cli import build_parser, run
from screendoc.core.config import settings


def _args(*argv):
    return build_parser().parse_args(list(argv))


class TestParser:

    def test_defaults(self):
        args = _args("shot.png", "--app-name", "Acme")

        assert args.description == "User interface screenshot"
        assert args.vendor is None
        assert args.verbose is False

    def test_app_name_required(self):
        with pytest.raises(SystemExit):
            _args("shot.png")


class TestRun:

    @pytest.mark.asyncio
    async def test_writes_package(self, pipeline, png_file, tmp_path, capsys):
        out = tmp_path / "out"
        args = _args(str(png_file), "--app-name", "Acme Viewer", "--output-dir", str(out))

        assert await run(args, pipeline=pipeline) == 0

        packages = list(out.glob("acme-viewer-guide-*.zip"))
        assert len(packages) == 1
        with zipfile.ZipFile(packages[0]) as archive:
            assert "guide.html" in archive.namelist()
        printed = capsys.readouterr().out
        assert "Status: completed" in printed
        assert "Validation score: 92" in printed

    @pytest.mark.asyncio
    async def test_needs_review_exits_nonzero(self, monitor, png_file, tmp_path, capsys):
        provider = ScriptedProvider({**HAPPY_PATH, VALIDATOR_ROLE: '{"critical_issues": ["Broken"]}'})
        args = _args(str(png_file), "--app-name", "Acme", "--output-dir", str(tmp_path / "out"))

        assert await run(args, pipeline=build_pipeline(provider, monitor, tmp_path)) == 1

        assert not (tmp_path / "out").exists()
        assert "critical: Broken" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_invalid_screenshot(self, pipeline, tmp_path):
        bad = tmp_path / "notes.txt"
        bad.write_text("not an image")

        assert await run(_args(str(bad), "--app-name", "Acme"), pipeline=pipeline) == 1

    @pytest.mark.asyncio
    async def test_missing_api_key(self, png_file, monkeypatch):
        monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "")

        assert await run(_args(str(png_file), "--app-name", "Acme")) == 1
