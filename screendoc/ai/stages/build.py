"""
Build stage - generates the HTML guide and its supporting files.

The model answers with several files separated by delimiters:

    === FILE: guide.html ===
    <!DOCTYPE html>...
    === END FILE ===

Fenced code blocks whose first line is ``// filename`` are accepted as a
fallback. The screenshot itself is added to the package as
``screenshot.png``.
"""

import logging
import re
from pathlib import PurePosixPath
from typing import Any, Dict

from screendoc.ai.prompts.stage_prompts import BUILDER_ROLE, build_builder_prompt
from screendoc.ai.stages.base import GenerationStage, ModelClass
from screendoc.ai.stages.contracts import (
    AnalysisResult,
    BuildPackage,
    ContentResult,
    FileContent,
    JobContext,
)
from screendoc.core.exceptions import NoStructuredOutput

logger = logging.getLogger("screendoc.ai.stages.build")

SCREENSHOT_FILENAME = "screenshot.png"

_FILE_BLOCK = re.compile(r"===\s*FILE:\s*(.+?)\s*===\s*\n([\s\S]*?)(?=\n===\s*(?:FILE:|END FILE))")
_END_MARKER = re.compile(r"\n?===\s*END FILE\s*===")
_CODE_BLOCK = re.compile(r"```(?:html|markdown|python|batch)?\s*\n// (.+?)\n([\s\S]*?)```")


def is_safe_filename(name: str) -> bool:
    """Relative POSIX path without parent references."""
    path = PurePosixPath(name)
    return bool(name) and not path.is_absolute() and ".." not in path.parts and "\\" not in name


def parse_multi_file_output(output: str) -> Dict[str, str]:
    """Split a delimited multi-file response into name -> content."""
    files: Dict[str, str] = {}

    for match in _FILE_BLOCK.finditer(output):
        name = match.group(1).strip()
        content = _END_MARKER.sub("", match.group(2).strip()).strip()
        files[name] = content

    if not files:
        for match in _CODE_BLOCK.finditer(output):
            files[match.group(1).strip()] = match.group(2).strip()

    unsafe = [name for name in files if not is_safe_filename(name)]
    for name in unsafe:
        logger.warning(f"Dropping unsafe file name from builder output: {name!r}")
        del files[name]

    return files


class BuildStage(GenerationStage[BuildPackage]):
    name = "build"
    title = "HTML Builder"
    role = BUILDER_ROLE
    model_class = ModelClass.SMALL
    max_tokens = 16000
    temperature = 0.7

    def build_prompt(
        self,
        context: JobContext,
        *,
        analysis: AnalysisResult,
        content: ContentResult,
        **upstream: Any,
    ) -> str:
        return build_builder_prompt({
            "screenshot_filename": SCREENSHOT_FILENAME,
            "app_name": context.app_name,
            "app_description": context.description,
            "analysis": dict(analysis.data),
            "content": dict(content.data),
        })

    def parse(self, text: str, context: JobContext) -> BuildPackage:
        files: Dict[str, FileContent] = dict(parse_multi_file_output(text))
        if not files:
            raise NoStructuredOutput("No files found in builder response")

        files[SCREENSHOT_FILENAME] = context.screenshot.data
        return BuildPackage(files)

    def summarize(self, artifact: BuildPackage) -> Dict[str, Any]:
        return {"files": sorted(artifact)}
