"""
Stage Prompts - role instructions and task directives for each stage.

Each stage sends its role instructions as the system prompt and a user
message made of serialized upstream data plus a task directive.
"""

import json
from typing import Any, Dict, List


# ---------------------------------------------------------------------------
# ROLE INSTRUCTIONS (system prompts)
# ---------------------------------------------------------------------------

ANALYST_ROLE = """You are a UI analyst. You inspect application screenshots and \
catalogue every visible interface element: its type, label, purpose and \
bounding box as percentages of the image size.

Respond with one JSON object:
{
  "elements": [{"id": "...", "type": "...", "label": "...", "purpose": "...",
                "bounds": {"x": 0, "y": 0, "width": 0, "height": 0}}],
  "regions": [{"name": "...", "element_ids": ["..."]}],
  "metadata": {"total_elements": 0, "interface_type": "..."}
}"""

CONTENT_ROLE = """You are a technical writer. From a UI analysis you write \
tooltip text for every element, step-by-step workflows and a quick \
reference of shortcuts.

Respond with one JSON object:
{
  "tooltips": [{"element_id": "...", "title": "...", "body": "..."}],
  "workflows": [{"name": "...", "steps": ["..."]}],
  "technical_specs": {},
  "quick_reference": [{"action": "...", "shortcut": "..."}]
}"""

BUILDER_ROLE = """You are an HTML engineer. You turn a UI analysis and its \
documentation into a self-contained interactive guide: the screenshot with \
clickable hotspots that open tooltips. All CSS and JavaScript is inline, \
nothing is loaded from the network and the guide works offline."""

VALIDATOR_ROLE = """You are a QA reviewer for generated documentation \
packages. You check HTML validity, content quality (no placeholders, \
reasonable length), file completeness and technical correctness.

Respond with one JSON object:
{
  "validation_passed": true,
  "overall_score": 0,
  "critical_issues": ["..."],
  "warnings": ["..."]
}"""

PLANNER_ROLE = """You plan documentation jobs. You estimate how large an \
interface is before it is analysed."""


# ---------------------------------------------------------------------------
# TASK DIRECTIVES
# ---------------------------------------------------------------------------

BUILD_FILES = [
    "guide.html - Main interactive guide with hotspots and tooltips",
    "README.md - Usage instructions",
    "QUICKSTART.txt - Quick start guide",
    "launch-guide.py - Python launcher script",
    "launch-guide.bat - Windows batch launcher",
    "test-image.html - Image loading test page",
]


def build_analysis_prompt(context_block: str) -> str:
    return f"""<screenshot_context>
{context_block}
</screenshot_context>

Analyze this screenshot and provide a complete JSON structure of all UI elements \
following the output format in your instructions."""


def build_content_prompt(analysis: Dict[str, Any], context_block: str) -> str:
    return f"""<ui_analysis>
{json.dumps(analysis, indent=2)}
</ui_analysis>

<context>
{context_block}
</context>

Generate tooltip content, workflow documentation, technical specifications (if \
applicable) and a quick reference guide with shortcuts. Output structured JSON \
following the format in your instructions."""


def build_builder_prompt(data: Dict[str, Any]) -> str:
    files = "\n".join(f"{i}. {f}" for i, f in enumerate(BUILD_FILES, start=1))
    return f"""<data>
{json.dumps(data, indent=2)}
</data>

The screenshot is shipped next to the guide as "screenshot.png"; reference it by \
that relative path.

Generate the complete HTML package including all required files:
{files}

For each file, use this delimiter format: