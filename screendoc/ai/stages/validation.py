"""Validation stage - asks the model to review the built package."""

from pathlib import PurePosixPath
from typing import Any, Dict, List

from screendoc.ai.prompts.stage_prompts import VALIDATOR_ROLE, build_validator_prompt
from screendoc.ai.stages.base import GenerationStage, ModelClass
from screendoc.ai.stages.contracts import BuildPackage, JobContext, ValidationReport
from screendoc.core.exceptions import UnrecoverableStructuredOutput

# Text content beyond this is not sent for review
PREVIEW_CHARS = 5000

FILE_TYPES = {
    ".html": "HTML",
    ".md": "Markdown",
    ".txt": "Text",
    ".py": "Python",
    ".bat": "Batch",
    ".png": "Image",
    ".jpg": "Image",
    ".jpeg": "Image",
}


def file_type(name: str) -> str:
    return FILE_TYPES.get(PurePosixPath(name).suffix.lower(), "Unknown")


def describe_files(package: BuildPackage) -> List[Dict[str, Any]]:
    described = []
    for name, content in package.items():
        described.append({
            "name": name,
            "content": content[:PREVIEW_CHARS] if isinstance(content, str) else "[binary]",
            "size": len(content),
            "type": file_type(name),
        })
    return described


class ValidationStage(GenerationStage[ValidationReport]):
    name = "validation"
    title = "Validator"
    role = VALIDATOR_ROLE
    model_class = ModelClass.SMALL
    max_tokens = 4000
    temperature = 0.3

    def build_prompt(self, context: JobContext, *, package: BuildPackage, **upstream: Any) -> str:
        return build_validator_prompt(describe_files(package), list(package))

    def parse(self, text: str, context: JobContext) -> ValidationReport:
        data = self.parse_json_object(text)
        try:
            return ValidationReport.from_dict(data)
        except TypeError as e:
            raise UnrecoverableStructuredOutput(f"{self.title} returned a malformed report: {e}", raw_text=text) from e

    def summarize(self, artifact: ValidationReport) -> Dict[str, Any]:
        return {
            "passed": artifact.passed,
            "score": artifact.overall_score,
            "critical_issues": len(artifact.critical_issues),
            "warnings": len(artifact.warnings),
        }
