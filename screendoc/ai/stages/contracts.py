"""
Contracts for the generation stages.

The job context is the immutable input of a pipeline run; every stage
produces exactly one artifact which later stages read but never modify.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union


FileContent = Union[str, bytes]


@dataclass(frozen=True)
class Screenshot:
    """Canonical in-memory screenshot, resolved once at ingestion."""

    data: bytes
    filename: str
    mimetype: str

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class JobContext:
    """Everything the caller supplies for one documentation job."""

    screenshot: Screenshot
    app_name: str
    description: str
    vendor: Optional[str] = None
    links: Tuple[str, ...] = ()
    notes: Optional[str] = None

    def describe(self) -> str:
        """Context block shared by the analysis and content prompts."""
        return "\n".join([
            f"Application: {self.app_name}",
            f"Description: {self.description}",
            f"Vendor: {self.vendor or 'Unknown'}",
            f"Links: {', '.join(self.links) if self.links else 'None'}",
            f"Special Instructions: {self.notes or 'None'}",
        ])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "app_name": self.app_name,
            "description": self.description,
            "vendor": self.vendor,
            "links": list(self.links),
            "notes": self.notes,
        }


class Complexity(str, Enum):
    """Advisory interface size classification from the planning step."""
    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"


@dataclass(frozen=True)
class WorkflowPlan:
    """Non-authoritative plan attached to the job result."""

    workflow_id: str
    complexity: Complexity = Complexity.MEDIUM
    estimated_elements: int = 30
    estimated_time: float = 90
    estimated_cost: float = 0.23
    fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workflow_id": self.workflow_id,
            "complexity": self.complexity.value,
            "estimated_elements": self.estimated_elements,
            "estimated_time": self.estimated_time,
            "estimated_cost": self.estimated_cost,
            "fallback": self.fallback,
        }


@dataclass(frozen=True)
class AnalysisResult:
    """UI elements found in the screenshot (model-defined JSON)."""

    data: Mapping[str, Any]

    @property
    def total_elements(self) -> int:
        metadata = self.data.get("metadata") or {}
        if isinstance(metadata, dict) and isinstance(metadata.get("total_elements"), int):
            return metadata["total_elements"]
        elements = self.data.get("elements")
        return len(elements) if isinstance(elements, list) else 0


@dataclass(frozen=True)
class ContentResult:
    """Tooltips, workflows and reference content (model-defined JSON)."""

    data: Mapping[str, Any]

    @property
    def tooltip_count(self) -> int:
        tooltips = self.data.get("tooltips")
        return len(tooltips) if isinstance(tooltips, (list, dict)) else 0


class BuildPackage(Mapping[str, FileContent]):
    """
    Read-only mapping of relative file name to file content.

    ``with_files`` returns a new package; the original is never modified.
    """

    def __init__(self, files: Mapping[str, FileContent]):
        self._files: Mapping[str, FileContent] = MappingProxyType(dict(files))

    def __getitem__(self, name: str) -> FileContent:
        return self._files[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._files)

    def __len__(self) -> int:
        return len(self._files)

    def __repr__(self) -> str:
        return f"BuildPackage({sorted(self._files)})"

    def with_files(self, extra: Mapping[str, FileContent]) -> "BuildPackage":
        merged = dict(self._files)
        merged.update(extra)
        return BuildPackage(merged)

    def missing(self, required: Tuple[str, ...]) -> List[str]:
        return [name for name in required if name not in self._files]


@dataclass(frozen=True)
class ValidationReport:
    """Quality report produced by the validation stage."""

    passed: bool
    overall_score: Optional[float] = None
    critical_issues: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    raw: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ValidationReport":
        """
        Raises:
            TypeError: An issue list is neither a list nor a string
        """
        score = data.get("overall_score")
        return cls(
            passed=bool(data.get("validation_passed", False)),
            overall_score=float(score) if isinstance(score, (int, float)) else None,
            critical_issues=_issue_list(data, "critical_issues"),
            warnings=_issue_list(data, "warnings"),
            raw=dict(data),
        )

    @property
    def has_critical_issues(self) -> bool:
        return len(self.critical_issues) > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "validation_passed": self.passed,
            "overall_score": self.overall_score,
            "critical_issues": list(self.critical_issues),
            "warnings": list(self.warnings),
        }


def _issue_list(data: Mapping[str, Any], key: str) -> Tuple[str, ...]:
    """A list of issues; a lone non-empty string counts as one issue."""
    value = data.get(key)
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value.strip() else ()
    if not isinstance(value, list):
        raise TypeError(f"{key} must be a list, got {type(value).__name__}")
    return tuple(_issue_text(issue) for issue in value)


def _issue_text(issue: Any) -> str:
    """Strings are kept as they are; any other issue is serialized whole."""
    if isinstance(issue, str):
        return issue
    return json.dumps(issue, ensure_ascii=False, default=str)
