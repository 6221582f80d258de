"""
Contracts for the documentation pipeline.

States, the ordered stage sequence and the result handed back to callers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from screendoc.ai.stages.contracts import (
    AnalysisResult,
    BuildPackage,
    ContentResult,
    ValidationReport,
    WorkflowPlan,
)
from screendoc.ai.usage import UsageSummary


class PipelineState(str, Enum):
    PLANNING = "planning"
    ANALYZING = "analyzing"
    WRITING_CONTENT = "writing_content"
    BUILDING = "building"
    VALIDATING = "validating"
    COMPLETED = "completed"
    FAILED = "failed"
    NEEDS_REVIEW = "needs_review"

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineState.COMPLETED, PipelineState.FAILED, PipelineState.NEEDS_REVIEW)


@dataclass
class PipelineResult:
    """
    Outcome of one pipeline run.

    Three shapes:
    - COMPLETED: deliverable package, warnings surfaced alongside
    - NEEDS_REVIEW: package and report present, flagged for the caller
    - FAILED: no package, ``error`` names the failing stage
    """

    status: PipelineState
    workflow_id: str
    plan: Optional[WorkflowPlan] = None
    analysis: Optional[AnalysisResult] = None
    content: Optional[ContentResult] = None
    package: Optional[BuildPackage] = None
    validation: Optional[ValidationReport] = None
    warnings: List[str] = field(default_factory=list)
    critical_issues: List[str] = field(default_factory=list)
    packaging_errors: List[str] = field(default_factory=list)
    error: Optional[str] = None
    failed_stage: Optional[str] = None
    usage: Optional[UsageSummary] = None
    processing_time_ms: float = 0.0
    states: List[PipelineState] = field(default_factory=list)

    @property
    def deliverable(self) -> bool:
        return self.status == PipelineState.COMPLETED and self.package is not None

    @property
    def requires_manual_review(self) -> bool:
        return self.status == PipelineState.NEEDS_REVIEW

    @property
    def cost_estimate(self) -> float:
        return self.usage.estimate_cost() if self.usage else 0.0

    @property
    def reason(self) -> str:
        """Human-readable explanation of the outcome."""
        if self.status == PipelineState.COMPLETED:
            if self.warnings:
                return f"Documentation generated with {len(self.warnings)} warning(s)"
            return "Documentation generated successfully"

        if self.status == PipelineState.NEEDS_REVIEW:
            if self.critical_issues:
                return (
                    f"Validation found {len(self.critical_issues)} critical issue(s); "
                    f"manual review required"
                )
            return f"Package incomplete: {'; '.join(self.packaging_errors)}"

        return self.error or "Documentation generation failed"

    def metadata(self) -> Dict[str, Any]:
        """Summary stored with the history entry."""
        return {
            "workflow_id": self.workflow_id,
            "status": self.status.value,
            "processing_time": round(self.processing_time_ms),
            "tokens_used": self.usage.to_dict() if self.usage else None,
            "complexity": self.plan.complexity.value if self.plan else None,
            "failed_stage": self.failed_stage,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "deliverable": self.deliverable,
            "reason": self.reason,
            "files": sorted(self.package) if self.package is not None else [],
            "validation": self.validation.to_dict() if self.validation else None,
            "warnings": list(self.warnings),
            "critical_issues": list(self.critical_issues),
            "packaging_errors": list(self.packaging_errors),
            "error": self.error,
            "cost_estimate": self.cost_estimate,
            "plan": self.plan.to_dict() if self.plan else None,
            "metadata": self.metadata(),
        }
