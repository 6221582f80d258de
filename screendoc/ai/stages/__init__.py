"""
Generation stages of the documentation pipeline.

planning (advisory) -> analysis -> content -> build -> validation
"""

from screendoc.ai.stages.analysis import AnalysisStage
from screendoc.ai.stages.base import GenerationStage, ModelClass, resolve_model
from screendoc.ai.stages.build import BuildStage, parse_multi_file_output
from screendoc.ai.stages.content import ContentStage
from screendoc.ai.stages.contracts import (
    AnalysisResult,
    BuildPackage,
    Complexity,
    ContentResult,
    JobContext,
    Screenshot,
    ValidationReport,
    WorkflowPlan,
)
from screendoc.ai.stages.planning import PlanningStage, default_plan
from screendoc.ai.stages.validation import ValidationStage

__all__ = [
    "AnalysisStage",
    "BuildStage",
    "ContentStage",
    "PlanningStage",
    "ValidationStage",
    "GenerationStage",
    "ModelClass",
    "resolve_model",
    "parse_multi_file_output",
    "default_plan",
    "AnalysisResult",
    "BuildPackage",
    "Complexity",
    "ContentResult",
    "JobContext",
    "Screenshot",
    "ValidationReport",
    "WorkflowPlan",
]
