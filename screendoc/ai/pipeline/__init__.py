"""Documentation pipeline: stage sequencing and failure policy."""

from screendoc.ai.pipeline.contracts import PipelineResult, PipelineState
from screendoc.ai.pipeline.orchestrator import DocumentationPipeline

__all__ = ["DocumentationPipeline", "PipelineResult", "PipelineState"]
