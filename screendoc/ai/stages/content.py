"""Content stage - writes tooltips and workflow documentation from the analysis."""

from typing import Any, Dict

from screendoc.ai.prompts.stage_prompts import CONTENT_ROLE, build_content_prompt
from screendoc.ai.stages.base import GenerationStage, ModelClass
from screendoc.ai.stages.contracts import AnalysisResult, ContentResult, JobContext


class ContentStage(GenerationStage[ContentResult]):
    name = "content"
    title = "Content Writer"
    role = CONTENT_ROLE
    model_class = ModelClass.LARGE
    max_tokens = 12000
    temperature = 0.9

    def build_prompt(self, context: JobContext, *, analysis: AnalysisResult, **upstream: Any) -> str:
        return build_content_prompt(dict(analysis.data), context.describe())

    def parse(self, text: str, context: JobContext) -> ContentResult:
        return ContentResult(data=self.parse_json_object(text))

    def summarize(self, artifact: ContentResult) -> Dict[str, Any]:
        return {"tooltips": artifact.tooltip_count}
