"""Analysis stage - catalogues the UI elements visible in the screenshot."""

import base64
from typing import Any, Dict, List

from screendoc.ai.prompts.stage_prompts import ANALYST_ROLE, build_analysis_prompt
from screendoc.ai.providers.base import ImageAttachment
from screendoc.ai.stages.base import GenerationStage, ModelClass
from screendoc.ai.stages.contracts import AnalysisResult, JobContext


class AnalysisStage(GenerationStage[AnalysisResult]):
    name = "analysis"
    title = "UI Analyst"
    role = ANALYST_ROLE
    model_class = ModelClass.LARGE
    max_tokens = 8000
    temperature = 0.8

    def build_prompt(self, context: JobContext, **upstream: Any) -> str:
        return build_analysis_prompt(context.describe())

    def attachments(self, context: JobContext) -> List[ImageAttachment]:
        encoded = base64.b64encode(context.screenshot.data).decode("ascii")
        return [ImageAttachment(media_type=context.screenshot.mimetype, data_base64=encoded)]

    def parse(self, text: str, context: JobContext) -> AnalysisResult:
        return AnalysisResult(data=self.parse_json_object(text))

    def summarize(self, artifact: AnalysisResult) -> Dict[str, Any]:
        return {"elements": artifact.total_elements}
