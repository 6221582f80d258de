"""
Planning step - advisory size estimate of the interface.

The plan is metadata on the final result only; it does not choose models
or gate any stage. The orchestrator falls back to ``default_plan`` when
this call fails for any reason.
"""

from typing import Any, Dict
from uuid import uuid4

from screendoc.ai.prompts.stage_prompts import PLANNER_ROLE, build_planning_prompt
from screendoc.ai.stages.base import GenerationStage, ModelClass
from screendoc.ai.stages.contracts import Complexity, JobContext, WorkflowPlan


def default_plan() -> WorkflowPlan:
    return WorkflowPlan(workflow_id=str(uuid4()), fallback=True)


def _number(value: Any, fallback: float) -> float:
    return value if isinstance(value, (int, float)) and not isinstance(value, bool) else fallback


class PlanningStage(GenerationStage[WorkflowPlan]):
    name = "planning"
    title = "Planner"
    role = PLANNER_ROLE
    model_class = ModelClass.LARGE
    max_tokens = 2000
    temperature = 1.0

    def build_prompt(self, context: JobContext, **upstream: Any) -> str:
        return build_planning_prompt(context.screenshot.size, context.to_dict())

    def parse(self, text: str, context: JobContext) -> WorkflowPlan:
        data = self.parse_json_object(text)
        defaults = WorkflowPlan(workflow_id="")

        try:
            complexity = Complexity(str(data.get("complexity", "")).lower())
        except ValueError:
            complexity = defaults.complexity

        return WorkflowPlan(
            workflow_id=str(data.get("workflow_id") or uuid4()),
            complexity=complexity,
            estimated_elements=int(_number(data.get("estimated_elements"), defaults.estimated_elements)),
            estimated_time=_number(data.get("estimated_time"), defaults.estimated_time),
            estimated_cost=_number(data.get("estimated_cost"), defaults.estimated_cost),
        )

    def summarize(self, artifact: WorkflowPlan) -> Dict[str, Any]:
        return {"complexity": artifact.complexity.value}
