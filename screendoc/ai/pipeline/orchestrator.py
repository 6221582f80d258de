"""
DocumentationPipeline - sequences the generation stages for one job.

Flow:
    PLANNING (advisory, never blocks)
      -> ANALYZING -> WRITING_CONTENT -> BUILDING -> VALIDATING
      -> COMPLETED | NEEDS_REVIEW
    any stage failure -> FAILED

Stages run strictly one after another: each prompt is built from the
artifacts of the stages before it. Nothing is retried or repaired
automatically; a finished package with critical validation issues is
handed back flagged for review.
"""

import logging
import time
from typing import List, Optional

from screendoc.ai.monitoring import AIMonitor, ai_monitor
from screendoc.ai.pipeline.contracts import PipelineResult, PipelineState
from screendoc.ai.providers.base import AIProvider
from screendoc.ai.stages import (
    AnalysisStage,
    BuildStage,
    ContentStage,
    PlanningStage,
    ValidationStage,
    default_plan,
)
from screendoc.ai.stages.contracts import BuildPackage, JobContext, ValidationReport, WorkflowPlan
from screendoc.ai.usage import UsageLedger
from screendoc.services.packager import validate_package_contents
from screendoc.services.progress_channel import EventKind, ProgressEvent, ProgressReporter

logger = logging.getLogger("screendoc.ai.pipeline")

# Stage name reported for each working state
STAGE_BY_STATE = {
    PipelineState.ANALYZING: "analysis",
    PipelineState.WRITING_CONTENT: "content",
    PipelineState.BUILDING: "build",
    PipelineState.VALIDATING: "validation",
}


class DocumentationPipeline:
    """
    Runs the four generation stages for a job context.

    Usage:
        pipeline = DocumentationPipeline(provider=AnthropicProvider())
        result = await pipeline.run(context, progress=channel.reporter(job_id))

        if result.deliverable:
            files = result.package
    """

    def __init__(
        self,
        provider: Optional[AIProvider] = None,
        *,
        planning: Optional[PlanningStage] = None,
        analysis: Optional[AnalysisStage] = None,
        content: Optional[ContentStage] = None,
        build: Optional[BuildStage] = None,
        validation: Optional[ValidationStage] = None,
        monitor: AIMonitor = ai_monitor,
    ):
        if provider is None and None in (planning, analysis, content, build, validation):
            from screendoc.ai.providers.anthropic_provider import AnthropicProvider
            provider = AnthropicProvider()

        self.planning = planning or PlanningStage(provider, monitor)
        self.analysis = analysis or AnalysisStage(provider, monitor)
        self.content = content or ContentStage(provider, monitor)
        self.build = build or BuildStage(provider, monitor)
        self.validation = validation or ValidationStage(provider, monitor)
        self._monitor = monitor

    async def run(self, context: JobContext, progress: Optional[ProgressReporter] = None) -> PipelineResult:
        """
        Execute the pipeline. Never raises: every stage failure becomes a
        FAILED result.
        """
        start_time = time.time()
        ledger = UsageLedger()
        states: List[PipelineState] = [PipelineState.PLANNING]

        logger.info(f"Pipeline started for {context.app_name}")
        plan = await self._plan(context, ledger, progress)

        result = PipelineResult(
            status=PipelineState.PLANNING,
            workflow_id=plan.workflow_id,
            plan=plan,
            states=states,
        )

        try:
            states.append(PipelineState.ANALYZING)
            result.analysis = await self.analysis.run(context, ledger, progress, job_id=result.workflow_id)
            logger.info(f"Analysis complete: {result.analysis.total_elements} elements found")

            states.append(PipelineState.WRITING_CONTENT)
            result.content = await self.content.run(
                context, ledger, progress, job_id=result.workflow_id,
                analysis=result.analysis,
            )
            logger.info(f"Content generated: {result.content.tooltip_count} tooltips")

            states.append(PipelineState.BUILDING)
            package = await self.build.run(
                context, ledger, progress, job_id=result.workflow_id,
                analysis=result.analysis,
                content=result.content,
            )
            logger.info(f"HTML package built: {len(package)} files")

            states.append(PipelineState.VALIDATING)
            report = await self.validation.run(
                context, ledger, progress, job_id=result.workflow_id, package=package,
            )
            logger.info(f"Validation complete: {report.overall_score}/100")

        except Exception as e:
            failed_state = states[-1]
            result.failed_stage = STAGE_BY_STATE.get(failed_state, failed_state.value)
            result.error = f"{result.failed_stage} stage failed: {e}"
            self._finish(result, PipelineState.FAILED, ledger, start_time)

            logger.error(f"Error during documentation generation: {result.error}")
            self._monitor.track_error(
                request_id=result.workflow_id,
                error=str(e),
                stage=result.failed_stage,
                metadata={"error_type": type(e).__name__},
            )
            await self._report(progress, EventKind.ERROR, result.error, {"stage": result.failed_stage})
            return result

        self._apply_validation(result, package, report)
        self._finish(result, result.status, ledger, start_time)

        if result.status == PipelineState.NEEDS_REVIEW:
            await self._report(progress, EventKind.INFO, result.reason, {
                "critical_issues": result.critical_issues,
                "packaging_errors": result.packaging_errors,
            })
        return result

    # -----------------------------------------------------------------------
    # STEPS
    # -----------------------------------------------------------------------

    async def _plan(
        self,
        context: JobContext,
        ledger: UsageLedger,
        progress: Optional[ProgressReporter],
    ) -> WorkflowPlan:
        """Best-effort complexity estimate; falls back to the default plan."""
        try:
            plan = await self.planning.run(context, ledger, progress)
        except Exception as e:
            logger.warning(f"Planning failed, using default plan: {e}")
            plan = default_plan()

        logger.info(f"Workflow plan created: {plan.complexity.value} interface")
        await self._report(progress, EventKind.INFO, "Workflow plan created", plan.to_dict(), stage="orchestrator")
        return plan

    def _apply_validation(self, result: PipelineResult, package: BuildPackage, report: ValidationReport) -> None:
        """Route the finished job to COMPLETED or NEEDS_REVIEW."""
        result.package = package
        result.validation = report
        result.warnings = list(report.warnings)

        if report.has_critical_issues:
            result.critical_issues = list(report.critical_issues)
            result.status = PipelineState.NEEDS_REVIEW
            for i, issue in enumerate(result.critical_issues, start=1):
                logger.warning(f"Critical issue {i}: {issue}")
            return

        if not report.passed:
            logger.info("Validation did not pass but reported only warnings, proceeding")

        check = validate_package_contents(package)
        if not check.valid:
            result.packaging_errors = check.errors
            result.status = PipelineState.NEEDS_REVIEW
            logger.warning(f"Package check failed: {'; '.join(check.errors)}")
            return

        result.status = PipelineState.COMPLETED

    def _finish(self, result: PipelineResult, status: PipelineState, ledger: UsageLedger, start_time: float) -> None:
        result.status = status
        result.states.append(status)
        result.usage = ledger.finalize()
        result.processing_time_ms = (time.time() - start_time) * 1000

        self._monitor.track_event(
            request_id=result.workflow_id,
            event_type="pipeline_finished",
            data={
                "status": status.value,
                "processing_time_ms": round(result.processing_time_ms, 2),
                "tokens": result.usage.to_dict(),
                "estimated_cost": round(result.cost_estimate, 6),
            },
        )

    async def _report(
        self,
        progress: Optional[ProgressReporter],
        kind: EventKind,
        message: str,
        metadata: Optional[dict] = None,
        stage: str = "orchestrator",
    ) -> None:
        if progress is None:
            return
        try:
            await progress(ProgressEvent(kind=kind, stage=stage, message=message, metadata=metadata))
        except Exception as e:
            logger.warning(f"Progress report dropped: {e}")
