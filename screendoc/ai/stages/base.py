"""
GenerationStage - one model call with a fixed role and output contract.

A stage:
1. Projects the job context and upstream artifacts into one prompt
2. Makes exactly one provider call (no internal retries, no fan-out)
3. Parses the response into its typed artifact
4. Adds the call's token usage to the job ledger

Start/complete progress events are emitted around the call when a
reporter is attached. Failures propagate to the orchestrator unchanged.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Generic, List, Optional, TypeVar
from uuid import uuid4

from screendoc.ai.extraction import extract_json
from screendoc.ai.monitoring import AIMonitor, ai_monitor
from screendoc.ai.providers.base import AIProvider, ImageAttachment
from screendoc.ai.stages.contracts import JobContext
from screendoc.ai.usage import UsageLedger
from screendoc.core.config import settings
from screendoc.core.exceptions import TransportError, UnrecoverableStructuredOutput
from screendoc.services.progress_channel import EventKind, ProgressEvent, ProgressReporter

logger = logging.getLogger("screendoc.ai.stages")

ArtifactT = TypeVar("ArtifactT")

DEBUG_DUMP_FILENAME = "debug_json_error.txt"


class ModelClass(str, Enum):
    """Size/cost class of the model a stage runs on."""
    LARGE = "large"
    SMALL = "small"


def resolve_model(model_class: ModelClass) -> str:
    if model_class == ModelClass.SMALL:
        return settings.ANTHROPIC_MODEL_SMALL
    return settings.ANTHROPIC_MODEL_LARGE


class GenerationStage(ABC, Generic[ArtifactT]):
    """Base class for the pipeline stages."""

    name: str
    title: str
    role: str
    model_class: ModelClass = ModelClass.LARGE
    max_tokens: int = 4000
    temperature: float = 1.0

    def __init__(
        self,
        provider: AIProvider,
        monitor: AIMonitor = ai_monitor,
        debug_dump_dir: Optional[str] = None,
    ):
        self._provider = provider
        self._monitor = monitor
        self._debug_dump_dir = Path(debug_dump_dir if debug_dump_dir is not None else settings.DEBUG_DUMP_DIR)

    @property
    def model(self) -> str:
        return resolve_model(self.model_class)

    # -----------------------------------------------------------------------
    # STAGE CONTRACT
    # -----------------------------------------------------------------------

    @abstractmethod
    def build_prompt(self, context: JobContext, **upstream: Any) -> str:
        """Serialize upstream artifacts and the task directive."""

    def attachments(self, context: JobContext) -> List[ImageAttachment]:
        """Inline images for the request (none by default)."""
        return []

    @abstractmethod
    def parse(self, text: str, context: JobContext) -> ArtifactT:
        """Turn the raw response into the stage artifact."""

    def summarize(self, artifact: ArtifactT) -> Dict[str, Any]:
        """Metadata attached to the completion event."""
        return {}

    # -----------------------------------------------------------------------
    # EXECUTION
    # -----------------------------------------------------------------------

    async def run(
        self,
        context: JobContext,
        ledger: UsageLedger,
        progress: Optional[ProgressReporter] = None,
        *,
        job_id: Optional[str] = None,
        **upstream: Any,
    ) -> ArtifactT:
        """
        Execute the stage once.

        ``job_id`` tags the monitor records of the call; planning runs before
        the workflow id exists and leaves it unset.

        Raises:
            TransportError: The provider call failed
            StructuredOutputError: The response could not be parsed
        """
        request_id = uuid4().hex[:12]
        await self._report(progress, EventKind.START, f"{self.title} started", {"model": self.model})

        prompt = self.build_prompt(context, **upstream)
        images = self.attachments(context)

        self._monitor.track_request(
            request_id=request_id,
            stage=self.name,
            model=self.model,
            prompt=prompt,
            image_count=len(images),
            job_id=job_id,
        )

        response = await self._provider.generate(
            prompt=prompt,
            system_prompt=self.role,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            model=self.model,
            images=images or None,
        )
        self._monitor.track_response(request_id=request_id, stage=self.name, response=response, job_id=job_id)

        if not response.success:
            raise TransportError(f"{self.title} call failed: {response.error}")

        try:
            artifact = self.parse(response.content, context)
        except UnrecoverableStructuredOutput as e:
            await self._dump_debug(e)
            raise

        ledger.add(response.usage)

        metadata = self.summarize(artifact)
        metadata["tokens"] = response.usage.total_tokens
        await self._report(progress, EventKind.COMPLETE, f"{self.title} finished", metadata)
        return artifact

    def parse_json_object(self, text: str) -> Dict[str, Any]:
        """Extract the JSON object of a response."""
        data = extract_json(text)
        if not isinstance(data, dict):
            raise UnrecoverableStructuredOutput(
                f"{self.title} returned {type(data).__name__}, expected an object",
                raw_text=text,
            )
        return data

    # -----------------------------------------------------------------------
    # HELPERS
    # -----------------------------------------------------------------------

    async def _report(
        self,
        progress: Optional[ProgressReporter],
        kind: EventKind,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        if progress is None:
            return
        try:
            await progress(ProgressEvent(kind=kind, stage=self.name, message=message, metadata=metadata))
        except Exception as e:
            logger.warning(f"Progress report from {self.name} dropped: {e}")

    async def _dump_debug(self, error: UnrecoverableStructuredOutput) -> None:
        """Write the unparseable response next to the service for inspection."""
        logger.error(f"{self.title}: {error}")

        attempted = error.attempted_text or error.raw_text
        if error.position is not None:
            start = max(0, error.position - 200)
            end = min(len(attempted), error.position + 200)
            logger.error(f"Context around error position:\n{attempted[start:end]}")

        path = self._debug_dump_dir / DEBUG_DUMP_FILENAME
        try:
            await asyncio.to_thread(path.write_text, error.raw_text, "utf-8")
            logger.error(f"Debug JSON saved to: {path}")
        except OSError as e:
            logger.error(f"Could not save debug file: {e}")
