"""
Documentation Service - the job submission surface.

Joins the pieces for one job:
    screenshot source -> Screenshot -> JobContext -> pipeline run
      -> (deliverable) FILE-STRUCTURE.txt + ZIP package in OUTPUT_DIR

The caller gets a JobOutcome back whatever happens inside the pipeline.
Only a bad screenshot raises (InvalidScreenshotError), since no job has
started at that point.
"""

import itertools
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

from screendoc.ai.pipeline import DocumentationPipeline, PipelineResult
from screendoc.ai.stages.contracts import JobContext
from screendoc.services.image_loader import ScreenshotSource, load_screenshot
from screendoc.services.packager import (
    FILE_STRUCTURE_FILENAME,
    create_file_structure_doc,
    generate_output_filename,
    write_zip_package,
)
from screendoc.services.progress_channel import ProgressReporter

logger = logging.getLogger(__name__)


def parse_links(raw: Optional[Union[str, Iterable[str]]]) -> Tuple[str, ...]:
    """Comma separated string (or iterable) -> tuple of non-empty links."""
    if not raw:
        return ()
    parts = raw.split(",") if isinstance(raw, str) else raw
    return tuple(link.strip() for link in parts if link and link.strip())


class UploadNamer:
    """
    Unique names for stored uploads: ``<epoch-ms>-<counter><ext>``.

    The counter is shared by every upload handled by the process.
    """

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)

    def name_for(self, original_filename: str) -> str:
        ext = Path(original_filename).suffix.lower()
        return f"{int(time.time() * 1000)}-{next(self._counter)}{ext}"


@dataclass
class JobOutcome:
    """Pipeline result plus where its package was written (if it was)."""
    result: PipelineResult
    context: JobContext
    output_path: Optional[Path] = None

    @property
    def deliverable(self) -> bool:
        return self.result.deliverable and self.output_path is not None

    @property
    def output_filename(self) -> Optional[str]:
        return self.output_path.name if self.output_path else None

    @property
    def cost_estimate(self) -> float:
        return self.result.cost_estimate


class DocumentationService:
    """
    Usage:
        service = DocumentationService(pipeline, output_dir=Path("output"))
        outcome = await service.process(
            PathSource(Path("shot.png")),
            app_name="Acme Viewer",
            description="desktop tool",
        )
        if outcome.deliverable:
            print(outcome.output_path)
    """

    def __init__(self, pipeline: DocumentationPipeline, output_dir: Union[str, Path]):
        self.pipeline = pipeline
        self.output_dir = Path(output_dir)

    async def process(
        self,
        source: ScreenshotSource,
        *,
        app_name: str,
        description: str,
        vendor: Optional[str] = None,
        links: Optional[Union[str, Iterable[str]]] = None,
        notes: Optional[str] = None,
        progress: Optional[ProgressReporter] = None,
    ) -> JobOutcome:
        """
        Run one documentation job.

        Raises:
            InvalidScreenshotError: The screenshot could not be loaded
        """
        screenshot = await load_screenshot(source)
        context = JobContext(
            screenshot=screenshot,
            app_name=app_name,
            description=description,
            vendor=vendor or None,
            links=parse_links(links),
            notes=notes or None,
        )

        logger.info(f"Processing {screenshot.filename} for {app_name}")
        result = await self.pipeline.run(context, progress=progress)

        if not result.deliverable:
            logger.warning(f"Job for {app_name} not deliverable: {result.reason}")
            return JobOutcome(result=result, context=context)

        files = result.package.with_files(
            {FILE_STRUCTURE_FILENAME: create_file_structure_doc(result.package)}
        )
        output_path = self.output_dir / generate_output_filename(app_name)
        await write_zip_package(files, output_path)

        usage = result.usage
        logger.info(
            f"Job for {app_name} done in {result.processing_time_ms / 1000:.2f}s, "
            f"{usage.total_tokens if usage else 0} tokens, "
            f"estimated cost ${result.cost_estimate:.4f}"
        )
        return JobOutcome(result=result, context=context, output_path=output_path)
