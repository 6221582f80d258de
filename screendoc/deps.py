"""
Dependencies module - process-scoped services and their FastAPI accessors.

Everything that lives for the whole process (progress subscribers,
running preview servers, the upload counter) sits in one ServiceContainer
created by the app factory and stored on ``app.state.services``. Route
handlers reach it through ``get_services``; tests build their own
container with a fake pipeline.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from fastapi import Request

from screendoc.ai.pipeline import DocumentationPipeline
from screendoc.core.config import settings
from screendoc.core.diagnostics import DiagnosticsSink
from screendoc.services.documentation_service import DocumentationService, UploadNamer
from screendoc.services.preview_server import PreviewServerManager
from screendoc.services.progress_channel import ProgressChannel


@dataclass
class ServiceContainer:
    documentation: DocumentationService
    progress: ProgressChannel
    previews: PreviewServerManager
    diagnostics: DiagnosticsSink
    upload_dir: Path
    output_dir: Path
    uploads: UploadNamer = field(default_factory=UploadNamer)


def build_services(
    pipeline: Optional[DocumentationPipeline] = None,
    *,
    upload_dir: Optional[Path] = None,
    output_dir: Optional[Path] = None,
    temp_dir: Optional[Path] = None,
) -> ServiceContainer:
    """Create the container from settings; arguments override settings."""
    upload_dir = Path(upload_dir or settings.UPLOAD_DIR)
    output_dir = Path(output_dir or settings.OUTPUT_DIR)
    diagnostics = DiagnosticsSink()

    return ServiceContainer(
        documentation=DocumentationService(pipeline or DocumentationPipeline(), output_dir),
        progress=ProgressChannel(),
        previews=PreviewServerManager(
            temp_root=Path(temp_dir or settings.PREVIEW_TEMP_DIR),
            host=settings.PREVIEW_HOST,
            base_port=settings.PREVIEW_BASE_PORT,
            public_host=settings.PREVIEW_PUBLIC_HOST,
            diagnostics=diagnostics,
        ),
        diagnostics=diagnostics,
        upload_dir=upload_dir,
        output_dir=output_dir,
    )


def get_services(request: Request) -> ServiceContainer:
    """FastAPI dependency returning the app's ServiceContainer."""
    return request.app.state.services
