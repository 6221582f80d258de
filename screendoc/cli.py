"""
Command line entry point.

    screendoc shot.png --app-name "Acme Viewer" --description "desktop tool"

Runs one documentation job and writes the package to OUTPUT_DIR. Exits
with 0 when a deliverable package was written, 1 otherwise.
"""

import argparse
import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from screendoc.ai.pipeline import DocumentationPipeline
from screendoc.core.config import settings
from screendoc.core.exceptions import InvalidScreenshotError
from screendoc.core.logging import setup_logging
from screendoc.services.documentation_service import DocumentationService, JobOutcome
from screendoc.services.image_loader import PathSource

logger = logging.getLogger("screendoc.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="screendoc",
        description="Generate an interactive HTML guide from an application screenshot.",
    )
    parser.add_argument("screenshot", type=Path, help="Path to the screenshot (png, jpg, webp, gif)")
    parser.add_argument("--app-name", required=True, help="Application name")
    parser.add_argument("--description", default="User interface screenshot", help="What the application does")
    parser.add_argument("--vendor", default=None)
    parser.add_argument("--links", default=None, help="Comma separated reference links")
    parser.add_argument("--notes", default=None, help="Special instructions for the writers")
    parser.add_argument("--output-dir", type=Path, default=Path(settings.OUTPUT_DIR))
    parser.add_argument("--verbose", action="store_true")
    return parser


def _print_summary(outcome: JobOutcome) -> None:
    result = outcome.result
    print(f"Status: {result.status.value}")
    print(f"Reason: {result.reason}")
    if result.plan:
        print(f"Complexity: {result.plan.complexity.value}")
    print(f"Processing time: {result.processing_time_ms / 1000:.2f}s")
    if result.usage:
        print(f"Total tokens: {result.usage.total_tokens:,}")
    print(f"Estimated cost: ${outcome.cost_estimate:.4f}")
    if result.validation:
        print(f"Validation score: {result.validation.overall_score}/100")
    for warning in result.warnings:
        print(f"  warning: {warning}")
    for issue in result.critical_issues:
        print(f"  critical: {issue}")
    if outcome.output_path:
        print(f"Package: {outcome.output_path}")


async def run(args: argparse.Namespace, pipeline: Optional[DocumentationPipeline] = None) -> int:
    if pipeline is None and not settings.ANTHROPIC_API_KEY:
        logger.error("ANTHROPIC_API_KEY is not set")
        return 1

    service = DocumentationService(pipeline or DocumentationPipeline(), args.output_dir)
    try:
        outcome = await service.process(
            PathSource(args.screenshot),
            app_name=args.app_name,
            description=args.description,
            vendor=args.vendor,
            links=args.links,
            notes=args.notes,
        )
    except InvalidScreenshotError as e:
        logger.error(f"Invalid screenshot: {e}")
        return 1

    _print_summary(outcome)
    return 0 if outcome.deliverable else 1


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)
    return asyncio.run(run(args))


if __name__ == "__main__":
    raise SystemExit(main())
