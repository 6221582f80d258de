"""
Exception hierarchy for Screendoc.

Stage failures (structured output and transport errors) are raised inside
the pipeline and converted into a failed job result by the orchestrator.
Preview errors surface only to the caller of the preview operation.
"""

from typing import Optional


class ScreendocError(Exception):
    """Base class for all Screendoc errors."""


# ---------------------------------------------------------------------------
# MODEL OUTPUT
# ---------------------------------------------------------------------------

class StructuredOutputError(ScreendocError):
    """The model response could not be interpreted as structured data."""


class NoStructuredOutput(StructuredOutputError):
    """The response contains no JSON object at all."""

    def __init__(self, message: str = "No JSON found in response"):
        super().__init__(message)


class UnrecoverableStructuredOutput(StructuredOutputError):
    """
    A JSON span was found but could not be parsed even after repair.

    Attributes:
        raw_text: The original response text, kept for out-of-band inspection
        position: Character offset of the parse error in ``attempted_text``
        attempted_text: The last (repaired) span handed to the parser
    """

    def __init__(
        self,
        message: str,
        raw_text: str,
        position: Optional[int] = None,
        attempted_text: Optional[str] = None,
    ):
        super().__init__(message)
        self.raw_text = raw_text
        self.position = position
        self.attempted_text = attempted_text


class TransportError(ScreendocError):
    """The model call itself failed (network, auth, rate limit)."""


# ---------------------------------------------------------------------------
# INPUT
# ---------------------------------------------------------------------------

class InvalidScreenshotError(ScreendocError):
    """The screenshot is missing, too large or not a supported image."""


# ---------------------------------------------------------------------------
# PREVIEW SERVERS
# ---------------------------------------------------------------------------

class PreviewError(ScreendocError):
    """Base class for preview server startup failures."""


class ExtractionError(PreviewError):
    """The package archive could not be read or extracted."""


class BindError(PreviewError):
    """The preview listener could not bind its port."""

    def __init__(self, message: str, port: int):
        super().__init__(message)
        self.port = port
