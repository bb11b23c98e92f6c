"""Error kinds raised by the freshness pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .retry import RetryResult


class PipelineError(Exception):
    """Base class for failures surfaced to the caller as a status message."""

    default_message = "processing failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ModelUnavailableError(PipelineError):
    default_message = "detection model is unavailable"


class NoDetectionError(PipelineError):
    default_message = "no food item detected"


class LowConfidenceError(PipelineError):
    """The best detection stayed below the acceptance gate.

    The retry result is attached so the caller can decide to accept it.
    """

    default_message = "food item detected with low confidence"

    def __init__(self, result: RetryResult, message: str | None = None) -> None:
        super().__init__(message)
        self.result = result


class OCRFailureError(PipelineError):
    default_message = "processing failed"


class DetectionCancelledError(PipelineError):
    default_message = "detection cancelled"
