"""Bounded retry loop around the external detector."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .errors import DetectionCancelledError, NoDetectionError

if TYPE_CHECKING:
    import numpy as np

    from .vision import Detection, Detector

logger = logging.getLogger(__name__)

MAX_RETRIES = 5
ACCEPTANCE_CONFIDENCE = 0.5
BACKOFF_SECONDS = 0.5

DEFAULT_FOOD_CLASSES: frozenset[str] = frozenset({
    "banana",
    "apple",
    "sandwich",
    "orange",
    "broccoli",
    "carrot",
    "hot dog",
    "pizza",
    "donut",
    "cake",
})

FrameSource = Callable[[], Awaitable["np.ndarray"]]


class RetryState(Enum):
    IDLE = "idle"
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class RetryResult:
    state: RetryState
    detection: Detection | None
    image: np.ndarray | None  # frame the detection was made on
    attempts: int

    @property
    def accepted(self) -> bool:
        return self.state is RetryState.SUCCEEDED

    @property
    def low_confidence(self) -> bool:
        return self.state is RetryState.EXHAUSTED and self.detection is not None


class DetectionRetryController:
    """Call the detector until a food detection clears the acceptance gate.

    Each attempt pulls a frame from the frame source, runs the detector,
    keeps only allow-listed classes and compares the most confident one
    against the best seen so far. A strictly higher confidence replaces
    the best. The loop stops as soon as the best reaches
    ``acceptance_confidence`` or after ``max_retries`` attempts, sleeping
    ``backoff_seconds`` between unsuccessful attempts.
    """

    def __init__(
        self,
        detector: Detector,
        food_classes: Iterable[str] = DEFAULT_FOOD_CLASSES,
        max_retries: int = MAX_RETRIES,
        acceptance_confidence: float = ACCEPTANCE_CONFIDENCE,
        backoff_seconds: float = BACKOFF_SECONDS,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self._detector = detector
        self._food_classes = frozenset(c.lower() for c in food_classes)
        self._max_retries = max_retries
        self._acceptance_confidence = acceptance_confidence
        self._backoff_seconds = backoff_seconds
        self._state = RetryState.IDLE
        self._cancel_requested = False

    @property
    def state(self) -> RetryState:
        return self._state

    def cancel(self) -> None:
        """Stop issuing attempts; the running loop ends in CANCELLED."""
        self._cancel_requested = True

    async def run(self, frame_source: FrameSource) -> RetryResult:
        """Drive the detector until success or the retry budget runs out.

        Returns:
            A SUCCEEDED result, or an EXHAUSTED result holding the best
            sub-threshold detection.

        Raises:
            NoDetectionError: No allow-listed class was seen in any attempt.
            DetectionCancelledError: :meth:`cancel` was called mid-run.
        """
        if self._state is RetryState.ATTEMPTING:
            raise RuntimeError("retry loop is already running")

        self._cancel_requested = False
        self._state = RetryState.ATTEMPTING
        best: Detection | None = None
        best_image: np.ndarray | None = None
        attempts = 0

        try:
            while attempts < self._max_retries:
                if self._cancel_requested:
                    raise self._cancelled(attempts)

                attempts += 1
                image, candidate = await self._attempt(frame_source, attempts)
                if candidate is not None and (
                    best is None or candidate.confidence > best.confidence
                ):
                    best, best_image = candidate, image

                if best is not None and best.confidence >= self._acceptance_confidence:
                    self._state = RetryState.SUCCEEDED
                    logger.info(
                        "Detected %r (%.2f) after %d attempt(s)",
                        best.class_label,
                        best.confidence,
                        attempts,
                    )
                    return RetryResult(self._state, best, best_image, attempts)

                if attempts < self._max_retries:
                    await asyncio.sleep(self._backoff_seconds)
        except asyncio.CancelledError:
            self._state = RetryState.CANCELLED
            logger.info("Detection task cancelled after %d attempt(s)", attempts)
            raise

        if self._cancel_requested:
            raise self._cancelled(attempts)

        self._state = RetryState.EXHAUSTED
        if best is None:
            logger.warning("No food item detected in %d attempt(s)", attempts)
            raise NoDetectionError()

        logger.warning(
            "Best detection %r stayed below %.2f (%.2f)",
            best.class_label,
            self._acceptance_confidence,
            best.confidence,
        )
        return RetryResult(self._state, best, best_image, attempts)

    async def _attempt(
        self, frame_source: FrameSource, attempt: int
    ) -> tuple[np.ndarray | None, Detection | None]:
        try:
            image = await frame_source()
            detections = await self._detector.detect(image)
        except Exception:
            logger.warning("Detection attempt %d failed", attempt, exc_info=True)
            return None, None

        food = [
            d for d in detections if d.class_label.lower() in self._food_classes
        ]
        logger.debug(
            "Attempt %d: %d detection(s), %d food", attempt, len(detections), len(food)
        )
        if not food:
            return image, None
        return image, max(food, key=lambda d: d.confidence)

    def _cancelled(self, attempts: int) -> DetectionCancelledError:
        self._state = RetryState.CANCELLED
        logger.info("Detection cancelled after %d attempt(s)", attempts)
        return DetectionCancelledError()
