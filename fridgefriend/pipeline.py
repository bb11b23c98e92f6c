"""Food recognition and freshness estimation pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING

from .catalog import FOOD_CATALOG, UNKNOWN_ITEM, CatalogMatcher
from .errors import (
    DetectionCancelledError,
    LowConfidenceError,
    ModelUnavailableError,
    OCRFailureError,
    PipelineError,
)
from .expiry import (
    LABEL_FALLBACK_DAYS,
    ExpiryDateExtractor,
    ExtractedExpiry,
    label_expiry,
    schedule_expiry,
)
from .imaging import crop_region, load_image
from .retry import (
    ACCEPTANCE_CONFIDENCE,
    BACKOFF_SECONDS,
    DEFAULT_FOOD_CLASSES,
    MAX_RETRIES,
    DetectionRetryController,
    FrameSource,
    RetryResult,
)
from .spoilage import DEFAULT_THRESHOLDS, SpoilageAssessment, SpoilageThresholds, assess

if TYPE_CHECKING:
    from collections.abc import Iterable

    import numpy as np

    from .camera import CameraStream
    from .config import FridgeConfig
    from .ocr import OCREngine
    from .vision import Detector

logger = logging.getLogger(__name__)

DEFAULT_SHELF_LIFE_DAYS = 7


@dataclass(frozen=True)
class InventoryItemDraft:
    """A detected item ready to be stored in the inventory."""

    product_name: str
    quantity: int
    purchase_date: date
    expiry_date: date
    confidence: float | None = None
    spoilage: SpoilageAssessment | None = None
    low_confidence: bool = False

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError(f"quantity must be at least 1, got {self.quantity}")

    def to_dict(self) -> dict:
        return {
            "product_name": self.product_name,
            "quantity": self.quantity,
            "purchase_date": self.purchase_date.isoformat(),
            "expiry_date": self.expiry_date.isoformat(),
            "confidence": self.confidence,
            "spoilage": self.spoilage.to_dict() if self.spoilage else None,
            "low_confidence": self.low_confidence,
        }


@dataclass(frozen=True)
class LabelExtraction:
    """Expiry date read from a package label.

    ``expiry_date`` is always set: the printed date when one was found,
    otherwise the fallback date. ``error`` carries the user-facing message
    when OCR itself failed.
    """

    expiry_date: date
    extracted: ExtractedExpiry
    ocr_text: str = ""
    error: str | None = None

    @property
    def used_fallback(self) -> bool:
        return not self.extracted.found


class FreshnessPipeline:
    """Turn a food photo into an inventory draft, or a label into a date.

    Owns the detector handle: it is initialized on first use, reused for
    every later run and released by :meth:`dispose` (or on leaving the
    ``async with`` block).
    """

    def __init__(
        self,
        detector: Detector,
        ocr_engine: OCREngine | None = None,
        matcher: CatalogMatcher | None = None,
        extractor: ExpiryDateExtractor | None = None,
        *,
        food_classes: Iterable[str] = DEFAULT_FOOD_CLASSES,
        max_retries: int = MAX_RETRIES,
        acceptance_confidence: float = ACCEPTANCE_CONFIDENCE,
        backoff_seconds: float = BACKOFF_SECONDS,
        spoilage_thresholds: SpoilageThresholds = DEFAULT_THRESHOLDS,
        default_shelf_life_days: int = DEFAULT_SHELF_LIFE_DAYS,
        label_fallback_days: int = LABEL_FALLBACK_DAYS,
    ) -> None:
        self._detector = detector
        self._ocr_engine = ocr_engine
        self._matcher = matcher or CatalogMatcher()
        self._extractor = extractor or ExpiryDateExtractor()
        self._food_classes = frozenset(food_classes)
        self._max_retries = max_retries
        self._acceptance_confidence = acceptance_confidence
        self._backoff_seconds = backoff_seconds
        self._spoilage_thresholds = spoilage_thresholds
        self._default_shelf_life_days = default_shelf_life_days
        self._label_fallback_days = label_fallback_days
        self._active: DetectionRetryController | None = None
        self._cancel_requested = False

    @classmethod
    def from_config(
        cls,
        config: FridgeConfig,
        detector: Detector | None = None,
        ocr_engine: OCREngine | None = None,
    ) -> FreshnessPipeline:
        """Build a pipeline with the configured backends and thresholds."""
        if detector is None:
            from .vision import create_detector

            detector = create_detector(config)
        if ocr_engine is None:
            from .ocr import create_ocr_engine

            ocr_engine = create_ocr_engine(config)

        return cls(
            detector,
            ocr_engine,
            CatalogMatcher(
                FOOD_CATALOG,
                similarity_threshold=config.matcher.similarity_threshold,
                min_confidence=config.matcher.min_confidence,
            ),
            food_classes=config.detector.food_classes,
            max_retries=config.detector.max_retries,
            acceptance_confidence=config.detector.acceptance_confidence,
            backoff_seconds=config.detector.backoff_ms / 1000,
            spoilage_thresholds=SpoilageThresholds(**vars(config.spoilage)),
            default_shelf_life_days=config.matcher.default_shelf_life_days,
            label_fallback_days=config.expiry.label_fallback_days,
        )

    async def __aenter__(self) -> FreshnessPipeline:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.dispose()

    async def initialize(self) -> None:
        """Load the detection model if it is not loaded yet.

        Raises:
            ModelUnavailableError: The model could not be loaded.
        """
        if self._detector.initialized:
            return
        try:
            await self._detector.initialize()
        except Exception as e:
            logger.exception("Detection model failed to load")
            raise ModelUnavailableError(f"detection model is unavailable: {e}") from e

    async def dispose(self) -> None:
        self.cancel()
        await self._detector.dispose()

    def cancel(self) -> None:
        """Stop the detection run in progress, if any.

        A run still loading the model stops before its first attempt.
        """
        self._cancel_requested = True
        if self._active is not None:
            self._active.cancel()

    async def detect(
        self,
        frame_source: FrameSource,
        purchase_date: date | None = None,
        quantity: int = 1,
        accept_low_confidence: bool = False,
    ) -> InventoryItemDraft:
        """Detect a food item and estimate its expiry date.

        Args:
            frame_source: Coroutine function returning the RGB image for
                each attempt.
            purchase_date: Defaults to today.
            quantity: Item count for the draft.
            accept_low_confidence: Build a draft (flagged
                ``low_confidence``) from a detection below the acceptance
                gate instead of raising.

        Raises:
            ModelUnavailableError: The detector could not be initialized.
            NoDetectionError: No food class was detected in any attempt.
            LowConfidenceError: Only sub-threshold detections were seen and
                ``accept_low_confidence`` is false.
            DetectionCancelledError: :meth:`cancel` was called.
        """
        self._cancel_requested = False
        await self.initialize()
        if self._cancel_requested:
            logger.info("Detection cancelled while loading the model")
            raise DetectionCancelledError()

        controller = DetectionRetryController(
            self._detector,
            food_classes=self._food_classes,
            max_retries=self._max_retries,
            acceptance_confidence=self._acceptance_confidence,
            backoff_seconds=self._backoff_seconds,
        )
        self._active = controller
        try:
            result = await controller.run(frame_source)
        finally:
            self._active = None

        if result.low_confidence and not accept_low_confidence:
            raise LowConfidenceError(result)

        return self._build_draft(result, purchase_date or date.today(), quantity)

    async def detect_from_image(self, image: np.ndarray, **kwargs) -> InventoryItemDraft:
        """Run detection on a still image, reused for every attempt."""

        async def frame() -> np.ndarray:
            return image

        return await self.detect(frame, **kwargs)

    async def detect_from_file(self, path: str | Path, **kwargs) -> InventoryItemDraft:
        try:
            image = load_image(path)
        except (FileNotFoundError, ValueError) as e:
            raise PipelineError(str(e)) from e
        return await self.detect_from_image(image, **kwargs)

    async def detect_from_camera(
        self, stream: CameraStream, **kwargs
    ) -> InventoryItemDraft:
        """Run detection on live frames, one fresh frame per attempt."""
        return await self.detect(stream.read, **kwargs)

    def _build_draft(
        self, result: RetryResult, purchase_date: date, quantity: int
    ) -> InventoryItemDraft:
        detection = result.detection
        if detection is None or result.image is None:
            raise PipelineError("detection result carries no image")

        region = crop_region(result.image, detection.bounding_box)
        if region.size == 0:
            logger.warning(
                "Bounding box %s is empty; skipping spoilage check",
                detection.bounding_box,
            )
            spoilage = None
            reduction = 0.0
        else:
            spoilage = assess(region, self._spoilage_thresholds)
            reduction = spoilage.shelf_life_reduction_factor

        entry = self._matcher.match(detection.class_label, detection.confidence)
        if entry is None:
            logger.info("No catalog match for %r", detection.class_label)
            name = UNKNOWN_ITEM
            baseline = self._default_shelf_life_days
        else:
            name = entry.canonical_name
            baseline = entry.baseline_shelf_life_days

        expiry_date = schedule_expiry(baseline, reduction, purchase_date)
        logger.info(
            "%s: baseline %d day(s), reduction %.1f, expires %s",
            name,
            baseline,
            reduction,
            expiry_date.isoformat(),
        )
        return InventoryItemDraft(
            product_name=name,
            quantity=quantity,
            purchase_date=purchase_date,
            expiry_date=expiry_date,
            confidence=detection.confidence,
            spoilage=spoilage,
            low_confidence=result.low_confidence,
        )

    async def extract_from_label(
        self, image: np.ndarray, purchase_date: date | None = None
    ) -> LabelExtraction:
        """Read the printed expiry date from a label image.

        OCR failures are reported on the result and fall back to the
        default shelf life instead of raising.
        """
        purchase_date = purchase_date or date.today()
        if self._ocr_engine is None:
            raise PipelineError("no OCR engine configured")

        error: str | None = None
        try:
            text = await self._recognize(image)
        except OCRFailureError as e:
            error = e.message
            text = ""

        extracted = self._extractor.extract(text)
        expiry_date = label_expiry(extracted, purchase_date, self._label_fallback_days)
        if not extracted.found:
            logger.info("No printed expiry date; using %s", expiry_date.isoformat())
        elif expiry_date <= purchase_date:
            logger.warning(
                "Printed expiry %s is not after purchase date %s",
                expiry_date.isoformat(),
                purchase_date.isoformat(),
            )
        return LabelExtraction(
            expiry_date=expiry_date, extracted=extracted, ocr_text=text, error=error
        )

    async def extract_from_label_file(
        self, path: str | Path, purchase_date: date | None = None
    ) -> LabelExtraction:
        try:
            image = load_image(path)
        except (FileNotFoundError, ValueError) as e:
            raise PipelineError(str(e)) from e
        return await self.extract_from_label(image, purchase_date)

    async def _recognize(self, image: np.ndarray) -> str:
        try:
            return await self._ocr_engine.recognize(image)
        except Exception as e:
            logger.exception("OCR failed")
            raise OCRFailureError() from e
