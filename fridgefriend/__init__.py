"""FridgeFriend food recognition and freshness estimation."""

from .camera import CameraCapture, CameraStream, FridgeCamera
from .catalog import FOOD_CATALOG, UNKNOWN_ITEM, CatalogEntry, CatalogMatcher
from .config import FridgeConfig, load_config
from .errors import (
    DetectionCancelledError,
    LowConfidenceError,
    ModelUnavailableError,
    NoDetectionError,
    OCRFailureError,
    PipelineError,
)
from .expiry import (
    ExpiryDateExtractor,
    ExtractedExpiry,
    format_expiry,
    is_expiring_soon,
    label_expiry,
    remaining_days,
    schedule_expiry,
)
from .pipeline import FreshnessPipeline, InventoryItemDraft, LabelExtraction
from .retry import DetectionRetryController, RetryResult, RetryState
from .similarity import similarity
from .spoilage import SpoilageAssessment, SpoilageLevel, SpoilageThresholds, assess
from .vision import BoundingBox, Detection, Detector, create_detector

__all__ = [
    "FridgeCamera",
    "CameraCapture",
    "CameraStream",
    "CatalogEntry",
    "CatalogMatcher",
    "FOOD_CATALOG",
    "UNKNOWN_ITEM",
    "FridgeConfig",
    "load_config",
    "PipelineError",
    "ModelUnavailableError",
    "NoDetectionError",
    "LowConfidenceError",
    "OCRFailureError",
    "DetectionCancelledError",
    "ExpiryDateExtractor",
    "ExtractedExpiry",
    "schedule_expiry",
    "label_expiry",
    "remaining_days",
    "format_expiry",
    "is_expiring_soon",
    "FreshnessPipeline",
    "InventoryItemDraft",
    "LabelExtraction",
    "DetectionRetryController",
    "RetryResult",
    "RetryState",
    "similarity",
    "SpoilageAssessment",
    "SpoilageLevel",
    "SpoilageThresholds",
    "assess",
    "BoundingBox",
    "Detection",
    "Detector",
    "create_detector",
]
