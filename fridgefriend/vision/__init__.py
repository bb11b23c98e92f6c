"""Object detector base class, data types, and factory."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import numpy as np

    from ..config import FridgeConfig


@dataclass(frozen=True)
class BoundingBox:
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_corners(cls, x1: float, y1: float, x2: float, y2: float) -> BoundingBox:
        return cls(x=x1, y=y1, width=x2 - x1, height=y2 - y1)


@dataclass(frozen=True)
class Detection:
    class_label: str
    confidence: float  # 0.0-1.0
    bounding_box: BoundingBox


class Detector(ABC):
    """Abstract base for a pretrained object-detection model.

    The model handle is created by :meth:`initialize` and reused for every
    call to :meth:`detect` until :meth:`dispose` releases it.
    """

    @property
    @abstractmethod
    def initialized(self) -> bool: ...

    @abstractmethod
    async def initialize(self) -> None:
        """Load the model. Calling it again on a loaded detector is a no-op."""
        ...

    @abstractmethod
    async def detect(self, image: np.ndarray) -> list[Detection]:
        """Run the model over an RGB image and return every detection."""
        ...

    async def dispose(self) -> None:
        """Release the model handle."""


def create_detector(config: FridgeConfig) -> Detector:
    """Create a detector based on configuration."""
    backend_name = config.detector.backend

    match backend_name:
        case "yolo":
            from .yolo import YOLODetector

            return YOLODetector(model_path=config.detector.yolo.model_path)
        case "ai_hat":
            from .ai_hat import AIHatDetector

            return AIHatDetector(model_path=config.detector.ai_hat.model_path)
        case _:
            raise ValueError(
                f"Unknown detector backend: {backend_name!r} "
                f"(choose from yolo / ai_hat)"
            )
