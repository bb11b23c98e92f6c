"""Ultralytics YOLO detector backend."""

from __future__ import annotations

import asyncio
import logging

import numpy as np

from . import BoundingBox, Detection, Detector

logger = logging.getLogger(__name__)


class YOLODetector(Detector):
    """Detect objects with an Ultralytics YOLO model (COCO classes)."""

    def __init__(self, model_path: str = "yolov8n.pt") -> None:
        self._model_path = model_path
        self._model = None

    @property
    def initialized(self) -> bool:
        return self._model is not None

    async def initialize(self) -> None:
        if self._model is not None:
            return

        try:
            from ultralytics import YOLO
        except ImportError:
            raise ImportError(
                "ultralytics is required: pip install ultralytics"
            ) from None

        logger.info("Loading YOLO model %s", self._model_path)
        self._model = await asyncio.to_thread(YOLO, self._model_path)

    async def detect(self, image: np.ndarray) -> list[Detection]:
        if self._model is None:
            raise RuntimeError("YOLO model is not initialized")

        # Ultralytics expects numpy input in BGR order.
        bgr = np.ascontiguousarray(image[..., 2::-1])
        results = await asyncio.to_thread(self._model.predict, bgr, verbose=False)
        return _parse_results(results)

    async def dispose(self) -> None:
        self._model = None


def _parse_results(results) -> list[Detection]:
    """Convert Ultralytics ``Results`` into detections."""
    detections: list[Detection] = []
    for result in results:
        names = result.names
        for box in result.boxes:
            x1, y1, x2, y2 = (float(v) for v in box.xyxy[0].tolist())
            class_id = int(box.cls)
            detections.append(
                Detection(
                    class_label=names.get(class_id, str(class_id)),
                    confidence=float(box.conf),
                    bounding_box=BoundingBox.from_corners(x1, y1, x2, y2),
                )
            )
    return detections
