"""Raspberry Pi AI HAT (Hailo) detector backend."""

from __future__ import annotations

import asyncio
import logging

import numpy as np

from . import BoundingBox, Detection, Detector

logger = logging.getLogger(__name__)

# COCO class names in model output order.
COCO_LABELS: tuple[str, ...] = (
    "person", "bicycle", "car", "motorcycle", "airplane", "bus", "train",
    "truck", "boat", "traffic light", "fire hydrant", "stop sign",
    "parking meter", "bench", "bird", "cat", "dog", "horse", "sheep", "cow",
    "elephant", "bear", "zebra", "giraffe", "backpack", "umbrella", "handbag",
    "tie", "suitcase", "frisbee", "skis", "snowboard", "sports ball", "kite",
    "baseball bat", "baseball glove", "skateboard", "surfboard",
    "tennis racket", "bottle", "wine glass", "cup", "fork", "knife", "spoon",
    "bowl", "banana", "apple", "sandwich", "orange", "broccoli", "carrot",
    "hot dog", "pizza", "donut", "cake", "chair", "couch", "potted plant",
    "bed", "dining table", "toilet", "tv", "laptop", "mouse", "remote",
    "keyboard", "cell phone", "microwave", "oven", "toaster", "sink",
    "refrigerator", "book", "clock", "vase", "scissors", "teddy bear",
    "hair drier", "toothbrush",
)


class AIHatDetector(Detector):
    """Detect objects using Raspberry Pi AI HAT (Hailo) inference.

    Uses a YOLO-based object detection model compiled to a HEF file and
    running on the Hailo accelerator. Works offline. The device and
    configured network group are held open between calls.
    """

    def __init__(
        self, model_path: str = "/usr/share/hailo-models/yolov8s.hef"
    ) -> None:
        self._model_path = model_path
        self._session: _HailoSession | None = None

    @property
    def initialized(self) -> bool:
        return self._session is not None

    async def initialize(self) -> None:
        if self._session is not None:
            return
        logger.info("Configuring Hailo device with %s", self._model_path)
        self._session = await asyncio.to_thread(_HailoSession, self._model_path)

    async def detect(self, image: np.ndarray) -> list[Detection]:
        if self._session is None:
            raise RuntimeError("Hailo device is not initialized")
        return await asyncio.to_thread(self._session.infer, image)

    async def dispose(self) -> None:
        if self._session is not None:
            self._session.release()
            self._session = None


class _HailoSession:
    """Open Hailo device plus the configured network group."""

    def __init__(self, model_path: str) -> None:
        try:
            from hailo_platform import (
                HEF,
                FormatType,
                InferVStreams,
                InputVStreamParams,
                OutputVStreamParams,
                VDevice,
            )
        except ImportError:
            raise ImportError(
                "hailort SDK is required: pip install hailort"
            ) from None

        self._InferVStreams = InferVStreams
        self._hef = HEF(model_path)
        self._target = VDevice()
        self._network_group = self._target.configure(self._hef)[0]
        self._input_params = InputVStreamParams.make(
            self._network_group, format_type=FormatType.FLOAT32
        )
        self._output_params = OutputVStreamParams.make(
            self._network_group, format_type=FormatType.FLOAT32
        )
        info = self._hef.get_input_vstream_infos()[0]
        self._input_name = info.name
        self._input_h, self._input_w = info.shape[0], info.shape[1]

    def infer(self, image: np.ndarray) -> list[Detection]:
        import cv2

        src_h, src_w = image.shape[:2]
        resized = cv2.resize(image[..., :3], (self._input_w, self._input_h))
        input_data = np.expand_dims(resized.astype(np.float32) / 255.0, axis=0)

        with self._network_group.activate(self._network_group.create_params()):
            with self._InferVStreams(
                self._network_group, self._input_params, self._output_params
            ) as infer_pipeline:
                output = infer_pipeline.infer({self._input_name: input_data})

        # Process detections from the first output layer
        output_name = list(output.keys())[0]
        raw = output[output_name][0]

        scale_x = src_w / self._input_w
        scale_y = src_h / self._input_h
        detections: list[Detection] = []
        for det in raw:
            # Expected format: [x1, y1, x2, y2, confidence, class_id]
            if len(det) < 6:
                continue
            class_id = int(det[5])
            if not 0 <= class_id < len(COCO_LABELS):
                continue
            detections.append(
                Detection(
                    class_label=COCO_LABELS[class_id],
                    confidence=float(det[4]),
                    bounding_box=BoundingBox.from_corners(
                        float(det[0]) * scale_x,
                        float(det[1]) * scale_y,
                        float(det[2]) * scale_x,
                        float(det[3]) * scale_y,
                    ),
                )
            )
        return detections

    def release(self) -> None:
        self._target.release()
