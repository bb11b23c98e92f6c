"""USB camera capture module using OpenCV."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import numpy as np


def _import_cv2():
    try:
        import cv2
    except ImportError:
        raise ImportError(
            "opencv-python is required: pip install opencv-python"
        ) from None
    return cv2


@dataclass
class CameraCapture:
    camera_index: int
    image_path: str
    captured_at: str  # ISO8601


class CameraStream:
    """An open camera that hands out one RGB frame per read.

    Keeps the device open across detection attempts. Use as a context
    manager so the device is released however the flow ends.
    """

    def __init__(self, camera_index: int) -> None:
        cv2 = _import_cv2()
        self._cv2 = cv2
        self.camera_index = camera_index
        self._cap = cv2.VideoCapture(camera_index)
        if not self._cap.isOpened():
            self._cap.release()
            raise RuntimeError(
                f"Could not open camera {camera_index}. Check the connection."
            )

    def read_frame(self) -> np.ndarray:
        ret, frame = self._cap.read()
        if not ret or frame is None:
            raise RuntimeError(
                f"Could not read a frame from camera {self.camera_index}."
            )
        return self._cv2.cvtColor(frame, self._cv2.COLOR_BGR2RGB)

    async def read(self) -> np.ndarray:
        return await asyncio.to_thread(self.read_frame)

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def __enter__(self) -> CameraStream:
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class FridgeCamera:
    """Capture images from USB cameras."""

    def __init__(
        self,
        camera_indices: list[int] | None = None,
        save_dir: str = "/tmp/fridgefriend",
    ) -> None:
        self._camera_indices = camera_indices or [0]
        self._save_dir = Path(save_dir)
        self._save_dir.mkdir(parents=True, exist_ok=True)

    @property
    def default_index(self) -> int:
        return self._camera_indices[0]

    def open(self, camera_index: int | None = None) -> CameraStream:
        """Open a camera for repeated frame reads."""
        if camera_index is None:
            camera_index = self.default_index
        return CameraStream(camera_index)

    def capture(self, camera_index: int | None = None) -> CameraCapture:
        """Capture a single frame from the specified camera and save it."""
        if camera_index is None:
            camera_index = self.default_index
        cv2 = _import_cv2()

        with CameraStream(camera_index) as stream:
            frame = stream.read_frame()

        now = datetime.now(timezone.utc)
        timestamp = now.strftime("%Y%m%d_%H%M%S")
        filename = f"cam{camera_index}_{timestamp}.jpg"
        filepath = self._save_dir / filename

        cv2.imwrite(str(filepath), cv2.cvtColor(frame, cv2.COLOR_RGB2BGR))

        return CameraCapture(
            camera_index=camera_index,
            image_path=str(filepath),
            captured_at=now.isoformat(),
        )

    @staticmethod
    def list_cameras(max_check: int = 10) -> list[int]:
        """List available USB camera indices by probing."""
        cv2 = _import_cv2()

        available: list[int] = []
        for i in range(max_check):
            cap = cv2.VideoCapture(i)
            if cap.isOpened():
                available.append(i)
                cap.release()
        return available
