"""Image loading and region cropping helpers."""

from __future__ import annotations

import math
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from .vision import BoundingBox


def load_image(path: str | Path) -> np.ndarray:
    """Read an image file into an RGB array."""
    try:
        import cv2
    except ImportError:
        raise ImportError(
            "opencv-python is required: pip install opencv-python"
        ) from None

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Image not found: {p}")
    bgr = cv2.imread(str(p))
    if bgr is None:
        raise ValueError(f"Could not decode image: {p}")
    return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)


def crop_region(image: np.ndarray, box: BoundingBox) -> np.ndarray:
    """Return the pixels inside ``box``, clipped to the image bounds.

    The result may be empty when the box lies outside the image or has no
    area.
    """
    height, width = image.shape[:2]
    x1 = min(max(math.floor(box.x), 0), width)
    y1 = min(max(math.floor(box.y), 0), height)
    x2 = min(max(math.ceil(box.x + box.width), x1), width)
    y2 = min(max(math.ceil(box.y + box.height), y1), height)
    return image[y1:y2, x1:x2]
