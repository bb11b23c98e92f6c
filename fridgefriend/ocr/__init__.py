"""OCR engine base class and factory."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from ..config import FridgeConfig

LABEL_PROMPT = """\
This image shows a food package label.
Transcribe all printed text exactly as it appears, one line per printed line.
Keep dates and their surrounding words (such as "Best before" or "Use by")
unchanged. Reply with the transcription only.
"""


class OCREngine(ABC):
    """Abstract base for reading printed text from a label image."""

    @abstractmethod
    async def recognize(self, image: np.ndarray) -> str:
        """Return all text found in an RGB image, one line per text line."""
        ...


def encode_jpeg(image: np.ndarray) -> bytes:
    """Encode an RGB image as JPEG bytes for upload."""
    try:
        import cv2
    except ImportError:
        raise ImportError(
            "opencv-python is required: pip install opencv-python"
        ) from None

    bgr = np.ascontiguousarray(image[..., 2::-1])
    ok, buf = cv2.imencode(".jpg", bgr)
    if not ok:
        raise RuntimeError("could not encode image as JPEG")
    return buf.tobytes()


def strip_fences(text: str) -> str:
    """Drop markdown code fences a model may wrap its reply in."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        lines = [l for l in lines[1:] if not l.strip().startswith("```")]
        cleaned = "\n".join(lines)
    return cleaned


def create_ocr_engine(config: FridgeConfig) -> OCREngine:
    """Create an OCR engine based on configuration."""
    backend_name = config.ocr.backend

    match backend_name:
        case "tesseract":
            from .tesseract import TesseractOCREngine

            return TesseractOCREngine(
                cmd=config.ocr.tesseract.cmd,
                lang=config.ocr.tesseract.lang,
            )
        case "claude":
            from .claude import ClaudeOCREngine

            return ClaudeOCREngine(
                api_key=config.ocr.claude.api_key,
                model=config.ocr.claude.model,
            )
        case "gemini":
            from .gemini import GeminiOCREngine

            return GeminiOCREngine(
                api_key=config.ocr.gemini.api_key,
                model=config.ocr.gemini.model,
            )
        case _:
            raise ValueError(
                f"Unknown OCR backend: {backend_name!r} "
                f"(choose from tesseract / claude / gemini)"
            )
