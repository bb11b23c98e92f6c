"""Tesseract OCR engine via pytesseract."""

from __future__ import annotations

import asyncio

import numpy as np

from . import OCREngine


class TesseractOCREngine(OCREngine):
    """Read label text locally with the Tesseract binary."""

    def __init__(self, cmd: str = "", lang: str = "eng") -> None:
        self._cmd = cmd
        self._lang = lang

    async def recognize(self, image: np.ndarray) -> str:
        try:
            import pytesseract
        except ImportError:
            raise ImportError(
                "pytesseract is required: pip install pytesseract"
            ) from None

        from PIL import Image

        if self._cmd:
            pytesseract.pytesseract.tesseract_cmd = self._cmd

        pil_image = Image.fromarray(np.ascontiguousarray(image[..., :3]))
        return await asyncio.to_thread(
            pytesseract.image_to_string, pil_image, lang=self._lang
        )
