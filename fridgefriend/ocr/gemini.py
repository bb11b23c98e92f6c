"""Gemini API OCR engine for label text."""

from __future__ import annotations

import numpy as np

from . import LABEL_PROMPT, OCREngine, encode_jpeg, strip_fences


class GeminiOCREngine(OCREngine):
    """Read label text using Google Gemini's vision capability."""

    def __init__(self, api_key: str = "", model: str = "gemini-2.0-flash") -> None:
        self._api_key = api_key
        self._model = model

    async def recognize(self, image: np.ndarray) -> str:
        if not self._api_key:
            raise ValueError(
                "Gemini API key is not set. "
                "Check the config file or the GEMINI_API_KEY environment variable."
            )

        try:
            import google.generativeai as genai
        except ImportError:
            raise ImportError(
                "google-generativeai SDK is required: pip install google-generativeai"
            ) from None

        genai.configure(api_key=self._api_key)
        model = genai.GenerativeModel(self._model)

        parts = [{"mime_type": "image/jpeg", "data": encode_jpeg(image)}, LABEL_PROMPT]
        response = await model.generate_content_async(parts)
        return strip_fences(response.text)
