"""Claude API OCR engine for label text."""

from __future__ import annotations

import base64

import numpy as np

from . import LABEL_PROMPT, OCREngine, encode_jpeg, strip_fences


class ClaudeOCREngine(OCREngine):
    """Read label text using Claude's vision capability."""

    def __init__(self, api_key: str = "", model: str = "claude-sonnet-4-5-20250929") -> None:
        self._api_key = api_key
        self._model = model

    async def recognize(self, image: np.ndarray) -> str:
        if not self._api_key:
            raise ValueError(
                "Anthropic API key is not set. "
                "Check the config file or the ANTHROPIC_API_KEY environment variable."
            )

        try:
            import anthropic
        except ImportError:
            raise ImportError(
                "anthropic SDK is required: pip install anthropic"
            ) from None

        content = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": "image/jpeg",
                    "data": base64.standard_b64encode(encode_jpeg(image)).decode(),
                },
            },
            {"type": "text", "text": LABEL_PROMPT},
        ]

        client = anthropic.AsyncAnthropic(api_key=self._api_key)
        response = await client.messages.create(
            model=self._model,
            max_tokens=1024,
            messages=[{"role": "user", "content": content}],
        )
        return strip_fences(response.content[0].text)
