"""Scripted detector and OCR stand-ins shared by the tests."""

from fridgefriend.ocr import OCREngine
from fridgefriend.vision import BoundingBox, Detection, Detector


def det(label: str, confidence: float, box=(0, 0, 10, 10)) -> Detection:
    return Detection(
        class_label=label, confidence=confidence, bounding_box=BoundingBox(*box)
    )


class ScriptedDetector(Detector):
    """Returns one scripted result per call; exceptions in the script are raised."""

    def __init__(self, script, fail_init: Exception | None = None):
        self.script = list(script)
        self.calls = 0
        self.init_calls = 0
        self.disposed = False
        self._fail_init = fail_init
        self._ready = False

    @property
    def initialized(self) -> bool:
        return self._ready

    async def initialize(self) -> None:
        self.init_calls += 1
        if self._fail_init is not None:
            raise self._fail_init
        self._ready = True

    async def detect(self, image):
        self.calls += 1
        step = self.script[min(self.calls, len(self.script)) - 1]
        if isinstance(step, Exception):
            raise step
        return list(step)

    async def dispose(self) -> None:
        self.disposed = True
        self._ready = False


class StaticOCR(OCREngine):
    def __init__(self, text: str = "", error: Exception | None = None):
        self.text = text
        self.error = error

    async def recognize(self, image):
        if self.error is not None:
            raise self.error
        return self.text
