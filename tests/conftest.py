"""Shared image fixtures."""

import numpy as np
import pytest


@pytest.fixture
def image():
    """A 20x20 fresh-green RGB image."""
    img = np.zeros((20, 20, 3), dtype=np.uint8)
    img[...] = (60, 180, 60)
    return img


@pytest.fixture
def frame(image):
    async def source():
        return image

    return source
