"""Visual spoilage estimation from pixel color statistics."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np


class SpoilageLevel(Enum):
    FRESH = "Fresh"
    SLIGHTLY_SPOILED = "SlightlySpoiled"
    STARTING_TO_SPOIL = "StartingToSpoil"
    SPOILED = "Spoiled"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


_SEVERITY = {
    SpoilageLevel.FRESH: 0,
    SpoilageLevel.SLIGHTLY_SPOILED: 1,
    SpoilageLevel.STARTING_TO_SPOIL: 2,
    SpoilageLevel.SPOILED: 3,
}


@dataclass(frozen=True)
class SpoilageThresholds:
    """Empirical pixel and percentage cut-offs.

    A pixel is brown when red exceeds ``brown_min_red`` while green and blue
    stay below their maxima; it is dark when all three channels are below
    ``dark_max``. Bands are checked most severe first with strict ``>``.
    """

    brown_min_red: int = 100
    brown_max_green: int = 100
    brown_max_blue: int = 100
    dark_max: int = 50
    spoiled_above: float = 30.0
    starting_above: float = 15.0
    slight_above: float = 5.0


DEFAULT_THRESHOLDS = SpoilageThresholds()

_REDUCTION: dict[SpoilageLevel, float] = {
    SpoilageLevel.SPOILED: 0.8,
    SpoilageLevel.STARTING_TO_SPOIL: 0.5,
    SpoilageLevel.SLIGHTLY_SPOILED: 0.2,
    SpoilageLevel.FRESH: 0.0,
}


@dataclass(frozen=True)
class SpoilageAssessment:
    level: SpoilageLevel
    spoilage_percentage: float
    brown_percentage: float
    dark_percentage: float
    shelf_life_reduction_factor: float

    def to_dict(self) -> dict:
        return {
            "level": self.level.value,
            "spoilage_percentage": round(self.spoilage_percentage, 2),
            "brown_percentage": round(self.brown_percentage, 2),
            "dark_percentage": round(self.dark_percentage, 2),
            "shelf_life_reduction_factor": self.shelf_life_reduction_factor,
        }


def classify(
    spoilage_percentage: float, thresholds: SpoilageThresholds = DEFAULT_THRESHOLDS
) -> tuple[SpoilageLevel, float]:
    """Map a spoilage percentage to its level and shelf-life reduction."""
    if spoilage_percentage > thresholds.spoiled_above:
        level = SpoilageLevel.SPOILED
    elif spoilage_percentage > thresholds.starting_above:
        level = SpoilageLevel.STARTING_TO_SPOIL
    elif spoilage_percentage > thresholds.slight_above:
        level = SpoilageLevel.SLIGHTLY_SPOILED
    else:
        level = SpoilageLevel.FRESH
    return level, _REDUCTION[level]


def assess(
    region: np.ndarray, thresholds: SpoilageThresholds = DEFAULT_THRESHOLDS
) -> SpoilageAssessment:
    """Assess spoilage of an RGB (or RGBA) pixel region.

    Args:
        region: Array of shape ``(height, width, channels)`` in RGB order.
            Any alpha channel is ignored.
        thresholds: Pixel and band cut-offs.

    Returns:
        The spoilage assessment. An empty region assesses as fresh.
    """
    pixels = np.asarray(region)
    if pixels.ndim != 3 or pixels.shape[2] < 3:
        raise ValueError(f"expected an RGB pixel region, got shape {pixels.shape}")

    r = pixels[..., 0].astype(np.int16)
    g = pixels[..., 1].astype(np.int16)
    b = pixels[..., 2].astype(np.int16)
    total = r.size

    if total == 0:
        brown_pct = dark_pct = 0.0
    else:
        brown = (
            (r > thresholds.brown_min_red)
            & (g < thresholds.brown_max_green)
            & (b < thresholds.brown_max_blue)
        )
        dark = (
            ~brown
            & (r < thresholds.dark_max)
            & (g < thresholds.dark_max)
            & (b < thresholds.dark_max)
        )
        brown_pct = 100.0 * int(np.count_nonzero(brown)) / total
        dark_pct = 100.0 * int(np.count_nonzero(dark)) / total

    spoilage_pct = (brown_pct + dark_pct) / 2
    level, reduction = classify(spoilage_pct, thresholds)
    return SpoilageAssessment(
        level=level,
        spoilage_percentage=spoilage_pct,
        brown_percentage=brown_pct,
        dark_percentage=dark_pct,
        shelf_life_reduction_factor=reduction,
    )
