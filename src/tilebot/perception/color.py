"""RGB to canonical HSL color normalization."""

import math
from typing import Optional, Sequence

from tilebot.core.data_models import HSLColor


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def rgb_to_hsl(r: int, g: int, b: int) -> HSLColor:
    """Convert an RGB byte triple to an integer HSL triple.

    Hue is in degrees, saturation and lightness in percent. Components are
    rounded half-up, so ``x.5`` always goes to the next integer. A hue just
    below 360 rounds to 360 and stays distinct from 0.

    Raises:
        ValueError: If a channel is outside [0, 255]
    """
    for name, channel in (('r', r), ('g', g), ('b', b)):
        if not 0 <= channel <= 255:
            raise ValueError(f"Channel {name}={channel} outside [0, 255]")

    r, g, b = r / 255.0, g / 255.0, b / 255.0
    high = max(r, g, b)
    low = min(r, g, b)
    lightness = (high + low) / 2

    if high == low:
        # achromatic
        hue = saturation = 0.0
    else:
        delta = high - low
        if lightness > 0.5:
            saturation = delta / (2 - high - low)
        else:
            saturation = delta / (high + low)

        if high == r:
            hue = ((g - b) / delta) % 6
        elif high == g:
            hue = (b - r) / delta + 2
        else:
            hue = (r - g) / delta + 4
        hue /= 6

    return HSLColor(
        h=_round_half_up(hue * 360),
        s=_round_half_up(saturation * 100),
        l=_round_half_up(lightness * 100),
    )


def normalize_color(sample: Sequence[int], empty_reference: HSLColor) -> Optional[HSLColor]:
    """Classify a sample as empty (None) or as its canonical color."""
    r, g, b = (int(channel) for channel in sample[:3])
    color = rgb_to_hsl(r, g, b)
    if color == empty_reference:
        return None
    return color


class ColorNormalizer:
    """Normalizer bound to the configured empty-cell reference color."""

    def __init__(self, empty_reference: HSLColor):
        self.empty_reference = empty_reference

    def __call__(self, sample: Sequence[int]) -> Optional[HSLColor]:
        return normalize_color(sample, self.empty_reference)

    def is_empty(self, sample: Sequence[int]) -> bool:
        return self(sample) is None
