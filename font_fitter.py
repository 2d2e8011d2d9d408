"""
Font size fitting for word bubbles.
Finds the largest font size whose rendered bounding box fits inside a bubble.
"""

import math
import os
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFont

from config import FONT_CONFIG, OUTPUT_CONFIG


class TextMeasurer(Protocol):
    """Rendering capability: size of a text run in a given font."""

    def measure(
        self, text: str, font_family: str, font_weight: str, size: float
    ) -> Tuple[float, float]: ...


class PillowTextMeasurer:
    """Measures text with Pillow, falling back to the bundled default font."""

    def __init__(self):
        self._font_cache: Dict[Tuple[str, str, float], object] = {}
        self._draw = ImageDraw.Draw(Image.new("RGB", (1, 1)))

    @staticmethod
    def _candidates(font_family: str, font_weight: str) -> List[str]:
        """Font files to try for a family and weight, most specific first."""
        if font_weight in ("normal", "regular", "400", ""):
            return [font_family]
        stem, ext = os.path.splitext(font_family)
        return [f"{stem}-{font_weight.capitalize()}{ext or '.ttf'}", font_family]

    def get_font(self, font_family: str, font_weight: str, size: float):
        """Get a font of the specified family, weight and size with caching."""
        key = (font_family, font_weight, size)
        if key in self._font_cache:
            return self._font_cache[key]

        font = None
        for candidate in self._candidates(font_family, font_weight):
            try:
                font = ImageFont.truetype(candidate, size)
                break
            except OSError:
                continue
        if font is None:
            font = ImageFont.load_default(size=size)

        self._font_cache[key] = font
        return font

    def measure(
        self, text: str, font_family: str, font_weight: str, size: float
    ) -> Tuple[float, float]:
        font = self.get_font(font_family, font_weight, size)
        left, top, right, bottom = self._draw.textbbox((0, 0), text, font=font)
        return right - left, bottom - top


def fit_font_size(
    word: str,
    radius: float,
    measurer: TextMeasurer,
    font_family: Optional[str] = None,
    font_weight: Optional[str] = None,
) -> float:
    """
    Bisect the font size so the text's half diagonal fits in the bubble radius.

    Ten rounds over [0, 100] give a precision of about 0.1.

    Args:
        word: Text to fit
        radius: Bubble radius
        measurer: Rendering capability used for bounding boxes
        font_family: Font family (defaults to FONT_CONFIG)
        font_weight: Font weight (defaults to FONT_CONFIG)

    Returns:
        Largest size known to fit (0 if none does)
    """
    font_family = font_family or FONT_CONFIG["font_family"]
    font_weight = font_weight or FONT_CONFIG["font_weight"]

    ok = FONT_CONFIG["min_size"]
    ng = FONT_CONFIG["max_size"]
    for _ in range(FONT_CONFIG["iterations"]):
        mid_size = (ok + ng) / 2
        width, height = measurer.measure(word, font_family, font_weight, mid_size)
        half_diagonal = math.sqrt(width**2 + height**2) / 2
        if half_diagonal <= radius:
            ok = mid_size
        else:
            ng = mid_size
    return ok


def fit_font_sizes(
    words: Sequence[Tuple[str, float]],
    measurer: Optional[TextMeasurer] = None,
    font_family: Optional[str] = None,
    font_weight: Optional[str] = None,
) -> List[Optional[float]]:
    """
    Fit a font size for every (word, radius) pair.

    A word whose text cannot be measured gets None; the others are unaffected.
    """
    measurer = measurer or PillowTextMeasurer()
    sizes = []
    for word, radius in words:
        try:
            sizes.append(
                fit_font_size(word, radius, measurer, font_family, font_weight)
            )
        except Exception as e:
            if OUTPUT_CONFIG["verbose"]:
                print(f"Warning: Could not fit font for {word!r}: {e}")
            sizes.append(None)
    return sizes
