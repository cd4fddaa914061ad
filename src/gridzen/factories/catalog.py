"""Static resources tiles draw from: color palettes and pattern symbols."""
from __future__ import annotations

import colorsys
import random
from typing import List, Tuple

from gridzen.components.tile import RGB, Pattern

_PATTERN_CATALOG: Tuple[Pattern, ...] = (
    Pattern(symbol="•", name="dots", color=(231, 76, 60)),
    Pattern(symbol="≡", name="stripes", color=(52, 152, 219)),
    Pattern(symbol="≈", name="waves", color=(46, 204, 113)),
    Pattern(symbol="#", name="grid", color=(241, 196, 15)),
    Pattern(symbol="^", name="zigzag", color=(155, 89, 182)),
    Pattern(symbol="▚", name="checks", color=(230, 126, 34)),
)

# Evenly spaced hues; a random jitter of up to this many degrees keeps palettes from looking identical.
_HUE_JITTER_DEGREES = 30.0
_SATURATION = 0.80
_LIGHTNESS = 0.55


def _hsl_to_rgb(hue_degrees: float, saturation: float, lightness: float) -> RGB:
    r, g, b = colorsys.hls_to_rgb((hue_degrees % 360.0) / 360.0, lightness, saturation)
    return (round(r * 255), round(g * 255), round(b * 255))


def colors(count: int, rng: random.Random | None = None) -> List[RGB]:
    """Return ``count`` distinct colors ordered by hue.

    Index ``i`` is stable for a given call so callers may bind it to row ``i``.
    """
    if count <= 0:
        return []
    step = 360.0 / count
    palette: List[RGB] = []
    for i in range(count):
        jitter = rng.random() * min(_HUE_JITTER_DEGREES, step / 2) if rng is not None else 0.0
        palette.append(_hsl_to_rgb(i * step + jitter, _SATURATION, _LIGHTNESS))
    return palette


def patterns(size: int) -> List[Pattern]:
    """Return the first ``size`` catalog patterns; column ``i`` targets pattern ``i``."""
    return list(_PATTERN_CATALOG[:size])


def pattern_names(size: int) -> frozenset[str]:
    return frozenset(pattern.name for pattern in patterns(size))


def catalog_size() -> int:
    return len(_PATTERN_CATALOG)
