"""Colour and opacity ramps keyed on absolute occurrence counts.

Pale yellow for a handful of occurrences through orange to red for 51+.
Band tables are plain data; pass your own to the functions to restyle.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

TRANSPARENT = 'transparent'


@dataclass(frozen=True)
class ColorStop:
    upper_bound: int
    color_start: str
    color_end: str


COLOR_STOPS: List[ColorStop] = [
    ColorStop(3, '#FFF9C4', '#FFEB3B'),
    ColorStop(7, '#FFEB3B', '#FFC107'),
    ColorStop(12, '#FFC107', '#FFA726'),
    ColorStop(20, '#FFA726', '#FF9800'),
    ColorStop(30, '#FF9800', '#FF6F00'),
    ColorStop(50, '#FF6F00', '#FF5722'),
    ColorStop(100, '#FF5722', '#F44336'),  # counts above 100 stay at the end colour
]

# (count, opacity) knots; linear in between, flat past the last knot.
OPACITY_STOPS: List[Tuple[int, float]] = [
    (0, 0.05),
    (1, 0.30),
    (2, 0.40),
    (5, 0.55),
    (10, 0.65),
    (11, 0.70),
]


def hex_to_rgb(color: str) -> Tuple[int, int, int]:
    value = color.lstrip('#')
    if len(value) != 6:
        raise ValueError(f'Expected #RRGGBB, got {color!r}')
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


def rgb_to_hex(rgb: Sequence[int]) -> str:
    return '#' + ''.join(f'{int(c):02x}' for c in rgb)


def interpolate_color(color_a: str, color_b: str, factor: float) -> str:
    a = np.array(hex_to_rgb(color_a), dtype=float)
    b = np.array(hex_to_rgb(color_b), dtype=float)
    # round half up per channel
    mixed = np.floor(a + (b - a) * factor + 0.5).astype(int)
    return rgb_to_hex(mixed)


def _band(count: float, stops: Sequence[ColorStop]):
    lower = 0
    for stop in stops:
        if count <= stop.upper_bound:
            return lower, stop
        lower = stop.upper_bound
    last = stops[-1]
    previous = stops[-2].upper_bound if len(stops) > 1 else 0
    return previous, last


def color_for(count: float, stops: Sequence[ColorStop] = COLOR_STOPS) -> str:
    """Fill colour for an occurrence count; 'transparent' for zero."""
    if count <= 0:
        return TRANSPARENT
    lower, stop = _band(count, stops)
    factor = min((count - lower) / (stop.upper_bound - lower), 1.0)
    return interpolate_color(stop.color_start, stop.color_end, factor)


def opacity_for(count: float, stops: Sequence[Tuple[int, float]] = OPACITY_STOPS) -> float:
    """Fill opacity for an occurrence count, between the first and last knot values."""
    xs = [x for x, _ in stops]
    ys = [y for _, y in stops]
    return float(np.interp(max(count, 0), xs, ys))


def intensity_for(count: float, max_count: float) -> float:
    if max_count <= 0 or not math.isfinite(max_count):
        return 0.0
    return min(count / max_count, 1.0)


def legend(stops: Sequence[ColorStop] = COLOR_STOPS) -> List[dict]:
    """Band rows for a legend table: label, start colour, end colour."""
    rows = []
    lower = 0
    for i, stop in enumerate(stops):
        label = f'{lower + 1}+' if i == len(stops) - 1 else f'{lower + 1}-{stop.upper_bound}'
        rows.append({'occurrences': label, 'from': stop.color_start, 'to': stop.color_end})
        lower = stop.upper_bound
    return rows
