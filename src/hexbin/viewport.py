"""
Viewport Grid Generator

Enumerates every hexagon of the fixed lattice that can be visible inside a
map viewport. Coverage errs on the side of extra off-screen cells: the
sampled address range is padded and the centre test is widened by one radius.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, List, Optional

from .config import ADDRESS_PADDING, margin_for_zoom
from .grid import HexAddress, HexGrid, Hexagon
from .utils.exceptions import RecomputeSuperseded, ViewportError
from .utils.logger_config import setup_logger

logger = setup_logger(__name__)


@dataclass(frozen=True)
class Viewport:
    """Visible map bounds in degrees."""
    north: float
    south: float
    east: float
    west: float

    def __post_init__(self):
        edges = (self.north, self.south, self.east, self.west)
        try:
            values = [float(v) for v in edges]
        except (TypeError, ValueError):
            raise ViewportError(f'Viewport edges must be numbers, got {edges}')
        if not all(math.isfinite(v) for v in values):
            raise ViewportError(f'Viewport edges must be finite numbers, got {edges}')
        for name, value in zip(('north', 'south', 'east', 'west'), values):
            object.__setattr__(self, name, value)

    @property
    def is_degenerate(self) -> bool:
        return self.north <= self.south or self.east <= self.west

    @property
    def center(self):
        return (self.north + self.south) / 2, (self.east + self.west) / 2

    def expanded(self, fraction: float) -> 'Viewport':
        """Widen each side by `fraction` of the span on that axis."""
        lat_margin = (self.north - self.south) * fraction
        lng_margin = (self.east - self.west) * fraction
        return self.grown(lat_margin, lng_margin)

    def grown(self, lat_margin: float, lng_margin: float) -> 'Viewport':
        return Viewport(
            north=self.north + lat_margin,
            south=self.south - lat_margin,
            east=self.east + lng_margin,
            west=self.west - lng_margin,
        )

    def contains(self, lat: float, lng: float) -> bool:
        return self.south <= lat <= self.north and self.west <= lng <= self.east


def address_range(grid: HexGrid, viewport: Viewport, padding: int = ADDRESS_PADDING):
    """(min_q, max_q, min_r, max_r) covering the viewport's corners and centre."""
    samples = [
        grid.to_address(viewport.north, viewport.west),
        grid.to_address(viewport.north, viewport.east),
        grid.to_address(viewport.south, viewport.west),
        grid.to_address(viewport.south, viewport.east),
        grid.to_address(*viewport.center),
    ]
    qs = [a.q for a in samples]
    rs = [a.r for a in samples]
    pad = max(int(padding), 2)
    return min(qs) - pad, max(qs) + pad, min(rs) - pad, max(rs) + pad


def generate_hexagon_grid(
    grid: HexGrid,
    viewport: Viewport,
    zoom: Optional[int] = None,
    padding: int = ADDRESS_PADDING,
    should_continue: Optional[Callable[[], bool]] = None,
) -> List[Hexagon]:
    """
    Materialise the hexagons that may intersect `viewport`.

    Args:
        grid: lattice to enumerate
        viewport: visible bounds
        zoom: map zoom; when given the viewport is first widened by the
            zoom-dependent margin from config.ZOOM_MARGINS
        padding: extra lattice rows/columns around the sampled range (>= 2)
        should_continue: polled between rows; returning False abandons the
            enumeration with RecomputeSuperseded

    Returns:
        List[Hexagon] in row-major order. Empty for a degenerate viewport.
    """
    if viewport.is_degenerate:
        logger.debug(f'Degenerate viewport {viewport}, no hexagons generated')
        return []

    bounds = viewport.expanded(margin_for_zoom(zoom)) if zoom is not None else viewport
    min_q, max_q, min_r, max_r = address_range(grid, bounds, padding)
    accept = bounds.grown(grid.radius_lat, grid.radius_lng)

    hexagons = []
    for r in range(min_r, max_r + 1):
        if should_continue is not None and not should_continue():
            raise RecomputeSuperseded(f'Grid enumeration abandoned at row {r}')
        for q in range(min_q, max_q + 1):
            lat, lng = grid.to_latlng(q, r)
            if accept.contains(lat, lng):
                hexagons.append(grid.hexagon(HexAddress(q, r)))

    logger.debug(
        f'Generated {len(hexagons)} hexagons for q {min_q}..{max_q}, r {min_r}..{max_r}'
    )
    return hexagons
