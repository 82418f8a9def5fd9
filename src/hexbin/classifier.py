"""Point Classifier: which hexagon contains a (lat, lng) point."""

from __future__ import annotations

from typing import Iterable, Optional

from .geometry import LatLng, point_in_polygon
from .grid import HexGrid, Hexagon


def find_in_candidates(point: LatLng, candidates: Iterable[Hexagon]) -> Optional[Hexagon]:
    for hexagon in candidates:
        if point_in_polygon(point, hexagon.boundary):
            return hexagon
    return None


def classify(grid: HexGrid, point: LatLng, candidates: Optional[Iterable[Hexagon]] = None) -> Optional[Hexagon]:
    """
    Return the hexagon whose boundary contains `point`, or None.

    Candidates (usually the hexagons on screen) are scanned first. Otherwise the
    lattice hint and its 3x3 neighbourhood are built and ray-cast in turn, hint
    first. None means no cell could be confirmed, which only happens for
    non-finite input; callers count it as unclassified.
    """
    if candidates:
        found = find_in_candidates(point, candidates)
        if found is not None:
            return found

    hint = grid.address_hint(*point)
    if hint is None:
        return None
    for address in grid.neighbourhood(hint):
        hexagon = grid.hexagon(address)
        if point_in_polygon(point, hexagon.boundary):
            return hexagon
    return None
