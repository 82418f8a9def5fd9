"""
Axial addressing of the fixed global hexagon lattice.

Rows run north to south from the origin, odd rows shift east by half a cell.
Radii in degrees are evaluated once at the origin latitude, so every address
maps to the same patch of ground regardless of the viewport being drawn.

Odd rows are picked with `r % 2`, which is 1 for negative odd rows too, so
rows north of the origin also shift east. The old Leaflet dashboard tested
`r % 2 === -1` there and shifted them west: for r < 0 an id `hex_q_r` from
that frontend names a different cell than it does here.

Boundaries are snapped to the lattice (see geometry.build_boundary) so a
shared edge is the same pair of floats in both hexagons.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Tuple

from .config import ADDRESS_CACHE_DECIMALS, ADDRESS_CACHE_SIZE, GridConfig
from .geo import meters_to_lat_degrees, meters_to_lng_degrees
from .geometry import LatLng, build_boundary

_ID_PATTERN = re.compile(r'^hex_(-?\d+)_(-?\d+)$')


@dataclass(frozen=True)
class HexAddress:
    q: int
    r: int


@dataclass(frozen=True)
class Hexagon:
    id: str
    address: HexAddress
    center: LatLng
    boundary: Tuple[LatLng, ...]


def hexagon_id(q: int, r: int) -> str:
    return f'hex_{q}_{r}'


def parse_hexagon_id(hex_id: str) -> HexAddress:
    match = _ID_PATTERN.match(hex_id or '')
    if match is None:
        raise ValueError(f'Not a hexagon id: {hex_id!r}')
    return HexAddress(int(match.group(1)), int(match.group(2)))


class HexGrid:
    """
    Bidirectional (q, r) <-> (lat, lng) transform for one GridConfig.

    Attributes:
        radius_lat (float): hexagon radius in degrees of latitude
        radius_lng (float): hexagon radius in degrees of longitude at the origin
        horizontal_spacing (float): distance between centres in a row (degrees)
        vertical_spacing (float): distance between rows (degrees)

    Example:
        >>> grid = HexGrid(GridConfig(origin=(0.0, 0.0), hex_radius_meters=1000))
        >>> grid.to_latlng(0, 0)
        (0.0, 0.0)
    """

    def __init__(self, config: Optional[GridConfig] = None) -> None:
        self.config = config or GridConfig()
        origin_lat, _ = self.config.origin
        self.radius_lat = meters_to_lat_degrees(self.config.hex_radius_meters)
        self.radius_lng = meters_to_lng_degrees(self.config.hex_radius_meters, origin_lat)
        self.horizontal_spacing = math.sqrt(3) * self.radius_lng
        self.vertical_spacing = 1.5 * self.radius_lat
        self._cached_address = lru_cache(maxsize=ADDRESS_CACHE_SIZE)(self.to_address)

    def row_offset(self, r: int) -> float:
        # r % 2 is 0 or 1 for negative rows as well
        return (r % 2) * self.horizontal_spacing / 2

    def to_latlng(self, q: int, r: int) -> LatLng:
        origin_lat, origin_lng = self.config.origin
        lat = origin_lat - r * self.vertical_spacing
        lng = origin_lng + q * self.horizontal_spacing + self.row_offset(r)
        return lat, lng

    def to_address(self, lat: float, lng: float) -> HexAddress:
        """
        Nearest lattice point to (lat, lng).

        Approximate near cell edges: confirm with point_in_polygon before
        trusting it (see classifier.classify).
        """
        origin_lat, origin_lng = self.config.origin
        r = round((origin_lat - lat) / self.vertical_spacing)
        q = round((lng - origin_lng - self.row_offset(r)) / self.horizontal_spacing)
        return HexAddress(int(q), int(r))

    def address_hint(self, lat: float, lng: float) -> Optional[HexAddress]:
        """Memoised to_address on quantised input; None for non-finite points."""
        if not (math.isfinite(lat) and math.isfinite(lng)):
            return None
        return self._cached_address(
            round(lat, ADDRESS_CACHE_DECIMALS),
            round(lng, ADDRESS_CACHE_DECIMALS),
        )

    def boundary(self, center: LatLng) -> List[LatLng]:
        return build_boundary(center, self.radius_lat, self.radius_lng, origin=self.config.origin)

    def hexagon(self, address: HexAddress) -> Hexagon:
        center = self.to_latlng(address.q, address.r)
        return Hexagon(
            id=hexagon_id(address.q, address.r),
            address=address,
            center=center,
            boundary=tuple(self.boundary(center)),
        )

    @staticmethod
    def neighbourhood(address: HexAddress) -> List[HexAddress]:
        """The 3x3 block of addresses around a lattice hint, hint first.

        A point's true cell is always within one row and one column of the
        rounded hint.
        """
        block = [address]
        for dr in (-1, 0, 1):
            for dq in (-1, 0, 1):
                if dq == 0 and dr == 0:
                    continue
                block.append(HexAddress(address.q + dq, address.r + dr))
        return block
