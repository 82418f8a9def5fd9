"""Grid and service configuration.

Defaults reproduce the dashboard's fixed global grid (origin in Blumenau, 1 km
hexagons). Any value can be overridden from the environment or a `.env` file:

    HEXBIN_ORIGIN_LAT, HEXBIN_ORIGIN_LNG, HEXBIN_HEX_RADIUS_M,
    HEXBIN_API_URL, HEXBIN_REQUEST_TIMEOUT
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Tuple

from dotenv import load_dotenv

from .utils.exceptions import GridConfigError

# Fixed global grid anchor. Changing either value redefines every hexagon id.
DEFAULT_ORIGIN: Tuple[float, float] = (-26.9180776, -49.0745391)
DEFAULT_HEX_RADIUS_M = 1000.0

# Lattice rows/columns added around the sampled address range of a viewport.
ADDRESS_PADDING = 2

# (zoom below, fraction of span added on each side); the last entry applies to any zoom.
ZOOM_MARGINS = [
    (10, 0.10),
    (13, 0.05),
    (None, 0.02),
]

# Bounded memo for lattice hints, keyed by (lat, lng) rounded to this many decimals.
ADDRESS_CACHE_SIZE = 4096
ADDRESS_CACHE_DECIMALS = 7

DEFAULT_API_URL = 'http://localhost:8080/api'
DEFAULT_REQUEST_TIMEOUT = 30.0


@dataclass(frozen=True)
class GridConfig:
    """
    Process-wide grid definition.

    origin: (lat, lng) of hexagon (0, 0)
    hex_radius_meters: centre-to-vertex distance of every hexagon
    """
    origin: Tuple[float, float] = DEFAULT_ORIGIN
    hex_radius_meters: float = DEFAULT_HEX_RADIUS_M

    def __post_init__(self):
        radius = float(self.hex_radius_meters)
        if not math.isfinite(radius) or radius <= 0:
            raise GridConfigError(f'hex_radius_meters must be a positive number, got {self.hex_radius_meters!r}')
        lat, lng = (float(v) for v in self.origin)
        if not (math.isfinite(lat) and math.isfinite(lng)):
            raise GridConfigError(f'origin must be finite, got {self.origin!r}')
        if not -90.0 < lat < 90.0:
            raise GridConfigError(f'origin latitude must be strictly between -90 and 90, got {lat}')
        object.__setattr__(self, 'origin', (lat, lng))
        object.__setattr__(self, 'hex_radius_meters', radius)


def _env_float(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None or raw.strip() == '':
        return default
    try:
        return float(raw)
    except ValueError:
        raise GridConfigError(f'{key} must be a number, got {raw!r}')


def load_grid_config() -> GridConfig:
    """Build the GridConfig from defaults plus environment overrides."""
    load_dotenv()
    origin = (
        _env_float('HEXBIN_ORIGIN_LAT', DEFAULT_ORIGIN[0]),
        _env_float('HEXBIN_ORIGIN_LNG', DEFAULT_ORIGIN[1]),
    )
    radius = _env_float('HEXBIN_HEX_RADIUS_M', DEFAULT_HEX_RADIUS_M)
    return GridConfig(origin=origin, hex_radius_meters=radius)


def api_settings() -> Tuple[str, float]:
    """Return (api_url, request_timeout) for the feature source client."""
    load_dotenv()
    url = os.getenv('HEXBIN_API_URL') or DEFAULT_API_URL
    timeout = _env_float('HEXBIN_REQUEST_TIMEOUT', DEFAULT_REQUEST_TIMEOUT)
    return url.rstrip('/'), timeout


def margin_for_zoom(zoom: int) -> float:
    """Fraction of the viewport span added on each side at this zoom level."""
    for below, fraction in ZOOM_MARGINS:
        if below is None or zoom < below:
            return fraction
    return ZOOM_MARGINS[-1][1]
