"""
Feature Reducer

Turns GeoJSON features from the dashboard API into weighted representative
points:

- Point: coordinates swapped from GeoJSON (lng, lat) to (lat, lng)
- Polygon: plain average of the exterior ring's distinct vertices

Features that cannot be parsed are dropped and counted, never raised.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

from .geometry import LatLng, open_ring
from .utils.exceptions import MalformedFeatureError
from .utils.logger_config import setup_logger

logger = setup_logger(__name__)

POINT_COLUMNS = ['lat', 'lng', 'weight', 'intensity']


@dataclass(frozen=True)
class Point:
    lat: float
    lng: float

    def representative(self) -> LatLng:
        return self.lat, self.lng


@dataclass(frozen=True)
class Polygon:
    ring: Tuple[LatLng, ...]

    def representative(self) -> LatLng:
        # Vertex average, not an area centroid; cells here are small and convex.
        vertices = open_ring(self.ring)
        lat = sum(v[0] for v in vertices) / len(vertices)
        lng = sum(v[1] for v in vertices) / len(vertices)
        return lat, lng


Geometry = Union[Point, Polygon]


@dataclass
class ReductionStats:
    total: int = 0
    kept: int = 0
    dropped: int = 0


def _coordinate(value: Any) -> float:
    if isinstance(value, bool):
        raise MalformedFeatureError(f'Boolean is not a coordinate: {value!r}')
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise MalformedFeatureError(f'Not a coordinate: {value!r}')
    if not math.isfinite(number):
        raise MalformedFeatureError(f'Coordinate is not finite: {value!r}')
    return number


def _lnglat_to_latlng(position: Any) -> LatLng:
    lng, lat = position[0], position[1]
    return _coordinate(lat), _coordinate(lng)


def parse_geometry(geometry: Optional[Mapping[str, Any]]) -> Geometry:
    """
    Parse a GeoJSON Point or Polygon into (lat, lng) order.

    Raises:
        MalformedFeatureError: missing geometry, unsupported type or bad coordinates
    """
    if not isinstance(geometry, Mapping):
        raise MalformedFeatureError('Feature has no geometry')
    kind = geometry.get('type')
    coords = geometry.get('coordinates')

    if kind == 'Point':
        if not isinstance(coords, (list, tuple)) or len(coords) < 2:
            raise MalformedFeatureError(f'Point needs [lng, lat], got {coords!r}')
        return Point(*_lnglat_to_latlng(coords))

    if kind == 'Polygon':
        if not isinstance(coords, (list, tuple)) or not coords:
            raise MalformedFeatureError('Polygon has no rings')
        exterior = coords[0]
        if not isinstance(exterior, (list, tuple)):
            raise MalformedFeatureError(f'Polygon exterior ring is not a list: {exterior!r}')
        # Short vertices are skipped, as the map client does
        ring = tuple(
            _lnglat_to_latlng(v) for v in exterior
            if isinstance(v, (list, tuple)) and len(v) >= 2
        )
        if not open_ring(ring):
            raise MalformedFeatureError('Polygon exterior ring has no usable vertices')
        return Polygon(ring)

    raise MalformedFeatureError(f'Unsupported geometry type: {kind!r}')


def _occurrence_count(properties: Mapping[str, Any]) -> int:
    raw = properties.get('occurrenceCount')
    if raw is None:
        return 0
    if isinstance(raw, bool):
        raise MalformedFeatureError(f'occurrenceCount must be an integer, got {raw!r}')
    try:
        number = float(raw)
    except (TypeError, ValueError):
        raise MalformedFeatureError(f'occurrenceCount must be an integer, got {raw!r}')
    if not number.is_integer() or number < 0:
        raise MalformedFeatureError(f'occurrenceCount must be a non-negative integer, got {raw!r}')
    return int(number)


def _intensity(properties: Mapping[str, Any]) -> float:
    raw = properties.get('intensity')
    try:
        return float(raw) if raw is not None else np.nan
    except (TypeError, ValueError):
        return np.nan


def reduce_feature(feature: Mapping[str, Any]) -> Tuple[float, float, int, float]:
    """(lat, lng, weight, intensity) for one feature; raises MalformedFeatureError."""
    if not isinstance(feature, Mapping):
        raise MalformedFeatureError(f'Feature is not a mapping: {type(feature).__name__}')
    properties = feature.get('properties') or {}
    if not isinstance(properties, Mapping):
        raise MalformedFeatureError('Feature properties are not a mapping')
    lat, lng = parse_geometry(feature.get('geometry')).representative()
    return lat, lng, _occurrence_count(properties), _intensity(properties)


def iter_features(source: Union[Mapping[str, Any], Iterable[Mapping[str, Any]], None]):
    """Accept a FeatureCollection mapping or any iterable of features."""
    if source is None:
        return iter(())
    if isinstance(source, Mapping):
        return iter(source.get('features') or ())
    return iter(source)


def reduce_features(source) -> Tuple[pd.DataFrame, ReductionStats]:
    """
    Reduce a batch of features to weighted points.

    Returns:
        (DataFrame[lat, lng, weight, intensity], ReductionStats)
    """
    stats = ReductionStats()
    rows = []
    for position, feature in enumerate(iter_features(source)):
        stats.total += 1
        try:
            rows.append(reduce_feature(feature))
        except MalformedFeatureError as e:
            stats.dropped += 1
            logger.debug(f'Dropped feature #{position}: {e}')
    stats.kept = len(rows)

    points = pd.DataFrame(rows, columns=POINT_COLUMNS)
    points = points.astype({'lat': 'float64', 'lng': 'float64', 'weight': 'int64', 'intensity': 'float64'})
    if stats.dropped:
        logger.info(f'Feature reduction: kept {stats.kept:,}/{stats.total:,}, dropped {stats.dropped:,} malformed')
    return points, stats
