"""
Occurrence aggregation per hexagon and the reverse lookup used when a cell is
clicked. Both go through classifier.classify so counts and selections agree.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

import pandas as pd

from .classifier import classify
from .features import iter_features, reduce_feature
from .geometry import boundary_bbox
from .grid import HexGrid, Hexagon
from .utils.exceptions import MalformedFeatureError
from .utils.logger_config import setup_logger

logger = setup_logger(__name__)


@dataclass
class OccurrenceIndex:
    """
    Accumulated weight per hexagon id, rebuilt on every data refresh.

    counts: pd.Series of int indexed by hexagon id
    unclassified: points no hexagon could be confirmed for
    dropped: features the reducer could not parse
    """
    counts: pd.Series = field(default_factory=lambda: pd.Series(dtype='int64', name='count'))
    unclassified: int = 0
    dropped: int = 0

    def get(self, hex_id: str) -> int:
        return int(self.counts.get(hex_id, 0))

    def max(self) -> int:
        return int(self.counts.max()) if not self.counts.empty else 0

    def total(self) -> int:
        return int(self.counts.sum())

    def __len__(self):
        return len(self.counts)

    def to_frame(self) -> pd.DataFrame:
        return self.counts.rename_axis('hex_id').reset_index(name='count')


def assign_hexagons(
    grid: HexGrid,
    points: pd.DataFrame,
    candidates: Optional[Sequence[Hexagon]] = None,
) -> pd.Series:
    """Hexagon id per reduced point (pd.NA where unclassified)."""
    ids = []
    for lat, lng in zip(points['lat'].to_numpy(), points['lng'].to_numpy()):
        hexagon = classify(grid, (float(lat), float(lng)), candidates)
        ids.append(hexagon.id if hexagon is not None else pd.NA)
    return pd.Series(ids, index=points.index, dtype='string')


def build_occurrence_index(
    grid: HexGrid,
    points: pd.DataFrame,
    candidates: Optional[Sequence[Hexagon]] = None,
    dropped: int = 0,
) -> OccurrenceIndex:
    """
    Fold weighted points into per-hexagon counts.

    Args:
        grid: lattice the ids refer to
        points: DataFrame with lat, lng, weight (features.reduce_features output)
        candidates: hexagons to try first, usually the current viewport's
        dropped: malformed-feature count carried over from the reducer
    """
    if points.empty:
        return OccurrenceIndex(dropped=dropped)

    working = points[['lat', 'lng', 'weight']].copy()
    working['hex_id'] = assign_hexagons(grid, working, candidates)

    unclassified = int(working['hex_id'].isna().sum())
    if unclassified:
        logger.warning(f'{unclassified:,} of {len(working):,} points could not be assigned to a hexagon')

    counts = (
        working.dropna(subset=['hex_id'])
        .groupby('hex_id', observed=True)['weight']
        .sum()
        .astype('int64')
        .rename('count')
    )
    counts.index = counts.index.astype(object)
    logger.debug(f'Occurrence index: {len(counts):,} hexagons, total weight {int(counts.sum()):,}')
    return OccurrenceIndex(counts=counts, unclassified=unclassified, dropped=dropped)


def _is_feature(record: Any) -> bool:
    return isinstance(record, Mapping) and ('geometry' in record or record.get('type') == 'Feature')


def _record_latlng(record: Any):
    """Location of a record, or (None, None) when it has none."""
    if _is_feature(record):
        try:
            lat, lng, _, _ = reduce_feature(record)
        except MalformedFeatureError:
            return None, None
        return lat, lng
    if isinstance(record, Mapping):
        return record.get('latitude'), record.get('longitude')
    return getattr(record, 'latitude', None), getattr(record, 'longitude', None)


def features_in_hexagon(
    grid: HexGrid,
    hexagon: Hexagon,
    records: Union[pd.DataFrame, Mapping[str, Any], Iterable[Any]],
) -> Union[pd.DataFrame, List[Any]]:
    """
    Records whose location falls in `hexagon`.

    Records are either GeoJSON features (located at the same representative
    point the reducer counts them at; malformed ones never match), or
    occurrences exposing `latitude` and `longitude` as DataFrame columns, dict
    keys or attributes. A FeatureCollection is read as its feature list. A
    bounding-box pre-filter runs before each survivor is re-classified on the
    same lattice.
    """
    south, north, west, east = boundary_bbox(hexagon.boundary)

    def belongs(lat, lng) -> bool:
        if lat is None or lng is None or pd.isna(lat) or pd.isna(lng):
            return False
        lat, lng = float(lat), float(lng)
        if lat < south or lat > north or lng < west or lng > east:
            return False
        found = classify(grid, (lat, lng))
        return found is not None and found.id == hexagon.id

    if isinstance(records, pd.DataFrame):
        if records.empty:
            return records.copy()
        mask = [belongs(lat, lng) for lat, lng in zip(records['latitude'], records['longitude'])]
        return records.loc[mask].copy()

    if isinstance(records, Mapping):
        records = iter_features(records)
    return [rec for rec in records if belongs(*_record_latlng(rec))]
