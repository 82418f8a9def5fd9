"""Join viewport hexagons with occurrence counts into drawable cells."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from .aggregate import OccurrenceIndex
from .geometry import LatLng
from .grid import Hexagon
from .palette import color_for, intensity_for, opacity_for

STROKE_ACTIVE = ('#FFFFFF', 0.5)
STROKE_EMPTY = ('#CCCCCC', 0.3)


@dataclass(frozen=True)
class RenderCell:
    id: str
    center: LatLng
    boundary: Tuple[LatLng, ...]
    count: int
    fill_color: str
    fill_opacity: float
    stroke_color: str
    stroke_weight: float
    intensity: float
    tooltip: Optional[str]


def tooltip_for(count: int) -> Optional[str]:
    if count <= 0:
        return None
    return f"{count} occurrence{'s' if count != 1 else ''} - click for details"


def build_render_cells(hexagons: Sequence[Hexagon], index: OccurrenceIndex) -> List[RenderCell]:
    max_count = index.max()
    cells = []
    for hexagon in hexagons:
        count = index.get(hexagon.id)
        stroke_color, stroke_weight = STROKE_ACTIVE if count > 0 else STROKE_EMPTY
        cells.append(RenderCell(
            id=hexagon.id,
            center=hexagon.center,
            boundary=hexagon.boundary,
            count=count,
            fill_color=color_for(count),
            fill_opacity=opacity_for(count),
            stroke_color=stroke_color,
            stroke_weight=stroke_weight,
            intensity=intensity_for(count, max_count),
            tooltip=tooltip_for(count),
        ))
    return cells


def to_geojson(cells: Sequence[RenderCell]) -> Dict:
    """FeatureCollection of cells with rings in GeoJSON (lng, lat) order."""
    features = []
    for cell in cells:
        coords = [[lng, lat] for lat, lng in cell.boundary]
        features.append({
            'type': 'Feature',
            'id': cell.id,
            'properties': {
                'hex_id': cell.id,
                'count': cell.count,
                'fill_color': cell.fill_color,
                'fill_opacity': cell.fill_opacity,
                'stroke_color': cell.stroke_color,
                'stroke_weight': cell.stroke_weight,
                'intensity': cell.intensity,
            },
            'geometry': {'type': 'Polygon', 'coordinates': [coords]},
        })
    return {'type': 'FeatureCollection', 'features': features}


def cells_to_frame(cells: Sequence[RenderCell]) -> pd.DataFrame:
    return pd.DataFrame([
        {
            'hex_id': c.id,
            'lat': c.center[0],
            'lng': c.center[1],
            'count': c.count,
            'fill_color': c.fill_color,
            'fill_opacity': c.fill_opacity,
            'intensity': c.intensity,
        }
        for c in cells
    ], columns=['hex_id', 'lat', 'lng', 'count', 'fill_color', 'fill_opacity', 'intensity'])
