"""Fixed-origin hexagon binning for municipal incident maps."""

from .config import GridConfig, load_grid_config
from .grid import HexAddress, HexGrid, Hexagon, hexagon_id, parse_hexagon_id
from .viewport import Viewport, generate_hexagon_grid
from .classifier import classify
from .features import Point, Polygon, parse_geometry, reduce_features
from .aggregate import OccurrenceIndex, build_occurrence_index, features_in_hexagon
from .palette import color_for, opacity_for, intensity_for
from .render import RenderCell, build_render_cells, to_geojson
from .layer import HexagonLayer

__all__ = [
    "GridConfig",
    "load_grid_config",
    "HexAddress",
    "HexGrid",
    "Hexagon",
    "hexagon_id",
    "parse_hexagon_id",
    "Viewport",
    "generate_hexagon_grid",
    "classify",
    "Point",
    "Polygon",
    "parse_geometry",
    "reduce_features",
    "OccurrenceIndex",
    "build_occurrence_index",
    "features_in_hexagon",
    "color_for",
    "opacity_for",
    "intensity_for",
    "RenderCell",
    "build_render_cells",
    "to_geojson",
    "HexagonLayer",
]
