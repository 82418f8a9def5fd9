#!/usr/bin/env python3
"""Bin a GeoJSON FeatureCollection of occurrences into the fixed hexagon grid.

Usage:
    python scripts/bin_features.py <features.geojson> <north> <south> <east> <west> [zoom]

Writes: reports/hexbin_counts.csv (one row per hexagon in the viewport)
"""
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT / 'src'
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from hexbin import HexGrid, HexagonLayer, Viewport, load_grid_config
from hexbin.render import cells_to_frame
from hexbin.utils.exceptions import HexbinException
from hexbin.utils.logger_config import setup_logger

logger = setup_logger('bin_features')

OUT = ROOT / 'reports' / 'hexbin_counts.csv'


def main(argv=None):
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) < 5:
        print(__doc__, file=sys.stderr)
        return 2

    source = Path(args[0])
    north, south, east, west = (float(v) for v in args[1:5])
    zoom = int(args[5]) if len(args) > 5 else None

    with open(source, encoding='utf-8') as fh:
        collection = json.load(fh)

    layer = HexagonLayer(HexGrid(load_grid_config()))
    layer.refresh(collection)
    cells = layer.update(Viewport(north=north, south=south, east=east, west=west), zoom)

    df = cells_to_frame(cells or [])
    OUT.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(OUT, index=False)
    logger.info(
        f'Wrote {len(df):,} hexagons to {OUT} '
        f'(total weight {layer.index.total():,}, unclassified {layer.index.unclassified:,}, '
        f'dropped {layer.index.dropped:,})'
    )
    return 0


if __name__ == '__main__':
    try:
        raise SystemExit(main())
    except (HexbinException, OSError, ValueError) as e:
        logger.critical(f'Application Terminated: {str(e)}')
        sys.exit(1)
