"""
HexagonLayer: the pan/zoom driven recompute loop.

Each `update` takes a generation ticket. A recompute whose ticket has been
superseded stops enumerating and its result is never published, so only the
latest viewport's cells are ever visible.
"""

from __future__ import annotations

import itertools
import threading
from typing import List, Optional

import pandas as pd

from .aggregate import OccurrenceIndex, build_occurrence_index, features_in_hexagon
from .features import POINT_COLUMNS, reduce_features
from .grid import HexGrid
from .render import RenderCell, build_render_cells
from .utils.exceptions import RecomputeSuperseded
from .utils.logger_config import setup_logger
from .viewport import Viewport, generate_hexagon_grid

logger = setup_logger(__name__)


class HexagonLayer:
    """
    Holds the reduced feature batch and the cells for the latest viewport.

    Attributes:
        grid (HexGrid): fixed lattice shared by every recompute
        points (pd.DataFrame): weighted points from the last refresh
        dropped (int): malformed features in the last refresh
        cells (List[RenderCell]): published cells for the latest viewport
        index (OccurrenceIndex): counts behind `cells`
    """

    def __init__(self, grid: HexGrid) -> None:
        self.grid = grid
        self.points = pd.DataFrame(columns=POINT_COLUMNS)
        self.dropped = 0
        self.cells: List[RenderCell] = []
        self.index = OccurrenceIndex()
        self.hexagons = []
        self._generation = itertools.count(1)
        self._latest = 0
        self._lock = threading.Lock()

    def refresh(self, features) -> None:
        """Replace the feature batch. Counts are rebuilt on the next update."""
        self.points, stats = reduce_features(features)
        self.dropped = stats.dropped

    def _ticket(self) -> int:
        with self._lock:
            self._latest = next(self._generation)
            return self._latest

    def _is_current(self, ticket: int) -> bool:
        with self._lock:
            return ticket == self._latest

    def update(self, viewport: Viewport, zoom: Optional[int] = None) -> Optional[List[RenderCell]]:
        """
        Recompute cells for `viewport`.

        Returns the published cells, or None when a newer update superseded
        this one before it finished.
        """
        ticket = self._ticket()
        try:
            hexagons = generate_hexagon_grid(
                self.grid, viewport, zoom,
                should_continue=lambda: self._is_current(ticket),
            )
        except RecomputeSuperseded as e:
            logger.debug(f'Recompute {ticket} abandoned: {e}')
            return None

        index = build_occurrence_index(self.grid, self.points, hexagons, dropped=self.dropped)
        cells = build_render_cells(hexagons, index)

        with self._lock:
            if ticket != self._latest:
                logger.debug(f'Recompute {ticket} finished after being superseded, discarded')
                return None
            self.hexagons = hexagons
            self.index = index
            self.cells = cells
        logger.info(
            f'Published {len(cells):,} hexagons ({len(index):,} with occurrences, '
            f'{index.unclassified:,} unclassified, {index.dropped:,} dropped)'
        )
        return cells

    def cell(self, hex_id: str) -> Optional[RenderCell]:
        return next((c for c in self.cells if c.id == hex_id), None)

    def select(self, hex_id: str, records):
        """Occurrence records inside a published hexagon (empty when unknown)."""
        hexagon = next((h for h in self.hexagons if h.id == hex_id), None)
        if hexagon is None:
            return records.iloc[0:0].copy() if isinstance(records, pd.DataFrame) else []
        return features_in_hexagon(self.grid, hexagon, records)
