import sys
from pathlib import Path

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from hexbin.classifier import classify, find_in_candidates
from hexbin.config import GridConfig
from hexbin.geometry import point_in_polygon
from hexbin.grid import HexAddress, HexGrid
from hexbin.utils.exceptions import RecomputeSuperseded, ViewportError
from hexbin.viewport import Viewport, address_range, generate_hexagon_grid


@pytest.fixture
def grid():
    return HexGrid(GridConfig(origin=(-26.9180776, -49.0745391), hex_radius_meters=500))


@pytest.fixture
def viewport():
    return Viewport(north=-26.88, south=-26.96, east=-49.02, west=-49.12)


class TestViewport:
    def test_rejects_non_finite_edges(self):
        with pytest.raises(ViewportError):
            Viewport(north=float('nan'), south=0.0, east=1.0, west=0.0)
        with pytest.raises(ViewportError):
            Viewport(north='north', south=0.0, east=1.0, west=0.0)

    def test_expanded_by_fraction_of_span(self):
        vp = Viewport(north=1.0, south=0.0, east=2.0, west=0.0).expanded(0.1)
        assert vp.north == pytest.approx(1.1)
        assert vp.south == pytest.approx(-0.1)
        assert vp.east == pytest.approx(2.2)
        assert vp.west == pytest.approx(-0.2)

    def test_degenerate(self):
        assert Viewport(north=0.0, south=0.0, east=1.0, west=0.0).is_degenerate
        assert Viewport(north=1.0, south=2.0, east=1.0, west=0.0).is_degenerate
        assert not Viewport(north=1.0, south=0.0, east=1.0, west=0.0).is_degenerate


class TestGridGenerator:
    def test_degenerate_viewport_yields_nothing(self, grid):
        vp = Viewport(north=-26.9, south=-26.9, east=-49.0, west=-49.1)
        assert generate_hexagon_grid(grid, vp) == []

    def test_address_range_is_padded(self, grid, viewport):
        min_q, max_q, min_r, max_r = address_range(grid, viewport, padding=0)
        corner = grid.to_address(viewport.north, viewport.west)
        # padding below 2 is raised to 2
        assert min_q <= corner.q - 2
        assert min_r <= corner.r - 2
        assert max_q > min_q and max_r > min_r

    def test_every_hexagon_is_well_formed(self, grid, viewport):
        hexagons = generate_hexagon_grid(grid, viewport)
        assert hexagons
        ids = [h.id for h in hexagons]
        assert len(ids) == len(set(ids))
        for h in hexagons:
            assert len(h.boundary) == 7
            assert h.boundary[0] == h.boundary[-1]
            assert h.id == f'hex_{h.address.q}_{h.address.r}'
            assert h.center == grid.to_latlng(h.address.q, h.address.r)

    def test_centres_near_viewport(self, grid, viewport):
        accept = viewport.grown(grid.radius_lat, grid.radius_lng)
        for h in generate_hexagon_grid(grid, viewport):
            assert accept.contains(*h.center)

    def test_zoomed_out_margin_covers_more(self, grid, viewport):
        far = generate_hexagon_grid(grid, viewport, zoom=8)
        near = generate_hexagon_grid(grid, viewport, zoom=16)
        assert {h.id for h in near} <= {h.id for h in far}
        assert len(far) > len(near)

    def test_deterministic(self, grid, viewport):
        first = generate_hexagon_grid(grid, viewport, zoom=12)
        second = generate_hexagon_grid(HexGrid(grid.config), viewport, zoom=12)
        assert {(h.id, h.boundary) for h in first} == {(h.id, h.boundary) for h in second}

    def test_ids_stable_across_pans(self, grid, viewport):
        shifted = Viewport(
            north=viewport.north - 0.03, south=viewport.south - 0.03,
            east=viewport.east + 0.04, west=viewport.west + 0.04,
        )
        first = {h.id: h.boundary for h in generate_hexagon_grid(grid, viewport)}
        second = {h.id: h.boundary for h in generate_hexagon_grid(grid, shifted)}
        shared = set(first) & set(second)
        assert shared
        for hex_id in shared:
            assert first[hex_id] == second[hex_id]

    def test_tiling_has_no_gaps_or_overlaps(self, grid, viewport):
        hexagons = generate_hexagon_grid(grid, viewport)
        rng = np.random.default_rng(7)
        lats = rng.uniform(viewport.south, viewport.north, 400)
        lngs = rng.uniform(viewport.west, viewport.east, 400)
        for lat, lng in zip(lats, lngs):
            containing = [h for h in hexagons if point_in_polygon((lat, lng), h.boundary)]
            assert len(containing) == 1

    def test_abandoned_when_superseded(self, grid, viewport):
        with pytest.raises(RecomputeSuperseded):
            generate_hexagon_grid(grid, viewport, should_continue=lambda: False)


class TestClassifier:
    @pytest.fixture
    def equator_grid(self):
        return HexGrid(GridConfig(origin=(0.0, 0.0), hex_radius_meters=1000))

    def test_point_near_origin(self, equator_grid):
        found = classify(equator_grid, (0.0001, 0.0001))
        assert found is not None
        assert found.address == HexAddress(0, 0)
        assert found.id == 'hex_0_0'

    def test_candidates_scanned_first(self, grid, viewport):
        hexagons = generate_hexagon_grid(grid, viewport)
        target = hexagons[len(hexagons) // 2]
        assert classify(grid, target.center, hexagons) is target
        assert find_in_candidates(target.center, hexagons) is target

    def test_falls_back_when_candidates_miss(self, grid, viewport):
        hexagons = generate_hexagon_grid(grid, viewport)
        far_point = (viewport.south - 0.5, viewport.west - 0.5)
        found = classify(grid, far_point, hexagons)
        assert found is not None
        assert point_in_polygon(far_point, found.boundary)
        assert found.id not in {h.id for h in hexagons}

    def test_wrong_lattice_hint_is_corrected(self, equator_grid):
        # 0.8 radii south of hex (0, 0): still inside it, but rounding picks row 1
        point = (-0.8 * equator_grid.radius_lat, 0.0)
        assert equator_grid.to_address(*point).r == 1
        found = classify(equator_grid, point)
        assert found is not None
        assert found.address == HexAddress(0, 0)

    def test_round_trip_through_classifier(self, grid):
        for q, r in [(0, 0), (5, -3), (-8, 11), (21, 4)]:
            assert classify(grid, grid.to_latlng(q, r)).address == HexAddress(q, r)

    def test_non_finite_point_is_unassigned(self, equator_grid):
        assert classify(equator_grid, (float('nan'), 0.0)) is None
