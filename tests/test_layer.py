import sys
from datetime import datetime
from pathlib import Path

import pandas as pd
import pytest
import requests

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from hexbin.config import GridConfig
from hexbin.data import feature_source
from hexbin.data.feature_source import FeatureSourceClient
from hexbin.grid import HexGrid
from hexbin.layer import HexagonLayer
from hexbin.utils.exceptions import FeatureSourceError
from hexbin.viewport import Viewport


@pytest.fixture
def grid():
    return HexGrid(GridConfig(origin=(0.0, 0.0), hex_radius_meters=1000))


@pytest.fixture
def collection():
    return {
        'type': 'FeatureCollection',
        'features': [
            {'type': 'Feature', 'geometry': {'type': 'Point', 'coordinates': [0.0001, 0.0001]},
             'properties': {'occurrenceCount': 3}},
            {'type': 'Feature', 'geometry': {'type': 'Point', 'coordinates': [0.0002, -0.0001]},
             'properties': {'occurrenceCount': 1}},
            {'type': 'Feature', 'geometry': None, 'properties': {'occurrenceCount': 9}},
        ],
    }


VIEWPORT = Viewport(north=0.02, south=-0.02, east=0.02, west=-0.02)


class TestHexagonLayer:
    def test_update_publishes_cells(self, grid, collection):
        layer = HexagonLayer(grid)
        layer.refresh(collection)
        cells = layer.update(VIEWPORT, zoom=14)
        assert cells is layer.cells
        assert layer.cell('hex_0_0').count == 4
        assert layer.index.dropped == 1
        assert sum(c.count for c in cells) == 4

    def test_update_without_data(self, grid):
        layer = HexagonLayer(grid)
        cells = layer.update(VIEWPORT)
        assert cells
        assert all(c.count == 0 for c in cells)

    def test_superseded_update_is_not_published(self, grid, collection):
        layer = HexagonLayer(grid)
        layer.refresh(collection)
        first = layer.update(VIEWPORT)

        layer._is_current = lambda ticket: False
        assert layer.update(Viewport(north=1.0, south=0.9, east=1.0, west=0.9)) is None
        assert layer.cells is first

    def test_update_started_during_enumeration_wins(self, grid, collection):
        layer = HexagonLayer(grid)
        layer.refresh(collection)
        moved = Viewport(north=0.5, south=0.45, east=0.5, west=0.45)
        is_current = layer._is_current
        nested = []

        def pan_while_enumerating(ticket):
            # the first row check of the outer update starts a newer one
            if not nested:
                nested.append(None)
                nested[0] = layer.update(moved)
            return is_current(ticket)

        layer._is_current = pan_while_enumerating
        first = layer.update(VIEWPORT)

        assert first is None
        assert nested[0] is not None
        assert layer.cells is nested[0]
        assert layer.cell('hex_0_0') is None
        assert all(moved.grown(grid.radius_lat, grid.radius_lng).contains(*c.center) for c in layer.cells)

    def test_latest_update_wins(self, grid, collection):
        layer = HexagonLayer(grid)
        layer.refresh(collection)
        layer.update(VIEWPORT)
        moved = Viewport(north=0.5, south=0.45, east=0.5, west=0.45)
        cells = layer.update(moved)
        assert layer.cells is cells
        assert layer.cell('hex_0_0') is None

    def test_refresh_replaces_points(self, grid, collection):
        layer = HexagonLayer(grid)
        layer.refresh(collection)
        layer.refresh({'type': 'FeatureCollection', 'features': []})
        layer.update(VIEWPORT)
        assert layer.index.total() == 0
        assert layer.index.dropped == 0

    def test_select(self, grid, collection):
        layer = HexagonLayer(grid)
        layer.refresh(collection)
        layer.update(VIEWPORT)
        records = pd.DataFrame({'latitude': [0.0001, 0.5], 'longitude': [0.0001, 0.5]})
        assert len(layer.select('hex_0_0', records)) == 1
        assert layer.select('hex_999_999', records).empty
        assert layer.select('hex_999_999', [{'latitude': 0.0, 'longitude': 0.0}]) == []

    def test_select_returns_original_features(self, grid, collection):
        layer = HexagonLayer(grid)
        layer.refresh(collection)
        layer.update(VIEWPORT)
        selected = layer.select('hex_0_0', collection)
        assert selected == collection['features'][:2]
        assert sum(f['properties']['occurrenceCount'] for f in selected) == layer.cell('hex_0_0').count


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=''):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr(feature_source.time, 'sleep', lambda s: None)


class TestFeatureSourceClient:
    START = datetime(2025, 3, 1, 0, 0, 0)
    END = datetime(2025, 3, 31, 23, 59, 59)

    def test_params(self):
        params = FeatureSourceClient.build_params(self.START, self.END, Viewport(north=2, south=1, east=4, west=3))
        assert params == {
            'periodoInicio': '2025-03-01T00:00:00',
            'periodoFim': '2025-03-31T23:59:59',
            'minLat': '1.0',
            'maxLat': '2.0',
            'minLng': '3.0',
            'maxLng': '4.0',
        }
        assert 'minLat' not in FeatureSourceClient.build_params(self.START, self.END)

    def test_fetch(self, collection):
        session = FakeSession([FakeResponse(payload=collection)])
        client = FeatureSourceClient(api_url='http://api.test/api/', timeout=5, session=session)
        assert client.fetch(self.START, self.END) == collection
        url, params, timeout = session.calls[0]
        assert url == 'http://api.test/api/heatmap/hexagons'
        assert timeout == 5

    def test_retries_after_rate_limit(self, collection):
        session = FakeSession([FakeResponse(status_code=429), FakeResponse(payload=collection)])
        client = FeatureSourceClient(api_url='http://api.test', session=session)
        assert client.fetch(self.START, self.END) == collection
        assert len(session.calls) == 2

    def test_network_error_after_retries(self):
        errors = [requests.exceptions.ConnectionError('down')] * 3
        client = FeatureSourceClient(api_url='http://api.test', retries=3, session=FakeSession(errors))
        with pytest.raises(FeatureSourceError):
            client.fetch(self.START, self.END)

    def test_server_errors_exhaust_retries(self):
        session = FakeSession([FakeResponse(status_code=500, text='boom')] * 2)
        client = FeatureSourceClient(api_url='http://api.test', retries=2, session=session)
        with pytest.raises(FeatureSourceError):
            client.fetch(self.START, self.END)

    def test_non_json_body(self):
        session = FakeSession([FakeResponse(payload=ValueError('no json'))])
        client = FeatureSourceClient(api_url='http://api.test', session=session)
        with pytest.raises(FeatureSourceError):
            client.fetch(self.START, self.END)

    def test_missing_features_list_is_empty(self):
        session = FakeSession([FakeResponse(payload={'message': 'ok'})])
        client = FeatureSourceClient(api_url='http://api.test', session=session)
        assert client.fetch(self.START, self.END) == {'type': 'FeatureCollection', 'features': []}

    def test_default_url_from_environment(self, monkeypatch):
        monkeypatch.setenv('HEXBIN_API_URL', 'http://dashboard.local/api/')
        client = FeatureSourceClient(session=FakeSession([]))
        assert client.api_url == 'http://dashboard.local/api'
