import importlib.util
import json
import sys
from pathlib import Path

import pandas as pd
import pytest

SCRIPT = Path(__file__).parent.parent / 'scripts' / 'bin_features.py'


@pytest.fixture
def bin_features(monkeypatch, tmp_path):
    spec = importlib.util.spec_from_file_location('bin_features', SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    monkeypatch.setattr(module, 'OUT', tmp_path / 'reports' / 'hexbin_counts.csv')
    monkeypatch.setenv('HEXBIN_ORIGIN_LAT', '0')
    monkeypatch.setenv('HEXBIN_ORIGIN_LNG', '0')
    monkeypatch.setenv('HEXBIN_HEX_RADIUS_M', '1000')
    return module


def test_writes_counts(bin_features, tmp_path):
    source = tmp_path / 'features.geojson'
    source.write_text(json.dumps({
        'type': 'FeatureCollection',
        'features': [
            {'type': 'Feature', 'geometry': {'type': 'Point', 'coordinates': [0.0001, 0.0001]},
             'properties': {'occurrenceCount': 2}},
            {'type': 'Feature', 'geometry': {'type': 'Point', 'coordinates': [0.0002, 0.0002]},
             'properties': {'occurrenceCount': 3}},
        ],
    }))

    assert bin_features.main([str(source), '0.02', '-0.02', '0.02', '-0.02', '14']) == 0

    df = pd.read_csv(bin_features.OUT)
    assert df.loc[df['hex_id'] == 'hex_0_0', 'count'].item() == 5
    assert df['count'].sum() == 5


def test_usage_without_arguments(bin_features, capsys):
    assert bin_features.main([]) == 2
    assert 'Usage' in capsys.readouterr().err
