import json
import sys
import warnings
from datetime import date, datetime, time
from pathlib import Path
from typing import Dict

import pandas as pd
import plotly.express as px
import streamlit as st

ROOT = Path(__file__).resolve().parent
SRC_DIR = ROOT / 'src'
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from hexbin import HexGrid, HexagonLayer, Viewport, load_grid_config
from hexbin.data import FeatureSourceClient
from hexbin.palette import TRANSPARENT, hex_to_rgb, legend
from hexbin.render import cells_to_frame, to_geojson
from hexbin.utils.exceptions import FeatureSourceError, HexbinException

warnings.filterwarnings('ignore', message='.*choropleth_mapbox.*', category=DeprecationWarning)

PLOTLY_CONFIG = {
    'scrollZoom': True,
    'displaylogo': False,
    'modeBarButtonsToRemove': ['lasso2d', 'select2d']
}

# Degrees around the grid origin shown on first load.
DEFAULT_HALF_SPAN = 0.08


def rgba(fill_color: str, opacity: float) -> str:
    if fill_color == TRANSPARENT:
        return 'rgba(0,0,0,0)'
    r, g, b = hex_to_rgb(fill_color)
    return f'rgba({r},{g},{b},{opacity:.2f})'


@st.cache_data(show_spinner=False)
def fetch_api(start: date, end: date, bounds: Dict[str, float]) -> Dict:
    client = FeatureSourceClient()
    viewport = Viewport(**bounds)
    return client.fetch(datetime.combine(start, time.min), datetime.combine(end, time.max).replace(microsecond=0), viewport)


def plot_cells(cells, center: Dict[str, float], zoom: int):
    frame = cells_to_frame(cells)
    if frame.empty:
        return px.choropleth_mapbox()
    frame['fill'] = [rgba(c.fill_color, c.fill_opacity) for c in cells]
    geojson = to_geojson(cells)
    fig = px.choropleth_mapbox(
        frame,
        geojson=geojson,
        locations='hex_id',
        color='fill',
        color_discrete_map={c: c for c in frame['fill'].unique()},
        featureidkey='properties.hex_id',
        mapbox_style='carto-positron',
        center=center,
        zoom=zoom,
        hover_data={'hex_id': True, 'count': True, 'fill': False},
    )
    fig.update_traces(marker_line_width=0.4, marker_line_color='rgba(204,204,204,0.8)')
    fig.update_layout(margin={'r': 0, 't': 10, 'l': 0, 'b': 0}, showlegend=False)
    return fig


def main():
    st.set_page_config(page_title='Occurrence Hexagons', layout='wide')
    st.markdown('## Municipal Occurrence Hexagon Map')
    st.caption('Fixed 1 km hexagon grid: the same street always lands in the same cell, whatever the zoom.')

    config = load_grid_config()
    grid = HexGrid(config)
    origin_lat, origin_lng = config.origin

    st.sidebar.header('Viewport')
    north = st.sidebar.number_input('North', value=origin_lat + DEFAULT_HALF_SPAN, format='%.5f')
    south = st.sidebar.number_input('South', value=origin_lat - DEFAULT_HALF_SPAN, format='%.5f')
    east = st.sidebar.number_input('East', value=origin_lng + DEFAULT_HALF_SPAN, format='%.5f')
    west = st.sidebar.number_input('West', value=origin_lng - DEFAULT_HALF_SPAN, format='%.5f')
    zoom = st.sidebar.slider('Zoom', min_value=8, max_value=18, value=13)

    try:
        viewport = Viewport(north=north, south=south, east=east, west=west)
    except HexbinException as err:
        st.error(str(err))
        st.stop()

    st.sidebar.markdown('---')
    st.sidebar.subheader('Occurrences')
    mode = st.sidebar.radio('Source', ['GeoJSON file', 'Dashboard API'])
    collection = {'type': 'FeatureCollection', 'features': []}
    if mode == 'GeoJSON file':
        upload = st.sidebar.file_uploader('FeatureCollection', type=['json', 'geojson'])
        if upload is not None:
            try:
                collection = json.load(upload)
            except ValueError as err:
                st.error(f'Not a JSON file: {err}')
                st.stop()
    else:
        today = date.today()
        period = st.sidebar.date_input('Period', value=(today.replace(day=1), today))
        if isinstance(period, (list, tuple)) and len(period) == 2:
            bounds = {'north': viewport.north, 'south': viewport.south, 'east': viewport.east, 'west': viewport.west}
            try:
                collection = fetch_api(period[0], period[1], bounds)
            except FeatureSourceError as err:
                st.error(str(err))

    layer = HexagonLayer(grid)
    layer.refresh(collection)
    cells = layer.update(viewport, zoom) or []
    index = layer.index

    cols = st.columns(4)
    cols[0].metric('Hexagons on screen', f'{len(cells):,}')
    cols[1].metric('Hexagons with occurrences', f'{len(index):,}')
    cols[2].metric('Occurrences', f'{index.total():,}')
    cols[3].metric('Skipped (malformed / unplaced)', f'{index.dropped:,} / {index.unclassified:,}')

    center_lat, center_lng = viewport.center
    fig = plot_cells(cells, {'lat': center_lat, 'lon': center_lng}, zoom)
    st.plotly_chart(fig, use_container_width=True, config=PLOTLY_CONFIG)

    with st.expander('Colour scale'):
        st.dataframe(pd.DataFrame(legend()), hide_index=True)

    active = [c for c in cells if c.count > 0]
    if active:
        active.sort(key=lambda c: c.count, reverse=True)
        hex_id = st.selectbox('Inspect hexagon', [c.id for c in active], format_func=lambda h: f'{h} ({layer.cell(h).count})')
        selected = layer.select(hex_id, collection)
        st.caption(f'{len(selected):,} features in {hex_id}')
        if selected:
            st.dataframe(pd.json_normalize(selected), hide_index=True)


if __name__ == '__main__':
    main()
