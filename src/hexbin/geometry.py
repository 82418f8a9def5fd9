"""Hexagon outlines and planar point-in-polygon tests over (lat, lng) rings."""

from __future__ import annotations

import math
from typing import List, Optional, Sequence, Tuple

from .utils.exceptions import GridConfigError

LatLng = Tuple[float, float]

# Rotation that puts a vertex due north of the centre (pointy-top).
POINTY_TOP_OFFSET = math.pi / 6

# Vertex i of a pointy-top hexagon, at angle i*60deg - 90deg + 30deg, as
# (half radii north, half widths east) of the centre: cos and sin of those
# angles are exactly 0, +-1/2, +-1 and +-sqrt(3)/2.
VERTEX_STEPS = (
    (1, -1),   # north-west
    (2, 0),    # north tip
    (1, 1),    # north-east
    (-1, 1),   # south-east
    (-2, 0),   # south tip
    (-1, -1),  # south-west
)


def build_boundary(
    center: LatLng,
    radius_lat: float,
    radius_lng: float,
    origin: Optional[LatLng] = None,
) -> List[LatLng]:
    """
    Six vertices of a pointy-top hexagon plus the repeated first vertex.

    Vertex i sits at angle i*60deg - 90deg + 30deg; latitude follows the cosine
    and longitude the sine, so vertex 1 is the northern tip.

    When `origin` is given the centre is taken to be a lattice point of the
    grid anchored there, and every vertex is computed as origin plus a whole
    number of half radii (lat) and half widths (lng). Neighbouring hexagons
    then share bit-identical vertices, so a shared edge is the same segment
    for both of them.
    """
    if radius_lat <= 0 or radius_lng <= 0:
        raise GridConfigError(f'hexagon radii must be positive, got ({radius_lat}, {radius_lng})')
    half_lat = radius_lat / 2
    half_width = math.sqrt(3) * radius_lng / 2
    center_lat, center_lng = center

    if origin is None:
        vertices = [
            (center_lat + north * half_lat, center_lng + east * half_width)
            for north, east in VERTEX_STEPS
        ]
    else:
        origin_lat, origin_lng = origin
        level = round((origin_lat - center_lat) / half_lat)
        column = round((center_lng - origin_lng) / half_width)
        vertices = [
            (origin_lat - (level - north) * half_lat, origin_lng + (column + east) * half_width)
            for north, east in VERTEX_STEPS
        ]
    vertices.append(vertices[0])
    return vertices


def open_ring(ring: Sequence[LatLng]) -> Sequence[LatLng]:
    """Drop the closing vertex when the ring repeats its first point."""
    if len(ring) > 1 and tuple(ring[0]) == tuple(ring[-1]):
        return ring[:-1]
    return ring


def point_in_polygon(point: LatLng, ring: Sequence[LatLng]) -> bool:
    """
    Horizontal-ray parity test. Longitude is the x axis, latitude the y axis.

    An edge counts as crossed when its endpoints straddle the point's longitude
    (half-open on the east side) and the edge passes north of the point. The
    crossing is always interpolated from the western endpoint, so two rings
    sharing an edge agree on which side of it a point lies.
    """
    point_lat, point_lng = point
    vertices = open_ring(ring)
    inside = False
    j = len(vertices) - 1
    for i in range(len(vertices)):
        lat_a, lng_a = vertices[i]
        lat_b, lng_b = vertices[j]
        if (lng_a > point_lng) != (lng_b > point_lng):
            if (lng_a, lat_a) > (lng_b, lat_b):
                lat_a, lng_a, lat_b, lng_b = lat_b, lng_b, lat_a, lng_a
            crossing_lat = lat_a + (lat_b - lat_a) * (point_lng - lng_a) / (lng_b - lng_a)
            if point_lat < crossing_lat:
                inside = not inside
        j = i
    return inside


def boundary_bbox(ring: Sequence[LatLng]) -> Tuple[float, float, float, float]:
    """(south, north, west, east) of a ring."""
    lats = [lat for lat, _ in ring]
    lngs = [lng for _, lng in ring]
    return min(lats), max(lats), min(lngs), max(lngs)
