"""Metre/degree conversions on a spherical earth (city-scale accuracy)."""

import math

METERS_PER_DEGREE = 111_000


def meters_to_lat_degrees(meters: float) -> float:
    return meters / METERS_PER_DEGREE


def meters_to_lng_degrees(meters: float, at_lat: float) -> float:
    # Undefined at the poles; GridConfig never allows a polar origin.
    return meters / (METERS_PER_DEGREE * math.cos(math.radians(at_lat)))
