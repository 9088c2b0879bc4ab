"""
Great-circle distance on a spherical Earth.
"""
import math

from . import config
from .exceptions import InvalidCoordinate
from .models import Coordinates


def validate_coordinates(point: Coordinates) -> Coordinates:
    """Returns point unchanged, or raises InvalidCoordinate."""
    lat, lon = point
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise InvalidCoordinate(f"Non-finite coordinate: ({lat}, {lon})")
    if not -90.0 <= lat <= 90.0:
        raise InvalidCoordinate(f"Latitude out of range [-90, 90]: {lat}")
    if not -180.0 <= lon <= 180.0:
        raise InvalidCoordinate(f"Longitude out of range [-180, 180]: {lon}")
    return point


def distance(p0: Coordinates, p1: Coordinates) -> float:
    """Haversine distance in meters between two (lat, lon) points."""
    lat0, lon0 = validate_coordinates(p0)
    lat1, lon1 = validate_coordinates(p1)

    phi0 = math.radians(lat0)
    phi1 = math.radians(lat1)
    dphi = phi1 - phi0
    dlam = math.radians(lon1 - lon0)

    a = math.sin(dphi / 2.0) ** 2 + math.cos(phi0) * math.cos(phi1) * math.sin(dlam / 2.0) ** 2
    # Rounding can push a a hair above 1 for antipodal points
    a = min(1.0, a)
    return 2 * config.EARTH_RADIUS_M * math.asin(math.sqrt(a))
