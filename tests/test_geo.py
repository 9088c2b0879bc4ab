import math

import pytest

from imnear.exceptions import InvalidCoordinate
from imnear.geo import distance, validate_coordinates

BILLINGS = (45.7833, -108.5007)
YELLOWSTONE = (45.9645464, -108.276076)


def test_distance_to_self_is_zero():
    assert distance(YELLOWSTONE, YELLOWSTONE) == 0.0
    assert distance((0.0, 0.0), (0.0, 0.0)) == 0.0


def test_distance_is_symmetric():
    assert distance(BILLINGS, YELLOWSTONE) == pytest.approx(distance(YELLOWSTONE, BILLINGS))


def test_known_distances():
    # One degree of longitude on the equator
    assert distance((0.0, 0.0), (0.0, 1.0)) == pytest.approx(111195.08, rel=1e-4)
    # Pole to pole
    assert distance((90.0, 0.0), (-90.0, 0.0)) == pytest.approx(math.pi * 6371008.8)


def test_latitude_and_longitude_are_not_swapped():
    # Moving north one degree and moving east one degree at 60N differ by ~2x
    north = distance((60.0, 10.0), (61.0, 10.0))
    east = distance((60.0, 10.0), (60.0, 11.0))
    assert north == pytest.approx(2 * east, rel=0.01)


def test_antipodal_points():
    assert distance((0.0, 0.0), (0.0, 180.0)) == pytest.approx(math.pi * 6371008.8)


@pytest.mark.parametrize("point", [
    (90.1, 0.0),
    (-91.0, 0.0),
    (0.0, 180.5),
    (0.0, -181.0),
    (float("nan"), 0.0),
    (0.0, float("inf")),
])
def test_invalid_coordinates_rejected(point):
    with pytest.raises(InvalidCoordinate):
        validate_coordinates(point)
    with pytest.raises(InvalidCoordinate):
        distance(point, (0.0, 0.0))


def test_boundary_coordinates_accepted():
    assert validate_coordinates((90.0, 180.0)) == (90.0, 180.0)
    assert validate_coordinates((-90.0, -180.0)) == (-90.0, -180.0)
