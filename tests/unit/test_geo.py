import math

import pytest

from randomplace.geo import EARTH_RADIUS_KM, haversine_km, map_url


def test_zero_distance():
    assert haversine_km(48.85, 2.35, 48.85, 2.35) == 0


def test_known_distance_paris_london():
    # Paris (Notre-Dame) - London (Trafalgar Square) ~ 344 km
    d = haversine_km(48.8530, 2.3499, 51.5080, -0.1281)
    assert d == pytest.approx(344, abs=3)


def test_quarter_meridian():
    d = haversine_km(0, 0, 90, 0)
    assert d == pytest.approx(math.pi * EARTH_RADIUS_KM / 2)


def test_symmetry():
    assert haversine_km(10, 20, -30, 40) == pytest.approx(haversine_km(-30, 40, 10, 20))


def test_map_url_lon_lat_order():
    assert map_url(48.85, 2.35) == "https://yandex.ru/maps/?pt=2.35,48.85&z=12&l=map"
