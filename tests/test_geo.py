import math

import pytest

from routing.geo import haversine_m, is_valid_coordinate, validate_coordinate


def test_haversine_zero_for_same_point():
    assert haversine_m((10.4806, -66.9036), (10.4806, -66.9036)) == 0.0


def test_haversine_is_symmetric_and_positive():
    a = (10.4806, -66.9036)
    b = (10.5, -66.8)
    assert haversine_m(a, b) > 0
    assert haversine_m(a, b) == pytest.approx(haversine_m(b, a))


def test_one_degree_of_latitude_is_about_111km():
    assert haversine_m((0.0, 0.0), (1.0, 0.0)) == pytest.approx(111195, rel=1e-3)


def test_triangle_inequality():
    a, b, c = (10.0, -66.0), (10.3, -66.4), (9.8, -66.9)
    assert haversine_m(a, c) <= haversine_m(a, b) + haversine_m(b, c) + 1e-6


def test_antipodal_points_do_not_raise():
    d = haversine_m((0.0, 0.0), (0.0, 180.0))
    assert d == pytest.approx(math.pi * 6371000.0)


@pytest.mark.parametrize("lat, lon, expected", [
    (10.4806, -66.8983, True),
    (90, 180, True),
    (-90, -180, True),
    (90.0001, 0, False),
    (0, -180.5, False),
    (float("nan"), 0, False),
    (0, float("inf"), False),
    ("abc", 0, False),
])
def test_is_valid_coordinate(lat, lon, expected):
    assert is_valid_coordinate(lat, lon) is expected


def test_validate_coordinate_normalizes_to_float_tuple():
    assert validate_coordinate([10, -66]) == (10.0, -66.0)


@pytest.mark.parametrize("bad", [None, (1,), (200, 50), "10,20"])
def test_validate_coordinate_rejects_bad_input(bad):
    with pytest.raises(ValueError):
        validate_coordinate(bad)
