import pytest

from utils.geoutils import distance_meters, within_radius
from conftest import offset_north

CENTER = (17.7231, 80.4625)


def test_distance_to_self_is_zero():
    assert distance_meters(*CENTER, *CENTER) == 0


def test_one_degree_of_latitude():
    assert distance_meters(0, 0, 1, 0) == pytest.approx(111_194.9, abs=0.5)


def test_distance_is_symmetric():
    a, b = (51.5007, -0.1246), (40.6892, -74.0445)
    assert distance_meters(*a, *b) == pytest.approx(distance_meters(*b, *a))


def test_london_to_new_york():
    assert distance_meters(51.5007, -0.1246, 40.6892, -74.0445) == pytest.approx(5_574_840, rel=1e-3)


def test_boundary_point_counts_as_inside():
    point = offset_north(*CENTER, 200)
    exact = distance_meters(*point, *CENTER)
    inside, distance = within_radius(*point, *CENTER, exact)
    assert inside
    assert distance == exact


def test_one_meter_past_the_radius_is_outside():
    point = offset_north(*CENTER, 201)
    inside, distance = within_radius(*point, *CENTER, 200)
    assert not inside
    assert distance == pytest.approx(201, abs=1e-6)
