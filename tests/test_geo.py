from __future__ import annotations

import math

import pytest

from utils.geo import (
    GeoLock,
    distance_meters,
    is_scan_allowed,
    is_valid_coordinate,
)

NYC = (40.7128, -74.0060)
METERS_PER_DEGREE_LAT = 6_371_000.0 * math.pi / 180


def _north_of(lat: float, lng: float, meters: float) -> tuple[float, float]:
    return lat + meters / METERS_PER_DEGREE_LAT, lng


def test_distance_to_same_point_is_zero():
    assert distance_meters(*NYC, *NYC) == 0


def test_distance_is_symmetric():
    paris = (48.8566, 2.3522)
    assert distance_meters(*NYC, *paris) == pytest.approx(distance_meters(*paris, *NYC))


def test_paris_to_london():
    d = distance_meters(48.8566, 2.3522, 51.5074, -0.1278)
    assert d == pytest.approx(343_500, abs=1_000)


def test_one_degree_of_latitude():
    assert distance_meters(0, 0, 1, 0) == pytest.approx(METERS_PER_DEGREE_LAT, rel=1e-9)


def test_antipodal_points_are_half_circumference():
    assert distance_meters(0, 0, 0, 180) == pytest.approx(math.pi * 6_371_000.0, rel=1e-9)


@pytest.mark.parametrize(
    "lat,lng,valid",
    [
        (0, 0, True),
        (90, 180, True),
        (-90, -180, True),
        (90.0001, 0, False),
        (0, -180.5, False),
        (float("nan"), 0, False),
        (0, float("inf"), False),
        ("40.7", -74.0, False),
        (None, 0, False),
        (True, 0, False),
    ],
)
def test_is_valid_coordinate(lat, lng, valid):
    assert is_valid_coordinate(lat, lng) is valid


def test_geo_lock_from_metadata():
    lock = GeoLock.from_metadata({"geoLock": {"lat": 40.7128, "lng": -74.006, "radiusMeters": 100}})
    assert lock == GeoLock(lat=40.7128, lng=-74.006, radius_meters=100.0)
    assert lock.to_metadata() == {"lat": 40.7128, "lng": -74.006, "radiusMeters": 100.0}


@pytest.mark.parametrize("metadata", [None, {}, {"message": "hi"}, {"geoLock": None}])
def test_geo_lock_absent(metadata):
    assert GeoLock.from_metadata(metadata) is None


@pytest.mark.parametrize(
    "raw",
    [
        "40.7,-74.0",
        {"lat": 100, "lng": 0, "radiusMeters": 10},
        {"lat": 0, "lng": 0},
        {"lat": 0, "lng": 0, "radiusMeters": 0},
        {"lat": 0, "lng": 0, "radiusMeters": -5},
    ],
)
def test_geo_lock_malformed_raises(raw):
    with pytest.raises(ValueError):
        GeoLock.from_metadata({"geoLock": raw})


def test_lock_contains_center_and_boundary():
    lock = GeoLock(lat=NYC[0], lng=NYC[1], radius_meters=100)
    assert lock.contains(*NYC)

    inside = _north_of(*NYC, 99)
    outside = _north_of(*NYC, 101)
    assert lock.contains(*inside)
    assert not lock.contains(*outside)


def test_exact_radius_is_inside():
    point = _north_of(*NYC, 100)
    radius = distance_meters(*NYC, *point)
    lock = GeoLock(lat=NYC[0], lng=NYC[1], radius_meters=radius)
    assert lock.contains(*point)


def test_scan_allowed_without_lock_anywhere():
    assert is_scan_allowed(None, 0, 0)
    assert is_scan_allowed({"message": "hello"}, -33.86, 151.2)


def test_scan_with_malformed_lock_is_denied():
    assert not is_scan_allowed({"geoLock": {"lat": "x"}}, *NYC)


def test_huge_integers_are_not_coordinates():
    assert not is_valid_coordinate(10**400, 0)
    assert not is_valid_coordinate(0, -(10**400))


def test_geo_lock_with_huge_radius_is_malformed():
    metadata = {"geoLock": {"lat": 0, "lng": 0, "radiusMeters": 10**400}}
    with pytest.raises(ValueError):
        GeoLock.from_metadata(metadata)
    assert not is_scan_allowed(metadata, 0, 0)
