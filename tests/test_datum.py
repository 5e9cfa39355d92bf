import math
import pytest
from apps.coordinates.datum import (
    Datum,
    convert,
    convert_point,
    out_of_china,
    wgs84_to_gcj02,
    gcj02_to_wgs84,
    gcj02_to_bd09,
)
from apps.coordinates.schemas import Coordinate
from core.exceptions import UnsupportedDatumError

# 北京、上海、广州、乌鲁木齐、哈尔滨
CHINA_POINTS = [
    (116.391275, 39.907500),
    (121.473701, 31.230416),
    (113.264385, 23.129112),
    (87.616848, 43.825592),
    (126.534967, 45.803775),
]


def distance_m(lng1, lat1, lng2, lat2):
    """两点间的球面距离(米)"""
    r = 6371000.0
    p1, p2 = math.radians(lat1), math.radians(lat2)
    dp = p2 - p1
    dl = math.radians(lng2 - lng1)
    a = math.sin(dp / 2) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dl / 2) ** 2
    return 2 * r * math.asin(math.sqrt(a))


@pytest.mark.parametrize("datum", list(Datum))
def test_identity_returns_coordinate_unchanged(datum):
    coord = Coordinate(lng=116.391275, lat=39.9075, altitude=43.5, accuracy=5.0)
    [result] = convert([coord], datum, datum)
    assert result.converted == coord
    assert result.original == coord


@pytest.mark.parametrize("lng,lat", CHINA_POINTS)
def test_wgs84_gcj02_round_trip_within_two_meters(lng, lat):
    [forward] = convert([Coordinate(lng=lng, lat=lat)], "WGS84", "GCJ02")
    [back] = convert([forward.converted], "GCJ02", "WGS84")
    assert distance_m(lng, lat, back.converted.lng, back.converted.lat) <= 2.0


@pytest.mark.parametrize("lng,lat", CHINA_POINTS)
def test_wgs84_bd09_round_trip_within_two_meters(lng, lat):
    bd_lng, bd_lat = convert_point(lng, lat, Datum.WGS84, Datum.BD09)
    wgs_lng, wgs_lat = convert_point(bd_lng, bd_lat, Datum.BD09, Datum.WGS84)
    assert distance_m(lng, lat, wgs_lng, wgs_lat) <= 2.0


@pytest.mark.parametrize("lng,lat", CHINA_POINTS)
def test_gcj02_shift_is_hundreds_of_meters(lng, lat):
    gcj_lng, gcj_lat = wgs84_to_gcj02(lng, lat)
    shift = distance_m(lng, lat, gcj_lng, gcj_lat)
    assert 50 < shift < 1000


def test_gcj02_inverse_is_tighter_than_one_step():
    lng, lat = 116.391275, 39.9075
    gcj_lng, gcj_lat = wgs84_to_gcj02(lng, lat)
    wgs_lng, wgs_lat = gcj02_to_wgs84(gcj_lng, gcj_lat)
    assert abs(wgs_lng - lng) < 1e-7
    assert abs(wgs_lat - lat) < 1e-7


def test_bd09_offset_from_gcj02():
    gcj_lng, gcj_lat = 116.397428, 39.90923
    bd_lng, bd_lat = gcj02_to_bd09(gcj_lng, gcj_lat)
    assert 0.005 < bd_lng - gcj_lng < 0.008
    assert 0.005 < bd_lat - gcj_lat < 0.008


def test_points_outside_china_are_not_shifted():
    assert out_of_china(-122.4194, 37.7749)
    assert wgs84_to_gcj02(-122.4194, 37.7749) == (-122.4194, 37.7749)
    assert gcj02_to_wgs84(2.3522, 48.8566) == (2.3522, 48.8566)


def test_altitude_and_accuracy_carried_through():
    coord = Coordinate(lng=121.473701, lat=31.230416, altitude=12.0, accuracy=3.5)
    [result] = convert([coord], Datum.WGS84, Datum.BD09)
    assert result.converted.altitude == 12.0
    assert result.converted.accuracy == 3.5
    assert result.converted.lng != coord.lng


def test_datum_parse_is_case_insensitive():
    assert Datum.parse("wgs84") is Datum.WGS84
    assert Datum.parse(" Gcj02 ") is Datum.GCJ02
    assert Datum.parse(Datum.BD09) is Datum.BD09


@pytest.mark.parametrize("bad", ["EPSG:4326", "CGCS2000", "", None, 42])
def test_unsupported_datum_rejected(bad):
    with pytest.raises(UnsupportedDatumError):
        convert([Coordinate(lng=116.0, lat=39.0)], bad, "WGS84")
    with pytest.raises(UnsupportedDatumError):
        convert([], "WGS84", bad)
