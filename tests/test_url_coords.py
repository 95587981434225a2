import pytest

from hotspotmap.core.geo import LatLng
from hotspotmap.core.url_coords import parse_map_url


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://www.google.com/maps/@-20.3194200,-40.3381500,17z", LatLng(-20.31942, -40.33815)),
        (
            "https://www.google.com/maps/place/Padaria/@-20.30,-40.30,15z/data=!3m1!4b1!4m6!3m5!3d-20.3194!4d-40.3381",
            LatLng(-20.30, -40.30),
        ),
        ("https://www.google.com/maps/place/x/data=!4m2!3d-20.3194!4d-40.3381", LatLng(-20.3194, -40.3381)),
        ("https://maps.google.com/?q=-20.297100,-40.293600", LatLng(-20.2971, -40.2936)),
        ("https://maps.google.com/?z=12&ll=-20.5,-40.25", LatLng(-20.5, -40.25)),
        ("https://maps.google.com/?q=-20.297100%2C-40.293600", LatLng(-20.2971, -40.2936)),
        ("-20.3 , -40.3", LatLng(-20.3, -40.3)),
    ],
)
def test_parse_map_url_shapes(url, expected):
    assert parse_map_url(url) == expected


@pytest.mark.parametrize(
    "url",
    ["", "   ", "https://maps.app.goo.gl/AbCdEf123", "https://www.google.com/maps/@95.1,10.5,17z", "12, 13"],
)
def test_parse_map_url_returns_none_without_usable_coordinates(url):
    assert parse_map_url(url) is None
