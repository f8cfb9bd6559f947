"""Tests for coordinate validation, GeoJSON bounds and bounds arithmetic."""

import pytest

from tripreplay.core.errors import InvalidCoordinates, InvalidGeometry
from tripreplay.utils.geo import (
    bounds_center,
    bounds_span,
    coerce_lat_lng,
    combine_bounds,
    compute_bounds,
    is_valid_lat_lng,
    parse_geojson,
    validate_lat_lng,
    validate_zone_geojson,
)


class TestLatLng:
    @pytest.mark.parametrize("coords", [[90, 180], [-90, -180], [0, 0], (37.77, -122.41)])
    def test_valid(self, coords) -> None:
        assert is_valid_lat_lng(coords)

    @pytest.mark.parametrize(
        "coords",
        [[90.0001, 0], [0, -180.0001], [0], [1, 2, 3], ["1", "2"], [True, 0], None, {"lat": 1, "lng": 2}],
    )
    def test_invalid(self, coords) -> None:
        assert not is_valid_lat_lng(coords)
        with pytest.raises(InvalidCoordinates):
            validate_lat_lng(coords)

    def test_validate_returns_floats(self) -> None:
        assert validate_lat_lng((1, 2)) == [1.0, 2.0]

    @pytest.mark.parametrize(
        "value",
        [
            [37.5, -122.25],
            {"lat": 37.5, "lng": -122.25},
            {"lat": 37.5, "lon": -122.25},
            {"latitude": 37.5, "longitude": -122.25},
            {"geometry": {"location": {"lat": 37.5, "lng": -122.25}}},
            {"coordinates": [37.5, -122.25]},
        ],
    )
    def test_coerce_known_shapes(self, value) -> None:
        assert coerce_lat_lng(value) == [37.5, -122.25]

    def test_coerce_unusable(self) -> None:
        assert coerce_lat_lng(None) is None
        assert coerce_lat_lng("37.5,-122.25") is None
        assert coerce_lat_lng({"lat": 137.5, "lng": 0}) is None


class TestZoneBounds:
    def test_polygon_bounds_swap_axes(self, polygon) -> None:
        """GeoJSON is [lng, lat]; bounds are [[minLat, minLng], [maxLat, maxLng]]."""
        zone = polygon(-122.5, 37.5, size=0.25)
        assert compute_bounds(zone) == [[37.5, -122.5], [37.75, -122.25]]

    def test_multipolygon_and_feature_collection(self, polygon) -> None:
        multi = {
            "type": "MultiPolygon",
            "coordinates": [polygon(0, 0)["coordinates"], polygon(2, 2)["coordinates"]],
        }
        assert compute_bounds(multi) == [[0, 0], [3, 3]]

        collection = {
            "type": "FeatureCollection",
            "features": [
                {"type": "Feature", "geometry": polygon(0, 0)},
                {"type": "Feature", "geometry": polygon(5, -1)},
            ],
        }
        assert compute_bounds(collection) == [[-1, 0], [1, 6]]

    def test_feature_without_coordinates_has_no_bounds(self) -> None:
        assert validate_zone_geojson({"type": "Feature", "geometry": None}) is None

    @pytest.mark.parametrize("geo_json", [None, {"type": "Point", "coordinates": [0, 0]}, "Polygon", []])
    def test_rejects_unsupported_types(self, geo_json) -> None:
        with pytest.raises(InvalidGeometry):
            validate_zone_geojson(geo_json)

    def test_rejects_malformed_positions(self) -> None:
        with pytest.raises(InvalidGeometry):
            validate_zone_geojson({"type": "Polygon", "coordinates": [[[0, "x"]]]})

    def test_parse_geojson_from_string(self, polygon) -> None:
        assert parse_geojson('{"type": "Polygon", "coordinates": []}') == {"type": "Polygon", "coordinates": []}
        assert parse_geojson("{not json") is None
        assert parse_geojson("[1, 2]") is None
        zone = polygon(0, 0)
        assert parse_geojson(zone) is zone


class TestBoundsMath:
    def test_combine(self) -> None:
        assert combine_bounds([[[0, 0], [1, 1]], [[2, 2], [3, 3]]]) == [[0, 0], [3, 3]]
        assert combine_bounds([]) is None

    def test_center_and_span(self) -> None:
        bounds = [[0, 10], [4, 12]]
        assert bounds_center(bounds) == [2, 11]
        assert bounds_span(bounds) == (4, 2)
