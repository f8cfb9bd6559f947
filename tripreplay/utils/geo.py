# Role: Deterministic geometry helpers shared by the replay reducer, the overlay stores and the focus controller.
# GeoJSON validation, coordinate flattening, bounds math and lat/lng coercion live here so every caller
# agrees on the same numbers.

from __future__ import annotations

import json
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import tripreplay.config as config
from tripreplay.core.errors import InvalidCoordinates, InvalidGeometry

# [[south_lat, west_lng], [north_lat, east_lng]]
Bounds = List[List[float]]
LatLng = List[float]

ZONE_GEOJSON_TYPES = {"Polygon", "MultiPolygon", "Feature", "FeatureCollection"}


def _is_number(value: Any) -> bool:
    # bool is an int subclass; never accept it as a coordinate.
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_valid_lat_lng(coords: Any) -> bool:
    return (
        isinstance(coords, (list, tuple))
        and len(coords) == 2
        and _is_number(coords[0])
        and _is_number(coords[1])
        and -90 <= coords[0] <= 90
        and -180 <= coords[1] <= 180
    )


def validate_lat_lng(coords: Any) -> LatLng:
    if not is_valid_lat_lng(coords):
        raise InvalidCoordinates(f"Invalid coordinates: {coords!r}")
    return [float(coords[0]), float(coords[1])]


def coerce_lat_lng(value: Any) -> Optional[LatLng]:
    """
    Read a point in any of the shapes stored by the geocoding/directions layer:
    [lat, lng], {"lat", "lng"}, {"lat", "lon"}, {"latitude", "longitude"},
    or a Places-style {"geometry": {"location": {...}}}. Returns None when nothing usable is found.
    """
    if value is None:
        return None

    if isinstance(value, (list, tuple)):
        return [float(value[0]), float(value[1])] if is_valid_lat_lng(value) else None

    if not isinstance(value, dict):
        return None

    geometry = value.get("geometry")
    if isinstance(geometry, dict) and isinstance(geometry.get("location"), dict):
        return coerce_lat_lng(geometry["location"])

    for lat_key, lng_key in (("lat", "lng"), ("lat", "lon"), ("latitude", "longitude")):
        if lat_key in value and lng_key in value:
            pair = [value[lat_key], value[lng_key]]
            return [float(pair[0]), float(pair[1])] if is_valid_lat_lng(pair) else None

    if "coordinates" in value:
        return coerce_lat_lng(value["coordinates"])

    return None


def parse_geojson(raw: Any) -> Optional[dict]:
    # Role: service zones may be stored as JSON strings; objects pass through untouched.
    if raw is None:
        return None
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except ValueError as e:
            if config.DEBUG:
                print("GEO: could not parse service zone:", repr(e))
            return None
        return parsed if isinstance(parsed, dict) else None
    return None


def is_valid_zone_geojson(geo_json: Any) -> bool:
    return isinstance(geo_json, dict) and geo_json.get("type") in ZONE_GEOJSON_TYPES


def _flatten(coords: Any, out: List[Sequence[float]]) -> None:
    # Positions are the innermost arrays whose first element is a number.
    if not isinstance(coords, (list, tuple)):
        raise InvalidGeometry(f"Coordinates must be arrays, got {type(coords).__name__}")
    if not coords:
        return
    if _is_number(coords[0]):
        if len(coords) < 2 or not _is_number(coords[1]):
            raise InvalidGeometry(f"Malformed position: {coords!r}")
        out.append(coords)
        return
    for child in coords:
        _flatten(child, out)


def _geometry_coordinates(geometry: Any, out: List[Sequence[float]]) -> None:
    if not isinstance(geometry, dict):
        return
    if geometry.get("type") == "GeometryCollection":
        for child in geometry.get("geometries") or []:
            _geometry_coordinates(child, out)
        return
    if "coordinates" in geometry:
        _flatten(geometry["coordinates"], out)


def extract_coordinates(geo_json: dict) -> List[Sequence[float]]:
    """Flatten every [lng, lat] position out of a Polygon/MultiPolygon/Feature/FeatureCollection."""
    out: List[Sequence[float]] = []
    kind = geo_json.get("type")

    if kind == "Feature":
        _geometry_coordinates(geo_json.get("geometry"), out)
    elif kind == "FeatureCollection":
        features = geo_json.get("features") or []
        if not isinstance(features, list):
            raise InvalidGeometry("FeatureCollection.features must be a list")
        for feature in features:
            if isinstance(feature, dict):
                _geometry_coordinates(feature.get("geometry"), out)
    else:
        _geometry_coordinates(geo_json, out)

    return out


def compute_bounds(geo_json: dict) -> Optional[Bounds]:
    # Key line: GeoJSON positions are [lng, lat]; bounds are expressed as [lat, lng] corners.
    coordinates = extract_coordinates(geo_json)
    if not coordinates:
        return None

    lats = [c[1] for c in coordinates]
    lngs = [c[0] for c in coordinates]
    return [[min(lats), min(lngs)], [max(lats), max(lngs)]]


def validate_zone_geojson(geo_json: Any) -> Optional[Bounds]:
    """Validate a zone geometry and return its bounds; raises InvalidGeometry on anything unusable."""
    if not is_valid_zone_geojson(geo_json):
        found = geo_json.get("type") if isinstance(geo_json, dict) else type(geo_json).__name__
        raise InvalidGeometry(f"Unsupported GeoJSON for a service zone: {found!r}")
    return compute_bounds(geo_json)


def point_bounds(coords: Sequence[float]) -> Bounds:
    return [[coords[0], coords[1]], [coords[0], coords[1]]]


def combine_bounds(bounds_list: Iterable[Bounds]) -> Optional[Bounds]:
    boxes = [b for b in bounds_list if b]
    if not boxes:
        return None
    return [
        [min(b[0][0] for b in boxes), min(b[0][1] for b in boxes)],
        [max(b[1][0] for b in boxes), max(b[1][1] for b in boxes)],
    ]


def bounds_center(bounds: Bounds) -> LatLng:
    return [(bounds[0][0] + bounds[1][0]) / 2, (bounds[0][1] + bounds[1][1]) / 2]


def bounds_span(bounds: Bounds) -> Tuple[float, float]:
    return bounds[1][0] - bounds[0][0], bounds[1][1] - bounds[0][1]
