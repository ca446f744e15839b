import pytest

from zonecell.spatial.geometry import (
    GeometryError,
    LineString,
    MultiLineString,
    MultiPolygon,
    Point,
    Polygon,
    iter_vertices,
    parse_geometry,
)

pytestmark = pytest.mark.unit


def test_null_geometry_is_none():
    assert parse_geometry(None) is None


@pytest.mark.parametrize("obj, cls", [
    ({"type": "Point", "coordinates": [1, 2]}, Point),
    ({"type": "LineString", "coordinates": [[1, 2], [3, 4]]}, LineString),
    ({"type": "MultiLineString", "coordinates": [[[1, 2], [3, 4]]]}, MultiLineString),
    ({"type": "Polygon", "coordinates": [[[0, 0], [0, 1], [1, 1]]]}, Polygon),
    ({"type": "MultiPolygon", "coordinates": [[[[0, 0], [0, 1], [1, 1]]]]}, MultiPolygon),
])
def test_parse_each_variant(obj, cls):
    assert isinstance(parse_geometry(obj), cls)


def test_coordinates_stay_lng_lat():
    geom = parse_geometry({"type": "Point", "coordinates": [-157.8, 21.3, 12.0]})
    assert geom.coordinates == (-157.8, 21.3)


@pytest.mark.parametrize("obj", [
    {"type": "GeometryCollection", "geometries": []},
    {"type": "Point"},
    {"type": "Point", "coordinates": [1]},
    {"type": "LineString", "coordinates": [["a", "b"]]},
    {"type": "Polygon", "coordinates": [1, 2]},
    "POINT (1 2)",
])
def test_malformed_geometry_raises(obj):
    with pytest.raises(GeometryError):
        parse_geometry(obj)


def test_iter_vertices_walks_every_ring_in_order():
    geom = parse_geometry({"type": "Polygon", "coordinates": [
        [[0, 0], [0, 2], [2, 2], [0, 0]],
        [[0.5, 0.5], [0.5, 1], [1, 1], [0.5, 0.5]],
    ]})
    vertices = list(iter_vertices(geom))
    assert len(vertices) == 8
    assert vertices[4] == (0.5, 0.5)


def test_iter_vertices_rejects_non_geometry():
    with pytest.raises(TypeError):
        list(iter_vertices({"type": "Point"}))
