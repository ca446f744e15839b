"""Closed geometry variants for GeoJSON input.

Input coordinates are WGS84 (longitude, latitude) pairs and are kept in that
order here; conversion to (lat, lng) happens only at the h3 boundary in the
reducer.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, Mapping, Optional, Union

__all__ = [
    'Point', 'LineString', 'MultiLineString', 'Polygon', 'MultiPolygon',
    'Geometry', 'GeometryError', 'parse_geometry', 'iter_vertices',
]

logger = logging.getLogger(__name__)

Position = tuple[float, float]
Ring = tuple[Position, ...]


class GeometryError(ValueError):
    """Raised when a GeoJSON geometry object cannot be parsed."""
    pass


@dataclass(frozen=True)
class Point:
    coordinates: Position


@dataclass(frozen=True)
class LineString:
    coordinates: tuple[Position, ...]


@dataclass(frozen=True)
class MultiLineString:
    lines: tuple[tuple[Position, ...], ...]


@dataclass(frozen=True)
class Polygon:
    """Exterior ring first, then holes."""
    rings: tuple[Ring, ...]


@dataclass(frozen=True)
class MultiPolygon:
    polygons: tuple[tuple[Ring, ...], ...]


Geometry = Union[Point, LineString, MultiLineString, Polygon, MultiPolygon]


def _position(value) -> Position:
    if not isinstance(value, (list, tuple)) or len(value) < 2:
        raise GeometryError(f"Invalid position: {value!r}")
    try:
        lng, lat = float(value[0]), float(value[1])
    except (TypeError, ValueError) as e:
        raise GeometryError(f"Non-numeric position: {value!r}") from e
    return (lng, lat)


def _sequence(value, depth: int):
    """Parse nested coordinate arrays ``depth`` levels above positions."""
    if not isinstance(value, (list, tuple)):
        raise GeometryError(f"Expected coordinate array, got {type(value).__name__}")
    if depth == 0:
        return _position(value)
    return tuple(_sequence(item, depth - 1) for item in value)


def parse_geometry(obj: Optional[Mapping]) -> Optional[Geometry]:
    """Parse a GeoJSON geometry object into a geometry variant.

    Parameters
    ----------
    obj : mapping or None
        GeoJSON ``geometry`` member. ``None`` is a legal null geometry.

    Returns
    -------
    Geometry or None
        None for a null geometry.

    Raises
    ------
    GeometryError
        For unknown types or malformed coordinate arrays.
    """
    if obj is None:
        return None
    if not isinstance(obj, Mapping):
        raise GeometryError(f"Geometry must be an object, got {type(obj).__name__}")

    geom_type = obj.get("type")
    coords = obj.get("coordinates")
    if coords is None:
        raise GeometryError(f"{geom_type} geometry has no coordinates")

    if geom_type == "Point":
        return Point(_position(coords))
    if geom_type == "LineString":
        return LineString(_sequence(coords, 1))
    if geom_type == "MultiLineString":
        return MultiLineString(_sequence(coords, 2))
    if geom_type == "Polygon":
        return Polygon(_sequence(coords, 2))
    if geom_type == "MultiPolygon":
        return MultiPolygon(_sequence(coords, 3))

    raise GeometryError(f"Unsupported geometry type: {geom_type!r}")


def iter_vertices(geom: Geometry) -> Iterator[Position]:
    """Yield every (lng, lat) vertex of every member, ring and line, in order.

    Closing vertices that repeat a ring's first vertex are yielded as they
    appear in the input.
    """
    if isinstance(geom, Point):
        yield geom.coordinates
    elif isinstance(geom, LineString):
        yield from geom.coordinates
    elif isinstance(geom, MultiLineString):
        for line in geom.lines:
            yield from line
    elif isinstance(geom, Polygon):
        for ring in geom.rings:
            yield from ring
    elif isinstance(geom, MultiPolygon):
        for polygon in geom.polygons:
            for ring in polygon:
                yield from ring
    else:
        raise TypeError(f"Not a geometry variant: {type(geom).__name__}")
