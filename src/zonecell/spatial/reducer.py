"""Geometry reduction strategies.

Turns one geometry plus a target resolution into an ordered, duplicate-free
tuple of H3 cells. An empty tuple means the feature is skipped; reducers
never raise for bad input geometry.

Strategies
----------
centroid     Polygon / MultiPolygon -> one cell at the unweighted vertex average
midpoint     LineString / MultiLineString -> one cell at the vertex average
polyfill     Polygon / MultiPolygon -> every cell whose center falls inside
line_sample  LineString / MultiLineString -> the cell of every vertex
point        Point -> the containing cell
"""

import logging
from enum import Enum
from typing import Callable, Optional, Sequence

import h3
import numpy as np

from zonecell.spatial.geometry import (
    Geometry,
    LineString,
    MultiLineString,
    MultiPolygon,
    Point,
    Polygon,
    Ring,
    iter_vertices,
)

__all__ = [
    'ReductionStrategy', 'GeometryReducer', 'STRATEGY_LABELS',
    'vertex_average', 'centroid_cell', 'midpoint_cell', 'point_cell',
    'polyfill_cells', 'line_sample_cells', 'check_resolution',
]

logger = logging.getLogger(__name__)

# Errors h3 raises for out-of-domain coordinates or unbuildable shapes
_H3_ERRORS = (h3.H3BaseException, ValueError, TypeError)

MIN_RESOLUTION = 0
MAX_RESOLUTION = 15


class ReductionStrategy(str, Enum):
    CENTROID = "centroid"
    MIDPOINT = "midpoint"
    POLYFILL = "polyfill"
    LINE_SAMPLE = "line_sample"
    POINT = "point"


STRATEGY_LABELS = {
    ReductionStrategy.CENTROID: "Centroid",
    ReductionStrategy.MIDPOINT: "Midpoint",
    ReductionStrategy.POLYFILL: "Polyfill",
    ReductionStrategy.LINE_SAMPLE: "Line sample",
    ReductionStrategy.POINT: "Point",
}

_POLYGONAL = (Polygon, MultiPolygon)
_LINEAR = (LineString, MultiLineString)


def check_resolution(resolution: int) -> int:
    """Return ``resolution`` if it is an H3 resolution, else raise ValueError."""
    if isinstance(resolution, bool) or not isinstance(resolution, (int, np.integer)):
        raise ValueError(f"Resolution must be an integer, got {resolution!r}")
    if not MIN_RESOLUTION <= resolution <= MAX_RESOLUTION:
        raise ValueError(
            f"Resolution {resolution} outside {MIN_RESOLUTION}..{MAX_RESOLUTION}"
        )
    return int(resolution)


def vertex_average(geom: Geometry) -> Optional[tuple[float, float]]:
    """Unweighted mean of every vertex of every member.

    Rings of all polygon members (holes included) are pooled together, so
    densely digitized stretches pull the result towards them. This is not an
    area-weighted centroid.

    Returns
    -------
    tuple of float or None
        ``(lat, lng)``, or None when the geometry has no usable vertices.
    """
    vertices = np.asarray(list(iter_vertices(geom)), dtype=float)
    if vertices.size == 0:
        return None
    if not np.isfinite(vertices).all():
        return None
    lng, lat = vertices.mean(axis=0)
    return float(lat), float(lng)


def _cell_at(lat: float, lng: float, resolution: int) -> Optional[str]:
    try:
        return h3.latlng_to_cell(lat, lng, resolution)
    except _H3_ERRORS as e:
        logger.debug("No cell for (%s, %s) at res %d: %s", lat, lng, resolution, e)
        return None


def _averaged_cell(geom: Geometry, resolution: int) -> Optional[str]:
    center = vertex_average(geom)
    if center is None:
        return None
    return _cell_at(center[0], center[1], resolution)


def centroid_cell(geom: Geometry, resolution: int) -> Optional[str]:
    """Cell containing the vertex average of a Polygon or MultiPolygon."""
    if not isinstance(geom, _POLYGONAL):
        return None
    return _averaged_cell(geom, resolution)


def midpoint_cell(geom: Geometry, resolution: int) -> Optional[str]:
    """Cell containing the vertex average of a LineString or MultiLineString."""
    if not isinstance(geom, _LINEAR):
        return None
    return _averaged_cell(geom, resolution)


def point_cell(geom: Geometry, resolution: int) -> Optional[str]:
    """Cell containing a Point."""
    if not isinstance(geom, Point):
        return None
    lng, lat = geom.coordinates
    return _cell_at(lat, lng, resolution)


def _to_latlng_loop(ring: Ring) -> list[tuple[float, float]]:
    loop = [(lat, lng) for lng, lat in ring]
    if len(loop) > 1 and loop[0] == loop[-1]:
        loop = loop[:-1]
    return loop


def _polygon_cells(rings: Sequence[Ring], resolution: int) -> list[str]:
    if not rings:
        raise ValueError("polygon has no rings")
    outer = _to_latlng_loop(rings[0])
    if len(outer) < 3:
        raise ValueError(f"exterior ring has {len(outer)} distinct vertices")
    holes = [_to_latlng_loop(ring) for ring in rings[1:]]
    shape = h3.LatLngPoly(outer, *holes)
    return sorted(h3.h3shape_to_cells(shape, resolution))


def polyfill_cells(geom: Geometry, resolution: int) -> tuple[str, ...]:
    """All cells of a Polygon or MultiPolygon.

    Each sub-polygon is filled independently. A sub-polygon that cannot be
    converted drops out on its own; the rest of the feature still counts.
    """
    if isinstance(geom, Polygon):
        members = (geom.rings,)
    elif isinstance(geom, MultiPolygon):
        members = geom.polygons
    else:
        return ()

    cells: dict[str, None] = {}
    for i, rings in enumerate(members):
        try:
            found = _polygon_cells(rings, resolution)
        except _H3_ERRORS as e:
            logger.debug("Dropping sub-polygon %d at res %d: %s", i, resolution, e)
            continue
        cells.update(dict.fromkeys(found))
    return tuple(cells)


def line_sample_cells(geom: Geometry, resolution: int) -> tuple[str, ...]:
    """Cells of every vertex of a LineString or MultiLineString, deduplicated."""
    if not isinstance(geom, _LINEAR):
        return ()

    cells: dict[str, None] = {}
    for lng, lat in iter_vertices(geom):
        cell = _cell_at(lat, lng, resolution)
        if cell is not None:
            cells[cell] = None
    return tuple(cells)


_STRATEGIES: dict[ReductionStrategy, Callable] = {
    ReductionStrategy.CENTROID: centroid_cell,
    ReductionStrategy.MIDPOINT: midpoint_cell,
    ReductionStrategy.POLYFILL: polyfill_cells,
    ReductionStrategy.LINE_SAMPLE: line_sample_cells,
    ReductionStrategy.POINT: point_cell,
}

_ACCEPTED_TYPES = {
    ReductionStrategy.CENTROID: _POLYGONAL,
    ReductionStrategy.MIDPOINT: _LINEAR,
    ReductionStrategy.POLYFILL: _POLYGONAL,
    ReductionStrategy.LINE_SAMPLE: _LINEAR,
    ReductionStrategy.POINT: (Point,),
}


class GeometryReducer:
    """Reduce geometries to cells with one strategy at one resolution.

    Stateless after construction and safe to share between worker threads.

    Parameters
    ----------
    strategy : ReductionStrategy or str
        One of centroid, midpoint, polyfill, line_sample, point.
    resolution : int
        Target H3 resolution (0-15).

    Examples
    --------
    >>> reducer = GeometryReducer("centroid", 8)
    >>> square = parse_geometry({"type": "Polygon",
    ...                          "coordinates": [[[0, 0], [0, 1], [1, 1], [1, 0]]]})
    >>> reducer.reduce(square) == (h3.latlng_to_cell(0.5, 0.5, 8),)
    True
    """

    def __init__(self, strategy, resolution: int):
        self.strategy = ReductionStrategy(strategy)
        self.resolution = check_resolution(resolution)
        self._reduce = _STRATEGIES[self.strategy]

    @property
    def label(self) -> str:
        """Human-readable strategy name used in provenance strings."""
        return STRATEGY_LABELS[self.strategy]

    def accepts(self, geom: Optional[Geometry]) -> bool:
        """True if the strategy applies to this geometry variant."""
        return geom is not None and isinstance(geom, _ACCEPTED_TYPES[self.strategy])

    def reduce(self, geom: Optional[Geometry]) -> tuple[str, ...]:
        """Return the ordered, unique cells for ``geom`` (empty means skip)."""
        if not self.accepts(geom):
            return ()
        result = self._reduce(geom, self.resolution)
        if result is None:
            return ()
        if isinstance(result, str):
            return (result,)
        return tuple(result)

    def __repr__(self) -> str:
        return f"GeometryReducer({self.strategy.value!r}, {self.resolution})"
