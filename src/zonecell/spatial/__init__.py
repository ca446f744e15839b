"""Geometry variants, cell reduction, and backbone ancestry."""

from zonecell.spatial.geometry import (
    Geometry,
    GeometryError,
    LineString,
    MultiLineString,
    MultiPolygon,
    Point,
    Polygon,
    parse_geometry,
)
from zonecell.spatial.reducer import GeometryReducer, ReductionStrategy
from zonecell.spatial.backbone import BackbonePartition, BackboneTable
from zonecell.spatial.ancestry import AncestorLink, AncestorResolver, ancestor

__all__ = [
    'Geometry',
    'GeometryError',
    'LineString',
    'MultiLineString',
    'MultiPolygon',
    'Point',
    'Polygon',
    'parse_geometry',
    'GeometryReducer',
    'ReductionStrategy',
    'BackbonePartition',
    'BackboneTable',
    'AncestorLink',
    'AncestorResolver',
    'ancestor',
]
