"""Zone dataset catalog and input readers."""

from zonecell.sources.catalog import SOURCE_CATALOG, ResolutionTier, SourceSpec, get_source
from zonecell.sources.features import Feature, read_district_rows, read_geojson_features
from zonecell.sources.regions import ISLAND_MAP, normalize_island

__all__ = [
    'SOURCE_CATALOG',
    'ResolutionTier',
    'SourceSpec',
    'get_source',
    'Feature',
    'read_district_rows',
    'read_geojson_features',
    'ISLAND_MAP',
    'normalize_island',
]
