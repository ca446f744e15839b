"""Readers for zone and district input files.

These are deserialization boundaries only: a feature whose geometry cannot
be parsed is still returned, with ``geometry=None`` and the parse error kept
so the processor can count it as a skip.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import pandas as pd

from zonecell.spatial.geometry import Geometry, GeometryError, parse_geometry

__all__ = ['Feature', 'features_from_collection', 'read_geojson_features', 'read_district_rows']

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Feature:
    properties: Mapping[str, Any] = field(default_factory=dict)
    geometry: Optional[Geometry] = None
    geometry_error: Optional[str] = None


def features_from_collection(collection: Mapping) -> list[Feature]:
    """Convert a parsed GeoJSON FeatureCollection into Feature records."""
    if collection.get("type") != "FeatureCollection":
        raise ValueError(f"Expected a FeatureCollection, got {collection.get('type')!r}")

    features = []
    for raw in collection.get("features") or []:
        props = raw.get("properties") or {}
        try:
            geom = parse_geometry(raw.get("geometry"))
            error = None
        except GeometryError as e:
            geom, error = None, str(e)
        features.append(Feature(props, geom, error))
    return features


def read_geojson_features(path: Path | str) -> list[Feature]:
    """Read a GeoJSON FeatureCollection file."""
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        collection = json.load(f)
    features = features_from_collection(collection)
    logger.info("Read %d features from %s", len(features), path.name)
    return features


def read_district_rows(path: Path | str) -> pd.DataFrame:
    """Read the district table (moku_id, name, island, geojson)."""
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    required = ["moku_id", "name", "island", "geojson"]
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"{path}: missing district column(s) {', '.join(missing)}")
    logger.info("Read %d district rows from %s", len(df), path)
    return df[required]
