"""CSV boundary for zone and assignment tables.

Assignments are written one file per source and resolution tier; zones one
file per source. Empty optional fields are written as empty strings and read
back as None.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional, Sequence

import pandas as pd

from zonecell.contracts import assert_assignment_frame
from zonecell.core.records import Zone, ZoneCellAssignment

__all__ = [
    'ASSIGNMENT_COLUMNS', 'ZONE_COLUMNS',
    'assignments_to_frame', 'frame_to_assignments',
    'write_assignments_csv', 'read_assignments_csv',
    'zones_to_frame', 'frame_to_zones', 'write_zones_csv', 'read_zones_csv',
]

logger = logging.getLogger(__name__)

ASSIGNMENT_COLUMNS = [
    "zone_id",
    "h3_cell",
    "resolution",
    "parent_h3",
    "moku_id",
    "island",
    "moku_island",
    "version",
    "data_source",
    "provenance",
    "feature_key",
]

ZONE_COLUMNS = ["zone_id", "source", "feature_key", "name", "island"]


def _blank_to_none(value) -> Optional[str]:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    value = str(value)
    return value if value != "" else None


def _to_float(value) -> Optional[float]:
    text = _blank_to_none(value)
    return float(text) if text is not None else None


def assignments_to_frame(assignments: Iterable[ZoneCellAssignment]) -> pd.DataFrame:
    rows = [
        (
            a.zone_id,
            a.h3_cell,
            a.resolution,
            a.parent_cell or "",
            a.partition_id or "",
            a.region or "",
            a.partition_region or "",
            a.version,
            a.data_source,
            a.provenance,
            a.feature_key,
        )
        for a in assignments
    ]
    df = pd.DataFrame(rows, columns=ASSIGNMENT_COLUMNS)
    df["resolution"] = df["resolution"].astype(int)
    return df


def frame_to_assignments(df: pd.DataFrame) -> list[ZoneCellAssignment]:
    assert_assignment_frame(df)
    out = []
    for rec in df.to_dict(orient="records"):
        out.append(ZoneCellAssignment(
            zone_id=str(rec["zone_id"]),
            h3_cell=str(rec["h3_cell"]),
            resolution=int(rec["resolution"]),
            feature_key=_blank_to_none(rec.get("feature_key")) or str(rec["zone_id"]),
            version=str(rec["version"]),
            data_source=str(rec["data_source"]),
            provenance=str(rec["provenance"]),
            partition_id=_blank_to_none(rec.get("moku_id")),
            region=_blank_to_none(rec.get("island")),
            parent_cell=_blank_to_none(rec.get("parent_h3")),
            partition_region=_blank_to_none(rec.get("moku_island")),
        ))
    return out


def write_assignments_csv(assignments: Sequence[ZoneCellAssignment], path: Path | str) -> Path:
    """Write one assignment tier to CSV after checking the table contract."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df = assignments_to_frame(assignments)
    assert_assignment_frame(df)
    df.to_csv(path, index=False)
    logger.info("Wrote %d rows to %s", len(df), path)
    return path


def read_assignments_csv(path: Path | str) -> list[ZoneCellAssignment]:
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    assignments = frame_to_assignments(df)
    logger.info("Read %d assignment rows from %s", len(assignments), path)
    return assignments


def zones_to_frame(zones: Iterable[Zone]) -> pd.DataFrame:
    """One row per zone; source-specific attributes become extra columns."""
    records = []
    for zone in zones:
        record = {
            "zone_id": zone.zone_id,
            "source": zone.source,
            "feature_key": zone.feature_key,
            "name": zone.name or "",
            "island": zone.region or "",
        }
        for key, value in zone.attributes.items():
            record.setdefault(key, "" if value is None else value)
        records.append(record)

    df = pd.DataFrame.from_records(records)
    if df.empty:
        return pd.DataFrame(columns=ZONE_COLUMNS)
    extra = [c for c in df.columns if c not in ZONE_COLUMNS]
    return df[ZONE_COLUMNS + extra]


def frame_to_zones(df: pd.DataFrame, numeric_columns: Sequence[str] = ()) -> list[Zone]:
    """Zones from a table read as text; ``numeric_columns`` come back as floats."""
    extra = [c for c in df.columns if c not in ZONE_COLUMNS]
    numeric = set(numeric_columns)
    zones = []
    for rec in df.to_dict(orient="records"):
        zones.append(Zone(
            zone_id=str(rec["zone_id"]),
            source=str(rec["source"]),
            feature_key=str(rec["feature_key"]),
            name=_blank_to_none(rec["name"]),
            region=_blank_to_none(rec["island"]),
            attributes={c: _to_float(rec[c]) if c in numeric else _blank_to_none(rec[c])
                        for c in extra},
        ))
    return zones


def write_zones_csv(zones: Sequence[Zone], path: Path | str) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df = zones_to_frame(zones)
    df.to_csv(path, index=False)
    logger.info("Wrote %d zones to %s", len(df), path)
    return path


def read_zones_csv(path: Path | str, numeric_columns: Sequence[str] = ()) -> list[Zone]:
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    missing = [c for c in ZONE_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"{path}: missing zone column(s) {', '.join(missing)}")
    return frame_to_zones(df, numeric_columns)
