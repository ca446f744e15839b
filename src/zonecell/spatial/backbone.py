"""Resolution-7 backbone partition table.

The backbone maps coarse cells to the administrative district (moku) that
covers them. It is built once, either by polyfilling district polygons or by
reading a previously written ZoneCell.csv, and is read-only afterwards.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Optional

import pandas as pd

from zonecell.sources.regions import normalize_island
from zonecell.spatial.geometry import GeometryError, parse_geometry
from zonecell.spatial.reducer import GeometryReducer, ReductionStrategy

__all__ = [
    'BackbonePartition', 'BackboneTable', 'BACKBONE_COLUMNS',
    'build_backbone_rows', 'read_backbone_csv', 'write_backbone_csv',
]

logger = logging.getLogger(__name__)

BACKBONE_COLUMNS = ["h3_index", "resolution", "moku_id", "moku_name", "island"]


@dataclass(frozen=True)
class BackbonePartition:
    partition_id: str
    name: str
    region: Optional[str]


class BackboneTable(Mapping):
    """Immutable mapping of backbone cell -> BackbonePartition.

    A lookup miss returns None; it is never an error. When two rows claim the
    same cell the first one wins and the conflict is logged.
    """

    def __init__(self, rows: Iterable[tuple[str, BackbonePartition]], resolution: int = 7):
        self.resolution = resolution
        table: dict[str, BackbonePartition] = {}
        conflicts = 0
        for cell, partition in rows:
            existing = table.get(cell)
            if existing is None:
                table[cell] = partition
            elif existing.partition_id != partition.partition_id:
                conflicts += 1
        if conflicts:
            logger.warning(
                "Backbone: %d cell(s) claimed by more than one partition, kept first", conflicts
            )
        self._table = MappingProxyType(table)

    def __getitem__(self, cell: str) -> BackbonePartition:
        return self._table[cell]

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def lookup(self, cell: str) -> Optional[BackbonePartition]:
        return self._table.get(cell)

    def partitions(self) -> list[BackbonePartition]:
        """Distinct partitions in first-seen order."""
        seen: dict[str, BackbonePartition] = {}
        for partition in self._table.values():
            seen.setdefault(partition.partition_id, partition)
        return list(seen.values())

    @classmethod
    def empty(cls, resolution: int = 7) -> "BackboneTable":
        return cls((), resolution)

    @classmethod
    def from_frame(cls, df: pd.DataFrame, resolution: int = 7) -> "BackboneTable":
        """Build from a frame with the ZoneCell.csv columns.

        Rows at other resolutions are ignored.
        """
        missing = [c for c in BACKBONE_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"Backbone table missing column(s): {', '.join(missing)}")

        frame = df[df["resolution"].astype(int) == resolution]
        dropped = len(df) - len(frame)
        if dropped:
            logger.warning("Backbone: ignored %d row(s) not at resolution %d", dropped, resolution)

        def rows():
            for rec in frame.itertuples(index=False):
                region = normalize_island(rec.island) if isinstance(rec.island, str) else None
                yield rec.h3_index, BackbonePartition(str(rec.moku_id), str(rec.moku_name), region)

        return cls(rows(), resolution)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [
                (cell, self.resolution, p.partition_id, p.name, p.region or "")
                for cell, p in self._table.items()
            ],
            columns=BACKBONE_COLUMNS,
        )


def build_backbone_rows(districts: pd.DataFrame, resolution: int = 7) -> pd.DataFrame:
    """Polyfill district polygons into backbone rows.

    Parameters
    ----------
    districts : pd.DataFrame
        Columns ``moku_id``, ``name``, ``island``, ``geojson`` (a GeoJSON
        geometry serialized as text).
    resolution : int
        Backbone resolution.

    Returns
    -------
    pd.DataFrame
        ZoneCell.csv rows (``BACKBONE_COLUMNS``), districts in input order.
    """
    reducer = GeometryReducer(ReductionStrategy.POLYFILL, resolution)
    rows = []
    skipped = 0

    for rec in districts.itertuples(index=False):
        raw = rec.geojson if isinstance(rec.geojson, str) else ""
        if not raw.strip():
            logger.warning("District %s (%s): no geometry, skipped", rec.moku_id, rec.name)
            skipped += 1
            continue
        try:
            geom = parse_geometry(json.loads(raw))
        except (json.JSONDecodeError, GeometryError) as e:
            logger.warning("District %s (%s): invalid geometry (%s), skipped", rec.moku_id, rec.name, e)
            skipped += 1
            continue

        cells = reducer.reduce(geom)
        if not cells:
            logger.warning("District %s (%s): no cells at res %d", rec.moku_id, rec.name, resolution)
        island = (normalize_island(rec.island) if isinstance(rec.island, str) else None) or ""
        rows.extend((cell, resolution, str(rec.moku_id), rec.name, island) for cell in cells)
        logger.info("%s (%s): %d cells", rec.name, island, len(cells))

    logger.info(
        "Backbone: %d cells from %d district(s), %d skipped",
        len(rows), len(districts) - skipped, skipped,
    )
    return pd.DataFrame(rows, columns=BACKBONE_COLUMNS)


def read_backbone_csv(path: Path | str, resolution: int = 7) -> BackboneTable:
    """Load a ZoneCell.csv lookup into a BackboneTable."""
    df = pd.read_csv(path, dtype={"h3_index": str, "moku_id": str}, keep_default_na=False)
    table = BackboneTable.from_frame(df, resolution)
    logger.info("Backbone lookup: %d cells from %s", len(table), path)
    return table


def write_backbone_csv(df: pd.DataFrame, path: Path | str) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False, columns=BACKBONE_COLUMNS)
    logger.info("Wrote %d backbone rows to %s", len(df), path)
    return path
