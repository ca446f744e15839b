"""Domain records produced by the zone processor."""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

__all__ = ['Zone', 'ZoneCellAssignment']


@dataclass(frozen=True)
class Zone:
    """One real-world feature, identified by a globally unique ``zone_id``.

    ``feature_key`` is the source's own identifier (objectid, docket, campus
    key) and is what the batcher uses to tell two features apart.
    """
    zone_id: str
    source: str
    feature_key: str
    name: Optional[str] = None
    region: Optional[str] = None
    attributes: Mapping[str, Any] = field(default_factory=dict)

    def to_record(self) -> dict:
        """Flat property map for a graph upsert."""
        record = dict(self.attributes)
        record.update(
            zone_id=self.zone_id,
            source=self.source,
            feature_key=self.feature_key,
            name=self.name,
            island=self.region,
        )
        return record


@dataclass(frozen=True)
class ZoneCellAssignment:
    """A (zone, cell, resolution) edge with its backbone link and provenance.

    ``partition_id`` is None when the cell's backbone ancestor is unknown;
    that absence is carried through to the CSV and the graph unchanged.
    ``region`` is the zone's island (falling back to the partition's);
    ``partition_region`` is the backbone partition's own island and is the
    only island written onto cell nodes.
    """
    zone_id: str
    h3_cell: str
    resolution: int
    feature_key: str
    version: str
    data_source: str
    provenance: str
    partition_id: Optional[str] = None
    region: Optional[str] = None
    parent_cell: Optional[str] = None
    partition_region: Optional[str] = None

    @property
    def key(self) -> tuple[str, int, str]:
        return (self.zone_id, self.resolution, self.h3_cell)
