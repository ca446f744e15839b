"""Deduplication and fixed-size batching of load records.

Batches keep arrival order. Cross-batch order does not matter for the final
graph because every write is a merge by key.
"""

import logging
from itertools import islice
from typing import Any, Iterable, Iterator, Mapping, TypeVar

from zonecell.contracts import IdentityConflictError
from zonecell.core.records import Zone, ZoneCellAssignment

__all__ = ['AssignmentBatcher']

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AssignmentBatcher:
    """Collapse candidates to a canonical set and chunk them for the loader.

    Parameters
    ----------
    batch_size : int
        Records per chunk. Affects memory and round trips only.

    Attributes
    ----------
    duplicates_dropped : int
        Repeated (zone_id, resolution, h3_cell) candidates discarded.
    key_conflicts : int
        Node records that shared a key with an earlier, different record.
    """

    def __init__(self, batch_size: int):
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self.batch_size = batch_size
        self.duplicates_dropped = 0
        self.key_conflicts = 0

    def check_zone_identities(self, zones: Iterable[Zone]) -> None:
        """Raise if two distinct source features produced the same ``zone_id``.

        Raises
        ------
        IdentityConflictError
            Naming the zone id and both feature keys.
        """
        owners: dict[str, tuple[str, str]] = {}
        for zone in zones:
            owner = (zone.source, zone.feature_key)
            previous = owners.setdefault(zone.zone_id, owner)
            if previous != owner:
                raise IdentityConflictError(
                    f"zone_id {zone.zone_id} produced by {previous} and {owner}",
                    key="zone_id",
                    values=(zone.zone_id,),
                )

    def deduplicate(self, assignments: Iterable[ZoneCellAssignment]) -> Iterator[ZoneCellAssignment]:
        """Yield each (zone_id, resolution, h3_cell) once, first occurrence wins.

        Raises
        ------
        IdentityConflictError
            If one ``zone_id`` arrives from two different feature keys.
        """
        seen: set[tuple[str, int, str]] = set()
        owners: dict[str, str] = {}
        for a in assignments:
            owner = owners.setdefault(a.zone_id, a.feature_key)
            if owner != a.feature_key:
                raise IdentityConflictError(
                    f"zone_id {a.zone_id} produced by features {owner!r} and {a.feature_key!r}",
                    key="zone_id",
                    values=(a.zone_id,),
                )
            if a.key in seen:
                self.duplicates_dropped += 1
                continue
            seen.add(a.key)
            yield a

    def batches(self, items: Iterable[T]) -> Iterator[list[T]]:
        """Chunk ``items`` into lists of at most ``batch_size``, in order."""
        iterator = iter(items)
        while True:
            batch = list(islice(iterator, self.batch_size))
            if not batch:
                return
            yield batch

    def unique_by_key(self, records: Iterable[Mapping[str, Any]], key: str) -> list[dict]:
        """One record per ``key`` value, first wins; differing repeats are counted."""
        chosen: dict[Any, dict] = {}
        for record in records:
            value = record[key]
            existing = chosen.get(value)
            if existing is None:
                chosen[value] = dict(record)
            elif existing != dict(record):
                self.key_conflicts += 1
                logger.debug("%s=%s: kept first of differing records", key, value)
        return list(chosen.values())
