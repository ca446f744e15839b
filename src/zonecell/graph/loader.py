"""Idempotent graph loading.

Every write is a MERGE on a declared natural key, so a partially completed
run can be repeated in full. Writes for one label are serialized in-process;
across processes the store's unique constraint is the backstop.
"""

import logging
import threading
from typing import Any, Iterable, Mapping, Sequence

from zonecell.contracts import assert_keyed_records
from zonecell.graph import cypher
from zonecell.graph.store import GraphStore

__all__ = ['GraphLoader']

logger = logging.getLogger(__name__)


def _clean(record: Mapping[str, Any]) -> dict:
    # null would remove the property in SET n += row
    return {k: v for k, v in record.items() if v is not None}


def _count(rows: Sequence[Mapping]) -> int:
    return int(rows[0]["count"]) if rows else 0


class GraphLoader:
    """Upsert nodes and link them through a ``GraphStore``.

    Parameters
    ----------
    store : GraphStore
        Store client; the loader never opens or closes it.

    Examples
    --------
    >>> loader = GraphLoader(store)
    >>> loader.ensure_unique_key_constraint("ZoneCell", "h3_cell")
    >>> loader.upsert_batch("ZoneCell", "h3_cell", [{"h3_cell": "872a1008bffffff"}])
    1
    """

    def __init__(self, store: GraphStore):
        self.store = store
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, label: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(label, threading.Lock())

    def ensure_unique_key_constraint(self, label: str, prop: str) -> None:
        """Create the unique constraint on ``label.prop`` if it does not exist."""
        self.store.write(cypher.unique_constraint(label, prop))
        logger.debug("Constraint ensured: %s.%s", label, prop)

    def upsert_batch(self, label: str, key_property: str,
                     records: Iterable[Mapping[str, Any]]) -> int:
        """Create or update one node per record, keyed by ``key_property``.

        None-valued attributes are left out of the write, so they never
        erase a value another loader set.

        Returns
        -------
        int
            Number of records sent.

        Raises
        ------
        ContractViolation
            If a record has no key value.
        """
        rows = [_clean(r) for r in records]
        if not rows:
            return 0
        assert_keyed_records(rows, key_property, label)
        statement = cypher.upsert_nodes(label, key_property, rows)
        with self._lock_for(label):
            self.store.write(statement)
        logger.debug("Upserted %d %s node(s)", len(rows), label)
        return len(rows)

    def _target_missing(self, label: str, rel_type: str) -> bool:
        if self.count_nodes(label) > 0:
            return False
        logger.info(
            "No %s nodes yet, %s links skipped; re-run after %s is loaded",
            label, rel_type, label,
        )
        return True

    def link_by_matched_keys(self, from_label: str, from_key: str, rel_type: str,
                             to_label: str, to_key: str,
                             links: Iterable[Mapping[str, Any]],
                             qualifiers: Sequence[str] = (),
                             properties: Sequence[str] = ()) -> int:
        """MERGE ``(from)-[rel_type {qualifiers}]->(to)`` for each link row.

        Each row holds ``from`` and ``to`` key values plus one value per
        qualifier and per relationship property. Rows whose endpoints do not
        exist are ignored by the store. When ``to_label`` has no nodes at all
        this is a no-op returning 0.

        Returns
        -------
        int
            Relationships matched or created.
        """
        links = list(links)
        if not links:
            return 0
        statement = cypher.link_pairs(from_label, from_key, rel_type, to_label, to_key,
                                      links, qualifiers, properties)
        if self._target_missing(to_label, rel_type):
            return 0
        with self._lock_for(rel_type):
            return _count(self.store.write(statement))

    def link_by_shared_property(self, from_label: str, from_property: str, rel_type: str,
                                to_label: str, to_key: str) -> int:
        """Link each ``from_label`` node to the ``to_label`` node whose key equals its property.

        No-op returning 0 when ``to_label`` has no nodes.
        """
        statement = cypher.link_shared_property(from_label, from_property, rel_type,
                                                to_label, to_key)
        if self._target_missing(to_label, rel_type):
            return 0
        with self._lock_for(rel_type):
            return _count(self.store.write(statement))

    def count_nodes(self, label: str) -> int:
        return _count(self.store.read(cypher.count_nodes(label)))

    def count_relationships(self, rel_type: str) -> int:
        return _count(self.store.read(cypher.count_relationships(rel_type)))

    def count_by_property(self, label: str, prop: str) -> dict:
        rows = self.store.read(cypher.count_by_property(label, prop))
        return {row["value"]: int(row["count"]) for row in rows}
