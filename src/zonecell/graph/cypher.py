"""Cypher statement builders.

Labels, relationship types and property names cannot be query parameters in
Cypher, so every identifier is checked against a plain-identifier pattern
before it is spliced into query text. Values always travel as parameters.

Each builder returns a ``Statement`` whose ``kind`` and ``meta`` describe the
operation independently of the query text; the test suite's in-memory store
executes statements from those two fields.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

__all__ = [
    'Statement', 'check_identifier', 'unique_constraint', 'upsert_nodes',
    'link_pairs', 'link_shared_property', 'count_nodes', 'count_relationships',
    'count_by_property',
]

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Keys of a link row that carry endpoints rather than qualifiers
_LINK_ENDPOINTS = ("from", "to")


@dataclass(frozen=True)
class Statement:
    kind: str
    text: str
    params: Mapping[str, Any] = field(default_factory=dict)
    meta: Mapping[str, Any] = field(default_factory=dict)


def check_identifier(name: str, what: str = "identifier") -> str:
    """Return ``name`` if it is safe to splice into Cypher, else raise ValueError."""
    if not isinstance(name, str) or not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid {what}: {name!r}")
    return name


def unique_constraint(label: str, prop: str) -> Statement:
    check_identifier(label, "label")
    check_identifier(prop, "property")
    name = f"{label.lower()}_{prop.lower()}_unique"
    return Statement(
        kind="unique_constraint",
        text=f"CREATE CONSTRAINT {name} IF NOT EXISTS "
             f"FOR (n:{label}) REQUIRE n.{prop} IS UNIQUE",
        meta={"label": label, "property": prop},
    )


def upsert_nodes(label: str, key: str, rows: Sequence[Mapping[str, Any]]) -> Statement:
    """MERGE one node per row on ``key`` and overwrite the row's properties."""
    check_identifier(label, "label")
    check_identifier(key, "property")
    return Statement(
        kind="upsert_nodes",
        text=(
            "UNWIND $rows AS row\n"
            f"MERGE (n:{label} {{{key}: row.{key}}})\n"
            "ON CREATE SET n.created_at = datetime()\n"
            "SET n += row, n.updated_at = datetime()\n"
            "RETURN count(n) AS count"
        ),
        params={"rows": [dict(r) for r in rows]},
        meta={"label": label, "key": key},
    )


def link_pairs(from_label: str, from_key: str, rel_type: str, to_label: str, to_key: str,
               links: Sequence[Mapping[str, Any]], qualifiers: Sequence[str] = (),
               properties: Sequence[str] = ()) -> Statement:
    """MERGE a relationship for each ``{"from": .., "to": .., <qualifier>: ..}`` row.

    Qualifiers are part of the MERGE pattern, so the same pair linked with two
    different qualifier values yields two relationships. ``properties`` are
    plain relationship attributes, overwritten on every run together with
    ``updated_at``.
    """
    check_identifier(from_label, "label")
    check_identifier(from_key, "property")
    check_identifier(rel_type, "relationship type")
    check_identifier(to_label, "label")
    check_identifier(to_key, "property")
    for q in (*qualifiers, *properties):
        check_identifier(q, "qualifier")
        if q in _LINK_ENDPOINTS:
            raise ValueError(f"Link field name {q!r} is reserved")

    pattern = ""
    if qualifiers:
        pattern = " {" + ", ".join(f"{q}: link.{q}" for q in qualifiers) + "}"
    assignments = [f"r.{p} = link.{p}" for p in properties] + ["r.updated_at = datetime()"]
    set_clause = "SET " + ", ".join(assignments) + "\n"

    return Statement(
        kind="link_pairs",
        text=(
            "UNWIND $links AS link\n"
            f"MATCH (a:{from_label} {{{from_key}: link.from}})\n"
            f"MATCH (b:{to_label} {{{to_key}: link.to}})\n"
            f"MERGE (a)-[r:{rel_type}{pattern}]->(b)\n"
            "ON CREATE SET r.created_at = datetime()\n"
            f"{set_clause}"
            "RETURN count(r) AS count"
        ),
        params={"links": [dict(link) for link in links]},
        meta={
            "from_label": from_label, "from_key": from_key, "rel_type": rel_type,
            "to_label": to_label, "to_key": to_key, "qualifiers": tuple(qualifiers),
            "properties": tuple(properties),
        },
    )


def link_shared_property(from_label: str, from_property: str, rel_type: str,
                         to_label: str, to_key: str) -> Statement:
    """Link every ``from_label`` node to the ``to_label`` node whose key equals its property."""
    check_identifier(from_label, "label")
    check_identifier(from_property, "property")
    check_identifier(rel_type, "relationship type")
    check_identifier(to_label, "label")
    check_identifier(to_key, "property")
    return Statement(
        kind="link_shared_property",
        text=(
            f"MATCH (a:{from_label}) WHERE a.{from_property} IS NOT NULL\n"
            f"MATCH (b:{to_label} {{{to_key}: a.{from_property}}})\n"
            f"MERGE (a)-[r:{rel_type}]->(b)\n"
            "ON CREATE SET r.created_at = datetime()\n"
            "SET r.updated_at = datetime()\n"
            "RETURN count(r) AS count"
        ),
        meta={
            "from_label": from_label, "from_property": from_property,
            "rel_type": rel_type, "to_label": to_label, "to_key": to_key,
        },
    )


def count_nodes(label: str) -> Statement:
    check_identifier(label, "label")
    return Statement(
        kind="count_nodes",
        text=f"MATCH (n:{label}) RETURN count(n) AS count",
        meta={"label": label},
    )


def count_relationships(rel_type: str) -> Statement:
    check_identifier(rel_type, "relationship type")
    return Statement(
        kind="count_relationships",
        text=f"MATCH ()-[r:{rel_type}]->() RETURN count(r) AS count",
        meta={"rel_type": rel_type},
    )


def count_by_property(label: str, prop: str) -> Statement:
    check_identifier(label, "label")
    check_identifier(prop, "property")
    return Statement(
        kind="count_by_property",
        text=(
            f"MATCH (n:{label}) "
            f"RETURN n.{prop} AS value, count(n) AS count ORDER BY count DESC"
        ),
        meta={"label": label, "property": prop},
    )
