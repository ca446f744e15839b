"""Graph store client and idempotent loader."""

from zonecell.graph.cypher import Statement, check_identifier
from zonecell.graph.loader import GraphLoader
from zonecell.graph.store import GraphStore, Neo4jGraphStore

__all__ = [
    'Statement',
    'check_identifier',
    'GraphLoader',
    'GraphStore',
    'Neo4jGraphStore',
]
