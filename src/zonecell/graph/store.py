"""Neo4j store client.

The client is an explicitly constructed value handed to the loader. Every
call opens its own session and closes it on all exit paths; the driver
itself is thread-safe and shared.
"""

import logging
from typing import Optional, Protocol

from neo4j import READ_ACCESS, WRITE_ACCESS, GraphDatabase
from neo4j.exceptions import ConstraintError, DriverError, Neo4jError

from zonecell.contracts import GraphStoreError, IdentityConflictError
from zonecell.graph.cypher import Statement

__all__ = ['GraphStore', 'Neo4jGraphStore']

logger = logging.getLogger(__name__)


class GraphStore(Protocol):
    """What the loader needs from a graph database."""

    def write(self, statement: Statement) -> list[dict]:
        ...

    def read(self, statement: Statement) -> list[dict]:
        ...

    def close(self) -> None:
        ...


class Neo4jGraphStore:
    """GraphStore backed by the official neo4j driver.

    Parameters
    ----------
    uri : str
        Bolt or neo4j URI, e.g. ``bolt://localhost:7687``.
    user, password : str
        Basic-auth credentials.
    database : str, optional
        Target database; None uses the server default.
    driver : neo4j.Driver, optional
        Pre-built driver (tests pass a mock).

    Raises
    ------
    IdentityConflictError
        From ``write`` when the server rejects a write on a unique constraint.
    GraphStoreError
        For any other driver or server failure.
    """

    def __init__(self, uri: str, user: str, password: Optional[str],
                 database: Optional[str] = None, driver=None):
        self.uri = uri
        self.database = database
        if driver is None:
            driver = GraphDatabase.driver(uri, auth=(user, password or ""))
        self._driver = driver
        self._closed = False

    @classmethod
    def from_config(cls, graph_config) -> "Neo4jGraphStore":
        """Build from ``InternalConfig.graph``."""
        password = graph_config.password.get_secret_value() if graph_config.password else None
        return cls(graph_config.uri, graph_config.user, password, graph_config.database)

    def verify_connectivity(self) -> None:
        try:
            self._driver.verify_connectivity()
        except (Neo4jError, DriverError, OSError) as e:
            raise GraphStoreError(f"Cannot reach graph store at {self.uri}: {e}") from e
        logger.info("Connected to graph store at %s", self.uri)

    def write(self, statement: Statement) -> list[dict]:
        return self._run(statement, WRITE_ACCESS)

    def read(self, statement: Statement) -> list[dict]:
        return self._run(statement, READ_ACCESS)

    def _run(self, statement: Statement, access_mode: str) -> list[dict]:
        if self._closed:
            raise GraphStoreError("Graph store is closed")
        logger.debug("Running %s %s", statement.kind, dict(statement.meta))
        try:
            with self._driver.session(database=self.database,
                                      default_access_mode=access_mode) as session:
                result = session.run(statement.text, dict(statement.params))
                return [record.data() for record in result]
        except ConstraintError as e:
            raise IdentityConflictError(
                f"{statement.kind} rejected by unique constraint: {e}",
                key=statement.meta.get("key"),
            ) from e
        except (Neo4jError, DriverError) as e:
            raise GraphStoreError(f"{statement.kind} failed: {e}") from e

    def close(self) -> None:
        """Close the driver. Safe to call multiple times."""
        if self._closed:
            return
        self._closed = True
        self._driver.close()
        logger.info("Graph store connection closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
