"""CLIConfig: Command-line operational overrides.

Minimal configuration for operational parameters that commonly change
between runs: output path, source selection, store connection, verbosity.

This schema handles command-line arguments parsed by argparse.
"""

from typing import Literal, Optional
from pydantic import Field, SecretStr, field_validator
from zonecell.schemas.base import ZonecellBaseModel


class CLIConfig(ZonecellBaseModel):
    """Command-line configuration overrides.

    Operational-only settings that override user and param configs.
    Highest priority in config resolution. The Neo4j password is accepted
    only here (from the command line or the environment), never from the
    user config file.
    """

    base_dir: Optional[str] = None
    sources: Optional[list[str]] = None
    batch_size: Optional[int] = Field(None, ge=1)
    max_workers: Optional[int] = Field(None, ge=1)
    backbone_path: Optional[str] = None
    neo4j_uri: Optional[str] = None
    neo4j_user: Optional[str] = None
    neo4j_password: Optional[SecretStr] = None
    neo4j_database: Optional[str] = None
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = None

    @field_validator("sources", mode="before")
    @classmethod
    def split_source_string(cls, v):
        """Accept a comma separated string from argparse."""
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    def to_internal_overrides(self) -> dict:
        """Convert CLI config to internal config structure.

        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        overrides = {}

        if self.base_dir is not None:
            overrides["base_dir"] = str(self.base_dir)
        if self.sources is not None:
            overrides["sources"] = {"enabled": self.sources}
        if self.batch_size is not None:
            overrides["batcher"] = {"batch_size": self.batch_size}
        if self.max_workers is not None:
            overrides["reducer"] = {"max_workers": self.max_workers}
        if self.backbone_path is not None:
            overrides["backbone"] = {"lookup_path": self.backbone_path}

        graph = {}
        if self.neo4j_uri is not None:
            graph["uri"] = self.neo4j_uri
        if self.neo4j_user is not None:
            graph["user"] = self.neo4j_user
        if self.neo4j_password is not None:
            graph["password"] = self.neo4j_password
        if self.neo4j_database is not None:
            graph["database"] = self.neo4j_database
        if graph:
            overrides["graph"] = graph

        if self.log_level is not None:
            overrides["logging"] = {"level": self.log_level}

        return overrides
