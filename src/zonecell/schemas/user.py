"""UserConfig: Forgiving, minimal user-facing configuration.

This schema accepts user inputs with upper-case aliases for the common
settings (e.g., BATCH_SIZE → batcher.batch_size, NEO4J_URI → graph.uri).

UserConfig is intentionally minimal - users only specify what they want
to override from the expert defaults.
"""

from typing import Any, Optional
from pydantic import Field, field_validator
from zonecell.schemas.base import ZonecellBaseModel


class UserConfig(ZonecellBaseModel):
    """User-facing configuration schema.

    Minimal, forgiving, and uses common aliases. Users only specify
    what they want to override from ParamConfig defaults.

    Usage
    -----
        user_cfg = UserConfig(
            BASE_DIR="/data/zonecell",
            SOURCES=["alu", "ial"],
            INPUTS={"alu": "data/alu.geojson", "ial": "data/ial.geojson"},
        )

        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    base_dir: Optional[str] = Field(None, alias="BASE_DIR")
    version_tag: Optional[str] = Field(None, alias="VERSION_TAG")

    # Backbone
    backbone_path: Optional[str] = Field(None, alias="BACKBONE_PATH")
    districts_path: Optional[str] = Field(None, alias="DISTRICTS_PATH")

    # Throughput
    batch_size: Optional[int] = Field(None, alias="BATCH_SIZE")
    max_workers: Optional[int] = Field(None, alias="MAX_WORKERS")

    # Graph store
    neo4j_uri: Optional[str] = Field(None, alias="NEO4J_URI")
    neo4j_user: Optional[str] = Field(None, alias="NEO4J_USER")
    neo4j_database: Optional[str] = Field(None, alias="NEO4J_DATABASE")

    # Sources
    sources: Optional[list[str]] = Field(None, alias="SOURCES")
    inputs: Optional[dict[str, str]] = Field(None, alias="INPUTS")
    programs_path: Optional[str] = Field(None, alias="PROGRAMS_PATH")

    log_level: Optional[str] = Field(None, alias="LOG_LEVEL")

    # Nested overrides (advanced users)
    graph: Optional[dict[str, Any]] = None
    backbone: Optional[dict[str, Any]] = None

    model_config = ZonecellBaseModel.model_config.copy()
    # Allow forgiving input dictionaries (ignore unknown legacy keys)
    model_config.update({"populate_by_name": True, "extra": "ignore"})

    @field_validator("sources", mode="before")
    @classmethod
    def split_source_string(cls, v):
        """Accept "alu,ial" as well as ["alu", "ial"]."""
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        """Normalize log level names to uppercase."""
        if isinstance(v, str):
            return v.upper().strip()
        return v

    def to_internal_overrides(self) -> dict:
        """Convert flat UserConfig to nested InternalConfig structure.

        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        overrides = {}

        if self.base_dir is not None:
            overrides["base_dir"] = str(self.base_dir)
        if self.version_tag is not None:
            overrides["version_tag"] = self.version_tag

        backbone = {}
        if self.backbone_path is not None:
            backbone["lookup_path"] = self.backbone_path
        if self.districts_path is not None:
            backbone["districts_path"] = self.districts_path
        if self.backbone is not None:
            backbone.update(self.backbone)
        if backbone:
            overrides["backbone"] = backbone

        if self.batch_size is not None:
            overrides["batcher"] = {"batch_size": self.batch_size}
        if self.max_workers is not None:
            overrides["reducer"] = {"max_workers": self.max_workers}

        graph = {}
        if self.neo4j_uri is not None:
            graph["uri"] = self.neo4j_uri
        if self.neo4j_user is not None:
            graph["user"] = self.neo4j_user
        if self.neo4j_database is not None:
            graph["database"] = self.neo4j_database
        if self.graph is not None:
            graph.update(self.graph)
        if graph:
            overrides["graph"] = graph

        sources = {}
        if self.sources is not None:
            sources["enabled"] = self.sources
        if self.inputs is not None:
            sources["inputs"] = self.inputs
        if self.programs_path is not None:
            sources["programs_path"] = self.programs_path
        if sources:
            overrides["sources"] = sources

        if self.log_level is not None:
            overrides["logging"] = {"level": self.log_level}

        return overrides
