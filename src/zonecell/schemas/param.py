"""ParamConfig: Expert defaults for the zonecell pipeline.

This module defines the complete default configuration. ALL pipeline
parameters must have defaults here. No runtime code should define fallback
values - this is the single source of truth for defaults.

Runtime code NEVER reads from ParamConfig directly - it only receives InternalConfig.
"""

from typing import Literal, Optional
from pydantic import Field, SecretStr, field_validator
from zonecell.schemas.base import ZonecellBaseModel

SOURCE_NAMES = ("alu", "hwy", "res", "gov", "hnl", "ial", "rail", "sch", "sta", "uni")


# =============================================================================
# Nested Configuration Models
# =============================================================================

class BackboneConfig(ZonecellBaseModel):
    """Resolution-7 backbone partition settings."""
    resolution: int = Field(7, ge=0, le=15, description="Backbone cell resolution")
    lookup_path: Optional[str] = Field(None, description="ZoneCell.csv lookup table")
    districts_path: Optional[str] = Field(None, description="District rows with GeoJSON column")


class ReducerConfig(ZonecellBaseModel):
    """Geometry reduction settings."""
    max_workers: int = Field(4, ge=1, le=64, description="Threads used to reduce features")


class BatcherConfig(ZonecellBaseModel):
    """Write batching settings."""
    batch_size: int = Field(500, ge=1, description="Records per graph write")


class GraphConfig(ZonecellBaseModel):
    """Neo4j connection and graph vocabulary."""
    uri: str = "bolt://localhost:7687"
    user: str = "neo4j"
    password: Optional[SecretStr] = None
    database: Optional[str] = None
    zone_label: str = "Zone"
    cell_label: str = "ZoneCell"
    partition_label: str = "Moku"
    partition_key: str = "moku_id"
    cell_relationship: str = "HAS_CELL"
    partition_relationship: str = "WITHIN"


class SourcesConfig(ZonecellBaseModel):
    """Which zone datasets to process and where their inputs live."""
    enabled: list[str] = Field(default_factory=lambda: list(SOURCE_NAMES))
    inputs: dict[str, str] = Field(default_factory=dict)
    programs_path: Optional[str] = None

    @field_validator("enabled", mode="before")
    @classmethod
    def normalize_source_names(cls, v):
        """Lower-case source names and reject unknown ones."""
        if isinstance(v, str):
            v = [s for s in v.split(",") if s.strip()]
        names = [str(s).strip().lower() for s in v]
        unknown = sorted(set(names) - set(SOURCE_NAMES))
        if unknown:
            raise ValueError(f"Unknown source(s): {', '.join(unknown)}")
        return names

    @field_validator("inputs", mode="before")
    @classmethod
    def normalize_input_keys(cls, v):
        """Lower-case input keys."""
        if isinstance(v, dict):
            return {str(k).strip().lower(): str(p) for k, p in v.items()}
        return v


class LoggingConfig(ZonecellBaseModel):
    """Logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"


# =============================================================================
# Main ParamConfig
# =============================================================================

class ParamConfig(ZonecellBaseModel):
    """Complete expert configuration with all defaults.

    This is the single source of truth for all pipeline parameters.
    Every tunable parameter MUST have a default here.

    Usage
    -----
    This config is NOT used directly by runtime code. It serves as the
    base layer in config resolution:

        internal_cfg = resolve_config(param_cfg, user_cfg, cli_cfg)

    Runtime code only sees InternalConfig.
    """

    base_dir: str = "./zonecell_output"
    version_tag: str = "2026.01"
    backbone: BackboneConfig = Field(default_factory=BackboneConfig)
    reducer: ReducerConfig = Field(default_factory=ReducerConfig)
    batcher: BatcherConfig = Field(default_factory=BatcherConfig)
    graph: GraphConfig = Field(default_factory=GraphConfig)
    sources: SourcesConfig = Field(default_factory=SourcesConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
