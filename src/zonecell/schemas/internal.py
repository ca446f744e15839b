"""InternalConfig: Authoritative runtime configuration.

This is the ONLY config schema that runtime code sees. It is fully validated,
normalized, and contains NO optional fields that processing code depends on.
"""

import re
from typing import Literal, Optional
from pydantic import ConfigDict, Field, SecretStr, field_validator, model_validator
from zonecell.schemas.base import ZonecellBaseModel

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


# =============================================================================
# Nested Configuration Models (Runtime)
# =============================================================================

class InternalBackboneConfig(ZonecellBaseModel):
    """Runtime backbone configuration."""
    resolution: int = Field(ge=0, le=15)
    lookup_path: Optional[str]
    districts_path: Optional[str]


class InternalReducerConfig(ZonecellBaseModel):
    """Runtime reduction configuration."""
    max_workers: int = Field(ge=1, le=64)


class InternalBatcherConfig(ZonecellBaseModel):
    """Runtime batching configuration."""
    batch_size: int = Field(ge=1)


class InternalGraphConfig(ZonecellBaseModel):
    """Runtime graph store configuration.

    Labels, property names and relationship types end up spliced into
    Cypher text, so they are restricted to plain identifiers here.
    """
    uri: str
    user: str
    password: Optional[SecretStr]
    database: Optional[str]
    zone_label: str
    cell_label: str
    partition_label: str
    partition_key: str
    cell_relationship: str
    partition_relationship: str

    @field_validator(
        "zone_label", "cell_label", "partition_label", "partition_key",
        "cell_relationship", "partition_relationship",
    )
    @classmethod
    def check_identifier(cls, v):
        """Reject names that are not plain Cypher identifiers."""
        if not _IDENTIFIER.match(v):
            raise ValueError(f"'{v}' is not a valid graph identifier")
        return v


class InternalSourcesConfig(ZonecellBaseModel):
    """Runtime source selection."""
    enabled: list[str]
    inputs: dict[str, str]
    programs_path: Optional[str]


class InternalLoggingConfig(ZonecellBaseModel):
    """Runtime logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


# =============================================================================
# Main InternalConfig
# =============================================================================

class InternalConfig(ZonecellBaseModel):
    """Authoritative runtime configuration.

    This is the ONLY configuration schema that processing code sees.
    It is fully validated, immutable, and contains explicit values for
    all parameters.

    Usage
    -----
    Runtime modules receive InternalConfig and access fields directly:

        def __init__(self, config: InternalConfig):
            self.batch_size = config.batcher.batch_size  # NOT .get()
            self.zone_label = config.graph.zone_label

    Rules
    -----
    - NO .get() calls
    - NO fallback defaults
    - NO validation

    All of that happens during config resolution, not in runtime code.
    """

    base_dir: str
    version_tag: str = Field(min_length=1)
    backbone: InternalBackboneConfig
    reducer: InternalReducerConfig
    batcher: InternalBatcherConfig
    graph: InternalGraphConfig
    sources: InternalSourcesConfig
    logging: InternalLoggingConfig

    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        frozen=True,  # Immutable after construction
    )

    @model_validator(mode="after")
    def check_distinct_labels(self):
        """Zone, cell and partition nodes must not share a label."""
        labels = {self.graph.zone_label, self.graph.cell_label, self.graph.partition_label}
        if len(labels) != 3:
            raise ValueError("graph zone_label, cell_label and partition_label must differ")
        return self
