"""Layered pydantic configuration for zonecell.

``ParamConfig`` (defaults) < ``UserConfig`` (user file) < ``CLIConfig``
(flags and ``NEO4J_*`` environment), merged by ``resolve_config`` into a
frozen ``InternalConfig``. ``SOURCE_NAMES`` lists the dataset names the
``sources.enabled`` setting accepts.
"""

from zonecell.schemas.param import ParamConfig, SOURCE_NAMES
from zonecell.schemas.user import UserConfig
from zonecell.schemas.cli import CLIConfig
from zonecell.schemas.internal import InternalConfig
from zonecell.schemas.resolve import deep_merge, resolve_config

__all__ = [
    "ParamConfig",
    "UserConfig",
    "CLIConfig",
    "InternalConfig",
    "resolve_config",
    "deep_merge",
    "SOURCE_NAMES",
]
