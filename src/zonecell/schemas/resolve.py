"""Turn the three configuration layers into one InternalConfig.

Layers, lowest precedence first: ParamConfig (expert defaults), UserConfig
(the ``CONFIG`` dict of a user file), CLIConfig (command-line flags and
``NEO4J_*`` environment defaults).
"""

from typing import Optional, Type, Union

from zonecell.schemas.base import ZonecellBaseModel
from zonecell.schemas.param import ParamConfig, SourcesConfig
from zonecell.schemas.user import UserConfig
from zonecell.schemas.cli import CLIConfig
from zonecell.schemas.internal import InternalConfig


def deep_merge(base: dict, *overrides: dict) -> dict:
    """Return ``base`` updated by each override in turn.

    Nested dicts merge key by key; any other value (lists included) is
    replaced outright. None of the inputs is modified.

    Examples
    --------
    >>> deep_merge({"graph": {"uri": "bolt://a", "user": "neo4j"}},
    ...            {"graph": {"uri": "bolt://b"}, "version_tag": "2026.02"})
    {'graph': {'uri': 'bolt://b', 'user': 'neo4j'}, 'version_tag': '2026.02'}
    """
    result = dict(base)
    for override in overrides:
        for key, value in override.items():
            current = result.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                result[key] = deep_merge(current, value)
            else:
                result[key] = value
    return result


def _coerce(layer, model: Type[ZonecellBaseModel]) -> ZonecellBaseModel:
    """Accept a model instance, a dict, or None (empty layer)."""
    if isinstance(layer, model):
        return layer
    return model.model_validate(layer or {})


def resolve_config(
    param_cfg: Union[dict, ParamConfig],
    user_cfg: Optional[Union[dict, UserConfig]] = None,
    cli_cfg: Optional[Union[dict, CLIConfig]] = None,
) -> InternalConfig:
    """Merge param < user < CLI and validate into a frozen InternalConfig.

    This is the only place runtime configuration is built; every stage
    receives the result and nothing else.

    Parameters
    ----------
    param_cfg : dict or ParamConfig
        Complete expert defaults.
    user_cfg : dict or UserConfig, optional
        Flat upper-case overrides from a user config file.
    cli_cfg : dict or CLIConfig, optional
        Command-line overrides.

    Returns
    -------
    InternalConfig

    Raises
    ------
    pydantic.ValidationError
        If a layer or the merged result is invalid (unknown source name,
        resolution outside 0-15, bad graph identifier, clashing labels).

    Examples
    --------
    >>> config = resolve_config(ParamConfig(), UserConfig(BATCH_SIZE=250, SOURCES="alu,ial"))
    >>> config.batcher.batch_size, config.sources.enabled
    (250, ['alu', 'ial'])
    """
    param = _coerce(param_cfg, ParamConfig)
    user = _coerce(user_cfg, UserConfig)
    cli = _coerce(cli_cfg, CLIConfig)

    merged = deep_merge(
        param.model_dump(),
        user.to_internal_overrides(),
        cli.to_internal_overrides(),
    )

    # Source names and input keys from the upper layers bypass SourcesConfig
    # until here.
    merged["sources"] = SourcesConfig.model_validate(merged["sources"]).model_dump()

    return InternalConfig.model_validate(merged)
