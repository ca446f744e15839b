"""CLIConfig: operational overrides and secret handling."""

import json

import pytest
from pydantic import ValidationError

from zonecell.schemas import CLIConfig, ParamConfig, UserConfig, resolve_config

pytestmark = pytest.mark.unit


def test_empty_cli_config_has_no_overrides():
    assert CLIConfig().to_internal_overrides() == {}


def test_cli_rejects_unknown_fields():
    with pytest.raises(ValidationError):
        CLIConfig(neo4j_host="elsewhere")


def test_cli_rejects_invalid_batch_size():
    with pytest.raises(ValidationError):
        CLIConfig(batch_size=0)


def test_cli_rejects_invalid_log_level():
    with pytest.raises(ValidationError):
        CLIConfig(log_level="LOUD")


def test_password_masked_in_repr_and_dump():
    config = resolve_config(ParamConfig(), None, CLIConfig(neo4j_password="s3cret"))

    assert config.graph.password.get_secret_value() == "s3cret"
    assert "s3cret" not in repr(config)
    assert "s3cret" not in json.dumps(config.masked_dump())


def test_user_file_cannot_carry_password():
    user = UserConfig.model_validate({"NEO4J_PASSWORD": "s3cret"})
    config = resolve_config(ParamConfig(), user)
    assert config.graph.password is None


def test_database_override():
    config = resolve_config(ParamConfig(), None, CLIConfig(neo4j_database="zones"))
    assert config.graph.database == "zones"
