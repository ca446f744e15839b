import pytest

from zonecell.schemas.user import UserConfig
from zonecell.schemas.cli import CLIConfig
from zonecell.schemas.param import ParamConfig
from zonecell.schemas.resolve import resolve_config

pytestmark = pytest.mark.unit


def test_cli_overrides_do_not_mutate_user():
    user = UserConfig.model_validate({"SOURCES": ["alu"], "BASE_DIR": "/tmp/zc"})
    cli = CLIConfig.model_validate({"sources": "ial,rail"})

    internal = resolve_config(ParamConfig(), user, cli)

    assert internal.sources.enabled == ["ial", "rail"]
    assert user.sources == ["alu"]
    assert internal.base_dir == "/tmp/zc"


def test_full_precedence_cli_user_param():
    user = UserConfig(BATCH_SIZE=100, MAX_WORKERS=2, NEO4J_URI="bolt://user:7687")
    cli = CLIConfig(batch_size=50, neo4j_uri="bolt://cli:7687")

    config = resolve_config(ParamConfig(), user, cli)

    assert config.batcher.batch_size == 50          # CLI wins
    assert config.reducer.max_workers == 2          # User wins over param
    assert config.graph.uri == "bolt://cli:7687"
    assert config.graph.user == "neo4j"             # Param default


def test_cli_backbone_path_keeps_user_districts():
    user = UserConfig(DISTRICTS_PATH="/data/moku.csv", BACKBONE_PATH="/data/a.csv")
    cli = CLIConfig(backbone_path="/data/b.csv")

    config = resolve_config(ParamConfig(), user, cli)

    assert config.backbone.lookup_path == "/data/b.csv"
    assert config.backbone.districts_path == "/data/moku.csv"


def test_cli_log_level():
    user = UserConfig(LOG_LEVEL="warning")
    config = resolve_config(ParamConfig(), user, CLIConfig(log_level="DEBUG"))
    assert config.logging.level == "DEBUG"
