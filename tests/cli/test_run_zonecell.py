"""Tests for the command-line runner and exit codes."""

import pytest

from zonecell.cli import run_zonecell as cli
from zonecell.contracts import ContractViolation, GraphStoreError, IdentityConflictError
from zonecell.pipeline.orchestrator import PipelineOrchestrator
from zonecell.sources.catalog import get_source
from tests.helpers.fake_graph import InMemoryGraphStore
from tests.helpers.geo import box, feature, polygon, write_geojson

pytestmark = pytest.mark.unit


@pytest.fixture
def user_config_file(temp_dir):
    path = temp_dir / "user_config.py"
    path.write_text(
        "CONFIG = {\n"
        f"    'BASE_DIR': {str(temp_dir / 'out')!r},\n"
        "    'SOURCES': ['alu'],\n"
        "    'MAX_WORKERS': 1,\n"
        "}\n"
    )
    return path


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(PipelineOrchestrator, "_setup_logging", lambda self: None)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("NEO4J_URI", "NEO4J_USER", "NEO4J_PASSWORD", "NEO4J_DATABASE"):
        monkeypatch.delenv(name, raising=False)


def test_load_user_config_dict(user_config_file):
    config = cli.load_user_config_dict(str(user_config_file))
    assert config["SOURCES"] == ["alu"]


def test_load_user_config_missing_file(temp_dir):
    with pytest.raises(FileNotFoundError):
        cli.load_user_config_dict(str(temp_dir / "nope.py"))


def test_load_user_config_without_dict(temp_dir):
    path = temp_dir / "empty.py"
    path.write_text("X = 1\n")
    with pytest.raises(ValueError, match="No CONFIG"):
        cli.load_user_config_dict(str(path))


def test_build_config_cli_wins_and_verbose_sets_debug(user_config_file):
    config = cli.build_config(str(user_config_file),
                              {"max_workers": 3, "sources": None}, verbose=True)
    assert config.reducer.max_workers == 3
    assert config.sources.enabled == ["alu"]
    assert config.logging.level == "DEBUG"


def test_generate_command_writes_tables(user_config_file, temp_dir, capsys):
    out = temp_dir / "out"
    write_geojson(
        out / "inputs" / get_source("alu").default_input,
        feature({"objectid": 1}, polygon(box(0, 0, 1, 1))),
    )

    stats = cli.run_zonecell_command("generate", str(user_config_file),
                                     store=InMemoryGraphStore())

    assert stats["alu"]["zones"] == 1
    assert (out / "cells" / "ALU_Zones_H3.csv").exists()
    assert "Zone Cell Pipeline" in capsys.readouterr().out


def test_run_command_loads_into_store(user_config_file, temp_dir):
    write_geojson(
        temp_dir / "out" / "inputs" / get_source("alu").default_input,
        feature({"objectid": 1}, polygon(box(0, 0, 1, 1))),
    )
    store = InMemoryGraphStore()

    out = cli.run_zonecell_command("run", str(user_config_file), store=store)

    assert out["loaded"]["alu"]["zones"] == 1
    assert store.count("Zone") == 1


def test_unknown_command_rejected(user_config_file):
    with pytest.raises(ValueError, match="Unknown command"):
        cli.run_zonecell_command("publish", str(user_config_file))


def test_parser_reads_env_defaults(monkeypatch):
    monkeypatch.setenv("NEO4J_URI", "bolt://env:7687")
    args = cli.build_parser().parse_args(["load", "cfg.py"])
    assert args.neo4j_uri == "bolt://env:7687"

    args = cli.build_parser().parse_args(["load", "cfg.py", "--neo4j-uri", "bolt://flag:7687"])
    assert args.neo4j_uri == "bolt://flag:7687"


def test_main_passes_cli_overrides(monkeypatch, clean_env):
    seen = {}

    def fake_run(command, config, cli_args=None, **kwargs):
        seen.update(command=command, config=config, cli_args=cli_args, **kwargs)
        return {}

    monkeypatch.setattr(cli, "run_zonecell_command", fake_run)
    status = cli.main(["backbone", "cfg.py", "--districts", "moku.csv",
                       "--batch-size", "20", "-v"])

    assert status == cli.EXIT_OK
    assert seen["command"] == "backbone"
    assert seen["districts_path"] == "moku.csv"
    assert seen["cli_args"]["batch_size"] == 20
    assert seen["verbose"] is True


@pytest.mark.parametrize("error, code", [
    (GraphStoreError("down"), cli.EXIT_STORE_FAILURE),
    (IdentityConflictError("ALU_1 twice", key="zone_id"), cli.EXIT_IDENTITY_CONFLICT),
    (ContractViolation("bad table"), cli.EXIT_CONTRACT_VIOLATION),
])
def test_main_maps_errors_to_exit_codes(monkeypatch, clean_env, error, code):
    def fail(*args, **kwargs):
        raise error

    monkeypatch.setattr(cli, "run_zonecell_command", fail)
    assert cli.main(["run", "cfg.py"]) == code
