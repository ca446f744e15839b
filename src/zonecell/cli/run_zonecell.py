"""Core zone pipeline execution logic.

This module contains the actual pipeline runner, separated from argument parsing.
Scripts are thin wrappers; this is the real implementation.
"""

import os
import sys
import json
import logging
import argparse
import importlib.util
from pathlib import Path
from typing import Optional, Dict, Any

from dotenv import load_dotenv

from zonecell.contracts import ContractViolation, GraphStoreError, IdentityConflictError
from zonecell.setup_directories import setup_output_directories
from zonecell.pipeline.orchestrator import PipelineOrchestrator
from zonecell.schemas import resolve_config, ParamConfig, UserConfig, CLIConfig


logger = logging.getLogger(__name__)

COMMANDS = ("backbone", "load-backbone", "generate", "load", "run", "pathways")

EXIT_OK = 0
EXIT_STORE_FAILURE = 2
EXIT_IDENTITY_CONFLICT = 3
EXIT_CONTRACT_VIOLATION = 4


def load_user_config_dict(config_path: str) -> dict:
    """Load user config dict from Python file.

    Returns the raw dict before Pydantic validation.

    Parameters
    ----------
    config_path : str
        Path to user config Python file containing CONFIG dict.

    Returns
    -------
    dict
        Raw user configuration dictionary.

    Raises
    ------
    FileNotFoundError
        If config file does not exist.
    ValueError
        If no CONFIG dict found in file.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")

    spec = importlib.util.spec_from_file_location("config_module", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    # Find CONFIG dict
    for name in dir(module):
        if name.startswith('CONFIG'):
            obj = getattr(module, name)
            if isinstance(obj, dict):
                return obj

    raise ValueError(f"No CONFIG dict found in {path}")


def build_config(user_config_path: str, cli_args: Optional[Dict[str, Any]] = None,
                 verbose: bool = False):
    """Resolve Param < User < CLI into an InternalConfig."""
    param_cfg = ParamConfig()

    user_cfg = UserConfig.model_validate(load_user_config_dict(user_config_path))

    cli_args = dict(cli_args or {})
    if verbose and not cli_args.get("log_level"):
        cli_args["log_level"] = "DEBUG"
    cli_dict = {k: v for k, v in cli_args.items() if v is not None}
    cli_cfg = CLIConfig.model_validate(cli_dict) if cli_dict else CLIConfig()

    return resolve_config(param_cfg, user_cfg, cli_cfg)


def run_zonecell_command(
    command: str,
    user_config_path: str,
    cli_args: Optional[Dict[str, Any]] = None,
    districts_path: Optional[str] = None,
    programs_path: Optional[str] = None,
    verbose: bool = False,
    store=None,
) -> dict:
    """Execute one pipeline command.

    Parameters
    ----------
    command : str
        One of backbone, load-backbone, generate, load, run, pathways.
    user_config_path : str
        Path to user config file (Python file with CONFIG dict).
    cli_args : dict, optional
        CLI overrides. Keys: base_dir, sources, batch_size, max_workers,
        backbone_path, neo4j_uri, neo4j_user, neo4j_password,
        neo4j_database, log_level. All optional.
    districts_path : str, optional
        District rows for ``backbone`` (overrides the config).
    programs_path : str, optional
        programs.json for ``pathways`` (overrides the config).
    verbose : bool, optional
        If True, enable DEBUG logging and print full resolved config.
    store : GraphStore, optional
        Pre-built store client; a Neo4j client is created when needed otherwise.

    Returns
    -------
    dict
        Command-specific counters.

    Raises
    ------
    GraphStoreError
        Store unreachable or a write failed.
    IdentityConflictError
        Two features claimed the same zone id.
    ContractViolation
        A stage produced output that breaks its contract.

    Examples
    --------
    Generate two sources and load them::

        run_zonecell_command("run", "scripts/user_config.py",
                             cli_args={"sources": "alu,ial"})
    """
    if command not in COMMANDS:
        raise ValueError(f"Unknown command '{command}'. Expected one of {COMMANDS}")

    config = build_config(user_config_path, cli_args, verbose)
    output_dirs = setup_output_directories(config.base_dir)

    print(f"\n{'='*60}")
    print("Zone Cell Pipeline")
    print('='*60)
    print(f"Command: {command}")
    print(f"Config:  {user_config_path}")
    print(f"Sources: {', '.join(config.sources.enabled)}")
    print(f"Graph:   {config.graph.uri}")
    print(f"Output:  {output_dirs['base']}")
    print('='*60)

    if verbose:
        print("\nFull Internal Configuration:")
        print(json.dumps(config.masked_dump(), indent=2))
        print('='*60)

    orchestrator = PipelineOrchestrator(config, output_dirs, store=store)
    if command == "run":
        return orchestrator.run()

    with orchestrator:
        if command == "backbone":
            return {"path": str(orchestrator.build_backbone(districts_path))}
        if command == "load-backbone":
            counts = orchestrator.load_backbone()
            return {"loaded": counts, "verification": orchestrator.verify()}
        if command == "generate":
            results = orchestrator.generate()
            return {name: r.stats.as_dict() for name, r in results.items()}
        if command == "load":
            counts = orchestrator.load()
            return {"loaded": counts, "verification": orchestrator.verify()}
        return orchestrator.load_pathways(programs_path)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zonecell",
        description="Reduce zone datasets to H3 cells and load them into a graph",
    )
    parser.add_argument("command", choices=COMMANDS, help="Pipeline stage to run")
    parser.add_argument("config", help="Path to user config file")
    parser.add_argument("--sources", help="Comma separated source names (e.g. alu,ial)")
    parser.add_argument("--base-dir", help="Output directory")
    parser.add_argument("--batch-size", type=int, help="Records per graph write")
    parser.add_argument("--max-workers", type=int, help="Reduction threads")
    parser.add_argument("--backbone", dest="backbone_path", help="ZoneCell.csv lookup")
    parser.add_argument("--districts", help="District CSV for the backbone command")
    parser.add_argument("--programs", help="programs.json for the pathways command")
    parser.add_argument("--neo4j-uri", default=os.environ.get("NEO4J_URI"))
    parser.add_argument("--neo4j-user", default=os.environ.get("NEO4J_USER"))
    parser.add_argument("--neo4j-password", default=os.environ.get("NEO4J_PASSWORD"))
    parser.add_argument("--neo4j-database", default=os.environ.get("NEO4J_DATABASE"))
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv=None) -> int:
    """Command-line entry point. Returns the process exit status."""
    # .env must be loaded before the parser reads its defaults
    load_dotenv()
    args = build_parser().parse_args(argv)

    cli_args = {
        "sources": args.sources,
        "base_dir": args.base_dir,
        "batch_size": args.batch_size,
        "max_workers": args.max_workers,
        "backbone_path": args.backbone_path,
        "neo4j_uri": args.neo4j_uri,
        "neo4j_user": args.neo4j_user,
        "neo4j_password": args.neo4j_password,
        "neo4j_database": args.neo4j_database,
    }

    try:
        run_zonecell_command(
            args.command,
            args.config,
            cli_args=cli_args,
            districts_path=args.districts,
            programs_path=args.programs,
            verbose=args.verbose,
        )
    except GraphStoreError as e:
        logger.error("Graph store failure: %s", e)
        return EXIT_STORE_FAILURE
    except IdentityConflictError as e:
        logger.error("Identity conflict: %s", e)
        return EXIT_IDENTITY_CONFLICT
    except ContractViolation as e:
        logger.error("Contract violation: %s", e)
        return EXIT_CONTRACT_VIOLATION
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
