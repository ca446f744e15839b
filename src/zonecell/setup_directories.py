"""
Directory setup for the zone pipeline.

Flat layout under one base directory:
- inputs/    source GeoJSON files and programs.json
- backbone/  ZoneCell.csv backbone lookup
- cells/     per-source <PREFIX>_Zones.csv and <PREFIX>_Zones_H3*.csv tables
- logs/      pipeline logs, runtime config snapshots, run tracker database
"""

import logging
from pathlib import Path
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

BACKBONE_FILENAME = "ZoneCell.csv"
TRACKER_FILENAME = "zonecell_runs.db"
PROGRAMS_FILENAME = "programs.json"


def setup_output_directories(base_output_dir):
    """
    Set up organized output directory structure.

    Parameters
    ----------
    base_output_dir : str or Path
        Base output directory. Created if missing.

    Returns
    -------
    dict
        Dictionary with paths: 'base', 'inputs', 'backbone', 'cells', 'logs'
    """
    base_output_dir = Path(base_output_dir).expanduser().resolve()

    directories = {
        "base": base_output_dir,
        "inputs": base_output_dir / "inputs",
        "backbone": base_output_dir / "backbone",
        "cells": base_output_dir / "cells",
        "logs": base_output_dir / "logs",
    }

    for path in directories.values():
        path.mkdir(parents=True, exist_ok=True)

    for key, path in directories.items():
        logger.debug("  %-10s: %s", key, path)

    return directories


def get_input_path(output_dirs, filename, inputs: Optional[Mapping[str, str]] = None,
                   source: Optional[str] = None):
    """
    Resolve a source input file.

    An explicit path in ``inputs[source]`` wins; otherwise ``filename`` is
    looked up in the inputs directory.

    Example
    -------
    >>> get_input_path(dirs, 'Reserves.geojson', {'res': '/data/res.geojson'}, 'res')
    Path('/data/res.geojson')
    """
    if inputs and source and source in inputs:
        return Path(inputs[source]).expanduser()
    return output_dirs["inputs"] / filename


def get_cells_path(output_dirs, filename):
    """Path of a per-source table under cells/."""
    return output_dirs["cells"] / filename


def get_backbone_path(output_dirs, lookup_path: Optional[str] = None):
    """ZoneCell.csv location: the configured lookup path, else backbone/ZoneCell.csv."""
    if lookup_path:
        return Path(lookup_path).expanduser()
    return output_dirs["backbone"] / BACKBONE_FILENAME


def get_tracker_path(output_dirs):
    return output_dirs["logs"] / TRACKER_FILENAME


def get_log_path(output_dirs, run_id):
    return output_dirs["logs"] / f"pipeline_{run_id}.log"
