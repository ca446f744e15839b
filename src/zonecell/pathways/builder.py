"""Career-pathways knowledge graph.

Builds CareerPathway, ProgramOfStudy, Occupation, TrainingProgram and
Credential records from ``programs.json`` and loads them through the same
idempotent loader the zone graph uses. The pathway graph touches the zone
graph in one place: the AFNR cluster aligns with the ``ag`` ZoneType.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping, Sequence

from zonecell.graph.loader import GraphLoader
from zonecell.pathways.catalog import (
    PROGRAM_SUFFIX,
    resolve_cluster,
    slugify,
    stage_for,
    training_category,
)

if TYPE_CHECKING:
    from zonecell.pipeline.batcher import AssignmentBatcher

__all__ = ['PathwayGraph', 'read_programs', 'build_pathway_graph', 'load_pathway_graph']

logger = logging.getLogger(__name__)

SOURCE_TAG = "programs.json"
CLUSTER_SOURCE_TAG = "HawaiiCareerPathways"

# (label, key) of every node type, in load order
NODE_KEYS = (
    ("CareerPathway", "id"),
    ("ProgramOfStudy", "id"),
    ("Occupation", "soc_code"),
    ("TrainingProgram", "id"),
    ("Credential", "id"),
)

BRIDGE_CLUSTER = "AFNR"
BRIDGE_ZONE_TYPE = "ag"


@dataclass
class PathwayGraph:
    """Node records per label and link rows per relationship type."""
    nodes: dict[str, list[dict]] = field(
        default_factory=lambda: {label: [] for label, _ in NODE_KEYS}
    )
    includes: list[dict] = field(default_factory=list)
    prepares_for: list[dict] = field(default_factory=list)
    has_training: list[dict] = field(default_factory=list)
    recommends: list[dict] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def read_programs(path: Path | str) -> dict:
    """Read programs.json: program title -> list of entry objects."""
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        programs = json.load(f)
    if not isinstance(programs, dict):
        raise ValueError(f"{path}: expected an object keyed by program title")
    logger.info("Programs in %s: %d", path.name, len(programs))
    return programs


def _level0(entries: Sequence[Mapping], level_type: str, info: str = None):
    for e in entries:
        if e.get("LEVEL") == 0 and e.get("LEVEL_TYPE") == level_type:
            if info is None or e.get("LEVEL_INFO") == info:
                return e
    return None


def _data(entry, key="LEVEL_DATA"):
    if entry is None:
        return None
    value = entry.get(key)
    return value or None


class _Dedup:
    """Ordered rows unique by a key tuple; first occurrence wins."""

    def __init__(self):
        self._rows: dict[tuple, dict] = {}

    def add(self, key: tuple, row: dict) -> bool:
        if key in self._rows:
            return False
        self._rows[key] = row
        return True

    def rows(self) -> list[dict]:
        return list(self._rows.values())


def build_pathway_graph(programs: Mapping[str, Sequence[Mapping[str, Any]]]) -> PathwayGraph:
    """Turn parsed programs.json into node and link rows.

    Programs with no recognizable cluster TITLE or no id suffix are skipped
    with a warning. Training entries whose info mentions CERTIFICATIONS
    become Credentials; all others, plus OTHER OPTIONS entries, become
    TrainingPrograms.
    """
    graph = PathwayGraph()
    clusters, program_rows, occupations = _Dedup(), _Dedup(), _Dedup()
    trainings, credentials = _Dedup(), _Dedup()
    includes, prepares, has_training, recommends = _Dedup(), _Dedup(), _Dedup(), _Dedup()

    for key, entries in programs.items():
        cluster = resolve_cluster(entries)
        if cluster is None:
            logger.warning("No cluster resolved for %r, skipping", key)
            graph.skipped.append(key)
            continue
        suffix = PROGRAM_SUFFIX.get(key)
        if suffix is None:
            logger.warning("No id suffix for %r, skipping", key)
            graph.skipped.append(key)
            continue
        program_id = f"{cluster.id}_{suffix}"

        clusters.add((cluster.id,), {
            "id": cluster.id,
            "name": cluster.name,
            "topic_number": cluster.topic,
            "source": CLUSTER_SOURCE_TAG,
        })
        program_rows.add((program_id,), {
            "id": program_id,
            "name": _data(_level0(entries, "CUSTOM", "PATHWAY_TITLE")) or key,
            "description": _data(_level0(entries, "CUSTOM", "PATHWAY_DESCRIPTION")),
            "cluster_id": cluster.id,
            "early_college_url": _data(_level0(entries, "EARLYCOLLEGE"), "LEVEL_INFO"),
            "start_info": _data(_level0(entries, "START_INFORMATION")),
            "source": SOURCE_TAG,
        })
        includes.add((cluster.id, program_id), {"from": cluster.id, "to": program_id})

        for entry in entries:
            level_type = entry.get("LEVEL_TYPE")
            info = entry.get("LEVEL_INFO") or ""
            label = (entry.get("LEVEL_DATA") or "").strip()

            if level_type == "JOB_TITLE" and info == "RELATED OCCUPATIONS":
                stage = stage_for(entry.get("LEVEL"))
                if stage is None or not label:
                    continue
                for soc in (s.strip() for s in label.split(",")):
                    if not soc:
                        continue
                    occupations.add((soc,), {"soc_code": soc, "source": SOURCE_TAG})
                    prepares.add((program_id, soc, stage),
                                 {"from": program_id, "to": soc, "stage": stage})

            elif level_type == "TRAINING":
                if not label or label == "Not Available":
                    continue
                stage = stage_for(entry.get("LEVEL"), "other")
                slug = slugify(label)
                if "CERTIFICATIONS" in info:
                    credentials.add((slug,), {
                        "id": slug, "name": label, "type": "Certification", "source": SOURCE_TAG,
                    })
                    recommends.add((program_id, slug, stage),
                                   {"from": program_id, "to": slug, "stage": stage})
                else:
                    trainings.add((slug,), {
                        "id": slug, "name": label, "track_level": stage,
                        "category": training_category(info), "source": SOURCE_TAG,
                    })
                    has_training.add((program_id, slug, stage),
                                     {"from": program_id, "to": slug, "stage": stage})

            elif level_type == "OPTIONS" and info == "OTHER OPTIONS":
                if not label:
                    continue
                stage = stage_for(entry.get("LEVEL"), "other")
                slug = slugify(label)
                trainings.add((slug,), {
                    "id": slug, "name": label, "track_level": stage,
                    "category": "other_option", "source": SOURCE_TAG,
                })
                has_training.add((program_id, slug, stage),
                                 {"from": program_id, "to": slug, "stage": stage})

    graph.nodes["CareerPathway"] = clusters.rows()
    graph.nodes["ProgramOfStudy"] = program_rows.rows()
    graph.nodes["Occupation"] = occupations.rows()
    graph.nodes["TrainingProgram"] = trainings.rows()
    graph.nodes["Credential"] = credentials.rows()
    graph.includes = includes.rows()
    graph.prepares_for = prepares.rows()
    graph.has_training = has_training.rows()
    graph.recommends = recommends.rows()

    logger.info(
        "Resolved %d programs across %d clusters (%d skipped)",
        len(graph.nodes["ProgramOfStudy"]), len(graph.nodes["CareerPathway"]), len(graph.skipped),
    )
    return graph


def load_pathway_graph(graph: PathwayGraph, loader: GraphLoader,
                       batcher: "AssignmentBatcher") -> dict:
    """Upsert every node, then MERGE every relationship, in the batcher's chunks.

    Returns
    -------
    dict
        Records sent per label and relationships matched per type.
    """
    counts = {}
    for label, key in NODE_KEYS:
        loader.ensure_unique_key_constraint(label, key)

    for label, key in NODE_KEYS:
        rows = graph.nodes[label]
        sent = 0
        for batch in batcher.batches(rows):
            sent += loader.upsert_batch(label, key, batch)
        counts[label] = sent
        logger.info("%s nodes: %d", label, sent)

    links = (
        ("INCLUDES_PROGRAM", "CareerPathway", "id", "ProgramOfStudy", "id", graph.includes, ()),
        ("PREPARES_FOR", "ProgramOfStudy", "id", "Occupation", "soc_code",
         graph.prepares_for, ("stage",)),
        ("HAS_TRAINING", "ProgramOfStudy", "id", "TrainingProgram", "id",
         graph.has_training, ("stage",)),
        ("RECOMMENDS_CREDENTIAL", "ProgramOfStudy", "id", "Credential", "id",
         graph.recommends, ("stage",)),
    )
    for rel_type, from_label, from_key, to_label, to_key, rows, qualifiers in links:
        linked = 0
        for batch in batcher.batches(rows):
            linked += loader.link_by_matched_keys(
                from_label, from_key, rel_type, to_label, to_key, batch, qualifiers,
            )
        counts[rel_type] = linked
        logger.info("%s relationships: %d", rel_type, linked)

    bridged = 0
    if any(c["id"] == BRIDGE_CLUSTER for c in graph.nodes["CareerPathway"]):
        bridged = loader.link_by_matched_keys(
            "CareerPathway", "id", "ALIGNS_WITH_ZONE_TYPE", "ZoneType", "id",
            [{"from": BRIDGE_CLUSTER, "to": BRIDGE_ZONE_TYPE}],
        )
    counts["ALIGNS_WITH_ZONE_TYPE"] = bridged
    logger.info("%s -> %s ZoneType bridge: %d", BRIDGE_CLUSTER, BRIDGE_ZONE_TYPE, bridged)
    return counts
