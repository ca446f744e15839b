"""Pipeline orchestration.

Runs the stages of a zone pipeline run: backbone generation and load, source
reduction to CSV tables, graph load of zones and cells, the pathways graph,
and a verification summary. Owns logging setup, the run tracker and the
graph store lifecycle.
"""

import json
import time
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Mapping, Optional

from zonecell.contracts import ContractViolation, GraphStoreError
from zonecell.core.records import Zone, ZoneCellAssignment
from zonecell.core.tables import (
    read_assignments_csv,
    read_zones_csv,
    write_assignments_csv,
    write_zones_csv,
)
from zonecell.graph.loader import GraphLoader
from zonecell.graph.store import GraphStore, Neo4jGraphStore
from zonecell.pathways.builder import build_pathway_graph, load_pathway_graph, read_programs
from zonecell.pipeline.batcher import AssignmentBatcher
from zonecell.pipeline.processor import ReductionStats, SourceResult, ZoneProcessor
from zonecell.pipeline.run_tracker import RunTracker
from zonecell.setup_directories import (
    PROGRAMS_FILENAME,
    get_backbone_path,
    get_cells_path,
    get_input_path,
    get_log_path,
    get_tracker_path,
)
from zonecell.sources.catalog import SourceSpec, get_source
from zonecell.sources.features import read_district_rows, read_geojson_features
from zonecell.spatial.ancestry import AncestorResolver
from zonecell.spatial.backbone import (
    BackboneTable,
    build_backbone_rows,
    read_backbone_csv,
    write_backbone_csv,
)

if TYPE_CHECKING:
    from zonecell.schemas import InternalConfig

__all__ = ['PipelineOrchestrator']

logger = logging.getLogger(__name__)

BACKBONE_SOURCE = "BACKBONE"
PATHWAYS_SOURCE = "PATHWAYS"


class PipelineOrchestrator:
    """Manages one zone pipeline run.

    This is the main entry point for running ``zonecell``. Each public
    method is one stage and may be called on its own; ``run`` chains
    generation, graph load and verification.

    **Stages:**

    1. **build_backbone**: Polyfill district polygons into ZoneCell.csv.
    2. **load_backbone**: Upsert partition nodes and backbone cells, link
       cells to partitions.
    3. **generate**: Reduce each enabled source to zone and cell tables,
       joined to the backbone, and write them as CSV.
    4. **load**: Upsert zones and cells, link zones to cells and cells to
       partitions.
    5. **load_pathways**: Load the career-pathways graph.
    6. **verify**: Log node and relationship counts.

    **Run Tracking:**

    Every stage of every source is recorded in the RunTracker SQLite
    database (logs/zonecell_runs.db), with counters, on success and on
    failure.

    **Failures:**

    Graph store failures and contract violations are recorded in the
    tracker and re-raised. The store is closed by ``stop()``.

    Example usage::

        from zonecell.pipeline.orchestrator import PipelineOrchestrator

        output_dirs = setup_output_directories(config.base_dir)
        with PipelineOrchestrator(config, output_dirs) as orch:
            orch.run()
    """

    def __init__(self, config: "InternalConfig", output_dirs: Mapping[str, Path],
                 store: Optional[GraphStore] = None, run_id: Optional[str] = None,
                 configure_logging: bool = True):
        """Initialize orchestrator.

        Parameters
        ----------
        config : InternalConfig
            Resolved runtime configuration.
        output_dirs : dict
            Paths from ``setup_output_directories()``.
        store : GraphStore, optional
            Graph store client. If None, a Neo4j client is built from
            ``config.graph`` on first use and closed by ``stop()``.
        run_id : str, optional
            Run identifier; defaults to a UTC timestamp.
        configure_logging : bool
            Install root log handlers on start (disable when embedding).
        """
        self.config = config
        self.output_dirs = output_dirs
        self.run_id = run_id or datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        self.configure_logging = configure_logging

        self._store = store
        self._owns_store = store is None
        self._loader = None
        self._constraints_ready = False
        self._backbone = None

        self.batcher = AssignmentBatcher(config.batcher.batch_size)
        self.tracker = None
        self._zones_seen: list[Zone] = []

        # Lifecycle state
        self._started = False
        self._stop_event = False
        self._start_time = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _setup_logging(self):
        """Configure root logger with file and console handlers."""
        log_level = getattr(logging, self.config.logging.level.upper(), logging.INFO)

        log_path = get_log_path(self.output_dirs, self.run_id)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        # Clear existing handlers and add new ones
        root = logging.getLogger()
        root.setLevel(log_level)
        for handler in root.handlers[:]:
            root.removeHandler(handler)

        fh = logging.FileHandler(log_path)
        fh.setLevel(log_level)
        fh.setFormatter(formatter)
        root.addHandler(fh)

        ch = logging.StreamHandler()
        ch.setLevel(log_level)
        ch.setFormatter(formatter)
        root.addHandler(ch)

        logger.info("Logging: level=%s, file=%s", logging.getLevelName(log_level), log_path)

    def _persist_runtime_config(self) -> Path:
        """Write the resolved config (secrets masked) next to the logs."""
        path = self.output_dirs["logs"] / f"runtime_config_{self.run_id}.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.config.masked_dump(), f, indent=2)
        logger.info("Runtime config: %s", path)
        return path

    def start(self):
        """Set up logging, the run tracker and the config snapshot. Idempotent."""
        if self._started:
            return
        self._started = True
        if self.configure_logging:
            self._setup_logging()

        self.tracker = RunTracker(get_tracker_path(self.output_dirs))
        self._persist_runtime_config()
        self._start_time = time.time()

        logger.info("=" * 60)
        logger.info("Zone pipeline run %s", self.run_id)
        logger.info("=" * 60)

    def stop(self):
        """Close the store and tracker and log run statistics.

        Safe to call multiple times.
        """
        if self._stop_event or not self._started:
            return
        self._stop_event = True

        if self._store is not None and self._owns_store:
            self._store.close()

        elapsed = time.time() - self._start_time if self._start_time else 0
        logger.info("=" * 60)
        logger.info("Run %s finished. Runtime: %.1f seconds", self.run_id, elapsed)

        if self.tracker:
            stats = self.tracker.get_statistics(self.run_id)
            logger.info("Stages: total=%d, completed=%d, failed=%d, cells=%d, loaded=%d",
                        stats.get('total', 0), stats.get('completed', 0), stats.get('failed', 0),
                        stats.get('total_cells', 0), stats.get('total_rows_loaded', 0))
            failed = self.tracker.failed_sources(self.run_id)
            if failed:
                logger.warning("Failed: %s", ", ".join(failed))
            self.tracker.close()

        logger.info("=" * 60)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()

    @property
    def store(self) -> GraphStore:
        if self._store is None:
            store = Neo4jGraphStore.from_config(self.config.graph)
            store.verify_connectivity()
            self._store = store
        return self._store

    @property
    def loader(self) -> GraphLoader:
        if self._loader is None:
            self._loader = GraphLoader(self.store)
        return self._loader

    def _ensure_constraints(self):
        if self._constraints_ready:
            return
        g = self.config.graph
        self.loader.ensure_unique_key_constraint(g.zone_label, "zone_id")
        self.loader.ensure_unique_key_constraint(g.cell_label, "h3_cell")
        self.loader.ensure_unique_key_constraint(g.partition_label, g.partition_key)
        self._constraints_ready = True

    def _upsert(self, label: str, key: str, records: Iterable[Mapping]) -> int:
        sent = 0
        for batch in self.batcher.batches(records):
            sent += self.loader.upsert_batch(label, key, batch)
        return sent

    # ------------------------------------------------------------------
    # Backbone
    # ------------------------------------------------------------------

    def load_backbone_table(self) -> BackboneTable:
        """Backbone lookup from ZoneCell.csv; empty (everything unlinked) if absent."""
        if self._backbone is not None:
            return self._backbone
        resolution = self.config.backbone.resolution
        path = get_backbone_path(self.output_dirs, self.config.backbone.lookup_path)
        if path.exists():
            self._backbone = read_backbone_csv(path, resolution)
        else:
            logger.warning("No backbone lookup at %s, all cells will be unlinked", path)
            self._backbone = BackboneTable.empty(resolution)
        return self._backbone

    def build_backbone(self, districts_path: Optional[str] = None) -> Path:
        """Polyfill district polygons and write ZoneCell.csv.

        Returns
        -------
        Path
            The written lookup file.
        """
        self.start()
        districts_path = districts_path or self.config.backbone.districts_path
        if not districts_path:
            raise ValueError("No districts file configured (backbone.districts_path)")

        self.tracker.start_stage(self.run_id, BACKBONE_SOURCE, "backbone")
        try:
            districts = read_district_rows(districts_path)
            rows = build_backbone_rows(districts, self.config.backbone.resolution)
            path = write_backbone_csv(
                rows, get_backbone_path(self.output_dirs, self.config.backbone.lookup_path)
            )
        except (OSError, ValueError) as e:
            self.tracker.fail_stage(self.run_id, BACKBONE_SOURCE, "backbone", str(e))
            raise

        self._backbone = BackboneTable.from_frame(rows, self.config.backbone.resolution)
        self.tracker.complete_stage(
            self.run_id, BACKBONE_SOURCE, "backbone",
            counters={"features": len(districts), "cells": len(rows)},
            output_path=path,
        )
        return path

    def load_backbone(self, table: Optional[BackboneTable] = None) -> dict:
        """Upsert partition nodes and backbone cells, then link cells to partitions."""
        self.start()
        table = table if table is not None else self.load_backbone_table()
        g = self.config.graph
        counts = {}

        self.tracker.start_stage(self.run_id, BACKBONE_SOURCE, "loaded")
        try:
            self._ensure_constraints()
            partitions = [
                {g.partition_key: p.partition_id, "name": p.name, "island": p.region}
                for p in table.partitions()
            ]
            counts[g.partition_label] = self._upsert(g.partition_label, g.partition_key, partitions)
            cells = (
                {"h3_cell": cell, "resolution": table.resolution,
                 g.partition_key: p.partition_id, "island": p.region}
                for cell, p in table.items()
            )
            counts[g.cell_label] = self._upsert(g.cell_label, "h3_cell", cells)
            counts[g.partition_relationship] = self.loader.link_by_shared_property(
                g.cell_label, g.partition_key, g.partition_relationship,
                g.partition_label, g.partition_key,
            )
        except (GraphStoreError, ContractViolation) as e:
            self.tracker.fail_stage(self.run_id, BACKBONE_SOURCE, "loaded", str(e))
            raise

        self.tracker.complete_stage(
            self.run_id, BACKBONE_SOURCE, "loaded",
            counters={"cells": len(table), "linked": counts[g.partition_relationship],
                      "rows_loaded": counts[g.partition_label] + counts[g.cell_label]},
        )
        logger.info("Backbone loaded: %d %s, %d %s, %d %s",
                    counts[g.partition_label], g.partition_label,
                    counts[g.cell_label], g.cell_label,
                    counts[g.partition_relationship], g.partition_relationship)
        return counts

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def _specs(self, sources: Optional[Iterable[str]]) -> list[SourceSpec]:
        names = list(sources) if sources else list(self.config.sources.enabled)
        return [get_source(name) for name in names]

    def generate(self, sources: Optional[Iterable[str]] = None) -> dict[str, SourceResult]:
        """Reduce each source and write its zone and cell tables.

        A source whose input file is missing is recorded as failed and
        skipped; every other error is recorded and re-raised.

        Returns
        -------
        dict
            Source name -> SourceResult (deduplicated assignments).
        """
        self.start()
        backbone = self.load_backbone_table()
        resolver = AncestorResolver(backbone) if len(backbone) else None
        processor = ZoneProcessor(self.config, resolver)

        results = {}
        for spec in self._specs(sources):
            path = get_input_path(self.output_dirs, spec.default_input,
                                  self.config.sources.inputs, spec.name)
            self.tracker.start_stage(self.run_id, spec.prefix, "generated")
            if not path.exists():
                logger.warning("%s: input %s not found, source skipped", spec.prefix, path)
                self.tracker.fail_stage(self.run_id, spec.prefix, "generated",
                                        f"input not found: {path}")
                continue

            logger.info("-" * 60)
            logger.info("%s: %s", spec.prefix, spec.title)
            result = None
            try:
                result = processor.process(spec, read_geojson_features(path))
                result = self._canonicalize(result)
                output = self._write_tables(result)
            except Exception as e:
                counters = result.stats.as_dict() if result is not None else None
                self.tracker.fail_stage(self.run_id, spec.prefix, "generated", str(e), counters)
                raise

            self._zones_seen.extend(result.zones)
            self.tracker.complete_stage(self.run_id, spec.prefix, "generated",
                                        counters=result.stats.as_dict(), output_path=output)
            results[spec.name] = result
        return results

    def _canonicalize(self, result: SourceResult) -> SourceResult:
        """Check zone identities across the run and drop duplicate assignments."""
        zones: dict[str, Zone] = {}
        for zone in result.zones:
            zones.setdefault(zone.zone_id, zone)
        self.batcher.check_zone_identities([*self._zones_seen, *zones.values()])

        kept = list(self.batcher.deduplicate(result.assignments))
        tiers = {res: [a for a in kept if a.resolution == res] for res in result.tiers}
        return SourceResult(spec=result.spec, zones=list(zones.values()), tiers=tiers,
                            stats=result.stats)

    def _write_tables(self, result: SourceResult) -> Path:
        spec = result.spec
        write_zones_csv(result.zones, get_cells_path(self.output_dirs, spec.zones_filename))
        last = None
        for resolution, rows in result.tiers.items():
            last = write_assignments_csv(
                rows, get_cells_path(self.output_dirs, spec.cells_filename(resolution))
            )
        return last

    def read_source_tables(self, spec: SourceSpec) -> SourceResult:
        """Rebuild a SourceResult from the CSV tables a previous run wrote."""
        zones = read_zones_csv(get_cells_path(self.output_dirs, spec.zones_filename),
                               spec.numeric_attributes)
        tiers = {}
        for resolution in spec.resolutions:
            path = get_cells_path(self.output_dirs, spec.cells_filename(resolution))
            tiers[resolution] = read_assignments_csv(path) if path.exists() else []
        stats = ReductionStats(source=spec.prefix, zones=len(zones))
        for resolution, rows in tiers.items():
            stats.cells_by_resolution[resolution] = len(rows)
        return SourceResult(spec=spec, zones=zones, tiers=tiers, stats=stats)

    # ------------------------------------------------------------------
    # Graph load
    # ------------------------------------------------------------------

    def _cell_record(self, a: ZoneCellAssignment) -> dict:
        return {
            "h3_cell": a.h3_cell,
            "resolution": a.resolution,
            self.config.graph.partition_key: a.partition_id,
            "island": a.partition_region,
            "parent_h3": a.parent_cell,
        }

    def load(self, results: Optional[Mapping[str, SourceResult]] = None,
             sources: Optional[Iterable[str]] = None) -> dict:
        """Load zones and cells into the graph.

        Parameters
        ----------
        results : dict, optional
            Output of ``generate``. If None, the sources' CSV tables are read.
        sources : list of str, optional
            Restricts which sources are read when ``results`` is None.

        Returns
        -------
        dict
            Source name -> load counters.
        """
        self.start()
        if results is None:
            results = {}
            for spec in self._specs(sources):
                if not get_cells_path(self.output_dirs, spec.zones_filename).exists():
                    logger.warning("%s: no generated tables, skipped", spec.prefix)
                    continue
                results[spec.name] = self.read_source_tables(spec)

        counts = {name: self.load_source(result) for name, result in results.items()}

        if counts:
            g = self.config.graph
            within = self.loader.link_by_shared_property(
                g.cell_label, g.partition_key, g.partition_relationship,
                g.partition_label, g.partition_key,
            )
            logger.info("%s links: %d", g.partition_relationship, within)
        return counts

    def load_source(self, result: SourceResult) -> dict:
        """Upsert one source's zones and cells and link them."""
        spec = result.spec
        g = self.config.graph
        assignments = result.assignments
        counts = {"zones": 0, "cells": 0, "links": 0}

        self.tracker.start_stage(self.run_id, spec.prefix, "loaded")
        try:
            self._ensure_constraints()
            zone_records = self.batcher.unique_by_key(
                (z.to_record() for z in result.zones), "zone_id"
            )
            counts["zones"] = self._upsert(g.zone_label, "zone_id", zone_records)

            cell_records = self.batcher.unique_by_key(
                (self._cell_record(a) for a in assignments), "h3_cell"
            )
            counts["cells"] = self._upsert(g.cell_label, "h3_cell", cell_records)

            links = (
                {"from": a.zone_id, "to": a.h3_cell, "resolution": a.resolution,
                 "version": a.version, "data_source": a.data_source,
                 "provenance": a.provenance}
                for a in assignments
            )
            for batch in self.batcher.batches(links):
                counts["links"] += self.loader.link_by_matched_keys(
                    g.zone_label, "zone_id", g.cell_relationship, g.cell_label, "h3_cell",
                    batch, qualifiers=("resolution",),
                    properties=("version", "data_source", "provenance"),
                )
        except (GraphStoreError, ContractViolation) as e:
            self.tracker.fail_stage(self.run_id, spec.prefix, "loaded", str(e),
                                    {"rows_loaded": counts["zones"] + counts["cells"]})
            raise

        self.tracker.complete_stage(
            self.run_id, spec.prefix, "loaded",
            counters={"zones": counts["zones"], "cells": counts["cells"],
                      "linked": counts["links"],
                      "rows_loaded": counts["zones"] + counts["cells"]},
        )
        logger.info("%s loaded: %d zones, %d cells, %d %s links", spec.prefix,
                    counts["zones"], counts["cells"], counts["links"], g.cell_relationship)
        return counts

    # ------------------------------------------------------------------
    # Pathways
    # ------------------------------------------------------------------

    def load_pathways(self, programs_path: Optional[str] = None) -> dict:
        """Build and load the career-pathways graph from programs.json."""
        self.start()
        path = Path(programs_path or self.config.sources.programs_path
                    or self.output_dirs["inputs"] / PROGRAMS_FILENAME)

        self.tracker.start_stage(self.run_id, PATHWAYS_SOURCE, "pathways")
        try:
            graph = build_pathway_graph(read_programs(path))
            counts = load_pathway_graph(graph, self.loader, self.batcher)
        except (OSError, ValueError, GraphStoreError, ContractViolation) as e:
            self.tracker.fail_stage(self.run_id, PATHWAYS_SOURCE, "pathways", str(e))
            raise

        self.tracker.complete_stage(
            self.run_id, PATHWAYS_SOURCE, "pathways",
            counters={"features": len(graph.nodes["ProgramOfStudy"]),
                      "skipped": len(graph.skipped),
                      "rows_loaded": sum(counts[label] for label in graph.nodes)},
        )
        return counts

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def verify(self) -> dict:
        """Log node counts per label, relationship counts and cells per island."""
        self.start()
        g = self.config.graph
        summary = {
            "nodes": {label: self.loader.count_nodes(label)
                      for label in (g.partition_label, g.cell_label, g.zone_label)},
            "relationships": {rel: self.loader.count_relationships(rel)
                              for rel in (g.partition_relationship, g.cell_relationship)},
            "cells_by_island": self.loader.count_by_property(g.cell_label, "island"),
        }

        logger.info("=" * 60)
        logger.info("Verification")
        for label, count in summary["nodes"].items():
            logger.info("  %-12s %d nodes", label, count)
        for rel, count in summary["relationships"].items():
            logger.info("  %-12s %d relationships", rel, count)
        for island, count in summary["cells_by_island"].items():
            logger.info("  %-12s %d cells", island or "(none)", count)
        return summary

    def run(self, sources: Optional[Iterable[str]] = None) -> dict:
        """Generate, load and verify in one go, then stop."""
        self.start()
        try:
            results = self.generate(sources)
            counts = self.load(results)
            summary = self.verify()
        finally:
            self.stop()
        return {"loaded": counts, "verification": summary}
