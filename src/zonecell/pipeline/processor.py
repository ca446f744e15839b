"""Zone processing: features -> zones and cell assignments.

Reduces every feature of one source at each resolution tier, resolves each
cell's backbone ancestor, and records why features were skipped. Reduction
runs on a bounded thread pool; results keep input order.
"""

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional, Sequence

from zonecell.contracts import assert_reduced
from zonecell.core.records import Zone, ZoneCellAssignment
from zonecell.sources.catalog import SourceSpec
from zonecell.sources.features import Feature
from zonecell.spatial.ancestry import AncestorResolver, ancestor
from zonecell.spatial.reducer import STRATEGY_LABELS, GeometryReducer

if TYPE_CHECKING:
    from zonecell.schemas import InternalConfig

__all__ = ['SkipReason', 'ReductionStats', 'SourceResult', 'ZoneProcessor']

logger = logging.getLogger(__name__)


class SkipReason(str, Enum):
    MISSING_ID = "missing_id"
    NULL_GEOMETRY = "null_geometry"
    INVALID_GEOMETRY = "invalid_geometry"
    UNSUPPORTED_GEOMETRY = "unsupported_geometry"
    EMPTY_REDUCTION = "empty_reduction"


@dataclass
class ReductionStats:
    """Per-source counters, flushed to the run tracker."""
    source: str
    features: int = 0
    filtered: int = 0
    skipped: int = 0
    zones: int = 0
    linked: int = 0
    unlinked: int = 0
    cells_by_resolution: Counter = field(default_factory=Counter)
    skip_reasons: Counter = field(default_factory=Counter)

    @property
    def cells(self) -> int:
        return sum(self.cells_by_resolution.values())

    def skip(self, reason: SkipReason) -> None:
        self.skipped += 1
        self.skip_reasons[reason.value] += 1

    def as_dict(self) -> dict:
        return {
            "source": self.source,
            "features": self.features,
            "filtered": self.filtered,
            "skipped": self.skipped,
            "zones": self.zones,
            "cells": self.cells,
            "linked": self.linked,
            "unlinked": self.unlinked,
            "cells_by_resolution": dict(self.cells_by_resolution),
            "skip_reasons": dict(self.skip_reasons),
        }


@dataclass
class SourceResult:
    spec: SourceSpec
    zones: list[Zone]
    tiers: dict[int, list[ZoneCellAssignment]]
    stats: ReductionStats

    @property
    def assignments(self) -> list[ZoneCellAssignment]:
        return [a for rows in self.tiers.values() for a in rows]


@dataclass
class _Candidate:
    zone: Zone
    feature: Feature
    cells: dict[int, tuple[str, ...]] = field(default_factory=dict)


class ZoneProcessor:
    """Turn the features of one source into zones and cell assignments.

    Parameters
    ----------
    config : InternalConfig
        Supplies ``version_tag`` and ``reducer.max_workers``.
    resolver : AncestorResolver, optional
        Backbone join. Without one, every assignment is unlinked.

    Notes
    -----
    A feature is skipped (counted, logged, no output rows) when it has no
    identifier, a null or unparsable geometry, a geometry type the source's
    strategy does not handle, or when it yields no cells at any tier.
    """

    def __init__(self, config: "InternalConfig", resolver: Optional[AncestorResolver] = None):
        self.version = config.version_tag
        self.max_workers = config.reducer.max_workers
        self.resolver = resolver

    def process(self, spec: SourceSpec, features: Sequence[Feature]) -> SourceResult:
        stats = ReductionStats(source=spec.prefix, features=len(features))

        if spec.prepare is not None:
            features = spec.prepare(features)
        if spec.include is not None:
            kept = [f for f in features if spec.include(f.properties)]
            stats.filtered = len(features) - len(kept)
            features = kept

        candidates = self._candidates(spec, features, stats)

        for tier in spec.tiers:
            reducer = GeometryReducer(spec.strategy, tier.resolution)
            eligible = candidates
            if tier.only_if_empty_at is not None:
                eligible = [c for c in candidates if not c.cells.get(tier.only_if_empty_at)]
            reduced = self._reduce_all(reducer, [c.feature.geometry for c in eligible])
            for candidate, cells in zip(eligible, reduced):
                candidate.cells[tier.resolution] = cells

        zones = []
        tiers: dict[int, list[ZoneCellAssignment]] = {t.resolution: [] for t in spec.tiers}
        for candidate in candidates:
            if not any(candidate.cells.values()):
                stats.skip(SkipReason.EMPTY_REDUCTION)
                logger.warning("SKIP %s: no cells at res %s",
                               candidate.zone.zone_id, list(spec.resolutions))
                continue
            zones.append(candidate.zone)
            for tier in spec.tiers:
                for cell in candidate.cells.get(tier.resolution, ()):
                    tiers[tier.resolution].append(
                        self._assign(spec, candidate, cell, tier.resolution, stats)
                    )

        stats.zones = len(zones)
        self._log_summary(spec, tiers, stats)
        return SourceResult(spec=spec, zones=zones, tiers=tiers, stats=stats)

    def _candidates(self, spec: SourceSpec, features: Sequence[Feature],
                    stats: ReductionStats) -> list[_Candidate]:
        checker = GeometryReducer(spec.strategy, spec.tiers[0].resolution)
        candidates = []
        for feature in features:
            props = feature.properties
            zone_id = spec.zone_id(props)
            key = spec.feature_key(props)
            if zone_id is None or key is None:
                stats.skip(SkipReason.MISSING_ID)
                logger.warning("SKIP %s feature without identifier", spec.prefix)
                continue
            if feature.geometry is None:
                reason = (SkipReason.INVALID_GEOMETRY if feature.geometry_error
                          else SkipReason.NULL_GEOMETRY)
                stats.skip(reason)
                logger.warning("SKIP %s: %s %s", zone_id, reason.value,
                               feature.geometry_error or "")
                continue
            if not checker.accepts(feature.geometry):
                stats.skip(SkipReason.UNSUPPORTED_GEOMETRY)
                logger.warning("SKIP %s: %s geometry not handled by %s", zone_id,
                               type(feature.geometry).__name__, spec.strategy.value)
                continue

            zone = Zone(
                zone_id=zone_id,
                source=spec.prefix,
                feature_key=key,
                name=spec.display_name(props),
                region=spec.region(props),
                attributes=spec.attributes(props),
            )
            candidates.append(_Candidate(zone, feature))
        return candidates

    def _reduce_all(self, reducer: GeometryReducer, geometries: list) -> list[tuple[str, ...]]:
        if len(geometries) > 1 and self.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers,
                                    thread_name_prefix="reducer") as pool:
                results = list(pool.map(reducer.reduce, geometries))
        else:
            results = [reducer.reduce(g) for g in geometries]
        for cells in results:
            assert_reduced(cells, reducer.resolution)
        return results

    def _assign(self, spec: SourceSpec, candidate: _Candidate, cell: str,
                resolution: int, stats: ReductionStats) -> ZoneCellAssignment:
        zone = candidate.zone
        stats.cells_by_resolution[resolution] += 1

        partition = None
        if self.resolver is not None:
            partition = self.resolver.resolve(cell).partition
        if partition is not None:
            stats.linked += 1
        else:
            stats.unlinked += 1

        region = zone.region
        if region is None and partition is not None:
            region = partition.region

        parent = None
        if spec.parent_resolution is not None and spec.parent_resolution < resolution:
            parent = ancestor(cell, spec.parent_resolution)

        label = STRATEGY_LABELS[spec.strategy]
        return ZoneCellAssignment(
            zone_id=zone.zone_id,
            h3_cell=cell,
            resolution=resolution,
            feature_key=zone.feature_key,
            version=self.version,
            data_source=spec.data_source,
            provenance=spec.provenance(label, resolution, zone.feature_key,
                                       zone.zone_id, zone.name),
            partition_id=partition.partition_id if partition else None,
            region=region,
            parent_cell=parent,
            partition_region=partition.region if partition else None,
        )

    def _log_summary(self, spec: SourceSpec, tiers: dict, stats: ReductionStats) -> None:
        logger.info(
            "%s: %d features, %d filtered, %d skipped, %d zones",
            spec.prefix, stats.features, stats.filtered, stats.skipped, stats.zones,
        )
        for resolution, rows in tiers.items():
            unique = len({a.h3_cell for a in rows})
            logger.info("%s res %d: %d rows, %d unique cells", spec.prefix, resolution,
                        len(rows), unique)
        if self.resolver is not None:
            logger.info("%s backbone links: %d linked, %d unlinked",
                        spec.prefix, stats.linked, stats.unlinked)
        by_region = Counter(a.region or "(none)" for rows in tiers.values() for a in rows)
        for region, count in by_region.most_common():
            logger.info("  %s: %d", region, count)
        if stats.skip_reasons:
            logger.info("%s skip reasons: %s", spec.prefix, dict(stats.skip_reasons))
