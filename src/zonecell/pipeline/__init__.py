"""Pipeline modules.

- orchestrator: Stage runner and lifecycle
- processor: Features -> zones and cell assignments
- batcher: Deduplication and batching for the loader
- run_tracker: SQLite-based per-source run tracking
"""

from zonecell.pipeline.orchestrator import PipelineOrchestrator
from zonecell.pipeline.processor import ZoneProcessor, SkipReason, ReductionStats, SourceResult
from zonecell.pipeline.batcher import AssignmentBatcher
from zonecell.pipeline.run_tracker import RunTracker

__all__ = [
    "PipelineOrchestrator",
    "ZoneProcessor",
    "SkipReason",
    "ReductionStats",
    "SourceResult",
    "AssignmentBatcher",
    "RunTracker",
]
