"""Formal pipeline invariants.

This file documents what each stage MUST produce. This is architecture, not code.
Use this file as a reviewer anchor and system reference.
"""

PIPELINE_INVARIANTS = {
    "reduction": [
        "Output is an ordered sequence of unique cells at the target resolution",
        "Centroid and midpoint strategies emit exactly one cell or none",
        "Empty output means the feature is a counted skip, never an error",
        "A failed sub-polygon drops only its own contribution",
    ],

    "ancestry": [
        "ancestor(ancestor(c, r2), r1) == ancestor(c, r1) for r1 < r2 < res(c)",
        "Requesting a finer resolution than the cell's own is an error",
        "A backbone miss yields an explicit empty link, never a default",
    ],

    "assignment": [
        "One row per (zone_id, resolution, h3_cell)",
        "A zone_id is produced by exactly one source feature",
        "Provenance names the source feature identifier and the strategy",
        "Batches preserve arrival order",
    ],

    "graph": [
        "Unique-key constraint exists before the first upsert of a label",
        "Upsert is MERGE by key: re-running never adds nodes",
        "Links MERGE on (from, type, to, qualifiers): re-running never adds edges",
        "Linking against an empty target label is a no-op returning 0",
    ],

    "tracker": [
        "SQLite table 'source_runs' has one row per (run_id, source, stage)",
        "Counters are flushed on success and on failure",
    ],
}

# Which stages are optional vs required
STAGE_REQUIREMENTS = {
    "reduction": "REQUIRED",   # Every feature is reduced or counted as skipped
    "ancestry": "OPTIONAL",    # Only when a backbone table is available
    "assignment": "REQUIRED",  # Every source writes its cell table(s)
    "graph": "OPTIONAL",       # Only for load/run commands
    "tracker": "REQUIRED",
}
