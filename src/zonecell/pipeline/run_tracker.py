"""SQLite-based run progress tracker.

Records each source's progress through the pipeline stages (generated,
loaded) for every run, with the reduction counters and any error. Counters
are written on success and on failure so an aborted run still leaves an
accurate ledger behind.
"""

import sqlite3
import logging
import threading
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional, Dict, List

logger = logging.getLogger(__name__)

STAGES = ("generated", "loaded", "backbone", "pathways")

_COUNTER_COLUMNS = ("features", "skipped", "zones", "cells", "linked", "unlinked", "rows_loaded")


class RunTracker:
    """Tracks per-run, per-source stage status and counters.

    **Database Schema:**

    SQLite table `source_runs`, one row per (run_id, source, stage):

    - Status: running, completed, failed
    - Counters: features, skipped, zones, cells, linked, unlinked, rows_loaded
    - output_path: CSV written (generated stage)
    - error_message: set when the stage failed
    - started_at / finished_at (ISO, UTC)

    **Thread Safety:**

    All methods are thread-safe via internal locking.

    **Typical Usage:**

        tracker = RunTracker("output/logs/zonecell_runs.db")
        tracker.start_stage(run_id, "ALU", "generated")
        ...
        tracker.complete_stage(run_id, "ALU", "generated", counters=stats.as_dict())
        tracker.close()
    """

    def __init__(self, db_path: Path | str):
        """Initialize tracker.

        Parameters
        ----------
        db_path : Path or str
            Path to SQLite database file. Created if doesn't exist.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = None
        self._lock = threading.Lock()

        self._init_database()
        logger.info("Run tracker initialized: %s", self.db_path)

    def _get_connection(self) -> sqlite3.Connection:
        """Get the shared database connection."""
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def _init_database(self):
        """Create database schema if it doesn't exist."""
        conn = self._get_connection()

        with self._lock:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS source_runs (
                    run_id TEXT NOT NULL,
                    source TEXT NOT NULL,
                    stage TEXT NOT NULL,

                    status TEXT DEFAULT 'running',
                    error_message TEXT,
                    output_path TEXT,

                    features INTEGER,
                    skipped INTEGER,
                    zones INTEGER,
                    cells INTEGER,
                    linked INTEGER,
                    unlinked INTEGER,
                    rows_loaded INTEGER,

                    started_at TEXT,
                    finished_at TEXT,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,

                    PRIMARY KEY (run_id, source, stage)
                )
            """)

            conn.execute("CREATE INDEX IF NOT EXISTS idx_run_status ON source_runs(run_id, status)")
            conn.commit()

    @staticmethod
    def _check_stage(stage: str):
        if stage not in STAGES:
            raise ValueError(f"Unknown stage '{stage}'. Expected one of {STAGES}")

    def start_stage(self, run_id: str, source: str, stage: str) -> None:
        """Mark a stage as running (re-starting clears the previous error)."""
        self._check_stage(stage)
        conn = self._get_connection()
        now = datetime.now(timezone.utc).isoformat()

        with self._lock:
            conn.execute("""
                INSERT INTO source_runs (run_id, source, stage, status, started_at, updated_at)
                VALUES (?, ?, ?, 'running', ?, ?)
                ON CONFLICT(run_id, source, stage) DO UPDATE SET
                    status = 'running', error_message = NULL, finished_at = NULL,
                    started_at = excluded.started_at, updated_at = excluded.updated_at
            """, (run_id, source, stage, now, now))
            conn.commit()

        logger.debug("Stage started: %s %s %s", run_id, source, stage)

    def _finish(self, run_id: str, source: str, stage: str, status: str,
                counters: Optional[Dict], output_path: Optional[Path],
                error: Optional[str]) -> None:
        self._check_stage(stage)
        counters = counters or {}
        values = {c: counters.get(c) for c in _COUNTER_COLUMNS}
        now = datetime.now(timezone.utc).isoformat()
        conn = self._get_connection()

        with self._lock:
            conn.execute("""
                INSERT INTO source_runs (run_id, source, stage, started_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(run_id, source, stage) DO NOTHING
            """, (run_id, source, stage, now))

            conn.execute(f"""
                UPDATE source_runs SET
                    status = ?, error_message = ?, output_path = COALESCE(?, output_path),
                    {', '.join(f'{c} = COALESCE(?, {c})' for c in _COUNTER_COLUMNS)},
                    finished_at = ?, updated_at = ?
                WHERE run_id = ? AND source = ? AND stage = ?
            """, (
                status,
                error,
                str(output_path) if output_path else None,
                *[values[c] for c in _COUNTER_COLUMNS],
                now,
                now,
                run_id, source, stage,
            ))
            conn.commit()

    def complete_stage(self, run_id: str, source: str, stage: str,
                       counters: Optional[Dict] = None,
                       output_path: Optional[Path] = None) -> None:
        """Mark a stage completed and store its counters.

        Parameters
        ----------
        counters : dict, optional
            Any of features, skipped, zones, cells, linked, unlinked,
            rows_loaded. Other keys are ignored.
        output_path : Path, optional
            File the stage wrote.
        """
        self._finish(run_id, source, stage, "completed", counters, output_path, None)
        logger.debug("Stage completed: %s %s %s", run_id, source, stage)

    def fail_stage(self, run_id: str, source: str, stage: str, error: str,
                   counters: Optional[Dict] = None) -> None:
        """Mark a stage failed, keeping whatever counters were reached."""
        self._finish(run_id, source, stage, "failed", counters, None, error)
        logger.error("Stage failed: %s %s %s: %s", run_id, source, stage, error)

    def get_stage_status(self, run_id: str, source: str, stage: str) -> Optional[Dict]:
        """Return the stage row as a dict, or None if it was never recorded."""
        conn = self._get_connection()

        with self._lock:
            cursor = conn.execute(
                "SELECT * FROM source_runs WHERE run_id = ? AND source = ? AND stage = ?",
                (run_id, source, stage),
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def get_run(self, run_id: str) -> List[Dict]:
        """All stage rows of a run, in insertion order."""
        conn = self._get_connection()

        with self._lock:
            cursor = conn.execute(
                "SELECT * FROM source_runs WHERE run_id = ? ORDER BY rowid", (run_id,)
            )
            return [dict(row) for row in cursor.fetchall()]

    def failed_sources(self, run_id: str) -> List[str]:
        return sorted({row["source"] for row in self.get_run(run_id) if row["status"] == "failed"})

    def get_statistics(self, run_id: Optional[str] = None) -> Dict:
        """Summary statistics for one run (or all runs).

        Returns
        -------
        dict
            total, completed, failed, running stage counts and summed
            zones, cells and rows_loaded.
        """
        conn = self._get_connection()
        where_clause = "WHERE run_id = ?" if run_id else ""
        params = (run_id,) if run_id else ()

        with self._lock:
            cursor = conn.execute(f"""
                SELECT
                    COUNT(*) as total,
                    SUM(CASE WHEN status = 'completed' THEN 1 ELSE 0 END) as completed,
                    SUM(CASE WHEN status = 'failed' THEN 1 ELSE 0 END) as failed,
                    SUM(CASE WHEN status = 'running' THEN 1 ELSE 0 END) as running,
                    SUM(zones) as total_zones,
                    SUM(cells) as total_cells,
                    SUM(rows_loaded) as total_rows_loaded
                FROM source_runs
                {where_clause}
            """, params)
            row = cursor.fetchone()
            stats = dict(row) if row else {}
        return {k: (v or 0) for k, v in stats.items()}

    def close(self):
        """Close database connection. Safe to call multiple times."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
