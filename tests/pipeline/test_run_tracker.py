"""Tests for the SQLite run tracker."""

import sqlite3

import pytest

from zonecell.pipeline.run_tracker import RunTracker

pytestmark = [pytest.mark.unit, pytest.mark.pipeline]


def test_database_and_table_created(temp_dir):
    db = temp_dir / "nested" / "runs.db"
    with RunTracker(db):
        pass
    conn = sqlite3.connect(db)
    tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    conn.close()
    assert "source_runs" in tables


def test_start_then_complete_records_counters(tracker):
    tracker.start_stage("r1", "ALU", "generated")
    assert tracker.get_stage_status("r1", "ALU", "generated")["status"] == "running"

    tracker.complete_stage("r1", "ALU", "generated",
                           counters={"features": 10, "zones": 9, "cells": 9,
                                     "cells_by_resolution": {8: 9}},
                           output_path="cells/ALU_Zones_H3.csv")
    row = tracker.get_stage_status("r1", "ALU", "generated")
    assert row["status"] == "completed"
    assert row["features"] == 10
    assert row["zones"] == 9
    assert row["output_path"] == "cells/ALU_Zones_H3.csv"
    assert row["finished_at"] is not None


def test_failure_keeps_counters_and_error(tracker):
    tracker.start_stage("r1", "IAL", "loaded")
    tracker.fail_stage("r1", "IAL", "loaded", "store unavailable", {"rows_loaded": 40})
    row = tracker.get_stage_status("r1", "IAL", "loaded")
    assert row["status"] == "failed"
    assert row["error_message"] == "store unavailable"
    assert row["rows_loaded"] == 40
    assert tracker.failed_sources("r1") == ["IAL"]


def test_restart_clears_error(tracker):
    tracker.fail_stage("r1", "IAL", "loaded", "boom")
    tracker.start_stage("r1", "IAL", "loaded")
    row = tracker.get_stage_status("r1", "IAL", "loaded")
    assert row["status"] == "running"
    assert row["error_message"] is None


def test_unknown_stage_rejected(tracker):
    with pytest.raises(ValueError, match="Unknown stage"):
        tracker.start_stage("r1", "ALU", "published")


def test_missing_stage_is_none(tracker):
    assert tracker.get_stage_status("r1", "ALU", "generated") is None


def test_statistics_per_run(tracker):
    tracker.complete_stage("r1", "ALU", "generated", {"zones": 3, "cells": 3})
    tracker.complete_stage("r1", "ALU", "loaded", {"rows_loaded": 6})
    tracker.fail_stage("r1", "HWY", "generated", "input not found")
    tracker.start_stage("r1", "RES", "generated")
    tracker.complete_stage("r2", "ALU", "generated", {"zones": 100})

    stats = tracker.get_statistics("r1")
    assert stats["total"] == 4
    assert stats["completed"] == 2
    assert stats["failed"] == 1
    assert stats["running"] == 1
    assert stats["total_zones"] == 3
    assert stats["total_rows_loaded"] == 6
    assert tracker.get_statistics()["total_zones"] == 103


def test_get_run_in_insertion_order(tracker):
    tracker.start_stage("r1", "ALU", "generated")
    tracker.start_stage("r1", "ALU", "loaded")
    tracker.start_stage("r1", "HWY", "generated")
    assert [(r["source"], r["stage"]) for r in tracker.get_run("r1")] == [
        ("ALU", "generated"), ("ALU", "loaded"), ("HWY", "generated"),
    ]


def test_close_is_idempotent(temp_dir):
    t = RunTracker(temp_dir / "runs.db")
    t.close()
    t.close()
