"""Tests for the backbone partition table and its CSV form."""

import json

import h3
import pandas as pd
import pytest

from zonecell.spatial.backbone import (
    BACKBONE_COLUMNS,
    BackbonePartition,
    BackboneTable,
    build_backbone_rows,
    read_backbone_csv,
    write_backbone_csv,
)
from tests.helpers.geo import box, polygon

pytestmark = pytest.mark.unit


A = h3.latlng_to_cell(21.3, -157.8, 7)
B = h3.latlng_to_cell(19.6, -155.5, 7)
C = h3.latlng_to_cell(20.8, -156.3, 7)


def _districts(*rows):
    return pd.DataFrame(rows, columns=["moku_id", "name", "island", "geojson"])


def test_first_claim_wins():
    table = BackboneTable([
        (A, BackbonePartition("D1", "Kona", "Oahu")),
        (A, BackbonePartition("D2", "Ewa", "Oahu")),
    ])
    assert len(table) == 1
    assert table.lookup(A).partition_id == "D1"


def test_lookup_miss_returns_none():
    table = BackboneTable([(A, BackbonePartition("D1", "Kona", "Oahu"))])
    assert table.lookup(B) is None
    assert B not in table
    with pytest.raises(KeyError):
        table[B]


def test_partitions_are_distinct_in_first_seen_order():
    kona = BackbonePartition("D1", "Kona", "Oahu")
    hilo = BackbonePartition("D2", "Hilo", "Hawaii")
    table = BackboneTable([(A, kona), (B, hilo), (C, kona)])
    assert table.partitions() == [kona, hilo]


def test_from_frame_ignores_other_resolutions():
    df = pd.DataFrame([
        (A, 7, "D1", "Kona", "Oahu"),
        (h3.latlng_to_cell(21.3, -157.8, 8), 8, "D1", "Kona", "Oahu"),
    ], columns=BACKBONE_COLUMNS)
    table = BackboneTable.from_frame(df)
    assert list(table) == [A]


def test_from_frame_blank_island_becomes_none():
    df = pd.DataFrame([(A, 7, "D1", "Kona", "")], columns=BACKBONE_COLUMNS)
    assert BackboneTable.from_frame(df).lookup(A).region is None


def test_from_frame_normalizes_island_names():
    df = pd.DataFrame([
        (A, 7, "D1", "Kona", "Oahu"),
        (B, 7, "D2", "Hilo", "Big Island"),
    ], columns=BACKBONE_COLUMNS)
    table = BackboneTable.from_frame(df)
    assert table.lookup(A).region == "oahu"
    assert table.lookup(B).region == "hawaii"


def test_from_frame_requires_columns():
    with pytest.raises(ValueError, match="moku_id"):
        BackboneTable.from_frame(pd.DataFrame({"h3_index": [A], "resolution": [7]}))


def test_build_rows_polyfills_each_district():
    df = build_backbone_rows(_districts(
        ("D1", "Kona", "Oahu", json.dumps(polygon(box(0, 0, 0.1, 0.1)))),
    ))
    assert list(df.columns) == BACKBONE_COLUMNS
    assert len(df) > 0
    assert set(df["moku_id"]) == {"D1"}
    assert (df["resolution"] == 7).all()
    assert set(df["island"]) == {"oahu"}


def test_build_rows_skips_blank_and_invalid_geometry():
    df = build_backbone_rows(_districts(
        ("D1", "Kona", "Oahu", ""),
        ("D2", "Ewa", "Oahu", "{not json"),
        ("D3", "Hilo", "Hawaii", json.dumps({"type": "Polygon", "coordinates": 5})),
        ("D4", "Puna", "Hawaii", json.dumps(polygon(box(0, 0, 0.1, 0.1)))),
    ))
    assert set(df["moku_id"]) == {"D4"}


def test_csv_round_trip_preserves_lookup(temp_dir):
    df = build_backbone_rows(_districts(
        ("D1", "Kona", "Oahu", json.dumps(polygon(box(0, 0, 0.1, 0.1)))),
    ))
    path = write_backbone_csv(df, temp_dir / "backbone" / "ZoneCell.csv")
    table = read_backbone_csv(path)

    assert len(table) == len(df)
    first = df.iloc[0]
    assert table.lookup(first["h3_index"]) == BackbonePartition("D1", "Kona", "oahu")


def test_to_frame_matches_columns():
    table = BackboneTable([(A, BackbonePartition("D1", "Kona", None))])
    frame = table.to_frame()
    assert list(frame.columns) == BACKBONE_COLUMNS
    assert frame.iloc[0]["island"] == ""
