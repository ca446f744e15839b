"""CSV boundary for zone and assignment tables."""

import pandas as pd
import pytest

from zonecell.contracts import ContractViolation
from zonecell.core.records import Zone, ZoneCellAssignment
from zonecell.core.tables import (
    ASSIGNMENT_COLUMNS,
    ZONE_COLUMNS,
    read_assignments_csv,
    read_zones_csv,
    write_assignments_csv,
    write_zones_csv,
)

pytestmark = pytest.mark.unit


def _assignment(**overrides):
    values = dict(
        zone_id="SCH_5", h3_cell="8e2a1008b2c2d27", resolution=14, feature_key="5",
        version="2026.01", data_source="Schools intrazone 2026",
        provenance="Point res14 from school objectid 5 (Kaimuki, High)",
    )
    values.update(overrides)
    return ZoneCellAssignment(**values)


def test_assignment_columns_and_blank_optionals(temp_dir):
    path = write_assignments_csv([_assignment()], temp_dir / "cells" / "SCH_Zones_H3.csv")
    df = pd.read_csv(path, dtype=str, keep_default_na=False)

    assert list(df.columns) == ASSIGNMENT_COLUMNS
    row = df.iloc[0]
    assert row["moku_id"] == ""
    assert row["parent_h3"] == ""
    assert row["moku_island"] == ""
    assert row["resolution"] == "14"


def test_assignments_read_back_unchanged(temp_dir):
    rows = [
        _assignment(),
        _assignment(zone_id="SCH_6", feature_key="6", partition_id="D1",
                    region="maui", parent_cell="872a1008bffffff",
                    partition_region="oahu"),
    ]
    path = write_assignments_csv(rows, temp_dir / "a.csv")
    assert read_assignments_csv(path) == rows


def test_write_rejects_repeated_assignment(temp_dir):
    with pytest.raises(ContractViolation, match="repeated"):
        write_assignments_csv([_assignment(), _assignment()], temp_dir / "a.csv")


def test_empty_tier_writes_header_only(temp_dir):
    path = write_assignments_csv([], temp_dir / "IAL_Zones_H3_res9.csv")
    assert path.read_text().strip() == ",".join(ASSIGNMENT_COLUMNS)
    assert read_assignments_csv(path) == []


def test_zones_keep_attributes_as_extra_columns(temp_dir):
    zones = [
        Zone("UNI_1", "UNI", "UNI_1", name="UH", region=None,
             attributes={"inst_id": "1", "inst_url": None}),
    ]
    path = write_zones_csv(zones, temp_dir / "UNI_Zones.csv")
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    assert list(df.columns) == ZONE_COLUMNS + ["inst_id", "inst_url"]

    (zone,) = read_zones_csv(path)
    assert zone.name == "UH"
    assert zone.region is None
    assert dict(zone.attributes) == {"inst_id": "1", "inst_url": None}


def test_numeric_columns_read_back_as_floats(temp_dir):
    zones = [
        Zone("ALU_1", "ALU", "1", attributes={"acres": 12.5, "crop_category": "Coffee"}),
        Zone("ALU_2", "ALU", "2", attributes={"acres": None, "crop_category": "Taro"}),
        Zone("ALU_3", "ALU", "3", attributes={"acres": 4.0, "crop_category": "0042"}),
    ]
    path = write_zones_csv(zones, temp_dir / "ALU_Zones.csv")

    back = read_zones_csv(path, numeric_columns=("acres",))

    assert [dict(z.attributes) for z in back] == [dict(z.attributes) for z in zones]
    assert isinstance(back[0].attributes["acres"], float)


def test_undeclared_columns_stay_text(temp_dir):
    zones = [Zone("ALU_1", "ALU", "1", attributes={"acres": 12.5})]
    (zone,) = read_zones_csv(write_zones_csv(zones, temp_dir / "z.csv"))
    assert zone.attributes["acres"] == "12.5"


def test_zone_ids_stay_text(temp_dir):
    zones = [Zone("ALU_007", "ALU", "007")]
    (zone,) = read_zones_csv(write_zones_csv(zones, temp_dir / "z.csv"))
    assert zone.feature_key == "007"


def test_zone_table_requires_columns(temp_dir):
    path = temp_dir / "z.csv"
    path.write_text("zone_id,name\nA,b\n")
    with pytest.raises(ValueError, match="source"):
        read_zones_csv(path)


def test_zone_record_for_graph():
    record = Zone("ALU_1", "ALU", "1", name="Coffee", region="oahu",
                  attributes={"acres": 2.5}).to_record()
    assert record == {"acres": 2.5, "zone_id": "ALU_1", "source": "ALU",
                      "feature_key": "1", "name": "Coffee", "island": "oahu"}
