"""Tests for ZoneProcessor: skips, tiers, backbone linkage and provenance."""

import h3
import pytest

from zonecell.pipeline.processor import SkipReason, ZoneProcessor
from zonecell.sources.catalog import get_source
from zonecell.sources.features import Feature, features_from_collection
from zonecell.spatial.ancestry import AncestorResolver
from zonecell.spatial.backbone import BackbonePartition, BackboneTable
from tests.helpers.geo import box, collection, feature, line, point, polygon

pytestmark = [pytest.mark.unit, pytest.mark.pipeline]


def _features(*raw):
    return features_from_collection(collection(*raw))


def _far_res9_child(lat, lng):
    """Res-9 descendant of a res-7 cell whose center is farthest from the parent's."""
    parent = h3.latlng_to_cell(lat, lng, 7)
    center = h3.cell_to_latlng(parent)
    return max(h3.cell_to_children(parent, 9),
               key=lambda c: h3.great_circle_distance(center, h3.cell_to_latlng(c)))


def test_centroid_source_emits_one_assignment_per_zone(pipeline_config):
    result = ZoneProcessor(pipeline_config).process(get_source("alu"), _features(
        feature({"objectid": 1, "island": "Oahu", "cropcatego": "Coffee"},
                polygon(box(0, 0, 1, 1, closed=False))),
    ))

    assert [z.zone_id for z in result.zones] == ["ALU_1"]
    assert result.zones[0].region == "oahu"
    assert result.zones[0].name == "Coffee"
    (a,) = result.assignments
    assert a.h3_cell == h3.latlng_to_cell(0.5, 0.5, 8)
    assert a.resolution == 8
    assert a.version == "2026.01"
    assert a.provenance == "Centroid res8 from ALU objectid 1 polygon"
    assert a.partition_id is None


def test_null_geometry_is_counted_skip(pipeline_config):
    result = ZoneProcessor(pipeline_config).process(get_source("alu"), _features(
        feature({"objectid": 1}, None),
    ))
    assert result.zones == []
    assert result.assignments == []
    assert result.stats.skipped == 1
    assert result.stats.skip_reasons == {SkipReason.NULL_GEOMETRY.value: 1}


def test_invalid_geometry_is_counted_skip(pipeline_config):
    features = [Feature({"objectid": 1}, None, "Point coordinates malformed")]
    result = ZoneProcessor(pipeline_config).process(get_source("alu"), features)
    assert result.stats.skip_reasons == {"invalid_geometry": 1}


def test_missing_identifier_is_counted_skip(pipeline_config):
    result = ZoneProcessor(pipeline_config).process(get_source("alu"), _features(
        feature({"cropcatego": "Coffee"}, polygon(box(0, 0, 1, 1, closed=False))),
    ))
    assert result.zones == []
    assert result.stats.skip_reasons == {"missing_id": 1}


def test_unsupported_geometry_type_is_counted_skip(pipeline_config):
    result = ZoneProcessor(pipeline_config).process(get_source("alu"), _features(
        feature({"objectid": 1}, point(-157.8, 21.3)),
        feature({"objectid": 2}, polygon(box(0, 0, 1, 1, closed=False))),
    ))
    assert [z.zone_id for z in result.zones] == ["ALU_2"]
    assert result.stats.skip_reasons == {"unsupported_geometry": 1}
    assert result.stats.features == 2


def test_empty_reduction_is_counted_skip(pipeline_config):
    degenerate = {"type": "Polygon", "coordinates": [[[0, 0], [1, 1], [0, 0]]]}
    result = ZoneProcessor(pipeline_config).process(get_source("ial"), _features(
        feature({"docket_no": "DR 1"}, degenerate),
    ))
    assert result.zones == []
    assert result.stats.skip_reasons == {"empty_reduction": 1}


def test_ial_fine_tier_only_for_zones_empty_at_res7(pipeline_config):
    small = _far_res9_child(21.45, -158.0)
    lat, lng = h3.cell_to_latlng(small)
    d = 0.001
    result = ZoneProcessor(pipeline_config).process(get_source("ial"), _features(
        feature({"docket_no": "DR 1"}, polygon(box(lng - d, lat - d, lng + d, lat + d))),
        feature({"docket_no": "DR 2"}, polygon(box(-157.9, 21.3, -157.8, 21.4))),
    ))

    by_zone = {}
    for a in result.assignments:
        by_zone.setdefault((a.zone_id, a.resolution), []).append(a.h3_cell)

    assert ("IAL_DR_1", 7) not in by_zone
    assert small in by_zone[("IAL_DR_1", 9)]
    assert by_zone[("IAL_DR_2", 7)]
    assert by_zone[("IAL_DR_2", 8)]
    assert ("IAL_DR_2", 9) not in by_zone
    assert set(result.tiers) == {7, 8, 9}


def test_point_source_records_parent_cell(pipeline_config):
    result = ZoneProcessor(pipeline_config).process(get_source("sch"), _features(
        feature({"objectid": 5, "sch_name": "Kaimuki High", "island": "Oahu"},
                point(-157.8, 21.29)),
    ))
    (a,) = result.assignments
    assert a.resolution == 14
    assert a.parent_cell == h3.cell_to_parent(a.h3_cell, 7)
    assert a.provenance == "Point res14 from school objectid 5 (Kaimuki High)"


def test_rail_filter_counts_excluded_features(pipeline_config):
    result = ZoneProcessor(pipeline_config).process(get_source("rail"), _features(
        feature({"OBJECTID": 1, "feature_desc": "Center Alignment"},
                line([-158.0, 21.38], [-157.95, 21.39])),
        feature({"OBJECTID": 2, "feature_desc": "Edge"},
                line([-158.0, 21.38], [-157.95, 21.39])),
    ))
    assert result.stats.filtered == 1
    assert [z.zone_id for z in result.zones] == ["RAIL_1"]
    assert len(result.assignments) == 2


def test_backbone_links_and_region_fallback(pipeline_config):
    cell7 = h3.latlng_to_cell(21.3, -157.8, 7)
    lat, lng = h3.cell_to_latlng(cell7)
    table = BackboneTable([(cell7, BackbonePartition("D1", "Kona", "oahu"))])
    processor = ZoneProcessor(pipeline_config, AncestorResolver(table))

    result = processor.process(get_source("hnl"), _features(
        feature({"objectid": 1},
                polygon(box(lng - 0.001, lat - 0.001, lng + 0.001, lat + 0.001, closed=False))),
        feature({"objectid": 2}, polygon(box(0, 0, 1, 1, closed=False))),
    ))
    linked, unlinked = result.assignments
    assert linked.partition_id == "D1"
    assert unlinked.partition_id is None
    assert result.stats.linked == 1
    assert result.stats.unlinked == 1


def test_region_from_partition_when_feature_has_none(pipeline_config):
    cell7 = h3.latlng_to_cell(21.3, -157.8, 7)
    lat, lng = h3.cell_to_latlng(cell7)
    table = BackboneTable([(cell7, BackbonePartition("D1", "Kona", "oahu"))])
    result = ZoneProcessor(pipeline_config, AncestorResolver(table)).process(
        get_source("sta"),
        _features(feature({"ID": "S1", "STATION": "Ala Moana"}, point(lng, lat))),
    )
    (a,) = result.assignments
    assert result.zones[0].region is None
    assert a.region == "oahu"
    assert a.partition_region == "oahu"


def test_partition_region_is_kept_apart_from_zone_region(pipeline_config):
    cell7 = h3.latlng_to_cell(21.3, -157.8, 7)
    lat, lng = h3.cell_to_latlng(cell7)
    table = BackboneTable([(cell7, BackbonePartition("D1", "Kona", "oahu"))])
    result = ZoneProcessor(pipeline_config, AncestorResolver(table)).process(
        get_source("alu"),
        _features(feature({"objectid": 1, "island": "Maui"},
                          polygon(box(lng - 0.001, lat - 0.001, lng + 0.001, lat + 0.001,
                                      closed=False)))),
    )
    (a,) = result.assignments
    assert a.partition_id == "D1"
    assert a.region == "maui"
    assert a.partition_region == "oahu"


def test_unlinked_cell_has_no_partition_region(pipeline_config):
    result = ZoneProcessor(pipeline_config).process(get_source("alu"), _features(
        feature({"objectid": 1, "island": "Oahu"}, polygon(box(0, 0, 1, 1, closed=False))),
    ))
    (a,) = result.assignments
    assert a.region == "oahu"
    assert a.partition_region is None


def test_output_order_matches_input_with_worker_pool(make_config):
    config = make_config(max_workers=4)
    raw = [
        feature({"objectid": i}, polygon(box(i * 0.1, 0, i * 0.1 + 0.05, 0.05, closed=False)))
        for i in range(20)
    ]
    result = ZoneProcessor(config).process(get_source("gov"), _features(*raw))

    assert [z.zone_id for z in result.zones] == [f"GOV_{i}" for i in range(20)]
    expected = [
        h3.latlng_to_cell(0.025, i * 0.1 + 0.025, 8) for i in range(20)
    ]
    assert [a.h3_cell for a in result.assignments] == expected


def test_campus_duplicates_collapse_before_reduction(pipeline_config):
    result = ZoneProcessor(pipeline_config).process(get_source("uni"), _features(
        feature({"inst_id": 1, "camp_id": 0, "inst_name": "UH"}, point(-157.81, 21.30)),
        feature({"inst_id": 1, "camp_id": 0, "inst_name": "UH"}, point(-157.81, 21.30)),
    ))
    assert [z.zone_id for z in result.zones] == ["UNI_1"]
    assert len(result.assignments) == 1
