"""Static catalog of zone datasets.

Each ``SourceSpec`` states how one dataset becomes zones: which property
identifies a feature, which reduction strategy and resolution tiers apply,
how the island is derived, and what the provenance string says. The catalog
is built once at import and never mutated.
"""

import logging
import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Sequence

from zonecell.sources.features import Feature
from zonecell.sources.regions import normalize_island
from zonecell.spatial.reducer import ReductionStrategy, check_resolution

__all__ = [
    'ResolutionTier', 'SourceSpec', 'SOURCE_CATALOG', 'get_source',
    'dedupe_campuses', 'campus_zone_id',
]

logger = logging.getLogger(__name__)

PropertyFn = Callable[[Mapping[str, Any]], Optional[str]]


@dataclass(frozen=True)
class ResolutionTier:
    """One output resolution of a source.

    ``only_if_empty_at`` restricts the tier to zones that produced no cells
    at that coarser resolution (small parcels that fall between res-7 cell
    centers).
    """
    resolution: int
    only_if_empty_at: Optional[int] = None

    def __post_init__(self):
        check_resolution(self.resolution)
        if self.only_if_empty_at is not None and self.only_if_empty_at >= self.resolution:
            raise ValueError("only_if_empty_at must be coarser than the tier resolution")


def _text(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _number(value) -> Optional[float]:
    """Float for numeric attributes; None when missing, unparsable or not finite."""
    text = _text(value)
    if text is None:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _property(name: str) -> PropertyFn:
    return lambda props: _text(props.get(name))


def _prefixed(prefix: str, name: str) -> PropertyFn:
    def zone_id(props):
        key = _text(props.get(name))
        return f"{prefix}_{key}" if key is not None else None
    return zone_id


def _island_property(name: str = "island") -> PropertyFn:
    return lambda props: normalize_island(props.get(name))


def _fixed(value: str) -> PropertyFn:
    return lambda props: value


def _none(props) -> None:
    return None


@dataclass(frozen=True)
class SourceSpec:
    """How one dataset is reduced, identified and described.

    ``subject`` is formatted with ``key``, ``name`` and ``zone_id`` and is
    appended to ``"<Strategy> res<R> from "`` to build the provenance string.
    ``numeric_attributes`` names the attributes that are floats, so they are
    restored as floats when the zone table is read back.
    """
    name: str
    prefix: str
    title: str
    strategy: ReductionStrategy
    tiers: tuple[ResolutionTier, ...]
    data_source: str
    subject: str
    zone_id: PropertyFn
    feature_key: PropertyFn
    display_name: PropertyFn = _none
    region: PropertyFn = _none
    parent_resolution: Optional[int] = None
    attributes: Callable[[Mapping[str, Any]], dict] = lambda props: {}
    numeric_attributes: tuple[str, ...] = ()
    include: Optional[Callable[[Mapping[str, Any]], bool]] = None
    prepare: Optional[Callable[[Sequence[Feature]], list[Feature]]] = None
    default_input: Optional[str] = None

    def __post_init__(self):
        resolutions = [t.resolution for t in self.tiers]
        if not resolutions or resolutions != sorted(set(resolutions)):
            raise ValueError(f"{self.prefix}: tiers must be distinct and coarse to fine")
        for tier in self.tiers:
            if tier.only_if_empty_at is not None and tier.only_if_empty_at not in resolutions:
                raise ValueError(f"{self.prefix}: tier {tier.resolution} depends on missing tier")

    @property
    def multi_tier(self) -> bool:
        return len(self.tiers) > 1

    @property
    def resolutions(self) -> tuple[int, ...]:
        return tuple(t.resolution for t in self.tiers)

    def provenance(self, strategy_label: str, resolution: int, key: str,
                   zone_id: str, name: Optional[str]) -> str:
        subject = self.subject.format(key=key, zone_id=zone_id, name=name or "")
        return f"{strategy_label} res{resolution} from {subject}"

    def cells_filename(self, resolution: Optional[int] = None) -> str:
        if self.multi_tier and resolution is not None:
            return f"{self.prefix}_Zones_H3_res{resolution}.csv"
        return f"{self.prefix}_Zones_H3.csv"

    @property
    def zones_filename(self) -> str:
        return f"{self.prefix}_Zones.csv"


# =============================================================================
# Post-secondary campuses
# =============================================================================

def _is_main_campus(camp_id) -> bool:
    try:
        return int(float(camp_id)) == 0
    except (TypeError, ValueError):
        return False


def _campus_value(props: Mapping, field_name: str) -> Optional[str]:
    """Campus value for branches when present, otherwise the institution's."""
    camp = _text(props.get(f"camp_{field_name}"))
    if not _is_main_campus(props.get("camp_id")) and camp:
        return camp
    return _text(props.get(f"inst_{field_name}"))


def _int_text(value) -> Optional[str]:
    text = _text(value)
    if text is None:
        return None
    try:
        as_float = float(text)
    except ValueError:
        return text
    return str(int(as_float)) if as_float.is_integer() else text


def campus_zone_id(props: Mapping) -> Optional[str]:
    """``UNI_<inst>`` for a main campus, ``UNI_<inst>_<camp>`` for a branch."""
    inst = _int_text(props.get("inst_id"))
    if inst is None:
        return None
    if _is_main_campus(props.get("camp_id")):
        return f"UNI_{inst}"
    return f"UNI_{inst}_{_int_text(props.get('camp_id'))}"


def dedupe_campuses(features: Sequence[Feature]) -> list[Feature]:
    """Keep the first feature per (inst_id, camp_id).

    The source publishes one row per accreditation, so a campus with several
    accreditations repeats.
    """
    seen = {}
    for feature in features:
        key = (_int_text(feature.properties.get("inst_id")),
               _int_text(feature.properties.get("camp_id")))
        seen.setdefault(key, feature)
    dupes = len(features) - len(seen)
    if dupes:
        logger.info("UNI: %d duplicate accreditation row(s) dropped", dupes)
    return list(seen.values())


def _campus_attributes(props: Mapping) -> dict:
    return {
        "inst_id": _int_text(props.get("inst_id")),
        "inst_name": _text(props.get("inst_name")),
        "inst_opeid": _text(props.get("inst_opeid")),
        "inst_ipeds": _text(props.get("inst_ipeds")),
        "inst_url": _text(props.get("inst_url")),
        "inst_ph": _text(props.get("inst_ph")),
        "camp_id": _int_text(props.get("camp_id")),
        "camp_name": _text(props.get("camp_name")),
        "address": _campus_value(props, "addr"),
        "city": _campus_value(props, "city"),
        "state": _campus_value(props, "st"),
        "zip": _campus_value(props, "zip"),
    }


def _campus_name(props: Mapping) -> Optional[str]:
    camp_name = _text(props.get("camp_name"))
    if not _is_main_campus(props.get("camp_id")) and camp_name:
        return camp_name
    return _text(props.get("inst_name"))


# =============================================================================
# Catalog
# =============================================================================

def _ial_zone_id(props: Mapping) -> Optional[str]:
    docket = _text(props.get("docket_no"))
    return f"IAL_{docket.replace(' ', '_')}" if docket else None


_CATALOG = (
    SourceSpec(
        name="alu",
        prefix="ALU",
        title="Agricultural Land Use 2015 baseline",
        strategy=ReductionStrategy.CENTROID,
        tiers=(ResolutionTier(8),),
        data_source="ALU centroid 2026",
        subject="ALU objectid {key} polygon",
        zone_id=_prefixed("ALU", "objectid"),
        feature_key=_property("objectid"),
        display_name=_property("cropcatego"),
        region=_island_property(),
        attributes=lambda props: {"crop_category": _text(props.get("cropcatego")),
                                  "acres": _number(props.get("acres"))},
        numeric_attributes=("acres",),
        default_input="Agricultural_Land_Use_-_2015_Baseline.geojson",
    ),
    SourceSpec(
        name="hwy",
        prefix="HWY",
        title="HPMS highway segments",
        strategy=ReductionStrategy.MIDPOINT,
        tiers=(ResolutionTier(8),),
        data_source="HPMS midpoint 2026",
        subject="HPMS segment objectid {key}",
        zone_id=_prefixed("HWY", "objectid"),
        feature_key=_property("objectid"),
        region=_island_property(),
        default_input="Highway_Performance_Monitoring_System_Roads_for_Hawaii_(HPMS).geojson",
    ),
    SourceSpec(
        name="res",
        prefix="RES",
        title="Reserves",
        strategy=ReductionStrategy.CENTROID,
        tiers=(ResolutionTier(7),),
        data_source="Reserves centroid 2026",
        subject="reserve objectid {key} polygon",
        zone_id=_prefixed("RES", "objectid"),
        feature_key=_property("objectid"),
        region=_island_property(),
        default_input="Reserves.geojson",
    ),
    SourceSpec(
        name="gov",
        prefix="GOV",
        title="Government land ownership",
        strategy=ReductionStrategy.CENTROID,
        tiers=(ResolutionTier(8),),
        data_source="Govt land centroid 2026",
        subject="govt land objectid {key} polygon",
        zone_id=_prefixed("GOV", "objectid"),
        feature_key=_property("objectid"),
        region=_island_property(),
        default_input="Government_Land_Ownership_-_Detailed.geojson",
    ),
    SourceSpec(
        name="hnl",
        prefix="HNL",
        title="Honolulu zoning",
        strategy=ReductionStrategy.CENTROID,
        tiers=(ResolutionTier(8),),
        data_source="HNL zoning centroid 2026",
        subject="HNL zoning objectid {key} polygon",
        zone_id=_prefixed("HNL", "objectid"),
        feature_key=_property("objectid"),
        display_name=_property("zone_class"),
        region=_fixed("oahu"),
        attributes=lambda props: {"zone_class": _text(props.get("zone_class"))},
        default_input="Zoning_(City_and_County_of_Honolulu).geojson",
    ),
    SourceSpec(
        name="ial",
        prefix="IAL",
        title="Important Agricultural Lands",
        strategy=ReductionStrategy.POLYFILL,
        tiers=(ResolutionTier(7), ResolutionTier(8), ResolutionTier(9, only_if_empty_at=7)),
        data_source="IAL polyfill 2026",
        subject="IAL {key} polygon",
        zone_id=_ial_zone_id,
        feature_key=_property("docket_no"),
        display_name=_property("docket_no"),
        attributes=lambda props: {"acres": _number(props.get("acres"))},
        numeric_attributes=("acres",),
        default_input="Important_Agricultural_Lands_(IAL).geojson",
    ),
    SourceSpec(
        name="rail",
        prefix="RAIL",
        title="HART rail guideway",
        strategy=ReductionStrategy.LINE_SAMPLE,
        tiers=(ResolutionTier(10),),
        data_source="HART rail line sample 2026",
        subject="HART {name} center alignment",
        zone_id=_prefixed("RAIL", "OBJECTID"),
        feature_key=_property("OBJECTID"),
        display_name=_property("feature_name"),
        include=lambda props: props.get("feature_desc") == "Center Alignment",
        default_input="HART_Guideway.geojson",
    ),
    SourceSpec(
        name="sch",
        prefix="SCH",
        title="Public schools",
        strategy=ReductionStrategy.POINT,
        tiers=(ResolutionTier(14),),
        data_source="Schools intrazone 2026",
        subject="school objectid {key} ({name})",
        zone_id=_prefixed("SCH", "objectid"),
        feature_key=_property("objectid"),
        display_name=_property("sch_name"),
        region=_island_property(),
        parent_resolution=7,
        default_input="Schools.geojson",
    ),
    SourceSpec(
        name="sta",
        prefix="STA",
        title="HART rail stations",
        strategy=ReductionStrategy.POINT,
        tiers=(ResolutionTier(14),),
        data_source="HART stations intrazone 2026",
        subject="HART station {key} ({name})",
        zone_id=_prefixed("STA", "ID"),
        feature_key=_property("ID"),
        display_name=_property("STATION"),
        parent_resolution=8,
        attributes=lambda props: {
            "station_number": _text(props.get("ID")),
            "feis_name": _text(props.get("station_name_FEIS")),
            "global_id": _text(props.get("GlobalID")),
        },
        default_input="HART_Stations.geojson",
    ),
    SourceSpec(
        name="uni",
        prefix="UNI",
        title="Post-secondary campuses",
        strategy=ReductionStrategy.POINT,
        tiers=(ResolutionTier(14),),
        data_source="PostSecondary intrazone 2026",
        subject="post-secondary campus {zone_id} ({name})",
        zone_id=campus_zone_id,
        feature_key=campus_zone_id,
        display_name=_campus_name,
        parent_resolution=8,
        attributes=_campus_attributes,
        prepare=dedupe_campuses,
        default_input="PostSecondary_Institutions.geojson",
    ),
)

SOURCE_CATALOG: Mapping[str, SourceSpec] = MappingProxyType({s.name: s for s in _CATALOG})


def get_source(name: str) -> SourceSpec:
    """Look up a source by name (case-insensitive)."""
    try:
        return SOURCE_CATALOG[name.strip().lower()]
    except KeyError:
        raise ValueError(
            f"Unknown source '{name}'. Known: {', '.join(SOURCE_CATALOG)}"
        ) from None
