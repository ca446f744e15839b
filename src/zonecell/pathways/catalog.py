"""Static lookup tables for the career-pathways graph.

``programs.json`` keys programs by their display title and tags every entry
with a cluster TITLE; these tables map both onto stable graph ids.
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

__all__ = [
    'Cluster', 'CLUSTER_MAP', 'PROGRAM_SUFFIX', 'STAGE_MAP', 'IGNORED_TITLES',
    'slugify', 'resolve_cluster', 'stage_for', 'training_category',
]


@dataclass(frozen=True)
class Cluster:
    id: str
    name: str
    topic: int


_AFNR = Cluster("AFNR", "Agriculture, Food, and Natural Resources", 2)
_EDU = Cluster("EDU", "Education", 7)

CLUSTER_MAP: Mapping[str, Cluster] = MappingProxyType({
    "Advanced Manufacturing": Cluster("ADV_MFG", "Advanced Manufacturing", 1),
    "Agriculture Food and Natural Resources": _AFNR,
    "Agriculture Food and Natural Resources Offered At 7 UH Community College Campuses": _AFNR,
    "Architectural Engineering": Cluster(
        "ARCH_ENG", "Architectural Design and Engineering Technology", 3),
    "Building and Construction": Cluster("BUILD_CONST", "Building and Construction", 4),
    "Business Management, Finance, and Marketing": Cluster(
        "BUS_FIN_MKT", "Business Management, Finance, and Marketing", 5),
    "Culture Arts": Cluster("CULT_ARTS", "Cultural Arts, Media, and Entertainment", 6),
    "Education Support": _EDU,
    "Education Teaching": _EDU,
    "Energy": Cluster("ENERGY", "Energy", 8),
    "Health Services": Cluster("HEALTH", "Health Services", 9),
    "Hospitality Tourism": Cluster("HOSP_TOUR", "Hospitality, Tourism, and Recreation", 10),
    "Information Technology": Cluster(
        "IT", "Information Technology and Digital Transformation", 11),
    "Law and Public Safety": Cluster("LAW_SAFETY", "Law and Public Safety", 12),
    "Transportation Services": Cluster("TRANSPORT", "Transportation Services", 13),
})

# Program title -> ProgramOfStudy id suffix
PROGRAM_SUFFIX: Mapping[str, str] = MappingProxyType({
    "Ag Food Production Business (AFP)": "AFP",
    "Alternative Fuels Technology (AFT)": "AFT",
    "Animal Systems (ANS)": "ANS",
    "Architectural Design (AD)": "AD",
    "Artificial Intelligence (AI)": "AI",
    "Automation and Robotics Technology (ART)": "ART",
    "Automotive Collision Repair (ACR)": "ACR",
    "Automotive Maintenance and Light Repair (MLR)": "MLR",
    "Aviation Maintenance Technology (AMT)": "AMT",
    "Business Management (BUS MGMT)": "BUS_MGMT",
    "Culinary Arts (CA)": "CA",
    "Cybersecurity (Cyber)": "CYBER",
    "Diagnostic Services (DS)": "DS",
    "Digital Design (DD)": "DD",
    "Electro-Mechanical Technology (EMT)": "EMT",
    "Elementary School (K-6th Grade)": "ELEMENTARY",
    "Emergency Medical Services (EMS/EMT)": "EMS_EMT",
    "Engineering Technology (ENG TECH)": "ENG_TECH",
    "Entrepreneurship (ENTRE)": "ENTRE",
    "Fashion and Artisan Design (FAD)": "FAD",
    "Film and Media Production (FMP)": "FMP",
    "Financial Management (FIN MGMT)": "FIN_MGMT",
    "Fire and Emergency Services (FES)": "FES",
    "Food Systems (FS)": "FS",
    "Human Performance Therapeutic Services (HPTS)": "HPTS",
    "Law Enforcement Services (LES)": "LES",
    "Marine Maintenance Technology (MMT)": "MMT",
    "Marketing Management (MRKT MGMT)": "MRKT_MGMT",
    "Mechanical, Electrical, and Plumbing (MEP) Systems": "MEP",
    "Middle/High School (6th-12th Grade)": "MIDDLE_HIGH",
    "Natural Resources Management (NRM)": "NRM",
    "Networking": "NETWORKING",
    "Nursing Services (NS)": "NS",
    "Power Grid Technology (PGT)": "PGT",
    "Pre-Law": "PRE_LAW",
    "Preschool/Early Childhood (birth-3rd. Grade)": "PRESCHOOL",
    "Programming": "PROGRAMMING",
    "Public Health Services (PHS)": "PHS",
    "Residential and Commercial Construction": "RES_COMM_CONST",
    "School Counselor (HSTB Licensed)": "SCHOOL_COUNSELOR",
    "School Psychologist": "SCHOOL_PSYCHOLOGIST",
    "School Social Worker": "SCHOOL_SOCIAL_WORKER",
    "Supply Chain and Logistics Technology (SCLT)": "SCLT",
    "Sustainable Energies Technology (SET)": "SET",
    "Sustainable Hospitality and Tourism Management (SHTM)": "SHTM",
    "Web Design and Development (WDD)": "WDD",
    "Welding": "WELDING",
})

STAGE_MAP: Mapping[int, str] = MappingProxyType({1: "entry", 2: "cc", 3: "university"})

# Entry TITLEs that are page furniture, not clusters
IGNORED_TITLES = frozenset({"OVERRIDE", "pathway match title on button"})

_QUOTES = re.compile("[ʻ'‘’]")
_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]+")


def slugify(text: str) -> str:
    """Id-safe slug: okina and quotes dropped, other runs of non-alphanumerics
    collapsed to ``_``, capped at 80 characters.

    >>> slugify("Hawaiʻi Farm Bureau Cert.")
    'Hawaii_Farm_Bureau_Cert'
    """
    text = _QUOTES.sub("", text)
    text = _NON_ALNUM.sub("_", text).strip("_")
    return text[:80]


def resolve_cluster(entries: Iterable[Mapping[str, Any]]) -> Optional[Cluster]:
    """First known cluster among the entries' TITLEs, or None."""
    for entry in entries:
        title = entry.get("TITLE")
        if title in IGNORED_TITLES:
            continue
        cluster = CLUSTER_MAP.get(title)
        if cluster is not None:
            return cluster
    return None


def stage_for(level, default: Optional[str] = None) -> Optional[str]:
    """Stage name for an entry LEVEL (1 entry, 2 cc, 3 university)."""
    try:
        return STAGE_MAP.get(int(level), default)
    except (TypeError, ValueError):
        return default


def training_category(info: str) -> str:
    if "SHORT-TERM TRAINING OPTIONS: CREDITED" in info:
        return "short_term_credited"
    if "SHORT-TERM TRAINING OPTIONS: NON-CREDIT" in info or "SHORT-TERM TRAINING: NON-CREDIT" in info:
        return "short_term_noncredit"
    if "RECOMMENDED EDUCATION" in info:
        return "recommended_education"
    return "other"
