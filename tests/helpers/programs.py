"""A small programs.json payload shaped like the published one."""

import json


def _entry(title, level, level_type, info="", data=""):
    return {"TITLE": title, "LEVEL": level, "LEVEL_TYPE": level_type,
            "LEVEL_INFO": info, "LEVEL_DATA": data}


AFNR = "Agriculture Food and Natural Resources"

PROGRAMS = {
    "Food Systems (FS)": [
        _entry("OVERRIDE", 0, "CUSTOM", "PATHWAY_TITLE", "Food Systems"),
        _entry(AFNR, 0, "CUSTOM", "PATHWAY_DESCRIPTION", "Growing and processing food."),
        _entry(AFNR, 0, "EARLYCOLLEGE", "https://example.org/early", ""),
        _entry(AFNR, 1, "JOB_TITLE", "RELATED OCCUPATIONS", "45-2092, 45-2091"),
        _entry(AFNR, 2, "JOB_TITLE", "RELATED OCCUPATIONS", "45-2092"),
        _entry(AFNR, 1, "TRAINING", "SHORT-TERM TRAINING OPTIONS: CREDITED", "Agri Tech Cert"),
        _entry(AFNR, 2, "TRAINING", "INDUSTRY CERTIFICATIONS", "Hawaiʻi Farm Bureau Cert."),
        _entry(AFNR, 3, "TRAINING", "RECOMMENDED EDUCATION", "Not Available"),
        _entry(AFNR, 1, "OPTIONS", "OTHER OPTIONS", "Military Service"),
    ],
    "Natural Resources Management (NRM)": [
        _entry(AFNR + " Offered At 7 UH Community College Campuses", 0, "CUSTOM",
               "PATHWAY_TITLE", "Natural Resources Management"),
        _entry(AFNR, 1, "JOB_TITLE", "RELATED OCCUPATIONS", "19-1031"),
        _entry(AFNR, 1, "TRAINING", "SHORT-TERM TRAINING OPTIONS: CREDITED", "Agri Tech Cert"),
    ],
    "Welding": [
        _entry("Advanced Manufacturing", 0, "CUSTOM", "PATHWAY_TITLE", "Welding"),
        _entry("Advanced Manufacturing", 2, "TRAINING", "SHORT-TERM TRAINING: NON-CREDIT",
               "AWS Welding"),
    ],
    "Underwater Basket Weaving": [
        _entry("Advanced Manufacturing", 0, "CUSTOM", "PATHWAY_TITLE", "Baskets"),
    ],
    "Mystery Program (MP)": [
        _entry("pathway match title on button", 0, "CUSTOM", "PATHWAY_TITLE", "Mystery"),
    ],
}


def write_programs(path, programs=None):
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(PROGRAMS if programs is None else programs, f, ensure_ascii=False)
    return path
