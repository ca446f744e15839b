"""zonecell User Configuration.

This is the user-facing configuration file. Modify settings here to customize
the pipeline behavior. Advanced settings are the ParamConfig defaults in
src/zonecell/schemas/param.py

Usage:
    python scripts/run_zonecell_pipeline.py backbone scripts/user_config.py
    python scripts/run_zonecell_pipeline.py run scripts/user_config.py --sources alu,ial
    python scripts/run_zonecell_pipeline.py pathways scripts/user_config.py

Neo4j credentials come from the environment or a .env file
(NEO4J_URI, NEO4J_USER, NEO4J_PASSWORD, NEO4J_DATABASE).
"""

CONFIG = {
    # ========================================================================
    # OUTPUT & VERSION
    # ========================================================================
    "BASE_DIR": "./zonecell_output",   # inputs/, backbone/, cells/, logs/ live here
    "VERSION_TAG": "2026.01",          # Written on every assignment row

    # ========================================================================
    # BACKBONE
    # ========================================================================
    "DISTRICTS_PATH": "./zonecell_output/inputs/moku_districts.csv",  # moku_id,name,island,geojson
    "BACKBONE_PATH": None,             # None = <BASE_DIR>/backbone/ZoneCell.csv

    # ========================================================================
    # SOURCES
    # ========================================================================
    "SOURCES": ["alu", "hwy", "res", "gov", "hnl", "ial", "rail", "sch", "sta", "uni"],
    "INPUTS": {
        # Per-source input overrides; unlisted sources read their default
        # file name from <BASE_DIR>/inputs/
        # "ial": "/data/Important_Agricultural_Lands_(IAL).geojson",
    },
    "PROGRAMS_PATH": None,             # None = <BASE_DIR>/inputs/programs.json

    # ========================================================================
    # THROUGHPUT
    # ========================================================================
    "MAX_WORKERS": 4,                  # Reduction threads
    "BATCH_SIZE": 500,                 # Records per graph write

    "LOG_LEVEL": "INFO",
}
