#!/usr/bin/env python3
"""zonecell Pipeline Runner.

Usage:
    python scripts/run_zonecell_pipeline.py backbone scripts/user_config.py
    python scripts/run_zonecell_pipeline.py load-backbone scripts/user_config.py
    python scripts/run_zonecell_pipeline.py run scripts/user_config.py --sources ial,sch
    python scripts/run_zonecell_pipeline.py pathways scripts/user_config.py --programs programs.json

Note: User config in scripts/user_config.py, expert defaults in
src/zonecell/schemas/param.py
"""

import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(project_root / "src"))

from zonecell.cli.run_zonecell import main


if __name__ == "__main__":
    sys.exit(main())
