"""Command-line interface modules for zonecell pipeline execution.

This package contains core execution logic, making scripts/ optional and deletable.
"""

from zonecell.cli.run_zonecell import main, run_zonecell_command

__all__ = ['main', 'run_zonecell_command']
