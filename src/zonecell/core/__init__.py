"""Core records and table I/O."""

from zonecell.core.records import Zone, ZoneCellAssignment
from zonecell.core.tables import (
    read_assignments_csv,
    read_zones_csv,
    write_assignments_csv,
    write_zones_csv,
)

__all__ = [
    'Zone',
    'ZoneCellAssignment',
    'read_assignments_csv',
    'read_zones_csv',
    'write_assignments_csv',
    'write_zones_csv',
]
