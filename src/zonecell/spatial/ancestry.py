"""Structural ancestor lookup and backbone linkage.

The ancestor of a cell is computed from the cell code (h3 parent
traversal), never re-derived from coordinates, so
``ancestor(ancestor(c, r2), r1) == ancestor(c, r1)`` always holds.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import h3

from zonecell.spatial.backbone import BackbonePartition, BackboneTable

__all__ = ['ancestor', 'AncestorLink', 'AncestorResolver']

logger = logging.getLogger(__name__)


def ancestor(cell: str, resolution: int) -> str:
    """Return the unique ancestor of ``cell`` at ``resolution``.

    Parameters
    ----------
    cell : str
        Valid H3 cell.
    resolution : int
        Target resolution, no finer than the cell's own. Asking for the
        cell's own resolution returns the cell.

    Raises
    ------
    ValueError
        If ``cell`` is not a valid cell or ``resolution`` is finer than it.
    """
    if not h3.is_valid_cell(cell):
        raise ValueError(f"Not a valid cell: {cell!r}")
    own = h3.get_resolution(cell)
    if resolution > own:
        raise ValueError(
            f"Cannot take ancestor of res-{own} cell {cell} at finer resolution {resolution}"
        )
    if resolution < 0:
        raise ValueError(f"Resolution must be >= 0, got {resolution}")
    if resolution == own:
        return cell
    return h3.cell_to_parent(cell, resolution)


@dataclass(frozen=True)
class AncestorLink:
    """Result of resolving one cell against the backbone.

    ``partition`` is None when the ancestor has no backbone entry or the cell
    is coarser than the backbone. Downstream code keeps that as an empty link.
    """
    ancestor_cell: Optional[str]
    partition: Optional[BackbonePartition]

    @property
    def partition_id(self) -> Optional[str]:
        return self.partition.partition_id if self.partition else None

    @property
    def is_linked(self) -> bool:
        return self.partition is not None


class AncestorResolver:
    """Join cells of any resolution to a read-only backbone table.

    The table is immutable once built, so one resolver can be shared by all
    reduction workers without locking.
    """

    def __init__(self, backbone: BackboneTable):
        self.backbone = backbone
        self.resolution = backbone.resolution

    def resolve(self, cell: str) -> AncestorLink:
        """Return the backbone ancestor of ``cell`` and its partition, if any."""
        if h3.get_resolution(cell) < self.resolution:
            return AncestorLink(None, None)
        parent = ancestor(cell, self.resolution)
        return AncestorLink(parent, self.backbone.lookup(parent))
