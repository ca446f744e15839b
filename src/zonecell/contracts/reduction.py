"""Reduction stage contract.

Enforces the guarantee that a Geometry Reducer emits valid, unique cells
at the requested resolution.
"""

from typing import Sequence

import h3

from zonecell.contracts.base import require


def assert_reduced(cells: Sequence[str], resolution: int) -> None:
    """Enforce reduction stage contract.

    Called after GeometryReducer.reduce(). An empty sequence is valid (the
    feature is a skip); anything else must be a duplicate-free sequence of
    valid cells at ``resolution``.

    Parameters
    ----------
    cells : sequence of str
        Reducer output for one feature.
    resolution : int
        Target resolution the reducer was configured with.

    Raises
    ------
    ContractViolation
        If a cell is invalid, at the wrong resolution, or repeated.
    """
    require(
        len(set(cells)) == len(cells),
        f"Reduction contract violated: {len(cells) - len(set(cells))} duplicate cell(s)"
    )

    for cell in cells:
        require(h3.is_valid_cell(cell),
                "Reduction contract violated: '%s' is not a valid cell", cell)
        actual = h3.get_resolution(cell)
        require(actual == resolution,
                "Reduction contract violated: '%s' is resolution %d, expected %d",
                cell, actual, resolution)
