"""Assignment stage contract.

Enforces the guarantee that an assignment table has the output schema and
that no zone emits the same cell twice at one resolution.
"""

import pandas as pd

from zonecell.contracts.base import require

ASSIGNMENT_REQUIRED_COLUMNS = (
    "zone_id",
    "h3_cell",
    "resolution",
    "version",
    "data_source",
    "provenance",
)


def assert_assignment_frame(df: pd.DataFrame, min_expected_rows: int = 0) -> None:
    """Enforce assignment stage contract.

    Called before an assignment table is written to disk and after one is
    read back for loading. Only structure is checked; cell validity is the
    reduction contract's job.

    Parameters
    ----------
    df : pd.DataFrame
        One row per (zone, cell, resolution).

    min_expected_rows : int, optional
        Minimum number of rows expected (default 0, allows empty sources)

    Raises
    ------
    ContractViolation
        If structural requirements are violated
    """
    require(
        isinstance(df, pd.DataFrame),
        f"Assignment contract violated: output is {type(df)}, expected DataFrame"
    )

    for col in ASSIGNMENT_REQUIRED_COLUMNS:
        require(
            col in df.columns,
            f"Assignment contract violated: missing required column '{col}'"
        )

    if len(df) > 0:
        require(
            df["zone_id"].notna().all() and (df["zone_id"] != "").all(),
            "Assignment contract violated: zone_id must be set for all rows"
        )
        duplicated = df.duplicated(subset=["zone_id", "resolution", "h3_cell"])
        require(
            not duplicated.any(),
            f"Assignment contract violated: {int(duplicated.sum())} repeated "
            "(zone_id, resolution, h3_cell) row(s)"
        )

    require(
        len(df) >= min_expected_rows,
        f"Assignment contract violated: got {len(df)} rows, expected >= {min_expected_rows}"
    )
