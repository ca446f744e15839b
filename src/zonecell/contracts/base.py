"""The ``require`` check every stage contract is built from."""

from zonecell.contracts.failure import ContractViolation


def require(condition: bool, message: str, *args) -> None:
    """Raise ContractViolation unless ``condition`` holds.

    ``message`` is %-formatted with ``args`` only when the check fails, so
    per-cell and per-record checks in hot loops cost a comparison and
    nothing else.

    Parameters
    ----------
    condition : bool
        Invariant the previous stage guarantees.
    message : str
        Failure description, optionally with ``%s``-style placeholders.
    *args
        Values substituted into ``message`` on failure.

    Raises
    ------
    ContractViolation
        If ``condition`` is false. A violation is a pipeline bug, never
        a data defect.

    Examples
    --------
    >>> require(h3.get_resolution(cell) == 8, "Reduction contract violated: %s", cell)
    >>> require("zone_id" in df.columns, "Assignment contract violated: missing zone_id")
    """
    if not condition:
        raise ContractViolation(message % args if args else message)
