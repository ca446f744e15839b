"""Centralized failure taxonomy for the zonecell pipeline.

Contracts fail fast, loud, and once. Pipeline bugs raise ContractViolation;
identity bugs and store failures get their own types so callers can map
them to distinct exit signals.

Skippable input defects (null geometry, unconvertible rings) are not
contract violations; the processor counts them and never raises.
"""

from typing import Optional


class ContractViolation(RuntimeError):
    """Raised when a pipeline contract is violated.

    This indicates a bug in pipeline logic, not bad user input or expected
    data sparsity. It means a pipeline stage did not produce the invariants
    it promised.

    Key distinction:
    - ValueError: User/config error (handled by Pydantic) or bad identifiers
    - ContractViolation: Pipeline bug (programmer error)
    - SkipReason: Input defects, counted and logged, never raised
    """
    pass


class IdentityConflictError(ContractViolation):
    """Raised when two distinct source features claim the same natural key.

    Signals an upstream identity-generation bug (for example two parcels
    sharing one ``zone_id``). Raised by the batcher before any write, and by
    the store client when the database rejects a write on a unique-key
    constraint.
    """

    def __init__(self, message: str, key: Optional[str] = None, values: tuple = ()):
        super().__init__(message)
        self.key = key
        self.values = tuple(values)


class GraphStoreError(RuntimeError):
    """Raised when the graph store is unavailable or a write fails.

    Fatal for the current run. Every write is a merge-by-key, so the run is
    safe to retry in full.
    """
    pass
