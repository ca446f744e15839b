"""Pipeline contracts: fail-fast enforcement of stage invariants.

Contracts fail immediately and loudly when pipeline stages don't produce
their promised invariants.

Key principle:
- Pydantic validates config correctness
- Contracts validate pipeline correctness
- Reducers handle geometry edge cases (skips)
"""

from zonecell.contracts.failure import (
    ContractViolation,
    GraphStoreError,
    IdentityConflictError,
)
from zonecell.contracts.base import require
from zonecell.contracts.reduction import assert_reduced
from zonecell.contracts.assignment import assert_assignment_frame
from zonecell.contracts.graph import assert_keyed_records

__all__ = [
    "ContractViolation",
    "GraphStoreError",
    "IdentityConflictError",
    "require",
    "assert_reduced",
    "assert_assignment_frame",
    "assert_keyed_records",
]
