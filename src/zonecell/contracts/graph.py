"""Graph load contract.

Every record sent to an upsert must carry its natural key.
"""

from typing import Mapping, Sequence

from zonecell.contracts.base import require


def assert_keyed_records(records: Sequence[Mapping], key_property: str, label: str) -> None:
    """Enforce that each record has a non-empty value for ``key_property``.

    Raises
    ------
    ContractViolation
        If any record lacks the key.
    """
    for i, record in enumerate(records):
        value = record.get(key_property)
        require(value is not None and value != "",
                "Graph contract violated: %s record %d has no '%s'", label, i, key_property)
