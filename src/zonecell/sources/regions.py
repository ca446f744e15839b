"""Island name normalization.

Unmapped names fall through lower-cased rather than raising; the datasets
use a handful of spellings for the same island.
"""

from types import MappingProxyType
from typing import Optional

__all__ = ['ISLAND_MAP', 'normalize_island']

ISLAND_MAP = MappingProxyType({
    'big island': 'hawaii',
    'hawaii': 'hawaii',
    'kauai': 'kauai',
    'maui': 'maui',
    'oahu': 'oahu',
    'molokai': 'molokai',
    'lanai': 'lanai',
    'kahoolawe': 'kahoolawe',
    'kure': 'kure',
})


def normalize_island(name) -> Optional[str]:
    """Canonical island key for ``name``; None for missing or blank names."""
    if name is None:
        return None
    key = str(name).strip().lower()
    if not key:
        return None
    return ISLAND_MAP.get(key, key)
