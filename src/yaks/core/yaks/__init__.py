"""
Yak entity model.

Mutations live in ``yaks.core.yaks.operations``.
"""

from yaks.core.yaks.models import (
    ID_SEPARATOR,
    Yak,
    YakCollection,
    ancestor_ids,
    join_id,
    leaf_name,
    parent_path,
)

__all__ = [
    "ID_SEPARATOR",
    "Yak",
    "YakCollection",
    "ancestor_ids",
    "join_id",
    "leaf_name",
    "parent_path",
]
