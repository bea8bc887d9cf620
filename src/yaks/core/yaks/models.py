"""
Yak data models.

A yak is a node in a forest of work items. Its ``id`` is the full
slash-delimited path ("parent/child"), so the name and the parent are
derived from the id rather than stored alongside it.

All path splitting goes through ``leaf_name`` and ``parent_path``.
"""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator

ID_SEPARATOR = "/"


def leaf_name(yak_id: str) -> str:
    """Return the last segment of an id ("a/b/c" -> "c")."""
    _, sep, tail = yak_id.rpartition(ID_SEPARATOR)
    return tail if sep else yak_id


def parent_path(yak_id: str) -> str | None:
    """Return the id of the parent ("a/b/c" -> "a/b"), or None for a root."""
    head, sep, _ = yak_id.rpartition(ID_SEPARATOR)
    return head if sep else None


def join_id(parent_id: str | None, name: str) -> str:
    """Build a full id from an optional parent id and a name."""
    if parent_id is None:
        return name
    return f"{parent_id}{ID_SEPARATOR}{name}"


def ancestor_ids(yak_id: str) -> list[str]:
    """Return every ancestor id of *yak_id*, outermost first."""
    ancestors: list[str] = []
    current = parent_path(yak_id)
    while current is not None:
        ancestors.append(current)
        current = parent_path(current)
    ancestors.reverse()
    return ancestors


class Yak(BaseModel):
    """
    A single hierarchical work item.

    Example:
        >>> yak = Yak(id="dx/rust")
        >>> yak.name, yak.parent_id
        ('rust', 'dx')
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Full slash-delimited path, unique in a collection")
    done: bool = Field(default=False, description="Completion flag")
    context: str | None = Field(default=None, description="Free-text notes")

    @field_validator("context")
    @classmethod
    def normalize_context(cls, v: str | None) -> str | None:
        """Strip surrounding whitespace; blank notes are no notes."""
        if v is None:
            return None
        return v.strip() or None

    @property
    def name(self) -> str:
        return leaf_name(self.id)

    @property
    def parent_id(self) -> str | None:
        return parent_path(self.id)

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


class YakCollection(BaseModel):
    """
    Immutable set of yaks keyed by id.

    ``roots`` is derived from ``yaks`` on every access and is never stored,
    so it cannot drift out of sync with the entities. Queries never raise:
    unknown ids yield empty results.
    """

    model_config = ConfigDict(frozen=True)

    yaks: dict[str, Yak] = Field(default_factory=dict)

    @classmethod
    def from_yaks(cls, yaks: Iterable[Yak]) -> YakCollection:
        return cls(yaks={yak.id: yak for yak in yaks})

    # ------------------------------------------------------------------
    # Container protocol
    # ------------------------------------------------------------------

    def __contains__(self, yak_id: object) -> bool:
        return yak_id in self.yaks

    def __len__(self) -> int:
        return len(self.yaks)

    def values(self) -> list[Yak]:
        """All yaks ordered by id."""
        return [self.yaks[yak_id] for yak_id in sorted(self.yaks)]

    def get(self, yak_id: str) -> Yak | None:
        return self.yaks.get(yak_id)

    @property
    def ids(self) -> list[str]:
        return sorted(self.yaks)

    @property
    def roots(self) -> list[str]:
        """Sorted ids of every yak without a parent."""
        return sorted(yak.id for yak in self.yaks.values() if yak.parent_id is None)

    # ------------------------------------------------------------------
    # Hierarchy queries
    # ------------------------------------------------------------------

    def children(self, yak_id: str) -> list[Yak]:
        """Direct children of *yak_id*, ordered by id."""
        return sorted(
            (yak for yak in self.yaks.values() if yak.parent_id == yak_id),
            key=lambda yak: yak.id,
        )

    def descendants(self, yak_id: str) -> list[Yak]:
        """Transitive children of *yak_id* in pre-order."""
        result: list[Yak] = []
        stack = list(reversed(self.children(yak_id)))
        while stack:
            yak = stack.pop()
            result.append(yak)
            stack.extend(reversed(self.children(yak.id)))
        return result

    def ancestors(self, yak_id: str) -> list[Yak]:
        """Ancestors of *yak_id* present in the collection, outermost first."""
        return [self.yaks[a] for a in ancestor_ids(yak_id) if a in self.yaks]

    def has_incomplete_children(self, yak_id: str) -> bool:
        return any(not child.done for child in self.children(yak_id))

    def is_ancestor(self, candidate_ancestor_id: str, yak_id: str) -> bool:
        """True if *candidate_ancestor_id* is reached walking up from *yak_id*."""
        current = self.yaks.get(yak_id)
        while current is not None and current.parent_id is not None:
            if current.parent_id == candidate_ancestor_id:
                return True
            current = self.yaks.get(current.parent_id)
        return False

    # ------------------------------------------------------------------
    # Copy helpers (always return a fresh collection)
    # ------------------------------------------------------------------

    def with_yaks(self, *yaks: Yak) -> YakCollection:
        updated = dict(self.yaks)
        for yak in yaks:
            updated[yak.id] = yak
        return YakCollection(yaks=updated)

    def without(self, yak_ids: Iterable[str]) -> YakCollection:
        removed = set(yak_ids)
        return YakCollection(
            yaks={yak_id: yak for yak_id, yak in self.yaks.items() if yak_id not in removed}
        )
