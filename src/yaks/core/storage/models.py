"""
Data models for the storage layer.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from yaks.core.codec.tree import EntryKind
from yaks.core.yaks.models import YakCollection

DEFAULT_REF = "refs/notes/yaks"


class AdvanceResult(str, Enum):
    """Outcome of a conditional ref update."""

    ADVANCED = "advanced"
    REJECTED = "rejected"


class Author(BaseModel):
    """Commit author identity."""

    model_config = ConfigDict(frozen=True)

    name: str
    email: str


class Snapshot(BaseModel):
    """
    A collection as published at some commit.

    ``content_id`` is None when the ref did not exist (first use).
    """

    model_config = ConfigDict(frozen=True)

    collection: YakCollection = Field(default_factory=YakCollection)
    content_id: str | None = None

    @property
    def exists(self) -> bool:
        return self.content_id is not None


class ObjectEntry(BaseModel):
    """A path in a stored tree, pointing at a blob or tree object."""

    model_config = ConfigDict(frozen=True)

    path: str
    kind: EntryKind
    object_id: str
