"""
Plain directory storage for the local working copy of a yak collection.

The directory uses the same layout as the shared tree, so ``.yaks/`` can be
inspected and edited with ordinary file tools:

    .yaks/
    ├── .sync-state.json        (root-level file, not a yak)
    └── parent/
        ├── .yak
        ├── done
        └── child/
            ├── .yak
            └── context.md
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from yaks.core.codec.layout import CONTEXT_FILE, DONE_FILE, MARKER_FILE
from yaks.core.codec.tree import TreeEntry, decode, decode_content
from yaks.core.yaks.models import ID_SEPARATOR, YakCollection

logger = logging.getLogger(__name__)

DEFAULT_YAK_DIR = ".yaks"


class DirectoryStore:
    """
    Load and save a collection as a directory tree.

    Saving is incremental: only directories and metadata files that differ
    from the desired state are touched.

    Example:
        >>> store = DirectoryStore(Path(".yaks"))
        >>> collection = store.load()
        >>> store.save(collection)
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        return self.path.is_dir()

    def _yak_dir(self, yak_id: str) -> Path:
        return self.path.joinpath(*yak_id.split(ID_SEPARATOR))

    def entries(self) -> list[TreeEntry]:
        """Flatten the directory into tree entries, reading only context files."""
        if not self.exists():
            return []

        entries: list[TreeEntry] = []
        for dirpath, dirnames, filenames in os.walk(self.path):
            dirnames.sort()
            current = Path(dirpath)
            relative = current.relative_to(self.path).as_posix()
            if relative != ".":
                entries.append(TreeEntry.tree(relative))

            for filename in sorted(filenames):
                file_path = current / filename
                rel_file = file_path.relative_to(self.path).as_posix()
                if filename == CONTEXT_FILE:
                    content = decode_content(file_path.read_bytes(), str(file_path))
                    entries.append(TreeEntry.blob(rel_file, content))
                else:
                    entries.append(TreeEntry.blob(rel_file))
        return entries

    def load(self) -> YakCollection:
        """Read the collection; a missing directory is an empty collection."""
        collection = decode(self.entries())
        logger.debug("Loaded %d yaks from %s", len(collection), self.path)
        return collection

    def save(self, collection: YakCollection) -> None:
        """Make the directory hold exactly *collection*."""
        current = self.load()

        # Deepest first, so a removed parent never hides a removed child
        removed = sorted(
            (yak_id for yak_id in current.ids if yak_id not in collection),
            key=lambda yak_id: yak_id.count(ID_SEPARATOR),
            reverse=True,
        )
        for yak_id in removed:
            yak_dir = self._yak_dir(yak_id)
            if yak_dir.exists():
                shutil.rmtree(yak_dir)
                logger.debug("Removed %s", yak_dir)

        for yak in collection.values():
            yak_dir = self._yak_dir(yak.id)
            yak_dir.mkdir(parents=True, exist_ok=True)

            marker = yak_dir / MARKER_FILE
            if not marker.exists():
                marker.touch()

            done_file = yak_dir / DONE_FILE
            if yak.done and not done_file.exists():
                done_file.touch()
            elif not yak.done and done_file.exists():
                done_file.unlink()

            context_file = yak_dir / CONTEXT_FILE
            if yak.context:
                data = f"{yak.context}\n".encode()
                if not context_file.exists() or context_file.read_bytes() != data:
                    context_file.write_bytes(data)
            elif context_file.exists():
                context_file.unlink()

        logger.debug("Saved %d yaks to %s", len(collection), self.path)
