"""File names used inside every yak directory."""

MARKER_FILE = ".yak"
DONE_FILE = "done"
CONTEXT_FILE = "context.md"

METADATA_FILES = frozenset({MARKER_FILE, DONE_FILE, CONTEXT_FILE})
