"""
Tree codec for yak collections.

Example:
    >>> from yaks.core.codec import decode, encode
    >>> decode(encode(collection)) == collection
    True
"""

from yaks.core.codec.layout import CONTEXT_FILE, DONE_FILE, MARKER_FILE, METADATA_FILES
from yaks.core.codec.tree import (
    EntryKind,
    TreeEntry,
    decode,
    decode_content,
    encode,
)

__all__ = [
    "CONTEXT_FILE",
    "DONE_FILE",
    "MARKER_FILE",
    "METADATA_FILES",
    "EntryKind",
    "TreeEntry",
    "decode",
    "decode_content",
    "encode",
]
