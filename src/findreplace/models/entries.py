"""
Filesystem entry and work queue models for the traversal engine.

Entries are transient snapshots of a path and its type. The work queue holds
the entries that are still pending and grows in place as directories are
opened, which gives a pre-order walk without recursion.
"""

from collections import deque
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator


class EntryKind(Enum):
    """Type of a filesystem entry at the time it was listed."""
    FILE = "file"
    DIRECTORY = "directory"
    OTHER = "other"  # broken symlinks, sockets, devices...


@dataclass(frozen=True)
class FileSystemEntry:
    """A path plus its cached type."""
    path: Path
    kind: EntryKind

    @classmethod
    def from_path(cls, p: Path) -> "FileSystemEntry":
        """Create an entry from a path, following symlinks like ``Path.is_dir``."""
        p = Path(p)
        if p.is_dir():
            kind = EntryKind.DIRECTORY
        elif p.is_file():
            kind = EntryKind.FILE
        else:
            kind = EntryKind.OTHER
        return cls(path=p, kind=kind)

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.FILE

    def with_name(self, new_name: str) -> "FileSystemEntry":
        """Get the sibling entry called ``new_name``, keeping the cached type."""
        return FileSystemEntry(path=self.path.with_name(new_name), kind=self.kind)


class WorkQueue:
    """
    Ordered list of pending entries with insert-at-cursor semantics.

    The current entry is always removed before it is processed, so the cursor
    sits at the head of the remaining work. Children inserted at the cursor
    are therefore handled before any sibling that was queued earlier.
    """

    def __init__(self, entries: Iterable[FileSystemEntry] = ()):
        self._pending = deque(entries)

    def pop(self) -> FileSystemEntry:
        """Remove and return the entry at the cursor."""
        return self._pending.popleft()

    def insert_at_cursor(self, entries: Iterable[FileSystemEntry]) -> None:
        """Insert entries at the cursor, keeping their order."""
        self._pending.extendleft(reversed(list(entries)))

    def __len__(self) -> int:
        return len(self._pending)

    def __bool__(self) -> bool:
        return bool(self._pending)

    def __iter__(self) -> Iterator[FileSystemEntry]:
        return iter(list(self._pending))
