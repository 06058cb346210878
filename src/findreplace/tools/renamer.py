"""
Entry renaming for the traversal engine.

The find pattern is applied to the base name only and the entry is moved to a
sibling path in the same parent directory. A move never overwrites an
existing entry.
"""

import logging
import os
import re
from pathlib import Path
from typing import Optional, Tuple

from ..models.entries import FileSystemEntry
from .errors import RenameCollisionError, RenameError


logger = logging.getLogger(__name__)


def compute_new_name(name: str, find_regex: re.Pattern, replacement: str, replace_all: bool) -> str:
    """Apply the substitution to a base name."""
    return find_regex.sub(replacement, name, count=0 if replace_all else 1)


def _is_same_entry(source: Path, target: Path) -> bool:
    """Check if two paths point at the same filesystem object (case-only renames)."""
    try:
        return os.path.samefile(source, target)
    except OSError:
        return False


def rename_entry(entry: FileSystemEntry, find_regex: re.Pattern, replacement: str,
                 replace_all: bool, log: Optional[logging.Logger] = None) -> Tuple[FileSystemEntry, bool]:
    """
    Rename a file or directory according to the find pattern.

    Args:
        entry: Entry to rename
        find_regex: Pattern applied to the base name
        replacement: Replacement template in ``re`` syntax
        replace_all: Replace every match instead of only the first
        log: Logger that receives the rename message

    Returns:
        Tuple of (entry to use from now on, whether a rename happened)

    Raises:
        RenameCollisionError: If the destination already exists
        RenameError: If the new name is invalid or the move fails
    """
    log = log or logger
    old_name = entry.name
    new_name = compute_new_name(old_name, find_regex, replacement, replace_all)

    if new_name == old_name:
        return entry, False

    if not new_name or new_name in ('.', '..') or os.sep in new_name or (os.altsep and os.altsep in new_name):
        raise RenameError(f"Cannot rename {entry.path}: invalid new name '{new_name}'")

    target = entry.path.with_name(new_name)
    # Check-then-move: os.rename replaces an existing file on POSIX, so an
    # entry created by another process between these two calls is overwritten.
    # Runs are single-threaded and assume nothing else writes to the tree.
    if os.path.lexists(target) and not _is_same_entry(entry.path, target):
        raise RenameCollisionError(f"Cannot rename {entry.path} to {target}: destination already exists")

    try:
        os.rename(entry.path, target)
    except OSError as e:
        raise RenameError(f"Failed to rename {entry.path} to {target}: {e}") from e

    log.info(f"Renaming {old_name} to {new_name}")
    return entry.with_name(new_name), True
