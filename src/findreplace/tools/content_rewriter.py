"""
In-place file content rewriting.

A rewritten file is never written under its own name. The new content goes to
a temp file in the same directory, the original permission bits are copied
onto it, and only then is the original deleted and the temp file moved into
its place. If any step after the temp file exists fails, the temp file is left
on disk so the partial state can be inspected.
"""

import logging
import os
import re
import stat
import tempfile
from pathlib import Path
from typing import Optional, Union

from .errors import (
    ContentReadError,
    ContentWriteError,
    DeleteOriginalError,
    FinalizeRenameError,
    PermissionPreservationError,
)


logger = logging.getLogger(__name__)

TEMP_PREFIX = "tmp"
TEMP_SUFFIX = ".tmp"


def supports_posix_permissions() -> bool:
    """Check if the host filesystem has a POSIX permission model."""
    return os.name == 'posix'


def apply_access_bits(original: Path, successor: Path) -> None:
    """
    Copy the permission bits of ``original`` onto ``successor``.

    Does nothing on hosts without a POSIX permission model.

    Raises:
        PermissionPreservationError: If the bits cannot be read or applied
    """
    if not supports_posix_permissions():
        return

    try:
        mode = stat.S_IMODE(os.stat(original).st_mode)
        os.chmod(successor, mode)
    except OSError as e:
        raise PermissionPreservationError(f"Failed to apply access bits at: {original}: {e}") from e


def rewrite_contents(path: Union[str, Path], find_regex: re.Pattern, replacement: Optional[str],
                     replace_all: bool, encoding: str, encoding_errors: str = "strict",
                     log: Optional[logging.Logger] = None) -> bool:
    """
    Replace matches of ``find_regex`` in a file's contents.

    Args:
        path: File to rewrite
        find_regex: Pattern whose matches are replaced
        replacement: Replacement template in ``re`` syntax (None means empty)
        replace_all: Replace every match instead of only the first
        encoding: Text encoding of the file
        encoding_errors: Codec error handler
        log: Logger for progress messages

    Returns:
        True if the file was rewritten, False if the pattern did not match

    Raises:
        ContentReadError: If the file cannot be read or decoded
        ContentWriteError: If the temp file cannot be written
        PermissionPreservationError: If permission bits cannot be copied
        DeleteOriginalError: If the original cannot be deleted
        FinalizeRenameError: If the temp file cannot be moved into place
    """
    log = log or logger
    path = Path(path)

    try:
        with open(path, 'r', encoding=encoding, errors=encoding_errors, newline='') as f:
            content = f.read()
    except (OSError, UnicodeError) as e:
        raise ContentReadError(f"Failed to read file at: {path}: {e}") from e

    if not find_regex.search(content):
        return False

    if replacement is None:
        replacement = ""
    content = find_regex.sub(replacement, content, count=0 if replace_all else 1)

    try:
        fd, temp_name = tempfile.mkstemp(prefix=TEMP_PREFIX, suffix=TEMP_SUFFIX, dir=path.parent)
    except OSError as e:
        raise ContentWriteError(f"Failed to create temp file next to: {path}: {e}") from e
    temp_path = Path(temp_name)

    try:
        with open(fd, 'w', encoding=encoding, errors=encoding_errors, newline='') as f:
            f.write(content)
    except (OSError, UnicodeError) as e:
        raise ContentWriteError(f"Failed to write temp file at: {temp_path}: {e}") from e

    apply_access_bits(path, temp_path)

    try:
        os.remove(path)
    except OSError as e:
        raise DeleteOriginalError(f"Failed to delete file at: {path}: {e}") from e

    try:
        os.rename(temp_path, path)
    except OSError as e:
        raise FinalizeRenameError(f"Failed to rename temp file at: {temp_path} to {path}: {e}") from e

    log.debug(f"Rewrote contents of {path}")
    return True
