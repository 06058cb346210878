"""
Traversal tools for find-and-replace runs.

This module contains the tree walker and the filters, renamer and content
rewriter it drives.
"""

from .content_rewriter import apply_access_bits, rewrite_contents
from .errors import (
    ContentReadError,
    ContentWriteError,
    DeleteOriginalError,
    EnumerationError,
    FinalizeRenameError,
    FindReplaceError,
    PermissionPreservationError,
    RenameCollisionError,
    RenameError,
)
from .filters import is_excluded, should_process
from .renamer import rename_entry
from .walker import FindReplaceWalker, list_children, process_files

__all__ = [
    'FindReplaceWalker',
    'process_files',
    'list_children',
    'is_excluded',
    'should_process',
    'rename_entry',
    'rewrite_contents',
    'apply_access_bits',
    'FindReplaceError',
    'EnumerationError',
    'RenameError',
    'RenameCollisionError',
    'ContentReadError',
    'ContentWriteError',
    'PermissionPreservationError',
    'DeleteOriginalError',
    'FinalizeRenameError'
]
