"""
Errors raised while walking and rewriting a directory tree.

Every error is an ``OSError`` so callers can treat a failed run as an I/O
failure. None of them are retried or downgraded; the first one aborts the run.
"""


class FindReplaceError(OSError):
    """Base class for traversal failures."""
    pass


class EnumerationError(FindReplaceError):
    """Raised when a directory cannot be listed."""
    pass


class RenameError(FindReplaceError):
    """Raised when an entry cannot be moved to its new name."""
    pass


class RenameCollisionError(RenameError):
    """Raised when the rename destination already exists."""
    pass


class ContentReadError(FindReplaceError):
    """Raised when a file cannot be read or decoded."""
    pass


class ContentWriteError(FindReplaceError):
    """Raised when the rewritten content cannot be written to the temp file."""
    pass


class PermissionPreservationError(FindReplaceError):
    """Raised when permission bits cannot be copied onto the temp file."""
    pass


class DeleteOriginalError(FindReplaceError):
    """Raised when the original file cannot be deleted."""
    pass


class FinalizeRenameError(FindReplaceError):
    """Raised when the temp file cannot be moved onto the original path."""
    pass
