"""
Directory tree walker for find-and-replace runs.

This module walks a root directory, optionally recursively, and applies the
request's find/replace to file contents, file names and directory names. The
tree is renamed while it is being walked, so the walk is driven by a flat work
queue: a directory is renamed first and only then are its children listed,
under the new name, and inserted at the head of the queue.
"""

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

from ..models.entries import FileSystemEntry, WorkQueue
from ..models.request import TraversalRequest
from .content_rewriter import rewrite_contents
from .errors import EnumerationError
from .filters import is_excluded, should_process
from .renamer import rename_entry


logger = logging.getLogger(__name__)


def list_children(directory: Path) -> List[FileSystemEntry]:
    """
    List the immediate children of a directory in name order.

    Args:
        directory: Directory to list

    Returns:
        Entries for every child

    Raises:
        EnumerationError: If the directory cannot be listed
    """
    try:
        names = sorted(os.listdir(directory))
    except OSError as e:
        raise EnumerationError(f"Unable to list file(s) in directory '{directory}': {e}") from e

    return [FileSystemEntry.from_path(Path(directory) / name) for name in names]


class FindReplaceWalker:
    """
    Walks a directory tree and applies a find/replace request to it.

    Each entry is removed from the work queue before it is handled, so a
    renamed entry is never seen twice. Any failure propagates and aborts the
    remaining queue; files handled earlier stay modified.
    """

    def __init__(self, log: Optional[logging.Logger] = None):
        """
        Initialize the walker.

        Args:
            log: Logger that receives rename and progress messages
        """
        self.log = log or logger
        self._stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> Dict[str, int]:
        return {
            'directories_traversed': 0,
            'files_scanned': 0,
            'files_rewritten': 0,
            'entries_renamed': 0,
            'entries_excluded': 0,
            'files_masked_out': 0,
            'entries_skipped': 0
        }

    def run(self, request: TraversalRequest) -> None:
        """
        Apply the request to its base directory.

        Args:
            request: Configuration for this run

        Raises:
            FindReplaceError: On the first unrecoverable filesystem failure
        """
        self.reset_stats()

        if request.skip:
            self.log.info("Skipping find and replace")
            return

        self.log.info(f"Processing {request.base_dir} ({request})")
        queue = WorkQueue(list_children(request.base_dir))

        while queue:
            entry = queue.pop()

            if entry.is_dir:
                self._process_directory(entry, queue, request)
            elif entry.is_file:
                self._process_file(entry, request)
            else:
                self.log.debug(f"Skipping {entry.path}: neither a file nor a directory")
                self._stats['entries_skipped'] += 1

    def _process_directory(self, entry: FileSystemEntry, queue: WorkQueue,
                           request: TraversalRequest) -> None:
        """Rename a directory if requested, then queue its children."""
        self._stats['directories_traversed'] += 1

        if request.process_directory_names:
            if is_excluded(entry.name, request.exclusions):
                self._stats['entries_excluded'] += 1
            else:
                entry = self._rename(entry, request)

        if request.recursive:
            # Children are listed under the directory's new name
            queue.insert_at_cursor(list_children(entry.path))

    def _process_file(self, entry: FileSystemEntry, request: TraversalRequest) -> None:
        """Run the per-file pipeline: filters, content rewrite, rename."""
        self._stats['files_scanned'] += 1

        if is_excluded(entry.name, request.exclusions):
            self._stats['entries_excluded'] += 1
            return

        if not should_process(entry.name, request.file_masks):
            self._stats['files_masked_out'] += 1
            return

        if request.process_file_contents:
            rewritten = rewrite_contents(
                entry.path,
                request.find_regex,
                request.replacement_template(),
                request.replace_all,
                request.encoding,
                request.encoding_errors,
                log=self.log
            )
            if rewritten:
                self._stats['files_rewritten'] += 1

        if request.process_filenames:
            self._rename(entry, request)

    def _rename(self, entry: FileSystemEntry, request: TraversalRequest) -> FileSystemEntry:
        entry, renamed = rename_entry(
            entry,
            request.find_regex,
            request.replacement_template(),
            request.replace_all,
            log=self.log
        )
        if renamed:
            self._stats['entries_renamed'] += 1
        return entry

    def get_stats(self) -> Dict[str, int]:
        """
        Get statistics about the last run.

        Returns:
            Dictionary containing operation statistics
        """
        return self._stats.copy()

    def reset_stats(self) -> None:
        """Reset the statistics counters."""
        self._stats = self._empty_stats()


def process_files(request: TraversalRequest, log: Optional[logging.Logger] = None) -> Dict[str, int]:
    """
    Convenience function to run a request.

    Args:
        request: Configuration for this run
        log: Logger that receives rename and progress messages

    Returns:
        Statistics of the completed run

    Raises:
        FindReplaceError: On the first unrecoverable filesystem failure
    """
    walker = FindReplaceWalker(log=log)
    walker.run(request)
    return walker.get_stats()
