"""
Data models for find-and-replace runs.

This module contains the request configuration and the traversal data structures.
"""

from .entries import EntryKind, FileSystemEntry, WorkQueue
from .request import ReplacementSyntax, TraversalRequest, build_request, translate_dollar_template

__all__ = [
    'EntryKind',
    'FileSystemEntry',
    'WorkQueue',
    'ReplacementSyntax',
    'TraversalRequest',
    'build_request',
    'translate_dollar_template'
]
