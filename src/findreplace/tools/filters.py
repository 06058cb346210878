"""
Name filters for the traversal engine.

Exclusions are regular expressions searched anywhere in a name. File masks are
plain suffixes. The two are intentionally not unified.
"""

import re
from typing import Sequence


def is_excluded(name: str, exclusion_patterns: Sequence[re.Pattern]) -> bool:
    """
    Check if a name matches any exclusion pattern.

    Args:
        name: Base name of the entry
        exclusion_patterns: Compiled exclusion patterns

    Returns:
        True if any pattern matches anywhere in the name
    """
    for pattern in exclusion_patterns:
        if pattern.search(name):
            return True
    return False


def should_process(name: str, suffix_masks: Sequence[str]) -> bool:
    """
    Check if a file name passes the suffix masks.

    Args:
        name: Base name of the file
        suffix_masks: Literal suffixes; empty means every name passes

    Returns:
        True if there are no masks or the name ends with one of them
    """
    if not suffix_masks:
        return True  # No masks means match all files

    for mask in suffix_masks:
        if name.endswith(mask):
            return True
    return False
