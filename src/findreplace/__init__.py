"""
Find and Replace - Core Package

Applies a regex find/replace to file contents and to file and directory names
across a directory tree.
"""

__version__ = "0.1.0"
