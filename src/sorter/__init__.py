"""
Sorter package.

This package contains:

- the project/tag allow-lists the user edits
- file loading and image previews
- the session that runs one file through categorization and review
- the command-line entry point
"""

from .allow_list import AllowList
from .files import load_uploaded_file
from .session import CategorizationAttempt, SorterSession

__all__ = [
    "AllowList",
    "CategorizationAttempt",
    "SorterSession",
    "load_uploaded_file",
]
