"""
Utilities package for Fax Drop Agent.

Pure path helpers plus the blocking move used by the error-retry scan.
"""

from .file_operations import (
    build_cache_path,
    change_extension,
    generate_conflict_free_path,
    move_to_directory,
)

__all__ = [
    "build_cache_path",
    "change_extension",
    "generate_conflict_free_path",
    "move_to_directory",
]
