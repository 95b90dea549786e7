"""Project file discovery."""

from archctl.scan.files import DEFAULT_MAX_DEPTH, find_source_files

__all__ = ["DEFAULT_MAX_DEPTH", "find_source_files"]
