"""Directory classification rules."""

from __future__ import annotations

from .models import DirectoryClassification, PatternTables
from .patterns import matches_any


def classify_directory(
    *,
    name: str,
    parent_name: str | None,
    is_symlink: bool,
    pattern_tables: PatternTables,
) -> DirectoryClassification:
    # Rules are checked in order; the first hit wins.
    if is_symlink:
        return DirectoryClassification.EXCLUDED
    if matches_any(name, pattern_tables.excluded_dirs):
        return DirectoryClassification.EXCLUDED
    if matches_any(name, pattern_tables.cache_dirs):
        return DirectoryClassification.CACHE_DIR
    if (
        parent_name
        and matches_any(name, pattern_tables.parented_cache_dirs)
        and matches_any(parent_name, pattern_tables.cache_dir_parents)
    ):
        return DirectoryClassification.PARENTED_CACHE_DIR
    return DirectoryClassification.ORDINARY
