"""Dataclasses shared across rs-cache-finder layers."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from re import Pattern
from typing import BinaryIO

from .errors import EntryError


@dataclass(frozen=True)
class ResolvedPaths:
    search_arg_raw: str
    search_dir_abs: Path
    output_arg_raw: str
    output_path_abs: Path


@dataclass(frozen=True)
class PatternSet:
    patterns_raw: tuple[str, ...]
    compiled_patterns: tuple[Pattern[str], ...]

    def __len__(self) -> int:
        return len(self.compiled_patterns)


@dataclass(frozen=True)
class PatternTables:
    cache_dirs: PatternSet
    parented_cache_dirs: PatternSet
    cache_dir_parents: PatternSet
    excluded_dirs: PatternSet
    cache_files: PatternSet
    mask_paths: PatternSet


class DirectoryClassification(Enum):
    CACHE_DIR = "cache_dir"
    PARENTED_CACHE_DIR = "parented_cache_dir"
    EXCLUDED = "excluded"
    ORDINARY = "ordinary"

    @property
    def is_cache_dir(self) -> bool:
        return self in (
            DirectoryClassification.CACHE_DIR,
            DirectoryClassification.PARENTED_CACHE_DIR,
        )


@dataclass(frozen=True)
class ArchiveEntry:
    source_path: Path
    archive_name: str
    size: int
    mtime: int


@dataclass(frozen=True)
class ScanHooks:
    """Optional callbacks fired while scanning.

    on_entry_matched receives the source path before it is written,
    on_entry_archived the finished entry, on_error each non-fatal failure.
    """

    on_entry_matched: Callable[[Path], None] | None = None
    on_entry_archived: Callable[[ArchiveEntry], None] | None = None
    on_error: Callable[[EntryError], None] | None = None


@dataclass
class ScanContext:
    pattern_tables: PatternTables
    output_stream: BinaryIO
    hooks: ScanHooks = field(default_factory=ScanHooks)
    output_path_abs: Path | None = None
    folder_counter: int = 0

    def next_folder_id(self) -> int:
        self.folder_counter += 1
        return self.folder_counter


@dataclass
class ScanOutcome:
    archived_entries: list[ArchiveEntry] = field(default_factory=list)
    errors: list[EntryError] = field(default_factory=list)
    archived_unit_count: int = 0
    scanned_directory_count: int = 0

    @property
    def archived_file_count(self) -> int:
        return len(self.archived_entries)


@dataclass(frozen=True)
class RunResult:
    search_dir_abs: Path
    output_path_abs: Path
    outcome: ScanOutcome
