"""Pattern loading, compilation and matching."""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import Path

from .constants import (
    CACHE_DIR_PARENT_PATTERNS,
    CACHE_DIR_PATTERNS,
    CACHE_FILE_PATTERNS,
    EXCLUDED_DIR_PATTERNS,
    PARENTED_CACHE_DIR_PATTERNS,
)
from .errors import PatternError
from .models import PatternSet, PatternTables


def compile_pattern_set(patterns: Iterable[str]) -> PatternSet:
    patterns_raw: list[str] = []
    compiled_patterns: list[re.Pattern[str]] = []

    for pattern_text in patterns:
        try:
            compiled = re.compile(pattern_text, re.IGNORECASE)
        except re.error as exc:
            raise PatternError(f"Invalid regex {pattern_text!r}: {exc}") from exc

        patterns_raw.append(pattern_text)
        compiled_patterns.append(compiled)

    return PatternSet(
        patterns_raw=tuple(patterns_raw),
        compiled_patterns=tuple(compiled_patterns),
    )


def matches_any(name: str, pattern_set: PatternSet) -> bool:
    return any(pattern.search(name) for pattern in pattern_set.compiled_patterns)


def load_pattern_file(pattern_file_abs: Path) -> list[str]:
    """Read one regex per line, skipping blank lines and # comments.

    Every kept line is compiled once here so a bad pattern is reported with
    its file position rather than as a bare regex error later on.
    """
    try:
        lines = pattern_file_abs.read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise PatternError(f"Failed to read pattern file: {pattern_file_abs}") from exc

    patterns: list[str] = []
    for line_number, raw_line in enumerate(lines, start=1):
        pattern_text = raw_line.strip()
        if pattern_text == "" or pattern_text.startswith("#"):
            continue

        try:
            re.compile(pattern_text, re.IGNORECASE)
        except re.error as exc:
            raise PatternError(
                f"Invalid regex at {pattern_file_abs}:{line_number}: {exc}"
            ) from exc

        patterns.append(pattern_text)

    return patterns


def build_pattern_tables(
    *,
    extra_excludes: Iterable[str] = (),
    mask_paths: Iterable[str] = (),
) -> PatternTables:
    return PatternTables(
        cache_dirs=compile_pattern_set(CACHE_DIR_PATTERNS),
        parented_cache_dirs=compile_pattern_set(PARENTED_CACHE_DIR_PATTERNS),
        cache_dir_parents=compile_pattern_set(CACHE_DIR_PARENT_PATTERNS),
        excluded_dirs=compile_pattern_set(
            [*EXCLUDED_DIR_PATTERNS, *extra_excludes]
        ),
        cache_files=compile_pattern_set(CACHE_FILE_PATTERNS),
        mask_paths=compile_pattern_set(mask_paths),
    )
