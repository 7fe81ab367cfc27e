"""User-facing text rendering."""

from __future__ import annotations

import os

from .constants import APP_NAME, ERROR_PREFIX, WARNING_PREFIX
from .models import PatternTables, ResolvedPaths, RunResult


def render_app_banner() -> str:
    return APP_NAME


def render_loaded_parameters(
    *, resolved_paths: ResolvedPaths, pattern_tables: PatternTables
) -> list[str]:
    return [
        "Loaded parameters:",
        f"Search path: {resolved_paths.search_dir_abs}",
        f"Output path: {resolved_paths.output_path_abs}",
        f"Exclude patterns: {len(pattern_tables.excluded_dirs)}",
        f"Mask patterns: {len(pattern_tables.mask_paths)}",
    ]


def render_error(message: str) -> str:
    return f"{ERROR_PREFIX} {message}"


def render_warning(message: str) -> str:
    return f"{WARNING_PREFIX} {message}"


def render_summary(run_result: RunResult) -> str:
    outcome = run_result.outcome
    summary = (
        f"Archived {outcome.archived_file_count} file(s) "
        f"from {outcome.archived_unit_count} folder(s) "
        f"to {run_result.output_path_abs}."
    )
    if outcome.errors:
        summary = f"{summary} {len(outcome.errors)} warning(s)."
    return summary


def render_path(path: str | os.PathLike[str]) -> str:
    # Undecodable bytes in on-disk names show up as replacement characters.
    return os.fsencode(path).decode("utf-8", "replace")
