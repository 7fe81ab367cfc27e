"""Cache search workflow orchestration."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO

from .errors import ArchiveWriteError, InputPathError
from .models import PatternTables, RunResult, ScanContext, ScanHooks
from .scanner import scan_tree
from .tar_gateway import open_output_archive, write_end_of_archive

logger = logging.getLogger(__name__)


def run_cache_search(
    *,
    search_dir_abs: Path,
    output_path_abs: Path,
    pattern_tables: PatternTables,
    hooks: ScanHooks | None = None,
    compress: bool = False,
) -> RunResult:
    if not search_dir_abs.is_dir():
        raise InputPathError(f"Source path {search_dir_abs} is not a directory")

    output_stream = open_output_archive(output_path_abs, compress=compress)
    logger.info("Writing archive to %s", output_path_abs)
    try:
        context = ScanContext(
            pattern_tables=pattern_tables,
            output_stream=output_stream,
            hooks=hooks if hooks is not None else ScanHooks(),
            output_path_abs=output_path_abs,
        )
        outcome = scan_tree(search_dir_abs, context)
        write_end_of_archive(output_stream)
    finally:
        _close_output(output_stream, output_path_abs)

    logger.info(
        "Archived %d file(s) from %d folder(s) with %d warning(s)",
        outcome.archived_file_count,
        outcome.archived_unit_count,
        len(outcome.errors),
    )
    return RunResult(
        search_dir_abs=search_dir_abs,
        output_path_abs=output_path_abs,
        outcome=outcome,
    )


def _close_output(output_stream: BinaryIO, output_path_abs: Path) -> None:
    try:
        output_stream.close()
    except OSError as exc:
        raise ArchiveWriteError(
            f"Error closing output file {output_path_abs}: {exc.strerror or exc}"
        ) from exc
