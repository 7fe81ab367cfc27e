"""Directory tree walk and cache archival."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from .anonymizer import make_prefix
from .classifier import classify_directory
from .errors import EntryError, FilesystemError
from .models import DirectoryClassification, ScanContext, ScanOutcome
from .patterns import matches_any
from .tar_gateway import write_archive_entry

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


def scan_tree(root_dir_abs: Path, context: ScanContext) -> ScanOutcome:
    """Walk every directory below root_dir_abs once, depth first.

    Each child directory is classified and archived before its own children
    are visited. Cache directories are still descended into so nested matches
    are found. Entries are visited in name order.
    """
    outcome = ScanOutcome()
    starting_counter = context.folder_counter

    logger.debug("Scanning %s", root_dir_abs)
    outcome.scanned_directory_count += 1
    pending = _list_child_directories(root_dir_abs, context, outcome)
    pending.reverse()

    while pending:
        directory_abs, is_symlink = pending.pop()
        classification = classify_directory(
            name=directory_abs.name,
            parent_name=directory_abs.parent.name or None,
            is_symlink=is_symlink,
            pattern_tables=context.pattern_tables,
        )

        if classification is DirectoryClassification.EXCLUDED:
            if is_symlink:
                logger.debug("Skipping directory symlink %s", directory_abs)
            else:
                logger.debug("Excluding directory %s", directory_abs)
            continue

        if classification.is_cache_dir:
            logger.debug("Cache dir found: %s", directory_abs)
            archive_cache_directory(directory_abs, context, outcome)
        else:
            archive_matching_files(directory_abs, context, outcome)

        logger.debug("Scanning %s", directory_abs)
        outcome.scanned_directory_count += 1
        children = _list_child_directories(directory_abs, context, outcome)
        pending.extend(reversed(children))

    outcome.archived_unit_count = context.folder_counter - starting_counter
    return outcome


def archive_cache_directory(
    directory_abs: Path, context: ScanContext, outcome: ScanOutcome
) -> None:
    # A recognised cache directory always consumes an id, even when empty.
    prefix = make_prefix(
        directory_abs,
        folder_id=context.next_folder_id(),
        mask_paths=context.pattern_tables.mask_paths,
    )
    for entry in _list_directory(directory_abs, context, outcome):
        is_file = _check_entry(entry.is_file, entry.path, context, outcome)
        if not is_file or _is_output_archive(entry.path, context):
            continue
        _archive_file(Path(entry.path), prefix, context, outcome)


def archive_matching_files(
    directory_abs: Path, context: ScanContext, outcome: ScanOutcome
) -> None:
    prefix: str | None = None
    for entry in _list_directory(directory_abs, context, outcome):
        is_regular_file = _check_entry(
            lambda: not entry.is_symlink() and entry.is_file(follow_symlinks=False),
            entry.path,
            context,
            outcome,
        )
        if not is_regular_file:
            continue
        if not matches_any(entry.name, context.pattern_tables.cache_files):
            continue
        if _is_output_archive(entry.path, context):
            continue

        logger.debug("Cache file match: %s", entry.path)
        if prefix is None:
            prefix = make_prefix(
                directory_abs,
                folder_id=context.next_folder_id(),
                mask_paths=context.pattern_tables.mask_paths,
            )
        _archive_file(Path(entry.path), prefix, context, outcome)


def _archive_file(
    source_path: Path, prefix: str, context: ScanContext, outcome: ScanOutcome
) -> None:
    hooks = context.hooks
    if hooks.on_entry_matched is not None:
        hooks.on_entry_matched(source_path)

    try:
        archive_entry = write_archive_entry(
            source_path=source_path,
            prefix=prefix,
            stream=context.output_stream,
        )
    except EntryError as exc:
        _report_error(exc, context, outcome)
        return

    outcome.archived_entries.append(archive_entry)
    if hooks.on_entry_archived is not None:
        hooks.on_entry_archived(archive_entry)


def _is_output_archive(entry_path: str, context: ScanContext) -> bool:
    if context.output_path_abs is None or Path(entry_path) != context.output_path_abs:
        return False
    logger.debug("Skipping output archive %s", entry_path)
    return True


def _list_child_directories(
    directory_abs: Path, context: ScanContext, outcome: ScanOutcome
) -> list[tuple[Path, bool]]:
    children: list[tuple[Path, bool]] = []
    for entry in _list_directory(directory_abs, context, outcome):
        is_dir = _check_entry(entry.is_dir, entry.path, context, outcome)
        if not is_dir:
            continue
        is_symlink = _check_entry(entry.is_symlink, entry.path, context, outcome)
        if is_symlink is None:
            continue
        children.append((Path(entry.path), is_symlink))
    return children


def _list_directory(
    directory_abs: Path, context: ScanContext, outcome: ScanOutcome
) -> list[os.DirEntry[str]]:
    try:
        with os.scandir(directory_abs) as iterator:
            entries = list(iterator)
    except PermissionError:
        logger.debug("Skipping unreadable directory %s", directory_abs)
        return []
    except OSError as exc:
        _report_error(
            FilesystemError(
                f"Error scanning directory {directory_abs}: {exc.strerror or exc}",
                directory_abs,
            ),
            context,
            outcome,
        )
        return []
    return sorted(entries, key=lambda entry: entry.name)


def _check_entry(
    check: Callable[[], _T],
    entry_path: str,
    context: ScanContext,
    outcome: ScanOutcome,
) -> _T | None:
    try:
        return check()
    except OSError as exc:
        _report_error(
            FilesystemError(
                f"Error processing entry {entry_path}: {exc.strerror or exc}",
                Path(entry_path),
            ),
            context,
            outcome,
        )
        return None


def _report_error(error: EntryError, context: ScanContext, outcome: ScanOutcome) -> None:
    logger.warning("%s", error)
    outcome.errors.append(error)
    if context.hooks.on_error is not None:
        context.hooks.on_error(error)
