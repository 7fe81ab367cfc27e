"""CLI entry and startup wiring."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .errors import CacheFinderError
from .finder_service import run_cache_search
from .logging_setup import setup_logging
from .path_mapping import map_path_argument, resolve_startup_paths
from .patterns import build_pattern_tables, load_pattern_file
from .presenters import (
    render_app_banner,
    render_error,
    render_loaded_parameters,
    render_summary,
    render_warning,
)
from .progress import ConsoleReporter

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    cwd_abs = Path.cwd()

    try:
        log_file_abs = (
            map_path_argument(
                raw_path=args.log_file,
                cwd_abs=cwd_abs,
                argument_name="--log-file",
            )
            if args.log_file is not None
            else None
        )
        setup_logging(verbose=args.verbose, log_file=log_file_abs)

        extra_excludes = list(args.exclude)
        if args.exclude_file is not None:
            extra_excludes.extend(
                load_pattern_file(
                    map_path_argument(
                        raw_path=args.exclude_file,
                        cwd_abs=cwd_abs,
                        argument_name="--exclude-file",
                    )
                )
            )
        mask_paths = list(args.mask_path)
        if args.mask_file is not None:
            mask_paths.extend(
                load_pattern_file(
                    map_path_argument(
                        raw_path=args.mask_file,
                        cwd_abs=cwd_abs,
                        argument_name="--mask-file",
                    )
                )
            )
        pattern_tables = build_pattern_tables(
            extra_excludes=extra_excludes,
            mask_paths=mask_paths,
        )

        resolved_paths = resolve_startup_paths(
            search_arg_raw=args.search_path,
            output_arg_raw=args.output_path,
            cwd_abs=cwd_abs,
        )
        if args.verbose:
            print(render_app_banner())
            for line in render_loaded_parameters(
                resolved_paths=resolved_paths,
                pattern_tables=pattern_tables,
            ):
                print(line)

        reporter = ConsoleReporter()
        run_result = run_cache_search(
            search_dir_abs=resolved_paths.search_dir_abs,
            output_path_abs=resolved_paths.output_path_abs,
            pattern_tables=pattern_tables,
            hooks=reporter.hooks(),
            compress=args.gzip,
        )
    except CacheFinderError as exc:
        logger.debug("Run failed", exc_info=True)
        print(render_error(str(exc)), file=sys.stderr)
        return 1
    except OSError as exc:
        print(render_error(f"Failed: {exc}"), file=sys.stderr)
        return 1

    if run_result.outcome.archived_file_count == 0:
        print(render_warning("No cache files found."))
    print(render_summary(run_result))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rs-cache-finder",
        description=(
            "Search a directory tree for RuneScape cache files and copy them "
            "into a tar archive with anonymized folder names."
        ),
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Report every directory scanned, skipped or matched.",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="REGEX",
        help=(
            "Regular expression matching folders to exclude from searching for "
            "cache files, usually because they contain false positives. "
            "Can be specified multiple times."
        ),
    )
    parser.add_argument(
        "--mask-path",
        action="append",
        default=[],
        metavar="REGEX",
        help=(
            "Regular expression matching folder names to replace with 'folder', "
            "generally because they contain sensitive information such as a "
            "username. Can be specified multiple times."
        ),
    )
    parser.add_argument(
        "--exclude-file",
        help="File with one exclude regex per line (# starts a comment).",
    )
    parser.add_argument(
        "--mask-file",
        help="File with one mask-path regex per line (# starts a comment).",
    )
    parser.add_argument(
        "--gzip",
        action="store_true",
        help="Compress the output archive with gzip.",
    )
    parser.add_argument(
        "--log-file",
        help="Also write a detailed log to this file.",
    )
    parser.add_argument("search_path", help="Directory to search.")
    parser.add_argument("output_path", help="Archive file to create. Must not exist.")
    return parser
