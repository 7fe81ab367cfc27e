"""Console rendering of scan hooks."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TextIO

from .errors import EntryError
from .models import ArchiveEntry, ScanHooks
from .presenters import render_path


class ConsoleReporter:
    """Prints one line per file added to the archive and tallies the rest.

    Warnings themselves reach the console through logging; the reporter only
    counts them for the closing summary.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self.matched_count = 0
        self.archived_count = 0
        self.warning_count = 0

    def report_matched(self, source_path: Path) -> None:
        self.matched_count += 1
        print(f"Adding file {render_path(source_path)} to archive", file=self._stream)

    def report_archived(self, archive_entry: ArchiveEntry) -> None:
        self.archived_count += 1

    def report_error(self, error: EntryError) -> None:
        self.warning_count += 1

    def hooks(self) -> ScanHooks:
        return ScanHooks(
            on_entry_matched=self.report_matched,
            on_entry_archived=self.report_archived,
            on_error=self.report_error,
        )
