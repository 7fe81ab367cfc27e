from __future__ import annotations

import io
import os
import tarfile
from pathlib import Path

import pytest

from rscache_finder.errors import EntryError, FilesystemError
from rscache_finder.models import ArchiveEntry, ScanContext, ScanHooks, ScanOutcome
from rscache_finder.patterns import build_pattern_tables
from rscache_finder.scanner import (
    archive_cache_directory,
    archive_matching_files,
    scan_tree,
)


def _archive_names(context: ScanContext) -> list[str]:
    stream = context.output_stream
    assert isinstance(stream, io.BytesIO)
    with tarfile.open(fileobj=io.BytesIO(stream.getvalue()), mode="r:") as archive:
        return archive.getnames()


def test_nested_cache_directory_children_are_still_scanned(
    tmp_path: Path, scan_context: ScanContext
) -> None:
    root = tmp_path / "root"
    cache_dir = root / "jagexcache"
    nested = cache_dir / "sub"
    nested.mkdir(parents=True)
    (cache_dir / "code.dat").write_bytes(b"c" * 10)
    (nested / "main_file_cache.0").write_bytes(b"m" * 5)

    outcome = scan_tree(root, scan_context)

    # The parent segment is the real parent folder, the scan root included.
    assert [entry.archive_name for entry in outcome.archived_entries] == [
        "dir0000001/root/jagexcache/code.dat",
        "dir0000002/jagexcache/sub/main_file_cache.0",
    ]
    assert [entry.size for entry in outcome.archived_entries] == [10, 5]
    assert outcome.archived_unit_count == 2
    assert outcome.errors == []
    assert _archive_names(scan_context) == [
        entry.archive_name for entry in outcome.archived_entries
    ]


def test_excluded_subtree_is_never_descended(
    tmp_path: Path, scan_context: ScanContext
) -> None:
    (tmp_path / "planeshift" / "anything").mkdir(parents=True)
    (tmp_path / "planeshift" / "anything" / "code.dat").write_bytes(b"x")

    outcome = scan_tree(tmp_path, scan_context)

    assert outcome.archived_entries == []
    assert scan_context.folder_counter == 0
    assert scan_context.output_stream.getvalue() == b""


def test_user_excludes_apply_anywhere_in_tree(tmp_path: Path) -> None:
    (tmp_path / "games" / "Steam").mkdir(parents=True)
    (tmp_path / "games" / "Steam" / "code.dat").write_bytes(b"x")
    (tmp_path / "games" / "code.dat").write_bytes(b"y")
    context = ScanContext(
        pattern_tables=build_pattern_tables(extra_excludes=["^steam$"]),
        output_stream=io.BytesIO(),
    )

    outcome = scan_tree(tmp_path, context)

    assert [entry.source_path for entry in outcome.archived_entries] == [
        tmp_path / "games" / "code.dat"
    ]


def test_symlinked_directories_are_not_followed(
    tmp_path: Path, scan_context: ScanContext
) -> None:
    real = tmp_path / "elsewhere" / "runescape"
    real.mkdir(parents=True)
    (real / "code.dat").write_bytes(b"x")
    root = tmp_path / "root"
    root.mkdir()
    os.symlink(real, root / "runescape", target_is_directory=True)
    os.symlink(tmp_path / "elsewhere", root / "loop", target_is_directory=True)

    outcome = scan_tree(root, scan_context)

    assert outcome.archived_entries == []
    assert scan_context.folder_counter == 0


def test_ordinary_directory_skips_symlinked_files(
    tmp_path: Path, scan_context: ScanContext
) -> None:
    folder = tmp_path / "downloads"
    folder.mkdir()
    (tmp_path / "real.jag").write_bytes(b"x")
    os.symlink(tmp_path / "real.jag", folder / "linked.jag")

    archive_matching_files(folder, scan_context, ScanOutcome())

    assert scan_context.folder_counter == 0


def test_empty_cache_directory_consumes_one_id_and_writes_nothing(
    tmp_path: Path, scan_context: ScanContext
) -> None:
    (tmp_path / "runescape").mkdir()

    outcome = scan_tree(tmp_path, scan_context)

    assert scan_context.folder_counter == 1
    assert outcome.archived_unit_count == 1
    assert outcome.archived_entries == []
    assert scan_context.output_stream.getvalue() == b""


def test_ordinary_directory_without_matches_consumes_no_id(
    tmp_path: Path, scan_context: ScanContext
) -> None:
    folder = tmp_path / "documents"
    folder.mkdir()
    (folder / "notes.txt").write_text("hi", encoding="utf-8")
    outcome = ScanOutcome()

    archive_matching_files(folder, scan_context, outcome)

    assert scan_context.folder_counter == 0
    assert outcome.archived_entries == []
    assert scan_context.output_stream.getvalue() == b""


def test_cache_directory_archives_every_file_but_not_subdirectories(
    tmp_path: Path, scan_context: ScanContext
) -> None:
    cache_dir = tmp_path / "classic"
    (cache_dir / "nested").mkdir(parents=True)
    (cache_dir / "anything.bin").write_bytes(b"a")
    (cache_dir / "notes.txt").write_bytes(b"b")
    (cache_dir / "nested" / "deep.bin").write_bytes(b"c")
    outcome = ScanOutcome()

    archive_cache_directory(cache_dir, scan_context, outcome)

    assert [entry.source_path.name for entry in outcome.archived_entries] == [
        "anything.bin",
        "notes.txt",
    ]
    assert scan_context.folder_counter == 1


def test_ordinary_directory_shares_one_id_across_matches(
    tmp_path: Path, scan_context: ScanContext
) -> None:
    folder = tmp_path / "applet"
    folder.mkdir()
    for name in ("code.dat", "jingle0.mid", "readme.txt", "worldmap.dat"):
        (folder / name).write_bytes(b"x")
    outcome = ScanOutcome()

    archive_matching_files(folder, scan_context, outcome)

    assert [entry.archive_name for entry in outcome.archived_entries] == [
        f"dir0000001/{tmp_path.name}/applet/code.dat",
        f"dir0000001/{tmp_path.name}/applet/jingle0.mid",
        f"dir0000001/{tmp_path.name}/applet/worldmap.dat",
    ]
    assert scan_context.folder_counter == 1


def test_parented_cache_directory_is_archived_wholesale(
    tmp_path: Path, scan_context: ScanContext
) -> None:
    live = tmp_path / "oldschool" / "live"
    live.mkdir(parents=True)
    (live / "main_file_cache.dat2").write_bytes(b"x")
    (live / "random.bin").write_bytes(b"y")

    outcome = scan_tree(tmp_path, scan_context)

    assert [entry.archive_name for entry in outcome.archived_entries] == [
        "dir0000001/oldschool/live/main_file_cache.dat2",
        "dir0000001/oldschool/live/random.bin",
    ]


def test_mask_patterns_hide_sensitive_segments(tmp_path: Path) -> None:
    cache_dir = tmp_path / "home" / "alice" / "runescape"
    cache_dir.mkdir(parents=True)
    (cache_dir / "code.dat").write_bytes(b"x")
    context = ScanContext(
        pattern_tables=build_pattern_tables(mask_paths=["^alice$"]),
        output_stream=io.BytesIO(),
    )

    outcome = scan_tree(tmp_path / "home", context)

    assert [entry.archive_name for entry in outcome.archived_entries] == [
        "dir0000001/folder/runescape/code.dat"
    ]


def test_folder_ids_are_unique_and_increase_in_visit_order(
    tmp_path: Path, scan_context: ScanContext
) -> None:
    for path in ("a/runescape", "a/x", "b/classic", "c"):
        (tmp_path / path).mkdir(parents=True)
    (tmp_path / "a" / "runescape" / "one").write_bytes(b"1")
    (tmp_path / "a" / "x" / "code.dat").write_bytes(b"2")
    (tmp_path / "b" / "classic" / "two").write_bytes(b"3")
    (tmp_path / "c" / "x.jag").write_bytes(b"4")

    outcome = scan_tree(tmp_path, scan_context)

    folder_ids = [entry.archive_name.split("/")[0] for entry in outcome.archived_entries]
    assert folder_ids == ["dir0000001", "dir0000002", "dir0000003", "dir0000004"]


def test_scan_is_deterministic_across_runs(tmp_path: Path) -> None:
    for name in ("zeta", "alpha", "mid"):
        (tmp_path / name).mkdir()
        (tmp_path / name / "code.dat").write_bytes(name.encode("ascii"))

    runs = []
    for _ in range(2):
        context = ScanContext(
            pattern_tables=build_pattern_tables(),
            output_stream=io.BytesIO(),
        )
        scan_tree(tmp_path, context)
        runs.append(context.output_stream.getvalue())

    assert runs[0] == runs[1]


def test_hooks_receive_matches_archives_and_errors(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    cache_dir = tmp_path / "runescape"
    cache_dir.mkdir()
    (cache_dir / "good.dat").write_bytes(b"ok")
    (cache_dir / "gone.dat").write_bytes(b"bye")
    matched: list[Path] = []
    archived: list[ArchiveEntry] = []
    errors: list[EntryError] = []
    context = ScanContext(
        pattern_tables=build_pattern_tables(),
        output_stream=io.BytesIO(),
        hooks=ScanHooks(
            on_entry_matched=matched.append,
            on_entry_archived=archived.append,
            on_error=errors.append,
        ),
    )

    real_stat = Path.stat

    def _stat_vanishing(self: Path, *args: object, **kwargs: object) -> os.stat_result:
        if self.name == "gone.dat":
            raise FileNotFoundError(2, "No such file or directory")
        return real_stat(self, *args, **kwargs)

    monkeypatch.setattr(Path, "stat", _stat_vanishing)

    outcome = scan_tree(tmp_path, context)

    assert [path.name for path in matched] == ["gone.dat", "good.dat"]
    assert [entry.source_path.name for entry in archived] == ["good.dat"]
    assert len(errors) == 1
    assert isinstance(errors[0], FilesystemError)
    assert errors[0].path == cache_dir / "gone.dat"
    assert outcome.errors == errors


def test_output_archive_inside_tree_is_not_archived(tmp_path: Path) -> None:
    cache_dir = tmp_path / "runescape"
    cache_dir.mkdir()
    (cache_dir / "code.dat").write_bytes(b"x")
    output_path = cache_dir / "capture.tar"
    output_path.write_bytes(b"")
    context = ScanContext(
        pattern_tables=build_pattern_tables(),
        output_stream=io.BytesIO(),
        output_path_abs=output_path,
    )

    outcome = scan_tree(tmp_path, context)

    assert [entry.source_path for entry in outcome.archived_entries] == [
        cache_dir / "code.dat"
    ]


def test_unlistable_directory_is_reported_and_siblings_continue(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    scan_context: ScanContext,
) -> None:
    (tmp_path / "broken").mkdir()
    (tmp_path / "fine").mkdir()
    (tmp_path / "fine" / "code.dat").write_bytes(b"x")
    real_scandir = os.scandir

    def _scandir(path: object):
        if Path(path).name == "broken":
            raise OSError(5, "Input/output error")
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", _scandir)

    outcome = scan_tree(tmp_path, scan_context)

    assert [entry.source_path.name for entry in outcome.archived_entries] == ["code.dat"]
    assert outcome.errors
    assert all(error.path == tmp_path / "broken" for error in outcome.errors)


def test_permission_denied_listing_is_skipped_silently(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    scan_context: ScanContext,
) -> None:
    (tmp_path / "private").mkdir()
    real_scandir = os.scandir

    def _scandir(path: object):
        if Path(path).name == "private":
            raise PermissionError(13, "Permission denied")
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", _scandir)

    outcome = scan_tree(tmp_path, scan_context)

    assert outcome.errors == []
    assert outcome.scanned_directory_count == 2


def test_undecodable_file_name_is_archived_with_its_raw_bytes(
    tmp_path: Path, scan_context: ScanContext
) -> None:
    cache_dir = tmp_path / "runescape"
    cache_dir.mkdir()
    (cache_dir / "ok.dat").write_bytes(b"a")
    with open(os.fsencode(cache_dir) + b"/\xff.dat", "wb") as raw_file:
        raw_file.write(b"b")

    outcome = scan_tree(tmp_path, scan_context)

    assert outcome.errors == []
    assert len(outcome.archived_entries) == 2
    assert b"runescape/\xff.dat\0" in scan_context.output_stream.getvalue()


class _EntryWithBrokenSymlinkCheck:
    def __init__(self, entry: os.DirEntry[str]) -> None:
        self.name = entry.name
        self.path = entry.path
        self._entry = entry

    def is_dir(self, *, follow_symlinks: bool = True) -> bool:
        return self._entry.is_dir(follow_symlinks=follow_symlinks)

    def is_file(self, *, follow_symlinks: bool = True) -> bool:
        return self._entry.is_file(follow_symlinks=follow_symlinks)

    def is_symlink(self) -> bool:
        raise OSError(5, "Input/output error")


class _ListingWithBrokenEntries:
    def __init__(self, entries: list[_EntryWithBrokenSymlinkCheck]) -> None:
        self._entries = entries

    def __enter__(self) -> _ListingWithBrokenEntries:
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None

    def __iter__(self):
        return iter(self._entries)


def test_directory_with_failing_symlink_check_is_not_descended(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    scan_context: ScanContext,
) -> None:
    cache_dir = tmp_path / "runescape"
    cache_dir.mkdir()
    (cache_dir / "code.dat").write_bytes(b"x")
    real_scandir = os.scandir

    def _scandir(path: object):
        if Path(path) == tmp_path:
            with real_scandir(path) as iterator:
                entries = [_EntryWithBrokenSymlinkCheck(entry) for entry in iterator]
            return _ListingWithBrokenEntries(entries)
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", _scandir)

    outcome = scan_tree(tmp_path, scan_context)

    assert outcome.archived_entries == []
    assert scan_context.folder_counter == 0
    assert outcome.scanned_directory_count == 1
    assert [type(error) for error in outcome.errors] == [FilesystemError]
    assert outcome.errors[0].path == cache_dir


def test_output_archive_as_only_match_consumes_no_id(tmp_path: Path) -> None:
    downloads = tmp_path / "downloads"
    downloads.mkdir()
    output_path = downloads / "capture.jag"
    output_path.write_bytes(b"")
    (downloads / "notes.txt").write_bytes(b"x")
    context = ScanContext(
        pattern_tables=build_pattern_tables(),
        output_stream=io.BytesIO(),
        output_path_abs=output_path,
    )
    outcome = ScanOutcome()

    archive_matching_files(downloads, context, outcome)

    assert outcome.archived_entries == []
    assert context.folder_counter == 0
    assert context.output_stream.getvalue() == b""
