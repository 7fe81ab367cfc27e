"""Path mapping and startup validation."""

from __future__ import annotations

from pathlib import Path

from .errors import InputPathError, OutputCreateError, OutputExistsError
from .models import ResolvedPaths


def resolve_startup_paths(
    *,
    search_arg_raw: str,
    output_arg_raw: str,
    cwd_abs: Path | None = None,
) -> ResolvedPaths:
    effective_cwd_abs = cwd_abs if cwd_abs is not None else Path.cwd()

    search_dir_abs = map_path_argument(
        raw_path=search_arg_raw,
        cwd_abs=effective_cwd_abs,
        argument_name="search path",
        error_type=InputPathError,
    )
    output_path_abs = map_path_argument(
        raw_path=output_arg_raw,
        cwd_abs=effective_cwd_abs,
        argument_name="output path",
        error_type=OutputCreateError,
    )

    search_dir_abs = search_dir_abs.resolve(strict=False)
    # The final component is kept as given so a dangling symlink still counts
    # as an existing output.
    output_path_abs = output_path_abs.parent.resolve(strict=False) / output_path_abs.name

    _validate_search_dir(search_dir_abs)
    _validate_output_path(output_path_abs)

    return ResolvedPaths(
        search_arg_raw=search_arg_raw,
        search_dir_abs=search_dir_abs,
        output_arg_raw=output_arg_raw,
        output_path_abs=output_path_abs,
    )


def map_path_argument(
    *,
    raw_path: str,
    cwd_abs: Path,
    argument_name: str,
    error_type: type[Exception] = InputPathError,
) -> Path:
    if raw_path.strip() == "":
        raise error_type(f"{argument_name} is empty.")
    if "\0" in raw_path:
        raise error_type(f"{argument_name} contains NUL (\\0).")

    if raw_path.startswith("~"):
        try:
            mapped = Path(raw_path).expanduser()
        except RuntimeError as exc:
            raise error_type(
                f"Failed to expand user home in {argument_name}: {raw_path}"
            ) from exc
    else:
        mapped = Path(raw_path)

    if not mapped.is_absolute():
        mapped = cwd_abs / mapped

    return mapped


def _validate_search_dir(search_dir_abs: Path) -> None:
    if not search_dir_abs.exists():
        raise InputPathError(f"Source path {search_dir_abs} does not exist")
    if not search_dir_abs.is_dir():
        raise InputPathError(f"Source path {search_dir_abs} is not a directory")


def _validate_output_path(output_path_abs: Path) -> None:
    if output_path_abs.exists() or output_path_abs.is_symlink():
        raise OutputExistsError(f"Output path {output_path_abs} already exists")
    if not output_path_abs.parent.is_dir():
        raise OutputCreateError(
            f"Output directory {output_path_abs.parent} does not exist"
        )
