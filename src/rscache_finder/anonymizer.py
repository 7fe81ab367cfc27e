"""Anonymized archive prefixes for matched directories."""

from __future__ import annotations

from pathlib import Path

from .constants import (
    FOLDER_ID_PREFIX,
    FOLDER_ID_WIDTH,
    MASKED_SEGMENT,
    PREFIX_MAX_LENGTH,
)
from .models import PatternSet
from .patterns import matches_any


def make_prefix(directory: Path, *, folder_id: int, mask_paths: PatternSet) -> str:
    """Build ``dir<id>/<parent>/<name>`` for a directory being archived.

    Each of the two name segments is replaced with ``folder`` when it matches
    a mask pattern. The parent segment is dropped when the directory has no
    named parent (for example a child of ``/``). The result is cut to
    PREFIX_MAX_LENGTH characters.
    """
    segments = [f"{FOLDER_ID_PREFIX}{folder_id:0{FOLDER_ID_WIDTH}d}"]
    parent_name = directory.parent.name if directory.parent != directory else ""
    if parent_name:
        segments.append(mask_segment(parent_name, mask_paths))
    segments.append(mask_segment(directory.name, mask_paths))
    return "/".join(segments)[:PREFIX_MAX_LENGTH]


def mask_segment(name: str, mask_paths: PatternSet) -> str:
    if matches_any(name, mask_paths):
        return MASKED_SEGMENT
    return name
