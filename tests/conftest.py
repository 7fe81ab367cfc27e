"""Shared fixtures for rs-cache-finder tests."""

from __future__ import annotations

import io

import pytest

from rscache_finder.models import PatternTables, ScanContext
from rscache_finder.patterns import build_pattern_tables


@pytest.fixture
def pattern_tables() -> PatternTables:
    return build_pattern_tables()


@pytest.fixture
def scan_context(pattern_tables: PatternTables) -> ScanContext:
    return ScanContext(pattern_tables=pattern_tables, output_stream=io.BytesIO())
