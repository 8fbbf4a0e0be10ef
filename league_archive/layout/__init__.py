"""
Sheet layout package.

Detects how a season sheet is laid out and flattens it into records.

Modules:
    detector: Strategy chain choosing grid, vertical or raw layout
    grid: Team-columns roster grid unroller
    vertical: Vertical record-table unroller
    standings: Season standings unroller
"""

from league_archive.layout.detector import (
    GridLayout,
    GridStrategy,
    RawDumpStrategy,
    RawLayout,
    VerticalLayout,
    VerticalStrategy,
    detect_layout,
)
from league_archive.layout.grid import GridUnrollResult, unroll_grid
from league_archive.layout.standings import unroll_standings
from league_archive.layout.vertical import record_from_mapping, unroll_vertical

__all__ = [
    "GridLayout",
    "GridStrategy",
    "GridUnrollResult",
    "RawDumpStrategy",
    "RawLayout",
    "VerticalLayout",
    "VerticalStrategy",
    "detect_layout",
    "record_from_mapping",
    "unroll_grid",
    "unroll_standings",
    "unroll_vertical",
]
