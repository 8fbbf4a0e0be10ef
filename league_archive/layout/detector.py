"""
Sheet layout detection.

A season sheet is one of:
- a team-columns roster grid (one column per fantasy team, read top-down)
- a vertical record table (one row per player, possibly several side-by-side
  copies of the same columns)
- neither, in which case it is dumped raw

Detection is an ordered chain of strategies. Each strategy returns a layout
or None ("not applicable"); the first applicable one wins and the decision is
written to the run log.

Usage:
    from league_archive.layout.detector import detect_layout

    layout = detect_layout(sheet, teams, log, is_draft=False)
    if isinstance(layout, GridLayout):
        ...
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union

from league_archive.errors import LayoutDetectionError
from league_archive.identity.teams import TeamIdentityResolver, normalize_team_text
from league_archive.positions import is_position_token
from league_archive.runlog import RunLog
from league_archive.workbook import Sheet

# Scan windows
GRID_HEADER_SCAN_ROWS = 15
VERTICAL_HEADER_SCAN_ROWS = 50
POSITION_COLUMN_SCAN_ROWS = 30
POSITION_COLUMN_SCAN_COLS = 5

# Minimum team-like cells for a team header row
DRAFT_TEAM_THRESHOLD = 3
PERIOD_TEAM_THRESHOLD = 4

STANDARD_HEADER_MARKERS = ("player_name", "team_code")
# A cell carrying exactly one of these labels heads a record table
STANDARD_NAME_LABELS = frozenset({"player", "player name", "players", "name"})
# Side-by-side sub-tables must be at least this many columns apart
MIN_TABLE_GAP = 3
# Header cells shorter than this (after normalization) never name a team
MIN_TEAM_HEADER_LENGTH = 3


@dataclass
class GridLayout:
    """Team-columns roster grid."""
    header_row: int
    team_columns: Dict[int, str]
    position_column: Optional[int] = None
    name: str = "grid"


@dataclass
class VerticalLayout:
    """One or more side-by-side record tables sharing a header row."""
    header_row: int
    table_starts: List[int]
    headers: List[List[str]] = field(default_factory=list)
    name: str = "vertical"

    def table_end(self, index: int, row_length: int) -> int:
        if index + 1 < len(self.table_starts):
            return self.table_starts[index + 1]
        return max(row_length, self.table_starts[index] + len(self.headers[index]))


@dataclass
class RawLayout:
    """No structure recognized; the sheet is exported as-is."""
    reason: str
    name: str = "raw"


Layout = Union[GridLayout, VerticalLayout, RawLayout]


def has_standard_header(sheet: Sheet, row: int) -> bool:
    """Row of an already-flat table (player_name/team_code, Player + Team, or a Player column)."""
    text = sheet.row_string(row)
    if any(marker in text for marker in STANDARD_HEADER_MARKERS):
        return True
    if "player" in text and "team" in text:
        return True
    return any(cell.lower() in STANDARD_NAME_LABELS for cell in sheet.row_texts(row))


def is_numeric_text(text: str) -> bool:
    try:
        float(text.replace(",", ""))
    except ValueError:
        return False
    return True


def _team_header_columns(
    texts: Sequence[str],
    teams: TeamIdentityResolver,
) -> Dict[int, str]:
    """Team-like cells of a row: resolved codes or UNK-<col> placeholders."""
    columns: Dict[int, str] = {}
    for col, text in enumerate(texts):
        if not text or is_numeric_text(text):
            continue
        if len(normalize_team_text(text)) < MIN_TEAM_HEADER_LENGTH:
            continue
        code = teams.resolve(text)
        if code:
            columns[col] = code
        elif not is_position_token(text):
            columns[col] = f"UNK-{col}"
    return columns


def find_position_column(sheet: Sheet, header_row: int) -> Optional[int]:
    """First column (of the leftmost few) below the header holding a position token."""
    last = min(header_row + 1 + POSITION_COLUMN_SCAN_ROWS, sheet.n_rows)
    for row in range(header_row + 1, last):
        texts = sheet.row_texts(row)
        for col, text in enumerate(texts[:POSITION_COLUMN_SCAN_COLS]):
            if is_position_token(text):
                return col
    return None


# -----------------------------------------------------------------------------
# Strategies
# -----------------------------------------------------------------------------

class GridStrategy:
    """Team-columns grid: a row near the top naming every team."""

    name = "grid"

    def detect(
        self,
        sheet: Sheet,
        teams: TeamIdentityResolver,
        log: RunLog,
        is_draft: bool = False,
    ) -> Optional[GridLayout]:
        threshold = DRAFT_TEAM_THRESHOLD if is_draft else PERIOD_TEAM_THRESHOLD
        last = min(GRID_HEADER_SCAN_ROWS, sheet.n_rows)

        for row in range(last):
            if has_standard_header(sheet, row):
                log.info(f"  Found Standard Vertical Headers at Row {row}. Skipping Grid Detection.")
                return None

            columns = _team_header_columns(sheet.row_texts(row), teams)
            if len(columns) >= threshold:
                log.info(f"  Found {len(columns)} team headers at row {row}: {', '.join(columns.values())}")
                position_column = find_position_column(sheet, row)
                if position_column is not None:
                    log.info(f"  Found position column at index {position_column}")
                return GridLayout(row, columns, position_column)

        return None


class VerticalStrategy:
    """Record table: a header row with one or more Player/Name columns."""

    name = "vertical"

    def detect(
        self,
        sheet: Sheet,
        teams: TeamIdentityResolver,
        log: RunLog,
        is_draft: bool = False,
    ) -> Optional[VerticalLayout]:
        last = min(VERTICAL_HEADER_SCAN_ROWS, sheet.n_rows)
        header_row = next(
            (
                row for row in range(last)
                if "player" in sheet.row_string(row) or "team" in sheet.row_string(row)
            ),
            None,
        )
        if header_row is None:
            return None

        labels = sheet.row_texts(header_row)
        starts: List[int] = []
        for col, label in enumerate(labels):
            lowered = label.lower()
            if "player" in lowered or lowered == "name":
                if not starts or col >= starts[-1] + MIN_TABLE_GAP:
                    starts.append(col)

        if not starts:
            log.info(f"  Header row {header_row} has no Player/Name column")
            return None

        headers = []
        for index, start in enumerate(starts):
            end = starts[index + 1] if index + 1 < len(starts) else len(labels)
            headers.append(labels[start:end])

        log.info(f"  Found vertical header at row {header_row} ({len(starts)} sub-table(s) at columns {starts})")
        return VerticalLayout(header_row, starts, headers)


class RawDumpStrategy:
    """Always applicable; keeps the sheet as an unstructured dump."""

    name = "raw"

    def detect(
        self,
        sheet: Sheet,
        teams: TeamIdentityResolver,
        log: RunLog,
        is_draft: bool = False,
    ) -> RawLayout:
        return RawLayout(reason="no team header row and no record header row")


DEFAULT_STRATEGIES = (GridStrategy(), VerticalStrategy(), RawDumpStrategy())


def detect_layout(
    sheet: Sheet,
    teams: TeamIdentityResolver,
    log: RunLog,
    is_draft: bool = False,
    strategies: Sequence = DEFAULT_STRATEGIES,
) -> Layout:
    """
    Run the strategy chain over a sheet.

    Raises:
        LayoutDetectionError: if no strategy in the chain applies
    """
    for strategy in strategies:
        layout = strategy.detect(sheet, teams, log, is_draft=is_draft)
        if layout is not None:
            log.info(f'  Layout for "{sheet.name}": {strategy.name}')
            return layout

    raise LayoutDetectionError(f'No layout strategy applies to sheet "{sheet.name}"')
