"""
Team-columns roster grid unroller.

Each fantasy team owns one column of the grid; player names are read
top-down beneath the team header row. Position, MLB team and auction price
sit in the columns just to the right of a name. Keepers are the names set in
bold.

Usage:
    from league_archive.layout.grid import unroll_grid

    result = unroll_grid(sheet, layout, teams, year=2024, log=log)
    for record in result.records:
        print(record.team_code, record.player_name)
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from league_archive.config import roster_size
from league_archive.identity.teams import TeamIdentityResolver
from league_archive.layout.detector import GridLayout, is_numeric_text
from league_archive.models import PlayerStatRecord
from league_archive.positions import (
    Section,
    advance_section,
    is_pitcher_position,
    is_position_token,
    section_from_keywords,
)
from league_archive.runlog import RunLog
from league_archive.workbook import Sheet

TERMINATOR_KEYWORDS = ("total", "salary cap", "standings")
ADJACENT_SCAN_COLUMNS = 5
MLB_TEAM_PATTERN = re.compile(r"^[A-Za-z]{2,3}$")
MIN_PRICE = 1
MAX_PRICE = 500


@dataclass
class GridUnrollResult:
    records: List[PlayerStatRecord] = field(default_factory=list)
    # Names dropped per team after the roster cap was reached
    excess: Dict[str, int] = field(default_factory=dict)


def is_terminator_row(row_text: str) -> bool:
    return any(keyword in row_text for keyword in TERMINATOR_KEYWORDS)


def is_noise_cell(text: str, teams: TeamIdentityResolver) -> bool:
    """True when a team-column cell cannot be a player name."""
    if len(text) <= 1:
        return True
    if is_position_token(text) or is_numeric_text(text) or "/" in text:
        return True
    return teams.resolve(text) is not None


def _scan_adjacent(
    sheet: Sheet,
    row: int,
    col: int,
    stop: int,
) -> Dict[str, object]:
    """Position, MLB team and price from the cells right of a name."""
    found: Dict[str, object] = {}
    for offset in range(1, ADJACENT_SCAN_COLUMNS + 1):
        target = col + offset
        if target >= stop:
            break
        text = sheet.text(row, target)
        if not text:
            continue

        if is_position_token(text):
            found.setdefault("position", text.upper())
        elif MLB_TEAM_PATTERN.match(text):
            found.setdefault("mlb_team", text.upper())
        elif is_numeric_text(text):
            price = float(text.replace(",", ""))
            if MIN_PRICE <= price <= MAX_PRICE:
                found.setdefault("price", int(price))
    return found


def unroll_grid(
    sheet: Sheet,
    layout: GridLayout,
    teams: TeamIdentityResolver,
    year: int,
    log: RunLog,
) -> GridUnrollResult:
    """Flatten a roster grid into one record per (row, team column) name."""
    cap = roster_size(year)
    result = GridUnrollResult()
    counts: Dict[str, int] = {}
    team_cols = sorted(layout.team_columns)
    section = Section.HITTERS

    for row in range(layout.header_row + 1, sheet.n_rows):
        if sheet.is_blank_row(row):
            continue

        row_text = sheet.row_string(row)
        if is_terminator_row(row_text):
            log.info(f"  Grid ends at row {row} (terminator row)")
            break

        header = section_from_keywords(sheet.row_texts(row))
        if header is not None:
            if header is not section:
                log.info(f"  Row {row}: section header -> {header.value}")
            section = header
            continue

        row_position: Optional[str] = None
        if layout.position_column is not None:
            text = sheet.text(row, layout.position_column).upper()
            if is_position_token(text):
                row_position = text
                implied = advance_section(section, position=text)
                if implied is not section:
                    log.info(f"  Row {row}: position {text} -> {implied.value}")
                section = implied

        for index, col in enumerate(team_cols):
            team_code = layout.team_columns[col]
            cell = sheet.cell(row, col)
            name = cell.text
            if not name or is_noise_cell(name, teams):
                continue

            if counts.get(team_code, 0) >= cap:
                result.excess[team_code] = result.excess.get(team_code, 0) + 1
                continue

            stop = team_cols[index + 1] if index + 1 < len(team_cols) else col + ADJACENT_SCAN_COLUMNS + 1
            adjacent = _scan_adjacent(sheet, row, col, stop)
            position = row_position or adjacent.get("position")

            result.records.append(PlayerStatRecord(
                player_name=name,
                team_code=team_code,
                position=position,
                mlb_team=adjacent.get("mlb_team"),
                is_pitcher=section.is_pitchers or is_pitcher_position(position),
                is_keeper=cell.bold,
                draft_dollars=adjacent.get("price", 0),
            ))
            counts[team_code] = counts.get(team_code, 0) + 1

    for team_code, dropped in sorted(result.excess.items()):
        log.warning(
            f"  Roster cap: {team_code} listed {cap + dropped} players (cap {cap} for {year}); "
            f"ignored {dropped} extra name(s)"
        )

    log.info(f'  Unrolled {len(result.records)} players from grid "{sheet.name}"')
    return result
