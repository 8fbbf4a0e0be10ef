"""
Vertical record-table unroller.

Each data row holds one player with named columns. Some sheets repeat the
same columns side by side ("Player | Pos | AB | ..." twice across the page);
every copy is unrolled as its own sub-table with its own section state.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from league_archive.identity.teams import TeamIdentityResolver
from league_archive.layout.detector import VerticalLayout, is_numeric_text
from league_archive.models import (
    PlayerStatRecord,
    first_value,
    to_flag,
    to_float,
    to_int,
)
from league_archive.positions import (
    Section,
    advance_section,
    is_pitcher_position,
    is_position_token,
    section_from_keywords,
)
from league_archive.runlog import RunLog
from league_archive.workbook import Sheet

TEAM_LOOKBACK_ROWS = 3
UNKNOWN_TEAM = "UNK"

NAME_COLUMNS = ["player_name", "player", "name", "player name"]
TEAM_COLUMNS = ["team_code", "team", "user", "fantasy team"]
POSITION_COLUMNS = ["position", "pos"]
MLB_TEAM_COLUMNS = ["mlb_team", "mlb", "mlb team"]
PRICE_COLUMNS = ["draft_dollars", "price", "dollars", "$", "cost"]
KEEPER_COLUMNS = ["is_keeper", "keeper"]
PITCHER_COLUMNS = ["is_pitcher", "pitcher"]

STAT_COLUMNS: Dict[str, List[str]] = {
    "AB": ["ab"],
    "H": ["h"],
    "R": ["r"],
    "HR": ["hr"],
    "RBI": ["rbi"],
    "SB": ["sb"],
    "AVG": ["avg", "ba"],
    "GS": ["gs", "grand_slams", "grand slams"],
    "W": ["w", "wins"],
    "SV": ["sv", "saves"],
    "K": ["k", "so", "strikeouts"],
    "IP": ["ip"],
    "ER": ["er"],
    "ERA": ["era"],
    "WHIP": ["whip"],
    "SO": ["sho", "shutouts", "shut outs"],
}
FLOAT_STATS = frozenset({"AVG", "IP", "ERA", "WHIP"})


def normalize_label(label: str) -> str:
    return re.sub(r"\s+", " ", label.strip().lower())


def record_from_mapping(
    row: Dict[str, Any],
    teams: TeamIdentityResolver,
    default_team: Optional[str] = None,
    section: Section = Section.HITTERS,
) -> Optional[PlayerStatRecord]:
    """
    Build a record from a header->value mapping (labels already normalized).

    Returns None when the mapping has no player name.
    """
    name = first_value(row, NAME_COLUMNS)
    if name is None or not str(name).strip():
        return None

    raw_team = first_value(row, TEAM_COLUMNS)
    team_code = default_team or UNKNOWN_TEAM
    if raw_team is not None and str(raw_team).strip():
        team_code = teams.resolve(raw_team) or str(raw_team).strip().upper()

    position = first_value(row, POSITION_COLUMNS)
    position = str(position).strip().upper() if position is not None else None

    mlb_team = first_value(row, MLB_TEAM_COLUMNS)
    mlb_team = str(mlb_team).strip().upper() if mlb_team is not None else None

    stats: Dict[str, float] = {}
    for stat, labels in STAT_COLUMNS.items():
        value = first_value(row, labels)
        if value is None:
            continue
        stats[stat] = to_float(value) if stat in FLOAT_STATS else to_int(value)

    flag = first_value(row, PITCHER_COLUMNS)
    if flag is not None:
        is_pitcher = to_flag(flag)
    else:
        is_pitcher = (
            stats.get("W", 0) + stats.get("SV", 0) + stats.get("IP", 0) > 0
            or is_pitcher_position(position)
            or section.is_pitchers
        )

    return PlayerStatRecord(
        player_name=str(name).strip(),
        team_code=team_code,
        position=position,
        mlb_team=mlb_team,
        is_pitcher=is_pitcher,
        is_keeper=to_flag(first_value(row, KEEPER_COLUMNS)),
        draft_dollars=to_int(first_value(row, PRICE_COLUMNS)),
        stats=stats,
    )


def _team_above_header(
    sheet: Sheet,
    layout: VerticalLayout,
    index: int,
    teams: TeamIdentityResolver,
) -> Optional[str]:
    """Team named just above a sub-table that has no team column."""
    start = layout.table_starts[index]
    end = layout.table_end(index, len(sheet.row(layout.header_row)))
    for row in range(layout.header_row - 1, max(layout.header_row - 1 - TEAM_LOOKBACK_ROWS, -1), -1):
        for col in range(start, end):
            text = sheet.text(row, col)
            if not text or is_numeric_text(text):
                continue
            code = teams.resolve(text)
            if code:
                return code
    return None


def unroll_vertical(
    sheet: Sheet,
    layout: VerticalLayout,
    teams: TeamIdentityResolver,
    log: RunLog,
) -> List[PlayerStatRecord]:
    """Flatten every sub-table of a record sheet into PlayerStatRecords."""
    records: List[PlayerStatRecord] = []
    labels = [[normalize_label(h) for h in headers] for headers in layout.headers]

    default_teams: List[Optional[str]] = []
    for index, table_labels in enumerate(labels):
        team = None
        if not any(label in TEAM_COLUMNS for label in table_labels):
            team = _team_above_header(sheet, layout, index, teams)
            if team:
                log.info(f"  Sub-table at column {layout.table_starts[index]} belongs to {team}")
        default_teams.append(team)

    sections = [Section.HITTERS for _ in layout.table_starts]

    for row in range(layout.header_row + 1, sheet.n_rows):
        if sheet.is_blank_row(row):
            continue
        texts = sheet.row_texts(row)

        for index, start in enumerate(layout.table_starts):
            end = layout.table_end(index, len(texts))
            chunk = texts[start:end]
            if not chunk or not chunk[0]:
                continue

            header = section_from_keywords(chunk)
            if header is not None:
                if header is not sections[index]:
                    log.info(f"  Row {row}, column {start}: section header -> {header.value}")
                sections[index] = header
                continue

            # Repeated header row further down the page
            if normalize_label(chunk[0]) == labels[index][0]:
                continue

            mapping = {
                label: value
                for label, value in zip(labels[index], chunk)
                if label
            }
            # The sub-table starts at its name column whatever it is labelled
            mapping.setdefault("player_name", chunk[0])
            position = first_value(mapping, POSITION_COLUMNS)
            if position is not None and is_position_token(position):
                implied = advance_section(sections[index], position=str(position))
                if implied is not sections[index]:
                    log.info(f"  Row {row}, column {start}: position {position} -> {implied.value}")
                sections[index] = implied

            record = record_from_mapping(mapping, teams, default_teams[index], sections[index])
            if record is None:
                continue
            record.is_keeper = record.is_keeper or sheet.cell(row, start).bold
            records.append(record)

    log.info(f'  Unrolled {len(records)} rows from vertical sheet "{sheet.name}"')
    return records
