"""
Season standings unroller.

Standings sheets hold one row per team with the category scores, total and
final rank. Some years place two or more copies of the table side by side;
these are stacked into a single list using the first table's headers.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from league_archive.identity.teams import TeamIdentityResolver
from league_archive.layout.detector import MIN_TABLE_GAP, is_numeric_text
from league_archive.layout.vertical import normalize_label
from league_archive.models import STANDING_CATEGORIES, StandingRow, first_value, to_float, to_int
from league_archive.runlog import RunLog
from league_archive.workbook import Sheet

HEADER_SCAN_ROWS = 20
HEADER_KEYWORDS = ("rank", "team", "total")

TEAM_NAME_COLUMNS = ["team_name", "team", "user", "fantasy team", "name"]
TOTAL_COLUMNS = ["total_score", "total", "score", "pts", "points"]
RANK_COLUMNS = ["final_rank", "rank", "rk", "pos"]


def find_header_row(sheet: Sheet) -> Optional[int]:
    for row in range(min(HEADER_SCAN_ROWS, sheet.n_rows)):
        text = sheet.row_string(row)
        if any(keyword in text for keyword in HEADER_KEYWORDS):
            return row
    return None


def _start_kind(label: str) -> Optional[str]:
    """Kind of table ("rank" or "team") a header label can open, if any."""
    lowered = label.lower()
    if "rank" in lowered or lowered == "rk":
        return "rank"
    if "team" in lowered and "score" not in lowered:
        return "team"
    return None


def find_table_starts(labels: List[str]) -> List[int]:
    """
    Columns where a standings table begins.

    A later table only starts where the first table's opening label repeats,
    so a single table ending in a Rank column stays one table.
    """
    starts: List[int] = []
    first_kind: Optional[str] = None
    for col, label in enumerate(labels):
        kind = _start_kind(label)
        if kind is None:
            continue
        if not starts:
            starts.append(col)
            first_kind = kind
        elif kind == first_kind and col >= starts[-1] + MIN_TABLE_GAP:
            starts.append(col)
    return starts


def standing_from_mapping(
    row: Dict[str, str],
    teams: TeamIdentityResolver,
) -> Optional[StandingRow]:
    """StandingRow from a header->value mapping, or None if the team is unknown."""
    team_name = first_value(row, TEAM_NAME_COLUMNS)
    if team_name is None:
        return None
    team_code = first_value(row, ["team_code"]) or teams.resolve(team_name)
    if not team_code:
        return None

    scores = {}
    for category in STANDING_CATEGORIES:
        key = category.lower()
        scores[category] = to_float(first_value(row, [f"{key}_score", key]))

    return StandingRow(
        team_code=str(team_code).upper(),
        team_name=str(team_name).strip(),
        scores=scores,
        total_score=to_float(first_value(row, TOTAL_COLUMNS)),
        final_rank=to_int(first_value(row, RANK_COLUMNS)),
    )


def unroll_standings(
    sheet: Sheet,
    teams: TeamIdentityResolver,
    log: RunLog,
) -> Optional[List[StandingRow]]:
    """
    Flatten a standings sheet.

    Returns None when no header row can be found or no team row is
    recognized; the caller then falls back to a raw dump of the sheet and
    leaves any stored standings in place.
    """
    header_row = find_header_row(sheet)
    if header_row is None:
        log.warning(f'  [Standings] No header row in "{sheet.name}"')
        return None

    raw_labels = sheet.row_texts(header_row)
    starts = find_table_starts(raw_labels) or [0]
    side_by_side = len(starts) > 1
    if side_by_side:
        log.info(f"  Unrolling side-by-side Standings ({len(starts)} tables)...")
    first_end = starts[1] if side_by_side else len(raw_labels)
    labels = [normalize_label(label) for label in raw_labels[starts[0]:first_end]]
    leads_with_rank = _start_kind(raw_labels[starts[0]]) == "rank"

    standings: List[StandingRow] = []
    for row in range(header_row + 1, sheet.n_rows):
        texts = sheet.row_texts(row)
        for index, start in enumerate(starts):
            if start >= len(texts):
                continue
            end = starts[index + 1] if index + 1 < len(starts) else len(texts)
            chunk = texts[start:end]
            if not chunk or not chunk[0]:
                continue
            # Rank-led side-by-side tables carry a number in their first cell
            if side_by_side and leads_with_rank and not is_numeric_text(chunk[0]):
                continue

            mapping = {label: value for label, value in zip(labels, chunk) if label and value}
            standing = standing_from_mapping(mapping, teams)
            if standing is None:
                name = first_value(mapping, TEAM_NAME_COLUMNS)
                if name:
                    log.info(f'  [Standings] Skipping row {row}: unrecognized team "{name}"')
                continue
            standings.append(standing)

    if not standings:
        log.warning(f'  [Standings] No team rows recognized in "{sheet.name}"; keeping it as a raw dump')
        return None

    log.info(f"  [Standings] Unrolled {len(standings)} team rows")
    return standings
