"""
Pytest configuration for league archive tests.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Sequence, Set, Tuple

import openpyxl
import pytest
from openpyxl.styles import Font

from league_archive.config import DEFAULT_ALIASES_PATH
from league_archive.db.archive_db import ArchiveDB
from league_archive.identity.teams import TeamIdentityResolver
from league_archive.runlog import RunLog
from league_archive.workbook import Sheet, Workbook

GRID_HEADER = ["", "Dodger Dawgs", "Devil Dawgs", "The Show", "Raging Sluggers"]
TEAM_CODES = ["DDG", "DEV", "SHO", "RGS"]


@pytest.fixture(scope="session")
def teams() -> TeamIdentityResolver:
    """Resolver over the shipped alias dictionary."""
    return TeamIdentityResolver.from_file(DEFAULT_ALIASES_PATH)


@pytest.fixture
def log() -> RunLog:
    return RunLog()


@pytest.fixture
def db(tmp_path) -> ArchiveDB:
    """Fresh, initialized archive database."""
    archive = ArchiveDB(tmp_path / "archive.sqlite")
    archive.initialize()
    return archive


# =========================================================================
# Sheet builders
# =========================================================================


def grid_rows(players_per_team: int, pitchers_from: int) -> List[list]:
    """
    Period grid: a team header row, then one row per roster slot.

    Slots before `pitchers_from` are outfielders, the rest pitchers.
    """
    rows: List[list] = [list(GRID_HEADER)]
    for i in range(players_per_team):
        position = "OF" if i < pitchers_from else "P"
        rows.append([position] + [f"Player {code}{i:02d}" for code in TEAM_CODES])
    return rows


def vertical_rows(names_by_team: Dict[str, Sequence[str]]) -> List[list]:
    """Record table with Player / Team / Pos / stat columns."""
    rows: List[list] = [["Player", "Team", "Pos", "AB", "H", "HR", "W", "IP"]]
    for team, names in names_by_team.items():
        for i, name in enumerate(names):
            rows.append([name, team, "OF", 40 + i, 10 + i, i, 0, 0])
    return rows


def make_sheet(name: str, rows: Sequence[Sequence], bold: Set[Tuple[int, int]] = None) -> Sheet:
    return Sheet.from_values(name, rows, bold=bold)


def make_workbook(sheets: Dict[str, Sequence[Sequence]]) -> Workbook:
    return Workbook(make_sheet(name, rows) for name, rows in sheets.items())


def write_xlsx(
    path: Path,
    sheets: Dict[str, Sequence[Sequence]],
    bold: Dict[str, Set[Tuple[int, int]]] = None,
) -> Path:
    """Write a real .xlsx file; `bold` maps sheet name -> 0-based (row, col) cells."""
    bold = bold or {}
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(title=name)
        for r, row in enumerate(rows):
            for c, value in enumerate(row):
                if value in (None, ""):
                    continue
                cell = ws.cell(row=r + 1, column=c + 1, value=value)
                if (r, c) in bold.get(name, set()):
                    cell.font = Font(bold=True)
    wb.save(path)
    return path
