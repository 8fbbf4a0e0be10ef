"""
Archive CSV Export

Writes the human-auditable flat files for one imported season:

- period_dates_<year>.csv       period number, source sheet, start and end date
- period_<n>.csv                unrolled player rows of each period
- draft_<year>_auction.csv      auction picks (also written as period_1.csv)
- season_standings_<year>.csv   final standings

When a sheet could not be unrolled, its rows are dumped as-is under the same
filename.

Usage:
    from league_archive.export.csv_export import ArchiveExporter

    exporter = ArchiveExporter("data/archive", 2024)
    exporter.write_period_dates(periods)
    exporter.write_period(2, records)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Sequence

import pandas as pd

from league_archive.models import STANDING_CATEGORIES, STAT_FIELDS, PlayerStatRecord, StandingRow
from league_archive.periods import PeriodDefinition
from league_archive.workbook import Sheet

logger = logging.getLogger(__name__)

RECORD_COLUMNS = [
    "player_name", "team_code", "mlb_team", "position",
    "is_pitcher", "is_keeper", "draft_dollars",
]
DRAFT_COLUMNS = RECORD_COLUMNS
PERIOD_DATE_COLUMNS = ["period", "source_sheet_name", "start_date", "end_date"]
STANDING_COLUMNS = (
    ["team_code", "team_name", "final_rank", "total_score"]
    + [f"{category.lower()}_score" for category in STANDING_CATEGORIES]
)


class ArchiveExporter:
    """Writes one season's CSV files under <output_dir>/<year>/."""

    def __init__(self, output_dir: str | Path, year: int):
        self.year = year
        self.output_dir = Path(output_dir) / str(year)
        self.written: List[Path] = []

    def _write(self, df: pd.DataFrame, filename: str, header: bool = True) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / filename
        df.to_csv(path, index=False, header=header)
        self.written.append(path)
        logger.debug(f"Wrote {path} ({len(df)} rows)")
        return path

    def _records_frame(self, records: Sequence[PlayerStatRecord], base_columns: List[str]) -> pd.DataFrame:
        rows = [record.to_row() for record in records]
        stat_columns = [
            name.lower() for name in STAT_FIELDS
            if any(name in record.stats for record in records)
        ]
        return pd.DataFrame(rows, columns=base_columns + stat_columns)

    def write_period_dates(self, periods: Sequence[PeriodDefinition]) -> Path:
        df = pd.DataFrame(
            [
                {
                    "period": period.number,
                    "source_sheet_name": period.sheet_name,
                    "start_date": period.start.isoformat(),
                    "end_date": period.end.isoformat(),
                }
                for period in periods
            ],
            columns=PERIOD_DATE_COLUMNS,
        )
        return self._write(df, f"period_dates_{self.year}.csv")

    def write_period(self, number: int, records: Sequence[PlayerStatRecord]) -> Path:
        return self._write(self._records_frame(records, RECORD_COLUMNS), f"period_{number}.csv")

    def write_draft(self, records: Sequence[PlayerStatRecord]) -> List[Path]:
        """Draft picks double as the period 1 roster."""
        df = self._records_frame(records, DRAFT_COLUMNS)
        return [
            self._write(df, f"draft_{self.year}_auction.csv"),
            self._write(df, "period_1.csv"),
        ]

    def write_standings(self, rows: Sequence[StandingRow]) -> Path:
        df = pd.DataFrame([row.to_row() for row in rows], columns=STANDING_COLUMNS)
        return self._write(df, f"season_standings_{self.year}.csv")

    def write_raw(self, sheet: Sheet, filename: str) -> Path:
        """Dump a sheet's cell text unchanged."""
        return self._write(pd.DataFrame(sheet.to_values()), filename, header=False)

    # Filenames used by the importer for fallbacks
    def period_filename(self, number: int) -> str:
        return f"period_{number}.csv"

    def draft_filename(self) -> str:
        return f"draft_{self.year}_auction.csv"

    def standings_filename(self) -> str:
        return f"season_standings_{self.year}.csv"
