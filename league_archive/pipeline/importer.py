#!/usr/bin/env python3
"""
Archive Import Pipeline

Imports one historical season workbook into the league archive:

1. Classify sheets (draft / standings / period candidates / ignored)
2. Resolve period boundaries from the tab names
3. Detect each sheet's layout and unroll it into flat records
4. Write the auditable CSV files
5. Match raw player names against identities from earlier imports
6. Persist periods, stat rows, draft results and standings, then drop
   orphan periods left over from an earlier, longer import

A failure inside one sheet or period is logged and the sheet falls back to a
raw dump; anything that escapes those guards (an unreadable workbook, a
database failure) ends the run with success=False. Periods written before
such a failure stay committed.

Usage:
    # Import a season
    league-archive-import uploads/2024.xlsx --year 2024

    # Parse and export only, leave the database untouched
    league-archive-import uploads/2024.xlsx --year 2024 --dry-run

    # As a module
    from league_archive.pipeline.importer import ArchiveImporter
    importer = ArchiveImporter(2024, db=ArchiveDB("db/archive.sqlite"), teams=teams)
    result = importer.process_and_import("uploads/2024.xlsx")
    print(result.success, len(result.messages))
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from league_archive.config import get_config, validate_config
from league_archive.db.archive_db import ArchiveDB
from league_archive.export.csv_export import ArchiveExporter
from league_archive.identity.players import PlayerIdentityMatcher, PlayerKnowledgeBase
from league_archive.identity.teams import TeamIdentityResolver
from league_archive.layout.detector import GridLayout, VerticalLayout, detect_layout
from league_archive.layout.grid import unroll_grid
from league_archive.layout.standings import unroll_standings
from league_archive.layout.vertical import unroll_vertical
from league_archive.models import DraftResult, PlayerStatRecord, StandingRow
from league_archive.periods import PeriodDefinition, resolve_periods
from league_archive.runlog import RunLog
from league_archive.sheets import classify_sheets
from league_archive.validation.roster import validate_rosters
from league_archive.workbook import Sheet, Workbook, load_workbook

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Result of one import run."""
    success: bool
    year: int
    messages: List[str] = field(default_factory=list)
    periods: List[PeriodDefinition] = field(default_factory=list)
    period_counts: Dict[int, int] = field(default_factory=dict)
    draft_count: Optional[int] = None
    standings_count: Optional[int] = None
    orphans_deleted: List[int] = field(default_factory=list)
    files_written: List[str] = field(default_factory=list)


@dataclass
class _ParsedSeason:
    """Everything unrolled from a workbook, before persistence."""
    periods: List[PeriodDefinition]
    # None marks a period whose sheet fell back to a raw dump
    period_records: Dict[int, Optional[List[PlayerStatRecord]]] = field(default_factory=dict)
    draft_records: Optional[List[PlayerStatRecord]] = None
    standings: Optional[List[StandingRow]] = None


class ArchiveImporter:
    """
    Imports season workbooks for one target year.

    The knowledge base of earlier player identities is read once per run,
    from every season except the one being imported, so re-importing a
    workbook reproduces the same rows.
    """

    def __init__(
        self,
        year: int,
        db: Optional[ArchiveDB],
        teams: TeamIdentityResolver,
        output_dir: Optional[str | Path] = None,
        dry_run: bool = False,
    ):
        """
        Initialize the importer.

        Args:
            year: Target season year
            db: Archive database; may be None for a dry run
            teams: Team alias resolver
            output_dir: Root directory for CSV exports; None disables them
            dry_run: Parse and export only, skip all database writes
        """
        if db is None and not dry_run:
            raise ValueError("An ArchiveDB is required unless dry_run is set")
        self.year = year
        self.db = db
        self.teams = teams
        self.exporter = ArchiveExporter(output_dir, year) if output_dir is not None else None
        self.dry_run = dry_run

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def process_and_import(self, path: str | Path) -> ImportResult:
        """Decode the workbook at `path` and import it."""
        log = RunLog()
        result = ImportResult(success=False, year=self.year, messages=log.messages)
        try:
            log.info(f"Starting archive import for {self.year} from {Path(path).name}")
            workbook = load_workbook(path)
            self._run(workbook, log, result)
        except Exception as e:
            log.error(f"CRITICAL ERROR: {e}")
            result.success = False
        return result

    def import_workbook(self, workbook: Workbook) -> ImportResult:
        """Import an already-decoded workbook."""
        log = RunLog()
        result = ImportResult(success=False, year=self.year, messages=log.messages)
        try:
            log.info(f"Starting archive import for {self.year}")
            self._run(workbook, log, result)
        except Exception as e:
            log.error(f"CRITICAL ERROR: {e}")
            result.success = False
        return result

    def _run(self, workbook: Workbook, log: RunLog, result: ImportResult) -> None:
        parsed = self._parse(workbook, log)
        result.periods = parsed.periods

        if self.dry_run:
            log.info("Dry run: skipping database import")
            result.period_counts = {
                number: len(records or [])
                for number, records in parsed.period_records.items()
            }
        else:
            self._persist(parsed, log, result)

        if self.exporter is not None:
            result.files_written = [str(path) for path in self.exporter.written]
        log.info("Import complete successfully.")
        result.success = True

    # -------------------------------------------------------------------------
    # Parsing
    # -------------------------------------------------------------------------

    def _parse(self, workbook: Workbook, log: RunLog) -> _ParsedSeason:
        classification = classify_sheets(workbook.sheet_names, self.year)
        log.info(
            f"Sheets: draft={classification.draft_sheet or '-'}, "
            f"standings={classification.standings_sheet or '-'}, "
            f"{len(classification.period_candidates)} period candidates"
        )
        if classification.ignored:
            log.info(f"Ignoring sheets: {', '.join(classification.ignored)}")

        periods = resolve_periods(classification, self.year, log)
        parsed = _ParsedSeason(periods=periods)
        if self.exporter is not None:
            self.exporter.write_period_dates(periods)

        if classification.draft_sheet:
            parsed.draft_records = self._parse_draft(workbook.sheet(classification.draft_sheet), log)

        if classification.standings_sheet:
            parsed.standings = self._parse_standings(workbook.sheet(classification.standings_sheet), log)

        for period in periods:
            if period.is_draft:
                parsed.period_records[period.number] = parsed.draft_records
                continue
            parsed.period_records[period.number] = self._parse_period(
                period, workbook.sheet(period.sheet_name), log
            )

        return parsed

    def _unroll(self, sheet: Sheet, log: RunLog, is_draft: bool = False) -> Optional[List[PlayerStatRecord]]:
        """Records of a roster sheet, or None when it can only be dumped raw."""
        layout = detect_layout(sheet, self.teams, log, is_draft=is_draft)
        if isinstance(layout, GridLayout):
            return unroll_grid(sheet, layout, self.teams, self.year, log).records
        if isinstance(layout, VerticalLayout):
            return unroll_vertical(sheet, layout, self.teams, log)
        log.warning(f'  Could not structure "{sheet.name}" ({layout.reason}); falling back to raw dump')
        return None

    def _parse_draft(self, sheet: Sheet, log: RunLog) -> Optional[List[PlayerStatRecord]]:
        log.info(f'[Draft] Analyzing layout of "{sheet.name}"...')
        try:
            records = self._unroll(sheet, log, is_draft=True)
        except Exception as e:
            log.error(f"  Error parsing Draft sheet: {e}. Fallback to standard.")
            records = None

        if self.exporter is not None:
            if records is None:
                self.exporter.write_raw(sheet, self.exporter.draft_filename())
                self.exporter.write_raw(sheet, self.exporter.period_filename(1))
            else:
                self.exporter.write_draft(records)
                log.info(f"  Generated draft_{self.year}_auction.csv and period_1.csv ({len(records)} draft picks)")
        return records

    def _parse_standings(self, sheet: Sheet, log: RunLog) -> Optional[List[StandingRow]]:
        log.info(f'[Standings] Analyzing layout of "{sheet.name}"...')
        try:
            standings = unroll_standings(sheet, self.teams, log)
        except Exception as e:
            log.error(f"  Error parsing Standings: {e}. Fallback.")
            standings = None

        if self.exporter is not None:
            if standings is None:
                self.exporter.write_raw(sheet, self.exporter.standings_filename())
            else:
                self.exporter.write_standings(standings)
            log.info(f"  Generated season_standings_{self.year}.csv")
        return standings

    def _parse_period(
        self,
        period: PeriodDefinition,
        sheet: Sheet,
        log: RunLog,
    ) -> Optional[List[PlayerStatRecord]]:
        log.info(f'[Period {period.number}] Analyzing layout of "{sheet.name}"...')
        try:
            records = self._unroll(sheet, log)
        except Exception as e:
            log.error(f"ERROR unrolling Period {period.number}: {e}. Falling back to standard CSV.")
            records = None

        if self.exporter is not None:
            if records is None:
                self.exporter.write_raw(sheet, self.exporter.period_filename(period.number))
            else:
                self.exporter.write_period(period.number, records)
                log.info(f"  Generated period_{period.number}.csv ({len(records)} rows)")
        return records

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    @staticmethod
    def resolve_record(record: PlayerStatRecord, matcher: PlayerIdentityMatcher) -> PlayerStatRecord:
        """Copy of `record` with identity fields filled from the knowledge base."""
        match = matcher.match(record.player_name, record.is_pitcher)
        player = match.player

        position = record.position
        if not position and player is not None:
            position = player.position
        if not position and record.is_pitcher:
            position = "P"

        return dataclasses.replace(
            record,
            position=position,
            mlb_team=record.mlb_team or (player.mlb_team if player else None),
            full_name=(player.full_name if player and player.full_name else record.player_name),
            mlb_id=player.mlb_id if player else None,
            match_method=match.match_method,
        )

    def _persist(self, parsed: _ParsedSeason, log: RunLog, result: ImportResult) -> None:
        if not self.db.exists():
            self.db.initialize()

        log.info("Building player knowledge base from existing database...")
        kb = PlayerKnowledgeBase.from_rows(self.db.fetch_player_identities(exclude_year=self.year))
        log.info(f"  {len(kb)} known player names from other seasons")
        matcher = PlayerIdentityMatcher(kb, log)

        season_id = self.db.upsert_season(self.year)
        resolved_draft: Optional[List[PlayerStatRecord]] = None

        for period in parsed.periods:
            records = parsed.period_records.get(period.number)
            if records is None:
                log.warning(f"Period {period.number} has no structured rows (raw fallback); its stat rows are cleared")
                records = []

            log.info(f"Importing Period {period.number}...")
            resolved = [self.resolve_record(record, matcher) for record in records]
            if period.is_draft and parsed.draft_records is not None:
                resolved_draft = resolved

            self.db.replace_period(season_id, period, resolved)
            result.period_counts[period.number] = len(resolved)
            log.info(f"  Period {period.number}: {len(resolved)} player rows")

            if resolved:
                validate_rosters(resolved, self.year).log_report(log, period.number)

        orphans = self.db.delete_orphan_periods(season_id, [period.number for period in parsed.periods])
        if orphans:
            log.info(f"[Cleanup] Deleting {len(orphans)} orphaned periods: {', '.join(str(n) for n in orphans)}")
        result.orphans_deleted = orphans

        if parsed.draft_records is not None:
            if resolved_draft is None:
                resolved_draft = [self.resolve_record(record, matcher) for record in parsed.draft_records]
            result.draft_count = self.db.replace_draft_results(
                season_id, [DraftResult.from_record(record) for record in resolved_draft]
            )
            log.info(f"Imported {result.draft_count} draft results")

        if parsed.standings is not None:
            result.standings_count = self.db.replace_standings(season_id, parsed.standings)
            log.info(f"Imported {result.standings_count} standings rows")


def main() -> int:
    """Main CLI entry point."""
    config = get_config()

    parser = argparse.ArgumentParser(
        description="Import a historical season workbook into the league archive",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "workbook",
        type=Path,
        help="Season workbook (.xlsx)"
    )
    parser.add_argument(
        "--year",
        type=int,
        required=True,
        help="Season year the workbook belongs to"
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=Path(config["db_path"]),
        help=f"Archive database path (default: {config['db_path']})"
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path(config["output_dir"]),
        help=f"CSV export directory (default: {config['output_dir']})"
    )
    parser.add_argument(
        "--league-id",
        type=int,
        default=config["league_id"],
        help=f"League id (default: {config['league_id']})"
    )
    parser.add_argument(
        "--aliases",
        type=Path,
        default=Path(config["aliases_path"]),
        help="Team alias dictionary (YAML)"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and export without writing to the database"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    issues = validate_config()
    if issues:
        for issue in issues:
            logger.error(f"Configuration issue: {issue}")
        return 1

    teams = TeamIdentityResolver.from_file(args.aliases)
    db = None if args.dry_run else ArchiveDB(args.db, league_id=args.league_id)
    importer = ArchiveImporter(
        args.year,
        db=db,
        teams=teams,
        output_dir=args.output,
        dry_run=args.dry_run,
    )
    result = importer.process_and_import(args.workbook)

    print("\n" + "=" * 60)
    print("IMPORT SUMMARY")
    print("=" * 60)
    print(f"Season: {result.year}")
    print(f"Status: {'SUCCESS' if result.success else 'FAILED'}")
    print(f"\nPeriods:")
    for period in result.periods:
        count = result.period_counts.get(period.number, 0)
        print(f"  P{period.number}: {period.start} -> {period.end} {period.sheet_name} ({count} rows)")
    if result.draft_count is not None:
        print(f"\nDraft results: {result.draft_count}")
    if result.standings_count is not None:
        print(f"Standings rows: {result.standings_count}")
    if result.orphans_deleted:
        print(f"Orphan periods deleted: {', '.join(str(n) for n in result.orphans_deleted)}")
    print("=" * 60)

    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
