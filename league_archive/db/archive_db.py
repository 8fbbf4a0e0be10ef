#!/usr/bin/env python3
"""
League Archive Database Initialization and Management

This module provides functionality to initialize and manage the historical
archive database. It includes:

- Database initialization from schema.sql
- Season / period upserts and period-scoped stat replacement
- Orphan period cleanup
- Draft result and standings replacement
- Read-back queries used for auditing

Usage:
    # Initialize a new database
    league-archive-db --init

    # Check database integrity
    league-archive-db --check

    # List imported seasons and their periods
    league-archive-db --list

    # As a module
    from league_archive.db.archive_db import ArchiveDB
    db = ArchiveDB("db/archive.sqlite")
    db.initialize()
"""

from __future__ import annotations

import argparse
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, Iterable, Optional, Sequence

from league_archive.config import DEFAULT_LEAGUE_ID, get_config
from league_archive.models import (
    STANDING_CATEGORIES,
    STAT_FIELDS,
    DraftResult,
    PlayerStatRecord,
    StandingRow,
)
from league_archive.periods import PeriodDefinition

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Path constants
SCRIPT_DIR = Path(__file__).parent
SCHEMA_PATH = SCRIPT_DIR / "schema.sql"

STAT_COLUMNS = [name.lower() for name in STAT_FIELDS]
PLAYER_STAT_COLUMNS = [
    "period_id", "player_name", "full_name", "mlb_id", "team_code", "position",
    "mlb_team", "is_pitcher", "is_keeper", "draft_dollars",
] + STAT_COLUMNS
SCORE_COLUMNS = [f"{category.lower()}_score" for category in STANDING_CATEGORIES]


def _stat_row(period_id: int, record: PlayerStatRecord) -> tuple:
    return (
        period_id,
        record.player_name,
        record.full_name or record.player_name,
        record.mlb_id,
        record.team_code,
        record.position,
        record.mlb_team,
        int(record.is_pitcher),
        int(record.is_keeper),
        record.draft_dollars,
    ) + tuple(record.stat(name) for name in STAT_FIELDS)


class ArchiveDB:
    """
    Manager for the league archive database.

    Provides connection management and the write/read operations used by the
    importer. Each period replacement runs in its own transaction; there is no
    transaction spanning a whole import.
    """

    def __init__(self, db_path: str | Path, league_id: int = DEFAULT_LEAGUE_ID):
        """
        Initialize the database manager.

        Args:
            db_path: Path to the SQLite database file
            league_id: League whose seasons this manager reads and writes
        """
        self.db_path = Path(db_path)
        self.league_id = league_id

    @contextmanager
    def connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for database connections with proper cleanup."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def transaction(self, conn: sqlite3.Connection) -> Generator[sqlite3.Cursor, None, None]:
        """Context manager for database transactions."""
        cursor = conn.cursor()
        try:
            yield cursor
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()

    def exists(self) -> bool:
        return self.db_path.exists()

    def initialize(self, force: bool = False) -> None:
        """
        Initialize the database with the schema.

        Args:
            force: If True, will drop existing tables and recreate.
                   Use with caution - this destroys all data!
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        if self.db_path.exists() and not force:
            logger.info(f"Database already exists at {self.db_path}")
            logger.info("Use --force to reinitialize (WARNING: destroys data)")
            return

        if force and self.db_path.exists():
            logger.warning(f"Forcing reinitialization - removing {self.db_path}")
            self.db_path.unlink()

        if not SCHEMA_PATH.exists():
            raise FileNotFoundError(f"Schema file not found: {SCHEMA_PATH}")

        schema_sql = SCHEMA_PATH.read_text()

        with self.connection() as conn:
            logger.info(f"Creating database at {self.db_path}")
            conn.executescript(schema_sql)
            logger.info("Schema initialized successfully")

            cursor = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
            )
            tables = [row[0] for row in cursor.fetchall()]
            logger.info(f"Created tables: {', '.join(tables)}")

    def get_schema_version(self) -> Optional[str]:
        """Get the current schema version from the database."""
        try:
            with self.connection() as conn:
                cursor = conn.execute(
                    "SELECT value FROM schema_meta WHERE key = 'schema_version'"
                )
                row = cursor.fetchone()
                return row[0] if row else None
        except sqlite3.OperationalError:
            return None

    def check_integrity(self) -> dict[str, Any]:
        """
        Run integrity checks on the database.

        Returns:
            Dictionary with check results
        """
        results: dict[str, Any] = {
            "valid": True,
            "checks": {},
            "errors": []
        }

        try:
            with self.connection() as conn:
                # SQLite integrity check
                integrity_result = conn.execute("PRAGMA integrity_check").fetchone()[0]
                results["checks"]["sqlite_integrity"] = integrity_result == "ok"
                if integrity_result != "ok":
                    results["errors"].append(f"SQLite integrity: {integrity_result}")
                    results["valid"] = False

                # Foreign key check
                fk_violations = conn.execute("PRAGMA foreign_key_check").fetchall()
                results["checks"]["foreign_keys"] = len(fk_violations) == 0
                if fk_violations:
                    results["errors"].append(f"Foreign key violations: {len(fk_violations)}")
                    results["valid"] = False

                # Periods must be numbered 1..N within each season
                gaps = conn.execute("""
                    SELECT season_id FROM periods
                    GROUP BY season_id
                    HAVING MAX(period_number) != COUNT(*)
                """).fetchall()
                results["checks"]["contiguous_periods"] = len(gaps) == 0
                if gaps:
                    results["errors"].append(f"Seasons with period gaps: {len(gaps)}")
                    results["valid"] = False

                # Periods must not overlap
                overlaps = conn.execute("""
                    SELECT COUNT(*) FROM periods a
                    JOIN periods b
                      ON a.season_id = b.season_id
                     AND b.period_number = a.period_number + 1
                    WHERE b.start_date <= a.end_date
                """).fetchone()[0]
                results["checks"]["no_overlapping_periods"] = overlaps == 0
                if overlaps:
                    results["errors"].append(f"Overlapping periods: {overlaps}")
                    results["valid"] = False

                results["stats"] = {}
                for table in ("seasons", "periods", "player_stats", "draft_results", "standings"):
                    results["stats"][table] = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]

        except sqlite3.Error as e:
            results["valid"] = False
            results["errors"].append(f"Check failed: {e}")

        return results

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def upsert_season(self, year: int) -> int:
        """Create the season row if needed and return its id."""
        with self.connection() as conn:
            with self.transaction(conn) as cur:
                cur.execute(
                    "INSERT OR IGNORE INTO seasons (year, league_id) VALUES (?, ?)",
                    (year, self.league_id),
                )
                cur.execute(
                    "SELECT id FROM seasons WHERE year = ? AND league_id = ?",
                    (year, self.league_id),
                )
                return cur.fetchone()[0]

    def replace_period(
        self,
        season_id: int,
        period: PeriodDefinition,
        records: Sequence[PlayerStatRecord],
    ) -> int:
        """
        Upsert a period and replace all of its stat rows.

        The upsert, delete and insert run in one transaction.

        Returns:
            The period id
        """
        placeholders = ", ".join("?" for _ in PLAYER_STAT_COLUMNS)
        with self.connection() as conn:
            with self.transaction(conn) as cur:
                cur.execute("""
                    INSERT INTO periods (season_id, period_number, start_date, end_date, source_sheet_name)
                    VALUES (?, ?, ?, ?, ?)
                    ON CONFLICT (season_id, period_number) DO UPDATE SET
                        start_date = excluded.start_date,
                        end_date = excluded.end_date,
                        source_sheet_name = excluded.source_sheet_name
                """, (
                    season_id,
                    period.number,
                    period.start.isoformat(),
                    period.end.isoformat(),
                    period.sheet_name,
                ))
                cur.execute(
                    "SELECT id FROM periods WHERE season_id = ? AND period_number = ?",
                    (season_id, period.number),
                )
                period_id = cur.fetchone()[0]

                cur.execute("DELETE FROM player_stats WHERE period_id = ?", (period_id,))
                cur.executemany(
                    f"INSERT INTO player_stats ({', '.join(PLAYER_STAT_COLUMNS)}) VALUES ({placeholders})",
                    [_stat_row(period_id, record) for record in records],
                )

        logger.debug(f"Period {period.number} (id={period_id}): {len(records)} stat rows")
        return period_id

    def delete_orphan_periods(self, season_id: int, keep: Iterable[int]) -> list[int]:
        """
        Delete periods of a season whose number is not in `keep`.

        Returns:
            The deleted period numbers
        """
        keep = set(keep)
        with self.connection() as conn:
            with self.transaction(conn) as cur:
                cur.execute(
                    "SELECT id, period_number FROM periods WHERE season_id = ? ORDER BY period_number",
                    (season_id,),
                )
                orphans = [row for row in cur.fetchall() if row["period_number"] not in keep]
                for row in orphans:
                    cur.execute("DELETE FROM player_stats WHERE period_id = ?", (row["id"],))
                    cur.execute("DELETE FROM periods WHERE id = ?", (row["id"],))
        return [row["period_number"] for row in orphans]

    def replace_draft_results(self, season_id: int, results: Sequence[DraftResult]) -> int:
        with self.connection() as conn:
            with self.transaction(conn) as cur:
                cur.execute("DELETE FROM draft_results WHERE season_id = ?", (season_id,))
                cur.executemany("""
                    INSERT INTO draft_results (
                        season_id, team_code, player_name, position, mlb_team,
                        price, is_keeper, is_pitcher
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """, [
                    (
                        season_id, r.team_code, r.player_name, r.position, r.mlb_team,
                        r.price, int(r.is_keeper), int(r.is_pitcher),
                    )
                    for r in results
                ])
        return len(results)

    def replace_standings(self, season_id: int, rows: Sequence[StandingRow]) -> int:
        columns = ["season_id", "team_code", "team_name"] + SCORE_COLUMNS + ["total_score", "final_rank"]
        placeholders = ", ".join("?" for _ in columns)
        with self.connection() as conn:
            with self.transaction(conn) as cur:
                cur.execute("DELETE FROM standings WHERE season_id = ?", (season_id,))
                cur.executemany(
                    f"INSERT INTO standings ({', '.join(columns)}) VALUES ({placeholders})",
                    [
                        (season_id, row.team_code, row.team_name)
                        + tuple(row.scores.get(category, 0) for category in STANDING_CATEGORIES)
                        + (row.total_score, row.final_rank)
                        for row in rows
                    ],
                )
        return len(rows)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def fetch_player_identities(self, exclude_year: Optional[int] = None) -> list[dict[str, Any]]:
        """
        Player identities seen in earlier imports, oldest first.

        Args:
            exclude_year: Season to leave out (the one being re-imported)
        """
        query = """
            SELECT ps.player_name, ps.full_name, ps.mlb_id, ps.position,
                   ps.mlb_team, ps.is_pitcher
            FROM player_stats ps
            JOIN periods p ON ps.period_id = p.id
            JOIN seasons s ON p.season_id = s.id
            WHERE s.league_id = ?
        """
        params: list[Any] = [self.league_id]
        # Rows of the season being re-imported stay out of the knowledge base
        if exclude_year is not None:
            query += " AND s.year != ?"
            params.append(exclude_year)
        query += " ORDER BY s.year, p.period_number, ps.id"

        with self.connection() as conn:
            return [dict(row) for row in conn.execute(query, params).fetchall()]

    def list_seasons(self) -> list[dict[str, Any]]:
        with self.connection() as conn:
            cursor = conn.execute("""
                SELECT s.id, s.year, s.league_id, COUNT(p.id) AS period_count
                FROM seasons s
                LEFT JOIN periods p ON p.season_id = s.id
                WHERE s.league_id = ?
                GROUP BY s.id
                ORDER BY s.year
            """, (self.league_id,))
            return [dict(row) for row in cursor.fetchall()]

    def get_periods(self, year: int) -> list[dict[str, Any]]:
        with self.connection() as conn:
            cursor = conn.execute("""
                SELECT p.id, p.period_number, p.start_date, p.end_date, p.source_sheet_name
                FROM periods p
                JOIN seasons s ON p.season_id = s.id
                WHERE s.year = ? AND s.league_id = ?
                ORDER BY p.period_number
            """, (year, self.league_id))
            return [dict(row) for row in cursor.fetchall()]

    def get_period_stats(self, year: int, period_number: int) -> list[dict[str, Any]]:
        """Stat rows of one period in insertion order, without row ids."""
        columns = ", ".join(f"ps.{c}" for c in PLAYER_STAT_COLUMNS if c != "period_id")
        with self.connection() as conn:
            cursor = conn.execute(f"""
                SELECT {columns}
                FROM player_stats ps
                JOIN periods p ON ps.period_id = p.id
                JOIN seasons s ON p.season_id = s.id
                WHERE s.year = ? AND s.league_id = ? AND p.period_number = ?
                ORDER BY ps.id
            """, (year, self.league_id, period_number))
            return [dict(row) for row in cursor.fetchall()]

    def get_standings(self, year: int) -> list[dict[str, Any]]:
        with self.connection() as conn:
            cursor = conn.execute("""
                SELECT st.* FROM standings st
                JOIN seasons s ON st.season_id = s.id
                WHERE s.year = ? AND s.league_id = ?
                ORDER BY st.final_rank, st.team_code
            """, (year, self.league_id))
            return [dict(row) for row in cursor.fetchall()]

    def get_draft_results(self, year: int) -> list[dict[str, Any]]:
        with self.connection() as conn:
            cursor = conn.execute("""
                SELECT d.* FROM draft_results d
                JOIN seasons s ON d.season_id = s.id
                WHERE s.year = ? AND s.league_id = ?
                ORDER BY d.id
            """, (year, self.league_id))
            return [dict(row) for row in cursor.fetchall()]


def main() -> None:
    """Main entry point for CLI usage."""
    config = get_config()

    parser = argparse.ArgumentParser(
        description="League Archive Database Management"
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=config["db_path"],
        help=f"Database path (default: {config['db_path']})"
    )
    parser.add_argument(
        "--init",
        action="store_true",
        help="Initialize the database with schema"
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Force reinitialization (WARNING: destroys data)"
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Run integrity checks"
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List imported seasons and their periods"
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show schema version"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    db = ArchiveDB(args.db, league_id=config["league_id"])

    if args.version:
        version = db.get_schema_version()
        if version:
            print(f"Schema version: {version}")
        else:
            print("Database not initialized or schema version not found")
        return

    if args.init:
        db.initialize(force=args.force)

    if args.check:
        results = db.check_integrity()
        print(f"\nIntegrity Check Results:")
        print(f"  Valid: {results['valid']}")
        print(f"\nChecks:")
        for check, passed in results.get("checks", {}).items():
            status = "PASS" if passed else "FAIL"
            print(f"  {check}: {status}")

        if results.get("errors"):
            print(f"\nErrors:")
            for error in results["errors"]:
                print(f"  - {error}")

        if results.get("stats"):
            print(f"\nStatistics:")
            for stat, value in results["stats"].items():
                print(f"  {stat}: {value}")

    if args.list:
        for season in db.list_seasons():
            print(f"{season['year']}: {season['period_count']} periods")
            for period in db.get_periods(season["year"]):
                print(
                    f"  P{period['period_number']}: {period['start_date']} -> "
                    f"{period['end_date']} ({period['source_sheet_name']})"
                )


if __name__ == "__main__":
    main()
