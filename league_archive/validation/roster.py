"""
Roster size validation.

Compares how many players each team has in a period against the roster size
of that era (23 through 2022, 30 from 2023). Mismatches are reported as a
warning table in the run log and never block persistence.

Usage:
    from league_archive.validation.roster import validate_rosters

    result = validate_rosters(records, year=2024)
    result.log_report(log, period_number=3)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from league_archive.config import roster_size
from league_archive.models import PlayerStatRecord
from league_archive.runlog import RunLog


@dataclass
class TeamRosterCount:
    """Hitter/pitcher split for one team in one period."""
    team_code: str
    hitters: int = 0
    pitchers: int = 0

    @property
    def total(self) -> int:
        return self.hitters + self.pitchers


@dataclass
class RosterValidationResult:
    """Per-team counts plus the teams that miss the expected size."""
    expected: int
    counts: Dict[str, TeamRosterCount] = field(default_factory=dict)

    @property
    def mismatches(self) -> List[TeamRosterCount]:
        return [
            count for code, count in sorted(self.counts.items())
            if count.total != self.expected
        ]

    @property
    def valid(self) -> bool:
        return not self.mismatches

    def log_report(self, log: RunLog, period_number: int) -> None:
        if self.valid:
            log.info(f"  [Validation] Period {period_number}: all {len(self.counts)} teams have {self.expected} players")
            return

        log.warning(
            f"  [Validation] Period {period_number}: {len(self.mismatches)} team(s) "
            f"differ from the expected {self.expected} players"
        )
        log.warning(f"    {'Team':<8}{'Hitters':>8}{'Pitchers':>10}{'Total':>7}")
        for count in self.mismatches:
            log.warning(f"    {count.team_code:<8}{count.hitters:>8}{count.pitchers:>10}{count.total:>7}")


def validate_rosters(records: Iterable[PlayerStatRecord], year: int) -> RosterValidationResult:
    """Count each team's hitters and pitchers against the era's roster size."""
    result = RosterValidationResult(expected=roster_size(year))
    for record in records:
        count = result.counts.setdefault(record.team_code, TeamRosterCount(record.team_code))
        if record.is_pitcher:
            count.pitchers += 1
        else:
            count.hitters += 1
    return result
