"""
Validation for imported archive data.

Modules:
    roster: Informational per-era roster size checks
"""

from league_archive.validation.roster import (
    RosterValidationResult,
    TeamRosterCount,
    validate_rosters,
)

__all__ = [
    "RosterValidationResult",
    "TeamRosterCount",
    "validate_rosters",
]
