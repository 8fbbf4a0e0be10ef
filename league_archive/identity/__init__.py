"""
Identity resolution package.

Resolves the free text found in season workbooks to canonical identities.

Modules:
    teams: Team alias dictionary lookup with substring fallback
    players: Exact and constrained fuzzy player matching against prior imports
"""

from league_archive.identity.players import (
    KnownPlayer,
    MatchResult,
    PlayerIdentityMatcher,
    PlayerKnowledgeBase,
    parse_name_key,
)
from league_archive.identity.teams import TeamIdentityResolver, normalize_team_text

__all__ = [
    "KnownPlayer",
    "MatchResult",
    "PlayerIdentityMatcher",
    "PlayerKnowledgeBase",
    "TeamIdentityResolver",
    "normalize_team_text",
    "parse_name_key",
]
