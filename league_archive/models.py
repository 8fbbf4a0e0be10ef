"""
Flat record types produced by the unrollers and written to the archive.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Stat columns stored per player per period
HITTING_STATS = ("AB", "H", "R", "HR", "RBI", "SB", "AVG", "GS")
PITCHING_STATS = ("W", "SV", "K", "IP", "ER", "ERA", "WHIP", "SO")
STAT_FIELDS = HITTING_STATS + PITCHING_STATS
RATE_STATS = frozenset({"AVG", "IP", "ERA", "WHIP"})

# Standings category scores
STANDING_CATEGORIES = ("R", "HR", "RBI", "SB", "AVG", "W", "SV", "K", "ERA", "WHIP")

MatchMethod = Optional[str]  # "exact", "fuzzy" or None


@dataclass
class PlayerStatRecord:
    """One player observed in one period's sheet."""
    player_name: str
    team_code: str
    position: Optional[str] = None
    mlb_team: Optional[str] = None
    is_pitcher: bool = False
    is_keeper: bool = False
    draft_dollars: int = 0
    stats: Dict[str, float] = field(default_factory=dict)
    # Filled in by player identity matching
    full_name: Optional[str] = None
    mlb_id: Optional[str] = None
    match_method: MatchMethod = None

    def stat(self, name: str) -> float:
        return self.stats.get(name, 0)

    def to_row(self) -> Dict[str, Any]:
        """Flat dict used for CSV export."""
        row: Dict[str, Any] = {
            "player_name": self.player_name,
            "team_code": self.team_code,
            "mlb_team": self.mlb_team or "",
            "position": self.position or "",
            "is_pitcher": self.is_pitcher,
            "is_keeper": self.is_keeper,
            "draft_dollars": self.draft_dollars,
        }
        for name in STAT_FIELDS:
            if name in self.stats:
                row[name.lower()] = self.stats[name]
        return row


@dataclass
class DraftResult:
    """One auction pick."""
    team_code: str
    player_name: str
    position: Optional[str]
    mlb_team: Optional[str]
    price: int
    is_keeper: bool
    is_pitcher: bool

    @classmethod
    def from_record(cls, record: PlayerStatRecord) -> "DraftResult":
        return cls(
            team_code=record.team_code,
            player_name=record.player_name,
            position=record.position,
            mlb_team=record.mlb_team,
            price=record.draft_dollars,
            is_keeper=record.is_keeper,
            is_pitcher=record.is_pitcher,
        )


@dataclass
class StandingRow:
    """A team's final line in the season standings."""
    team_code: str
    team_name: str
    scores: Dict[str, float] = field(default_factory=dict)
    total_score: float = 0
    final_rank: int = 0

    def to_row(self) -> Dict[str, Any]:
        row: Dict[str, Any] = {
            "team_code": self.team_code,
            "team_name": self.team_name,
            "final_rank": self.final_rank,
            "total_score": self.total_score,
        }
        for category in STANDING_CATEGORIES:
            row[f"{category.lower()}_score"] = self.scores.get(category, 0)
        return row


# -----------------------------------------------------------------------------
# Value coercion
# -----------------------------------------------------------------------------

def to_int(value: Any) -> int:
    """Leading integer of a cell value; 0 when there is none or it is not finite."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    text = str(value).strip().replace("$", "").replace(",", "")
    try:
        return int(float(text))
    except (ValueError, OverflowError):
        return 0


def to_float(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if value == value else 0.0
    text = str(value).strip().replace("$", "").replace(",", "")
    try:
        return float(text)
    except ValueError:
        return 0.0


def to_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in ("true", "1", "yes", "y", "x", "k", "p")


def first_value(mapping: Dict[str, Any], keys: List[str]) -> Any:
    """First non-empty value among candidate column names."""
    for key in keys:
        value = mapping.get(key)
        if value not in (None, ""):
            return value
    return None
