"""
Player Identity Matching

Resolves the raw player names typed into season sheets ("Trout", "M. Trout",
"Trout, M", "Mike Trout") to a canonical identity taken from earlier imports.

Algorithm:
1. Exact match - the raw string was already seen in a previous import
2. Fuzzy match - (last name, first initial, pitcher flag) equals exactly one
   known player. Two or more candidates are ambiguous and never auto-resolved.

The knowledge base is built once per import run from the archive DB and
passed to the matcher explicitly.

Usage:
    from league_archive.identity.players import PlayerIdentityMatcher, PlayerKnowledgeBase

    kb = PlayerKnowledgeBase.from_rows(db.fetch_player_identities(exclude_year=2024))
    matcher = PlayerIdentityMatcher(kb, log)
    result = matcher.match("Trout, M", is_pitcher=False)
    print(result.match_method, result.player.full_name if result.player else None)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Literal, Mapping, Optional, Tuple

from league_archive.runlog import RunLog

logger = logging.getLogger(__name__)

MatchMethodType = Literal["exact", "fuzzy"]

NAME_SUFFIXES = {"jr", "sr", "ii", "iii", "iv"}

NameKey = Tuple[str, str]  # (last name, first initial)


@dataclass(frozen=True)
class KnownPlayer:
    """A player identity seen in a previous import."""
    player_name: str
    full_name: Optional[str] = None
    mlb_id: Optional[str] = None
    position: Optional[str] = None
    mlb_team: Optional[str] = None
    is_pitcher: bool = False

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "KnownPlayer":
        mlb_id = row.get("mlb_id")
        return cls(
            player_name=row["player_name"],
            full_name=row.get("full_name") or None,
            mlb_id=str(mlb_id) if mlb_id not in (None, "") else None,
            position=row.get("position") or None,
            mlb_team=row.get("mlb_team") or None,
            is_pitcher=bool(row.get("is_pitcher")),
        )


@dataclass
class MatchResult:
    """Outcome of matching one raw name."""
    raw_name: str
    player: Optional[KnownPlayer] = None
    match_method: Optional[MatchMethodType] = None
    candidates: List[KnownPlayer] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return self.player is not None

    @property
    def ambiguous(self) -> bool:
        return self.player is None and len(self.candidates) > 1


def _clean_tokens(name: str) -> List[str]:
    cleaned = name.lower().replace(".", " ").replace(",", " ")
    tokens = cleaned.split()
    while len(tokens) > 2 and tokens[-1] in NAME_SUFFIXES:
        tokens.pop()
    return tokens


def parse_name_key(raw_name: str) -> Optional[NameKey]:
    """
    Last name and first initial of a sheet name.

    Handles "Last, F" / "Last F", "F Last" / "F. Last" and "First Last".
    Single-token names have no key.
    """
    tokens = _clean_tokens(raw_name)
    if len(tokens) < 2:
        return None
    if len(tokens[1]) == 1:
        return tokens[0], tokens[1]
    if len(tokens[0]) == 1:
        return tokens[-1], tokens[0]
    return tokens[-1], tokens[0][0]


def full_name_key(full_name: Optional[str]) -> Optional[NameKey]:
    """Key of a canonical "First Last" name."""
    if not full_name:
        return None
    tokens = _clean_tokens(full_name)
    if len(tokens) < 2:
        return None
    return tokens[-1], tokens[0][0]


class PlayerKnowledgeBase:
    """Previously-imported player identities, indexed for matching."""

    def __init__(self, players: Iterable[KnownPlayer] = ()):
        self.exact: Dict[str, KnownPlayer] = {}
        self.by_key: Dict[Tuple[str, str, bool], List[KnownPlayer]] = {}
        seen = set()

        for player in players:
            self.exact.setdefault(player.player_name, player)

            key = full_name_key(player.full_name)
            if key is None:
                continue
            # One candidate per identity (mlb_id, else lowercased full name), not
            # per raw spelling. Two players sharing a full name and lacking an
            # mlb_id therefore count as one candidate.
            identity = player.mlb_id or (player.full_name or "").strip().lower()
            dedupe = (identity, player.is_pitcher)
            if dedupe in seen:
                continue
            seen.add(dedupe)
            self.by_key.setdefault((key[0], key[1], player.is_pitcher), []).append(player)

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, Any]]) -> "PlayerKnowledgeBase":
        return cls(KnownPlayer.from_row(row) for row in rows)

    def __len__(self) -> int:
        return len(self.exact)

    def candidates(self, key: NameKey, is_pitcher: bool) -> List[KnownPlayer]:
        return list(self.by_key.get((key[0], key[1], is_pitcher), []))


class PlayerIdentityMatcher:
    """Exact-then-fuzzy matcher over a knowledge base snapshot."""

    def __init__(self, knowledge_base: PlayerKnowledgeBase, log: Optional[RunLog] = None):
        self.kb = knowledge_base
        self.log = log

    def _note(self, message: str) -> None:
        if self.log is not None:
            self.log.info(message)
        else:
            logger.info(message)

    def match(self, raw_name: str, is_pitcher: bool) -> MatchResult:
        """Resolve one raw name; unmatched and ambiguous names return no player."""
        known = self.kb.exact.get(raw_name)
        if known is not None:
            return MatchResult(raw_name, known, "exact")

        key = parse_name_key(raw_name)
        if key is None:
            return MatchResult(raw_name)

        candidates = self.kb.candidates(key, is_pitcher)
        if len(candidates) == 1:
            player = candidates[0]
            self._note(f'[Match] Fuzzy matched "{raw_name}" to "{player.full_name}"')
            return MatchResult(raw_name, player, "fuzzy", candidates)

        if len(candidates) > 1:
            names = ", ".join(sorted(p.full_name or p.player_name for p in candidates))
            self._note(f'[Match] AMBIGUOUS "{raw_name}": {len(candidates)} candidates ({names}); left unresolved')
        return MatchResult(raw_name, candidates=candidates)
