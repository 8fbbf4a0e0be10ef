"""
Roster position tokens and the hitter/pitcher section state machine.

Season sheets list hitters and pitchers in separate blocks. While scanning a
sheet top to bottom the importer tracks which block it is in; the state flips
on explicit section rows ("Pitchers", "Hitting", ...) or when the position
column shows a recognized position.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional

POSITION_TOKENS = frozenset({
    "C", "1B", "2B", "3B", "SS", "OF", "LF", "CF", "RF",
    "SP", "RP", "P", "DH", "CM", "MI", "UT", "CI",
    "IL1", "IL2", "DL", "R", "STAFF", "PITCHER", "CO",
})
PITCHER_TOKENS = frozenset({"P", "SP", "RP", "PITCHER", "STAFF"})
# Injured-list slots say nothing about the section
SLOT_TOKENS = frozenset({"IL1", "IL2", "DL"})
HITTER_TOKENS = POSITION_TOKENS - PITCHER_TOKENS - SLOT_TOKENS

PITCHER_SECTION_KEYWORDS = ("pitchers", "pitching", "staff")
HITTER_SECTION_KEYWORDS = ("hitters", "hitting", "batters")


def is_position_token(value: object) -> bool:
    return value is not None and str(value).strip().upper() in POSITION_TOKENS


def is_pitcher_position(value: object) -> bool:
    return value is not None and str(value).strip().upper() in PITCHER_TOKENS


class Section(Enum):
    """Which block of the roster a row belongs to."""
    HITTERS = "hitters"
    PITCHERS = "pitchers"

    @property
    def is_pitchers(self) -> bool:
        return self is Section.PITCHERS


def section_from_keywords(cells: Iterable[str]) -> Optional[Section]:
    """
    Section announced by a header row, if any.

    Cells that are themselves position tokens ("STAFF") are ignored here so a
    position column value is never mistaken for a section header.
    """
    for cell in cells:
        text = cell.strip().lower()
        if not text or is_position_token(text):
            continue
        if any(keyword in text for keyword in PITCHER_SECTION_KEYWORDS):
            return Section.PITCHERS
        if any(keyword in text for keyword in HITTER_SECTION_KEYWORDS):
            return Section.HITTERS
    return None


def section_from_position(token: Optional[str]) -> Optional[Section]:
    """Section implied by a position token, or None for slots and non-tokens."""
    if not token:
        return None
    token = token.strip().upper()
    if token in PITCHER_TOKENS:
        return Section.PITCHERS
    if token in HITTER_TOKENS:
        return Section.HITTERS
    return None


def advance_section(
    current: Section,
    header: Optional[Section] = None,
    position: Optional[str] = None,
) -> Section:
    """Next state given an explicit header trigger and/or a position trigger."""
    if header is not None:
        return header
    implied = section_from_position(position)
    return implied if implied is not None else current
