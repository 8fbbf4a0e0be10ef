"""
Team identity resolution.

Maps the free-text team names typed into season workbooks ("Dodger Dawgs",
"DODGER-DAWGS!!", "dodgerdawgs", "DDG") onto canonical team codes using the
static alias dictionary.

Algorithm:
1. Exact match of the normalized text against alias keys
2. The trimmed, uppercased text is already a canonical code
3. Substring match (either direction) against alias keys longer than
   3 characters, longest alias first
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, Mapping, Optional

from league_archive.config import load_team_aliases
from league_archive.positions import is_position_token

logger = logging.getLogger(__name__)

MIN_FUZZY_ALIAS_LENGTH = 4


def normalize_team_text(value: object) -> str:
    """Lowercase and strip everything that is not a letter or digit."""
    if value is None:
        return ""
    return re.sub(r"[^a-z0-9]", "", str(value).strip().lower())


class TeamIdentityResolver:
    """Resolves free-text team names to canonical team codes."""

    def __init__(self, aliases: Mapping[str, str]):
        self.aliases: Dict[str, str] = {}
        for alias, code in aliases.items():
            key = normalize_team_text(alias)
            if key:
                self.aliases[key] = code.strip().upper()

        self.codes = set(self.aliases.values())

        # Most specific alias first; alphabetical among equal lengths
        self._fuzzy_keys = sorted(
            (key for key in self.aliases if len(key) >= MIN_FUZZY_ALIAS_LENGTH),
            key=lambda key: (-len(key), key),
        )

    @classmethod
    def from_file(cls, path: Optional[str | Path] = None) -> "TeamIdentityResolver":
        """Build a resolver from the YAML alias dictionary."""
        return cls(load_team_aliases(path))

    def resolve(self, raw: object) -> Optional[str]:
        """Return the canonical team code for `raw`, or None."""
        if raw is None:
            return None
        text = str(raw).strip()
        if not text or is_position_token(text):
            return None

        normalized = normalize_team_text(text)
        if not normalized:
            return None

        code = self.aliases.get(normalized)
        if code:
            return code

        if text.upper() in self.codes:
            return text.upper()

        for key in self._fuzzy_keys:
            if key in normalized or normalized in key:
                logger.debug(f'Fuzzy team match "{text}" ({normalized}) -> "{key}" -> {self.aliases[key]}')
                return self.aliases[key]

        return None

    def is_team(self, raw: object) -> bool:
        return self.resolve(raw) is not None
