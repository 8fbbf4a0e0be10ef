"""
Sheet classification.

Labels every tab of a season workbook as the draft sheet, the standings
sheet, a period candidate, or ignored, purely from its name.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

DRAFT_KEYWORD = "draft"
STANDINGS_KEYWORDS = ("standing", "final stat", "league stats", "scoring", "cumulative")
IGNORED_KEYWORDS = ("transaction", "info", "salary", "traded", "keeper")
IGNORED_NAMES = {"rosters", "ranks", "projections"}

YEAR_PATTERN = re.compile(r"(?<!\d)(20\d{2})(?!\d)")


@dataclass
class SheetClassification:
    """Result of classifying a workbook's sheet names."""
    draft_sheet: Optional[str] = None
    standings_sheet: Optional[str] = None
    period_candidates: List[str] = field(default_factory=list)
    ignored: List[str] = field(default_factory=list)


def is_stale_year_sheet(name: str, year: int) -> bool:
    """True for carry-over tabs such as "2008 Final Rosters" in a 2009 workbook."""
    match = YEAR_PATTERN.search(name)
    return bool(match) and int(match.group(1)) < year


def classify_sheets(sheet_names: Iterable[str], year: int) -> SheetClassification:
    """
    Classify sheet names for a target year.

    The first name containing "draft" is the draft sheet and the first other
    name containing a standings keyword is the standings sheet. Everything
    else is a period candidate unless it is an info/salary/keeper style tab
    or a stale tab from a prior year's template.
    """
    names = list(sheet_names)
    result = SheetClassification()

    result.draft_sheet = next((n for n in names if DRAFT_KEYWORD in n.lower()), None)
    result.standings_sheet = next(
        (
            n for n in names
            if n != result.draft_sheet
            and any(keyword in n.lower() for keyword in STANDINGS_KEYWORDS)
        ),
        None,
    )

    for name in names:
        if name in (result.draft_sheet, result.standings_sheet):
            continue

        lowered = name.lower().strip()
        if any(keyword in lowered for keyword in IGNORED_KEYWORDS):
            result.ignored.append(name)
        elif lowered in IGNORED_NAMES:
            result.ignored.append(name)
        elif is_stale_year_sheet(name, year):
            result.ignored.append(name)
        else:
            result.period_candidates.append(name)

    return result
