"""
Period boundary resolution.

Turns period-candidate tab names ("4.15", "May 12", "Period 3", "Final
Stats", ...) into an ordered, contiguous list of scoring periods that always
covers the season through its fixed closing date.

Date inference, tried in order for each tab name:
1. "final" / "season" / "end"      -> October 1 of the target year
2. "period_<n>" / "period <n>"     -> opening day + (n-1) * 14 days
3. M.D, M/D or M-D                 -> that month/day in the target year
4. generic parsing of "<name>, <year>"

Usage:
    from league_archive.periods import resolve_periods
    from league_archive.sheets import classify_sheets

    classification = classify_sheets(workbook.sheet_names, 2024)
    periods = resolve_periods(classification, 2024, log)
"""

from __future__ import annotations

import re
import warnings
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Tuple

import pandas as pd

from league_archive.config import (
    MAX_PERIODS,
    PERIOD_SPACING_DAYS,
    get_opening_day,
    get_season_end,
)
from league_archive.runlog import RunLog
from league_archive.sheets import SheetClassification

END_ANCHOR_KEYWORDS = ("final", "season", "end")
PERIOD_NUMBER_PATTERN = re.compile(r"^period[_ ]\s*(\d+)")
MONTH_DAY_PATTERN = re.compile(r"(\d{1,2})[./\-](\d{1,2})")


@dataclass(frozen=True)
class PeriodDefinition:
    """One scoring period of a season."""
    number: int
    start: date
    end: date
    sheet_name: str
    is_draft: bool = False


def parse_sheet_date(name: str, year: int) -> Optional[date]:
    """Infer the calendar date a period tab refers to, or None."""
    normalized = name.lower().strip()

    if any(keyword in normalized for keyword in END_ANCHOR_KEYWORDS):
        return date(year, 10, 1)

    match = PERIOD_NUMBER_PATTERN.match(normalized)
    if match:
        number = int(match.group(1))
        if number < 1:
            return None
        return get_opening_day(year) + timedelta(days=(number - 1) * PERIOD_SPACING_DAYS)

    match = MONTH_DAY_PATTERN.search(normalized)
    if match:
        try:
            return date(year, int(match.group(1)), int(match.group(2)))
        except ValueError:
            return None

    with warnings.catch_warnings():
        # pandas warns when it has to guess a format for each element
        warnings.simplefilter("ignore", UserWarning)
        try:
            parsed = pd.to_datetime(f"{name.strip()}, {year}", errors="coerce")
        except (ValueError, OverflowError, TypeError):
            return None

    if parsed is None or pd.isna(parsed):
        return None
    return parsed.date()


def resolve_periods(
    classification: SheetClassification,
    year: int,
    log: RunLog,
) -> List[PeriodDefinition]:
    """
    Build the ordered period list for a season.

    The draft sheet, when present, is period 1 starting on opening day. Date
    tabs follow in date order; each period ends the day before the next one
    starts and the last period always ends on the season's closing date. At
    most MAX_PERIODS periods are produced.
    """
    opening_day = get_opening_day(year)
    season_end = get_season_end(year)

    dated: List[Tuple[date, str]] = []
    for name in classification.period_candidates:
        sheet_date = parse_sheet_date(name, year)
        if sheet_date is None:
            log.info(f'  [Date Parser] Skipping tab "{name}" (could not parse as date)')
            continue
        log.info(f'  [Date Parser] Identified tab "{name}" as {sheet_date.isoformat()}')
        dated.append((sheet_date, name))

    # Stable sort keeps workbook order for tabs that share a date
    dated.sort(key=lambda item: item[0])

    has_draft = classification.draft_sheet is not None
    limit = MAX_PERIODS - 1 if has_draft else MAX_PERIODS
    kept = dated[:limit]

    log.info(
        f"[Period Standardization] Season {year}: Found Draft={has_draft}, "
        f"{len(dated)} date tabs. Hard-capping to {MAX_PERIODS} total periods."
    )
    for sheet_date, name in dated[limit:]:
        log.info(f'  [Period Standardization] Dropping tab "{name}" ({sheet_date.isoformat()}) beyond the cap')

    starts: List[Tuple[date, str, bool]] = []
    if has_draft:
        starts.append((opening_day, classification.draft_sheet, True))
    for sheet_date, name in kept:
        # End-anchored tabs ("Final Stats" -> Oct 1) can fall after the season closes
        if sheet_date > season_end:
            log.info(
                f'  [Period Standardization] Tab "{name}" is dated after the season end; '
                f"starting it on {season_end.isoformat()}"
            )
            sheet_date = season_end
        starts.append((sheet_date, name, False))

    periods: List[PeriodDefinition] = []
    for index, (start, name, is_draft) in enumerate(starts):
        if index < len(starts) - 1:
            end = starts[index + 1][0] - timedelta(days=1)
        else:
            end = season_end
        if end < start:
            log.warning(
                f'  [Period Standardization] Tab "{name}" would end before it starts; '
                f"clamping end date to {start.isoformat()}"
            )
            end = start
        periods.append(PeriodDefinition(index + 1, start, end, name, is_draft))

    first = periods[0].sheet_name if periods else "None"
    log.info(f"Identified {len(periods)} periods (P1 = {first}).")
    return periods
