"""
Sheet classification and period boundary tests.
"""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from league_archive.config import MAX_PERIODS, get_season_end
from league_archive.periods import parse_sheet_date, resolve_periods
from league_archive.sheets import SheetClassification, classify_sheets


# =========================================================================
# SheetClassifier
# =========================================================================


class TestClassifySheets:

    def test_labels_each_sheet(self):
        names = [
            "Draft 2024", "Standings", "4.15", "Transactions", "Rosters",
            "2023 Final Rosters", "Keepers", "5.01", "League Info",
        ]
        result = classify_sheets(names, 2024)

        assert result.draft_sheet == "Draft 2024"
        assert result.standings_sheet == "Standings"
        assert result.period_candidates == ["4.15", "5.01"]
        assert set(result.ignored) == {
            "Transactions", "Rosters", "2023 Final Rosters", "Keepers", "League Info",
        }

    def test_first_draft_sheet_wins(self):
        result = classify_sheets(["Draft", "Draft (old)", "4.15"], 2024)
        assert result.draft_sheet == "Draft"
        assert "Draft (old)" in result.period_candidates

    def test_current_year_tab_is_not_stale(self):
        result = classify_sheets(["2024 Week 3", "2019 Week 3"], 2024)
        assert result.period_candidates == ["2024 Week 3"]
        assert result.ignored == ["2019 Week 3"]

    @pytest.mark.parametrize("name", ["Final Stats", "League Stats", "Scoring", "Cumulative"])
    def test_standings_keywords(self, name):
        assert classify_sheets([name, "4.15"], 2024).standings_sheet == name


# =========================================================================
# Sheet name dates
# =========================================================================


class TestParseSheetDate:

    @pytest.mark.parametrize("name, expected", [
        ("4.15", date(2024, 4, 15)),
        ("4/15", date(2024, 4, 15)),
        ("6-01", date(2024, 6, 1)),
        ("Thru 7.4", date(2024, 7, 4)),
        ("Final Stats", date(2024, 10, 1)),
        ("End of Season", date(2024, 10, 1)),
        ("Period 1", date(2024, 3, 28)),
        ("period_3", date(2024, 3, 28) + timedelta(days=28)),
        ("May 12", date(2024, 5, 12)),
    ])
    def test_parses(self, name, expected):
        assert parse_sheet_date(name, 2024) == expected

    @pytest.mark.parametrize("name", ["13.45", "Notes", "Period 0"])
    def test_unparseable(self, name):
        assert parse_sheet_date(name, 2024) is None


# =========================================================================
# PeriodBoundaryResolver
# =========================================================================


def _assert_contiguous(periods, year):
    assert [p.number for p in periods] == list(range(1, len(periods) + 1))
    for current, following in zip(periods, periods[1:]):
        assert current.start <= following.start
        assert current.end == following.start - timedelta(days=1)
    for period in periods:
        assert period.end >= period.start
    assert periods[-1].end == get_season_end(year)


class TestResolvePeriods:

    def test_draft_and_final_stats(self, log):
        classification = SheetClassification(
            draft_sheet="Draft",
            period_candidates=["Final Stats", "4.15"],
        )
        periods = resolve_periods(classification, 2024, log)

        assert [(p.sheet_name, p.start, p.end) for p in periods] == [
            ("Draft", date(2024, 3, 28), date(2024, 4, 14)),
            ("4.15", date(2024, 4, 15), date(2024, 9, 29)),
            ("Final Stats", date(2024, 9, 30), date(2024, 9, 30)),
        ]
        assert periods[0].is_draft
        _assert_contiguous(periods, 2024)

    def test_final_stats_alone_ends_on_season_close(self, log):
        classification = SheetClassification(period_candidates=["Final Stats"])
        periods = resolve_periods(classification, 2024, log)
        assert len(periods) == 1
        assert periods[0].end == date(2024, 9, 30)

    def test_draft_only_covers_whole_season(self, log):
        periods = resolve_periods(SheetClassification(draft_sheet="Draft"), 2024, log)
        assert [(p.start, p.end) for p in periods] == [(date(2024, 3, 28), date(2024, 9, 30))]

    def test_cap_with_draft(self, log):
        candidates = [f"{month}.{day}" for month in (4, 5, 6, 7, 8) for day in (1, 15)]
        classification = SheetClassification(draft_sheet="Draft", period_candidates=candidates)
        periods = resolve_periods(classification, 2024, log)

        assert len(periods) == MAX_PERIODS
        assert periods[-1].sheet_name == "6.15"
        assert any("Dropping tab" in message for message in log)
        _assert_contiguous(periods, 2024)

    def test_cap_without_draft(self, log):
        candidates = [f"period {n}" for n in range(1, 10)]
        periods = resolve_periods(SheetClassification(period_candidates=candidates), 2024, log)
        assert len(periods) == MAX_PERIODS
        assert periods[0].start == date(2024, 3, 28)
        _assert_contiguous(periods, 2024)

    def test_sorts_by_date_and_drops_unparseable(self, log):
        classification = SheetClassification(period_candidates=["6.01", "Notes", "4.15", "5.01"])
        periods = resolve_periods(classification, 2024, log)

        assert [p.sheet_name for p in periods] == ["4.15", "5.01", "6.01"]
        assert any('Skipping tab "Notes"' in message for message in log)

    def test_same_date_tabs_keep_end_after_start(self, log):
        classification = SheetClassification(period_candidates=["4.15", "04.15", "5.01"])
        periods = resolve_periods(classification, 2024, log)

        assert [p.sheet_name for p in periods] == ["4.15", "04.15", "5.01"]
        assert all(p.end >= p.start for p in periods)
        assert periods[0].end == periods[0].start

    def test_logs_identified_tabs(self, log):
        resolve_periods(SheetClassification(period_candidates=["4.15"]), 2024, log)
        assert '  [Date Parser] Identified tab "4.15" as 2024-04-15' in log.messages
