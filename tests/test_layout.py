"""
Layout detection and unrolling tests.
"""

from __future__ import annotations

import pytest
from conftest import GRID_HEADER, grid_rows, make_sheet

from league_archive.errors import LayoutDetectionError
from league_archive.layout.detector import (
    GridLayout,
    GridStrategy,
    RawLayout,
    VerticalLayout,
    VerticalStrategy,
    detect_layout,
)
from league_archive.layout.grid import unroll_grid
from league_archive.layout.standings import unroll_standings
from league_archive.layout.vertical import record_from_mapping, unroll_vertical
from league_archive.models import to_int
from league_archive.positions import Section


# =========================================================================
# Detection
# =========================================================================


class TestDetectLayout:

    def test_team_header_row_is_grid(self, teams, log):
        sheet = make_sheet("5.01", grid_rows(3, pitchers_from=2))
        layout = detect_layout(sheet, teams, log)

        assert isinstance(layout, GridLayout)
        assert layout.header_row == 0
        assert layout.team_columns == {1: "DDG", 2: "DEV", 3: "SHO", 4: "RGS"}
        assert layout.position_column == 0
        assert '  Layout for "5.01": grid' in log.messages

    def test_unresolved_team_gets_placeholder(self, teams, log):
        rows = [["", "Dodger Dawgs", "Mystery Club", "The Show", "Raging Sluggers"]]
        layout = detect_layout(make_sheet("5.01", rows), teams, log)
        assert layout.team_columns[2] == "UNK-2"

    def test_player_and_team_row_is_vertical(self, teams, log):
        rows = [
            ["Season 2024 Stats"],
            ["Player", "Team", "Pos", "AB"],
            ["Mike Trout", "The Show", "OF", 50],
        ]
        layout = detect_layout(make_sheet("4.15", rows), teams, log)

        assert isinstance(layout, VerticalLayout)
        assert layout.header_row == 1
        assert layout.table_starts == [0]
        assert any("Skipping Grid Detection" in message for message in log)

    def test_player_column_without_team_column_is_vertical(self, teams, log):
        rows = [["Player", "Pos", "MLB", "Price"], ["Mike Trout", "OF", "LAA", 40]]
        layout = detect_layout(make_sheet("Draft", rows), teams, log, is_draft=True)
        assert isinstance(layout, VerticalLayout)

    def test_draft_threshold_is_lower(self, teams, log):
        rows = [
            ["", "Dodger Dawgs", "Devil Dawgs", "The Show"],
            ["C", "Mike Trout", "Aaron Judge", "Gerrit Cole"],
        ]
        assert isinstance(GridStrategy().detect(make_sheet("Draft", rows), teams, log, is_draft=True), GridLayout)
        assert GridStrategy().detect(make_sheet("5.01", rows), teams, log) is None

    def test_numeric_cells_are_not_team_headers(self, teams, log):
        rows = [["", "1", "2", "3", "4"], ["OF", "Mike Trout", "", "", ""]]
        assert GridStrategy().detect(make_sheet("5.01", rows), teams, log) is None

    def test_unstructured_sheet_is_raw(self, teams, log):
        rows = [["notes"], [1, 2, 3]]
        layout = detect_layout(make_sheet("Misc", rows), teams, log)
        assert isinstance(layout, RawLayout)

    def test_exhausted_chain_raises(self, teams, log):
        sheet = make_sheet("Misc", [["notes"]])
        with pytest.raises(LayoutDetectionError):
            detect_layout(sheet, teams, log, strategies=[GridStrategy(), VerticalStrategy()])


# =========================================================================
# RosterGridUnroller
# =========================================================================


class TestUnrollGrid:

    def _unroll(self, rows, teams, log, year=2024, bold=None, is_draft=False):
        sheet = make_sheet("grid", rows, bold=bold)
        layout = GridStrategy().detect(sheet, teams, log, is_draft=is_draft)
        assert layout is not None
        return unroll_grid(sheet, layout, teams, year, log)

    def test_one_record_per_name(self, teams, log):
        result = self._unroll(grid_rows(3, pitchers_from=2), teams, log)

        assert len(result.records) == 12
        first = result.records[0]
        assert (first.player_name, first.team_code, first.position) == ("Player DDG00", "DDG", "OF")

    def test_position_column_toggles_section(self, teams, log):
        result = self._unroll(grid_rows(4, pitchers_from=2), teams, log)
        by_name = {r.player_name: r for r in result.records}

        assert not by_name["Player SHO01"].is_pitcher
        assert by_name["Player SHO02"].is_pitcher
        assert by_name["Player SHO02"].position == "P"

    def test_position_change_is_logged(self, teams, log):
        self._unroll(grid_rows(4, pitchers_from=2), teams, log)
        assert "  Row 3: position P -> pitchers" in log.messages
        assert not any("Row 2: position" in message for message in log)

    def test_short_team_text_is_noise(self, teams, log):
        rows = [
            list(GRID_HEADER),
            ["OF", "NY", "Player DEV00", "Player SHO00", "Player RGS00"],
        ]
        result = self._unroll(rows, teams, log)
        assert [r.player_name for r in result.records] == ["Player DEV00", "Player SHO00", "Player RGS00"]

    def test_roster_cap_post_2023(self, teams, log):
        rows = [list(GRID_HEADER)]
        for i in range(31):
            rows.append(["OF" if i < 20 else "P", "", "", f"Player SHO{i:02d}", ""])

        result = self._unroll(rows, teams, log, year=2024)
        sho = [r for r in result.records if r.team_code == "SHO"]

        assert len(sho) == 30
        assert result.excess == {"SHO": 1}
        assert any("Roster cap: SHO" in message for message in log)

    def test_roster_cap_through_2022(self, teams, log):
        rows = [list(GRID_HEADER)]
        for i in range(25):
            rows.append(["OF", f"Player DDG{i:02d}", "", "", ""])

        result = self._unroll(rows, teams, log, year=2022)
        assert len(result.records) == 23
        assert result.excess == {"DDG": 2}

    def test_terminator_row_stops_scan(self, teams, log):
        rows = grid_rows(2, pitchers_from=2)
        rows.append(["", "Team Totals", "", "", ""])
        rows.append(["OF", "Player DDG99", "", "", ""])

        result = self._unroll(rows, teams, log)
        assert "Player DDG99" not in {r.player_name for r in result.records}

    def test_bold_name_is_keeper(self, teams, log):
        result = self._unroll(grid_rows(2, pitchers_from=2), teams, log, bold={(1, 2)})
        keepers = [r.player_name for r in result.records if r.is_keeper]
        assert keepers == ["Player DEV00"]

    def test_noise_cells_are_skipped(self, teams, log):
        rows = [
            list(GRID_HEADER),
            ["OF", "Player DDG00", "12", "OF", "The Show"],
            ["OF", "x", "3/4", "Player SHO01", "Player RGS01"],
        ]
        result = self._unroll(rows, teams, log)
        assert [r.player_name for r in result.records] == ["Player DDG00", "Player SHO01", "Player RGS01"]

    def test_draft_grid_reads_adjacent_columns(self, teams, log):
        rows = [
            ["", "Dodger Dawgs", "", "", "Devil Dawgs", "", "", "The Show", "", ""],
            ["", "Mike Trout", "LAA", 42, "Aaron Judge", "NYY", 45, "Jose Ramirez", "CLE", 30],
            ["", "Gerrit Cole", "SP", 28, "Corbin Burnes", "RP", 500, "Zack Wheeler", "", 501],
            ["", "PITCHERS", "", "", "", "", "", "", "", ""],
            ["", "Josh Hader", "NYY", 9, "", "", "", "", "", ""],
        ]
        result = self._unroll(rows, teams, log, is_draft=True)
        by_name = {r.player_name: r for r in result.records}

        trout = by_name["Mike Trout"]
        assert (trout.mlb_team, trout.draft_dollars, trout.is_pitcher) == ("LAA", 42, False)
        assert by_name["Gerrit Cole"].position == "SP"
        assert by_name["Gerrit Cole"].is_pitcher
        assert by_name["Corbin Burnes"].draft_dollars == 500
        assert by_name["Zack Wheeler"].draft_dollars == 0
        assert by_name["Josh Hader"].is_pitcher
        assert "PITCHERS" not in by_name


# =========================================================================
# VerticalTableUnroller
# =========================================================================


class TestUnrollVertical:

    def _unroll(self, rows, teams, log, bold=None):
        sheet = make_sheet("vertical", rows, bold=bold)
        layout = VerticalStrategy().detect(sheet, teams, log)
        assert layout is not None
        return unroll_vertical(sheet, layout, teams, log)

    def test_side_by_side_tables(self, teams, log):
        rows = [
            ["Player", "Team", "HR", "", "Player", "Team", "HR"],
            ["Mike Trout", "The Show", 10, "", "Aaron Judge", "Devil Dawgs", 20],
            ["Jose Ramirez", "The Show", 5, "", "", "", ""],
        ]
        records = self._unroll(rows, teams, log)

        assert [(r.player_name, r.team_code, r.stat("HR")) for r in records] == [
            ("Mike Trout", "SHO", 10),
            ("Aaron Judge", "DEV", 20),
            ("Jose Ramirez", "SHO", 5),
        ]

    def test_team_named_above_sub_table(self, teams, log):
        rows = [
            ["Dodger Dawgs", "", "", "", "The Show"],
            ["Player", "Pos", "AB", "", "Player", "Pos", "AB"],
            ["Mike Trout", "OF", 50, "", "Aaron Judge", "OF", 60],
        ]
        records = self._unroll(rows, teams, log)
        assert [(r.player_name, r.team_code) for r in records] == [
            ("Mike Trout", "DDG"),
            ("Aaron Judge", "SHO"),
        ]

    def test_section_rows_and_positions(self, teams, log):
        rows = [
            ["Player", "Team", "Pos", "AB", "W"],
            ["Mike Trout", "The Show", "OF", 50, ""],
            ["Pitchers", "", "", "", ""],
            ["Gerrit Cole", "The Show", "", "", 3],
            ["Josh Hader", "The Show", "", "", ""],
            ["Hitters", "", "", "", ""],
            ["Jose Ramirez", "The Show", "3B", 44, ""],
        ]
        records = self._unroll(rows, teams, log)
        flags = {r.player_name: r.is_pitcher for r in records}

        assert flags == {
            "Mike Trout": False,
            "Gerrit Cole": True,
            "Josh Hader": True,
            "Jose Ramirez": False,
        }
        assert "  Row 2, column 0: section header -> pitchers" in log.messages
        assert "  Row 5, column 0: section header -> hitters" in log.messages

    def test_repeated_header_rows_are_skipped(self, teams, log):
        rows = [
            ["Player", "Team", "HR"],
            ["Mike Trout", "The Show", 10],
            ["Player", "Team", "HR"],
            ["Aaron Judge", "The Show", 20],
        ]
        assert [r.player_name for r in self._unroll(rows, teams, log)] == ["Mike Trout", "Aaron Judge"]

    def test_bold_name_is_keeper(self, teams, log):
        rows = [["Player", "Team"], ["Mike Trout", "The Show"], ["Aaron Judge", "The Show"]]
        records = self._unroll(rows, teams, log, bold={(2, 0)})
        assert [r.is_keeper for r in records] == [False, True]

    def test_unresolved_team_keeps_text(self, teams, log):
        rows = [["Player", "Team"], ["Mike Trout", "Mystery Club"]]
        assert self._unroll(rows, teams, log)[0].team_code == "MYSTERY CLUB"


class TestRecordFromMapping:

    def test_infinite_values_read_as_zero(self, teams):
        record = record_from_mapping({"player": "Mike Trout", "hr": "inf", "ab": float("inf")}, teams)
        assert (record.stat("HR"), record.stat("AB")) == (0, 0)

    @pytest.mark.parametrize("value, expected", [
        ("$42", 42), ("1,204", 1204), (12.9, 12), ("-inf", 0), (float("nan"), 0), ("n/a", 0),
    ])
    def test_to_int(self, value, expected):
        assert to_int(value) == expected

    def test_stat_aliases(self, teams):
        record = record_from_mapping(
            {
                "player": "Gerrit Cole",
                "team": "The Show",
                "wins": "5",
                "ip": "40.1",
                "so": "33",
                "sho": "1",
                "era": "2.95",
                "price": "$28",
            },
            teams,
        )
        assert record.team_code == "SHO"
        assert record.stats == {"W": 5, "K": 33, "IP": 40.1, "ERA": 2.95, "SO": 1}
        assert record.is_pitcher
        assert record.draft_dollars == 28

    def test_explicit_pitcher_flag(self, teams):
        record = record_from_mapping({"player_name": "Shohei Ohtani", "is_pitcher": "p"}, teams)
        assert record.is_pitcher
        assert record.team_code == "UNK"

    def test_section_decides_when_nothing_else_does(self, teams):
        record = record_from_mapping({"name": "Josh Hader"}, teams, section=Section.PITCHERS)
        assert record.is_pitcher

    def test_no_name(self, teams):
        assert record_from_mapping({"team": "The Show"}, teams) is None


# =========================================================================
# StandingsUnroller
# =========================================================================


class TestUnrollStandings:

    def test_single_table(self, teams, log):
        rows = [
            ["2024 Final Standings"],
            ["Rank", "Team", "R", "HR", "Total"],
            [1, "The Show", 10, 9, 19],
            [2, "Mystery Club", 1, 1, 2],
            [3, "Dodger Dawgs", 5, 4, 9],
        ]
        standings = unroll_standings(make_sheet("Standings", rows), teams, log)

        assert [(s.team_code, s.final_rank, s.total_score) for s in standings] == [
            ("SHO", 1, 19),
            ("DDG", 3, 9),
        ]
        assert standings[0].scores["R"] == 10
        assert any('unrecognized team "Mystery Club"' in message for message in log)

    def test_side_by_side_tables(self, teams, log):
        rows = [
            ["Rank", "Team", "Total", "", "Rank", "Team", "Total"],
            [1, "The Show", 95, "", 2, "Dodger Dawgs", 90],
            [3, "Devil Dawgs", 70, "", 4, "Raging Sluggers", 60],
        ]
        standings = unroll_standings(make_sheet("Standings", rows), teams, log)
        assert [s.team_code for s in standings] == ["SHO", "DDG", "DEV", "RGS"]
        assert any("side-by-side" in message for message in log)

    def test_rank_as_last_column_is_one_table(self, teams, log):
        rows = [
            ["Team", "R", "HR", "Total", "Rank"],
            ["The Show", 10, 9, 19, 1],
            ["Dodger Dawgs", 5, 4, 9, 2],
        ]
        standings = unroll_standings(make_sheet("Standings", rows), teams, log)

        assert [(s.team_code, s.final_rank) for s in standings] == [("SHO", 1), ("DDG", 2)]
        assert not any("side-by-side" in message for message in log)

    def test_team_led_side_by_side_tables(self, teams, log):
        rows = [
            ["Team", "Total", "", "Team", "Total"],
            ["The Show", 95, "", "Dodger Dawgs", 90],
        ]
        standings = unroll_standings(make_sheet("Standings", rows), teams, log)
        assert [s.team_code for s in standings] == ["SHO", "DDG"]

    def test_no_recognized_rows_is_none(self, teams, log):
        rows = [["Rank", "Team", "Total"], [1, "Mystery Club", 5]]
        assert unroll_standings(make_sheet("Standings", rows), teams, log) is None
        assert any("No team rows recognized" in message for message in log)

    def test_no_header(self, teams, log):
        assert unroll_standings(make_sheet("Standings", [["1", "2"]]), teams, log) is None
