"""
Configuration and workbook loading tests.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from league_archive import config
from league_archive.errors import ConfigError, WorkbookDecodeError
from league_archive.workbook import load_workbook


@pytest.fixture
def fresh_config(monkeypatch):
    """Clear the cached config around a test that changes the environment."""
    config.get_config.cache_clear()
    yield monkeypatch
    config.get_config.cache_clear()


class TestSeasonCalendar:

    def test_known_year(self):
        assert config.get_opening_day(2020) == date(2020, 7, 23)
        assert config.get_season_end(2024) == date(2024, 9, 30)

    def test_unknown_year_falls_back(self):
        assert config.get_opening_day(2031) == date(2031, 3, 28)
        assert config.get_season_end(2031) == date(2031, 9, 30)

    @pytest.mark.parametrize("year, expected", [(2009, 23), (2022, 23), (2023, 30), (2025, 30)])
    def test_roster_size(self, year, expected):
        assert config.roster_size(year) == expected


class TestGetConfig:

    def test_environment_overrides(self, fresh_config, tmp_path):
        fresh_config.setenv("ARCHIVE_DB_PATH", str(tmp_path / "other.sqlite"))
        fresh_config.setenv("ARCHIVE_LEAGUE_ID", "7")

        settings = config.get_config()
        assert settings["db_path"] == str(tmp_path / "other.sqlite")
        assert settings["league_id"] == 7

    def test_relative_paths_are_project_relative(self, fresh_config):
        fresh_config.setenv("ARCHIVE_OUTPUT_DIR", "exports")
        assert Path(config.get_config()["output_dir"]) == config.PROJECT_ROOT / "exports"

    def test_bad_league_id(self, fresh_config):
        fresh_config.setenv("ARCHIVE_LEAGUE_ID", "first")
        with pytest.raises(ConfigError):
            config.get_config()

    def test_validate_reports_missing_aliases(self, fresh_config, tmp_path):
        fresh_config.setenv("ARCHIVE_ALIASES_PATH", str(tmp_path / "missing.yaml"))
        issues = config.validate_config()
        assert any("not found" in issue for issue in issues)

    def test_shipped_config_is_valid(self, fresh_config):
        fresh_config.delenv("ARCHIVE_ALIASES_PATH", raising=False)
        assert config.validate_config() == []


class TestLoadWorkbook:

    def test_missing_file(self, tmp_path):
        with pytest.raises(WorkbookDecodeError):
            load_workbook(tmp_path / "missing.xlsx")

    def test_not_a_workbook(self, tmp_path):
        path = tmp_path / "notes.xlsx"
        path.write_text("not a zip archive")
        with pytest.raises(WorkbookDecodeError):
            load_workbook(path)
