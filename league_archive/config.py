"""
Configuration loader for the archive import engine.

Supports loading from:
1. Environment variables (.env.local or the process environment)
2. YAML config file (config/archive.yaml)

Environment variables (take precedence over the YAML file):
- ARCHIVE_DB_PATH: SQLite archive database path
- ARCHIVE_OUTPUT_DIR: Directory the normalized CSV exports are written to
- ARCHIVE_LEAGUE_ID: League the imported seasons belong to
- ARCHIVE_ALIASES_PATH: Team alias dictionary (YAML)

Usage:
    from league_archive.config import get_config, get_opening_day, load_team_aliases

    config = get_config()
    opening_day = get_opening_day(2024)
    aliases = load_team_aliases()
"""

import os
from datetime import date
from functools import lru_cache
from pathlib import Path

import yaml
from jsonschema import Draft202012Validator

from league_archive.errors import ConfigError


# Project layout
PACKAGE_DIR = Path(__file__).parent
PROJECT_ROOT = PACKAGE_DIR.parent
PACKAGE_DATA_DIR = PACKAGE_DIR / "data"
CONFIG_PATH = PROJECT_ROOT / "config" / "archive.yaml"

DEFAULT_DB_PATH = PROJECT_ROOT / "db" / "archive.sqlite"
DEFAULT_OUTPUT_DIR = PROJECT_ROOT / "data" / "archive"
DEFAULT_ALIASES_PATH = PACKAGE_DATA_DIR / "team_aliases.yaml"
DEFAULT_LEAGUE_ID = 1

# Season calendar (first and last regular-season game per year)
OPENING_DAYS = {
    2008: date(2008, 3, 31),
    2009: date(2009, 4, 5),
    2010: date(2010, 4, 4),
    2011: date(2011, 3, 31),
    2012: date(2012, 3, 28),
    2013: date(2013, 3, 31),
    2014: date(2014, 3, 31),
    2015: date(2015, 4, 5),
    2016: date(2016, 4, 3),
    2017: date(2017, 4, 2),
    2018: date(2018, 3, 29),
    2019: date(2019, 3, 28),
    2020: date(2020, 7, 23),  # shortened season
    2021: date(2021, 4, 1),
    2022: date(2022, 4, 7),
    2023: date(2023, 3, 30),
    2024: date(2024, 3, 28),
    2025: date(2025, 3, 27),
}

SEASON_ENDS = {
    2008: date(2008, 9, 30),
    2009: date(2009, 10, 6),
    2010: date(2010, 10, 3),
    2011: date(2011, 9, 28),
    2012: date(2012, 10, 3),
    2013: date(2013, 9, 30),
    2014: date(2014, 9, 28),
    2015: date(2015, 10, 4),
    2016: date(2016, 10, 2),
    2017: date(2017, 10, 1),
    2018: date(2018, 10, 1),
    2019: date(2019, 9, 29),
    2020: date(2020, 9, 27),
    2021: date(2021, 10, 3),
    2022: date(2022, 10, 5),
    2023: date(2023, 10, 1),
    2024: date(2024, 9, 30),
    2025: date(2025, 9, 28),
}

# League schedule never exceeds this many scoring periods
MAX_PERIODS = 7
PERIOD_SPACING_DAYS = 14

# Roster sizes by era
ROSTER_SIZE_THROUGH_2022 = 23
ROSTER_SIZE_FROM_2023 = 30

ENV_VARS = {
    "db_path": "ARCHIVE_DB_PATH",
    "output_dir": "ARCHIVE_OUTPUT_DIR",
    "league_id": "ARCHIVE_LEAGUE_ID",
    "aliases_path": "ARCHIVE_ALIASES_PATH",
}

TEAM_ALIASES_SCHEMA = {
    "type": "object",
    "required": ["aliases"],
    "properties": {
        "aliases": {
            "type": "object",
            "minProperties": 1,
            "additionalProperties": {"type": "string", "pattern": "^[A-Z0-9]{2,5}$"},
        },
    },
}
ALIASES_VALIDATOR = Draft202012Validator(TEAM_ALIASES_SCHEMA)


def _load_env_file():
    """Load environment variables from .env.local if it exists."""
    env_file = PROJECT_ROOT / ".env.local"
    if env_file.exists():
        with open(env_file, "r") as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, _, value = line.partition("=")
                    key = key.strip()
                    value = value.strip()
                    if value.startswith('"') and value.endswith('"'):
                        value = value[1:-1]
                    elif value.startswith("'") and value.endswith("'"):
                        value = value[1:-1]
                    os.environ.setdefault(key, value)


def _load_yaml_config(path=CONFIG_PATH):
    """Load configuration from the YAML file."""
    if path.exists():
        with open(path, "r") as f:
            return yaml.safe_load(f) or {}
    return {}


# Load env file on module import
_load_env_file()


@lru_cache(maxsize=1)
def get_config():
    """
    Get the full configuration dictionary.
    Merges the YAML config with environment variables (env vars take precedence).
    """
    config = {
        "db_path": str(DEFAULT_DB_PATH),
        "output_dir": str(DEFAULT_OUTPUT_DIR),
        "league_id": DEFAULT_LEAGUE_ID,
        "aliases_path": str(DEFAULT_ALIASES_PATH),
    }
    config.update(_load_yaml_config())

    for key, var_name in ENV_VARS.items():
        value = os.getenv(var_name)
        if value:
            config[key] = value

    # Relative paths in the YAML file are relative to the project root
    for key in ("db_path", "output_dir", "aliases_path"):
        path = Path(config[key])
        config[key] = str(path if path.is_absolute() else PROJECT_ROOT / path)

    try:
        config["league_id"] = int(config["league_id"])
    except (TypeError, ValueError):
        raise ConfigError(f"league_id must be an integer, got {config['league_id']!r}")
    return config


def validate_config():
    """
    Validate the effective configuration.
    Returns a list of issues (empty if all is well).
    """
    issues = []
    config = get_config()

    aliases_path = Path(config["aliases_path"])
    if not aliases_path.exists():
        issues.append(f"Team alias dictionary not found: {aliases_path}")
    else:
        try:
            load_team_aliases(aliases_path)
        except ConfigError as e:
            issues.append(str(e))

    db_parent = Path(config["db_path"]).parent
    if db_parent.exists() and not os.access(db_parent, os.W_OK):
        issues.append(f"Database directory is not writable: {db_parent}")

    return issues


def get_opening_day(year):
    """First day of period 1 for a season."""
    return OPENING_DAYS.get(year, date(year, 3, 28))


def get_season_end(year):
    """Last regular-season day; the final period always ends here."""
    return SEASON_ENDS.get(year, date(year, 9, 30))


def roster_size(year):
    """Expected players per team for a season's era."""
    return ROSTER_SIZE_THROUGH_2022 if year <= 2022 else ROSTER_SIZE_FROM_2023


def load_team_aliases(path=None):
    """
    Load the team alias dictionary (alias -> canonical team code).

    Raises:
        ConfigError: if the file is missing or fails schema validation
    """
    path = Path(path or get_config()["aliases_path"])
    if not path.exists():
        raise ConfigError(f"Team alias dictionary not found: {path}")

    with open(path, "r") as f:
        payload = yaml.safe_load(f) or {}

    errors = sorted(ALIASES_VALIDATOR.iter_errors(payload), key=lambda e: list(e.path))
    if errors:
        details = "\n".join(f"- {list(e.path)}: {e.message}" for e in errors)
        raise ConfigError(f"Team alias dictionary {path.name} is invalid:\n{details}")

    return {str(alias): code for alias, code in payload["aliases"].items()}
