"""
League Archive

Reconstructs the league's historical seasons from hand-maintained season
workbooks into a normalized, periodized SQLite archive plus auditable CSVs.

Packages:
    identity: Team and player name resolution
    layout: Sheet layout detection and unrolling
    db: Archive database management
    export: CSV exports
    validation: Roster size checks
    pipeline: The end-to-end season import
"""

__version__ = "1.0.0"
