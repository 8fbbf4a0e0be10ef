"""
Database management package.

This package provides tools for initializing and managing the historical
archive database.

Modules:
    archive_db: Database initialization, period-scoped writes and read-back queries
"""

from league_archive.db.archive_db import ArchiveDB

__all__ = [
    "ArchiveDB",
]
