"""
Archive Export Module

Writes the flat, human-auditable CSV files produced by an import.
"""

from league_archive.export.csv_export import ArchiveExporter

__all__ = [
    "ArchiveExporter",
]
