"""
Archive Import Pipeline Module

Runs a full season import: classification, period resolution, layout
unrolling, CSV export, identity matching and persistence.
"""

from league_archive.pipeline.importer import (
    ArchiveImporter,
    ImportResult,
)

__all__ = [
    "ArchiveImporter",
    "ImportResult",
]
