"""Exceptions raised by the archive import engine."""


class ArchiveImportError(Exception):
    """Base class for archive import failures."""


class ConfigError(ArchiveImportError):
    """Configuration or static reference data could not be loaded."""


class WorkbookDecodeError(ArchiveImportError):
    """The uploaded workbook could not be read."""


class LayoutDetectionError(ArchiveImportError):
    """No layout strategy could make sense of a sheet."""
