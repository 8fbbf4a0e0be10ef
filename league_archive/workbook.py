"""
Workbook access for the archive importer.

Decodes an .xlsx upload with openpyxl into a small, immutable grid model:
each sheet is a list of rows, each row a list of cells exposing the cell value
and whether the text is bold (the league marks keepers in bold).

Usage:
    from league_archive.workbook import load_workbook

    workbook = load_workbook("uploads/2024.xlsx")
    for name in workbook.sheet_names:
        sheet = workbook.sheet(name)
        print(name, sheet.n_rows)
"""

from __future__ import annotations

import logging
import zipfile
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from league_archive.errors import WorkbookDecodeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Cell:
    """A decoded worksheet cell."""
    value: Any = None
    bold: bool = False

    @property
    def text(self) -> str:
        """Trimmed display text; whole floats render without a decimal part."""
        value = self.value
        if value is None:
            return ""
        if isinstance(value, bool):
            return str(value).upper()
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        if isinstance(value, datetime):
            return value.date().isoformat()
        if isinstance(value, date):
            return value.isoformat()
        return str(value).strip()


EMPTY_CELL = Cell()


class Sheet:
    """A worksheet rendered as rows of cells."""

    def __init__(self, name: str, rows: Sequence[Sequence[Cell]]):
        self.name = name
        self.rows: List[List[Cell]] = [list(row) for row in rows]

    @classmethod
    def from_values(
        cls,
        name: str,
        values: Iterable[Sequence[Any]],
        bold: Optional[Set[Tuple[int, int]]] = None,
    ) -> "Sheet":
        """Build a sheet from plain values; `bold` holds (row, col) pairs."""
        bold = bold or set()
        rows = [
            [Cell(value, (r, c) in bold) for c, value in enumerate(row)]
            for r, row in enumerate(values)
        ]
        return cls(name, rows)

    @property
    def n_rows(self) -> int:
        return len(self.rows)

    def row(self, index: int) -> List[Cell]:
        if 0 <= index < len(self.rows):
            return self.rows[index]
        return []

    def cell(self, row: int, col: int) -> Cell:
        cells = self.row(row)
        if 0 <= col < len(cells):
            return cells[col]
        return EMPTY_CELL

    def text(self, row: int, col: int) -> str:
        return self.cell(row, col).text

    def row_texts(self, index: int) -> List[str]:
        return [cell.text for cell in self.row(index)]

    def row_string(self, index: int) -> str:
        """Lowercased row content joined by spaces, for keyword checks."""
        return " ".join(self.row_texts(index)).lower()

    def is_blank_row(self, index: int) -> bool:
        return not any(self.row_texts(index))

    def to_values(self) -> List[List[str]]:
        """Plain text grid, used for raw fallback dumps."""
        width = max((len(row) for row in self.rows), default=0)
        grid = []
        for index in range(self.n_rows):
            texts = self.row_texts(index)
            grid.append(texts + [""] * (width - len(texts)))
        return grid

    def __repr__(self) -> str:
        return f"Sheet({self.name!r}, rows={self.n_rows})"


class Workbook:
    """An ordered collection of sheets."""

    def __init__(self, sheets: Iterable[Sheet]):
        self._sheets: Dict[str, Sheet] = {}
        for sheet in sheets:
            self._sheets[sheet.name] = sheet

    @property
    def sheet_names(self) -> List[str]:
        return list(self._sheets)

    def sheet(self, name: str) -> Sheet:
        return self._sheets[name]

    def __contains__(self, name: object) -> bool:
        return name in self._sheets


def _decode_worksheet(worksheet: Any) -> Sheet:
    rows = []
    for row in worksheet.iter_rows():
        cells = []
        for cell in row:
            font = getattr(cell, "font", None)
            cells.append(Cell(cell.value, bool(font is not None and font.bold)))
        rows.append(cells)

    # Drop trailing blank rows openpyxl reports from formatted-but-empty ranges
    while rows and all(cell.value in (None, "") for cell in rows[-1]):
        rows.pop()

    return Sheet(worksheet.title, rows)


def load_workbook(path: str | Path) -> Workbook:
    """
    Decode an .xlsx workbook from disk.

    Raises:
        WorkbookDecodeError: if the file is missing or not a readable workbook
    """
    path = Path(path)
    if not path.exists():
        raise WorkbookDecodeError(f"Workbook not found: {path}")

    try:
        source = openpyxl.load_workbook(str(path), data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as e:
        raise WorkbookDecodeError(f"Could not decode workbook {path.name}: {e}") from e

    try:
        sheets = [_decode_worksheet(ws) for ws in source.worksheets]
    finally:
        source.close()

    logger.debug(f"Decoded {len(sheets)} sheets from {path}")
    return Workbook(sheets)
