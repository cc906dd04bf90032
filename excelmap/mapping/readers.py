from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Protocol

from ..models.cell import ReadCellValueResult

if TYPE_CHECKING:
    from ..excel.sheet import ExcelSheet

"""Cell value readers: which cell(s) of a row a property reads.

Single readers return one cell, multiple readers return an ordered list of
cells, and the all-columns reader returns (column name, cell) pairs.
"""

__all__ = [
    "SingleCellValueReader",
    "MultipleCellValuesReader",
    "ColumnIndexReader",
    "ColumnNameReader",
    "ColumnIndicesReader",
    "ColumnNamesReader",
    "AllColumnNamesReader",
    "CharSplitReader",
]

DEFAULT_DELIMITERS: tuple[str, ...] = (",",)


class SingleCellValueReader(Protocol):
    def read(self, sheet: ExcelSheet, row_index: int) -> ReadCellValueResult: ...


class MultipleCellValuesReader(Protocol):
    def read_many(self, sheet: ExcelSheet, row_index: int) -> list[ReadCellValueResult]: ...


class ColumnIndexReader:
    def __init__(self, column_index: int) -> None:
        if column_index < 0:
            raise ValueError(f"column index must be >= 0: {column_index}")
        self.column_index = column_index

    def read(self, sheet: ExcelSheet, row_index: int) -> ReadCellValueResult:
        return sheet.get_cell(row_index, self.column_index)

    def __repr__(self) -> str:
        return f"ColumnIndexReader({self.column_index})"


class ColumnNameReader:
    def __init__(self, column_name: str) -> None:
        if not column_name:
            raise ValueError("column name must not be empty")
        self.column_name = column_name

    def read(self, sheet: ExcelSheet, row_index: int) -> ReadCellValueResult:
        return sheet.get_cell_by_name(row_index, self.column_name)

    def __repr__(self) -> str:
        return f"ColumnNameReader({self.column_name!r})"


class ColumnIndicesReader:
    def __init__(self, column_indices: Sequence[int]) -> None:
        if not column_indices:
            raise ValueError("at least one column index is required")
        self.column_indices = list(column_indices)

    def read_many(self, sheet: ExcelSheet, row_index: int) -> list[ReadCellValueResult]:
        return [sheet.get_cell(row_index, i) for i in self.column_indices]


class ColumnNamesReader:
    def __init__(self, column_names: Sequence[str]) -> None:
        if not column_names:
            raise ValueError("at least one column name is required")
        self.column_names = list(column_names)

    def read_many(self, sheet: ExcelSheet, row_index: int) -> list[ReadCellValueResult]:
        return [sheet.get_cell_by_name(row_index, name) for name in self.column_names]

    def read_pairs(self, sheet: ExcelSheet, row_index: int) -> list[tuple[str, ReadCellValueResult]]:
        return list(zip(self.column_names, self.read_many(sheet, row_index)))


class AllColumnNamesReader:
    """Every heading column, keyed by its name, in heading order."""

    def read_pairs(self, sheet: ExcelSheet, row_index: int) -> list[tuple[str, ReadCellValueResult]]:
        heading = sheet.require_heading()
        return [
            (name, sheet.get_cell(row_index, index))
            for index, name in enumerate(heading.column_names)
        ]

    def read_many(self, sheet: ExcelSheet, row_index: int) -> list[ReadCellValueResult]:
        return [cell for _, cell in self.read_pairs(sheet, row_index)]


class CharSplitReader:
    """Splits the text of one cell on any of ``delimiters``.

    Trailing empty fragments are dropped ("a,b," -> ["a", "b"]); an empty
    cell yields no tokens. Callers that want a fallback for the empty cell
    check it with read() before splitting.
    """

    def __init__(self, reader: SingleCellValueReader, delimiters: Iterable[str] = DEFAULT_DELIMITERS) -> None:
        delimiters = tuple(delimiters)
        if not delimiters or any(not d for d in delimiters):
            raise ValueError("delimiters must be non-empty strings")
        self.reader = reader
        self.delimiters = delimiters
        self._pattern = re.compile("|".join(re.escape(d) for d in delimiters))

    def read(self, sheet: ExcelSheet, row_index: int) -> ReadCellValueResult:
        return self.reader.read(sheet, row_index)

    def split(self, cell: ReadCellValueResult) -> list[ReadCellValueResult]:
        if cell.is_empty:
            return []
        tokens = self._pattern.split(cell.string_value or "")
        while tokens and tokens[-1] == "":
            tokens.pop()
        return [ReadCellValueResult.from_text(cell.column_index, token) for token in tokens]

    def read_many(self, sheet: ExcelSheet, row_index: int) -> list[ReadCellValueResult]:
        return self.split(self.read(sheet, row_index))
