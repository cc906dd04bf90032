from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any, TypeVar

import pandas as pd

from ..models.cell import ReadCellValueResult, cell_string_value, normalize_cell_value
from ..models.errors import ExcelMappingError, MappingErrorKind

if TYPE_CHECKING:
    from .importer import ExcelImporter

"""Sheet cursor over a raw pandas grid.

The first grid row is the heading when the importer configuration says the
sheet has one. The heading is read at most once; data rows are then read
one at a time and the cursor only moves forward.
"""

__all__ = [
    "ExcelHeading",
    "ExcelSheet",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ExcelHeading:
    """Column names of a sheet, in column order."""

    def __init__(self, column_names: list[str]) -> None:
        self.column_names = list(column_names)
        self._indices: dict[str, int] = {}
        for index, name in enumerate(self.column_names):
            # repeated names resolve to their first column
            self._indices.setdefault(name, index)

    def get_column_index(self, column_name: str) -> int:
        try:
            return self._indices[column_name]
        except KeyError:
            raise ExcelMappingError(
                f"column '{column_name}' not found in heading {self.column_names}",
                MappingErrorKind.COLUMN_NOT_FOUND,
                value=column_name,
            ) from None

    def get_column_name(self, column_index: int) -> str:
        if not 0 <= column_index < len(self.column_names):
            raise ExcelMappingError(
                f"column index {column_index} out of range (0..{len(self.column_names) - 1})",
                MappingErrorKind.COLUMN_INDEX_OUT_OF_RANGE,
                column_index=column_index,
            )
        return self.column_names[column_index]

    def __len__(self) -> int:
        return len(self.column_names)

    def __repr__(self) -> str:
        return f"ExcelHeading({self.column_names!r})"


class ExcelSheet:
    """One worksheet of an importer.

    Attributes:
        name: Sheet name
        index: Zero-based position of the sheet in the workbook
        heading: ExcelHeading once read_heading() succeeded, else None
    """

    def __init__(self, name: str, index: int, grid: pd.DataFrame, importer: ExcelImporter) -> None:
        self.name = name
        self.index = index
        self.importer = importer
        self.heading: ExcelHeading | None = None
        self._grid = grid
        self._next_row = 0

    @property
    def has_heading(self) -> bool:
        return self.importer.configuration.has_heading(self)

    @property
    def row_count(self) -> int:
        """Number of grid rows, heading row included."""
        return int(self._grid.shape[0])

    @property
    def column_count(self) -> int:
        return int(self._grid.shape[1])

    @property
    def current_row_index(self) -> int:
        """Grid index of the last row handed out (-1 before the first read)."""
        return self._next_row - 1

    def read_heading(self) -> ExcelHeading:
        if not self.has_heading:
            raise ExcelMappingError(
                f"sheet '{self.name}' is configured to have no heading",
                MappingErrorKind.HEADER_NOT_EXPECTED,
            )
        if self.heading is not None:
            raise ExcelMappingError(
                f"heading of sheet '{self.name}' has already been read",
                MappingErrorKind.HEADER_ALREADY_READ,
            )
        if self.row_count == 0:
            raise ExcelMappingError(
                f"sheet '{self.name}' is empty; no heading row",
                MappingErrorKind.END_OF_SHEET,
                row_index=0,
            )
        names = [cell_string_value(normalize_cell_value(v)) or "" for v in self._grid.iloc[0].tolist()]
        self.heading = ExcelHeading(names)
        self._next_row = 1
        logger.debug("sheet=%s heading=%s", self.name, names)
        return self.heading

    def require_heading(self) -> ExcelHeading:
        if self.heading is None:
            raise ExcelMappingError(
                f"heading of sheet '{self.name}' has not been read",
                MappingErrorKind.HEADER_NOT_READ,
            )
        return self.heading

    def get_cell(self, row_index: int, column_index: int) -> ReadCellValueResult:
        if not 0 <= column_index < self.column_count:
            raise ExcelMappingError(
                f"column index {column_index} out of range for sheet '{self.name}' "
                f"({self.column_count} columns)",
                MappingErrorKind.COLUMN_INDEX_OUT_OF_RANGE,
                row_index=row_index,
                column_index=column_index,
            )
        if not 0 <= row_index < self.row_count:
            raise ExcelMappingError(
                f"row index {row_index} out of range for sheet '{self.name}' ({self.row_count} rows)",
                MappingErrorKind.END_OF_SHEET,
                row_index=row_index,
            )
        return ReadCellValueResult.from_raw(column_index, self._grid.iat[row_index, column_index])

    def get_cell_by_name(self, row_index: int, column_name: str) -> ReadCellValueResult:
        column_index = self.require_heading().get_column_index(column_name)
        return self.get_cell(row_index, column_index)

    def row_values(self, row_index: int) -> list[Any]:
        """Normalized raw values of a grid row (used for error logs / inspection)."""
        return [normalize_cell_value(v) for v in self._grid.iloc[row_index].tolist()]

    def read_row(self, cls: type[T]) -> T:
        """Map the next data row to an instance of ``cls``.

        The cursor advances even when mapping fails, so a caller can catch
        the error and continue with the next row.
        """
        class_map = self.importer.configuration.get_class_map(cls)
        if self.has_heading and self.heading is None:
            raise ExcelMappingError(
                f"read_heading() must be called before reading rows of sheet '{self.name}'",
                MappingErrorKind.HEADER_NOT_READ,
            )
        if self._next_row >= self.row_count:
            raise ExcelMappingError(
                f"no more rows in sheet '{self.name}'",
                MappingErrorKind.END_OF_SHEET,
                row_index=self._next_row,
            )
        row_index = self._next_row
        self._next_row += 1
        return class_map.read_row(self, row_index)

    def has_more_rows(self) -> bool:
        first_data_row = 1 if self.has_heading and self.heading is None else 0
        return max(self._next_row, first_data_row) < self.row_count

    def read_rows(self, cls: type[T]) -> Iterator[T]:
        """Yield every remaining row, reading the heading first when needed."""
        if self.has_heading and self.heading is None:
            self.read_heading()
        while self._next_row < self.row_count:
            yield self.read_row(cls)

    def __repr__(self) -> str:
        return f"ExcelSheet(name={self.name!r}, index={self.index}, rows={self.row_count})"
