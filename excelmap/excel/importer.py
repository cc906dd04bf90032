from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

import pandas as pd

from ..mapping.registry import ImporterConfiguration
from ..models.errors import ExcelMappingError, MappingErrorKind
from .reader import read_excel_file
from .sheet import ExcelSheet

"""Workbook level entry point.

An ExcelImporter wraps the raw grids of a workbook (read from disk or
handed in as DataFrames) and an ImporterConfiguration. Sheets are returned
in workbook order by read_sheet(), or by name.
"""

__all__ = [
    "ExcelImporter",
]

logger = logging.getLogger(__name__)


class ExcelImporter:
    def __init__(
        self,
        source: Path | str | Mapping[str, pd.DataFrame],
        configuration: ImporterConfiguration | None = None,
        *,
        target_sheets: Iterable[str] | None = None,
        na_values: list[str] | None = None,
    ) -> None:
        if isinstance(source, Mapping):
            self._grids = {str(k): v for k, v in source.items()}
            self.path: Path | None = None
        else:
            self.path = Path(source)
            self._grids = read_excel_file(self.path, target_sheets=target_sheets, na_values=na_values)
        self.configuration = configuration or ImporterConfiguration()
        self._next_sheet = 0
        logger.debug("importer source=%s sheets=%s", self.path or "<memory>", list(self._grids))

    @property
    def sheet_names(self) -> list[str]:
        return list(self._grids)

    @property
    def number_of_sheets(self) -> int:
        return len(self._grids)

    def read_sheet(self, name: str | None = None) -> ExcelSheet:
        """Return the next sheet in workbook order, or the sheet called ``name``."""
        names = self.sheet_names
        if name is None:
            if self._next_sheet >= len(names):
                raise ExcelMappingError(
                    f"no more sheets (workbook has {len(names)})",
                    MappingErrorKind.NO_MORE_SHEETS,
                )
            index = self._next_sheet
            self._next_sheet += 1
        else:
            if name not in self._grids:
                raise ExcelMappingError(
                    f"sheet '{name}' not found; available: {names}",
                    MappingErrorKind.SHEET_NOT_FOUND,
                    value=name,
                )
            index = names.index(name)
        sheet_name = names[index]
        return ExcelSheet(sheet_name, index, self._grids[sheet_name], self)
