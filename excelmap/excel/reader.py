from __future__ import annotations

import zipfile
from collections.abc import Iterable
from pathlib import Path

import pandas as pd

"""Workbook loading on top of pandas.

Sheets are parsed without a header (header=None) so the heading row stays
part of the grid; ExcelSheet decides whether the first row is a heading.

By default only truly empty cells are blank. pandas' default NA strings
("NA", "N/A", "null", ...) are kept as text, and callers opt into extra
blank markers with ``na_values``.
"""

__all__ = [
    "WorkbookReadError",
    "read_excel_file",
]


class WorkbookReadError(Exception):
    """Raised when the workbook file is missing or cannot be parsed."""


def read_excel_file(
    path: Path,
    target_sheets: Iterable[str] | None = None,
    na_values: list[str] | None = None,
) -> dict[str, pd.DataFrame]:
    """Read an Excel file returning raw grids keyed by sheet name, in workbook order.

    Parameters
    ----------
    path: Excel file path
    target_sheets: restrict to these sheet names (None = every sheet)
    na_values: strings to read as blank cells in addition to empty cells
    """
    if not path.exists():
        raise WorkbookReadError(f"workbook not found: {path}")
    wanted = set(target_sheets) if target_sheets is not None else None
    grids: dict[str, pd.DataFrame] = {}
    try:
        with pd.ExcelFile(path) as xls:
            for name in xls.sheet_names:
                if wanted is not None and str(name) not in wanted:
                    continue
                grid = xls.parse(
                    name,
                    header=None,
                    keep_default_na=False,
                    na_values=na_values or None,
                )
                grids[str(name)] = grid
    except (ValueError, OSError, zipfile.BadZipFile) as e:
        raise WorkbookReadError(f"cannot read workbook {path}: {e}") from e
    return grids
