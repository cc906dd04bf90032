from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

import numpy as np
import pandas as pd

"""Cell level value objects.

ReadCellValueResult is what a cell value reader hands to a value pipeline:
the raw value delivered by the grid (already unwrapped from numpy/pandas
scalars) plus its text rendering. CellValueMapperResult is what a single
cell value mapper returns.
"""

__all__ = [
    "ReadCellValueResult",
    "CellValueMapperResult",
    "is_blank",
    "normalize_cell_value",
    "cell_string_value",
]


def is_blank(value: Any) -> bool:
    """True for values the grid delivers for an empty cell (None, NaN, NaT, "")."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, float):
        return math.isnan(value)
    if value is pd.NaT:
        return True
    if isinstance(value, np.generic):
        return bool(pd.isna(value))
    return False


def normalize_cell_value(value: Any) -> Any:
    """Unwrap numpy / pandas scalars into plain Python values. Blank -> None."""
    if is_blank(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, np.generic):
        return value.item()
    return value


def cell_string_value(value: Any) -> str | None:
    """Text rendering of a normalized cell value.

    Integral floats render without the trailing ``.0`` since spreadsheets
    store every number as a float.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


@dataclass(frozen=True)
class ReadCellValueResult:
    """A single raw cell (or a token split out of one)."""
    column_index: int  # -1 when the value did not come straight from a column
    value: Any  # normalized raw value, None when blank
    string_value: str | None  # text rendering, None when blank

    @classmethod
    def from_raw(cls, column_index: int, raw: Any) -> ReadCellValueResult:
        value = normalize_cell_value(raw)
        return cls(column_index=column_index, value=value, string_value=cell_string_value(value))

    @classmethod
    def from_text(cls, column_index: int, text: str) -> ReadCellValueResult:
        return cls(column_index=column_index, value=text, string_value=text)

    @property
    def is_empty(self) -> bool:
        return self.string_value is None or self.string_value == ""


@dataclass(frozen=True)
class CellValueMapperResult:
    """Outcome of one mapper: success with a value, or invalid."""
    succeeded: bool
    value: Any = None
    exception: Exception | None = None

    @classmethod
    def success(cls, value: Any) -> CellValueMapperResult:
        return cls(succeeded=True, value=value)

    @classmethod
    def invalid(cls, exception: Exception | None = None) -> CellValueMapperResult:
        return cls(succeeded=False, exception=exception)
