from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

"""Result models of a service level read.

SheetReadResult holds what one sheet produced; ReadResult aggregates the
sheets of one workbook and feeds the SUMMARY line.
"""

__all__ = [
    "RowFailure",
    "SheetReadResult",
    "ReadResult",
]


@dataclass(frozen=True)
class RowFailure:
    """A row that could not be mapped."""
    row: int  # 1-based worksheet row number
    error_type: str
    message: str


@dataclass(frozen=True)
class SheetReadResult:
    """Objects mapped from one sheet plus the rows that failed."""
    sheet_name: str
    objects: list[Any]
    failures: list[RowFailure]
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float

    @property
    def rows_read(self) -> int:
        return len(self.objects)

    @property
    def failed_rows(self) -> int:
        return len(self.failures)


@dataclass(frozen=True)
class ReadResult:
    """Aggregated results of a workbook read."""
    file_name: str
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    sheets: list[SheetReadResult] = field(default_factory=list)

    @property
    def total_rows(self) -> int:
        return sum(s.rows_read for s in self.sheets)

    @property
    def failed_rows(self) -> int:
        return sum(s.failed_rows for s in self.sheets)

    @property
    def throughput_rows_per_sec(self) -> float:
        if self.elapsed_seconds <= 0:
            return 0.0
        return round(self.total_rows / self.elapsed_seconds, 2)
