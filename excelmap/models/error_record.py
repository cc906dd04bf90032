from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

from .errors import ExcelMappingError

"""ErrorRecord model for error logging.

One record describes one row that failed to map. ``row`` is the 1-based
worksheet row number, matching what a user sees in Excel; -1 is used for
sheet-level errors where no row can be named.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Workbook filename being read
        sheet: Sheet name within the workbook
        row: Row number (1-based). -1 when the row is unknown
        error_type: MappingErrorKind value (UPPER_SNAKE_CASE)
        message: Human readable error message
    """
    timestamp: str  # ISO8601 UTC
    file: str
    sheet: str
    row: int
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(file: str, sheet: str, row: int, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            sheet=sheet,
            row=row,
            error_type=error_type,
            message=message,
        )

    @staticmethod
    def from_mapping_error(
        file: str,
        sheet: str,
        error: ExcelMappingError,
        row_index: int | None = None,
    ) -> ErrorRecord:
        """Create a record from a mapping failure, converting its grid row index to a row number.

        ``row_index`` is used when the error itself carries no row (e.g. a
        duplicate dictionary key); with neither the row is -1.
        """
        index = error.row_index if error.row_index is not None else row_index
        row = index + 1 if index is not None else -1
        return ErrorRecord.create(file, sheet, row, error.error_type, str(error))

    def to_json_line(self) -> str:
        """Serialize to one JSON line with exactly the dataclass keys."""
        return json.dumps(asdict(self), ensure_ascii=False)
