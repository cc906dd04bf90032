from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from ..excel.importer import ExcelImporter
from ..logging.error_log import ErrorLogBuffer
from ..models.error_record import ErrorRecord
from ..models.errors import ExcelMappingError, MappingErrorKind
from ..models.read_result import ReadResult, RowFailure, SheetReadResult
from .progress import ProgressTracker

"""Read service: map every row of a workbook, tolerating bad rows.

A row that fails to convert is recorded (log line + ErrorRecord) and the
read continues with the next row. Errors that would fail every row of the
sheet (missing mapping, missing column, unusable heading) abort the read
with ReadError instead.
"""

__all__ = [
    "ReadError",
    "FATAL_KINDS",
    "read_sheet_rows",
    "read_workbook",
]

logger = logging.getLogger(__name__)

FATAL_KINDS = frozenset(
    {
        MappingErrorKind.NO_MAPPING_REGISTERED,
        MappingErrorKind.AUTO_MAPPING_FAILED,
        MappingErrorKind.HEADER_NOT_READ,
        MappingErrorKind.HEADER_ALREADY_READ,
        MappingErrorKind.HEADER_NOT_EXPECTED,
        MappingErrorKind.COLUMN_NOT_FOUND,
        MappingErrorKind.COLUMN_INDEX_OUT_OF_RANGE,
        MappingErrorKind.SHEET_NOT_FOUND,
    }
)


class ReadError(Exception):
    """Fatal error that stops a read; wraps the ExcelMappingError that caused it."""

    def __init__(self, message: str, cause: ExcelMappingError) -> None:
        super().__init__(message)
        self.cause = cause


def _file_name(importer: ExcelImporter) -> str:
    return importer.path.name if importer.path is not None else "<memory>"


def _fatal(
    error: ExcelMappingError,
    file_name: str,
    sheet_name: str,
    error_log: ErrorLogBuffer | None,
) -> ReadError:
    # sheet level failure, no row number
    if error_log is not None:
        error_log.append(ErrorRecord.create(file_name, sheet_name, -1, error.error_type, str(error)))
    logger.error(f"sheet={sheet_name} {error.error_type}: {error}")
    return ReadError(f"sheet '{sheet_name}': {error}", error)


def read_sheet_rows(
    importer: ExcelImporter,
    sheet_name: str,
    cls: type,
    error_log: ErrorLogBuffer | None = None,
) -> SheetReadResult:
    """Map every data row of ``sheet_name`` to ``cls``.

    Args:
        importer: Importer holding the workbook and its configuration
        sheet_name: Sheet to read
        cls: Target class; must be registered unless auto-mapping is enabled
        error_log: Buffer receiving one ErrorRecord per failed row

    Returns:
        SheetReadResult with the mapped objects in row order and the failed rows

    Raises:
        ReadError: A failure that is not specific to one row
    """
    start_time = datetime.now(UTC)
    file_name = _file_name(importer)
    objects: list[Any] = []
    failures: list[RowFailure] = []

    try:
        sheet = importer.read_sheet(sheet_name)
        if sheet.has_heading:
            sheet.read_heading()
    except ExcelMappingError as e:
        if e.kind is not MappingErrorKind.END_OF_SHEET:
            raise _fatal(e, file_name, sheet_name, error_log) from e
        logger.info(f"sheet={sheet_name} is empty")
        end_time = datetime.now(UTC)
        return SheetReadResult(sheet_name, objects, failures, start_time, end_time, (end_time - start_time).total_seconds())

    data_rows = sheet.row_count - (1 if sheet.heading is not None else 0)
    with ProgressTracker(data_rows) as progress:
        progress.start_sheet(sheet_name)
        while sheet.has_more_rows():
            try:
                objects.append(sheet.read_row(cls))
            except ExcelMappingError as e:
                if e.kind in FATAL_KINDS:
                    raise _fatal(e, file_name, sheet_name, error_log) from e
                record = ErrorRecord.from_mapping_error(file_name, sheet_name, e, sheet.current_row_index)
                failures.append(RowFailure(row=record.row, error_type=record.error_type, message=record.message))
                logger.warning(f"sheet={sheet_name} row={record.row} {e.error_type}: {e}")
                if error_log is not None:
                    error_log.append(record)
            progress.advance()
        progress.set_postfix(rows=len(objects), failed=len(failures))

    end_time = datetime.now(UTC)
    logger.info(f"sheet={sheet_name} rows={len(objects)} failed_rows={len(failures)}")
    return SheetReadResult(
        sheet_name=sheet_name,
        objects=objects,
        failures=failures,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
    )


def read_workbook(
    importer: ExcelImporter,
    cls: type,
    *,
    sheet_names: Iterable[str] | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> ReadResult:
    """Read ``sheet_names`` (default: every sheet, in workbook order) and aggregate the results.

    The error log is flushed once at the end, also when a ReadError aborts
    the read.
    """
    start_time = datetime.now(UTC)
    names = list(sheet_names) if sheet_names is not None else importer.sheet_names
    sheets: list[SheetReadResult] = []
    try:
        for name in names:
            sheets.append(read_sheet_rows(importer, name, cls, error_log))
    finally:
        if error_log is not None:
            try:
                path = error_log.flush()
            except OSError as e:
                logger.warning(f"cannot write error log: {e}")
            else:
                if path is not None:
                    logger.info(f"error log written: {path}")

    end_time = datetime.now(UTC)
    return ReadResult(
        file_name=_file_name(importer),
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        sheets=sheets,
    )
