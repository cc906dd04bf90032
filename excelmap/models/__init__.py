"""Value and result models shared by the mapping core and the read service."""

from .cell import CellValueMapperResult, ReadCellValueResult
from .error_record import ErrorRecord
from .errors import ExcelMappingError, MappingErrorKind
from .read_result import ReadResult, RowFailure, SheetReadResult

__all__ = [
    # Cell values
    "CellValueMapperResult",
    "ReadCellValueResult",
    # Errors
    "ErrorRecord",
    "ExcelMappingError",
    "MappingErrorKind",
    # Read results
    "ReadResult",
    "RowFailure",
    "SheetReadResult",
]
