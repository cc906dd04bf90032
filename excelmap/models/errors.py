from __future__ import annotations

from enum import Enum
from typing import Any

"""Mapping error model.

Every failure raised by the mapping core is an ExcelMappingError. The
``kind`` attribute tells callers what went wrong without parsing messages,
so a driver can decide to skip a row or abort the sheet.
"""

__all__ = [
    "MappingErrorKind",
    "ExcelMappingError",
]


class MappingErrorKind(Enum):
    """Discriminable cause of an ExcelMappingError.

    Values are UPPER_SNAKE so they can be written as ``error_type`` in the
    JSON Lines error log without conversion.
    """
    HEADER_NOT_READ = "HEADER_NOT_READ"
    HEADER_ALREADY_READ = "HEADER_ALREADY_READ"
    HEADER_NOT_EXPECTED = "HEADER_NOT_EXPECTED"
    COLUMN_NOT_FOUND = "COLUMN_NOT_FOUND"
    COLUMN_INDEX_OUT_OF_RANGE = "COLUMN_INDEX_OUT_OF_RANGE"
    NO_MAPPING_REGISTERED = "NO_MAPPING_REGISTERED"
    CONVERSION_INVALID = "CONVERSION_INVALID"
    AUTO_MAPPING_FAILED = "AUTO_MAPPING_FAILED"
    DUPLICATE_DICTIONARY_KEY = "DUPLICATE_DICTIONARY_KEY"
    END_OF_SHEET = "END_OF_SHEET"
    NO_MORE_SHEETS = "NO_MORE_SHEETS"
    SHEET_NOT_FOUND = "SHEET_NOT_FOUND"


class ExcelMappingError(Exception):
    """Raised for any heading, reader, conversion or mapping failure.

    Attributes:
        kind: Cause of the failure
        row_index: Zero-based grid row of the offending cell, if known
        column_index: Zero-based grid column of the offending cell, if known
        value: Raw cell value, if a conversion failed
        target_type: Type the value was converted to, if a conversion failed
        member: Member name involved in an auto-mapping failure
    """

    def __init__(
        self,
        message: str,
        kind: MappingErrorKind,
        *,
        row_index: int | None = None,
        column_index: int | None = None,
        value: Any = None,
        target_type: Any = None,
        member: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.row_index = row_index
        self.column_index = column_index
        self.value = value
        self.target_type = target_type
        self.member = member

    @property
    def error_type(self) -> str:
        return self.kind.value
