from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Protocol
from urllib.parse import urlparse
from uuid import UUID

from ..models.cell import CellValueMapperResult, ReadCellValueResult

"""Cell value mappers.

A mapper turns one non-empty cell into a value of its target type or
reports the cell as invalid. Pipelines try their mappers in order and keep
the first success. Mappers never see empty cells.
"""

__all__ = [
    "CellValueMapper",
    "StringMapper",
    "BoolMapper",
    "DateTimeMapper",
    "GuidMapper",
    "EnumMapper",
    "UriMapper",
    "ChangeTypeMapper",
    "DictionaryMapper",
    "ConvertUsingMapper",
]

_TRUE_STRINGS = {"true", "1"}
_FALSE_STRINGS = {"false", "0"}


class CellValueMapper(Protocol):
    def map_cell_value(self, cell: ReadCellValueResult) -> CellValueMapperResult: ...


class StringMapper:
    def map_cell_value(self, cell: ReadCellValueResult) -> CellValueMapperResult:
        return CellValueMapperResult.success(cell.string_value)


class BoolMapper:
    def map_cell_value(self, cell: ReadCellValueResult) -> CellValueMapperResult:
        raw = cell.value
        if isinstance(raw, bool):
            return CellValueMapperResult.success(raw)
        if isinstance(raw, (int, float)) and raw in (0, 1):
            return CellValueMapperResult.success(bool(raw))
        text = (cell.string_value or "").strip().lower()
        if text in _TRUE_STRINGS:
            return CellValueMapperResult.success(True)
        if text in _FALSE_STRINGS:
            return CellValueMapperResult.success(False)
        return CellValueMapperResult.invalid(ValueError(f"not a boolean: {cell.string_value!r}"))


class DateTimeMapper:
    """Maps date cells and ISO text, then each additional strptime format in order."""

    def __init__(self, target: type = datetime, formats: Iterable[str] = ()) -> None:
        self.target = target
        self.formats = list(formats)

    def _coerce(self, value: datetime) -> datetime | date:
        if self.target is date:
            return value.date()
        return value

    def map_cell_value(self, cell: ReadCellValueResult) -> CellValueMapperResult:
        raw = cell.value
        if isinstance(raw, datetime):
            return CellValueMapperResult.success(self._coerce(raw))
        if isinstance(raw, date):
            if self.target is date:
                return CellValueMapperResult.success(raw)
            return CellValueMapperResult.success(datetime(raw.year, raw.month, raw.day))

        text = (cell.string_value or "").strip()
        last_error: Exception | None = None
        try:
            return CellValueMapperResult.success(self._coerce(datetime.fromisoformat(text)))
        except ValueError as e:
            last_error = e
        for fmt in self.formats:
            try:
                return CellValueMapperResult.success(self._coerce(datetime.strptime(text, fmt)))
            except ValueError as e:
                last_error = e
        return CellValueMapperResult.invalid(last_error)


class GuidMapper:
    def map_cell_value(self, cell: ReadCellValueResult) -> CellValueMapperResult:
        try:
            return CellValueMapperResult.success(UUID((cell.string_value or "").strip()))
        except ValueError as e:
            return CellValueMapperResult.invalid(e)


class EnumMapper:
    """Maps text to a member of ``enum_type``.

    The alias table is consulted first, then member names, then member
    values. Text comparison ignores case unless ``ignore_case`` is False.
    """

    def __init__(
        self,
        enum_type: type[Enum],
        aliases: Mapping[str, Enum] | None = None,
        *,
        ignore_case: bool = True,
    ) -> None:
        self.enum_type = enum_type
        self.ignore_case = ignore_case
        self.aliases = {self._key(k): v for k, v in (aliases or {}).items()}
        self._names = {self._key(m.name): m for m in enum_type}

    def _key(self, text: str) -> str:
        return text.casefold() if self.ignore_case else text

    def map_cell_value(self, cell: ReadCellValueResult) -> CellValueMapperResult:
        text = (cell.string_value or "").strip()
        key = self._key(text)
        if key in self.aliases:
            return CellValueMapperResult.success(self.aliases[key])
        if key in self._names:
            return CellValueMapperResult.success(self._names[key])
        candidates: list[Any] = [cell.value, text]
        if text.lstrip("-").isdigit():
            candidates.append(int(text))
        for candidate in candidates:
            try:
                return CellValueMapperResult.success(self.enum_type(candidate))
            except (ValueError, TypeError):
                continue
        return CellValueMapperResult.invalid(
            ValueError(f"{text!r} is not a member of {self.enum_type.__name__}")
        )


class UriMapper:
    """Maps absolute URIs (a scheme and a location) to ``urllib.parse.ParseResult``."""

    def map_cell_value(self, cell: ReadCellValueResult) -> CellValueMapperResult:
        text = (cell.string_value or "").strip()
        try:
            parsed = urlparse(text)
        except ValueError as e:
            return CellValueMapperResult.invalid(e)
        if not parsed.scheme or not (parsed.netloc or parsed.path):
            return CellValueMapperResult.invalid(ValueError(f"not an absolute URI: {text!r}"))
        return CellValueMapperResult.success(parsed)


class ChangeTypeMapper:
    """Generic conversion for numeric types via ``target(text)``.

    Numbers already delivered by the grid are converted directly when the
    conversion is lossless, so a float cell ``3.0`` maps to ``int`` 3 but
    ``3.5`` is invalid.
    """

    def __init__(self, target: type) -> None:
        self.target = target

    def _from_number(self, raw: int | float) -> CellValueMapperResult:
        if self.target is int:
            if isinstance(raw, float) and not raw.is_integer():
                return CellValueMapperResult.invalid(ValueError(f"{raw!r} is not integral"))
            return CellValueMapperResult.success(int(raw))
        if self.target is Decimal and isinstance(raw, float):
            return CellValueMapperResult.success(Decimal(repr(raw)))
        return CellValueMapperResult.success(self.target(raw))

    def map_cell_value(self, cell: ReadCellValueResult) -> CellValueMapperResult:
        raw = cell.value
        try:
            if isinstance(raw, (int, float)) and not isinstance(raw, bool):
                return self._from_number(raw)
            text = (cell.string_value or "").strip()
            if self.target is int:
                number = Decimal(text)
                if number != number.to_integral_value():
                    return CellValueMapperResult.invalid(ValueError(f"{text!r} is not integral"))
                return CellValueMapperResult.success(int(number))
            return CellValueMapperResult.success(self.target(text))
        except (ValueError, TypeError, ArithmeticError, InvalidOperation) as e:
            return CellValueMapperResult.invalid(e)


class DictionaryMapper:
    """Maps text through a caller-supplied lookup table.

    Text missing from the table is invalid so the next mapper gets a try.
    """

    def __init__(self, mapping: Mapping[str, Any], *, ignore_case: bool = True) -> None:
        self.ignore_case = ignore_case
        self.mapping = {self._key(k): v for k, v in mapping.items()}

    def _key(self, text: str) -> str:
        return text.casefold() if self.ignore_case else text

    def map_cell_value(self, cell: ReadCellValueResult) -> CellValueMapperResult:
        key = self._key(cell.string_value or "")
        if key in self.mapping:
            return CellValueMapperResult.success(self.mapping[key])
        return CellValueMapperResult.invalid()


class ConvertUsingMapper:
    """Wraps a callable ``(cell) -> value``; ValueError/TypeError mark the cell invalid."""

    def __init__(self, converter: Callable[[ReadCellValueResult], Any]) -> None:
        self.converter = converter

    def map_cell_value(self, cell: ReadCellValueResult) -> CellValueMapperResult:
        try:
            return CellValueMapperResult.success(self.converter(cell))
        except (ValueError, TypeError) as e:
            return CellValueMapperResult.invalid(e)

