from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from typing import Any

from ..models.cell import ReadCellValueResult
from ..models.errors import ExcelMappingError, MappingErrorKind
from .fallbacks import FallbackItem
from .mappers import CellValueMapper
from .transformers import CellValueTransformer

"""Value pipeline: the reusable conversion unit for one target type.

convert() either produces a converted value or a fallback value, never
both. It keeps no state between calls, so one pipeline serves every row.
"""

__all__ = [
    "ValuePipeline",
]


class ValuePipeline:
    """Ordered mappers and transformers plus the empty / invalid fallbacks."""

    def __init__(
        self,
        target: Any,
        mappers: Iterable[CellValueMapper] = (),
        *,
        empty_fallback: FallbackItem | None = None,
        invalid_fallback: FallbackItem | None = None,
    ) -> None:
        self.target = target
        self.cell_value_mappers: list[CellValueMapper] = list(mappers)
        self.cell_value_transformers: list[CellValueTransformer] = []
        self.empty_fallback = empty_fallback
        self.invalid_fallback = invalid_fallback

    def add_cell_value_mapper(self, mapper: CellValueMapper) -> None:
        self.cell_value_mappers.append(mapper)

    def add_cell_value_transformer(self, transformer: CellValueTransformer) -> None:
        self.cell_value_transformers.append(transformer)

    def _target_name(self) -> str:
        return getattr(self.target, "__name__", repr(self.target))

    def _transform(self, cell: ReadCellValueResult) -> ReadCellValueResult:
        text = cell.string_value or ""
        for transformer in self.cell_value_transformers:
            text = transformer.transform_string_value(text)
        if text == cell.string_value:
            return cell
        value = text if isinstance(cell.value, str) else cell.value
        return dataclasses.replace(cell, value=value, string_value=text)

    def convert(self, row_index: int, cell: ReadCellValueResult) -> Any:
        """Convert one cell read from grid row ``row_index``."""
        if cell.is_empty:
            if self.empty_fallback is None:
                raise ExcelMappingError(
                    f"empty cell (row={row_index}, column={cell.column_index}) "
                    f"and no empty fallback for type '{self._target_name()}'",
                    MappingErrorKind.CONVERSION_INVALID,
                    row_index=row_index,
                    column_index=cell.column_index,
                    target_type=self.target,
                )
            return self.empty_fallback.perform_fallback(row_index, cell, self.target)

        cell = self._transform(cell)
        last_error: Exception | None = None
        for mapper in self.cell_value_mappers:
            result = mapper.map_cell_value(cell)
            if result.succeeded:
                return result.value
            last_error = result.exception or last_error

        if self.invalid_fallback is None:
            raise ExcelMappingError(
                f"invalid value '{cell.string_value}' (row={row_index}, column={cell.column_index}) "
                f"and no invalid fallback for type '{self._target_name()}'",
                MappingErrorKind.CONVERSION_INVALID,
                row_index=row_index,
                column_index=cell.column_index,
                value=cell.value,
                target_type=self.target,
            ) from last_error
        return self.invalid_fallback.perform_fallback(row_index, cell, self.target, last_error)

    def __repr__(self) -> str:
        return (
            f"ValuePipeline(target={self._target_name()}, mappers={len(self.cell_value_mappers)}, "
            f"empty_fallback={self.empty_fallback!r}, invalid_fallback={self.invalid_fallback!r})"
        )
