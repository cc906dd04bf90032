from __future__ import annotations

import copy
from enum import Enum
from typing import Any, Protocol

from ..models.cell import ReadCellValueResult
from ..models.errors import ExcelMappingError, MappingErrorKind
from .typeinfo import default_value

"""Fallback items and the fallback resolver.

A fallback item decides what a pipeline produces when a cell is empty or
when no mapper could convert it: a fixed value, or an error.
"""

__all__ = [
    "FallbackStrategy",
    "FallbackItem",
    "FixedValueFallback",
    "ThrowFallback",
    "reconcile_fallback",
]


class FallbackStrategy(Enum):
    """Class-level behaviour for empty cells of non-nullable members."""
    THROW_IF_PRIMITIVE = "throw_if_primitive"
    SET_TO_DEFAULT_VALUE = "set_to_default_value"


class FallbackItem(Protocol):
    def perform_fallback(
        self,
        row_index: int,
        cell: ReadCellValueResult,
        target: Any,
        exception: Exception | None = None,
    ) -> Any: ...


class FixedValueFallback:
    """Always produces ``value``.

    Mutable values are copied on each use so that two rows never share the
    same list or dict instance.
    """

    def __init__(self, value: Any) -> None:
        self.value = value

    def perform_fallback(
        self,
        row_index: int,
        cell: ReadCellValueResult,
        target: Any,
        exception: Exception | None = None,
    ) -> Any:
        if isinstance(self.value, (list, dict, set)):
            return copy.copy(self.value)
        return self.value

    def __repr__(self) -> str:
        return f"FixedValueFallback({self.value!r})"


class ThrowFallback:
    """Fails the row with CONVERSION_INVALID when invoked."""

    def perform_fallback(
        self,
        row_index: int,
        cell: ReadCellValueResult,
        target: Any,
        exception: Exception | None = None,
    ) -> Any:
        target_name = getattr(target, "__name__", repr(target))
        if cell.is_empty:
            message = (
                f"cannot assign empty cell (row={row_index}, column={cell.column_index}) "
                f"to non-nullable type '{target_name}'"
            )
        else:
            message = (
                f"invalid value '{cell.string_value}' (row={row_index}, column={cell.column_index}) "
                f"for type '{target_name}'"
            )
        raise ExcelMappingError(
            message,
            MappingErrorKind.CONVERSION_INVALID,
            row_index=row_index,
            column_index=cell.column_index,
            value=cell.value,
            target_type=target,
        ) from exception

    def __repr__(self) -> str:
        return "ThrowFallback()"


def reconcile_fallback(
    target: Any,
    strategy_to_pursue: FallbackStrategy,
    *,
    is_empty: bool,
    is_nullable: bool,
    empty_value_strategy: FallbackStrategy,
) -> FallbackItem:
    """Resolve the fallback item for one slot (empty or invalid) of a pipeline.

    Args:
        target: Non-nullable target type
        strategy_to_pursue: Strategy the well-known type asks for in this slot
        is_empty: True for the empty slot, False for the invalid slot
        is_nullable: Whether the member accepts None
        empty_value_strategy: Class-level default strategy

    Returns:
        FixedValueFallback(None) for empty nullable members, a fixed default
        value when either strategy is SET_TO_DEFAULT_VALUE, else ThrowFallback.
    """
    if is_empty and is_nullable:
        return FixedValueFallback(None)
    if FallbackStrategy.SET_TO_DEFAULT_VALUE in (strategy_to_pursue, empty_value_strategy):
        return FixedValueFallback(default_value(target))
    return ThrowFallback()
