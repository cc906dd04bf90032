from __future__ import annotations

from typing import Protocol

"""String transformers applied to a non-empty cell before its mappers run."""

__all__ = [
    "CellValueTransformer",
    "TrimCellValueTransformer",
]


class CellValueTransformer(Protocol):
    def transform_string_value(self, value: str) -> str: ...


class TrimCellValueTransformer:
    def transform_string_value(self, value: str) -> str:
        return value.strip()
