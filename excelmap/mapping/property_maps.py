from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

from ..models.cell import ReadCellValueResult
from .fallbacks import FixedValueFallback, ThrowFallback
from .mappers import CellValueMapper, ConvertUsingMapper, DateTimeMapper, DictionaryMapper
from .pipeline import ValuePipeline
from .readers import (
    DEFAULT_DELIMITERS,
    AllColumnNamesReader,
    CharSplitReader,
    ColumnIndexReader,
    ColumnIndicesReader,
    ColumnNameReader,
    ColumnNamesReader,
    MultipleCellValuesReader,
    SingleCellValueReader,
)
from .transformers import CellValueTransformer, TrimCellValueTransformer
from .typeinfo import CollectionFactory, DictionaryFactory, ExcelMember

if TYPE_CHECKING:
    from ..excel.sheet import ExcelSheet
    from .class_map import ExcelClassMap

"""Property maps: bind one member of the target class to a reader and a pipeline.

Four variants exist:

- OneToOnePropertyMap: one cell -> one value
- ManyToOneEnumerablePropertyMap: several cells (or one split cell) -> collection
- ManyToOneDictionaryPropertyMap: several named cells -> column name keyed mapping
- ManyToOneObjectPropertyMap: the same row -> nested object via a class map

The ``with_*`` methods configure a map while a class map is being declared
and return the map itself so calls can be chained.
"""

__all__ = [
    "ExcelPropertyMap",
    "OneToOnePropertyMap",
    "ManyToOneEnumerablePropertyMap",
    "ManyToOneDictionaryPropertyMap",
    "ManyToOneObjectPropertyMap",
]


class ExcelPropertyMap:
    """Base class; ``get_value`` computes the member value for one grid row."""

    def __init__(self, member: ExcelMember) -> None:
        self.member = member

    def get_value(self, sheet: ExcelSheet, row_index: int) -> Any:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(member={self.member.name!r})"


class _PipelineConfigMixin:
    """Fluent configuration of the pipeline a map converts values with."""

    @property
    def _configured_pipeline(self) -> ValuePipeline:
        raise NotImplementedError

    def with_empty_fallback(self, value: Any):
        self._configured_pipeline.empty_fallback = FixedValueFallback(value)
        return self

    def with_invalid_fallback(self, value: Any):
        self._configured_pipeline.invalid_fallback = FixedValueFallback(value)
        return self

    def with_value_fallback(self, value: Any):
        """Use ``value`` for both empty and invalid cells."""
        return self.with_empty_fallback(value).with_invalid_fallback(value)

    def with_throwing_empty_fallback(self):
        self._configured_pipeline.empty_fallback = ThrowFallback()
        return self

    def with_throwing_invalid_fallback(self):
        self._configured_pipeline.invalid_fallback = ThrowFallback()
        return self

    def with_cell_value_mappers(self, *mappers: CellValueMapper):
        """Replace the mappers of the pipeline."""
        self._configured_pipeline.cell_value_mappers = list(mappers)
        return self

    def with_mapping(self, mapping: Mapping[str, Any], *, ignore_case: bool = True):
        """Look the cell text up in ``mapping`` before any other mapper."""
        self._configured_pipeline.cell_value_mappers.insert(0, DictionaryMapper(mapping, ignore_case=ignore_case))
        return self

    def with_converter(self, converter: Callable[[ReadCellValueResult], Any]):
        """Try ``converter`` before any other mapper."""
        self._configured_pipeline.cell_value_mappers.insert(0, ConvertUsingMapper(converter))
        return self

    def with_date_formats(self, *formats: str):
        """Accept additional strptime formats after ISO parsing."""
        for mapper in self._configured_pipeline.cell_value_mappers:
            if isinstance(mapper, DateTimeMapper):
                mapper.formats.extend(formats)
                return self
        raise TypeError(f"member '{self.member.name}' is not mapped as a date")  # type: ignore[attr-defined]

    def with_transformers(self, *transformers: CellValueTransformer):
        for transformer in transformers:
            self._configured_pipeline.add_cell_value_transformer(transformer)
        return self

    def with_trim(self):
        return self.with_transformers(TrimCellValueTransformer())


class OneToOnePropertyMap(_PipelineConfigMixin, ExcelPropertyMap):
    def __init__(self, member: ExcelMember, reader: SingleCellValueReader, pipeline: ValuePipeline) -> None:
        super().__init__(member)
        self.reader = reader
        self.pipeline = pipeline

    @property
    def _configured_pipeline(self) -> ValuePipeline:
        return self.pipeline

    def with_column_name(self, column_name: str) -> OneToOnePropertyMap:
        self.reader = ColumnNameReader(column_name)
        return self

    def with_index(self, column_index: int) -> OneToOnePropertyMap:
        self.reader = ColumnIndexReader(column_index)
        return self

    def with_reader(self, reader: SingleCellValueReader) -> OneToOnePropertyMap:
        self.reader = reader
        return self

    def get_value(self, sheet: ExcelSheet, row_index: int) -> Any:
        cell = self.reader.read(sheet, row_index)
        return self.pipeline.convert(row_index, cell)


class ManyToOneEnumerablePropertyMap(_PipelineConfigMixin, ExcelPropertyMap):
    """Collection member built from several cells.

    The ``with_*_fallback`` methods configure the element pipeline, i.e. what
    each individual empty or invalid cell becomes. The exception is
    with_empty_fallback on a split reader: there the value replaces the whole
    collection when the source cell is empty. Without it an empty source cell
    yields an empty collection.
    """

    def __init__(
        self,
        member: ExcelMember,
        reader: MultipleCellValuesReader,
        element_pipeline: ValuePipeline,
        factory: CollectionFactory,
    ) -> None:
        super().__init__(member)
        self.reader = reader
        self.element_pipeline = element_pipeline
        self.factory = factory
        self.empty_fallback: FixedValueFallback | ThrowFallback | None = None

    @property
    def _configured_pipeline(self) -> ValuePipeline:
        return self.element_pipeline

    def _split_reader(self) -> CharSplitReader:
        if not isinstance(self.reader, CharSplitReader):
            raise TypeError(f"member '{self.member.name}' does not split a single cell")
        return self.reader

    def with_column_name(self, column_name: str) -> ManyToOneEnumerablePropertyMap:
        delimiters = self.reader.delimiters if isinstance(self.reader, CharSplitReader) else DEFAULT_DELIMITERS
        self.reader = CharSplitReader(ColumnNameReader(column_name), delimiters)
        return self

    def with_index(self, column_index: int) -> ManyToOneEnumerablePropertyMap:
        delimiters = self.reader.delimiters if isinstance(self.reader, CharSplitReader) else DEFAULT_DELIMITERS
        self.reader = CharSplitReader(ColumnIndexReader(column_index), delimiters)
        return self

    def with_column_names(self, *column_names: str) -> ManyToOneEnumerablePropertyMap:
        self.reader = ColumnNamesReader(column_names)
        return self

    def with_column_indices(self, *column_indices: int) -> ManyToOneEnumerablePropertyMap:
        self.reader = ColumnIndicesReader(column_indices)
        return self

    def with_delimiters(self, *delimiters: str) -> ManyToOneEnumerablePropertyMap:
        self.reader = CharSplitReader(self._split_reader().reader, delimiters)
        return self

    def with_empty_fallback(self, value: Any) -> ManyToOneEnumerablePropertyMap:
        if isinstance(self.reader, CharSplitReader):
            self.empty_fallback = FixedValueFallback(value)
            return self
        return super().with_empty_fallback(value)

    def with_empty_collection_fallback(self, value: Iterable[Any]) -> ManyToOneEnumerablePropertyMap:
        """Value for the whole member when the split cell is empty."""
        self._split_reader()
        self.empty_fallback = FixedValueFallback(value)
        return self

    def with_reader(self, reader: MultipleCellValuesReader) -> ManyToOneEnumerablePropertyMap:
        self.reader = reader
        return self

    def get_value(self, sheet: ExcelSheet, row_index: int) -> Any:
        if isinstance(self.reader, CharSplitReader):
            cell = self.reader.read(sheet, row_index)
            if cell.is_empty and self.empty_fallback is not None:
                return self.empty_fallback.perform_fallback(row_index, cell, self.member.annotation)
            cells = self.reader.split(cell)
        else:
            cells = self.reader.read_many(sheet, row_index)
        return self.factory([self.element_pipeline.convert(row_index, cell) for cell in cells])


class ManyToOneDictionaryPropertyMap(_PipelineConfigMixin, ExcelPropertyMap):
    """Column name keyed mapping; every heading column by default."""

    def __init__(
        self,
        member: ExcelMember,
        reader: AllColumnNamesReader | ColumnNamesReader,
        value_pipeline: ValuePipeline,
        factory: DictionaryFactory,
    ) -> None:
        super().__init__(member)
        self.reader = reader
        self.value_pipeline = value_pipeline
        self.factory = factory

    @property
    def _configured_pipeline(self) -> ValuePipeline:
        return self.value_pipeline

    def with_column_names(self, *column_names: str) -> ManyToOneDictionaryPropertyMap:
        self.reader = ColumnNamesReader(column_names)
        return self

    def get_value(self, sheet: ExcelSheet, row_index: int) -> Any:
        pairs = self.reader.read_pairs(sheet, row_index)
        return self.factory([(name, self.value_pipeline.convert(row_index, cell)) for name, cell in pairs])


class ManyToOneObjectPropertyMap(ExcelPropertyMap):
    def __init__(self, member: ExcelMember, class_map: ExcelClassMap[Any]) -> None:
        super().__init__(member)
        self.class_map = class_map

    def with_class_map(self, class_map: ExcelClassMap[Any]) -> ManyToOneObjectPropertyMap:
        self.class_map = class_map
        return self

    def get_value(self, sheet: ExcelSheet, row_index: int) -> Any:
        return self.class_map.read_row(sheet, row_index)
