from __future__ import annotations

import dataclasses
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from ..models.errors import ExcelMappingError, MappingErrorKind
from .fallbacks import FallbackStrategy
from .property_maps import (
    ExcelPropertyMap,
    ManyToOneEnumerablePropertyMap,
    ManyToOneObjectPropertyMap,
)
from .readers import ColumnIndicesReader, ColumnNamesReader
from .typeinfo import (
    collection_factory,
    enumerable_element_type,
    get_member,
    has_default_constructor,
    unwrap_optional,
)

if TYPE_CHECKING:
    from ..excel.sheet import ExcelSheet

"""Class map: the property maps of one target class, executed per row.

Declare an explicit mapping by subclassing::

    class OrderMap(ExcelClassMap[Order]):
        def __init__(self) -> None:
            super().__init__(Order)
            self.map("id").with_column_name("Order ID")
            self.multi_map("amounts", "Q1", "Q2", "Q3").with_empty_fallback(0)
"""

__all__ = [
    "ExcelClassMap",
]

T = TypeVar("T")


class ExcelClassMap(Generic[T]):
    """Ordered property maps for ``target_type`` plus its default empty-value strategy."""

    def __init__(
        self,
        target_type: type[T],
        empty_value_strategy: FallbackStrategy = FallbackStrategy.THROW_IF_PRIMITIVE,
    ) -> None:
        if not isinstance(empty_value_strategy, FallbackStrategy):
            raise ValueError(f"invalid empty value strategy: {empty_value_strategy!r}")
        self.type = target_type
        self.empty_value_strategy = empty_value_strategy
        self.mappings: list[ExcelPropertyMap] = []

    def add(self, property_map: ExcelPropertyMap) -> ExcelPropertyMap:
        """Add a property map, replacing an existing map of the same member."""
        self.mappings = [m for m in self.mappings if m.member.name != property_map.member.name]
        self.mappings.append(property_map)
        return property_map

    def get(self, member_name: str) -> ExcelPropertyMap | None:
        for property_map in self.mappings:
            if property_map.member.name == member_name:
                return property_map
        return None

    def map(self, member_name: str) -> Any:
        """Map a member the way auto-mapping would, ready for further configuration.

        Primitives read the column named like the member, collections split
        that column on commas, dictionaries read every column, and other
        classes become nested objects.
        """
        from .auto_mapper import create_member_map

        member = get_member(self.type, member_name)
        return self.add(create_member_map(self.type, member, self.empty_value_strategy))

    def multi_map(self, member_name: str, *columns: str | int | Sequence[str] | Sequence[int]) -> ManyToOneEnumerablePropertyMap:
        """Map a collection member to several columns, by name or by index."""
        from .auto_mapper import create_primitive_pipeline

        if len(columns) == 1 and isinstance(columns[0], (list, tuple)):
            columns = tuple(columns[0])
        if not columns:
            raise ValueError("multi_map requires at least one column")
        if all(isinstance(c, str) for c in columns):
            reader: ColumnNamesReader | ColumnIndicesReader = ColumnNamesReader(columns)  # type: ignore[arg-type]
        elif all(isinstance(c, int) for c in columns):
            reader = ColumnIndicesReader(columns)  # type: ignore[arg-type]
        else:
            raise ValueError("multi_map columns must be all names or all indices")

        member = get_member(self.type, member_name)
        annotation, _ = unwrap_optional(member.annotation)
        is_enumerable, element_type = enumerable_element_type(annotation)
        factory = collection_factory(annotation) if is_enumerable else None
        pipeline = create_primitive_pipeline(element_type, self.empty_value_strategy) if is_enumerable else None
        if factory is None or pipeline is None:
            raise ExcelMappingError(
                f"member '{member_name}' of '{self.type.__name__}' is not a supported collection",
                MappingErrorKind.AUTO_MAPPING_FAILED,
                target_type=self.type,
                member=member_name,
            )
        property_map = ManyToOneEnumerablePropertyMap(member, reader, pipeline, factory)
        self.add(property_map)
        return property_map

    def map_object(self, member_name: str, class_map: ExcelClassMap[Any] | None = None) -> ManyToOneObjectPropertyMap:
        """Map a member to a nested object, auto-mapped unless ``class_map`` is given."""
        from .auto_mapper import create_class_map

        member = get_member(self.type, member_name)
        annotation, _ = unwrap_optional(member.annotation)
        nested = class_map or create_class_map(annotation, self.empty_value_strategy)
        property_map = ManyToOneObjectPropertyMap(member, nested)
        self.add(property_map)
        return property_map

    def read_row(self, sheet: ExcelSheet, row_index: int) -> T:
        """Evaluate every property map against a grid row and build the instance.

        All values are computed before the instance is created, so a failing
        member never leaves a half-populated object behind.
        """
        self._check_constructible()
        values = {m.member.name: m.get_value(sheet, row_index) for m in self.mappings}
        return self._create(values)

    def _check_constructible(self) -> None:
        """Fail before reading any cell when the mapped members cannot build an instance."""
        mapped = {m.member.name for m in self.mappings}
        if dataclasses.is_dataclass(self.type):
            for f in dataclasses.fields(self.type):
                required = f.init and f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING
                if required and f.name not in mapped:
                    raise ExcelMappingError(
                        f"required member '{f.name}' of '{self.type.__name__}' has no mapping",
                        MappingErrorKind.NO_MAPPING_REGISTERED,
                        target_type=self.type,
                        member=f.name,
                    )
        elif not has_default_constructor(self.type):
            raise ExcelMappingError(
                f"'{self.type.__name__}' cannot be constructed without arguments",
                MappingErrorKind.NO_MAPPING_REGISTERED,
                target_type=self.type,
            )

    def _create(self, values: dict[str, Any]) -> T:
        if dataclasses.is_dataclass(self.type):
            init_names = {f.name for f in dataclasses.fields(self.type) if f.init}
            kwargs = {k: v for k, v in values.items() if k in init_names}
            instance = self.type(**kwargs)
            for name, value in values.items():
                if name not in init_names:
                    setattr(instance, name, value)
            return instance
        instance = self.type()
        for name, value in values.items():
            setattr(instance, name, value)
        return instance

    def __repr__(self) -> str:
        return (
            f"ExcelClassMap(type={self.type.__name__}, strategy={self.empty_value_strategy.name}, "
            f"mappings={[m.member.name for m in self.mappings]})"
        )
