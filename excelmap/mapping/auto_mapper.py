from __future__ import annotations

import collections.abc
import logging
import numbers
from datetime import date, datetime
from enum import Enum
from typing import Any, TypeVar
from urllib.parse import ParseResult
from uuid import UUID

from ..models.errors import ExcelMappingError, MappingErrorKind
from .class_map import ExcelClassMap
from .fallbacks import FallbackStrategy, reconcile_fallback
from .mappers import (
    BoolMapper,
    CellValueMapper,
    ChangeTypeMapper,
    DateTimeMapper,
    EnumMapper,
    GuidMapper,
    StringMapper,
    UriMapper,
)
from .pipeline import ValuePipeline
from .property_maps import (
    ExcelPropertyMap,
    ManyToOneDictionaryPropertyMap,
    ManyToOneEnumerablePropertyMap,
    ManyToOneObjectPropertyMap,
    OneToOnePropertyMap,
)
from .readers import AllColumnNamesReader, CharSplitReader, ColumnNameReader
from .typeinfo import (
    ExcelMember,
    can_instantiate,
    collection_factory,
    dictionary_factory,
    dictionary_value_type,
    enumerable_element_type,
    get_members,
    unwrap_optional,
)

"""Auto-mapper: infer a complete class map from a class's annotations.

Each writable member is tried, in this order, as

1. a well-known primitive (one cell, one mapper),
2. a dictionary (every column, keyed by column name),
3. a collection (the member's column split on commas),
4. a nested object (recursively auto-mapped against the same row).

Inference is all-or-nothing: if one member fits none of these shapes the
whole class map fails and no partial map is returned.
"""

__all__ = [
    "MemberKind",
    "classify_member",
    "create_primitive_pipeline",
    "create_member_map",
    "create_class_map",
    "try_create_class_map",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")

THROW = FallbackStrategy.THROW_IF_PRIMITIVE
SET_DEFAULT = FallbackStrategy.SET_TO_DEFAULT_VALUE


class MemberKind(Enum):
    PRIMITIVE = "primitive"
    DICTIONARY = "dictionary"
    COLLECTION = "collection"
    OBJECT = "object"


_MEMBER_KINDS: dict[type[ExcelPropertyMap], MemberKind] = {
    OneToOnePropertyMap: MemberKind.PRIMITIVE,
    ManyToOneDictionaryPropertyMap: MemberKind.DICTIONARY,
    ManyToOneEnumerablePropertyMap: MemberKind.COLLECTION,
    ManyToOneObjectPropertyMap: MemberKind.OBJECT,
}


def _well_known_mapper(target: Any) -> tuple[CellValueMapper, FallbackStrategy, FallbackStrategy] | None:
    """Mapper plus the (empty, invalid) strategies a well-known type asks for."""
    if target is datetime or target is date:
        return DateTimeMapper(target), THROW, THROW
    if target is UUID:
        return GuidMapper(), THROW, THROW
    if target is bool:
        return BoolMapper(), THROW, THROW
    if isinstance(target, type) and issubclass(target, Enum):
        return EnumMapper(target), THROW, THROW
    if target in (str, object, Any):
        return StringMapper(), SET_DEFAULT, SET_DEFAULT
    if target is ParseResult:
        return UriMapper(), SET_DEFAULT, THROW
    if isinstance(target, type) and issubclass(target, numbers.Number):
        return ChangeTypeMapper(target), THROW, THROW
    return None


def create_primitive_pipeline(annotation: Any, empty_value_strategy: FallbackStrategy) -> ValuePipeline | None:
    """Pipeline for a well-known type (optionally ``T | None``), else None."""
    target, is_nullable = unwrap_optional(annotation)
    well_known = _well_known_mapper(target)
    if well_known is None:
        return None
    mapper, empty_strategy, invalid_strategy = well_known
    return ValuePipeline(
        target,
        [mapper],
        empty_fallback=reconcile_fallback(
            target,
            empty_strategy,
            is_empty=True,
            is_nullable=is_nullable,
            empty_value_strategy=empty_value_strategy,
        ),
        invalid_fallback=reconcile_fallback(
            target,
            invalid_strategy,
            is_empty=False,
            is_nullable=is_nullable,
            empty_value_strategy=empty_value_strategy,
        ),
    )


def _try_dictionary_map(member: ExcelMember, annotation: Any, strategy: FallbackStrategy) -> ExcelPropertyMap | None:
    is_dictionary, value_type = dictionary_value_type(annotation)
    if not is_dictionary:
        return None
    pipeline = create_primitive_pipeline(value_type, strategy)
    factory = dictionary_factory(annotation)
    if pipeline is None or factory is None:
        return None
    return ManyToOneDictionaryPropertyMap(member, AllColumnNamesReader(), pipeline, factory)


def _try_enumerable_map(member: ExcelMember, annotation: Any, strategy: FallbackStrategy) -> ExcelPropertyMap | None:
    is_enumerable, element_type = enumerable_element_type(annotation)
    if not is_enumerable:
        return None
    pipeline = create_primitive_pipeline(element_type, strategy)
    factory = collection_factory(annotation)
    if pipeline is None or factory is None:
        return None
    return ManyToOneEnumerablePropertyMap(member, CharSplitReader(ColumnNameReader(member.name)), pipeline, factory)


def _try_object_map(
    member: ExcelMember,
    annotation: Any,
    strategy: FallbackStrategy,
    visiting: tuple[type, ...],
) -> ExcelPropertyMap | None:
    if not isinstance(annotation, type) or issubclass(annotation, collections.abc.Iterable):
        return None
    class_map = _build_class_map(annotation, strategy, visiting)
    return ManyToOneObjectPropertyMap(member, class_map)


def _create_member_map(
    owner: type,
    member: ExcelMember,
    strategy: FallbackStrategy,
    visiting: tuple[type, ...],
) -> ExcelPropertyMap:
    pipeline = create_primitive_pipeline(member.annotation, strategy)
    if pipeline is not None:
        return OneToOnePropertyMap(member, ColumnNameReader(member.name), pipeline)

    annotation, _ = unwrap_optional(member.annotation)
    property_map = _try_dictionary_map(member, annotation, strategy) or _try_enumerable_map(
        member, annotation, strategy
    )
    if property_map is None:
        try:
            property_map = _try_object_map(member, annotation, strategy, visiting)
        except ExcelMappingError as e:
            if e.kind is not MappingErrorKind.AUTO_MAPPING_FAILED:
                raise
            raise ExcelMappingError(
                f"cannot auto-map member '{member.name}' of '{owner.__name__}': {e}",
                MappingErrorKind.AUTO_MAPPING_FAILED,
                target_type=owner,
                member=f"{member.name}.{e.member}" if e.member else member.name,
            ) from e

    if property_map is None:
        raise ExcelMappingError(
            f"cannot auto-map member '{member.name}' of '{owner.__name__}' "
            f"with unsupported type {member.annotation!r}",
            MappingErrorKind.AUTO_MAPPING_FAILED,
            target_type=owner,
            member=member.name,
        )
    return property_map


def _build_class_map(cls: Any, strategy: FallbackStrategy, visiting: tuple[type, ...]) -> ExcelClassMap[Any]:
    name = getattr(cls, "__name__", repr(cls))
    if cls in visiting:
        raise ExcelMappingError(
            f"cannot auto-map self-referencing type '{name}'",
            MappingErrorKind.AUTO_MAPPING_FAILED,
            target_type=cls,
        )
    if not can_instantiate(cls):
        raise ExcelMappingError(
            f"cannot auto-map '{name}': abstract or not constructible without arguments",
            MappingErrorKind.AUTO_MAPPING_FAILED,
            target_type=cls,
        )
    try:
        members = get_members(cls)
    except NameError as e:
        raise ExcelMappingError(
            f"cannot resolve annotations of '{name}': {e}",
            MappingErrorKind.AUTO_MAPPING_FAILED,
            target_type=cls,
        ) from e

    class_map: ExcelClassMap[Any] = ExcelClassMap(cls, strategy)
    for member in members:
        class_map.add(_create_member_map(cls, member, strategy, visiting + (cls,)))
    return class_map


def classify_member(property_map: ExcelPropertyMap) -> MemberKind:
    return _MEMBER_KINDS[type(property_map)]


def create_member_map(owner: type, member: ExcelMember, empty_value_strategy: FallbackStrategy) -> ExcelPropertyMap:
    """Infer the property map of one member; raises AUTO_MAPPING_FAILED if none fits."""
    return _create_member_map(owner, member, empty_value_strategy, (owner,))


def create_class_map(
    cls: type[T],
    empty_value_strategy: FallbackStrategy = FallbackStrategy.THROW_IF_PRIMITIVE,
) -> ExcelClassMap[T]:
    """Infer a class map for ``cls``.

    Raises:
        ValueError: ``empty_value_strategy`` is not a FallbackStrategy
        ExcelMappingError: AUTO_MAPPING_FAILED, with ``member`` naming the
            first member (dotted path for nested objects) that fits no shape
    """
    if not isinstance(empty_value_strategy, FallbackStrategy):
        raise ValueError(f"invalid empty value strategy: {empty_value_strategy!r}")
    class_map = _build_class_map(cls, empty_value_strategy, ())
    logger.debug(
        "auto-mapped %s: %s",
        cls.__name__,
        ", ".join(f"{m.member.name}={classify_member(m).value}" for m in class_map.mappings),
    )
    return class_map


def try_create_class_map(
    cls: type[T],
    empty_value_strategy: FallbackStrategy = FallbackStrategy.THROW_IF_PRIMITIVE,
) -> ExcelClassMap[T] | None:
    """Like create_class_map() but returns None instead of raising AUTO_MAPPING_FAILED."""
    try:
        return create_class_map(cls, empty_value_strategy)
    except ExcelMappingError as e:
        if e.kind is not MappingErrorKind.AUTO_MAPPING_FAILED:
            raise
        logger.debug("auto-mapping %s failed: %s", getattr(cls, "__name__", cls), e)
        return None
