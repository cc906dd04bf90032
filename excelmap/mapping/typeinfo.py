from __future__ import annotations

import collections.abc
import dataclasses
import inspect
import numbers
import types
import typing
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from typing import Any, ClassVar, Union, get_args, get_origin
from uuid import UUID

from ..models.errors import ExcelMappingError, MappingErrorKind

"""Type introspection helpers used when building class maps.

Everything here runs once, while a class map is being constructed; nothing
is consulted per row.
"""

__all__ = [
    "ExcelMember",
    "unwrap_optional",
    "get_members",
    "get_member",
    "default_value",
    "has_default_constructor",
    "can_instantiate",
    "enumerable_element_type",
    "collection_factory",
    "dictionary_value_type",
    "dictionary_factory",
]

NoneType = type(None)

CollectionFactory = Callable[[list[Any]], Any]
DictionaryFactory = Callable[[list[tuple[str, Any]]], Any]

# Explicit zero values. Enums and other numbers are handled in default_value().
_DEFAULT_VALUES: dict[Any, Any] = {
    bool: False,
    int: 0,
    float: 0.0,
    complex: 0j,
    Decimal: Decimal(0),
    Fraction: Fraction(0),
    str: None,
    datetime: datetime.min,
    date: date.min,
    UUID: UUID(int=0),
}


@dataclass(frozen=True)
class ExcelMember:
    """A writable member of a target class."""
    name: str
    annotation: Any


def unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    """Split ``T | None`` into ``(T, True)``; anything else is ``(annotation, False)``."""
    if get_origin(annotation) in (Union, types.UnionType):
        args = get_args(annotation)
        non_none = [a for a in args if a is not NoneType]
        if len(non_none) == 1 and len(args) == 2:
            return non_none[0], True
    return annotation, False


def get_members(cls: type) -> list[ExcelMember]:
    """Writable members of ``cls`` in declaration order.

    Dataclasses expose their init fields. Other classes expose their public,
    non-ClassVar annotations followed by properties that have a setter.
    """
    hints = typing.get_type_hints(cls)
    if dataclasses.is_dataclass(cls):
        return [
            ExcelMember(f.name, hints.get(f.name, Any))
            for f in dataclasses.fields(cls)
            if f.init
        ]

    members: list[ExcelMember] = []
    for name, annotation in hints.items():
        if name.startswith("_") or get_origin(annotation) is ClassVar or annotation is ClassVar:
            continue
        members.append(ExcelMember(name, annotation))
    for name, prop in inspect.getmembers(cls, lambda a: isinstance(a, property)):
        if name.startswith("_") or name in hints or prop.fset is None:
            continue
        annotation = typing.get_type_hints(prop.fget).get("return", Any)
        members.append(ExcelMember(name, annotation))
    return members


def get_member(cls: type, name: str) -> ExcelMember:
    for member in get_members(cls):
        if member.name == name:
            return member
    raise ExcelMappingError(
        f"type '{cls.__name__}' has no writable member '{name}'",
        MappingErrorKind.AUTO_MAPPING_FAILED,
        target_type=cls,
        member=name,
    )


def default_value(target: Any) -> Any:
    """Zero value of a well-known type (None where there is none)."""
    if target in _DEFAULT_VALUES:
        return _DEFAULT_VALUES[target]
    if isinstance(target, type):
        if issubclass(target, Enum):
            return next(iter(target), None)
        if issubclass(target, numbers.Number):
            return target()
    return None


def has_default_constructor(cls: type) -> bool:
    try:
        signature = inspect.signature(cls)
    except (TypeError, ValueError):
        # builtins such as dict/set/deque publish no signature
        try:
            cls()
        except TypeError:
            return False
        return True
    for param in signature.parameters.values():
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        if param.default is inspect.Parameter.empty:
            return False
    return True


def can_instantiate(cls: Any) -> bool:
    """True when a class map can create ``cls`` for every row."""
    if not isinstance(cls, type):
        return False
    if inspect.isabstract(cls) or getattr(cls, "_is_protocol", False):
        return False
    if dataclasses.is_dataclass(cls):
        return True
    return has_default_constructor(cls)


def _origin(annotation: Any) -> Any:
    return get_origin(annotation) or annotation


def enumerable_element_type(annotation: Any) -> tuple[bool, Any]:
    """Element type of a collection-shaped annotation.

    Strings, bytes and mappings are not collections here. Fixed-length
    tuples are not supported, only ``tuple[T, ...]``.
    """
    origin = _origin(annotation)
    if not isinstance(origin, type):
        return False, None
    if origin in (str, bytes, bytearray) or issubclass(origin, collections.abc.Mapping):
        return False, None
    if not issubclass(origin, collections.abc.Iterable):
        return False, None
    args = get_args(annotation)
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return True, args[0]
        return False, None
    return True, (args[0] if args else Any)


def collection_factory(annotation: Any) -> CollectionFactory | None:
    """Pick how converted elements become the member's collection type."""
    origin = _origin(annotation)
    if origin in (tuple, frozenset):
        return origin
    if inspect.isabstract(origin):
        if issubclass(list, origin):
            return list
        if issubclass(set, origin):
            return set
        return None
    if not has_default_constructor(origin):
        return None
    adder = "append" if hasattr(origin, "append") else "add" if hasattr(origin, "add") else None
    if adder is None:
        return None

    def create(elements: Iterable[Any]) -> Any:
        collection = origin()
        add = getattr(collection, adder)
        for element in elements:
            add(element)
        return collection

    return create


def dictionary_value_type(annotation: Any) -> tuple[bool, Any]:
    """Value type of a ``str``-keyed mapping annotation."""
    origin = _origin(annotation)
    if not isinstance(origin, type) or not issubclass(origin, collections.abc.Mapping):
        return False, None
    args = get_args(annotation)
    if not args:
        return True, Any
    key_type, value_type = args
    if key_type not in (str, Any, object):
        return False, None
    return True, value_type


def dictionary_factory(annotation: Any) -> DictionaryFactory | None:
    """Pick how (column name, value) pairs become the member's mapping type.

    A repeated key is an error, never a silent overwrite.
    """
    origin = _origin(annotation)
    if inspect.isabstract(origin):
        if not issubclass(dict, origin):
            return None
        origin = dict
    elif not issubclass(origin, collections.abc.MutableMapping) or not has_default_constructor(origin):
        return None

    def create(pairs: Iterable[tuple[str, Any]]) -> Any:
        mapping = origin()
        for key, value in pairs:
            if key in mapping:
                raise ExcelMappingError(
                    f"duplicate dictionary key '{key}'",
                    MappingErrorKind.DUPLICATE_DICTIONARY_KEY,
                    value=key,
                    target_type=annotation,
                )
            mapping[key] = value
        return mapping

    return create
