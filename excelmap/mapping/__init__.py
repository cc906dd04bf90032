"""Mapping core: cell value mappers, pipelines, readers, property/class maps and auto-mapping."""

from .auto_mapper import MemberKind, classify_member, create_class_map, try_create_class_map
from .class_map import ExcelClassMap
from .fallbacks import FallbackStrategy, FixedValueFallback, ThrowFallback
from .pipeline import ValuePipeline
from .property_maps import (
    ExcelPropertyMap,
    ManyToOneDictionaryPropertyMap,
    ManyToOneEnumerablePropertyMap,
    ManyToOneObjectPropertyMap,
    OneToOnePropertyMap,
)
from .registry import ImporterConfiguration

__all__ = [
    # Class maps
    "ExcelClassMap",
    "ImporterConfiguration",
    "create_class_map",
    "try_create_class_map",
    "MemberKind",
    "classify_member",
    # Property maps
    "ExcelPropertyMap",
    "OneToOnePropertyMap",
    "ManyToOneEnumerablePropertyMap",
    "ManyToOneDictionaryPropertyMap",
    "ManyToOneObjectPropertyMap",
    # Pipelines
    "ValuePipeline",
    "FallbackStrategy",
    "FixedValueFallback",
    "ThrowFallback",
]
