from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

from ..models.errors import ExcelMappingError, MappingErrorKind
from .auto_mapper import create_class_map
from .class_map import ExcelClassMap
from .fallbacks import FallbackStrategy

if TYPE_CHECKING:
    from ..excel.sheet import ExcelSheet

"""Importer configuration and its mapping registry.

The registry maps a target class to the class map used for its rows. It is
owned by one ImporterConfiguration; nothing is cached at module level. Lazy
auto-mapping on first use is not thread-safe, matching the single-threaded
read model.
"""

__all__ = [
    "ImporterConfiguration",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _always_has_heading(sheet: ExcelSheet) -> bool:
    return True


class ImporterConfiguration:
    """Options of an importer plus its registered class maps.

    Attributes:
        has_heading: Predicate telling whether a sheet's first row is a heading
        empty_value_strategy: Strategy used when auto-mapping unregistered types
        auto_map: When False (strict), reading an unregistered type fails with
            NO_MAPPING_REGISTERED instead of inferring a class map
    """

    def __init__(
        self,
        *,
        has_heading: Callable[[ExcelSheet], bool] | None = None,
        empty_value_strategy: FallbackStrategy = FallbackStrategy.THROW_IF_PRIMITIVE,
        auto_map: bool = False,
    ) -> None:
        self.has_heading: Callable[[ExcelSheet], bool] = has_heading or _always_has_heading
        self.empty_value_strategy = empty_value_strategy
        self.auto_map = auto_map
        self._class_maps: dict[type, ExcelClassMap[Any]] = {}

    def register_mapping(self, class_map: ExcelClassMap[Any] | type[ExcelClassMap[Any]]) -> ExcelClassMap[Any]:
        """Register a class map instance, or an ExcelClassMap subclass to instantiate."""
        if isinstance(class_map, type):
            class_map = class_map()
        if not isinstance(class_map, ExcelClassMap):
            raise TypeError(f"expected an ExcelClassMap, got {type(class_map).__name__}")
        self._class_maps[class_map.type] = class_map
        logger.debug("registered mapping for %s (%d members)", class_map.type.__name__, len(class_map.mappings))
        return class_map

    def try_get_class_map(self, cls: type[T]) -> ExcelClassMap[T] | None:
        return self._class_maps.get(cls)

    def get_class_map(self, cls: type[T]) -> ExcelClassMap[T]:
        """Registered class map of ``cls``, auto-mapping it first if enabled."""
        class_map = self._class_maps.get(cls)
        if class_map is not None:
            return class_map
        if not self.auto_map:
            raise ExcelMappingError(
                f"no mapping registered for type '{getattr(cls, '__name__', cls)}'",
                MappingErrorKind.NO_MAPPING_REGISTERED,
                target_type=cls,
            )
        class_map = create_class_map(cls, self.empty_value_strategy)
        self._class_maps[cls] = class_map
        return class_map

    def __contains__(self, cls: object) -> bool:
        return cls in self._class_maps
