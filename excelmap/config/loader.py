from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..mapping.class_map import ExcelClassMap
from ..mapping.fallbacks import FallbackStrategy
from ..mapping.property_maps import ManyToOneEnumerablePropertyMap, OneToOnePropertyMap
from ..mapping.readers import CharSplitReader
from ..mapping.registry import ImporterConfiguration

"""Config loader.

Responsibilities:
- Load a YAML config file
- Validate it against the bundled JSON schema (config_schema.json)
- Apply defaults for every missing key
- Turn the result into an ImporterConfiguration and per-model overrides
"""

__all__ = [
    "ConfigError",
    "ModelOverride",
    "ImporterConfig",
    "load_config",
    "apply_model_override",
]

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class ModelOverride:
    """Column and delimiter overrides for one auto-mapped model.

    Attributes:
        columns: member name -> column name (str) or zero-based column index (int)
        delimiters: split delimiters for every single-cell collection member
    """
    columns: dict[str, str | int] = field(default_factory=dict)
    delimiters: list[str] | None = None


@dataclass(frozen=True)
class ImporterConfig:
    has_heading: bool = True
    sheets_without_heading: frozenset[str] = frozenset()
    empty_value_strategy: FallbackStrategy = FallbackStrategy.THROW_IF_PRIMITIVE
    auto_map: bool = False
    na_values: list[str] = field(default_factory=list)
    models: dict[str, ModelOverride] = field(default_factory=dict)

    def sheet_has_heading(self, sheet_name: str) -> bool:
        return self.has_heading and sheet_name not in self.sheets_without_heading

    def build_configuration(self) -> ImporterConfiguration:
        """Create a fresh ImporterConfiguration (with an empty registry) from these settings."""
        return ImporterConfiguration(
            has_heading=lambda sheet: self.sheet_has_heading(sheet.name),
            empty_value_strategy=self.empty_value_strategy,
            auto_map=self.auto_map,
        )


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: The schema file is missing or broken, or the data
            fails validation (wrong types, unknown keys, bad enum values).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path) -> ImporterConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    models = {
        name: ModelOverride(
            columns=dict(raw.get("columns", {})),
            delimiters=raw.get("delimiters"),
        )
        for name, raw in data.get("models", {}).items()
    }
    return ImporterConfig(
        has_heading=data.get("has_heading", True),
        sheets_without_heading=frozenset(data.get("sheets_without_heading", [])),
        empty_value_strategy=FallbackStrategy(data.get("empty_value_strategy", "throw_if_primitive")),
        auto_map=data.get("auto_map", False),
        na_values=list(data.get("na_values", [])),
        models=models,
    )


def apply_model_override(class_map: ExcelClassMap[Any], override: ModelOverride) -> ExcelClassMap[Any]:
    """Re-point members of ``class_map`` at the configured columns and delimiters."""
    for member_name, column in override.columns.items():
        property_map = class_map.get(member_name)
        if property_map is None:
            raise ConfigError(f"model '{class_map.type.__name__}' has no mapped member '{member_name}'")
        if not isinstance(property_map, (OneToOnePropertyMap, ManyToOneEnumerablePropertyMap)):
            raise ConfigError(f"member '{member_name}' does not read a single column")
        if isinstance(column, int):
            property_map.with_index(column)
        else:
            property_map.with_column_name(column)

    if override.delimiters:
        for property_map in class_map.mappings:
            if isinstance(property_map, ManyToOneEnumerablePropertyMap) and isinstance(
                property_map.reader, CharSplitReader
            ):
                property_map.with_delimiters(*override.delimiters)
    return class_map
