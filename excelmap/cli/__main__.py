from __future__ import annotations

import argparse
import dataclasses
import importlib
import json
import sys
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import ParseResult
from uuid import UUID

from excelmap.config.loader import ConfigError, ImporterConfig, apply_model_override, load_config
from excelmap.excel.importer import ExcelImporter
from excelmap.excel.reader import WorkbookReadError
from excelmap.logging.error_log import ErrorLogBuffer
from excelmap.logging.init import log_summary, set_debug, setup_logging
from excelmap.mapping.auto_mapper import create_class_map
from excelmap.models.errors import ExcelMappingError
from excelmap.services.reader_service import ReadError, read_workbook
from excelmap.services.summary import render_summary_line

"""CLI entrypoint.

Reads a workbook, maps every data row to a model class and writes one JSON
object per mapped row. Without --model each row becomes a column name keyed
dictionary of the cell texts.

Exit codes: 0 every row mapped, 2 some rows failed, 1 fatal error.
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

DEFAULT_MODEL = "excelmap.cli.__main__:SheetRow"


@dataclasses.dataclass
class SheetRow:
    """Generic row model: every heading column, keyed by its name."""
    values: dict[str, str | None] = dataclasses.field(default_factory=dict)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="excelmap", description="Map Excel rows to typed objects")
    p.add_argument("workbook", type=Path, help="Path to the .xlsx workbook")
    p.add_argument("--config", type=Path, default=None, help="YAML config file")
    p.add_argument("--model", default=None, help="Target class as module:Class (default: generic row)")
    p.add_argument("--sheet", default=None, help="Read only this sheet")
    p.add_argument("--output", type=Path, default=None, help="Write JSON lines here instead of stdout")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print sheet headings & first rows then exit")
    return p.parse_args(argv)


def resolve_model(spec: str) -> type:
    """Import ``module:Class``."""
    module_name, sep, class_name = spec.partition(":")
    if not sep or not module_name or not class_name:
        raise ValueError(f"model must look like module:Class, got {spec!r}")
    module = importlib.import_module(module_name)
    try:
        cls = getattr(module, class_name)
    except AttributeError:
        raise ValueError(f"module {module_name!r} has no attribute {class_name!r}") from None
    if not isinstance(cls, type):
        raise ValueError(f"{spec!r} is not a class")
    return cls


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, ParseResult):
        return value.geturl()
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if hasattr(value, "__dict__"):
        return vars(value)
    raise TypeError(f"cannot serialize {type(value).__name__}")


def to_json_line(sheet_name: str, obj: Any) -> str:
    return json.dumps({"sheet": sheet_name, "row": obj}, default=_json_default, ensure_ascii=False)


def _inspect_data(importer: ExcelImporter) -> int:
    for name in importer.sheet_names:
        sheet = importer.read_sheet(name)
        print(f"SHEET: {name} rows={sheet.row_count} cols={sheet.column_count} heading={sheet.has_heading}")
        if sheet.row_count == 0:
            continue
        if sheet.has_heading:
            print(f"  columns={sheet.read_heading().column_names}")
        first = 1 if sheet.heading is not None else 0
        for row_index in range(first, min(first + 3, sheet.row_count)):
            print(f"  row {row_index + 1}: {json.dumps(sheet.row_values(row_index), default=_json_default)}")
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # only read sys.argv for None; [] means "no arguments" in tests
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    if args.debug:
        set_debug(True)
        logger.debug("debug mode enabled")

    try:
        cfg = load_config(args.config) if args.config is not None else ImporterConfig()
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    configuration = cfg.build_configuration()
    try:
        importer = ExcelImporter(
            args.workbook,
            configuration,
            target_sheets=[args.sheet] if args.sheet else None,
            na_values=cfg.na_values,
        )
    except WorkbookReadError as e:
        logger.error(f"workbook: {e}")
        return EXIT_FATAL

    if args.sheet and args.sheet not in importer.sheet_names:
        logger.error(f"sheet not found: {args.sheet}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(importer)

    model_spec = args.model or DEFAULT_MODEL
    try:
        cls = SheetRow if args.model is None else resolve_model(model_spec)
        class_map = create_class_map(cls, cfg.empty_value_strategy)
        override = cfg.models.get(model_spec)
        if override is not None:
            apply_model_override(class_map, override)
    except (ImportError, ValueError) as e:
        logger.error(f"model: {e}")
        return EXIT_FATAL
    except (ExcelMappingError, ConfigError) as e:
        logger.error(f"mapping: {e}")
        return EXIT_FATAL
    configuration.register_mapping(class_map)

    logger.info(f"Reading {args.workbook.name} as {cls.__name__}")
    try:
        result = read_workbook(importer, cls, error_log=ErrorLogBuffer())
    except ReadError as e:
        logger.error(f"read: {e}")
        return EXIT_FATAL

    lines = [to_json_line(s.sheet_name, obj) for s in result.sheets for obj in s.objects]
    if args.output is not None:
        args.output.write_text("".join(line + "\n" for line in lines), encoding="utf-8")
        logger.info(f"wrote {len(lines)} rows to {args.output}")
    else:
        for line in lines:
            print(line)

    summary_line = render_summary_line(result)
    # log_summary adds the "SUMMARY " prefix itself
    log_summary(summary_line[len("SUMMARY "):])

    if result.failed_rows > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
