from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import pytest

from excelmap.logging.error_log import ErrorLogBuffer
from excelmap.mapping.auto_mapper import create_class_map
from excelmap.mapping.class_map import ExcelClassMap
from excelmap.mapping.registry import ImporterConfiguration
from excelmap.models.errors import MappingErrorKind
from excelmap.services.reader_service import ReadError, read_sheet_rows, read_workbook


@dataclass
class Line:
    sku: str
    qty: int


class LineMap(ExcelClassMap[Line]):
    def __init__(self) -> None:
        super().__init__(Line)
        self.map("sku").with_column_name("SKU")
        self.map("qty").with_column_name("Qty")


@pytest.fixture()
def configuration() -> ImporterConfiguration:
    configuration = ImporterConfiguration()
    configuration.register_mapping(LineMap)
    return configuration


def test_read_sheet_rows_all_valid(make_importer, configuration):
    importer = make_importer({"Lines": [["SKU", "Qty"], ["a", 1], ["b", 2]]}, configuration)
    result = read_sheet_rows(importer, "Lines", Line)
    assert result.sheet_name == "Lines"
    assert result.objects == [Line("a", 1), Line("b", 2)]
    assert result.failures == []
    assert result.elapsed_seconds >= 0


def test_read_sheet_rows_skips_bad_rows(make_importer, configuration, temp_workdir: Path):
    importer = make_importer({"Lines": [["SKU", "Qty"], ["a", 1], ["b", "many"], ["c", None], ["d", 4]]}, configuration)
    error_log = ErrorLogBuffer()
    result = read_sheet_rows(importer, "Lines", Line, error_log)
    assert [o.sku for o in result.objects] == ["a", "d"]
    assert [(f.row, f.error_type) for f in result.failures] == [(3, "CONVERSION_INVALID"), (4, "CONVERSION_INVALID")]
    records = error_log.records
    assert [(r.file, r.sheet, r.row) for r in records] == [("<memory>", "Lines", 3), ("<memory>", "Lines", 4)]


def test_missing_column_is_fatal(make_importer, configuration):
    importer = make_importer({"Lines": [["SKU", "Amount"], ["a", 1]]}, configuration)
    error_log = ErrorLogBuffer()
    with pytest.raises(ReadError) as e:
        read_sheet_rows(importer, "Lines", Line, error_log)
    assert e.value.cause.kind is MappingErrorKind.COLUMN_NOT_FOUND
    assert [(r.row, r.error_type) for r in error_log.records] == [(-1, "COLUMN_NOT_FOUND")]


def test_unregistered_type_is_fatal(make_importer):
    importer = make_importer({"Lines": [["SKU", "Qty"], ["a", 1]]})
    with pytest.raises(ReadError) as e:
        read_sheet_rows(importer, "Lines", Line)
    assert e.value.cause.kind is MappingErrorKind.NO_MAPPING_REGISTERED


def test_unknown_sheet_is_fatal(make_importer, configuration):
    importer = make_importer({"Lines": [["SKU", "Qty"]]}, configuration)
    with pytest.raises(ReadError) as e:
        read_sheet_rows(importer, "Other", Line)
    assert e.value.cause.kind is MappingErrorKind.SHEET_NOT_FOUND


def test_empty_and_heading_only_sheets(make_importer, configuration):
    importer = make_importer({"Empty": [], "HeadingOnly": [["SKU", "Qty"]]}, configuration)
    assert read_sheet_rows(importer, "Empty", Line).rows_read == 0
    assert read_sheet_rows(importer, "HeadingOnly", Line).rows_read == 0


def test_read_workbook_aggregates_and_flushes(make_importer, configuration, temp_workdir: Path):
    importer = make_importer(
        {
            "A": [["SKU", "Qty"], ["a", 1], ["b", "x"]],
            "B": [["SKU", "Qty"], ["c", 3]],
        },
        configuration,
    )
    error_log = ErrorLogBuffer()
    result = read_workbook(importer, Line, error_log=error_log)
    assert [s.sheet_name for s in result.sheets] == ["A", "B"]
    assert result.total_rows == 2
    assert result.failed_rows == 1
    logs = list((temp_workdir / "logs").glob("errors-*.log"))
    assert len(logs) == 1
    record = json.loads(logs[0].read_text(encoding="utf-8").strip())
    assert (record["sheet"], record["row"], record["error_type"]) == ("A", 3, "CONVERSION_INVALID")


def test_read_workbook_selected_sheets(make_importer, configuration):
    importer = make_importer({"A": [["SKU", "Qty"], ["a", 1]], "B": [["SKU", "Qty"], ["b", 2]]}, configuration)
    result = read_workbook(importer, Line, sheet_names=["B"])
    assert [o.sku for s in result.sheets for o in s.objects] == ["b"]


def test_read_workbook_flushes_on_fatal(make_importer, configuration, temp_workdir: Path):
    importer = make_importer({"A": [["SKU", "Qty"], ["a", "x"]], "B": [["SKU"], ["b"]]}, configuration)
    with pytest.raises(ReadError):
        read_workbook(importer, Line, error_log=ErrorLogBuffer())
    logs = list((temp_workdir / "logs").glob("errors-*.log"))
    assert len(logs) == 1
    assert len(logs[0].read_text(encoding="utf-8").splitlines()) == 2


class PartialLineMap(ExcelClassMap[Line]):
    def __init__(self) -> None:
        super().__init__(Line)
        self.map("sku").with_column_name("SKU")


def test_incomplete_mapping_aborts_with_read_error(make_importer, temp_workdir: Path):
    configuration = ImporterConfiguration()
    configuration.register_mapping(PartialLineMap)
    importer = make_importer({"Lines": [["SKU", "Qty"], ["a", 1]]}, configuration)
    error_log = ErrorLogBuffer()
    with pytest.raises(ReadError) as e:
        read_workbook(importer, Line, error_log=error_log)
    assert e.value.cause.kind is MappingErrorKind.NO_MAPPING_REGISTERED
    assert e.value.cause.member == "qty"
    logs = list((temp_workdir / "logs").glob("errors-*.log"))
    record = json.loads(logs[0].read_text(encoding="utf-8").strip())
    assert (record["row"], record["error_type"]) == (-1, "NO_MAPPING_REGISTERED")


@dataclass
class Totals:
    values: dict[str, int]


def test_duplicate_key_row_is_numbered_from_cursor(make_importer):
    configuration = ImporterConfiguration()
    configuration.register_mapping(create_class_map(Totals))
    importer = make_importer({"T": [["X", "X"], [1, 2], [3, 4]]}, configuration)
    error_log = ErrorLogBuffer()
    result = read_sheet_rows(importer, "T", Totals, error_log)
    assert [(f.row, f.error_type) for f in result.failures] == [
        (2, "DUPLICATE_DICTIONARY_KEY"),
        (3, "DUPLICATE_DICTIONARY_KEY"),
    ]
    assert [r.row for r in error_log.records] == [2, 3]
