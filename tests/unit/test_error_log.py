from __future__ import annotations

import json
from pathlib import Path

from excelmap.logging.error_log import ErrorLogBuffer, ErrorRecord
from excelmap.models.errors import ExcelMappingError, MappingErrorKind

KEYS = {"timestamp", "file", "sheet", "row", "error_type", "message"}


def test_error_record_creation_and_json_line():
    rec = ErrorRecord.create(
        file="file.xlsx",
        sheet="Sheet1",
        row=10,
        error_type="CONVERSION_INVALID",
        message="invalid value 'x'",
    )
    data = json.loads(rec.to_json_line())
    assert data["file"] == "file.xlsx"
    assert data["sheet"] == "Sheet1"
    assert data["row"] == 10
    assert data["error_type"] == "CONVERSION_INVALID"
    assert data["timestamp"].endswith("Z")
    assert set(data.keys()) == KEYS


def test_error_record_from_mapping_error():
    error = ExcelMappingError("bad", MappingErrorKind.CONVERSION_INVALID, row_index=4)
    rec = ErrorRecord.from_mapping_error("f.xlsx", "S", error)
    assert rec.row == 5
    assert rec.error_type == "CONVERSION_INVALID"
    assert rec.message == "bad"
    unknown = ErrorRecord.from_mapping_error("f.xlsx", "S", ExcelMappingError("x", MappingErrorKind.COLUMN_NOT_FOUND))
    assert unknown.row == -1
    dup = ExcelMappingError("dup", MappingErrorKind.DUPLICATE_DICTIONARY_KEY)
    assert ErrorRecord.from_mapping_error("f.xlsx", "S", dup, row_index=2).row == 3
    assert ErrorRecord.from_mapping_error("f.xlsx", "S", error, row_index=9).row == 5


def test_error_record_keeps_non_ascii():
    rec = ErrorRecord.create("帳票.xlsx", "シート", 1, "CONVERSION_INVALID", "不正")
    assert "帳票.xlsx" in rec.to_json_line()


def test_error_log_buffer_flush(temp_workdir: Path):
    buf = ErrorLogBuffer()
    buf.append(ErrorRecord.create("f1.xlsx", "S", 1, "CONVERSION_INVALID", "bad"))
    buf.append(ErrorRecord.create("f1.xlsx", "S", 2, "DUPLICATE_DICTIONARY_KEY", "dup"))
    path = buf.flush()
    assert path is not None and path.exists()
    assert path.parent == Path("logs")
    assert path.name.startswith("errors-") and path.suffix == ".log"
    lines = path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2
    for raw in lines:
        assert set(json.loads(raw).keys()) == KEYS
    assert len(buf) == 0


def test_error_log_buffer_appends_to_same_file(temp_workdir: Path):
    buf = ErrorLogBuffer()
    buf.append(ErrorRecord.create("f.xlsx", "S", 1, "CONVERSION_INVALID", "a"))
    path = buf.flush()
    buf.append(ErrorRecord.create("f.xlsx", "S", 2, "CONVERSION_INVALID", "b"))
    assert buf.flush() == path
    assert len(path.read_text(encoding="utf-8").splitlines()) == 2


def test_error_log_buffer_empty_flush_writes_nothing(temp_workdir: Path):
    buf = ErrorLogBuffer(temp_workdir / "custom_logs")
    assert buf.flush() is None
    assert not (temp_workdir / "custom_logs").exists()
    assert buf.records == []
