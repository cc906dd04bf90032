from __future__ import annotations

import json
import re
from pathlib import Path

from excelmap.logging.error_log import ErrorLogBuffer
from excelmap.models.error_record import ErrorRecord
from excelmap.models.errors import ExcelMappingError, MappingErrorKind

EXPECTED_KEYS = ["timestamp", "file", "sheet", "row", "error_type", "message"]


def test_json_line_schema():
    record = ErrorRecord.create("wb.xlsx", "Orders", 4, "CONVERSION_INVALID", "ÆØÅ bad")
    data = json.loads(record.to_json_line())
    assert list(data) == EXPECTED_KEYS
    assert re.match(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?Z$", data["timestamp"])
    assert "ÆØÅ" in record.to_json_line()


def test_sheet_level_error_has_row_minus_one():
    error = ExcelMappingError("no such column", MappingErrorKind.COLUMN_NOT_FOUND)
    assert ErrorRecord.from_mapping_error("wb.xlsx", "S", error).row == -1
    error = ExcelMappingError("bad", MappingErrorKind.CONVERSION_INVALID, row_index=2)
    assert ErrorRecord.from_mapping_error("wb.xlsx", "S", error).row == 3


def test_log_file_name(tmp_path: Path):
    buffer = ErrorLogBuffer(tmp_path / "logs")
    assert re.match(r"^errors-\d{8}-\d{6}\.log$", buffer.file_path.name)
    buffer.append(ErrorRecord.create("wb.xlsx", "S", 2, "CONVERSION_INVALID", "bad"))
    path = buffer.flush()
    assert path == buffer.file_path
    assert [list(json.loads(line)) for line in path.read_text(encoding="utf-8").splitlines()] == [EXPECTED_KEYS]
