from __future__ import annotations

import pytest

from excelmap.mapping.readers import (
    AllColumnNamesReader,
    CharSplitReader,
    ColumnIndexReader,
    ColumnIndicesReader,
    ColumnNameReader,
    ColumnNamesReader,
)
from excelmap.models.errors import ExcelMappingError, MappingErrorKind


@pytest.fixture()
def sheet(make_importer):
    sheet = make_importer([["A", "B", "C"], ["1", None, "x;y,z"]]).read_sheet()
    sheet.read_heading()
    return sheet


def test_column_index_reader(sheet):
    cell = ColumnIndexReader(2).read(sheet, 1)
    assert cell.column_index == 2
    assert cell.string_value == "x;y,z"


def test_column_name_reader(sheet):
    assert ColumnNameReader("A").read(sheet, 1).value == "1"
    assert ColumnNameReader("B").read(sheet, 1).is_empty
    with pytest.raises(ExcelMappingError) as e:
        ColumnNameReader("Z").read(sheet, 1)
    assert e.value.kind is MappingErrorKind.COLUMN_NOT_FOUND


def test_reader_argument_validation():
    with pytest.raises(ValueError):
        ColumnIndexReader(-1)
    with pytest.raises(ValueError):
        ColumnNameReader("")
    with pytest.raises(ValueError):
        ColumnIndicesReader([])
    with pytest.raises(ValueError):
        ColumnNamesReader([])
    with pytest.raises(ValueError):
        CharSplitReader(ColumnIndexReader(0), [])


def test_multiple_readers_keep_order(sheet):
    by_index = ColumnIndicesReader([2, 0]).read_many(sheet, 1)
    assert [c.column_index for c in by_index] == [2, 0]
    by_name = ColumnNamesReader(["C", "A"]).read_many(sheet, 1)
    assert [c.column_index for c in by_name] == [2, 0]
    pairs = ColumnNamesReader(["C", "A"]).read_pairs(sheet, 1)
    assert [name for name, _ in pairs] == ["C", "A"]


def test_all_column_names_reader(sheet):
    pairs = AllColumnNamesReader().read_pairs(sheet, 1)
    assert [name for name, _ in pairs] == ["A", "B", "C"]
    assert len(AllColumnNamesReader().read_many(sheet, 1)) == 3


def test_all_column_names_reader_requires_heading(make_importer):
    sheet = make_importer([["A"], ["1"]]).read_sheet()
    with pytest.raises(ExcelMappingError) as e:
        AllColumnNamesReader().read_pairs(sheet, 1)
    assert e.value.kind is MappingErrorKind.HEADER_NOT_READ


def test_char_split_reader_default_comma(sheet):
    tokens = CharSplitReader(ColumnNameReader("C")).read_many(sheet, 1)
    assert [t.string_value for t in tokens] == ["x;y", "z"]
    assert all(t.column_index == 2 for t in tokens)


def test_char_split_reader_multiple_delimiters(sheet):
    tokens = CharSplitReader(ColumnNameReader("C"), [",", ";"]).read_many(sheet, 1)
    assert [t.string_value for t in tokens] == ["x", "y", "z"]


def test_char_split_reader_empty_and_trailing(sheet, make_importer):
    assert CharSplitReader(ColumnNameReader("B")).read_many(sheet, 1) == []
    other = make_importer([["A"], ["a,,b,"]]).read_sheet()
    other.read_heading()
    tokens = CharSplitReader(ColumnNameReader("A")).read_many(other, 1)
    assert [t.string_value for t in tokens] == ["a", "", "b"]
