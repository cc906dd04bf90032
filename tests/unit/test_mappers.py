from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from urllib.parse import ParseResult
from uuid import UUID

import pytest

from excelmap.mapping.mappers import (
    BoolMapper,
    ChangeTypeMapper,
    ConvertUsingMapper,
    DateTimeMapper,
    DictionaryMapper,
    EnumMapper,
    GuidMapper,
    StringMapper,
    UriMapper,
)
from excelmap.models.cell import ReadCellValueResult


class Sector(Enum):
    UNKNOWN = 1
    EMPTY = 2
    GOVERNMENT = 3
    NGO = 4


def cell(raw):
    return ReadCellValueResult.from_raw(0, raw)


def test_string_mapper_uses_text_rendering():
    assert StringMapper().map_cell_value(cell("a")).value == "a"
    assert StringMapper().map_cell_value(cell(12.0)).value == "12"


@pytest.mark.parametrize(
    "raw, expected",
    [(True, True), (False, False), ("TRUE", True), ("false", False), ("1", True), ("0", False), (1, True), (0.0, False)],
)
def test_bool_mapper_accepts(raw, expected):
    result = BoolMapper().map_cell_value(cell(raw))
    assert result.succeeded
    assert result.value is expected


@pytest.mark.parametrize("raw", ["yes", "2", 2])
def test_bool_mapper_rejects(raw):
    result = BoolMapper().map_cell_value(cell(raw))
    assert not result.succeeded
    assert isinstance(result.exception, ValueError)


def test_datetime_mapper_native_and_iso():
    mapper = DateTimeMapper()
    assert mapper.map_cell_value(cell(datetime(2017, 7, 4, 10))).value == datetime(2017, 7, 4, 10)
    assert mapper.map_cell_value(cell(date(2017, 7, 4))).value == datetime(2017, 7, 4)
    assert mapper.map_cell_value(cell("2017-07-04")).value == datetime(2017, 7, 4)


def test_datetime_mapper_additional_formats_in_order():
    mapper = DateTimeMapper(formats=["%d-%m-%Y", "%m/%d/%Y"])
    assert mapper.map_cell_value(cell("04-07-2017")).value == datetime(2017, 7, 4)
    assert mapper.map_cell_value(cell("07/04/2017")).value == datetime(2017, 7, 4)
    result = mapper.map_cell_value(cell("July 4th"))
    assert not result.succeeded
    assert isinstance(result.exception, ValueError)


def test_date_target_returns_date():
    mapper = DateTimeMapper(date)
    assert mapper.map_cell_value(cell(datetime(2017, 7, 4, 10))).value == date(2017, 7, 4)
    assert mapper.map_cell_value(cell("2017-07-04")).value == date(2017, 7, 4)


def test_guid_mapper():
    text = "12345678-1234-5678-1234-567812345678"
    assert GuidMapper().map_cell_value(cell(text)).value == UUID(text)
    assert not GuidMapper().map_cell_value(cell("nope")).succeeded


def test_enum_mapper_names_values_and_aliases():
    mapper = EnumMapper(Sector, {"Gov't": Sector.GOVERNMENT})
    assert mapper.map_cell_value(cell("ngo")).value is Sector.NGO
    assert mapper.map_cell_value(cell("GOV'T")).value is Sector.GOVERNMENT
    assert mapper.map_cell_value(cell(3)).value is Sector.GOVERNMENT
    assert mapper.map_cell_value(cell("4")).value is Sector.NGO
    assert not mapper.map_cell_value(cell("charity")).succeeded


def test_enum_mapper_case_sensitive():
    mapper = EnumMapper(Sector, ignore_case=False)
    assert mapper.map_cell_value(cell("NGO")).value is Sector.NGO
    assert not mapper.map_cell_value(cell("ngo")).succeeded


def test_uri_mapper():
    result = UriMapper().map_cell_value(cell("https://example.com/a?b=1"))
    assert result.succeeded
    assert isinstance(result.value, ParseResult)
    assert result.value.netloc == "example.com"
    assert not UriMapper().map_cell_value(cell("just words")).succeeded


@pytest.mark.parametrize(
    "target, raw, expected",
    [
        (int, "42", 42),
        (int, 3.0, 3),
        (int, " 7 ", 7),
        (int, "1e3", 1000),
        (float, "2.5", 2.5),
        (float, 4, 4.0),
        (Decimal, 0.1, Decimal("0.1")),
        (Decimal, "1.10", Decimal("1.10")),
    ],
)
def test_change_type_mapper_converts(target, raw, expected):
    result = ChangeTypeMapper(target).map_cell_value(cell(raw))
    assert result.succeeded
    assert result.value == expected
    assert type(result.value) is target


@pytest.mark.parametrize("target, raw", [(int, 3.5), (int, "3.5"), (int, "x"), (float, "abc"), (Decimal, "1,0")])
def test_change_type_mapper_invalid(target, raw):
    result = ChangeTypeMapper(target).map_cell_value(cell(raw))
    assert not result.succeeded


def test_dictionary_mapper_ignores_case_by_default():
    mapper = DictionaryMapper({"a": "MappedA"})
    assert mapper.map_cell_value(cell("A")).value == "MappedA"
    assert not mapper.map_cell_value(cell("b")).succeeded
    strict = DictionaryMapper({"a": "MappedA"}, ignore_case=False)
    assert not strict.map_cell_value(cell("A")).succeeded


def test_convert_using_mapper():
    mapper = ConvertUsingMapper(lambda c: int(c.string_value) * 2)
    assert mapper.map_cell_value(cell("4")).value == 8
    result = mapper.map_cell_value(cell("x"))
    assert not result.succeeded
    assert isinstance(result.exception, ValueError)
