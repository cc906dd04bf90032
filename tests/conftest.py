# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from excelmap.excel.importer import ExcelImporter
from excelmap.logging.init import reset_logging
from excelmap.mapping.registry import ImporterConfiguration


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """has_heading: true
sheets_without_heading: [Raw]
empty_value_strategy: set_to_default_value
auto_map: false
na_values: ["N/A"]
models:
  "cli_models:Order":
    columns:
      order_id: Order ID
      amount: 2
    delimiters: [";"]
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "excelmap.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def make_importer() -> Callable[..., ExcelImporter]:
    """Build an in-memory importer from ``{sheet: rows}``; the first row is the heading."""
    def factory(
        sheets: dict[str, list[list[Any]]] | list[list[Any]],
        configuration: ImporterConfiguration | None = None,
    ) -> ExcelImporter:
        if isinstance(sheets, list):
            sheets = {"Sheet1": sheets}
        grids = {name: pd.DataFrame(rows) for name, rows in sheets.items()}
        return ExcelImporter(grids, configuration or ImporterConfiguration())
    return factory


def make_excel_file(directory: Path, name: str, sheets: dict[str, list[list[object]]]) -> Path:
    """Create a real Excel file; rows are written as-is (no header, no index)."""
    excel_path = directory / name
    with pd.ExcelWriter(excel_path, engine="openpyxl") as writer:
        for sheet_name, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return excel_path


@pytest.fixture()
def excel_file_factory(temp_workdir: Path) -> Callable[[str, dict[str, list[list[object]]]], Path]:
    def factory(name: str, sheets: dict[str, list[list[object]]]) -> Path:
        return make_excel_file(temp_workdir / "data", name, sheets)
    return factory


@pytest.fixture()
def clean_logging():
    reset_logging()
    yield
    reset_logging()


CLI_MODELS_SOURCE = '''
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Status(Enum):
    OPEN = "open"
    CLOSED = "closed"


@dataclass
class Order:
    order_id: int
    customer: str
    amount: float
    status: Status
    ordered_at: datetime | None = None
    tags: list[str] = field(default_factory=list)


class NotAModel:
    def __init__(self, required: int) -> None:
        self.required = required
'''


@pytest.fixture()
def cli_models(temp_workdir: Path, monkeypatch):
    """Importable ``cli_models`` module with sample target classes."""
    import sys

    (temp_workdir / "cli_models.py").write_text(CLI_MODELS_SOURCE, encoding="utf-8")
    monkeypatch.syspath_prepend(str(temp_workdir))
    monkeypatch.delitem(sys.modules, "cli_models", raising=False)
    yield "cli_models"
    sys.modules.pop("cli_models", None)
