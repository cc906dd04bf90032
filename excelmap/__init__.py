"""excelmap - map spreadsheet rows onto typed Python objects.

Typical use::

    importer = ExcelImporter("orders.xlsx")
    importer.configuration.register_mapping(OrderMap)
    sheet = importer.read_sheet()
    sheet.read_heading()
    orders = list(sheet.read_rows(Order))
"""

from .excel.importer import ExcelImporter
from .excel.sheet import ExcelHeading, ExcelSheet
from .mapping import (
    ExcelClassMap,
    FallbackStrategy,
    ImporterConfiguration,
    create_class_map,
    try_create_class_map,
)
from .models.errors import ExcelMappingError, MappingErrorKind

__version__ = "0.1.0"

__all__ = [
    "ExcelImporter",
    "ExcelSheet",
    "ExcelHeading",
    "ExcelClassMap",
    "ImporterConfiguration",
    "FallbackStrategy",
    "create_class_map",
    "try_create_class_map",
    "ExcelMappingError",
    "MappingErrorKind",
]
