"""Report generators for scan results."""

from outputs.base import OutputGenerator
from outputs.json_report import JSONGenerator
from outputs.table_report import TableGenerator
from outputs.xlsx_report import XLSXGenerator

__all__ = [
    "OutputGenerator",
    "JSONGenerator",
    "TableGenerator",
    "XLSXGenerator",
]
