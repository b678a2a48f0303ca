"""Spreadsheet export of business rows."""

import io
import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from openpyxl import Workbook

logger = logging.getLogger(__name__)

SHEET_TITLE = "Businesses"
DEFAULT_FILENAME = "businesses.xlsx"
XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_WHITESPACE = re.compile(r"\s+")


class EmptyExportError(ValueError):
    """Raised when there is nothing to export."""


def export_filename(keyword: str, city: Optional[str], country: str) -> str:
    """Build ``<keyword>_<city>_<country>.xlsx``; the city part is dropped when empty."""
    parts = [keyword, city, country]
    safe = [_WHITESPACE.sub("_", part.strip()) for part in parts if part and part.strip()]
    return f"{'_'.join(safe)}.xlsx"


def _header(rows: Sequence[Dict[str, Any]]) -> List[str]:
    columns: List[str] = []
    for row in rows:
        for key in row:
            if key not in columns:
                columns.append(key)
    return columns


def _cell_value(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (list, tuple, set)):
        return ", ".join(str(item) for item in value)
    return str(value)


def build_workbook(rows: Sequence[Dict[str, Any]]) -> bytes:
    """Serialize flat rows into a one-sheet xlsx workbook and return its bytes."""
    if not rows:
        raise EmptyExportError("No data to export")

    columns = _header(rows)
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_TITLE
    sheet.append(columns)
    for row in rows:
        sheet.append([_cell_value(row.get(column)) for column in columns])

    buffer = io.BytesIO()
    workbook.save(buffer)
    logger.info("Built workbook with %s rows and %s columns", len(rows), len(columns))
    return buffer.getvalue()
