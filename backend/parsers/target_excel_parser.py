"""Excel target-allocation import (.xlsx via openpyxl, legacy .xls via xlrd)."""

import logging
from io import BytesIO

import xlrd
from openpyxl import load_workbook

from parsers.target_file_parser import (
    TargetImportResult,
    build_import_result,
    map_header_columns,
)

logger = logging.getLogger(__name__)

HEADER_SEARCH_ROWS = 5
PERCENT_KEYWORDS = ("%", "percent", "target")

# Legacy .xls files are OLE2 compound documents
_OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"


def _is_legacy_xls(data: bytes) -> bool:
    return data[:8] == _OLE2_MAGIC


def _read_workbook(data: bytes, sheet_name: str | None) -> tuple[list[str], str | None, list[list]]:
    """Return (sheet names, selected sheet, rows of the selected sheet).

    The first sheet is used when ``sheet_name`` is None. The selected sheet
    is None when the requested sheet does not exist.
    """
    if _is_legacy_xls(data):
        book = xlrd.open_workbook(file_contents=data)
        names = book.sheet_names()
        if not names:
            return names, None, []
        selected = sheet_name or names[0]
        if selected not in names:
            return names, None, []
        sheet = book.sheet_by_name(selected)
        return names, selected, [sheet.row_values(i) for i in range(sheet.nrows)]

    workbook = load_workbook(filename=BytesIO(data), data_only=True, read_only=True)
    try:
        names = list(workbook.sheetnames)
        if not names:
            return names, None, []
        selected = sheet_name or names[0]
        if selected not in names:
            return names, None, []
        sheet = workbook[selected]
        return names, selected, [list(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def parse_target_excel(data: bytes, sheet_name: str | None = None) -> TargetImportResult:
    """Parse a target-allocation workbook.

    The header row is searched for within the first five rows; it must
    have an Asset Type column and a percentage column (``%``, ``percent``
    or ``target``).

    Args:
        data: Raw .xlsx or .xls bytes.
        sheet_name: Sheet to read. Defaults to the first sheet.

    Returns:
        TargetImportResult. File-level problems (unreadable workbook,
        missing sheet, no header) produce a single error and no targets.
    """
    try:
        names, selected, rows = _read_workbook(data, sheet_name)
    except Exception as exc:
        logger.warning("Failed to read target workbook", exc_info=True)
        return TargetImportResult.failure(f"Failed to read Excel file: {exc}")

    if not names:
        return TargetImportResult.failure("Excel file does not contain any worksheets")
    if selected is None:
        return TargetImportResult.failure(
            f'Worksheet "{sheet_name}" not found', available_sheets=names
        )

    context = {"available_sheets": names, "selected_sheet": selected}
    if len(rows) < 2:
        return TargetImportResult.failure(
            "Excel file must have at least a header row and one data row", **context
        )

    for index in range(min(HEADER_SEARCH_ROWS, len(rows))):
        columns = map_header_columns(rows[index], PERCENT_KEYWORDS)
        if columns is not None:
            break
    else:
        return TargetImportResult.failure(
            "Could not find header row with required columns (Asset Type, %)", **context
        )

    result = build_import_result(rows, index, columns)
    result.available_sheets = names
    result.selected_sheet = selected
    return result
