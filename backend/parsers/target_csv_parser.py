"""CSV target-allocation import.

Expected columns: Asset Type, Asset Category, Instrument, ISIN, Main Ticker,
%, Other Tickers. Quoted fields are supported.
"""

import csv

from parsers.target_file_parser import (
    TargetImportResult,
    build_import_result,
    map_header_columns,
)

PERCENT_KEYWORDS = ("%", "percent")


def parse_target_csv(csv_text: str) -> TargetImportResult:
    """Parse a target-allocation CSV. The first non-empty line is the header."""
    lines = [line.strip() for line in csv_text.splitlines()]
    lines = [line for line in lines if line]
    if len(lines) < 2:
        return TargetImportResult.failure(
            "CSV file must have at least a header row and one data row"
        )

    rows = list(csv.reader(lines))
    columns = map_header_columns(rows[0], PERCENT_KEYWORDS)
    if columns is None:
        return TargetImportResult.failure(
            'CSV file must contain "Asset Type" and "%" columns'
        )
    return build_import_result(rows, 0, columns)
