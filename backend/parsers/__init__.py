"""Statement and target-file parsers.

This package contains:
- Statement types: normalized holdings and statement metadata
- IB CSV parser: field-indexed activity statement exports
- IB PDF parser: Open Positions / Mark-to-Market text layouts
- Target file parsers: Excel and CSV target-allocation imports
"""

from parsers.ib_csv_parser import parse_statement_csv
from parsers.ib_pdf_parser import parse_statement_pdf, parse_statement_pdf_text
from parsers.statement_types import ParsedHolding, ParsedStatement
from parsers.target_csv_parser import parse_target_csv
from parsers.target_excel_parser import parse_target_excel
from parsers.target_file_parser import ParsedTarget, TargetImportResult

__all__ = [
    "ParsedHolding",
    "ParsedStatement",
    "ParsedTarget",
    "TargetImportResult",
    "parse_statement_csv",
    "parse_statement_pdf",
    "parse_statement_pdf_text",
    "parse_target_csv",
    "parse_target_excel",
]
