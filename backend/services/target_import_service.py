"""Preview of target allocation files before they replace the target set."""

import logging
from dataclasses import asdict
from functools import partial

from fastapi import HTTPException

from integrations.lookup_protocol import TickerCandidate
from parsers import ParsedTarget, TargetImportResult, parse_target_csv, parse_target_excel
from services.name_lookup_service import NameLookupService
from services.target_validator import TargetValidation, validate_targets

logger = logging.getLogger(__name__)

EXCEL_EXTENSIONS = (".xlsx", ".xls")
CSV_EXTENSION = ".csv"


def _error_detail(error: str, result: TargetImportResult | None = None, is_csv: bool = False) -> dict:
    sheets = [] if is_csv or result is None else result.available_sheets
    return {
        "error": error,
        "errors": list(result.errors) if result else [],
        "warnings": list(result.warnings) if result else [],
        "available_sheets": sheets,
        "selected_sheet": None if result is None else result.selected_sheet,
        "has_multiple_sheets": len(sheets) > 1,
    }


def parse_target_file(filename: str | None, content: bytes, sheet_name: str | None = None) -> tuple[TargetImportResult, bool]:
    """Parse an Excel or CSV target file; returns the result and whether it was CSV.

    Raises:
        HTTPException: 400 for any other file type
    """
    name = (filename or "").lower()
    if name.endswith(CSV_EXTENSION):
        return parse_target_csv(content.decode("utf-8-sig", errors="replace")), True
    if name.endswith(EXCEL_EXTENSIONS):
        return parse_target_excel(content, sheet_name), False

    extension = name.rsplit(".", 1)[-1] if "." in name else ""
    detail = _error_detail("Invalid file type")
    detail["errors"] = [
        f"Expected Excel file (.xlsx or .xls) or CSV file (.csv), got: {extension or 'no extension'}"
    ]
    raise HTTPException(status_code=400, detail=detail)


class TargetImportService:
    """Parses a target file and annotates each row with validation results."""

    def __init__(self, lookup: NameLookupService):
        self._lookup = lookup

    def _suggest_tickers(self, target: ParsedTarget) -> list[TickerCandidate] | None:
        """Ticker candidates for a row without a ticker: ISIN first, then instrument name."""
        if target.isin:
            result = self._lookup.lookup_tickers_from_isin(target.isin)
            if result and result.tickers:
                return result.tickers
        if target.instrument:
            candidates = self._lookup.lookup_tickers_from_name(target.instrument)
            if candidates:
                return candidates
        return None

    async def preview(self, filename: str | None, content: bytes, sheet_name: str | None = None) -> dict:
        """
        Parse and validate a target file without saving it.

        Returns:
            Dict matching TargetPreviewResponse

        Raises:
            HTTPException: 400 with errors/warnings/sheets when the file
                can't be used (wrong type, parse errors, no targets)
        """
        result, is_csv = parse_target_file(filename, content, sheet_name)
        kind = "CSV" if is_csv else "Excel"

        if result.errors:
            raise HTTPException(
                status_code=400, detail=_error_detail(f"{kind} file parsing errors", result, is_csv)
            )
        if not result.targets:
            detail = _error_detail("No targets found", result, is_csv)
            detail["errors"] = [f"{kind} file does not contain any valid target allocations"]
            raise HTTPException(status_code=400, detail=detail)

        report = await validate_targets(result.targets, self._lookup)

        needs_lookup = [
            (index, target)
            for index, (target, validation) in enumerate(zip(result.targets, report.results))
            if validation.needs_auto_detect and not target.symbol
        ]
        suggestions = await self._lookup.run_batch(
            [(f"auto-detect row {index}", partial(self._suggest_tickers, target)) for index, target in needs_lookup]
        )
        suggestions_by_index = {index: found for (index, _), found in zip(needs_lookup, suggestions)}

        preview_targets = [
            self._preview_row(target, validation, suggestions_by_index.get(index))
            for index, (target, validation) in enumerate(zip(result.targets, report.results))
        ]

        sheets = [] if is_csv else result.available_sheets
        logger.info(
            "Target preview %s: %d targets, %s%% total, %d need auto-detect",
            filename, len(preview_targets), result.total_percentage, report.summary.needs_auto_detect,
        )
        return {
            "targets": preview_targets,
            "warnings": result.warnings + [w for r in report.results for w in r.warnings],
            "errors": [e for r in report.results for e in r.errors],
            "total_percentage": result.total_percentage,
            "targets_count": len(preview_targets),
            "validation_summary": asdict(report.summary),
            "all_complete": report.all_complete,
            "needs_auto_detect": report.summary.needs_auto_detect > 0,
            "available_sheets": sheets,
            "selected_sheet": None if is_csv else result.selected_sheet,
            "has_multiple_sheets": len(sheets) > 1,
        }

    @staticmethod
    def _preview_row(
        target: ParsedTarget,
        validation: TargetValidation,
        suggestions: list[TickerCandidate] | None,
    ) -> dict:
        return {
            "asset_type": target.asset_type,
            "asset_category": target.asset_category,
            "target_percentage": target.target_percentage,
            "instrument": target.instrument,
            "isin": target.isin,
            "ticker": target.symbol,
            "alternative_tickers": list(target.alternative_tickers),
            "bucket": target.bucket,
            "needs_auto_detect": validation.needs_auto_detect,
            "missing_fields": list(validation.missing_fields),
            "validation_errors": list(validation.errors),
            "validation_warnings": list(validation.warnings),
            "auto_detect_suggestions": [asdict(s) for s in suggestions] if suggestions else None,
        }
