"""Checks imported target rows against the name-lookup services.

Validation never rejects a row: unknown tickers or ISINs become warnings,
and rows without a ticker/ISIN or instrument name are flagged for
auto-detection.
"""

import logging
from dataclasses import dataclass, field
from functools import partial

from parsers.target_file_parser import ParsedTarget
from services.name_lookup_service import NameLookupService

logger = logging.getLogger(__name__)

# File rows are 1-based and the header occupies the first one
FIRST_DATA_ROW = 2


@dataclass
class TargetValidation:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    missing_fields: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def needs_auto_detect(self) -> bool:
        return bool(self.missing_fields)


@dataclass
class ValidationSummary:
    total: int = 0
    valid: int = 0
    complete: int = 0
    needs_auto_detect: int = 0


@dataclass
class ValidationReport:
    results: list[TargetValidation] = field(default_factory=list)
    summary: ValidationSummary = field(default_factory=ValidationSummary)

    @property
    def all_valid(self) -> bool:
        return all(r.is_valid for r in self.results)

    @property
    def all_complete(self) -> bool:
        return not any(r.needs_auto_detect for r in self.results)


def _missing_fields(target: ParsedTarget) -> list[str]:
    missing = []
    if not target.symbol and not target.isin:
        missing.append("Main Ticker or ISIN")
    if not target.instrument:
        missing.append("Instrument")
    return missing


def validate_target(
    target: ParsedTarget, row_number: int, lookup: NameLookupService
) -> TargetValidation:
    """Validate one row; lookups are best-effort and only produce warnings."""
    result = TargetValidation(missing_fields=_missing_fields(target))

    if target.symbol and not lookup.lookup_name_from_ticker(target.symbol):
        result.warnings.append(
            f'Row {row_number}: Ticker "{target.symbol}" not found in lookup service'
        )
    if target.isin and not lookup.lookup_name_from_isin(target.isin):
        result.warnings.append(
            f'Row {row_number}: ISIN "{target.isin}" not found in lookup service'
        )
    for ticker in target.alternative_tickers:
        if not lookup.lookup_name_from_ticker(ticker):
            result.warnings.append(
                f'Row {row_number}: Other ticker "{ticker}" not found in lookup service'
            )
    return result


def _not_validated(target: ParsedTarget, row_number: int) -> TargetValidation:
    """Placeholder for a row whose lookups failed or timed out."""
    result = TargetValidation(missing_fields=_missing_fields(target))
    label = target.symbol or target.isin or target.asset_type
    result.warnings.append(f'Row {row_number}: Could not validate "{label}"')
    return result


async def validate_targets(
    targets: list[ParsedTarget], lookup: NameLookupService
) -> ValidationReport:
    """Validate every row concurrently using the lookup service's batch window."""
    jobs = [
        (f"row {index + FIRST_DATA_ROW}", partial(validate_target, target, index + FIRST_DATA_ROW, lookup))
        for index, target in enumerate(targets)
    ]
    outcomes = await lookup.run_batch(jobs)

    report = ValidationReport()
    for index, (target, outcome) in enumerate(zip(targets, outcomes)):
        report.results.append(outcome or _not_validated(target, index + FIRST_DATA_ROW))

    report.summary = ValidationSummary(
        total=len(targets),
        valid=sum(1 for r in report.results if r.is_valid),
        complete=sum(1 for r in report.results if not r.needs_auto_detect),
        needs_auto_detect=sum(1 for r in report.results if r.needs_auto_detect),
    )
    logger.info(
        "Validated %d targets: %d complete, %d need auto-detect",
        report.summary.total, report.summary.complete, report.summary.needs_auto_detect,
    )
    return report
