"""Shared row handling for target-allocation imports (Excel and CSV).

Both formats reduce to a grid of cells with a header row. This module maps
header cells to columns, normalizes asset types and percentages, and builds
an import result with per-row errors and non-fatal warnings.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from integrations.parsing_utils import parse_number

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
TOTAL_TOLERANCE = Decimal("0.01")

# Known category vocabulary per normalized asset type
VALID_CATEGORIES: dict[str, list[str]] = {
    "Stock": [
        "US Stock market",
        "World stock market (no US)",
        "EU",
        "Global World Market",
        "Emerging Markets",
        "Global World Market (60% US, 40% other)",
    ],
    "Bond": [
        "Medium Term Government Bonds (ETF)",
        "Corporate Bonds",
        "Long Term Government Bonds",
        "Inflation Linked Bonds",
        "Short Term Bonds",
        "Long Term Bonds",
    ],
    "Cash": [
        "Money Markets Funds",
        "Money Markets Funds / Short terms bond",
        "Short Term Bonds",
        "Cash",
    ],
    "Commodity": [
        "Gold",
        "Silver",
        "Crypto",
        "Other Commodities",
        "Commodities",
    ],
    "REIT": [
        "REIT (US)",
        "REIT (Global)",
        "REIT (EU)",
        "Real Estate",
    ],
    "Crypto": [
        "Crypto",
    ],
}


@dataclass
class ParsedTarget:
    """One target row from an import file."""

    asset_type: str
    target_percentage: Decimal
    asset_category: str | None = None
    instrument: str | None = None
    isin: str | None = None
    symbol: str | None = None
    alternative_tickers: list[str] = field(default_factory=list)
    bucket: str | None = None


@dataclass
class TargetImportResult:
    """Targets plus the problems found while reading them.

    ``errors`` are per-row rejections (or a single file-level failure);
    ``warnings`` never block an import.
    """

    targets: list[ParsedTarget] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    available_sheets: list[str] = field(default_factory=list)
    selected_sheet: str | None = None

    @property
    def total_percentage(self) -> Decimal:
        return sum((t.target_percentage for t in self.targets), Decimal("0"))

    @classmethod
    def failure(cls, message: str, **kwargs) -> "TargetImportResult":
        return cls(errors=[message], **kwargs)


def normalize_asset_type(asset_type: str) -> str:
    """Map free-form asset type labels onto the canonical type names.

    Unrecognized labels are returned trimmed but otherwise unchanged.
    """
    value = asset_type.strip()
    lowered = value.lower()
    if "share" in lowered or "stock" in lowered:
        return "Stock"
    if "bond" in lowered:
        return "Bond"
    if "money market" in lowered or "cash" in lowered:
        return "Cash"
    if "commodit" in lowered:
        return "Commodity"
    if "reit" in lowered or "real estate" in lowered:
        return "REIT"
    if "crypto" in lowered:
        return "Crypto"
    return value


def normalize_percentage(raw) -> Decimal | None:
    """Read a percentage cell.

    "2", "2%" and 0.02 (Excel percentage format) all mean 2%. Returns None
    for non-numeric or out-of-range values. Empty cells read as 0.
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return Decimal("0")
    text = str(raw).replace("%", "").strip()
    value = parse_number(text)
    if value is None:
        return None
    if 0 < value < 1:
        value = value * HUNDRED
    if value < 0 or value > HUNDRED:
        return None
    return value


def split_tickers(raw: str | None) -> list[str]:
    """Split an "Other Tickers" cell on ``|`` or ``,``."""
    if not raw:
        return []
    parts = raw.replace("|", ",").split(",")
    return [p.strip() for p in parts if p.strip()]


def _cell_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def map_header_columns(cells: list, percent_keywords: tuple[str, ...]) -> dict[str, int] | None:
    """Locate target columns in a header row.

    Each cell is claimed by at most one column and the first matching cell
    wins. A "Main Ticker" column is preferred over a plain "Ticker"/"Symbol".

    Returns:
        Column name -> index, or None when the Asset Type or percentage
        column is missing.
    """
    columns: dict[str, int] = {}
    fallback_ticker: int | None = None

    for index, cell in enumerate(cells):
        name = _cell_text(cell).lower()
        if not name:
            continue
        if "asset type" in name or "assettype" in name:
            columns.setdefault("asset_type", index)
        elif "asset category" in name or "assetcategory" in name:
            columns.setdefault("asset_category", index)
        elif "isin" in name:
            columns.setdefault("isin", index)
        elif "other ticker" in name:
            columns.setdefault("other_tickers", index)
        elif "main ticker" in name:
            columns.setdefault("symbol", index)
        elif ("ticker" in name or "symbol" in name) and "other" not in name:
            if fallback_ticker is None:
                fallback_ticker = index
        elif "bucket" in name:
            columns.setdefault("bucket", index)
        elif "instrument" in name or "fund" in name:
            columns.setdefault("instrument", index)
        elif any(keyword in name for keyword in percent_keywords):
            columns.setdefault("percentage", index)

    if "symbol" not in columns and fallback_ticker is not None:
        columns["symbol"] = fallback_ticker

    if "asset_type" not in columns or "percentage" not in columns:
        return None
    return columns


def _category_warning(row_number: int, asset_type: str, category: str, normalized_type: str) -> str | None:
    valid = VALID_CATEGORIES.get(normalized_type, [])
    if not valid:
        return None
    wanted = category.strip().lower()
    if any(c.lower() == wanted for c in valid):
        return None
    return (
        f'Row {row_number}: Asset category "{category}" for "{asset_type}" may not '
        f"match common categories. Expected: {', '.join(valid)}"
    )


def build_import_result(
    rows: list[list],
    header_index: int,
    columns: dict[str, int],
    row_number_offset: int = 1,
) -> TargetImportResult:
    """Convert the data rows under ``header_index`` into targets.

    Args:
        rows: All rows of the sheet/file, header included.
        header_index: Index of the header row in ``rows``.
        columns: Output of :func:`map_header_columns`.
        row_number_offset: Added to a row's index to form the 1-based row
            number used in messages.
    """
    result = TargetImportResult()

    def cell(row: list, column: str) -> str:
        index = columns.get(column)
        if index is None or index >= len(row):
            return ""
        return _cell_text(row[index])

    for i in range(header_index + 1, len(rows)):
        row = rows[i]
        row_number = i + row_number_offset
        if not row or all(not _cell_text(c) for c in row):
            continue

        asset_type = cell(row, "asset_type")
        if not asset_type:
            result.errors.append(f"Row {row_number}: Missing Asset Type")
            continue

        pct_index = columns["percentage"]
        raw_percentage = row[pct_index] if pct_index < len(row) else None
        percentage = normalize_percentage(raw_percentage)
        if percentage is None:
            result.errors.append(f"Row {row_number}: Invalid percentage ({raw_percentage})")
            continue
        if percentage == 0:
            continue

        normalized_type = normalize_asset_type(asset_type)
        category = cell(row, "asset_category")
        if category:
            warning = _category_warning(row_number, asset_type, category, normalized_type)
            if warning:
                result.warnings.append(warning)

        result.targets.append(
            ParsedTarget(
                asset_type=normalized_type,
                target_percentage=percentage,
                asset_category=category or None,
                instrument=cell(row, "instrument") or None,
                isin=cell(row, "isin") or None,
                symbol=cell(row, "symbol") or None,
                alternative_tickers=split_tickers(cell(row, "other_tickers")),
                bucket=cell(row, "bucket") or None,
            )
        )

    total = result.total_percentage
    if abs(total - HUNDRED) > TOTAL_TOLERANCE:
        result.warnings.append(
            f"Total target allocation is {total:.2f}%, not 100%. "
            "This may be intentional if some categories are excluded."
        )

    logger.info(
        "Target import: %d targets, %d warnings, %d errors",
        len(result.targets), len(result.warnings), len(result.errors),
    )
    return result
