"""Interactive Brokers activity-statement CSV parser.

IB CSV exports are a stack of sections sharing one file. Every row starts
with the section name and a row kind (``Header``, ``Data``, ``Total``...),
followed by section-specific positional fields:

    Statement,Data,Period,"October 1, 2025 - October 31, 2025"
    Account Information,Data,Account,U1234567
    Open Positions,Data,Summary,Stocks,USD,VTI,100,1,200,20000,220,22000,2000,
    Net Asset Value,Data,Cash,0,0,0,5000,5000
"""

import csv
import logging
from decimal import Decimal

from integrations.parsing_utils import (
    parse_embedded_iso_date,
    parse_number,
    parse_number_or_zero,
    parse_period_end_date,
)
from parsers.statement_types import ParsedHolding, ParsedStatement

logger = logging.getLogger(__name__)

# Open Positions data rows need at least this many fields
_MIN_POSITION_FIELDS = 12

# Positional fields of an "Open Positions,Data" row
_DISCRIMINATOR = 2
_ASSET_CATEGORY = 3
_CURRENCY = 4
_SYMBOL = 5
_QUANTITY = 6
_MULTIPLIER = 7
_CLOSE_PRICE = 10
_VALUE = 11

# "Net Asset Value,Data,<item>,..." current-total column
_NAV_CURRENT_TOTAL = 6


def _split_rows(csv_text: str) -> list[list[str]]:
    """Split into trimmed, non-empty rows of trimmed fields."""
    lines = [line.strip() for line in csv_text.splitlines()]
    lines = [line for line in lines if line]
    return [[part.strip() for part in row] for row in csv.reader(lines)]


def _field(parts: list[str], index: int) -> str:
    return parts[index] if index < len(parts) else ""


def _parse_position(parts: list[str]) -> ParsedHolding | None:
    """Map one Open Positions data row, or None when the row is not a holding."""
    if len(parts) < _MIN_POSITION_FIELDS:
        return None

    discriminator = parts[_DISCRIMINATOR]
    symbol = parts[_SYMBOL]
    quantity = parse_number_or_zero(parts[_QUANTITY])
    multiplier = parse_number(parts[_MULTIPLIER]) if parts[_MULTIPLIER] else None
    if multiplier is None:
        multiplier = Decimal("1")
    close_price = parse_number_or_zero(parts[_CLOSE_PRICE])
    value = parse_number_or_zero(parts[_VALUE])

    # Totals, sub-totals and lot rows use other discriminators
    if discriminator != "Summary" or not symbol or symbol == "Total":
        return None
    if quantity <= 0 or close_price <= 0:
        logger.debug(
            "IB CSV: skipping %s (quantity=%s, close=%s)", symbol, quantity, close_price
        )
        return None

    units = quantity * multiplier
    return ParsedHolding(
        symbol=symbol,
        quantity=units,
        price=close_price,
        value=value or units * close_price,
        currency=parts[_CURRENCY] or None,
        asset_category=parts[_ASSET_CATEGORY] or None,
    )


def parse_statement_csv(csv_text: str) -> ParsedStatement:
    """Parse an Interactive Brokers CSV activity statement.

    Malformed rows are skipped, never raised. A file with no recognizable
    sections yields an empty statement with default metadata.

    Args:
        csv_text: Full text of the exported CSV file.

    Returns:
        ParsedStatement with holdings, cash and total value. When the
        statement has no NAV total, total value is the sum of holding
        values plus cash.
    """
    statement = ParsedStatement()
    nav_total = Decimal("0")
    period_end = None
    generated = None

    for parts in _split_rows(csv_text):
        if len(parts) < 2:
            continue
        section, kind = parts[0], parts[1]
        if kind != "Data":
            continue

        if section == "Open Positions":
            holding = _parse_position(parts)
            if holding is not None:
                statement.holdings.append(holding)

        elif section == "Account Information":
            item, value = _field(parts, 2), _field(parts, 3)
            if item == "Account" and value:
                statement.account_id = value
            elif item == "Base Currency" and value:
                statement.base_currency = value

        elif section == "Statement":
            item, value = _field(parts, 2), _field(parts, 3)
            if item == "Period" and value:
                period_end = parse_period_end_date(value) or period_end
            elif item == "WhenGenerated" and value:
                generated = parse_embedded_iso_date(value) or generated

        elif section == "Net Asset Value":
            item = _field(parts, 2)
            if item == "Cash":
                statement.cash = parse_number_or_zero(_field(parts, _NAV_CURRENT_TOTAL))
            elif item == "Total":
                nav_total = parse_number_or_zero(_field(parts, _NAV_CURRENT_TOTAL))

    # Period end wins over the generation timestamp
    if period_end or generated:
        statement.statement_date = period_end or generated

    if nav_total == 0:
        nav_total = sum((h.value for h in statement.holdings), Decimal("0")) + statement.cash
    statement.total_value = nav_total

    logger.info(
        "IB CSV: parsed %d holdings for account %s (%s)",
        len(statement.holdings),
        statement.account_id,
        statement.statement_date,
    )
    return statement
