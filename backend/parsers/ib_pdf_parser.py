"""Interactive Brokers activity-statement PDF parser.

Works on the plain text extracted from the PDF. Two layouts are supported:

Strategy A, "Open Positions": the positions table, either one row per line
(horizontal) or one field per line (vertical, as produced by most text
extractors for IB's multi-column tables).

Strategy B, "Mark-to-Market Performance Summary": a fallback for statements
without an Open Positions table. Rows carry Prior/Current quantity and
price pairs.

Both strategies walk the text with a line cursor. Each reader moves through
the states in :class:`ParserState`: it seeks the header, reads rows, and
resyncs past rows that fail validation by advancing an explicitly computed
row size.
"""

import logging
import re
from datetime import date
from decimal import Decimal
from enum import Enum

from integrations.parsing_utils import (
    has_period_range,
    parse_embedded_iso_date,
    parse_number,
    parse_period_end_date,
)
from parsers.statement_types import (
    DEFAULT_ACCOUNT_ID,
    DEFAULT_BASE_CURRENCY,
    ParsedHolding,
    ParsedStatement,
)

logger = logging.getLogger(__name__)


class ParserState(str, Enum):
    """Line-cursor states shared by the PDF table readers."""

    SEEKING_HEADER = "seeking_header"
    READING_ROW = "reading_row"
    RESYNCING = "resyncing"


# Section labels the extractor glues onto the first symbol of a group.
# First match wins, so the longer "StocksEUR" must precede "Stocks".
SECTION_PREFIXES: tuple[tuple[str, str | None], ...] = (
    ("StocksEUR", "EUR"),
    ("Stocks", None),
    ("USD", "USD"),
    ("EUR", "EUR"),
    ("GBP", "GBP"),
    ("JPY", "JPY"),
)

HEADER_KEYWORDS = (
    "symbol",
    "quantity",
    "mult",
    "cost price",
    "cost basis",
    "close price",
    "value",
    "unrealized",
    "code",
)

# Quantity, Mult, Cost Price, Cost Basis, Close Price, Value, Unrealized P/L, Code
DATA_FIELDS = 8
FULL_ROW_SIZE = DATA_FIELDS + 1  # symbol line + data fields
SHORT_ROW_SIZE = FULL_ROW_SIZE - 1  # Code field missing

MIN_ROW_VALUES = 6  # through Value (index 5)
QUANTITY_INDEX = 0
CLOSE_PRICE_INDEX = 4
VALUE_INDEX = 5

HEADER_SEARCH_LINES = 15

_ACCOUNT_TOKEN = r"((?=[A-Z0-9*]*[\d*])[A-Z0-9*]+)"
_ACCOUNT_PATTERNS = (
    re.compile(r"Account:\s*" + _ACCOUNT_TOKEN, re.IGNORECASE),
    re.compile(r"Account\s+" + _ACCOUNT_TOKEN, re.IGNORECASE),
)
_GENERATED_RE = re.compile(r"Generated:\s*(\d{4}-\d{2}-\d{2})")
_CURRENCY_PATTERNS = (
    re.compile(r"Base Currency:\s*([A-Z]{3})", re.IGNORECASE),
    re.compile(r"Currency:\s*([A-Z]{3})", re.IGNORECASE),
)
_CASH_PATTERNS = (
    re.compile(r"Cash[:\s]+([\d,]+\.?\d*)", re.IGNORECASE),
    re.compile(r"Ending Cash[:\s]+([\d,]+\.?\d*)", re.IGNORECASE),
)

_HORIZONTAL_ROW_RE = re.compile(r"^\s*\w+\s+[\d.,]+\s+[\d.,]+\s+[\d.,]+")
_FILLER_RE = re.compile(r"^(Total|Stocks|USD|EUR|GBP|JPY)$", re.IGNORECASE)
_TOTAL_LINE_RE = re.compile(r"^Total\s+(in|Stocks)", re.IGNORECASE)
_SECTION_LABEL_RE = re.compile(r"^(Stocks|Total|USD|EUR|GBP|JPY|Code)$", re.IGNORECASE)
_TOTAL_PREFIX_RE = re.compile(r"^Total\s+", re.IGNORECASE)
_TICKER_TAIL_RE = re.compile(r"[A-Z]{2,6}$")
_SYMBOL_TOKEN_RE = re.compile(r"^[A-Z0-9]+$")
_CODE_OR_SYMBOL_RE = re.compile(r"^[A-Z0-9]{1,6}$")
_PURE_NUMBER_RE = re.compile(r"^[\d,]+\.?\d*$")
_ALPHA_TOKEN_RE = re.compile(r"^[A-Z]{2,6}$")
_HAS_LETTER_RE = re.compile(r"[A-Z]")

_MARK_TO_MARKET_RE = re.compile(
    r"Mark-to-Market Performance Summary[\s\S]*?(?=Realized|Change in NAV|Notes|$)",
    re.IGNORECASE,
)


# ---------------------------------------------------------------------------
# Statement metadata
# ---------------------------------------------------------------------------


def _extract_account_id(text: str) -> str:
    for pattern in _ACCOUNT_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1).strip()
    return DEFAULT_ACCOUNT_ID


def _extract_statement_date(text: str) -> date:
    """Period end date, then the "Generated:" stamp, then today.

    A period range whose end date cannot be read means today; the
    "Generated:" stamp is only used when there is no range at all.
    """
    period_end = parse_period_end_date(text)
    if period_end:
        return period_end
    if has_period_range(text):
        logger.debug("IB PDF: unreadable statement period, using today")
        return date.today()
    match = _GENERATED_RE.search(text)
    if match:
        generated = parse_embedded_iso_date(match.group(1))
        if generated:
            return generated
    return date.today()


def _extract_base_currency(text: str) -> str:
    for pattern in _CURRENCY_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1).upper()
    return DEFAULT_BASE_CURRENCY


def _extract_cash(text: str) -> Decimal:
    for pattern in _CASH_PATTERNS:
        match = pattern.search(text)
        if match:
            return parse_number(match.group(1)) or Decimal("0")
    return Decimal("0")


# ---------------------------------------------------------------------------
# Symbol helpers
# ---------------------------------------------------------------------------


def strip_section_prefix(token: str) -> tuple[str, str | None]:
    """Remove a glued section label from a symbol token.

    Returns:
        (remaining token, currency implied by the prefix or None)
    """
    for prefix, currency in SECTION_PREFIXES:
        if token.startswith(prefix):
            return token[len(prefix):], currency
    return token, None


def recover_symbol(token: str) -> str | None:
    """Recover a ticker from a prefix-stripped token.

    Tries uppercase-alphanumeric suffixes of length 5 down to 1 and keeps the
    longest one containing a letter. Falls back to the whole token when it is
    a 1-6 character alphanumeric string.
    """
    for length in range(5, 0, -1):
        if len(token) < length:
            continue
        suffix = token[-length:]
        if _SYMBOL_TOKEN_RE.match(suffix) and _HAS_LETTER_RE.search(suffix):
            return suffix
    if 1 <= len(token) <= 6 and _SYMBOL_TOKEN_RE.match(token):
        return token
    return None


def _is_filler_line(line: str) -> bool:
    return (
        not line
        or bool(_FILLER_RE.match(line))
        or bool(_TOTAL_LINE_RE.match(line))
    )


def _is_non_symbol_line(line: str) -> bool:
    """True for lines that cannot start a vertical row."""
    if re.match(r"^[\d-]", line):
        return True
    if ("." in line or "," in line) and not _TICKER_TAIL_RE.search(line):
        return True
    if len(line) > 20:
        return True
    return bool(_SECTION_LABEL_RE.match(line)) or bool(_TOTAL_PREFIX_RE.match(line)) or line == "SY"


def _looks_like_next_symbol(line: str) -> bool:
    """A short alphanumeric token at the Code slot means Code was omitted."""
    return (
        bool(_CODE_OR_SYMBOL_RE.match(line))
        and line not in ("SY", "Code")
        and not _PURE_NUMBER_RE.match(line)
    )


def _build_holding(
    symbol: str, values: list[Decimal], currency: str | None
) -> ParsedHolding | None:
    quantity = values[QUANTITY_INDEX]
    price = values[CLOSE_PRICE_INDEX]
    if quantity <= 0 or price <= 0:
        return None
    value = values[VALUE_INDEX] or quantity * price
    return ParsedHolding(
        symbol=symbol,
        quantity=quantity,
        price=price,
        value=value,
        currency=currency,
    )


# ---------------------------------------------------------------------------
# Strategy A: Open Positions
# ---------------------------------------------------------------------------


def _open_positions_lines(text: str) -> list[str] | None:
    """Lines from the first "Open Positions" up to the next Forex/Notes section."""
    start = text.find("Open Positions")
    if start == -1:
        return None
    end = len(text)
    for marker in ("Forex", "Notes"):
        index = text.find(marker, start)
        if index > 0:
            end = min(end, index)
    return [line.strip() for line in text[start:end].split("\n")]


def _find_positions_header(lines: list[str]) -> int | None:
    for i in range(min(HEADER_SEARCH_LINES, len(lines))):
        line = lines[i].lower()
        if "symbol" not in line:
            continue
        if "quantity" in line or "qty" in line:
            return i
        if i + 1 < len(lines) and "quantity" in lines[i + 1].lower():
            return i
    return None


def _skip_header_lines(lines: list[str], header_index: int) -> int:
    """Index of the first data line after a (possibly multi-line) header."""
    cursor = header_index
    header_lines = 0
    while cursor < len(lines) and header_lines < len(HEADER_KEYWORDS):
        line = lines[cursor].lower()
        if not any(keyword in line for keyword in HEADER_KEYWORDS):
            break
        header_lines += 1
        cursor += 1
    return cursor


def _is_vertical_layout(lines: list[str], header_index: int) -> bool:
    if header_index + 1 >= len(lines):
        return False
    first = lines[header_index + 1]
    return bool(first) and "," not in first and not _HORIZONTAL_ROW_RE.match(first)


class VerticalPositionsReader:
    """Reads one-field-per-line Open Positions rows.

    A complete row is the symbol line plus eight field lines. When the line
    in the Code slot is really the next row's symbol, the row is eight lines
    long. A row cut short by the next symbol line ends at that line. Rejected
    rows still advance the cursor by their row size so the following rows
    stay aligned.
    """

    def __init__(self, lines: list[str], header_index: int):
        self._lines = lines
        self._header_index = header_index
        self._cursor = header_index
        self._row_size = 0
        self._state = ParserState.SEEKING_HEADER
        self.holdings: list[ParsedHolding] = []
        self.rejected_rows = 0

    @property
    def state(self) -> ParserState:
        return self._state

    def read(self) -> list[ParsedHolding]:
        """Run the cursor to the end of the section."""
        while self._cursor < len(self._lines):
            if self._state is ParserState.SEEKING_HEADER:
                self._cursor = _skip_header_lines(self._lines, self._header_index)
                self._state = ParserState.READING_ROW
            elif self._state is ParserState.READING_ROW:
                if not self._read_row():
                    break
            else:
                self._cursor += self._row_size
                self._row_size = 0
                self._state = ParserState.READING_ROW
        return self.holdings

    def _compute_row_size(self, start: int) -> int:
        code_index = start + DATA_FIELDS
        if code_index >= len(self._lines):
            return SHORT_ROW_SIZE
        if _looks_like_next_symbol(self._lines[code_index]):
            return SHORT_ROW_SIZE
        return FULL_ROW_SIZE

    def _row_values(self, start: int, row_size: int) -> tuple[list[Decimal], int]:
        """Numeric fields of the row at ``start`` and the row's actual size.

        A bare alphabetic line before the Code slot is the next row's symbol:
        the row was truncated and ends there.
        """
        values: list[Decimal] = []
        for offset in range(1, row_size):
            line = self._lines[start + offset]
            if _ALPHA_TOKEN_RE.match(line):
                if offset < DATA_FIELDS:
                    return values, offset
                break
            number = parse_number(line)
            if number is not None:
                values.append(number)
        return values, row_size

    def _read_row(self) -> bool:
        """Consume filler and at most one row. Returns False at end of input."""
        lines = self._lines
        while self._cursor < len(lines) and _is_filler_line(lines[self._cursor]):
            self._cursor += 1
        if self._cursor >= len(lines):
            return False

        symbol_line = lines[self._cursor]
        if _is_non_symbol_line(symbol_line):
            self._cursor += 1
            return True

        token, currency = strip_section_prefix(symbol_line)
        symbol = recover_symbol(token)
        if symbol is None:
            self._cursor += 1
            return True

        row_size = self._compute_row_size(self._cursor)
        if self._cursor + row_size > len(lines):
            return False

        values, row_size = self._row_values(self._cursor, row_size)
        holding = None
        if len(values) >= MIN_ROW_VALUES:
            holding = _build_holding(symbol, values, currency)

        if holding is None:
            logger.debug(
                "IB PDF: rejected vertical row %s at line %d (values=%s)",
                symbol, self._cursor, values,
            )
            self.rejected_rows += 1
            self._row_size = row_size
            self._state = ParserState.RESYNCING
            return True

        if row_size == SHORT_ROW_SIZE:
            logger.debug("IB PDF: Code field missing for %s", symbol)
        self.holdings.append(holding)
        self._cursor += row_size
        return True


def _parse_horizontal_rows(lines: list[str], start: int) -> list[ParsedHolding]:
    holdings: list[ParsedHolding] = []
    for line in lines[start:]:
        if not line or "total" in line.lower() or "---" in line or len(line) < 5:
            continue
        parts = line.split()
        if len(parts) < 6:
            continue

        token, currency = strip_section_prefix(parts[0])
        if not token:
            continue
        numbers = [
            n for n in (parse_number(p.replace("--", "0")) for p in parts[1:]) if n is not None
        ]
        if len(numbers) < MIN_ROW_VALUES:
            continue

        holding = _build_holding(token, numbers, currency)
        if holding is None:
            logger.debug("IB PDF: rejected horizontal row %r", line)
            continue
        holdings.append(holding)
    return holdings


def parse_open_positions(text: str) -> list[ParsedHolding]:
    """Strategy A: holdings from the Open Positions table."""
    lines = _open_positions_lines(text)
    if lines is None:
        logger.debug("IB PDF: no Open Positions section")
        return []

    header_index = _find_positions_header(lines)
    if header_index is None:
        logger.debug("IB PDF: no Symbol/Quantity header in Open Positions")
        return []

    if _is_vertical_layout(lines, header_index):
        reader = VerticalPositionsReader(lines, header_index)
        holdings = reader.read()
        if reader.rejected_rows:
            logger.info("IB PDF: skipped %d malformed position rows", reader.rejected_rows)
        return holdings
    return _parse_horizontal_rows(lines, header_index + 1)


# ---------------------------------------------------------------------------
# Strategy B: Mark-to-Market Performance Summary
# ---------------------------------------------------------------------------


def parse_mark_to_market(text: str) -> list[ParsedHolding]:
    """Strategy B: holdings from the Mark-to-Market Performance Summary.

    Numbers after the symbol are Prior Qty, Current Qty, Prior Price,
    Current Price, ...; the current pair is used. The section has no
    per-symbol currency.
    """
    match = _MARK_TO_MARKET_RE.search(text)
    if not match:
        logger.debug("IB PDF: no Mark-to-Market Performance Summary section")
        return []

    holdings: list[ParsedHolding] = []
    state = ParserState.SEEKING_HEADER
    for raw_line in match.group(0).split("\n"):
        line = raw_line.strip()
        if state is ParserState.SEEKING_HEADER:
            lowered = line.lower()
            if "symbol" in lowered and "quantity" in lowered:
                state = ParserState.READING_ROW
            continue

        if not line or "total" in line.lower() or "---" in line:
            continue
        parts = line.split()
        if len(parts) < 6:
            continue

        symbol_index = next(
            (i for i, part in enumerate(parts) if _ALPHA_TOKEN_RE.match(part)), None
        )
        if symbol_index is None:
            continue
        numbers = [
            n for n in (parse_number(p) for p in parts[symbol_index + 1:]) if n is not None
        ]
        if len(numbers) < 4:
            continue

        quantity, price = numbers[1], numbers[3]
        if quantity <= 0 or price <= 0:
            continue
        holdings.append(
            ParsedHolding(
                symbol=parts[symbol_index],
                quantity=quantity,
                price=price,
                value=quantity * price,
            )
        )
    return holdings


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def parse_statement_pdf_text(text: str) -> ParsedStatement:
    """Parse the extracted text of an Interactive Brokers PDF statement.

    Strategy A runs first; Strategy B only when A finds nothing. Never
    raises on malformed content; unrecognized text yields no holdings.

    Args:
        text: Plain text extracted from the PDF, pages joined by newlines.

    Returns:
        ParsedStatement whose total value is the holdings' value plus cash.
    """
    holdings = parse_open_positions(text)
    if not holdings:
        holdings = parse_mark_to_market(text)

    cash = _extract_cash(text)
    statement = ParsedStatement(
        account_id=_extract_account_id(text),
        statement_date=_extract_statement_date(text),
        base_currency=_extract_base_currency(text),
        holdings=holdings,
        cash=cash,
        total_value=sum((h.value for h in holdings), Decimal("0")) + cash,
    )
    logger.info(
        "IB PDF: parsed %d holdings for account %s (%s)",
        len(holdings), statement.account_id, statement.statement_date,
    )
    return statement


def parse_statement_pdf(pdf_bytes: bytes, extractor=None) -> ParsedStatement:
    """Extract text from PDF bytes and parse it.

    Args:
        pdf_bytes: Raw PDF file content.
        extractor: Object with ``extract_text(bytes) -> str``. Defaults to
            the pdfplumber-backed extractor.

    Raises:
        PdfExtractionError: If the PDF cannot be read.
    """
    if extractor is None:
        from integrations.pdf_text_extractor import PdfPlumberTextExtractor

        extractor = PdfPlumberTextExtractor()
    return parse_statement_pdf_text(extractor.extract_text(pdf_bytes))
