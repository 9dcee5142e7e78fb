"""Statement import pipeline.

parse -> currency detection -> exchange rates -> match against targets ->
replace the account's holdings for the statement date.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from fastapi import HTTPException
from sqlalchemy.orm import Session

from integrations.exceptions import PdfExtractionError
from integrations.lookup_protocol import PdfTextExtractor
from models import Account, Holding, TargetAllocation
from parsers import ParsedStatement, parse_statement_csv, parse_statement_pdf
from services.currency_service import CurrencyService
from services.holding_matcher import UnmatchedHolding, match_holdings_to_targets
from services.holding_service import HoldingService
from services.portfolio_types import UNKNOWN_ASSET_TYPE, HoldingRecord, TargetRecord
from utils.ticker import CASH_SYMBOL

logger = logging.getLogger(__name__)

FILE_TYPE_CSV = "CSV"
FILE_TYPE_PDF = "PDF"
USD = "USD"


@dataclass
class StatementImportResult:
    account: Account
    statement: ParsedStatement
    file_type: str
    holdings: list[Holding] = field(default_factory=list)
    unmatched: list[UnmatchedHolding] = field(default_factory=list)

    @property
    def statement_date(self) -> date:
        return self.statement.statement_date


def detect_file_type(filename: str | None) -> str:
    """CSV or PDF from the file extension.

    Raises:
        HTTPException: 400 for any other extension
    """
    name = (filename or "").lower()
    if name.endswith(".csv"):
        return FILE_TYPE_CSV
    if name.endswith(".pdf"):
        return FILE_TYPE_PDF
    raise HTTPException(status_code=400, detail="File must be a PDF or CSV file")


class StatementImportService:
    """Imports a brokerage statement into an account.

    Args:
        currency_service: Currency detection and exchange rates.
        holding_service: Holdings persistence.
        pdf_extractor: PDF text extractor (defaults to pdfplumber).
    """

    def __init__(
        self,
        currency_service: CurrencyService | None = None,
        holding_service: HoldingService | None = None,
        pdf_extractor: PdfTextExtractor | None = None,
    ):
        self._currency_service = currency_service or CurrencyService()
        self._holding_service = holding_service or HoldingService()
        self._pdf_extractor = pdf_extractor

    def parse(self, filename: str | None, content: bytes) -> tuple[ParsedStatement, str]:
        """Parse uploaded bytes by file type.

        Raises:
            HTTPException: 400 for an unsupported file or an unreadable PDF
        """
        file_type = detect_file_type(filename)
        if file_type == FILE_TYPE_CSV:
            statement = parse_statement_csv(content.decode("utf-8-sig", errors="replace"))
        else:
            try:
                statement = parse_statement_pdf(content, self._pdf_extractor)
            except PdfExtractionError as exc:
                raise HTTPException(status_code=400, detail=str(exc)) from exc

        logger.info(
            "Parsed %s statement %s: %d holdings, account %s, date %s",
            file_type, filename, len(statement.holdings), statement.account_id,
            statement.statement_date,
        )
        return statement, file_type

    def _build_holdings(self, statement: ParsedStatement, base_currency: str) -> list[Holding]:
        currencies = self._currency_service.get_currencies(
            [(h.symbol, h.currency) for h in statement.holdings]
        )
        needed = set(currencies.values()) | {base_currency}
        to_usd = self._currency_service.get_rates(needed, USD)
        to_base = self._currency_service.get_rates(needed, base_currency)

        holdings: dict[str, Holding] = {}
        for parsed in statement.holdings:
            currency = currencies[parsed.symbol]
            # Recomputed from quantity x price; statement values are rounded
            value = parsed.quantity * parsed.price

            existing = holdings.get(parsed.symbol)
            if existing is not None:
                # Same symbol listed twice (e.g. two sections): one row per symbol and date
                logger.info("Merging duplicate statement rows for %s", parsed.symbol)
                existing.quantity += parsed.quantity
                existing.value_usd += value * to_usd[currency]
                existing.value_base += value * to_base[currency]
                continue

            holdings[parsed.symbol] = Holding(
                symbol=parsed.symbol,
                isin=parsed.isin,
                instrument_name=parsed.instrument_name,
                asset_type=UNKNOWN_ASSET_TYPE,
                asset_category=parsed.asset_category,
                quantity=parsed.quantity,
                price=parsed.price,
                currency=currency,
                value_usd=value * to_usd[currency],
                value_base=value * to_base[currency],
            )

        if statement.cash > 0:
            holdings[CASH_SYMBOL] = Holding(
                symbol=CASH_SYMBOL,
                instrument_name="Cash",
                asset_type="Cash",
                asset_category="Cash",
                quantity=Decimal("1"),
                price=statement.cash,
                currency=base_currency,
                value_usd=statement.cash * to_usd[base_currency],
                value_base=statement.cash,
            )
        return list(holdings.values())

    def _classify(self, db: Session, holdings: list[Holding]) -> list[UnmatchedHolding]:
        """Tag holdings with their target's asset type; infer types for the rest."""
        targets = [
            TargetRecord.from_model(t)
            for t in db.query(TargetAllocation)
            .order_by(TargetAllocation.sort_order, TargetAllocation.created_at)
            .all()
        ]
        by_symbol = {h.symbol: h for h in holdings if h.symbol != CASH_SYMBOL}
        records = [
            HoldingRecord(
                symbol=h.symbol,
                value_usd=h.value_usd,
                quantity=h.quantity,
                price=h.price,
                asset_type=h.asset_type,
                asset_category=h.asset_category,
                isin=h.isin,
                currency=h.currency,
                instrument_name=h.instrument_name,
            )
            for h in by_symbol.values()
        ]
        result = match_holdings_to_targets(records, targets)

        for matched in result.matched:
            holding = by_symbol[matched.holding.symbol]
            holding.asset_type = matched.holding.asset_type
            holding.asset_category = matched.holding.asset_category
        for unmatched in result.unmatched:
            by_symbol[unmatched.holding.symbol].asset_type = unmatched.inferred_asset_type

        logger.info(
            "Statement holdings: %d matched, %d unmatched",
            len(result.matched), len(result.unmatched),
        )
        return result.unmatched

    def import_statement(
        self, db: Session, account_id: str, filename: str | None, content: bytes
    ) -> StatementImportResult:
        """
        Parse a statement and replace the account's holdings for its date.

        Args:
            db: Database session
            account_id: Account to import into
            filename: Uploaded file name (extension selects the parser)
            content: Raw file bytes

        Returns:
            StatementImportResult with the stored holdings and unmatched ones

        Raises:
            HTTPException: 404 if the account doesn't exist; 400 for an
                unsupported file or a statement without holdings
        """
        account = db.query(Account).filter_by(id=account_id).first()
        if not account:
            raise HTTPException(status_code=404, detail="Account not found")

        statement, file_type = self.parse(filename, content)
        if not statement.holdings:
            raise HTTPException(
                status_code=400,
                detail={
                    "error": (
                        f"No holdings found in {file_type}. The file might not be in the "
                        "expected Interactive Brokers format, or the Open Positions / "
                        "Mark-to-Market Performance Summary section could not be parsed."
                    ),
                    "account_id": statement.account_id,
                    "statement_date": statement.statement_date.isoformat(),
                    "file_type": file_type,
                },
            )

        base_currency = (account.base_currency or USD).upper()
        holdings = self._build_holdings(statement, base_currency)
        unmatched = self._classify(db, holdings)
        stored = self._holding_service.replace_statement_holdings(
            db, account.id, statement.statement_date, holdings
        )

        return StatementImportResult(
            account=account,
            statement=statement,
            file_type=file_type,
            holdings=stored,
            unmatched=unmatched,
        )
