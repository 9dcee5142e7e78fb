"""Tests for the Interactive Brokers CSV statement parser."""

from datetime import date
from decimal import Decimal

from parsers import parse_statement_csv

SAMPLE_CSV = """Statement,Header,Field Name,Field Value
Statement,Data,Title,Activity Statement
Statement,Data,Period,"October 1, 2025 - October 31, 2025"
Statement,Data,WhenGenerated,"2025-11-02, 08:15:00 EST"
Account Information,Header,Field Name,Field Value
Account Information,Data,Name,Jane Investor
Account Information,Data,Account,U1234567
Account Information,Data,Base Currency,EUR
Net Asset Value,Header,Asset Class,Prior Total,Current Long,Current Short,Current Total,Change
Net Asset Value,Data,Cash,100,0,0,5000,4900
Net Asset Value,Data,Total,30000,0,0,40000,10000
Open Positions,Header,DataDiscriminator,Asset Category,Currency,Symbol,Quantity,Mult,Cost Price,Cost Basis,Close Price,Value,Unrealized P/L,Code
Open Positions,Data,Summary,Stocks,USD,VTI,100,1,200,20000,220,22000,2000,
Open Positions,Data,Lot,Stocks,USD,VTI,100,1,200,20000,220,22000,2000,
Open Positions,Data,Summary,Stocks,EUR,IWDA,50,1,80,4000,105.5,5275,1275,
Open Positions,Total,,Stocks,USD,,,,,20000,,22000,2000,
"""


class TestOpenPositions:
    """Tests for Open Positions rows."""

    def test_summary_row_becomes_holding(self):
        """A Summary data row maps positional fields to a holding."""
        statement = parse_statement_csv(
            "Open Positions,Data,Summary,Stocks,USD,VTI,100,1,200,20000,220,22000,2000,\n"
        )

        assert len(statement.holdings) == 1
        holding = statement.holdings[0]
        assert holding.symbol == "VTI"
        assert holding.quantity == Decimal("100")
        assert holding.price == Decimal("220")
        assert holding.value == Decimal("22000")
        assert holding.currency == "USD"
        assert holding.asset_category == "Stocks"
        assert holding.asset_type is None

    def test_lot_and_total_rows_skipped(self):
        """Only Summary rows produce holdings."""
        statement = parse_statement_csv(SAMPLE_CSV)

        assert [h.symbol for h in statement.holdings] == ["VTI", "IWDA"]

    def test_quantity_multiplied_by_multiplier(self):
        """Contract multiplier scales the quantity."""
        statement = parse_statement_csv(
            "Open Positions,Data,Summary,Options,USD,SPY C500,2,100,5,1000,6,1200,200,\n"
        )

        assert statement.holdings[0].quantity == Decimal("200")

    def test_missing_value_recomputed(self):
        """A zero value falls back to quantity x close price."""
        statement = parse_statement_csv(
            "Open Positions,Data,Summary,Stocks,USD,VTI,10,1,200,2000,220,0,200,\n"
        )

        assert statement.holdings[0].value == Decimal("2200")

    def test_zero_quantity_or_price_skipped(self):
        """Rows without a positive quantity and price are dropped."""
        csv_text = (
            "Open Positions,Data,Summary,Stocks,USD,AAA,0,1,10,0,10,0,0,\n"
            "Open Positions,Data,Summary,Stocks,USD,BBB,10,1,10,100,0,0,0,\n"
            "Open Positions,Data,Summary,Stocks,USD,CCC,10,1,10,100,12,120,20,\n"
        )
        statement = parse_statement_csv(csv_text)

        assert [h.symbol for h in statement.holdings] == ["CCC"]

    def test_short_row_skipped(self):
        """Rows with too few fields are ignored, not raised."""
        statement = parse_statement_csv("Open Positions,Data,Summary,Stocks,USD,VTI,100\n")

        assert statement.holdings == []

    def test_thousands_separators_in_quoted_fields(self):
        """Quoted numbers with commas parse correctly."""
        statement = parse_statement_csv(
            'Open Positions,Data,Summary,Stocks,USD,VTI,"1,000",1,200,"200,000",220,"220,000",0,\n'
        )

        assert statement.holdings[0].quantity == Decimal("1000")
        assert statement.holdings[0].value == Decimal("220000")


class TestStatementMetadata:
    """Tests for account, date, currency and NAV extraction."""

    def test_account_and_base_currency(self):
        statement = parse_statement_csv(SAMPLE_CSV)

        assert statement.account_id == "U1234567"
        assert statement.base_currency == "EUR"

    def test_period_end_date_used(self):
        """The Period range end wins over the generation timestamp."""
        statement = parse_statement_csv(SAMPLE_CSV)

        assert statement.statement_date == date(2025, 10, 31)

    def test_when_generated_fallback(self):
        """WhenGenerated is used when no Period row is present."""
        statement = parse_statement_csv(
            'Statement,Data,WhenGenerated,"2025-11-02, 08:15:00 EST"\n'
        )

        assert statement.statement_date == date(2025, 11, 2)

    def test_date_defaults_to_today(self):
        statement = parse_statement_csv("Statement,Data,Period,not a date\n")

        assert statement.statement_date == date.today()

    def test_cash_and_total_from_nav(self):
        statement = parse_statement_csv(SAMPLE_CSV)

        assert statement.cash == Decimal("5000")
        assert statement.total_value == Decimal("40000")

    def test_total_recomputed_without_nav_total(self):
        """Without a NAV Total row, total = holdings value + cash."""
        csv_text = (
            "Net Asset Value,Data,Cash,0,0,0,500,0\n"
            "Open Positions,Data,Summary,Stocks,USD,VTI,100,1,200,20000,220,22000,2000,\n"
        )
        statement = parse_statement_csv(csv_text)

        assert statement.total_value == Decimal("22500")

    def test_unrecognized_text_yields_empty_statement(self):
        """Garbage input returns defaults rather than raising."""
        statement = parse_statement_csv("hello,world\nfoo\n\n")

        assert statement.holdings == []
        assert statement.account_id == "UNKNOWN"
        assert statement.base_currency == "USD"
        assert statement.cash == Decimal("0")

    def test_parsing_is_repeatable(self):
        """Parsing the same text twice gives identical holdings."""
        assert parse_statement_csv(SAMPLE_CSV).holdings == parse_statement_csv(SAMPLE_CSV).holdings
