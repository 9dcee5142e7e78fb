"""Pytest configuration and fixtures."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app
from api.statements import get_statement_import_service
from api.targets import get_name_lookup
from services.currency_service import CurrencyService
from services.lookup_cache import LookupCache
from services.name_lookup_service import NameLookupService
from services.statement_import_service import StatementImportService
# Pytest fixtures - imported to make them available to tests
from tests.fixtures import (  # noqa: F401
    account,
    eur_account,
    holdings,
    symbol_mapping,
    targets,
)
from tests.fixtures.mocks import (
    MockCurrencyProvider,
    MockExchangeRateProvider,
    MockIsinMappingProvider,
    MockPdfTextExtractor,
    MockTickerSearchProvider,
    SAMPLE_SEARCH_RESULTS,
)

SAMPLE_RATES = {
    ("EUR", "USD"): Decimal("1.10"),
    ("USD", "EUR"): Decimal("0.90"),
    ("GBP", "USD"): Decimal("1.25"),
    ("GBP", "EUR"): Decimal("1.15"),
}


@pytest.fixture(name="db")
def db_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="currency_service")
def currency_service_fixture():
    """Currency service with fixed rates and no network access."""
    return CurrencyService(
        rate_provider=MockExchangeRateProvider(rates=SAMPLE_RATES),
        currency_provider=MockCurrencyProvider(),
        cache=LookupCache(),
    )


@pytest.fixture(name="name_lookup_service")
def name_lookup_service_fixture():
    """Name lookups against canned search results."""
    return NameLookupService(
        search_provider=MockTickerSearchProvider(results=SAMPLE_SEARCH_RESULTS),
        isin_provider=MockIsinMappingProvider(),
        cache=LookupCache(),
        timeout=1.0,
    )


@pytest.fixture(name="pdf_extractor")
def pdf_extractor_fixture():
    """PDF extractor returning no text; tests replace it as needed."""
    return MockPdfTextExtractor()


@pytest.fixture(name="client")
def client_fixture(db, currency_service, name_lookup_service, pdf_extractor):
    """Create a test client with the test database and mocked lookups."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    def override_get_statement_import_service():
        return StatementImportService(
            currency_service=currency_service, pdf_extractor=pdf_extractor
        )

    def override_get_name_lookup():
        return name_lookup_service

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_statement_import_service] = override_get_statement_import_service
    app.dependency_overrides[get_name_lookup] = override_get_name_lookup
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
