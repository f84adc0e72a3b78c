from datetime import datetime
from decimal import Decimal

import pytest

from fx_deal_system.domain.deals import DealRequest
from fx_deal_system.repositories.sqlite import (
    SQLiteDatabase,
    SQLiteDealRepository,
    SQLiteTransactionManager,
)
from fx_deal_system.services.deals import DealServiceImpl


@pytest.fixture
def valid_request() -> DealRequest:
    return DealRequest(
        deal_unique_id="FX-001",
        from_currency_iso_code="USD",
        to_currency_iso_code="EUR",
        deal_timestamp=datetime(2024, 1, 15, 10, 30),
        deal_amount=Decimal("1000.50"),
    )


@pytest.fixture
def second_request() -> DealRequest:
    return DealRequest(
        deal_unique_id="FX-002",
        from_currency_iso_code="GBP",
        to_currency_iso_code="JPY",
        deal_timestamp=datetime(2024, 2, 1, 9, 0),
        deal_amount=Decimal("250000"),
    )


@pytest.fixture
def db() -> SQLiteDatabase:
    database = SQLiteDatabase(":memory:", check_same_thread=False)
    database.initialize()
    yield database
    database.close()


@pytest.fixture
def deal_repo(db: SQLiteDatabase) -> SQLiteDealRepository:
    return SQLiteDealRepository(db)


@pytest.fixture
def deal_service(db: SQLiteDatabase, deal_repo: SQLiteDealRepository) -> DealServiceImpl:
    return DealServiceImpl(
        deal_repo=deal_repo,
        transaction_manager=SQLiteTransactionManager(db),
    )
