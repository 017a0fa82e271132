"""
Shared pytest fixtures.
"""

from datetime import date, timedelta

import pytest

from finsight.ingest.database import get_session, init_database
from finsight.ingest.repository import InMemoryDataSource
from finsight.tests.factories import (
    REFERENCE_DATE,
    create_account,
    create_credit_account,
    create_liability,
    create_transaction,
)


@pytest.fixture(scope="function")
def engine():
    """In-memory SQLite engine with the schema created."""
    eng = init_database("sqlite://")
    yield eng
    eng.dispose()


@pytest.fixture(scope="function")
def session(engine):
    """Get database session."""
    sess = get_session(engine)
    yield sess
    sess.close()


@pytest.fixture
def reference_date():
    return REFERENCE_DATE


def build_high_utilization_user(user_id: str = "user_hu", end_date: date = REFERENCE_DATE):
    """Card at 65% utilization with interest, plus a checking account with biweekly pay."""
    checking = create_account(f"{user_id}_chk", user_id=user_id, type="checking", current=3000.0)
    card = create_credit_account(f"{user_id}_cc", balance=6500.0, limit=10000.0, user_id=user_id)
    liability = create_liability(
        card.account_id, apr=22.0, minimum_payment=130.0, last_payment=300.0, statement_balance=6500.0
    )

    transactions = []
    for k in range(6):
        transactions.append(create_transaction(
            checking.account_id, end_date - timedelta(days=14 * k), 2500.0,
            merchant="Acme Corp Payroll", channel="ach",
        ))
    for k in range(3):
        transactions.append(create_transaction(
            checking.account_id, end_date - timedelta(days=30 * k + 3), -1200.0,
            merchant="City Apartments", category_primary="RENT_AND_UTILITIES",
        ))

    return [checking, card], transactions, [liability]


def build_savings_builder_user(user_id: str = "user_sb", end_date: date = REFERENCE_DATE):
    """Steady saver: no credit cards, regular transfers into savings."""
    checking = create_account(f"{user_id}_chk", user_id=user_id, type="checking", current=4000.0)
    savings = create_account(f"{user_id}_sav", user_id=user_id, type="savings", current=10300.0)

    transactions = []
    for k in range(6):
        transactions.append(create_transaction(
            checking.account_id, end_date - timedelta(days=14 * k), 2000.0,
            merchant="Globex Inc", channel="ach",
        ))
    for k in range(3):
        transactions.append(create_transaction(
            savings.account_id, end_date - timedelta(days=30 * k + 1), 100.0,
            merchant="Deposit",
        ))
        transactions.append(create_transaction(
            checking.account_id, end_date - timedelta(days=30 * k + 2), -800.0,
            merchant="Grocery Mart", category_primary="FOOD_AND_DRINK",
        ))

    return [checking, savings], transactions, []


def build_mixed_source(end_date: date = REFERENCE_DATE) -> InMemoryDataSource:
    hu_accounts, hu_txns, hu_liabilities = build_high_utilization_user(end_date=end_date)
    sb_accounts, sb_txns, sb_liabilities = build_savings_builder_user(end_date=end_date)
    return InMemoryDataSource(
        hu_accounts + sb_accounts,
        hu_txns + sb_txns,
        hu_liabilities + sb_liabilities,
        user_ids=["user_hu", "user_sb", "user_empty"],
    )


@pytest.fixture
def high_utilization_source():
    accounts, transactions, liabilities = build_high_utilization_user()
    return InMemoryDataSource(accounts, transactions, liabilities)


@pytest.fixture
def mixed_source():
    """Two classified users plus one user with no accounts."""
    return build_mixed_source()


@pytest.fixture
def live_source():
    """Same users as mixed_source with windows ending today, for callers that cannot pass a date."""
    return build_mixed_source(end_date=date.today())
