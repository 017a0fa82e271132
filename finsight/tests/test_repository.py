"""
Tests for the database-backed data source.
"""

from datetime import date

import pytest

from finsight.exceptions import UnknownUserError
from finsight.ingest.repository import InMemoryDataSource, SQLAlchemyDataSource
from finsight.ingest.schema import Account, Balances, User
from finsight.tests.factories import create_account, create_credit_account, create_liability, create_transaction


def seed_user(session, user_id: str = "user_001"):
    """Helper to store a user with a checking account, a card and a few transactions."""
    session.add(User(user_id=user_id, name="Test User"))
    session.commit()

    checking = create_account(f"{user_id}_chk", user_id=user_id, type="checking", current=1500.0)
    card = create_credit_account(f"{user_id}_cc", balance=400.0, limit=2000.0, user_id=user_id)
    session.add_all([checking, card])
    session.commit()

    session.add_all([
        create_transaction(checking.account_id, date(2025, 6, 1), 2000.0, merchant="Acme Payroll"),
        create_transaction(checking.account_id, date(2025, 6, 15), -45.0, merchant="Grocery Mart"),
        create_transaction(checking.account_id, date(2025, 3, 1), -80.0, merchant="Old Purchase"),
        create_transaction(card.account_id, date(2025, 6, 20), -30.0, merchant="Bookshop"),
        create_liability(card.account_id, apr=19.99, minimum_payment=35.0),
    ])
    session.commit()
    return checking, card


class TestSQLAlchemyDataSource:
    """Tests for SQLAlchemyDataSource."""

    def test_get_accounts(self, session):
        seed_user(session)
        source = SQLAlchemyDataSource(session)

        accounts = source.get_accounts("user_001")

        assert [a.account_id for a in accounts] == ["user_001_cc", "user_001_chk"]

    def test_balances_round_trip_as_record(self, session):
        seed_user(session)
        session.expire_all()
        source = SQLAlchemyDataSource(session)

        card = source.get_account("user_001_cc")

        assert isinstance(card.balances, Balances)
        assert card.balances.current == 400.0
        assert card.balances.limit == 2000.0

    def test_unknown_user(self, session):
        source = SQLAlchemyDataSource(session)

        with pytest.raises(UnknownUserError):
            source.get_accounts("ghost")

    def test_user_without_accounts(self, session):
        session.add(User(user_id="user_002"))
        session.commit()

        assert SQLAlchemyDataSource(session).get_accounts("user_002") == []

    def test_transactions_filtered_by_range(self, session):
        checking, card = seed_user(session)
        source = SQLAlchemyDataSource(session)

        transactions = source.get_transactions(
            [checking.account_id, card.account_id], date(2025, 5, 1), date(2025, 6, 30)
        )

        assert [t.merchant_name for t in transactions] == ["Acme Payroll", "Grocery Mart", "Bookshop"]

    def test_transactions_no_accounts(self, session):
        assert SQLAlchemyDataSource(session).get_transactions([], date(2025, 1, 1), date(2025, 12, 31)) == []

    def test_get_liability(self, session):
        _, card = seed_user(session)
        source = SQLAlchemyDataSource(session)

        liability = source.get_liability(card.account_id)

        assert liability.apr_percentage == 19.99
        assert source.get_liability("missing") is None

    def test_get_all_user_ids(self, session):
        seed_user(session, "user_b")
        seed_user(session, "user_a")

        assert SQLAlchemyDataSource(session).get_all_user_ids() == ["user_a", "user_b"]


class TestInMemoryDataSource:
    """Tests for InMemoryDataSource."""

    def test_users_derived_from_accounts(self):
        source = InMemoryDataSource([create_account("a1", user_id="u2"), create_account("a2", user_id="u1")])

        assert source.get_all_user_ids() == ["u1", "u2"]

    def test_explicit_users(self):
        source = InMemoryDataSource([], user_ids=["u1"])

        assert source.get_accounts("u1") == []
        with pytest.raises(UnknownUserError):
            source.get_accounts("u2")

    def test_transactions_sorted_and_filtered(self):
        source = InMemoryDataSource(
            [create_account("a1")],
            [
                create_transaction("a1", date(2025, 6, 20), -10.0, merchant="Later"),
                create_transaction("a1", date(2025, 6, 10), -10.0, merchant="Earlier"),
                create_transaction("a1", date(2024, 1, 1), -10.0, merchant="Too Old"),
                create_transaction("a2", date(2025, 6, 15), -10.0, merchant="Other Account"),
            ],
        )

        transactions = source.get_transactions(["a1"], date(2025, 6, 1), date(2025, 6, 30))

        assert [t.merchant_name for t in transactions] == ["Earlier", "Later"]


class TestBalances:
    """Tests for the Balances record."""

    def test_to_dict_omits_missing_name(self):
        assert Balances(current=10.0).to_dict() == {"current": 10.0, "available": None, "limit": None}

    def test_from_dict_defaults_current(self):
        balances = Balances.from_dict({"current": None, "limit": 500.0, "name": "Rewards Card"})

        assert balances.current == 0.0
        assert balances.name == "Rewards Card"

    def test_account_stores_balances(self):
        account = Account(account_id="a1", user_id="u1", type="checking", balances=Balances(current=5.0))
        assert account.balances.current == 5.0
