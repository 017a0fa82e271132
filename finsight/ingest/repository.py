"""
Data Access Module

Read-only access to accounts, transactions and liabilities. Signal
detection, persona classification and payoff planning only ever talk to a
DataSource, so they run the same against the database or plain objects.
"""

from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Protocol

from sqlalchemy.orm import Session

from finsight.exceptions import UnknownUserError
from finsight.ingest.schema import User, Account, Transaction, Liability


class DataSource(Protocol):
    """Read functions the core needs from a data-access collaborator."""

    def get_accounts(self, user_id: str) -> List[Account]:
        """Accounts owned by the user. Raises UnknownUserError if the user does not exist."""
        ...

    def get_account(self, account_id: str) -> Optional[Account]:
        ...

    def get_transactions(self, account_ids: List[str], start_date: date, end_date: date) -> List[Transaction]:
        """Transactions on the given accounts dated within [start_date, end_date]."""
        ...

    def get_liability(self, account_id: str) -> Optional[Liability]:
        ...

    def get_all_user_ids(self) -> List[str]:
        ...


class SQLAlchemyDataSource:
    """DataSource backed by a SQLAlchemy session."""

    def __init__(self, session: Session):
        self.session = session

    def get_accounts(self, user_id: str) -> List[Account]:
        user = self.session.query(User).filter(User.user_id == user_id).first()
        if not user:
            raise UnknownUserError(user_id)
        return (
            self.session.query(Account)
            .filter(Account.user_id == user_id)
            .order_by(Account.account_id)
            .all()
        )

    def get_account(self, account_id: str) -> Optional[Account]:
        return self.session.query(Account).filter(Account.account_id == account_id).first()

    def get_transactions(self, account_ids: List[str], start_date: date, end_date: date) -> List[Transaction]:
        if not account_ids:
            return []
        return (
            self.session.query(Transaction)
            .filter(
                Transaction.account_id.in_(account_ids),
                Transaction.date >= start_date,
                Transaction.date <= end_date,
            )
            .order_by(Transaction.date, Transaction.transaction_id)
            .all()
        )

    def get_liability(self, account_id: str) -> Optional[Liability]:
        return self.session.query(Liability).filter(Liability.account_id == account_id).first()

    def get_all_user_ids(self) -> List[str]:
        return [row[0] for row in self.session.query(User.user_id).order_by(User.user_id).all()]


class InMemoryDataSource:
    """DataSource over already-materialized records."""

    def __init__(
        self,
        accounts: Iterable[Account] = (),
        transactions: Iterable[Transaction] = (),
        liabilities: Iterable[Liability] = (),
        user_ids: Optional[Iterable[str]] = None,
    ):
        self.accounts: Dict[str, Account] = {a.account_id: a for a in accounts}
        self.transactions: List[Transaction] = list(transactions)
        self.liabilities: Dict[str, Liability] = {l.account_id: l for l in liabilities}
        if user_ids is None:
            user_ids = {a.user_id for a in self.accounts.values()}
        self.user_ids = sorted(set(user_ids))

    def get_accounts(self, user_id: str) -> List[Account]:
        if user_id not in self.user_ids:
            raise UnknownUserError(user_id)
        return sorted(
            (a for a in self.accounts.values() if a.user_id == user_id),
            key=lambda a: a.account_id,
        )

    def get_account(self, account_id: str) -> Optional[Account]:
        return self.accounts.get(account_id)

    def get_transactions(self, account_ids: List[str], start_date: date, end_date: date) -> List[Transaction]:
        wanted = set(account_ids)
        return sorted(
            (
                t for t in self.transactions
                if t.account_id in wanted and start_date <= _as_date(t.date) <= end_date
            ),
            key=lambda t: (_as_date(t.date), t.transaction_id),
        )

    def get_liability(self, account_id: str) -> Optional[Liability]:
        return self.liabilities.get(account_id)

    def get_all_user_ids(self) -> List[str]:
        return list(self.user_ids)


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value
