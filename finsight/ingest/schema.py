"""
Database schema definitions for FinSight.
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Column, String, Float, Boolean, DateTime, Index,
    ForeignKey, Text, Date, JSON
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.types import TypeDecorator

Base = declarative_base()


@dataclass
class Balances:
    """Account balances as reported by the institution."""
    current: float = 0.0
    available: Optional[float] = None
    limit: Optional[float] = None  # Credit limit, null for non-revolving accounts
    name: Optional[str] = None  # Institution's display name for the account

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        data = asdict(self)
        if data['name'] is None:
            del data['name']
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Balances":
        return cls(
            current=data.get('current') or 0.0,
            available=data.get('available'),
            limit=data.get('limit'),
            name=data.get('name'),
        )


class BalancesType(TypeDecorator):
    """Stores a Balances record as JSON and hands it back as a Balances record."""
    impl = JSON
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, Balances):
            return value.to_dict()
        return Balances.from_dict(value).to_dict()

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Balances.from_dict(value)


class User(Base):
    """User table."""
    __tablename__ = 'users'

    user_id = Column(String, primary_key=True)
    name = Column(String, nullable=True)
    email = Column(String, nullable=True, unique=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    accounts = relationship("Account", back_populates="user", cascade="all, delete-orphan")


class Account(Base):
    """Account table - checking, savings, credit, money_market, hsa, loan."""
    __tablename__ = 'accounts'

    account_id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey('users.user_id'), nullable=False)
    type = Column(String, nullable=False)
    subtype = Column(String, nullable=True)
    balances = Column(BalancesType, nullable=False)
    iso_currency_code = Column(String, default='USD', nullable=False)

    __table_args__ = (
        Index('idx_accounts_user', 'user_id'),
    )

    # Relationships
    user = relationship("User", back_populates="accounts")
    transactions = relationship("Transaction", back_populates="account", cascade="all, delete-orphan")
    liability = relationship("Liability", back_populates="account", uselist=False, cascade="all, delete-orphan")


class Transaction(Base):
    """Transaction table - all financial transactions."""
    __tablename__ = 'transactions'

    transaction_id = Column(String, primary_key=True)
    account_id = Column(String, ForeignKey('accounts.account_id'), nullable=False)
    date = Column(Date, nullable=False)
    amount = Column(Float, nullable=False)  # Negative = outflow, positive = inflow
    merchant_name = Column(String, nullable=True)
    payment_channel = Column(String, nullable=True)  # online, in store, ach, ...
    category_primary = Column(String, nullable=True)
    category_detailed = Column(String, nullable=True)

    __table_args__ = (
        Index('idx_transactions_account', 'account_id'),
        Index('idx_transactions_date', 'date'),
    )

    # Relationships
    account = relationship("Account", back_populates="transactions")


class Liability(Base):
    """Liability table - credit card debt and loans."""
    __tablename__ = 'liabilities'

    liability_id = Column(String, primary_key=True)
    account_id = Column(String, ForeignKey('accounts.account_id'), nullable=False, unique=True)
    type = Column(String, nullable=False)  # credit_card, student_loan, mortgage
    apr_percentage = Column(Float, nullable=True)
    minimum_payment_amount = Column(Float, nullable=True)
    last_payment_amount = Column(Float, nullable=True)
    last_statement_balance = Column(Float, nullable=True)
    is_overdue = Column(Boolean, default=False, nullable=False)
    next_payment_due_date = Column(Date, nullable=True)
    interest_rate = Column(Float, nullable=True)  # For loans

    # Relationships
    account = relationship("Account", back_populates="liability")


class ResponseCacheEntry(Base):
    """Cached generated text keyed by a hash of user and normalized query."""
    __tablename__ = 'response_cache'

    query_hash = Column(String, primary_key=True)
    user_id = Column(String, nullable=False)
    query = Column(Text, nullable=False)
    response = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False)
