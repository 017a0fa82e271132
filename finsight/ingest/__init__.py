"""
Data Ingest Module

Database schema, connection management and read-only data sources.
"""

from .repository import DataSource, SQLAlchemyDataSource, InMemoryDataSource
from .schema import Account, Balances, Liability, Transaction, User

__all__ = [
    'DataSource',
    'SQLAlchemyDataSource',
    'InMemoryDataSource',
    'Account',
    'Balances',
    'Liability',
    'Transaction',
    'User',
]
