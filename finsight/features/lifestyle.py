"""
Lifestyle Spending Module

Measures discretionary spending relative to income.

Features computed:
- Discretionary spend (dining, entertainment, travel, recreation)
- Monthly discretionary spend
- Discretionary share of monthly income
"""

from dataclasses import dataclass
from typing import List, Optional

from finsight.ingest.schema import Transaction
from .window_utils import DateLike, contains_any, filter_transactions_by_window, months_in_window

DISCRETIONARY_CATEGORIES = [
    'dining', 'restaurant', 'food and drink', 'food_and_drink',
    'entertainment', 'travel', 'recreation',
]


@dataclass
class LifestyleSignals:
    """Discretionary spending signals."""
    discretionary_spend: float
    monthly_discretionary_spend: float
    discretionary_share_percent: float  # Monthly discretionary / monthly income
    window_days: int

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            'discretionary_spend': self.discretionary_spend,
            'monthly_discretionary_spend': self.monthly_discretionary_spend,
            'discretionary_share_percent': self.discretionary_share_percent,
            'window_days': self.window_days,
        }


def is_discretionary(transaction: Transaction) -> bool:
    """Check whether a transaction falls in a discretionary category."""
    return (
        contains_any(transaction.category_primary, DISCRETIONARY_CATEGORIES)
        or contains_any(transaction.category_detailed, DISCRETIONARY_CATEGORIES)
    )


def calculate_lifestyle_signals(
    transactions: List[Transaction],
    monthly_income: float,
    window_days: int = 90,
    reference_date: Optional[DateLike] = None
) -> LifestyleSignals:
    """
    Calculate discretionary spending relative to income.

    Args:
        transactions: All user transactions
        monthly_income: Monthly income to compare against
        window_days: Size of the window in days
        reference_date: End of the window (defaults to today)

    Returns:
        LifestyleSignals; share is 0 when income is 0
    """
    window_transactions = filter_transactions_by_window(transactions, window_days, reference_date)
    spend = sum(
        abs(t.amount) for t in window_transactions
        if t.amount < 0 and is_discretionary(t)
    )
    monthly = spend / months_in_window(window_days)
    share = monthly / monthly_income * 100 if monthly_income > 0 else 0.0

    return LifestyleSignals(
        discretionary_spend=round(spend, 2),
        monthly_discretionary_spend=round(monthly, 2),
        discretionary_share_percent=round(share, 2),
        window_days=window_days,
    )
