"""
Savings Behavior Module

Analyzes savings patterns and emergency fund coverage.

Features computed:
- Net inflow to savings-like accounts
- Savings growth rate
- Emergency fund coverage (months of expenses)
- Monthly expenses and monthly income
- Savings rate
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from finsight.ingest.schema import Account, Transaction
from .window_utils import (
    DateLike, contains_any, filter_transactions_by_window, months_in_window
)

logger = logging.getLogger(__name__)

# Account types considered "savings-like"
SAVINGS_ACCOUNT_TYPES = ['savings', 'money_market', 'hsa']

# Outflows to these merchants move money around rather than spend it
EXPENSE_EXCLUDE_KEYWORDS = ['transfer', 'payment', 'ach', 'wire']
SAVINGS_TRANSFER_KEYWORDS = ['savings', 'transfer']
SAVINGS_CATEGORY = 'SAVINGS'
INCOME_EXCLUDE_KEYWORDS = ['transfer']


@dataclass
class SavingsSignals:
    """Savings behavior signals."""
    num_savings_accounts: int
    savings_balance: float  # Total balance across savings-like accounts
    net_inflow: float  # Net money moved into savings over the window
    monthly_net_inflow: float  # Net inflow normalized to a month
    growth_rate_percent: float  # Savings growth over the window
    monthly_expenses: float  # Trailing 6-month average monthly expenses
    emergency_fund_months: float  # Savings balance / monthly expenses
    monthly_income: float  # Non-transfer checking inflows per month
    savings_rate_percent: float  # Monthly net inflow / monthly income
    window_days: int

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            'num_savings_accounts': self.num_savings_accounts,
            'savings_balance': self.savings_balance,
            'net_inflow': self.net_inflow,
            'monthly_net_inflow': self.monthly_net_inflow,
            'growth_rate_percent': self.growth_rate_percent,
            'monthly_expenses': self.monthly_expenses,
            'emergency_fund_months': self.emergency_fund_months,
            'monthly_income': self.monthly_income,
            'savings_rate_percent': self.savings_rate_percent,
            'window_days': self.window_days,
        }


def is_savings_account(account: Account) -> bool:
    return (account.type or '').lower() in SAVINGS_ACCOUNT_TYPES


def is_checking_account(account: Account) -> bool:
    return (account.type or '').lower() == 'checking'


def calculate_monthly_expenses(
    transactions: List[Transaction],
    window_days: int = 180,
    reference_date: Optional[DateLike] = None
) -> float:
    """
    Average monthly spending over the window.

    Expenses are outflows whose merchant does not look like a transfer,
    payment, ACH or wire.

    Args:
        transactions: All user transactions
        window_days: Window to average over (defaults to 6 months)
        reference_date: End of the window (defaults to today)

    Returns:
        Monthly expenses rounded to 2 decimals
    """
    window_transactions = filter_transactions_by_window(transactions, window_days, reference_date)
    total = sum(
        abs(t.amount) for t in window_transactions
        if t.amount < 0 and not contains_any(t.merchant_name, EXPENSE_EXCLUDE_KEYWORDS)
    )
    return round(total / months_in_window(window_days), 2)


def calculate_monthly_income(
    checking_accounts: List[Account],
    transactions: List[Transaction],
    window_days: int,
    reference_date: Optional[DateLike] = None
) -> float:
    """Average monthly inflows to checking accounts, excluding transfers."""
    checking_ids = {a.account_id for a in checking_accounts}
    window_transactions = filter_transactions_by_window(transactions, window_days, reference_date)
    total = sum(
        t.amount for t in window_transactions
        if t.account_id in checking_ids
        and t.amount > 0
        and not contains_any(t.merchant_name, INCOME_EXCLUDE_KEYWORDS)
    )
    return round(total / months_in_window(window_days), 2)


def calculate_net_savings_inflow(
    savings_accounts: List[Account],
    checking_accounts: List[Account],
    transactions: List[Transaction]
) -> float:
    """
    Net money moved into savings.

    Counts deposits landing on savings-like accounts plus checking outflows
    that look like a move to savings (merchant mentions savings/transfer or
    the detailed category is SAVINGS).
    """
    savings_ids = {a.account_id for a in savings_accounts}
    checking_ids = {a.account_id for a in checking_accounts}

    inflow = 0.0
    for txn in transactions:
        if txn.account_id in savings_ids and txn.amount > 0:
            inflow += txn.amount
        elif txn.account_id in checking_ids and txn.amount < 0:
            if (contains_any(txn.merchant_name, SAVINGS_TRANSFER_KEYWORDS)
                    or (txn.category_detailed or '').upper() == SAVINGS_CATEGORY):
                inflow += abs(txn.amount)
    return inflow


def calculate_growth_rate(current_balance: float, net_inflow: float) -> float:
    """
    Growth of savings over the window as a percentage.

    The starting balance is the current balance minus the net inflow. A
    starting balance at or below zero has no meaningful ratio, so growth is
    reported as 100 if there is money now and 0 otherwise.
    """
    starting = current_balance - net_inflow
    if starting <= 0:
        return 100.0 if current_balance > 0 else 0.0
    return round((current_balance - starting) / starting * 100, 2)


def calculate_savings_behavior(
    accounts: List[Account],
    all_transactions: List[Transaction],
    window_days: int = 90,
    expense_window_days: int = 180,
    reference_date: Optional[DateLike] = None
) -> SavingsSignals:
    """
    Calculate savings behavior metrics.

    Args:
        accounts: All user accounts
        all_transactions: All user transactions
        window_days: Window for inflow, growth, income and savings rate
        expense_window_days: Trailing window for average expenses
        reference_date: End of the window (defaults to today)

    Returns:
        SavingsSignals object with calculated metrics
    """
    savings_accounts = [a for a in accounts if is_savings_account(a)]
    checking_accounts = [a for a in accounts if is_checking_account(a)]
    months = months_in_window(window_days)

    monthly_expenses = calculate_monthly_expenses(all_transactions, expense_window_days, reference_date)
    monthly_income = calculate_monthly_income(checking_accounts, all_transactions, window_days, reference_date)

    if not savings_accounts:
        return SavingsSignals(
            num_savings_accounts=0,
            savings_balance=0.0,
            net_inflow=0.0,
            monthly_net_inflow=0.0,
            growth_rate_percent=0.0,
            monthly_expenses=monthly_expenses,
            emergency_fund_months=0.0,
            monthly_income=monthly_income,
            savings_rate_percent=0.0,
            window_days=window_days,
        )

    window_transactions = filter_transactions_by_window(all_transactions, window_days, reference_date)
    savings_balance = sum((a.balances.current or 0.0) for a in savings_accounts)
    net_inflow = calculate_net_savings_inflow(savings_accounts, checking_accounts, window_transactions)
    monthly_net_inflow = net_inflow / months

    emergency_fund_months = savings_balance / monthly_expenses if monthly_expenses > 0 else 0.0
    savings_rate = monthly_net_inflow / monthly_income * 100 if monthly_income > 0 else 0.0

    signals = SavingsSignals(
        num_savings_accounts=len(savings_accounts),
        savings_balance=round(savings_balance, 2),
        net_inflow=round(net_inflow, 2),
        monthly_net_inflow=round(monthly_net_inflow, 2),
        growth_rate_percent=calculate_growth_rate(savings_balance, net_inflow),
        monthly_expenses=monthly_expenses,
        emergency_fund_months=round(emergency_fund_months, 2),
        monthly_income=monthly_income,
        savings_rate_percent=round(savings_rate, 2),
        window_days=window_days,
    )
    logger.debug(
        "Calculated savings signals",
        extra={
            'growth_rate_percent': signals.growth_rate_percent,
            'emergency_fund_months': signals.emergency_fund_months,
        },
    )
    return signals
