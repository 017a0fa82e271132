"""
Main Signals Orchestrator

Coordinates all feature engineering calculations and returns a complete
signal bundle for a user over a time window.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from finsight.config import settings
from finsight.ingest.repository import DataSource
from finsight.ingest.schema import Account, Liability
from .window_utils import DateLike, get_date_range
from .credit import CreditSignals, calculate_credit_signals, is_credit_account
from .income import IncomeSignals, calculate_income_stability
from .savings import (
    SavingsSignals, calculate_monthly_expenses, calculate_savings_behavior,
    is_checking_account, is_savings_account
)
from .subscriptions import SubscriptionSignals, detect_subscriptions
from .lifestyle import LifestyleSignals, calculate_lifestyle_signals

logger = logging.getLogger(__name__)


@dataclass
class SignalBundle:
    """
    Complete set of behavioral signals for a user.

    Each detector contributes one optional field. The read-only properties
    expose the flat metrics persona matching and ranking work from, with
    neutral defaults when a detector produced nothing.
    """
    user_id: str
    window_days: int
    calculated_at: datetime

    credit: Optional[CreditSignals] = None
    income: Optional[IncomeSignals] = None
    savings: Optional[SavingsSignals] = None
    subscriptions: Optional[SubscriptionSignals] = None
    lifestyle: Optional[LifestyleSignals] = None

    # Credit
    @property
    def utilization_percent(self) -> float:
        return self.credit.max_utilization_percent if self.credit else 0.0

    @property
    def utilization_threshold(self) -> str:
        focus = self.credit.focus_account if self.credit else None
        return focus.utilization.threshold if focus else 'none'

    @property
    def is_high_utilization(self) -> bool:
        focus = self.credit.focus_account if self.credit else None
        return focus.utilization.is_high_utilization if focus else False

    @property
    def interest_charges(self) -> float:
        return self.credit.total_interest_charges if self.credit else 0.0

    @property
    def minimum_payment_only(self) -> bool:
        return self.credit.any_minimum_payment_only if self.credit else False

    @property
    def is_overdue(self) -> bool:
        return self.credit.any_overdue if self.credit else False

    # Income
    @property
    def payment_frequency(self) -> str:
        return self.income.payment_frequency if self.income else 'irregular'

    @property
    def median_pay_gap_days(self) -> float:
        return self.income.median_pay_gap_days if self.income else 0.0

    @property
    def pay_gap_variability(self) -> float:
        return self.income.pay_gap_variability if self.income else 0.0

    @property
    def cash_flow_buffer_months(self) -> float:
        return self.income.cash_flow_buffer_months if self.income else 0.0

    @property
    def average_income(self) -> float:
        return self.income.average_income if self.income else 0.0

    @property
    def monthly_income(self) -> float:
        """Payroll-based monthly income, falling back to checking inflows."""
        if self.average_income > 0:
            return self.average_income
        return self.savings.monthly_income if self.savings else 0.0

    @property
    def monthly_expenses(self) -> float:
        if self.savings:
            return self.savings.monthly_expenses
        return self.income.monthly_expenses if self.income else 0.0

    # Savings
    @property
    def savings_balance(self) -> float:
        return self.savings.savings_balance if self.savings else 0.0

    @property
    def savings_growth_percent(self) -> float:
        return self.savings.growth_rate_percent if self.savings else 0.0

    @property
    def monthly_net_savings_inflow(self) -> float:
        return self.savings.monthly_net_inflow if self.savings else 0.0

    @property
    def emergency_fund_months(self) -> float:
        return self.savings.emergency_fund_months if self.savings else 0.0

    @property
    def savings_rate_percent(self) -> float:
        return self.savings.savings_rate_percent if self.savings else 0.0

    # Subscriptions
    @property
    def recurring_merchant_count(self) -> int:
        return self.subscriptions.recurring_merchant_count if self.subscriptions else 0

    @property
    def monthly_recurring_spend(self) -> float:
        return self.subscriptions.monthly_recurring_spend if self.subscriptions else 0.0

    @property
    def subscription_share_percent(self) -> float:
        return self.subscriptions.subscription_share_percent if self.subscriptions else 0.0

    # Lifestyle
    @property
    def discretionary_share_percent(self) -> float:
        return self.lifestyle.discretionary_share_percent if self.lifestyle else 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            'user_id': self.user_id,
            'window_days': self.window_days,
            'calculated_at': self.calculated_at.isoformat(),
            'credit': self.credit.to_dict() if self.credit else None,
            'income': self.income.to_dict() if self.income else None,
            'savings': self.savings.to_dict() if self.savings else None,
            'subscriptions': self.subscriptions.to_dict() if self.subscriptions else None,
            'lifestyle': self.lifestyle.to_dict() if self.lifestyle else None,
            'summary': {
                'utilization_percent': self.utilization_percent,
                'utilization_threshold': self.utilization_threshold,
                'interest_charges': self.interest_charges,
                'minimum_payment_only': self.minimum_payment_only,
                'is_overdue': self.is_overdue,
                'payment_frequency': self.payment_frequency,
                'median_pay_gap_days': self.median_pay_gap_days,
                'pay_gap_variability': self.pay_gap_variability,
                'cash_flow_buffer_months': self.cash_flow_buffer_months,
                'monthly_income': self.monthly_income,
                'savings_growth_percent': self.savings_growth_percent,
                'emergency_fund_months': self.emergency_fund_months,
                'savings_rate_percent': self.savings_rate_percent,
                'monthly_recurring_spend': self.monthly_recurring_spend,
                'subscription_share_percent': self.subscription_share_percent,
                'discretionary_share_percent': self.discretionary_share_percent,
            },
        }


def fetch_liabilities(accounts: List[Account], data_source: DataSource) -> Dict[str, Liability]:
    """Liability records for every non-depository account, keyed by account_id."""
    liabilities = {}
    for account in accounts:
        if is_checking_account(account) or is_savings_account(account):
            continue
        liability = data_source.get_liability(account.account_id)
        if liability is not None:
            liabilities[account.account_id] = liability
    return liabilities


def detect_signals(
    user_id: str,
    data_source: DataSource,
    window_days: Optional[int] = None,
    reference_date: Optional[DateLike] = None
) -> SignalBundle:
    """
    Calculate all behavioral signals for a user.

    Args:
        user_id: User ID to calculate signals for
        data_source: Data access collaborator
        window_days: Analysis window (defaults to settings.default_window_days)
        reference_date: End of the window (defaults to today)

    Returns:
        SignalBundle for the window

    Raises:
        UnknownUserError: If the user does not exist
    """
    if window_days is None:
        window_days = settings.default_window_days

    accounts = data_source.get_accounts(user_id)

    lookback_days = max(window_days, settings.expense_window_days, settings.payroll_lookback_days)
    start_date, end_date = get_date_range(lookback_days, reference_date)
    transactions = data_source.get_transactions(
        [a.account_id for a in accounts], start_date, end_date
    )
    liabilities = fetch_liabilities(accounts, data_source)

    credit_accounts = [a for a in accounts if is_credit_account(a)]
    checking_accounts = [a for a in accounts if is_checking_account(a)]

    credit = calculate_credit_signals(
        credit_accounts, liabilities, transactions, window_days, reference_date
    )
    monthly_expenses = calculate_monthly_expenses(
        transactions, settings.expense_window_days, reference_date
    )
    income = calculate_income_stability(
        checking_accounts, transactions, monthly_expenses,
        settings.payroll_lookback_days, reference_date
    )
    savings = calculate_savings_behavior(
        accounts, transactions, window_days, settings.expense_window_days, reference_date
    )
    subscriptions = detect_subscriptions(transactions, window_days, reference_date)

    bundle = SignalBundle(
        user_id=user_id,
        window_days=window_days,
        calculated_at=datetime.now(),
        credit=credit,
        income=income,
        savings=savings,
        subscriptions=subscriptions,
    )
    bundle.lifestyle = calculate_lifestyle_signals(
        transactions, bundle.monthly_income, window_days, reference_date
    )

    logger.info(
        "Signals detected",
        extra={'user_id': user_id, 'window_days': window_days, 'transactions': len(transactions)},
    )
    return bundle


def detect_signals_batch(
    user_ids: List[str],
    data_source: DataSource,
    window_days: Optional[int] = None,
    reference_date: Optional[DateLike] = None
) -> Dict[str, Optional[SignalBundle]]:
    """
    Calculate signals for multiple users; one user's failure never affects another.

    Returns:
        Dictionary mapping user_id to SignalBundle (None on failure)
    """
    results = {}

    for user_id in user_ids:
        try:
            results[user_id] = detect_signals(user_id, data_source, window_days, reference_date)
        except Exception:
            logger.exception("Error calculating signals", extra={'user_id': user_id})
            results[user_id] = None

    return results
