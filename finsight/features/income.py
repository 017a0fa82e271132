"""
Income Stability Module

Analyzes payroll patterns and income consistency.

Features computed:
- Payroll ACH deposit detection
- Payment frequency (weekly, biweekly, twice-monthly, monthly, irregular)
- Median pay gap and pay gap variability
- Average monthly income
- Cash-flow buffer in months
- Overall income stability rating
"""

import logging
import statistics
from dataclasses import dataclass
from typing import List, Optional, Tuple

from finsight.ingest.schema import Account, Transaction
from .window_utils import (
    DAYS_PER_MONTH, DateLike, contains_any, day_gaps,
    filter_transactions_by_window, sort_by_date, to_date
)

logger = logging.getLogger(__name__)

PAYROLL_KEYWORDS = ['payroll', 'salary', 'direct deposit', 'wages', 'paycheck']
EMPLOYER_KEYWORDS = ['llc', 'inc', 'corp', 'company', 'employer']
ACH_CHANNEL_KEYWORDS = ['ach', 'deposit']
TRANSFER_KEYWORDS = ['transfer', 'payment', 'wire']

# (frequency, min gap, max gap, share of gaps that must fall in the band)
FREQUENCY_BANDS = [
    ('weekly', 6, 8, 0.6),
    ('biweekly', 13, 15, 0.6),
    ('twice_monthly', 14, 16, 0.5),
    ('monthly', 28, 31, 0.6),
]

# Deposits per month, used to scale a single observed paycheck
MONTHLY_MULTIPLIERS = {
    'weekly': 4.33,
    'biweekly': 2.17,
    'twice_monthly': 2.0,
    'monthly': 1.0,
}


@dataclass
class IncomeSignals:
    """Income stability and payroll signals."""
    payroll_count: int  # Number of payroll deposits detected
    total_income: float  # Sum of payroll deposits
    average_income: float  # Estimated monthly income from payroll
    payment_frequency: str  # weekly, biweekly, twice_monthly, monthly, irregular
    median_pay_gap_days: float  # Median days between paychecks
    pay_gap_variability: float  # Population std dev of pay gaps (days)
    monthly_expenses: float  # Trailing average monthly expenses
    checking_balance: float  # Total checking balance
    cash_flow_buffer_months: float  # Months of expenses covered by checking
    income_stability: str  # stable, moderate, unstable
    window_days: int

    @property
    def payroll_detected(self) -> bool:
        return self.payroll_count > 0

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            'payroll_count': self.payroll_count,
            'payroll_detected': self.payroll_detected,
            'total_income': self.total_income,
            'average_income': self.average_income,
            'payment_frequency': self.payment_frequency,
            'median_pay_gap_days': self.median_pay_gap_days,
            'pay_gap_variability': self.pay_gap_variability,
            'monthly_expenses': self.monthly_expenses,
            'checking_balance': self.checking_balance,
            'cash_flow_buffer_months': self.cash_flow_buffer_months,
            'income_stability': self.income_stability,
            'window_days': self.window_days,
        }


def is_payroll_transaction(txn: Transaction) -> bool:
    """
    Classify an inflow as payroll.

    Payroll arrives over an ACH/deposit channel or from a merchant that looks
    like payroll or an employer. Anything transfer-like is never payroll.
    """
    if txn.amount is None or txn.amount <= 0:
        return False

    if contains_any(txn.merchant_name, TRANSFER_KEYWORDS):
        return False

    if contains_any(txn.payment_channel, ACH_CHANNEL_KEYWORDS):
        return True

    return contains_any(txn.merchant_name, PAYROLL_KEYWORDS + EMPLOYER_KEYWORDS)


def detect_payroll_deposits(
    checking_accounts: List[Account],
    transactions: List[Transaction],
    lookback_days: int = 180,
    reference_date: Optional[DateLike] = None
) -> List[Transaction]:
    """
    Find payroll deposits on checking accounts.

    Args:
        checking_accounts: Checking accounts
        transactions: All user transactions
        lookback_days: How far back to look for paychecks
        reference_date: End of the lookback (defaults to today)

    Returns:
        Payroll transactions sorted by date
    """
    checking_ids = {a.account_id for a in checking_accounts}
    candidates = filter_transactions_by_window(
        [t for t in transactions if t.account_id in checking_ids],
        lookback_days,
        reference_date,
    )
    return sort_by_date(t for t in candidates if is_payroll_transaction(t))


def calculate_pay_gaps(payroll_transactions: List[Transaction]) -> List[int]:
    """Day gaps between consecutive payroll deposits."""
    return day_gaps(t.date for t in payroll_transactions)


def detect_payment_frequency(gaps: List[int]) -> str:
    """
    Infer pay frequency from gaps between paychecks.

    Each band is tried in order (weekly, biweekly, twice-monthly, monthly):
    the band matches if enough gaps fall inside it, or if the median gap
    does. Fewer than two paychecks (no gaps) is irregular.

    Args:
        gaps: Day gaps between consecutive paychecks

    Returns:
        Frequency label
    """
    if not gaps:
        return 'irregular'

    median_gap = statistics.median(gaps)

    for frequency, low, high, min_ratio in FREQUENCY_BANDS:
        in_band = sum(1 for g in gaps if low <= g <= high)
        if in_band / len(gaps) >= min_ratio or low <= median_gap <= high:
            return frequency

    return 'irregular'


def calculate_pay_gap_variability(gaps: List[int]) -> Tuple[float, float]:
    """
    Median gap and population standard deviation of gaps.

    Returns:
        Tuple of (median_gap_days, variability), both rounded to 2 decimals
    """
    if not gaps:
        return 0.0, 0.0
    median_gap = statistics.median(gaps)
    variability = statistics.pstdev(gaps) if len(gaps) > 1 else 0.0
    return round(float(median_gap), 2), round(variability, 2)


def calculate_average_income(payroll_transactions: List[Transaction], frequency: str) -> float:
    """
    Estimate monthly income from payroll deposits.

    With several deposits, the total is spread over the months between the
    first and last deposit. A single deposit is scaled by the frequency.
    """
    if not payroll_transactions:
        return 0.0

    total = sum(t.amount for t in payroll_transactions)
    ordered = sort_by_date(payroll_transactions)
    span_days = (to_date(ordered[-1].date) - to_date(ordered[0].date)).days

    if len(ordered) > 1 and span_days > 0:
        return round(total / (span_days / DAYS_PER_MONTH), 2)

    return round(total * MONTHLY_MULTIPLIERS.get(frequency, 1.0), 2)


def calculate_cash_flow_buffer(checking_balance: float, monthly_expenses: float) -> float:
    """Months of expenses covered by checking balances (0 when either is 0)."""
    if checking_balance <= 0 or monthly_expenses <= 0:
        return 0.0
    return round(checking_balance / monthly_expenses, 2)


def determine_income_stability(median_gap: float, variability: float, buffer_months: float) -> str:
    """
    Rate income stability.

    stable: regular pay (7-31 day median), low variability, at least a month of buffer
    unstable: very long gaps, or erratic pay without a buffer
    """
    if 7 <= median_gap <= 31 and variability <= 5 and buffer_months >= 1:
        return 'stable'
    if median_gap > 45 or (variability > 10 and buffer_months < 1):
        return 'unstable'
    return 'moderate'


def calculate_income_stability(
    checking_accounts: List[Account],
    all_transactions: List[Transaction],
    monthly_expenses: float,
    window_days: int = 180,
    reference_date: Optional[DateLike] = None
) -> IncomeSignals:
    """
    Calculate income stability metrics.

    Args:
        checking_accounts: Checking accounts
        all_transactions: All user transactions
        monthly_expenses: Trailing 6-month average monthly expenses
        window_days: Payroll lookback in days
        reference_date: End of the window (defaults to today)

    Returns:
        IncomeSignals object with calculated metrics
    """
    payroll = detect_payroll_deposits(checking_accounts, all_transactions, window_days, reference_date)
    gaps = calculate_pay_gaps(payroll)

    frequency = detect_payment_frequency(gaps)
    median_gap, variability = calculate_pay_gap_variability(gaps)
    average_income = calculate_average_income(payroll, frequency)

    checking_balance = sum((a.balances.current or 0.0) for a in checking_accounts)
    buffer_months = calculate_cash_flow_buffer(checking_balance, monthly_expenses)

    signals = IncomeSignals(
        payroll_count=len(payroll),
        total_income=round(sum(t.amount for t in payroll), 2),
        average_income=average_income,
        payment_frequency=frequency,
        median_pay_gap_days=median_gap,
        pay_gap_variability=variability,
        monthly_expenses=monthly_expenses,
        checking_balance=round(checking_balance, 2),
        cash_flow_buffer_months=buffer_months,
        income_stability=determine_income_stability(median_gap, variability, buffer_months),
        window_days=window_days,
    )
    logger.debug(
        "Calculated income signals",
        extra={'payroll_count': signals.payroll_count, 'payment_frequency': frequency},
    )
    return signals
