"""
Subscription Detection Module

Detects recurring payment patterns (subscriptions) from transaction data.

Features computed:
- Recurring merchants (>=3 charges with consistent amounts)
- Cadence per merchant (weekly, biweekly, monthly, irregular)
- Monthly recurring spend
- Subscription share of total spend
"""

import logging
import statistics
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from finsight.ingest.schema import Transaction
from .window_utils import DateLike, day_gaps, filter_transactions_by_window, to_date

logger = logging.getLogger(__name__)

MIN_OCCURRENCES = 3
MAX_AMOUNT_CV = 0.10
CADENCE_RATIO = 0.6
WEEKLY_BAND = (6, 8)
BIWEEKLY_BAND = (13, 15)
MONTHLY_BAND = (28, 31)
WEEKS_PER_MONTH = 4.33


@dataclass
class RecurringMerchant:
    """A merchant charging the user on a regular basis."""
    merchant_name: str
    transaction_count: int
    average_amount: float
    total_spend: float
    coefficient_of_variation: float
    cadence: str  # weekly, biweekly, monthly, irregular

    def to_dict(self) -> dict:
        return {
            'merchant_name': self.merchant_name,
            'transaction_count': self.transaction_count,
            'average_amount': self.average_amount,
            'total_spend': self.total_spend,
            'coefficient_of_variation': self.coefficient_of_variation,
            'cadence': self.cadence,
        }


@dataclass
class SubscriptionSignals:
    """Subscription-related behavioral signals."""
    recurring_merchants: List[RecurringMerchant] = field(default_factory=list)
    monthly_recurring_spend: float = 0.0
    total_recurring_spend: float = 0.0
    total_spend: float = 0.0
    subscription_share_percent: float = 0.0
    window_days: int = 90

    @property
    def recurring_merchant_count(self) -> int:
        return len(self.recurring_merchants)

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            'recurring_merchant_count': self.recurring_merchant_count,
            'recurring_merchants': [m.to_dict() for m in self.recurring_merchants],
            'monthly_recurring_spend': self.monthly_recurring_spend,
            'total_recurring_spend': self.total_recurring_spend,
            'total_spend': self.total_spend,
            'subscription_share_percent': self.subscription_share_percent,
            'window_days': self.window_days,
        }


def coefficient_of_variation(amounts: List[float]) -> float:
    """Population standard deviation divided by the mean (0 for a zero mean)."""
    if not amounts:
        return 0.0
    mean = statistics.fmean(amounts)
    if mean == 0:
        return 0.0
    return statistics.pstdev(amounts) / mean


def _ratio_in_band(intervals: List[int], band: tuple) -> float:
    low, high = band
    return sum(1 for i in intervals if low <= i <= high) / len(intervals)


def detect_cadence(dates: List[DateLike]) -> str:
    """
    Infer the cadence of a series of charges.

    Dates are sorted first, so the result does not depend on input order.

    Args:
        dates: Charge dates in any order

    Returns:
        weekly, biweekly, monthly or irregular
    """
    intervals = day_gaps(dates)
    if not intervals:
        return 'irregular'

    if _ratio_in_band(intervals, WEEKLY_BAND) >= CADENCE_RATIO:
        return 'weekly'
    if _ratio_in_band(intervals, MONTHLY_BAND) >= CADENCE_RATIO:
        return 'monthly'
    if _ratio_in_band(intervals, BIWEEKLY_BAND) >= CADENCE_RATIO:
        return 'biweekly'

    average = statistics.fmean(intervals)
    if WEEKLY_BAND[0] <= average <= WEEKLY_BAND[1]:
        return 'weekly'
    if MONTHLY_BAND[0] <= average <= MONTHLY_BAND[1]:
        return 'monthly'

    return 'irregular'


def _merchant_key(name: str) -> str:
    return name.strip().lower()


def find_recurring_merchants(transactions: List[Transaction]) -> List[RecurringMerchant]:
    """
    Group outflows by merchant and keep the ones that look like subscriptions.

    A merchant is recurring with at least 3 charges whose amounts vary by no
    more than 10% (coefficient of variation).
    """
    groups: Dict[str, List[Transaction]] = defaultdict(list)
    display_names: Dict[str, str] = {}

    for txn in transactions:
        if txn.amount >= 0 or not txn.merchant_name or not txn.merchant_name.strip():
            continue
        key = _merchant_key(txn.merchant_name)
        groups[key].append(txn)
        display_names.setdefault(key, txn.merchant_name.strip())

    recurring = []
    for key in sorted(groups):
        txns = groups[key]
        if len(txns) < MIN_OCCURRENCES:
            continue

        amounts = [abs(t.amount) for t in txns]
        cv = coefficient_of_variation(amounts)
        if cv > MAX_AMOUNT_CV:
            continue

        recurring.append(RecurringMerchant(
            merchant_name=display_names[key],
            transaction_count=len(txns),
            average_amount=round(statistics.fmean(amounts), 2),
            total_spend=round(sum(amounts), 2),
            coefficient_of_variation=round(cv, 4),
            cadence=detect_cadence([to_date(t.date) for t in txns]),
        ))

    return recurring


def calculate_monthly_recurring_spend(merchants: List[RecurringMerchant]) -> float:
    """Monthly spend across recurring merchants; biweekly counts as monthly, irregular is excluded."""
    total = 0.0
    for merchant in merchants:
        if merchant.cadence in ('monthly', 'biweekly'):
            total += merchant.average_amount
        elif merchant.cadence == 'weekly':
            total += merchant.average_amount * WEEKS_PER_MONTH
    return round(total, 2)


def detect_subscriptions(
    transactions: List[Transaction],
    window_days: int = 90,
    reference_date: Optional[DateLike] = None
) -> SubscriptionSignals:
    """
    Detect recurring subscriptions within a window.

    Args:
        transactions: All user transactions
        window_days: Size of the window in days
        reference_date: End of the window (defaults to today)

    Returns:
        SubscriptionSignals object with detected patterns
    """
    window_transactions = filter_transactions_by_window(transactions, window_days, reference_date)
    merchants = find_recurring_merchants(window_transactions)

    total_spend = sum(abs(t.amount) for t in window_transactions if t.amount < 0)
    total_recurring = sum(m.total_spend for m in merchants)
    share = total_recurring / total_spend * 100 if total_spend > 0 else 0.0

    signals = SubscriptionSignals(
        recurring_merchants=merchants,
        monthly_recurring_spend=calculate_monthly_recurring_spend(merchants),
        total_recurring_spend=round(total_recurring, 2),
        total_spend=round(total_spend, 2),
        subscription_share_percent=round(share, 2),
        window_days=window_days,
    )
    logger.debug(
        "Detected subscriptions",
        extra={'recurring_merchant_count': signals.recurring_merchant_count},
    )
    return signals
