"""
Credit Utilization Module

Analyzes credit card usage patterns and payment behavior.

Features computed:
- Per-card utilization (balance / limit) and threshold bucket
- Max utilization across all cards
- Minimum-payment-only detection
- Interest charges (actual or estimated from APR)
- Overdue status
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from finsight.exceptions import UnknownAccountError, WrongAccountTypeError
from finsight.ingest.schema import Account, Liability, Transaction
from .window_utils import (
    DateLike, contains_any, filter_transactions_by_window, to_date
)

logger = logging.getLogger(__name__)

CREDIT_ACCOUNT_TYPES = ('credit', 'credit_card')

# Threshold ladder (percent). 50-80 and 80-90 both bucket as "high".
UTILIZATION_MEDIUM = 30.0
UTILIZATION_HIGH = 50.0
UTILIZATION_VERY_HIGH = 80.0
UTILIZATION_CRITICAL = 90.0

PAYMENT_CATEGORY = 'CREDIT_CARD_PAYMENT'
MIN_PAYMENT_TOLERANCE = 0.05  # 5% of the minimum payment
MAX_CORROBORATING_PAYMENTS = 3

INTEREST_KEYWORDS = ['interest']


def is_credit_account(account: Account) -> bool:
    return (account.type or '').lower() in CREDIT_ACCOUNT_TYPES


def utilization_threshold(utilization: float) -> str:
    """
    Bucket a utilization percentage.

    Ties resolve toward the higher bucket: <30 low, [30,50) medium,
    [50,90) high, >=90 critical.
    """
    if utilization >= UTILIZATION_CRITICAL:
        return 'critical'
    if utilization >= UTILIZATION_VERY_HIGH:
        return 'high'
    if utilization >= UTILIZATION_HIGH:
        return 'high'
    if utilization >= UTILIZATION_MEDIUM:
        return 'medium'
    return 'low'


@dataclass
class UtilizationResult:
    """Utilization of a single credit account."""
    account_id: str
    balance: float
    limit: Optional[float]
    utilization: float  # Percent, rounded to 2 decimals
    threshold: str  # none, low, medium, high, critical
    is_high_utilization: bool  # utilization >= 50

    def to_dict(self) -> dict:
        return {
            'account_id': self.account_id,
            'balance': self.balance,
            'limit': self.limit,
            'utilization': self.utilization,
            'threshold': self.threshold,
            'is_high_utilization': self.is_high_utilization,
        }


@dataclass
class InterestCharges:
    """Interest charged on a credit account over a window."""
    total_charges: float
    monthly_average: float
    charge_count: int
    estimated: bool  # True when derived from APR rather than transactions

    def to_dict(self) -> dict:
        return {
            'total_charges': self.total_charges,
            'monthly_average': self.monthly_average,
            'charge_count': self.charge_count,
            'estimated': self.estimated,
        }


NO_INTEREST = InterestCharges(total_charges=0.0, monthly_average=0.0, charge_count=0, estimated=False)


@dataclass
class AccountCreditSignals:
    """All credit signals for one credit account."""
    account_id: str
    utilization: UtilizationResult
    minimum_payment_only: bool
    interest_charges: InterestCharges
    is_overdue: bool

    def to_dict(self) -> dict:
        return {
            'account_id': self.account_id,
            'utilization': self.utilization.to_dict(),
            'minimum_payment_only': self.minimum_payment_only,
            'interest_charges': self.interest_charges.to_dict(),
            'is_overdue': self.is_overdue,
        }


@dataclass
class CreditSignals:
    """Credit utilization and payment behavior signals across all cards."""
    accounts: List[AccountCreditSignals] = field(default_factory=list)
    window_days: int = 90

    @property
    def num_credit_cards(self) -> int:
        return len(self.accounts)

    @property
    def focus_account(self) -> Optional[AccountCreditSignals]:
        """The card with the highest utilization (first one on ties)."""
        if not self.accounts:
            return None
        return max(self.accounts, key=lambda a: a.utilization.utilization)

    @property
    def max_utilization_percent(self) -> float:
        focus = self.focus_account
        return focus.utilization.utilization if focus else 0.0

    @property
    def average_utilization_percent(self) -> float:
        if not self.accounts:
            return 0.0
        return sum(a.utilization.utilization for a in self.accounts) / len(self.accounts)

    @property
    def any_overdue(self) -> bool:
        return any(a.is_overdue for a in self.accounts)

    @property
    def any_minimum_payment_only(self) -> bool:
        return any(a.minimum_payment_only for a in self.accounts)

    @property
    def total_interest_charges(self) -> float:
        return round(sum(a.interest_charges.total_charges for a in self.accounts), 2)

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            'accounts': [a.to_dict() for a in self.accounts],
            'num_credit_cards': self.num_credit_cards,
            'max_utilization_percent': self.max_utilization_percent,
            'any_overdue': self.any_overdue,
            'any_minimum_payment_only': self.any_minimum_payment_only,
            'total_interest_charges': self.total_interest_charges,
            'window_days': self.window_days,
        }


def calculate_utilization(account: Account) -> UtilizationResult:
    """
    Calculate utilization for a single credit account.

    Args:
        account: Credit account

    Returns:
        UtilizationResult; a missing or zero limit yields 0% and bucket "none"

    Raises:
        WrongAccountTypeError: If the account is not a credit account
    """
    if not is_credit_account(account):
        raise WrongAccountTypeError(account.account_id, account.type, "a credit account")

    balances = account.balances
    balance = balances.current or 0.0
    limit = balances.limit

    if not limit:
        return UtilizationResult(
            account_id=account.account_id,
            balance=balance,
            limit=limit,
            utilization=0.0,
            threshold='none',
            is_high_utilization=False,
        )

    utilization = round(balance / limit * 100, 2)
    return UtilizationResult(
        account_id=account.account_id,
        balance=balance,
        limit=limit,
        utilization=utilization,
        threshold=utilization_threshold(utilization),
        is_high_utilization=utilization >= UTILIZATION_HIGH,
    )


def calculate_account_utilization(account_id: str, data_source) -> UtilizationResult:
    """
    Look up an account and calculate its utilization.

    Raises:
        UnknownAccountError: If the account does not exist
        WrongAccountTypeError: If the account is not a credit account
    """
    account = data_source.get_account(account_id)
    if account is None:
        raise UnknownAccountError(account_id)
    return calculate_utilization(account)


def _within_tolerance(amount: float, minimum: float) -> bool:
    return abs(abs(amount) - minimum) <= minimum * MIN_PAYMENT_TOLERANCE


def detect_minimum_payment_only(
    liability: Optional[Liability],
    transactions: List[Transaction]
) -> bool:
    """
    Detect if the user is only making minimum payments on a card.

    The liability's last payment must be within 5% of the minimum payment.
    If payment transactions exist, the most recent (up to 3) must all fall
    in the same band as well.

    Args:
        liability: Liability record for the card (None -> False)
        transactions: Transactions on the card within the analysis window

    Returns:
        True if minimum-payment-only behavior detected
    """
    if liability is None:
        return False

    minimum = liability.minimum_payment_amount
    last_payment = liability.last_payment_amount
    if not minimum or minimum <= 0 or last_payment is None:
        return False

    if not _within_tolerance(last_payment, minimum):
        return False

    payments = [
        t for t in transactions
        if (t.category_detailed or '').upper() == PAYMENT_CATEGORY
    ]
    recent = sorted(payments, key=lambda t: to_date(t.date), reverse=True)[:MAX_CORROBORATING_PAYMENTS]

    return all(_within_tolerance(t.amount, minimum) for t in recent)


def calculate_interest_charges(
    account: Account,
    liability: Optional[Liability],
    transactions: List[Transaction],
    window_days: int
) -> InterestCharges:
    """
    Calculate interest charged on a credit account over the window.

    Actual interest transactions (merchant or category containing "interest")
    are preferred. Without any, interest is estimated from the APR as
    balance * APR/100/12 * (window_days/30).

    Args:
        account: Credit account
        liability: Liability record (None or no APR -> zero interest)
        transactions: Transactions on the account within the window
        window_days: Size of the window in days

    Returns:
        InterestCharges with totals rounded to 2 decimals
    """
    if liability is None or not liability.apr_percentage:
        return NO_INTEREST

    months = window_days / 30

    charges = [
        t for t in transactions
        if t.amount < 0 and (
            contains_any(t.merchant_name, INTEREST_KEYWORDS)
            or contains_any(t.category_primary, INTEREST_KEYWORDS)
            or contains_any(t.category_detailed, INTEREST_KEYWORDS)
        )
    ]

    if charges:
        total = sum(abs(t.amount) for t in charges)
        return InterestCharges(
            total_charges=round(total, 2),
            monthly_average=round(total / months, 2) if months else 0.0,
            charge_count=len(charges),
            estimated=False,
        )

    balance = account.balances.current or 0.0
    if balance <= 0:
        return NO_INTEREST

    total = balance * liability.apr_percentage / 100 / 12 * months
    return InterestCharges(
        total_charges=round(total, 2),
        monthly_average=round(total / months, 2) if months else 0.0,
        charge_count=0,
        estimated=True,
    )


def check_overdue_status(liability: Optional[Liability], reference_date: Optional[DateLike] = None) -> bool:
    """Overdue if the liability is flagged overdue or its next due date has passed."""
    if liability is None:
        return False
    if liability.is_overdue:
        return True
    if liability.next_payment_due_date is None:
        return False
    today = to_date(reference_date) if reference_date is not None else date.today()
    return to_date(liability.next_payment_due_date) < today


def get_credit_signals(
    account: Account,
    liability: Optional[Liability],
    transactions: List[Transaction],
    window_days: int,
    reference_date: Optional[DateLike] = None
) -> AccountCreditSignals:
    """
    Calculate all credit signals for a single card.

    Args:
        account: Credit account
        liability: Liability record for the account, if any
        transactions: Transactions on the account (any range; filtered to window)
        window_days: Size of the window in days
        reference_date: End of the window (defaults to today)

    Returns:
        AccountCreditSignals for the card
    """
    window_transactions = filter_transactions_by_window(
        [t for t in transactions if t.account_id == account.account_id],
        window_days,
        reference_date,
    )

    return AccountCreditSignals(
        account_id=account.account_id,
        utilization=calculate_utilization(account),
        minimum_payment_only=detect_minimum_payment_only(liability, window_transactions),
        interest_charges=calculate_interest_charges(account, liability, window_transactions, window_days),
        is_overdue=check_overdue_status(liability, reference_date),
    )


def calculate_credit_signals(
    credit_accounts: List[Account],
    liabilities: Dict[str, Liability],
    transactions: List[Transaction],
    window_days: int,
    reference_date: Optional[DateLike] = None
) -> CreditSignals:
    """
    Calculate credit signals for every credit account of a user.

    Args:
        credit_accounts: Credit accounts
        liabilities: Liability records keyed by account_id
        transactions: Transactions (any accounts; each card only sees its own)
        window_days: Size of the window in days
        reference_date: End of the window (defaults to today)

    Returns:
        CreditSignals with one entry per credit account
    """
    accounts = [
        get_credit_signals(
            account,
            liabilities.get(account.account_id),
            transactions,
            window_days,
            reference_date,
        )
        for account in credit_accounts
    ]

    signals = CreditSignals(accounts=accounts, window_days=window_days)
    logger.debug(
        "Calculated credit signals",
        extra={
            'num_credit_cards': signals.num_credit_cards,
            'max_utilization_percent': signals.max_utilization_percent,
        },
    )
    return signals
