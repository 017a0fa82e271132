"""
Debt Payoff Planning Module

Builds month-by-month debt payoff plans under two orderings:
- avalanche: highest APR first
- snowball: smallest balance first

Every open debt receives its minimum payment each month. The first open debt
in the ordering also receives the monthly surplus plus the minimums released
by debts already paid off. Money left over in a payoff month flows on to the
next open debt.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from finsight.config import settings
from finsight.features.signals import SignalBundle, detect_signals
from finsight.features.window_utils import DateLike
from finsight.ingest.repository import DataSource

logger = logging.getLogger(__name__)

STRATEGIES = ('avalanche', 'snowball')
DEBT_LIABILITY_TYPES = ('credit_card', 'student_loan')
PAID_OFF_THRESHOLD = 0.01

NO_ELIGIBLE_DEBTS = 'no_eligible_debts'
NO_SURPLUS = 'no_surplus'


@dataclass
class Debt:
    """A debt eligible for payoff planning."""
    liability_id: str
    account_id: str
    type: str
    balance: float
    apr: float
    minimum_payment: float
    account_name: Optional[str] = None


@dataclass
class DebtPayoff:
    """Schedule for one debt within a plan."""
    liability_id: str
    account_id: str
    type: str
    balance: float
    apr: float
    minimum_payment: float
    monthly_payment: float  # Payment once this debt is the focus of the plan
    payoff_month: int
    total_interest: float
    total_paid: float
    converged: bool
    account_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'liability_id': self.liability_id,
            'account_id': self.account_id,
            'account_name': self.account_name,
            'type': self.type,
            'balance': self.balance,
            'apr': self.apr,
            'minimum_payment': self.minimum_payment,
            'monthly_payment': round(self.monthly_payment, 2),
            'payoff_month': self.payoff_month,
            'total_interest': round(self.total_interest, 2),
            'total_paid': round(self.total_paid, 2),
            'converged': self.converged,
        }


@dataclass
class DebtPaymentPlan:
    """A complete payoff plan."""
    strategy: str
    debts: List[DebtPayoff]
    total_debt: float
    total_interest: float
    total_interest_saved: float
    payoff_months: int
    monthly_surplus: float
    timeline: List[dict] = field(default_factory=list)
    applicable: bool = True

    @property
    def converged(self) -> bool:
        return all(d.converged for d in self.debts)

    def to_dict(self) -> dict:
        return {
            'applicable': True,
            'strategy': self.strategy,
            'debts': [d.to_dict() for d in self.debts],
            'total_debt': round(self.total_debt, 2),
            'total_interest': round(self.total_interest, 2),
            'total_interest_saved': round(self.total_interest_saved, 2),
            'payoff_months': self.payoff_months,
            'monthly_surplus': round(self.monthly_surplus, 2),
            'converged': self.converged,
            'timeline': self.timeline,
        }


@dataclass
class PlanNotApplicable:
    """A payoff plan cannot be produced for this user."""
    reason: str  # no_eligible_debts or no_surplus
    message: str
    applicable: bool = False

    def to_dict(self) -> dict:
        return {'applicable': False, 'reason': self.reason, 'message': self.message}


def calculate_monthly_interest(balance: float, apr: float) -> float:
    return balance * apr / 100 / 12


def order_debts(debts: List[Debt], strategy: str) -> List[Debt]:
    """Order debts for a strategy (stable for ties)."""
    if strategy == 'avalanche':
        return sorted(debts, key=lambda d: d.apr, reverse=True)
    if strategy == 'snowball':
        return sorted(debts, key=lambda d: d.balance)
    raise ValueError(f"Unknown strategy '{strategy}', expected one of {STRATEGIES}")


def simulate_fixed_payment(balance: float, apr: float, payment: float, max_months: Optional[int] = None) -> dict:
    """
    Pay a single debt with a fixed monthly payment.

    Returns:
        Dictionary with months, total_interest, total_paid and converged
    """
    if max_months is None:
        max_months = settings.max_payoff_months

    remaining = balance
    total_interest = 0.0
    months = 0

    while remaining > PAID_OFF_THRESHOLD and months < max_months:
        interest = calculate_monthly_interest(remaining, apr)
        total_interest += interest
        principal = min(payment - interest, remaining)
        remaining -= principal
        months += 1

    return {
        'months': months,
        'total_interest': total_interest,
        'total_paid': balance + total_interest,
        'converged': remaining <= PAID_OFF_THRESHOLD,
    }


def simulate_payoff(
    debts: List[Debt],
    monthly_surplus: float,
    strategy: str = 'avalanche',
    max_months: Optional[int] = None
) -> DebtPaymentPlan:
    """
    Simulate paying off debts month by month.

    Args:
        debts: Debts to pay off (balance > 0)
        monthly_surplus: Money available beyond the minimum payments (>= 0)
        strategy: avalanche or snowball
        max_months: Hard cap on simulated months

    Returns:
        DebtPaymentPlan with per-debt schedule, totals and timeline
    """
    if max_months is None:
        max_months = settings.max_payoff_months
    if monthly_surplus < 0:
        raise ValueError("monthly_surplus must be non-negative")

    ordered = order_debts(debts, strategy)

    balances: Dict[str, float] = {d.liability_id: d.balance for d in ordered}
    interest_paid: Dict[str, float] = {d.liability_id: 0.0 for d in ordered}
    total_paid: Dict[str, float] = {d.liability_id: 0.0 for d in ordered}
    payoff_month: Dict[str, Optional[int]] = {d.liability_id: None for d in ordered}

    timeline = []
    month = 0

    while month < max_months and any(payoff_month[d.liability_id] is None for d in ordered):
        month += 1
        open_debts = [d for d in ordered if payoff_month[d.liability_id] is None]

        # Surplus plus minimums freed up by debts already paid off
        extra = monthly_surplus + sum(
            d.minimum_payment for d in ordered if payoff_month[d.liability_id] is not None
        )
        payments = {}

        for debt in open_debts:
            key = debt.liability_id
            interest = calculate_monthly_interest(balances[key], debt.apr)
            interest_paid[key] += interest
            balances[key] += interest

            payment = min(debt.minimum_payment, balances[key])
            balances[key] -= payment
            payments[key] = payment
            extra += debt.minimum_payment - payment

        for debt in open_debts:
            if extra <= 0:
                break
            key = debt.liability_id
            payment = min(extra, balances[key])
            balances[key] -= payment
            payments[key] += payment
            extra -= payment

        entries = []
        for debt in open_debts:
            key = debt.liability_id
            total_paid[key] += payments[key]
            if balances[key] <= PAID_OFF_THRESHOLD:
                balances[key] = 0.0
                payoff_month[key] = month
            entries.append({
                'liability_id': key,
                'payment': round(payments[key], 2),
                'remaining_balance': round(balances[key], 2),
            })

        timeline.append({
            'month': month,
            'total_payment': round(sum(payments.values()), 2),
            'debts': entries,
        })

    schedule = []
    released_minimums = 0.0
    for debt in ordered:
        key = debt.liability_id
        converged = payoff_month[key] is not None
        schedule.append(DebtPayoff(
            liability_id=key,
            account_id=debt.account_id,
            account_name=debt.account_name,
            type=debt.type,
            balance=debt.balance,
            apr=debt.apr,
            minimum_payment=debt.minimum_payment,
            monthly_payment=debt.minimum_payment + monthly_surplus + released_minimums,
            payoff_month=payoff_month[key] if converged else month,
            total_interest=interest_paid[key],
            total_paid=total_paid[key],
            converged=converged,
        ))
        released_minimums += debt.minimum_payment

    minimum_only_interest = sum(
        simulate_fixed_payment(d.balance, d.apr, d.minimum_payment, max_months)['total_interest']
        for d in ordered
    )
    total_interest = sum(interest_paid.values())

    plan = DebtPaymentPlan(
        strategy=strategy,
        debts=schedule,
        total_debt=sum(d.balance for d in ordered),
        total_interest=total_interest,
        total_interest_saved=round(minimum_only_interest - total_interest, 2),
        payoff_months=max((p.payoff_month for p in schedule), default=0),
        monthly_surplus=monthly_surplus,
        timeline=timeline,
    )
    if not plan.converged:
        logger.warning(
            "Payoff plan hit the month cap",
            extra={'strategy': strategy, 'max_months': max_months},
        )
    return plan


def get_user_debts(user_id: str, data_source: DataSource) -> List[Debt]:
    """
    Credit card and student loan liabilities with a balance and an APR.

    Raises:
        UnknownUserError: If the user does not exist
    """
    debts = []
    for account in data_source.get_accounts(user_id):
        liability = data_source.get_liability(account.account_id)
        if liability is None or liability.type not in DEBT_LIABILITY_TYPES:
            continue

        balance = liability.last_statement_balance or 0.0
        apr = liability.apr_percentage or liability.interest_rate or 0.0
        if balance <= 0 or apr <= 0:
            continue

        debts.append(Debt(
            liability_id=liability.liability_id,
            account_id=account.account_id,
            type=liability.type,
            balance=balance,
            apr=apr,
            minimum_payment=liability.minimum_payment_amount or 0.0,
            account_name=account.subtype,
        ))

    # Largest balance first before strategy ordering
    return sorted(debts, key=lambda d: d.balance, reverse=True)


def calculate_available_cash_flow(
    signals: SignalBundle,
    debts: List[Debt],
    safety_buffer: Optional[float] = None
) -> float:
    """
    Monthly money available for extra debt payments.

    (income - expenses - minimum payments), less a safety buffer
    (20% by default), floored at zero.
    """
    if safety_buffer is None:
        safety_buffer = settings.payoff_safety_buffer

    total_minimums = sum(d.minimum_payment for d in debts)
    available = signals.monthly_income - signals.monthly_expenses - total_minimums
    return max(0.0, available * (1 - safety_buffer))


def simulate_payment_plan(
    user_id: str,
    data_source: DataSource,
    strategy: str = 'avalanche',
    reference_date: Optional[DateLike] = None,
    safety_buffer: Optional[float] = None
) -> Union[DebtPaymentPlan, PlanNotApplicable]:
    """
    Build a payoff plan for a user.

    Args:
        user_id: User ID
        data_source: Data access collaborator
        strategy: avalanche or snowball
        reference_date: End of the signal window
        safety_buffer: Share of free cash flow held back

    Returns:
        DebtPaymentPlan, or PlanNotApplicable when the user has no eligible
        debts or no positive surplus

    Raises:
        UnknownUserError: If the user does not exist
        ValueError: If the strategy is unknown
    """
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown strategy '{strategy}', expected one of {STRATEGIES}")

    debts = get_user_debts(user_id, data_source)
    if not debts:
        return PlanNotApplicable(NO_ELIGIBLE_DEBTS, "No debts with a balance and APR found")

    signals = detect_signals(user_id, data_source, reference_date=reference_date)
    surplus = calculate_available_cash_flow(signals, debts, safety_buffer)
    if surplus <= 0:
        return PlanNotApplicable(NO_SURPLUS, "No cash flow available beyond minimum payments")

    plan = simulate_payoff(debts, surplus, strategy)
    logger.info(
        "Payment plan generated",
        extra={
            'user_id': user_id,
            'strategy': strategy,
            'payoff_months': plan.payoff_months,
            'total_interest_saved': plan.total_interest_saved,
        },
    )
    return plan


def compare_strategies(
    user_id: str,
    data_source: DataSource,
    reference_date: Optional[DateLike] = None
) -> Union[Dict[str, DebtPaymentPlan], PlanNotApplicable]:
    """Avalanche and snowball plans side by side."""
    plans = {}
    for strategy in STRATEGIES:
        plan = simulate_payment_plan(user_id, data_source, strategy, reference_date)
        if isinstance(plan, PlanNotApplicable):
            return plan
        plans[strategy] = plan
    return plans
