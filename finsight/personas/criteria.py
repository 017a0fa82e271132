"""
Persona Criteria Module

Each check evaluates one persona against a signal bundle, independently of
the others. A check returns a PersonaMatch listing the criteria it satisfied,
or None if the persona does not apply.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from finsight.features.credit import AccountCreditSignals, UTILIZATION_HIGH, UTILIZATION_MEDIUM
from finsight.features.signals import SignalBundle

PERSONA_HIGH_UTILIZATION = 'high_utilization'
PERSONA_VARIABLE_INCOME = 'variable_income'
PERSONA_SUBSCRIPTION_HEAVY = 'subscription_heavy'
PERSONA_SAVINGS_BUILDER = 'savings_builder'
PERSONA_LIFESTYLE_CREEP = 'lifestyle_creep'

# High Utilization criteria that do not involve utilization itself
WEAK_CRITERIA = ('interest_charges', 'minimum_payment_only')

# Variable Income
MIN_MEDIAN_PAY_GAP_DAYS = 45
MAX_CASH_FLOW_BUFFER_MONTHS = 1.0

# Subscription Heavy
MIN_RECURRING_MERCHANTS = 3
MIN_MONTHLY_RECURRING_SPEND = 50.0
MIN_SUBSCRIPTION_SHARE_PERCENT = 10.0

# Savings Builder
MIN_SAVINGS_GROWTH_PERCENT = 2.0
MIN_MONTHLY_SAVINGS_INFLOW = 200.0

# Lifestyle Creep
MAX_SAVINGS_RATE_PERCENT = 5.0
MIN_DISCRETIONARY_SHARE_PERCENT = 30.0


@dataclass
class PersonaMatch:
    """A persona whose criteria were satisfied."""
    persona_type: str
    criteria_met: List[str] = field(default_factory=list)
    confidence: float = 0.0
    focus_account: Optional[AccountCreditSignals] = None


def calculate_confidence(criteria_count: int) -> float:
    """0.5 base plus 0.15 per satisfied criterion, capped at 1."""
    return round(min(1.0, 0.5 + 0.15 * criteria_count), 2)


def _match(persona_type: str, criteria: List[str], focus_account=None) -> PersonaMatch:
    return PersonaMatch(
        persona_type=persona_type,
        criteria_met=criteria,
        confidence=calculate_confidence(len(criteria)),
        focus_account=focus_account,
    )


def check_high_utilization(signals: SignalBundle) -> Optional[PersonaMatch]:
    """
    High Utilization: any credit card with utilization >= 50%, interest
    charges, minimum-payment-only behavior, or an overdue payment.

    Criteria are collected card by card. The card with the highest
    utilization is kept as the focus account.
    """
    if not signals.credit or not signals.credit.accounts:
        return None

    criteria = []
    for card in signals.credit.accounts:
        utilization = card.utilization.utilization
        if utilization >= UTILIZATION_HIGH:
            criteria.append(f"utilization_{utilization:.1f}%")
        if card.interest_charges.total_charges > 0:
            criteria.append('interest_charges')
        if card.minimum_payment_only:
            criteria.append('minimum_payment_only')
        if card.is_overdue:
            criteria.append('overdue')

    if not criteria:
        return None

    return _match(PERSONA_HIGH_UTILIZATION, criteria, signals.credit.focus_account)


def check_variable_income(signals: SignalBundle) -> Optional[PersonaMatch]:
    """Variable Income: median pay gap > 45 days AND cash-flow buffer < 1 month."""
    median_gap = signals.median_pay_gap_days
    buffer_months = signals.cash_flow_buffer_months

    if median_gap > MIN_MEDIAN_PAY_GAP_DAYS and buffer_months < MAX_CASH_FLOW_BUFFER_MONTHS:
        return _match(PERSONA_VARIABLE_INCOME, [
            f"median_pay_gap_{median_gap:.0f}d",
            f"cash_flow_buffer_{buffer_months:.1f}mo",
        ])
    return None


def check_subscription_heavy(signals: SignalBundle) -> Optional[PersonaMatch]:
    """Subscription Heavy: >= 3 recurring merchants AND (spend >= $50/mo OR share >= 10%)."""
    count = signals.recurring_merchant_count
    if count < MIN_RECURRING_MERCHANTS:
        return None

    criteria = [f"recurring_merchants_{count}"]
    monthly_spend = signals.monthly_recurring_spend
    share = signals.subscription_share_percent

    if monthly_spend >= MIN_MONTHLY_RECURRING_SPEND:
        criteria.append(f"monthly_recurring_spend_{monthly_spend:.2f}")
    if share >= MIN_SUBSCRIPTION_SHARE_PERCENT:
        criteria.append(f"subscription_share_{share:.1f}%")

    if len(criteria) == 1:
        return None
    return _match(PERSONA_SUBSCRIPTION_HEAVY, criteria)


def check_savings_builder(signals: SignalBundle) -> Optional[PersonaMatch]:
    """
    Savings Builder: (growth >= 2% OR net inflow >= $200/mo) AND every
    credit card under 30% utilization.

    With no credit cards the utilization condition holds trivially and
    all_utilizations_low is still recorded.
    """
    cards = signals.credit.accounts if signals.credit else []
    if any(card.utilization.utilization >= UTILIZATION_MEDIUM for card in cards):
        return None

    criteria = []
    growth = signals.savings_growth_percent
    inflow = signals.monthly_net_savings_inflow

    if growth >= MIN_SAVINGS_GROWTH_PERCENT:
        criteria.append(f"savings_growth_{growth:.1f}%")
    if inflow >= MIN_MONTHLY_SAVINGS_INFLOW:
        criteria.append(f"net_inflow_{inflow:.2f}/mo")

    if not criteria:
        return None

    criteria.append('all_utilizations_low')
    return _match(PERSONA_SAVINGS_BUILDER, criteria)


def check_lifestyle_creep(signals: SignalBundle, income_threshold: Optional[float]) -> Optional[PersonaMatch]:
    """
    Lifestyle Creep: income in the top quartile AND savings rate < 5% AND
    discretionary spending > 30% of income.

    Args:
        signals: Signal bundle
        income_threshold: 75th-percentile monthly income across all users
            (None when it could not be computed; the persona then never matches)
    """
    if income_threshold is None:
        return None

    income = signals.monthly_income
    savings_rate = signals.savings_rate_percent
    discretionary = signals.discretionary_share_percent

    if (income > 0 and income >= income_threshold
            and savings_rate < MAX_SAVINGS_RATE_PERCENT
            and discretionary > MIN_DISCRETIONARY_SHARE_PERCENT):
        return _match(PERSONA_LIFESTYLE_CREEP, [
            'income_top_quartile',
            f"savings_rate_{savings_rate:.1f}%",
            f"discretionary_share_{discretionary:.1f}%",
        ])
    return None
