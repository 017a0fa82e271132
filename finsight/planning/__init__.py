"""
Debt Payoff Planning Module

Avalanche and snowball payoff simulation with surplus rollover.
"""

from .payoff import (
    simulate_payment_plan,
    simulate_payoff,
    compare_strategies,
    DebtPaymentPlan,
    DebtPayoff,
    Debt,
    PlanNotApplicable,
)

__all__ = [
    'simulate_payment_plan',
    'simulate_payoff',
    'compare_strategies',
    'DebtPaymentPlan',
    'DebtPayoff',
    'Debt',
    'PlanNotApplicable',
]
