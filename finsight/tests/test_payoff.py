"""
Unit Tests for Debt Payoff Planning

Tests strategy ordering, the month-by-month simulation and the
user-level plan entry points.
"""

import pytest

from finsight.exceptions import UnknownUserError
from finsight.ingest.repository import InMemoryDataSource
from finsight.planning.payoff import (
    NO_ELIGIBLE_DEBTS,
    NO_SURPLUS,
    Debt,
    DebtPaymentPlan,
    PlanNotApplicable,
    calculate_available_cash_flow,
    compare_strategies,
    get_user_debts,
    order_debts,
    simulate_fixed_payment,
    simulate_payment_plan,
    simulate_payoff,
)
from finsight.tests.factories import (
    create_account,
    create_bundle,
    create_credit_account,
    create_income_signals,
    create_liability,
    create_savings_signals,
)


def create_debt(liability_id: str, balance: float, apr: float, minimum_payment: float) -> Debt:
    """Helper to create a debt."""
    return Debt(
        liability_id=liability_id,
        account_id=f"acct_{liability_id}",
        type="credit_card",
        balance=balance,
        apr=apr,
        minimum_payment=minimum_payment,
    )


def first_paid_off(plan: DebtPaymentPlan) -> str:
    return min(plan.debts, key=lambda d: d.payoff_month).liability_id


class TestOrdering:

    def test_avalanche_highest_apr_first(self):
        debts = [create_debt("a", 1000, 12.0, 25), create_debt("b", 3000, 24.0, 60), create_debt("c", 500, 18.0, 25)]
        assert [d.liability_id for d in order_debts(debts, "avalanche")] == ["b", "c", "a"]

    def test_snowball_smallest_balance_first(self):
        debts = [create_debt("a", 1000, 12.0, 25), create_debt("b", 3000, 24.0, 60), create_debt("c", 500, 18.0, 25)]
        assert [d.liability_id for d in order_debts(debts, "snowball")] == ["c", "a", "b"]

    def test_ties_keep_input_order(self):
        debts = [create_debt("a", 1000, 18.0, 25), create_debt("b", 1000, 18.0, 25)]
        assert [d.liability_id for d in order_debts(debts, "avalanche")] == ["a", "b"]
        assert [d.liability_id for d in order_debts(debts, "snowball")] == ["a", "b"]

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            order_debts([], "highest_balance")


class TestFixedPayment:

    def test_minimum_payment_converges(self):
        result = simulate_fixed_payment(5000.0, 20.0, 100.0, max_months=600)

        assert result["converged"] is True
        assert result["months"] <= 600
        assert result["total_interest"] > 0

    def test_payment_below_interest_never_converges(self):
        result = simulate_fixed_payment(5000.0, 20.0, 50.0, max_months=600)

        assert result["converged"] is False
        assert result["months"] == 600


class TestSimulatePayoff:
    """Tests for the month-by-month simulation."""

    def test_single_debt_on_minimums(self):
        plan = simulate_payoff([create_debt("card", 5000.0, 20.0, 100.0)], monthly_surplus=0.0)

        assert plan.converged is True
        assert plan.payoff_months <= 600
        assert plan.total_interest_saved == 0.0

    def test_first_month_timeline(self):
        plan = simulate_payoff([create_debt("card", 1000.0, 12.0, 50.0)], monthly_surplus=100.0)

        first = plan.timeline[0]
        assert first["month"] == 1
        assert first["total_payment"] == 150.0
        assert first["debts"] == [{"liability_id": "card", "payment": 150.0, "remaining_balance": 860.0}]

    def test_avalanche_pays_highest_apr_first(self):
        debts = [create_debt("low_apr", 1000.0, 10.0, 25.0), create_debt("high_apr", 1000.0, 25.0, 25.0)]

        plan = simulate_payoff(debts, monthly_surplus=500.0, strategy="avalanche")

        assert first_paid_off(plan) == "high_apr"

    def test_snowball_pays_smallest_balance_first(self):
        debts = [create_debt("big", 2000.0, 25.0, 50.0), create_debt("small", 500.0, 10.0, 25.0)]

        plan = simulate_payoff(debts, monthly_surplus=300.0, strategy="snowball")

        assert first_paid_off(plan) == "small"

    def test_released_minimums_roll_over(self):
        debts = [create_debt("first", 500.0, 20.0, 25.0), create_debt("second", 3000.0, 15.0, 75.0)]

        plan = simulate_payoff(debts, monthly_surplus=200.0, strategy="avalanche")

        first, second = plan.debts
        assert first.liability_id == "first"
        assert first.monthly_payment == 225.0
        assert second.monthly_payment == 300.0
        assert second.payoff_month > first.payoff_month

    def test_surplus_saves_interest(self):
        debts = [create_debt("a", 4000.0, 22.0, 100.0), create_debt("b", 1500.0, 15.0, 40.0)]

        plan = simulate_payoff(debts, monthly_surplus=400.0)

        assert plan.total_interest_saved > 0
        assert plan.total_debt == 5500.0
        assert plan.converged is True
        assert all(entry["month"] == i + 1 for i, entry in enumerate(plan.timeline))

    def test_avalanche_never_costs_more_interest(self):
        debts = [create_debt("a", 4000.0, 22.0, 100.0), create_debt("b", 1500.0, 15.0, 40.0)]

        avalanche = simulate_payoff(debts, monthly_surplus=400.0, strategy="avalanche")
        snowball = simulate_payoff(debts, monthly_surplus=400.0, strategy="snowball")

        assert avalanche.total_interest <= snowball.total_interest

    def test_month_cap(self):
        plan = simulate_payoff([create_debt("card", 5000.0, 20.0, 50.0)], monthly_surplus=0.0, max_months=24)

        assert plan.converged is False
        assert plan.payoff_months == 24
        assert len(plan.timeline) == 24

    def test_negative_surplus_rejected(self):
        with pytest.raises(ValueError):
            simulate_payoff([create_debt("card", 1000.0, 12.0, 50.0)], monthly_surplus=-1.0)

    def test_to_dict(self):
        plan = simulate_payoff([create_debt("card", 1000.0, 12.0, 50.0)], monthly_surplus=100.0)

        data = plan.to_dict()

        assert data["applicable"] is True
        assert data["strategy"] == "avalanche"
        assert data["debts"][0]["liability_id"] == "card"
        assert data["converged"] is True


class TestCashFlow:

    def test_available_after_buffer(self):
        signals = create_bundle(
            income=create_income_signals(average_income=4000.0),
            savings=create_savings_signals(monthly_expenses=2000.0),
        )
        debts = [create_debt("a", 1000.0, 18.0, 150.0), create_debt("b", 500.0, 18.0, 50.0)]

        assert calculate_available_cash_flow(signals, debts, safety_buffer=0.2) == pytest.approx(1440.0)

    def test_floored_at_zero(self):
        signals = create_bundle(
            income=create_income_signals(average_income=1500.0),
            savings=create_savings_signals(monthly_expenses=2000.0),
        )
        assert calculate_available_cash_flow(signals, [create_debt("a", 1000.0, 18.0, 50.0)]) == 0.0


class TestUserDebts:

    def test_filters_liabilities(self):
        accounts = [
            create_credit_account("cc_001", balance=2000.0, limit=5000.0),
            create_credit_account("cc_002", balance=0.0, limit=5000.0),
            create_account("loan_001", type="loan", subtype="student"),
            create_account("mtg_001", type="loan", subtype="mortgage"),
        ]
        liabilities = [
            create_liability("cc_001", apr=19.0, statement_balance=2000.0),
            create_liability("cc_002", apr=19.0, statement_balance=0.0),
            create_liability("loan_001", type="student_loan", apr=None, interest_rate=5.5,
                             minimum_payment=120.0, statement_balance=15000.0),
            create_liability("mtg_001", type="mortgage", apr=None, interest_rate=6.0, statement_balance=250000.0),
        ]
        source = InMemoryDataSource(accounts, [], liabilities)

        debts = get_user_debts("user_001", source)

        assert [d.account_id for d in debts] == ["loan_001", "cc_001"]
        assert debts[0].apr == 5.5

    def test_unknown_user(self):
        with pytest.raises(UnknownUserError):
            get_user_debts("ghost", InMemoryDataSource([]))


class TestSimulatePaymentPlan:
    """Tests for the user-level entry points."""

    def test_high_utilization_user(self, mixed_source, reference_date):
        plan = simulate_payment_plan("user_hu", mixed_source, reference_date=reference_date)

        assert isinstance(plan, DebtPaymentPlan)
        assert plan.monthly_surplus == pytest.approx(4627.25, abs=0.01)
        assert plan.payoff_months == 2
        assert plan.total_interest_saved > 0
        assert plan.debts[0].account_id == "user_hu_cc"

    def test_no_debts(self, mixed_source, reference_date):
        result = simulate_payment_plan("user_sb", mixed_source, reference_date=reference_date)

        assert isinstance(result, PlanNotApplicable)
        assert result.reason == NO_ELIGIBLE_DEBTS
        assert result.to_dict()["applicable"] is False

    def test_no_surplus(self, reference_date):
        card = create_credit_account("cc_001", balance=3000.0, limit=5000.0)
        liability = create_liability("cc_001", apr=21.0, minimum_payment=90.0, statement_balance=3000.0)
        source = InMemoryDataSource([card], [], [liability])

        result = simulate_payment_plan("user_001", source, reference_date=reference_date)

        assert isinstance(result, PlanNotApplicable)
        assert result.reason == NO_SURPLUS

    def test_unknown_strategy(self, mixed_source):
        with pytest.raises(ValueError):
            simulate_payment_plan("user_hu", mixed_source, strategy="fastest")

    def test_unknown_user(self, mixed_source):
        with pytest.raises(UnknownUserError):
            simulate_payment_plan("ghost", mixed_source)

    def test_compare_strategies(self, mixed_source, reference_date):
        plans = compare_strategies("user_hu", mixed_source, reference_date=reference_date)

        assert set(plans) == {"avalanche", "snowball"}
        assert plans["avalanche"].payoff_months == plans["snowball"].payoff_months

    def test_compare_not_applicable(self, mixed_source, reference_date):
        result = compare_strategies("user_sb", mixed_source, reference_date=reference_date)

        assert isinstance(result, PlanNotApplicable)
