"""
Unit Tests for Persona Criteria

Each check is exercised on hand-built signal bundles.
"""

import pytest

from finsight.personas.criteria import (
    calculate_confidence,
    check_high_utilization,
    check_lifestyle_creep,
    check_savings_builder,
    check_subscription_heavy,
    check_variable_income,
)
from finsight.tests.factories import (
    create_bundle,
    create_card_signals,
    create_income_signals,
    create_lifestyle_signals,
    create_savings_signals,
    create_subscription_signals,
)


class TestConfidence:

    @pytest.mark.parametrize("count,expected", [(0, 0.5), (1, 0.65), (2, 0.8), (3, 0.95), (4, 1.0), (10, 1.0)])
    def test_formula(self, count, expected):
        assert calculate_confidence(count) == expected


class TestHighUtilization:
    """Tests for the High Utilization check."""

    def test_utilization_and_interest(self):
        bundle = create_bundle(cards=[
            create_card_signals("cc_001", balance=6500.0, limit=10000.0, interest_total=357.5),
        ])

        match = check_high_utilization(bundle)

        assert match.criteria_met == ["utilization_65.0%", "interest_charges"]
        assert match.confidence == 0.8
        assert match.focus_account.account_id == "cc_001"

    def test_interest_only(self):
        bundle = create_bundle(cards=[
            create_card_signals("cc_001", balance=200.0, limit=1000.0, interest_total=12.0),
        ])

        match = check_high_utilization(bundle)

        assert match.criteria_met == ["interest_charges"]

    def test_overdue(self):
        bundle = create_bundle(cards=[create_card_signals("cc_001", balance=100.0, is_overdue=True)])

        assert check_high_utilization(bundle).criteria_met == ["overdue"]

    def test_focus_is_highest_utilization_card(self):
        bundle = create_bundle(cards=[
            create_card_signals("cc_001", balance=600.0, limit=1000.0),
            create_card_signals("cc_002", balance=900.0, limit=1000.0),
        ])

        match = check_high_utilization(bundle)

        assert match.focus_account.account_id == "cc_002"
        assert match.criteria_met == ["utilization_60.0%", "utilization_90.0%"]

    def test_clean_cards(self):
        bundle = create_bundle(cards=[create_card_signals("cc_001", balance=100.0, limit=1000.0)])
        assert check_high_utilization(bundle) is None

    def test_no_cards(self):
        assert check_high_utilization(create_bundle()) is None


class TestVariableIncome:
    """Tests for the Variable Income check."""

    def test_long_gap_thin_buffer(self):
        bundle = create_bundle(income=create_income_signals(median_gap=60, buffer_months=0.5))

        match = check_variable_income(bundle)

        assert match.criteria_met == ["median_pay_gap_60d", "cash_flow_buffer_0.5mo"]
        assert match.confidence == 0.8

    @pytest.mark.parametrize("median_gap,buffer_months", [(45, 0.5), (60, 1.0), (14, 0.2)])
    def test_boundaries_not_matched(self, median_gap, buffer_months):
        bundle = create_bundle(income=create_income_signals(median_gap=median_gap, buffer_months=buffer_months))
        assert check_variable_income(bundle) is None

    def test_missing_income_signals(self):
        assert check_variable_income(create_bundle()) is None


class TestSubscriptionHeavy:
    """Tests for the Subscription Heavy check."""

    def test_spend_and_share(self):
        bundle = create_bundle(subscriptions=create_subscription_signals(count=4, monthly_spend=80.0, share=12.0))

        match = check_subscription_heavy(bundle)

        assert match.criteria_met == [
            "recurring_merchants_4", "monthly_recurring_spend_80.00", "subscription_share_12.0%"
        ]
        assert match.confidence == 0.95

    def test_spend_only(self):
        bundle = create_bundle(subscriptions=create_subscription_signals(count=3, monthly_spend=50.0, share=4.0))

        assert check_subscription_heavy(bundle).criteria_met == [
            "recurring_merchants_3", "monthly_recurring_spend_50.00"
        ]

    def test_too_few_merchants(self):
        bundle = create_bundle(subscriptions=create_subscription_signals(count=2, monthly_spend=200.0, share=40.0))
        assert check_subscription_heavy(bundle) is None

    def test_cheap_small_share(self):
        bundle = create_bundle(subscriptions=create_subscription_signals(count=3, monthly_spend=30.0, share=5.0))
        assert check_subscription_heavy(bundle) is None


class TestSavingsBuilder:
    """Tests for the Savings Builder check."""

    def test_no_cards_records_all_utilizations_low(self):
        bundle = create_bundle(savings=create_savings_signals(
            savings_balance=8000.0, growth=3.0, monthly_net_inflow=250.0
        ))

        match = check_savings_builder(bundle)

        assert match.criteria_met == ["savings_growth_3.0%", "net_inflow_250.00/mo", "all_utilizations_low"]
        assert match.confidence == 0.95

    def test_low_utilization_cards(self):
        bundle = create_bundle(
            cards=[create_card_signals("cc_001", balance=100.0, limit=1000.0)],
            savings=create_savings_signals(savings_balance=8000.0, growth=2.0),
        )

        assert check_savings_builder(bundle).criteria_met == ["savings_growth_2.0%", "all_utilizations_low"]

    def test_card_at_thirty_percent_blocks(self):
        bundle = create_bundle(
            cards=[create_card_signals("cc_001", balance=300.0, limit=1000.0)],
            savings=create_savings_signals(savings_balance=8000.0, growth=5.0, monthly_net_inflow=400.0),
        )
        assert check_savings_builder(bundle) is None

    def test_no_saving_activity(self):
        bundle = create_bundle(savings=create_savings_signals(savings_balance=8000.0, growth=1.0,
                                                              monthly_net_inflow=50.0))
        assert check_savings_builder(bundle) is None


class TestLifestyleCreep:
    """Tests for the Lifestyle Creep check."""

    def create_high_earner(self, savings_rate: float = 2.0, discretionary: float = 35.0):
        return create_bundle(
            income=create_income_signals(average_income=12000.0),
            savings=create_savings_signals(savings_rate=savings_rate),
            lifestyle=create_lifestyle_signals(share=discretionary),
        )

    def test_matches(self):
        match = check_lifestyle_creep(self.create_high_earner(), income_threshold=9000.0)

        assert match.criteria_met == ["income_top_quartile", "savings_rate_2.0%", "discretionary_share_35.0%"]
        assert match.confidence == 0.95

    def test_below_income_threshold(self):
        assert check_lifestyle_creep(self.create_high_earner(), income_threshold=15000.0) is None

    def test_saving_enough(self):
        assert check_lifestyle_creep(self.create_high_earner(savings_rate=5.0), income_threshold=9000.0) is None

    def test_discretionary_at_boundary(self):
        assert check_lifestyle_creep(self.create_high_earner(discretionary=30.0), income_threshold=9000.0) is None

    def test_no_threshold(self):
        assert check_lifestyle_creep(self.create_high_earner(), income_threshold=None) is None
