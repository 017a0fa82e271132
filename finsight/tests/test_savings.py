"""
Unit Tests for Savings Behavior Analysis
"""

from datetime import timedelta

import pytest

from finsight.features.savings import (
    calculate_growth_rate,
    calculate_monthly_expenses,
    calculate_net_savings_inflow,
    calculate_savings_behavior,
)
from finsight.tests.factories import REFERENCE_DATE, create_account, create_transaction


class TestMonthlyExpenses:
    """Tests for trailing expense averaging."""

    def test_outflows_averaged_per_month(self):
        transactions = [
            create_transaction("chk", REFERENCE_DATE - timedelta(days=30 * k + 2), -800.0, merchant="Grocery Mart")
            for k in range(3)
        ]

        assert calculate_monthly_expenses(transactions, 180, REFERENCE_DATE) == pytest.approx(405.87, abs=0.01)

    def test_transfers_and_payments_excluded(self):
        transactions = [
            create_transaction("chk", REFERENCE_DATE - timedelta(days=5), -500.0, merchant="Credit Card Payment"),
            create_transaction("chk", REFERENCE_DATE - timedelta(days=6), -200.0, merchant="Transfer to Savings"),
            create_transaction("chk", REFERENCE_DATE - timedelta(days=7), 3000.0, merchant="Payroll"),
        ]

        assert calculate_monthly_expenses(transactions, 180, REFERENCE_DATE) == 0.0

    def test_outside_window_excluded(self):
        transactions = [
            create_transaction("chk", REFERENCE_DATE - timedelta(days=200), -800.0, merchant="Grocery Mart"),
        ]

        assert calculate_monthly_expenses(transactions, 180, REFERENCE_DATE) == 0.0


class TestNetInflow:
    """Tests for money moved into savings."""

    def test_savings_deposits_and_checking_transfers(self):
        checking = create_account("chk_001", type="checking")
        savings = create_account("sav_001", type="savings")
        transactions = [
            create_transaction("sav_001", REFERENCE_DATE, 100.0, merchant="Deposit"),
            create_transaction("chk_001", REFERENCE_DATE, -200.0, merchant="Transfer to Savings"),
            create_transaction("chk_001", REFERENCE_DATE, -50.0, merchant="Auto Save",
                               category_detailed="SAVINGS"),
            create_transaction("chk_001", REFERENCE_DATE, -80.0, merchant="Grocery Mart"),
            create_transaction("sav_001", REFERENCE_DATE, -30.0, merchant="Withdrawal"),
        ]

        assert calculate_net_savings_inflow([savings], [checking], transactions) == 350.0


class TestGrowthRate:
    """Tests for savings growth."""

    def test_growth_from_starting_balance(self):
        assert calculate_growth_rate(10300.0, 300.0) == 3.0

    def test_non_positive_start_with_money_now(self):
        assert calculate_growth_rate(100.0, 200.0) == 100.0

    def test_empty_savings(self):
        assert calculate_growth_rate(0.0, 0.0) == 0.0


class TestSavingsBehavior:
    """Tests for the combined savings signals."""

    def create_saver(self):
        checking = create_account("chk_001", type="checking", current=4000.0)
        savings = create_account("sav_001", type="savings", current=10300.0)
        transactions = []
        for k in range(6):
            transactions.append(create_transaction(
                "chk_001", REFERENCE_DATE - timedelta(days=14 * k), 2000.0, merchant="Globex Inc", channel="ach"
            ))
        for k in range(3):
            transactions.append(create_transaction(
                "sav_001", REFERENCE_DATE - timedelta(days=30 * k + 1), 100.0, merchant="Deposit"
            ))
            transactions.append(create_transaction(
                "chk_001", REFERENCE_DATE - timedelta(days=30 * k + 2), -800.0, merchant="Grocery Mart"
            ))
        return [checking, savings], transactions

    def test_steady_saver(self):
        accounts, transactions = self.create_saver()

        result = calculate_savings_behavior(accounts, transactions, 90, 180, REFERENCE_DATE)

        assert result.num_savings_accounts == 1
        assert result.savings_balance == 10300.0
        assert result.net_inflow == 300.0
        assert result.monthly_net_inflow == pytest.approx(101.47, abs=0.01)
        assert result.growth_rate_percent == 3.0
        assert result.monthly_expenses == pytest.approx(405.87, abs=0.01)
        assert result.emergency_fund_months == pytest.approx(25.38, abs=0.01)
        assert result.monthly_income == pytest.approx(4058.67, abs=0.01)
        assert result.savings_rate_percent == pytest.approx(2.5, abs=0.01)

    def test_no_savings_accounts(self):
        checking = create_account("chk_001", type="checking", current=1000.0)
        transactions = [
            create_transaction("chk_001", REFERENCE_DATE - timedelta(days=3), -300.0, merchant="Grocery Mart"),
        ]

        result = calculate_savings_behavior([checking], transactions, 90, 180, REFERENCE_DATE)

        assert result.num_savings_accounts == 0
        assert result.growth_rate_percent == 0.0
        assert result.emergency_fund_months == 0.0
        assert result.monthly_expenses > 0

    def test_money_market_counts_as_savings(self):
        account = create_account("mm_001", type="money_market", current=5000.0)

        result = calculate_savings_behavior([account], [], 90, 180, REFERENCE_DATE)

        assert result.num_savings_accounts == 1
        assert result.savings_balance == 5000.0
        # No expenses means coverage cannot be measured
        assert result.emergency_fund_months == 0.0
