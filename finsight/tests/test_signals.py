"""
Unit Tests for the Signals Orchestrator

Tests detect_signals end to end over an in-memory data source.
"""

import pytest

from finsight.exceptions import UnknownUserError
from finsight.features.signals import detect_signals, detect_signals_batch
from finsight.tests.factories import create_bundle, create_card_signals, create_savings_signals


class TestDetectSignals:
    """Tests for the full signal bundle."""

    def test_high_utilization_user(self, high_utilization_source, reference_date):
        bundle = detect_signals("user_hu", high_utilization_source, reference_date=reference_date)

        assert bundle.window_days == 90
        assert bundle.utilization_percent == 65.0
        assert bundle.utilization_threshold == "high"
        assert bundle.is_high_utilization is True
        assert bundle.interest_charges == pytest.approx(357.5)
        assert bundle.minimum_payment_only is False
        assert bundle.is_overdue is False

        assert bundle.payment_frequency == "biweekly"
        assert bundle.median_pay_gap_days == 14.0
        assert bundle.average_income == pytest.approx(6522.86, abs=0.01)
        assert bundle.monthly_expenses == pytest.approx(608.8, abs=0.01)
        assert bundle.cash_flow_buffer_months == pytest.approx(4.93, abs=0.01)

        assert bundle.recurring_merchant_count == 1
        assert bundle.subscription_share_percent == 100.0

    def test_savings_builder_user(self, mixed_source, reference_date):
        bundle = detect_signals("user_sb", mixed_source, reference_date=reference_date)

        assert bundle.utilization_percent == 0.0
        assert bundle.utilization_threshold == "none"
        assert bundle.credit.num_credit_cards == 0
        assert bundle.savings_growth_percent == 3.0
        assert bundle.monthly_net_savings_inflow == pytest.approx(101.47, abs=0.01)
        assert bundle.average_income == pytest.approx(5218.29, abs=0.01)
        assert bundle.discretionary_share_percent == pytest.approx(15.56, abs=0.01)

    def test_user_without_accounts(self, mixed_source, reference_date):
        bundle = detect_signals("user_empty", mixed_source, reference_date=reference_date)

        assert bundle.utilization_percent == 0.0
        assert bundle.payment_frequency == "irregular"
        assert bundle.monthly_income == 0.0
        assert bundle.savings_balance == 0.0
        assert bundle.recurring_merchant_count == 0

    def test_unknown_user(self, mixed_source, reference_date):
        with pytest.raises(UnknownUserError):
            detect_signals("ghost", mixed_source, reference_date=reference_date)

    def test_custom_window(self, high_utilization_source, reference_date):
        bundle = detect_signals("user_hu", high_utilization_source, window_days=30, reference_date=reference_date)

        assert bundle.window_days == 30
        assert bundle.interest_charges == pytest.approx(119.17, abs=0.01)

    def test_to_dict(self, high_utilization_source, reference_date):
        data = detect_signals("user_hu", high_utilization_source, reference_date=reference_date).to_dict()

        assert data["user_id"] == "user_hu"
        assert data["summary"]["utilization_threshold"] == "high"
        assert data["credit"]["num_credit_cards"] == 1
        assert "calculated_at" in data


class TestSignalsBatch:
    """Tests for batch signal detection."""

    def test_failure_isolated(self, mixed_source, reference_date):
        results = detect_signals_batch(["user_hu", "ghost", "user_sb"], mixed_source, reference_date=reference_date)

        assert results["ghost"] is None
        assert results["user_hu"].utilization_percent == 65.0
        assert results["user_sb"].savings_growth_percent == 3.0


class TestSignalBundleDefaults:
    """Tests for neutral defaults when detectors produced nothing."""

    def test_empty_bundle(self):
        bundle = create_bundle()

        assert bundle.utilization_threshold == "none"
        assert bundle.interest_charges == 0.0
        assert bundle.payment_frequency == "irregular"
        assert bundle.monthly_expenses == 0.0
        assert bundle.discretionary_share_percent == 0.0

    def test_monthly_income_falls_back_to_inflows(self):
        bundle = create_bundle(savings=create_savings_signals(monthly_income=3200.0))

        assert bundle.monthly_income == 3200.0

    def test_focus_account_drives_threshold(self):
        bundle = create_bundle(cards=[
            create_card_signals("cc_001", balance=100.0, limit=1000.0),
            create_card_signals("cc_002", balance=950.0, limit=1000.0),
        ])

        assert bundle.utilization_percent == 95.0
        assert bundle.utilization_threshold == "critical"
