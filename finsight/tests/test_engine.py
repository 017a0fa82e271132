"""
Integration Tests for the Recommendation Engine
"""

import pytest

from finsight.ai.cache import ResponseCache
from finsight.exceptions import UnknownUserError
from finsight.personas.criteria import PERSONA_HIGH_UTILIZATION, PERSONA_SAVINGS_BUILDER
from finsight.recommend.engine import generate_recommendations, generate_recommendations_batch


class TestGenerateRecommendations:
    """Tests for the full recommendation pipeline."""

    def test_high_utilization_user(self, mixed_source, reference_date):
        recs = generate_recommendations("user_hu", mixed_source, reference_date=reference_date)

        assert [r.ranked.recommendation.rec_id for r in recs] == [
            "offer_balance_transfer", "edu_credit_utilization", "edu_debt_payoff"
        ]
        assert all(r.persona_type == PERSONA_HIGH_UTILIZATION for r in recs)

        offer = recs[0]
        assert offer.ranked.impact_score == pytest.approx(119.17 * 18)
        assert offer.ranked.urgency_score == 85.0
        assert "$119.17 per month" in offer.rationale

        assert recs[1].rationale.startswith("We noticed your credit utilization is 65.0%.")

    def test_savings_builder_user(self, mixed_source, reference_date):
        recs = generate_recommendations("user_sb", mixed_source, reference_date=reference_date)

        assert [r.ranked.recommendation.rec_id for r in recs] == ["edu_savings_goals", "offer_high_yield_savings"]
        assert all(r.persona_type == PERSONA_SAVINGS_BUILDER for r in recs)
        assert recs[0].ranked.impact_score == 100.0
        assert recs[1].ranked.impact_score == pytest.approx(35.02)
        assert recs[0].ranked.urgency_score == 50.0

    def test_no_persona(self, mixed_source, reference_date):
        assert generate_recommendations("user_empty", mixed_source, reference_date=reference_date) == []

    def test_unknown_user(self, mixed_source, reference_date):
        with pytest.raises(UnknownUserError):
            generate_recommendations("ghost", mixed_source, reference_date=reference_date)

    def test_limit(self, mixed_source, reference_date):
        recs = generate_recommendations("user_hu", mixed_source, limit=1, reference_date=reference_date)

        assert len(recs) == 1

    def test_generated_rationales(self, mixed_source, reference_date):
        text = "Lowering this balance could help reduce the interest you pay each month."

        recs = generate_recommendations(
            "user_hu", mixed_source, reference_date=reference_date, generate_text=lambda prompt: text
        )

        assert all(r.rationale == text for r in recs)

    def test_rationales_cached(self, session, mixed_source, reference_date):
        calls = []

        def generator(prompt):
            calls.append(prompt)
            return "Building on your savings habit could help you reach your goals sooner."

        cache = ResponseCache(session)
        generate_recommendations("user_sb", mixed_source, reference_date=reference_date,
                                 generate_text=generator, cache=cache)
        generate_recommendations("user_sb", mixed_source, reference_date=reference_date,
                                 generate_text=generator, cache=cache)

        assert len(calls) == 2
        assert cache.stats.get("user_sb").hits == 2

    def test_to_dict(self, mixed_source, reference_date):
        data = generate_recommendations("user_sb", mixed_source, reference_date=reference_date)[0].to_dict()

        assert data["user_id"] == "user_sb"
        assert data["rec_id"] == "edu_savings_goals"
        assert data["type"] == "education"
        assert data["rationale"]
        assert data["priority_score"] == round(0.6 * 100 + 0.4 * 50, 2)


class TestBatch:

    def test_failure_isolated(self, mixed_source, reference_date):
        results = generate_recommendations_batch(
            ["user_hu", "ghost", "user_empty"], mixed_source, reference_date=reference_date
        )

        assert results["ghost"] is None
        assert results["user_empty"] == []
        assert len(results["user_hu"]) == 3
