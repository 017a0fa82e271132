"""
FinSight

Behavioral signal detection, persona classification, recommendation ranking
and debt payoff planning over a user's accounts and transactions.
"""

from finsight.features.signals import detect_signals
from finsight.personas.assignment import classify_persona
from finsight.recommend.ranker import rank_recommendations
from finsight.recommend.eligibility import check_eligibility
from finsight.planning.payoff import simulate_payment_plan

__version__ = "1.0.0"

__all__ = [
    'detect_signals',
    'classify_persona',
    'rank_recommendations',
    'check_eligibility',
    'simulate_payment_plan',
]
