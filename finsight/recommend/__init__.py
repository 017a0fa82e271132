"""
Recommendation Engine Module

Offer catalog, eligibility filtering, ranking, rationale generation and
the orchestrating engine.
"""

from .ranker import Recommendation, RankedRecommendation, rank_recommendations
from .eligibility import check_eligibility, check_offer_eligibility, filter_eligible_offers, EligibilityResult
from .offers import PartnerOffer, EducationContent, get_all_offers, get_offer_by_id
from .engine import generate_recommendations, generate_recommendations_batch, GeneratedRecommendation

__all__ = [
    'Recommendation',
    'RankedRecommendation',
    'rank_recommendations',
    'check_eligibility',
    'check_offer_eligibility',
    'filter_eligible_offers',
    'EligibilityResult',
    'PartnerOffer',
    'EducationContent',
    'get_all_offers',
    'get_offer_by_id',
    'generate_recommendations',
    'generate_recommendations_batch',
    'GeneratedRecommendation',
]
