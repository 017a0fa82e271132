"""
Main Recommendation Engine

Orchestrates recommendation generation for a user:
1. Detect behavioral signals
2. Classify persona
3. Select education content and partner offers for the persona
4. Filter offers by eligibility
5. Rank candidates
6. Generate rationales
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from finsight.ai.cache import ResponseCache
from finsight.config import settings
from finsight.features.signals import detect_signals
from finsight.features.window_utils import DateLike
from finsight.ingest.repository import DataSource
from finsight.personas.assignment import classify_signals, compute_income_percentile
from .eligibility import EligibilityContext, filter_eligible_offers
from .offers import get_education_for_persona, get_offers_for_persona
from .ranker import RankedRecommendation, rank_for_assignment
from .rationale import TextGenerator, generate_rationale

logger = logging.getLogger(__name__)


@dataclass
class GeneratedRecommendation:
    """A ranked recommendation with its rationale."""
    user_id: str
    persona_type: str
    ranked: RankedRecommendation
    rationale: str

    def to_dict(self) -> dict:
        return {
            'user_id': self.user_id,
            'persona_type': self.persona_type,
            **self.ranked.to_dict(),
            'rationale': self.rationale,
        }


def generate_recommendations(
    user_id: str,
    data_source: DataSource,
    limit: Optional[int] = None,
    income_threshold: Optional[float] = None,
    reference_date: Optional[DateLike] = None,
    generate_text: Optional[TextGenerator] = None,
    cache: Optional[ResponseCache] = None
) -> List[GeneratedRecommendation]:
    """
    Generate recommendations for a user.

    Args:
        user_id: User ID to generate recommendations for
        data_source: Data access collaborator
        limit: Maximum number of recommendations (defaults to settings.recommendation_limit)
        income_threshold: Precomputed top-quartile income
        reference_date: End of the signal window
        generate_text: Optional text generator for rationales
        cache: Optional response cache for rationales

    Returns:
        Recommendations, highest priority first (empty when no persona matched)

    Raises:
        UnknownUserError: If user not found
    """
    if limit is None:
        limit = settings.recommendation_limit

    signals = detect_signals(user_id, data_source, reference_date=reference_date)
    accounts = data_source.get_accounts(user_id)

    if income_threshold is None:
        income_threshold = compute_income_percentile(data_source, reference_date=reference_date)

    classification = classify_signals(signals, income_threshold)
    if classification is None:
        logger.info("No persona matched, no recommendations", extra={'user_id': user_id})
        return []

    primary = classification.primary
    persona_type = primary.persona_type

    context = EligibilityContext(signals=signals, accounts=accounts, persona_type=persona_type)
    eligible_offers, results = filter_eligible_offers(get_offers_for_persona(persona_type), context)

    candidates = [content.to_recommendation() for content in get_education_for_persona(persona_type)]
    candidates.extend(offer.to_recommendation() for offer in eligible_offers)

    ranked = rank_for_assignment(candidates, primary, limit)

    recommendations = [
        GeneratedRecommendation(
            user_id=user_id,
            persona_type=persona_type,
            ranked=item,
            rationale=generate_rationale(
                item.recommendation, signals, persona_type,
                generate_text=generate_text, cache=cache,
            ),
        )
        for item in ranked
    ]

    logger.info(
        "Recommendations generated",
        extra={
            'user_id': user_id,
            'persona': persona_type,
            'count': len(recommendations),
            'offers_filtered': [oid for oid, r in results.items() if not r.eligible],
        },
    )
    return recommendations


def generate_recommendations_batch(
    user_ids: List[str],
    data_source: DataSource,
    limit: Optional[int] = None,
    reference_date: Optional[DateLike] = None,
    generate_text: Optional[TextGenerator] = None
) -> Dict[str, Optional[List[GeneratedRecommendation]]]:
    """
    Generate recommendations for many users, computing the income cut-off once.

    A failure for one user is logged and recorded as None.
    """
    threshold = compute_income_percentile(data_source, reference_date=reference_date)

    results = {}
    for user_id in user_ids:
        try:
            results[user_id] = generate_recommendations(
                user_id, data_source, limit, threshold, reference_date, generate_text
            )
        except Exception:
            logger.exception("Error generating recommendations", extra={'user_id': user_id})
            results[user_id] = None

    return results
