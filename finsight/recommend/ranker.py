"""
Recommendation Ranking Module

Orders candidate recommendations for a user by combining a per-item impact
score (persona-specific) with a single urgency score for the user:

    priority = 0.6 * impact + 0.4 * urgency
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from finsight.config import settings
from finsight.features.signals import SignalBundle
from finsight.features.window_utils import DateLike
from finsight.ingest.repository import DataSource
from finsight.personas.assignment import PersonaAssignment, classify_persona
from finsight.personas.criteria import (
    PERSONA_HIGH_UTILIZATION,
    PERSONA_VARIABLE_INCOME,
    PERSONA_SUBSCRIPTION_HEAVY,
    PERSONA_SAVINGS_BUILDER,
    PERSONA_LIFESTYLE_CREEP,
)

logger = logging.getLogger(__name__)

IMPACT_WEIGHT = 0.6
URGENCY_WEIGHT = 0.4
DEFAULT_IMPACT = 50.0
BASE_URGENCY = 30.0

BALANCE_TRANSFER_PROMO_MONTHS = 18
BALANCE_TRANSFER_PAYDOWN_RATE = 0.05  # Share of balance repaid per month
BALANCE_TRANSFER_BASE_IMPACT = 200.0

HYSA_APY_GAIN = 0.034  # 4.4% APY offer vs 1% traditional savings
EMERGENCY_FUND_TARGET_MONTHS = 3
ASSUMED_SAVINGS_SHARE = 0.10
RECOMMENDED_SAVINGS_RATE = 20.0


@dataclass
class Recommendation:
    """A candidate recommendation (education content or partner offer)."""
    rec_id: str
    type: str  # education, partner_offer
    title: str
    description: str
    category: str  # e.g. balance_transfer_card, emergency_fund, retirement
    impact_estimate: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            'rec_id': self.rec_id,
            'type': self.type,
            'title': self.title,
            'description': self.description,
            'category': self.category,
            'impact_estimate': self.impact_estimate,
        }


@dataclass
class RankedRecommendation:
    """A recommendation with its scores."""
    recommendation: Recommendation
    impact_score: float
    urgency_score: float
    priority_score: float

    def to_dict(self) -> dict:
        return {
            **self.recommendation.to_dict(),
            'impact_score': round(self.impact_score, 2),
            'urgency_score': round(self.urgency_score, 2),
            'priority_score': round(self.priority_score, 2),
        }


def calculate_urgency_score(signals: SignalBundle) -> float:
    """
    Urgency shared by every recommendation for the user.

    Overdue payments are maximally urgent. Otherwise the highest of the
    utilization, emergency fund, cash-flow buffer and subscription share
    urgencies applies, with a floor of 30 when none do.
    """
    if signals.is_overdue:
        return 100.0

    urgency = 0.0

    utilization = signals.utilization_percent
    if utilization >= 80:
        urgency = 90.0
    elif utilization >= 50:
        urgency = 70.0
    elif utilization >= 30:
        urgency = 50.0

    emergency_fund = signals.emergency_fund_months
    if emergency_fund < 1:
        urgency = max(urgency, 85.0)
    elif emergency_fund < 2:
        urgency = max(urgency, 60.0)
    elif emergency_fund < 3:
        urgency = max(urgency, 40.0)

    buffer_months = signals.cash_flow_buffer_months
    if buffer_months < 0.5:
        urgency = max(urgency, 80.0)
    elif buffer_months < 1:
        urgency = max(urgency, 60.0)

    if signals.subscription_share_percent > 20:
        urgency = max(urgency, 50.0)

    if urgency == 0:
        urgency = BASE_URGENCY

    return min(urgency, 100.0)


def _high_utilization_impact(rec: Recommendation, assignment: PersonaAssignment) -> float:
    signals = assignment.signals
    focus = assignment.focus_account or (signals.credit.focus_account if signals.credit else None)

    if rec.category == 'balance_transfer_card':
        if focus is not None:
            monthly_interest = focus.interest_charges.monthly_average
            balance = focus.utilization.balance
            if monthly_interest > 0 and balance > 0:
                months = math.ceil(balance / (balance * BALANCE_TRANSFER_PAYDOWN_RATE))
                return monthly_interest * min(months, BALANCE_TRANSFER_PROMO_MONTHS)
        return BALANCE_TRANSFER_BASE_IMPACT

    if rec.type == 'education':
        utilization = signals.utilization_percent
        if utilization >= 80:
            return 100.0
        if utilization >= 50:
            return 75.0
        if utilization >= 30:
            return 50.0
        return 25.0

    return DEFAULT_IMPACT


def _variable_income_impact(rec: Recommendation, assignment: PersonaAssignment) -> float:
    signals = assignment.signals

    if rec.type == 'education' and (rec.category == 'emergency_fund' or 'emergency' in rec.title.lower()):
        income = signals.monthly_income
        if income > 0:
            gap = income * EMERGENCY_FUND_TARGET_MONTHS - signals.savings_balance
            if gap > 0:
                months_to_target = gap / (income * ASSUMED_SAVINGS_SHARE)
                return min(months_to_target * 10, 100.0)

        buffer_months = signals.cash_flow_buffer_months
        if buffer_months < 1:
            return 100.0
        if buffer_months < 2:
            return 75.0
        if buffer_months < 3:
            return 50.0
        return 25.0

    if rec.category == 'budgeting_app':
        variability = signals.pay_gap_variability
        if variability > 10:
            return 100.0
        if variability > 5:
            return 75.0
        return 50.0

    return DEFAULT_IMPACT


def _subscription_heavy_impact(rec: Recommendation, assignment: PersonaAssignment) -> float:
    signals = assignment.signals

    if rec.category == 'subscription_manager':
        spend = signals.monthly_recurring_spend
        if spend > 200:
            return 100.0
        if spend > 100:
            return 75.0
        if spend > 50:
            return 50.0
        return 25.0

    if rec.type == 'education':
        share = signals.subscription_share_percent
        if share > 20:
            return 100.0
        if share > 10:
            return 75.0
        if share > 5:
            return 50.0
        return 25.0

    return DEFAULT_IMPACT


def _savings_builder_impact(rec: Recommendation, assignment: PersonaAssignment) -> float:
    signals = assignment.signals

    if rec.category == 'high_yield_savings':
        savings = signals.savings_balance
        if savings > 0:
            return min(savings * HYSA_APY_GAIN / 10, 100.0)
        return 75.0

    if rec.type == 'education':
        rate = signals.savings_rate_percent
        if rate < 10:
            return 100.0
        if rate < 15:
            return 75.0
        if rate < 20:
            return 50.0
        return 25.0

    return DEFAULT_IMPACT


def _lifestyle_creep_impact(rec: Recommendation, assignment: PersonaAssignment) -> float:
    signals = assignment.signals

    if rec.category == 'investment_platform':
        income = signals.monthly_income
        if income > 0:
            current = income * signals.savings_rate_percent / 100
            recommended = income * RECOMMENDED_SAVINGS_RATE / 100
            shortfall = recommended - current
            if shortfall > 0:
                return min(shortfall / income * 500, 100.0)
        return 75.0

    if rec.type == 'education' and (rec.category == 'retirement' or 'retirement' in rec.title.lower()):
        gap = RECOMMENDED_SAVINGS_RATE - signals.savings_rate_percent
        if gap > 10:
            return 100.0
        if gap > 5:
            return 75.0
        if gap > 0:
            return 50.0
        return 25.0

    return DEFAULT_IMPACT


IMPACT_CALCULATORS: Dict[str, Callable[[Recommendation, PersonaAssignment], float]] = {
    PERSONA_HIGH_UTILIZATION: _high_utilization_impact,
    PERSONA_VARIABLE_INCOME: _variable_income_impact,
    PERSONA_SUBSCRIPTION_HEAVY: _subscription_heavy_impact,
    PERSONA_SAVINGS_BUILDER: _savings_builder_impact,
    PERSONA_LIFESTYLE_CREEP: _lifestyle_creep_impact,
}


def calculate_impact_score(rec: Recommendation, assignment: PersonaAssignment) -> float:
    """Impact of a recommendation for the user's persona (50 when no rule applies)."""
    calculator = IMPACT_CALCULATORS.get(assignment.persona_type)
    if calculator is None:
        return DEFAULT_IMPACT
    return calculator(rec, assignment)


def rank_for_assignment(
    candidates: List[Recommendation],
    assignment: Optional[PersonaAssignment],
    limit: int = 5
) -> List[RankedRecommendation]:
    """
    Rank candidates for a classified user.

    Args:
        candidates: Recommendations to rank
        assignment: The user's primary persona (None leaves input order, zero scores)
        limit: Maximum number of results

    Returns:
        Ranked recommendations, highest priority first
    """
    if assignment is None:
        return [
            RankedRecommendation(recommendation=rec, impact_score=0.0, urgency_score=0.0, priority_score=0.0)
            for rec in candidates[:limit]
        ]

    urgency = calculate_urgency_score(assignment.signals)

    ranked = []
    for rec in candidates:
        impact = calculate_impact_score(rec, assignment)
        ranked.append(RankedRecommendation(
            recommendation=rec,
            impact_score=impact,
            urgency_score=urgency,
            priority_score=impact * IMPACT_WEIGHT + urgency * URGENCY_WEIGHT,
        ))

    # sorted() is stable, so equal priorities keep candidate order
    ranked = sorted(ranked, key=lambda r: r.priority_score, reverse=True)

    logger.debug(
        "Ranked recommendations",
        extra={'persona': assignment.persona_type, 'urgency': urgency, 'candidates': len(candidates)},
    )
    return ranked[:limit]


def rank_recommendations(
    user_id: str,
    candidates: List[Recommendation],
    data_source: DataSource,
    limit: Optional[int] = None,
    income_threshold: Optional[float] = None,
    reference_date: Optional[DateLike] = None
) -> List[RankedRecommendation]:
    """
    Classify a user and rank candidate recommendations for their persona.

    Args:
        user_id: User ID
        candidates: Recommendations to rank
        data_source: Data access collaborator
        limit: Maximum number of results (defaults to settings.recommendation_limit)
        income_threshold: Precomputed top-quartile income
        reference_date: End of the signal window

    Returns:
        Ranked recommendations, highest priority first

    Raises:
        UnknownUserError: If the user does not exist
    """
    if limit is None:
        limit = settings.recommendation_limit

    classification = classify_persona(
        user_id, data_source, income_threshold=income_threshold, reference_date=reference_date
    )
    assignment = classification.primary if classification else None
    return rank_for_assignment(candidates, assignment, limit)
