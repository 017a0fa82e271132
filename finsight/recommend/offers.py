"""
Offer and Content Catalog Module

Partner offers with their eligibility criteria, and educational content,
organized by persona.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from finsight.personas.criteria import (
    PERSONA_HIGH_UTILIZATION,
    PERSONA_VARIABLE_INCOME,
    PERSONA_SUBSCRIPTION_HEAVY,
    PERSONA_SAVINGS_BUILDER,
    PERSONA_LIFESTYLE_CREEP,
)
from .ranker import Recommendation


@dataclass
class OfferEligibility:
    """Eligibility criteria for an offer. Unset criteria always pass."""
    min_credit_score: Optional[int] = None
    max_utilization: Optional[float] = None  # Maximum credit utilization %
    min_income: Optional[float] = None  # Minimum monthly income in dollars
    min_subscriptions: Optional[int] = None  # Minimum recurring merchants
    exclude_existing: List[str] = field(default_factory=list)  # Products the user must not already have
    exclude_account_types: List[str] = field(default_factory=list)  # Account types that disqualify
    persona: Optional[str] = None  # Required current persona

    def is_empty(self) -> bool:
        return (
            self.min_credit_score is None
            and self.max_utilization is None
            and self.min_income is None
            and self.min_subscriptions is None
            and not self.exclude_existing
            and not self.exclude_account_types
            and self.persona is None
        )


@dataclass
class PartnerOffer:
    """Partner offer definition."""
    offer_id: str
    type: str  # balance_transfer_card, high_yield_savings, budgeting_app, ...
    name: str
    description: str
    eligibility: OfferEligibility = field(default_factory=OfferEligibility)
    impact_estimate: Optional[float] = None

    def to_recommendation(self) -> Recommendation:
        return Recommendation(
            rec_id=self.offer_id,
            type='partner_offer',
            title=self.name,
            description=self.description,
            category=self.type,
            impact_estimate=self.impact_estimate,
        )


@dataclass
class EducationContent:
    """Educational article or guide."""
    content_id: str
    persona: str
    category: str
    title: str
    description: str

    def to_recommendation(self) -> Recommendation:
        return Recommendation(
            rec_id=self.content_id,
            type='education',
            title=self.title,
            description=self.description,
            category=self.category,
        )


PARTNER_OFFERS = [
    PartnerOffer(
        offer_id="offer_balance_transfer",
        type="balance_transfer_card",
        name="0% Intro APR Balance Transfer Card",
        description=(
            "Move existing card balances to a card with 0% introductory APR for 18 months "
            "and pay down principal without new interest."
        ),
        eligibility=OfferEligibility(
            min_credit_score=650,
            max_utilization=90.0,
            exclude_existing=["balance transfer"],
            persona=PERSONA_HIGH_UTILIZATION,
        ),
    ),
    PartnerOffer(
        offer_id="offer_budgeting_app",
        type="budgeting_app",
        name="Income-Smoothing Budgeting App",
        description=(
            "Plan spending around irregular paychecks with a budgeting app that builds a "
            "buffer from high-income months."
        ),
        eligibility=OfferEligibility(
            persona=PERSONA_VARIABLE_INCOME,
        ),
    ),
    PartnerOffer(
        offer_id="offer_subscription_manager",
        type="subscription_manager",
        name="Subscription Manager",
        description=(
            "See every recurring charge in one place and cancel the ones you no longer use "
            "with a single tap."
        ),
        eligibility=OfferEligibility(
            min_subscriptions=3,
            persona=PERSONA_SUBSCRIPTION_HEAVY,
        ),
    ),
    PartnerOffer(
        offer_id="offer_high_yield_savings",
        type="high_yield_savings",
        name="High-Yield Savings Account - 4.4% APY",
        description=(
            "Earn 4.4% APY on savings with no monthly fees and no minimum balance, "
            "FDIC insured up to $250,000."
        ),
        eligibility=OfferEligibility(
            exclude_existing=["high yield", "hysa"],
            persona=PERSONA_SAVINGS_BUILDER,
        ),
    ),
    PartnerOffer(
        offer_id="offer_investment_platform",
        type="investment_platform",
        name="Automated Investing Platform",
        description=(
            "Put part of every paycheck to work automatically in a diversified, "
            "low-fee portfolio."
        ),
        eligibility=OfferEligibility(
            min_income=5000.0,
            exclude_account_types=["brokerage", "investment"],
            persona=PERSONA_LIFESTYLE_CREEP,
        ),
    ),
]


EDUCATION_CONTENT = [
    EducationContent(
        content_id="edu_credit_utilization",
        persona=PERSONA_HIGH_UTILIZATION,
        category="credit_utilization",
        title="How Credit Utilization Affects Your Score",
        description="Keeping card balances under 30% of the limit is one of the fastest ways to lift a credit score.",
    ),
    EducationContent(
        content_id="edu_debt_payoff",
        persona=PERSONA_HIGH_UTILIZATION,
        category="debt_payoff",
        title="Avalanche vs Snowball: Choosing a Payoff Order",
        description="Paying the highest-APR card first saves the most interest; paying the smallest balance first builds momentum.",
    ),
    EducationContent(
        content_id="edu_emergency_fund",
        persona=PERSONA_VARIABLE_INCOME,
        category="emergency_fund",
        title="Building an Emergency Fund on Irregular Income",
        description="A three-month cushion turns uneven paychecks into a steady monthly budget.",
    ),
    EducationContent(
        content_id="edu_percent_budget",
        persona=PERSONA_VARIABLE_INCOME,
        category="budgeting",
        title="Percentage-Based Budgeting for Variable Pay",
        description="Budget in percentages instead of fixed amounts so the plan scales with each paycheck.",
    ),
    EducationContent(
        content_id="edu_subscription_audit",
        persona=PERSONA_SUBSCRIPTION_HEAVY,
        category="subscription_audit",
        title="The 10-Minute Subscription Audit",
        description="List every recurring charge, note when you last used it, and decide what stays.",
    ),
    EducationContent(
        content_id="edu_savings_goals",
        persona=PERSONA_SAVINGS_BUILDER,
        category="savings_goals",
        title="Setting Savings Goals That Stick",
        description="Automating a fixed transfer on payday keeps savings growing without extra effort.",
    ),
    EducationContent(
        content_id="edu_retirement_basics",
        persona=PERSONA_LIFESTYLE_CREEP,
        category="retirement",
        title="Retirement Savings Basics",
        description="Saving 20% of income, starting with any employer match, keeps long-term goals on track as income grows.",
    ),
]


def get_all_offers() -> List[PartnerOffer]:
    return list(PARTNER_OFFERS)


def get_offer_by_id(offer_id: str) -> Optional[PartnerOffer]:
    for offer in PARTNER_OFFERS:
        if offer.offer_id == offer_id:
            return offer
    return None


def get_offers_for_persona(persona_type: str) -> List[PartnerOffer]:
    """Offers aimed at a persona, plus offers open to every persona."""
    return [
        offer for offer in PARTNER_OFFERS
        if offer.eligibility.persona in (None, persona_type)
    ]


def get_education_for_persona(persona_type: str) -> List[EducationContent]:
    return [content for content in EDUCATION_CONTENT if content.persona == persona_type]
