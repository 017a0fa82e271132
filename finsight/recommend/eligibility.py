"""
Eligibility Filtering Module

Filters partner offers based on user eligibility criteria.
Checks estimated credit score, utilization, income, subscriptions,
existing accounts and persona. Predatory products are never shown.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from finsight.exceptions import UnknownOfferError
from finsight.features.signals import SignalBundle, detect_signals
from finsight.features.window_utils import DateLike
from finsight.ingest.repository import DataSource
from finsight.ingest.schema import Account
from finsight.personas.assignment import classify_signals, compute_income_percentile
from .offers import PartnerOffer, get_offer_by_id

logger = logging.getLogger(__name__)

PREDATORY_OFFER_TYPES = {
    'payday_loan',
    'cash_advance_app',
    'check_cashing',
    'rent_to_own',
    'credit_repair_high_fee',
}

# Individual offers pulled from the catalog, regardless of type
BLACKLISTED_OFFER_IDS: set = set()

NO_CREDIT_HISTORY_SCORE = 650
BASE_CREDIT_SCORE = 700
OVERDUE_PENALTY = 40
MIN_CREDIT_SCORE = 500
MAX_CREDIT_SCORE = 850


@dataclass
class EligibilityResult:
    """Result of eligibility check for an offer."""
    eligible: bool
    reasons: List[str]  # Reasons why eligible or not eligible
    failed_checks: List[str]  # Specific checks that failed


@dataclass
class EligibilityContext:
    """Everything about a user that eligibility checks look at."""
    signals: SignalBundle
    accounts: List[Account]
    persona_type: Optional[str] = None


def estimate_credit_score(signals: SignalBundle) -> int:
    """
    Estimate a credit score from credit signals.

    Users without credit cards get 650. Otherwise start at 700, subtract
    10/30/50 for average utilization above 30/50/80 and 40 if any card is
    overdue, then clamp to 500-850.
    """
    if not signals.credit or not signals.credit.accounts:
        return NO_CREDIT_HISTORY_SCORE

    score = BASE_CREDIT_SCORE
    average_utilization = signals.credit.average_utilization_percent
    if average_utilization > 80:
        score -= 50
    elif average_utilization > 50:
        score -= 30
    elif average_utilization > 30:
        score -= 10

    if signals.credit.any_overdue:
        score -= OVERDUE_PENALTY

    return max(MIN_CREDIT_SCORE, min(MAX_CREDIT_SCORE, score))


def is_predatory(offer: PartnerOffer) -> bool:
    return offer.type in PREDATORY_OFFER_TYPES or offer.offer_id in BLACKLISTED_OFFER_IDS


def check_credit_score(offer: PartnerOffer, context: EligibilityContext) -> Tuple[bool, Optional[str]]:
    """
    Check if user meets credit score requirement.

    Returns:
        Tuple of (is_eligible, reason_if_not_eligible)
    """
    minimum = offer.eligibility.min_credit_score
    if minimum is None:
        return True, None

    score = estimate_credit_score(context.signals)
    if score < minimum:
        return False, f"Estimated credit score {score} below minimum {minimum}"
    return True, None


def check_utilization(offer: PartnerOffer, context: EligibilityContext) -> Tuple[bool, Optional[str]]:
    maximum = offer.eligibility.max_utilization
    if maximum is None:
        return True, None

    utilization = context.signals.utilization_percent
    if utilization > maximum:
        return False, f"Utilization {utilization:.1f}% exceeds maximum {maximum}%"
    return True, None


def check_income(offer: PartnerOffer, context: EligibilityContext) -> Tuple[bool, Optional[str]]:
    minimum = offer.eligibility.min_income
    if minimum is None:
        return True, None

    income = context.signals.monthly_income
    if income < minimum:
        return False, f"Monthly income ${income:,.2f} below minimum ${minimum:,.2f}"
    return True, None


def check_subscriptions(offer: PartnerOffer, context: EligibilityContext) -> Tuple[bool, Optional[str]]:
    minimum = offer.eligibility.min_subscriptions
    if minimum is None:
        return True, None

    count = context.signals.recurring_merchant_count
    if count < minimum:
        return False, f"{count} recurring subscriptions, minimum {minimum}"
    return True, None


def _account_labels(account: Account, include_name: bool) -> List[str]:
    labels = [account.type, account.subtype]
    if include_name and account.balances is not None:
        labels.append(account.balances.name)
    return [label.lower() for label in labels if label]


def check_existing_accounts(offer: PartnerOffer, context: EligibilityContext) -> Tuple[bool, Optional[str]]:
    """
    Check if user already has a product that excludes this offer.

    Matches case-insensitively as a substring of the account's type,
    subtype or institution name.
    """
    excluded = [e.lower() for e in offer.eligibility.exclude_existing]
    if not excluded:
        return True, None

    for account in context.accounts:
        labels = _account_labels(account, include_name=True)
        for term in excluded:
            if any(term in label for label in labels):
                return False, f"User already has a '{term}' account ({account.account_id})"
    return True, None


def check_account_types(offer: PartnerOffer, context: EligibilityContext) -> Tuple[bool, Optional[str]]:
    excluded = [e.lower() for e in offer.eligibility.exclude_account_types]
    if not excluded:
        return True, None

    for account in context.accounts:
        labels = _account_labels(account, include_name=False)
        for term in excluded:
            if any(term in label for label in labels):
                return False, f"User has excluded account type '{term}'"
    return True, None


def check_persona(offer: PartnerOffer, context: EligibilityContext) -> Tuple[bool, Optional[str]]:
    required = offer.eligibility.persona
    if required is None:
        return True, None

    if context.persona_type != required:
        return False, f"Offer targets persona '{required}', user is '{context.persona_type}'"
    return True, None


ELIGIBILITY_CHECKS = [
    ('credit_score', check_credit_score),
    ('utilization', check_utilization),
    ('income', check_income),
    ('subscriptions', check_subscriptions),
    ('existing_accounts', check_existing_accounts),
    ('account_types', check_account_types),
    ('persona', check_persona),
]


def check_offer_eligibility(offer: PartnerOffer, context: EligibilityContext) -> EligibilityResult:
    """
    Check if a user is eligible for a specific offer.

    Predatory offers are rejected outright. Otherwise every criterion the
    offer sets must pass.

    Args:
        offer: PartnerOffer to check
        context: User's signals, accounts and persona

    Returns:
        EligibilityResult with eligibility status and reasons
    """
    if is_predatory(offer):
        return EligibilityResult(
            eligible=False,
            reasons=[f"Offer type '{offer.type}' is blocked as a predatory product"],
            failed_checks=['predatory'],
        )

    if offer.eligibility.is_empty():
        return EligibilityResult(eligible=True, reasons=["No eligibility criteria"], failed_checks=[])

    reasons = []
    failed_checks = []

    for name, check in ELIGIBILITY_CHECKS:
        passed, reason = check(offer, context)
        if not passed:
            failed_checks.append(name)
            reasons.append(reason)

    eligible = len(failed_checks) == 0

    return EligibilityResult(
        eligible=eligible,
        reasons=reasons if not eligible else ["All eligibility criteria met"],
        failed_checks=failed_checks,
    )


def filter_eligible_offers(
    offers: List[PartnerOffer],
    context: EligibilityContext
) -> Tuple[List[PartnerOffer], Dict[str, EligibilityResult]]:
    """
    Filter offers to only those the user is eligible for.

    Returns:
        Tuple of (eligible_offers, eligibility_results_dict)
        eligibility_results_dict maps offer_id to EligibilityResult
    """
    eligible_offers = []
    eligibility_results = {}

    for offer in offers:
        result = check_offer_eligibility(offer, context)
        eligibility_results[offer.offer_id] = result
        if result.eligible:
            eligible_offers.append(offer)

    return eligible_offers, eligibility_results


def build_eligibility_context(
    user_id: str,
    data_source: DataSource,
    income_threshold: Optional[float] = None,
    reference_date: Optional[DateLike] = None,
    with_persona: bool = True
) -> EligibilityContext:
    """
    Gather signals, accounts and (optionally) the current persona for a user.

    Raises:
        UnknownUserError: If the user does not exist
    """
    signals = detect_signals(user_id, data_source, reference_date=reference_date)
    accounts = data_source.get_accounts(user_id)

    persona_type = None
    if with_persona:
        if income_threshold is None:
            income_threshold = compute_income_percentile(data_source, reference_date=reference_date)
        classification = classify_signals(signals, income_threshold)
        persona_type = classification.primary.persona_type if classification else None

    return EligibilityContext(signals=signals, accounts=accounts, persona_type=persona_type)


def check_eligibility(
    user_id: str,
    offer,
    data_source: DataSource,
    income_threshold: Optional[float] = None,
    reference_date: Optional[DateLike] = None
) -> bool:
    """
    Decide whether an offer may be shown to a user.

    Args:
        user_id: User ID
        offer: PartnerOffer, or an offer_id from the catalog
        data_source: Data access collaborator
        income_threshold: Precomputed top-quartile income
        reference_date: End of the signal window

    Returns:
        True if the offer passes every check

    Raises:
        UnknownUserError: If the user does not exist
        UnknownOfferError: If an offer_id is not in the catalog
    """
    if isinstance(offer, str):
        offer_id = offer
        offer = get_offer_by_id(offer_id)
        if offer is None:
            raise UnknownOfferError(offer_id)

    if is_predatory(offer):
        logger.info("Predatory offer blocked", extra={'user_id': user_id, 'offer_id': offer.offer_id})
        return False

    context = build_eligibility_context(
        user_id, data_source, income_threshold, reference_date,
        with_persona=offer.eligibility.persona is not None,
    )
    result = check_offer_eligibility(offer, context)
    logger.info(
        "Eligibility checked",
        extra={
            'user_id': user_id,
            'offer_id': offer.offer_id,
            'eligible': result.eligible,
            'failed_checks': result.failed_checks,
        },
    )
    return result.eligible
