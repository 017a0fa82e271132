"""
Public API Endpoints

Read-only endpoints exposing signals, personas, recommendations, offer
eligibility and debt payoff plans.
"""

from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from finsight.exceptions import FinsightError
from finsight.features.credit import calculate_account_utilization
from finsight.features.signals import detect_signals
from finsight.ingest.database import get_session
from finsight.ingest.repository import DataSource, SQLAlchemyDataSource
from finsight.personas.assignment import PersonaAssignment, classify_persona
from finsight.planning.payoff import compare_strategies, simulate_payment_plan, PlanNotApplicable
from finsight.recommend.eligibility import build_eligibility_context, check_offer_eligibility
from finsight.recommend.engine import generate_recommendations
from finsight.recommend.offers import get_offer_by_id
from finsight.api.exceptions import OfferNotFoundError, to_http_error
from finsight.api.models import (
    SignalsResponse, UtilizationResponse, PersonaItem, PersonaResponse, RecommendationItem,
    RecommendationResponse, EligibilityResponse, PaymentPlanResponse,
)


router = APIRouter(prefix="/api", tags=["public"])


def get_db_session() -> Session:
    """Dependency to get database session."""
    session = get_session()
    try:
        yield session
    finally:
        session.close()


def get_data_source(session: Session = Depends(get_db_session)) -> DataSource:
    """Dependency wrapping the session in a data source."""
    return SQLAlchemyDataSource(session)


def _persona_item(assignment: PersonaAssignment) -> PersonaItem:
    return PersonaItem(
        persona_type=assignment.persona_type,
        persona_name=assignment.persona_name,
        criteria_met=assignment.criteria_met,
        confidence=assignment.confidence,
        focus_account=assignment.focus_account.to_dict() if assignment.focus_account else None,
    )


@router.get("/users/{user_id}/signals", response_model=SignalsResponse)
def get_signals(
    user_id: str,
    window_days: Optional[int] = Query(None, ge=1, le=730),
    data_source: DataSource = Depends(get_data_source)
) -> SignalsResponse:
    """
    Get behavioral signals for a user.

    Raises:
        UserNotFoundError: If user not found
    """
    try:
        signals = detect_signals(user_id, data_source, window_days=window_days)
    except FinsightError as exc:
        raise to_http_error(exc)

    return SignalsResponse(**signals.to_dict())


@router.get("/users/{user_id}/persona", response_model=PersonaResponse)
def get_persona(
    user_id: str,
    data_source: DataSource = Depends(get_data_source)
) -> PersonaResponse:
    """
    Classify a user's persona.

    Returns the primary persona (None when nothing matched), any secondary
    matches, and whether the weak High Utilization override was applied.
    """
    try:
        result = classify_persona(user_id, data_source)
    except FinsightError as exc:
        raise to_http_error(exc)

    if result is None:
        return PersonaResponse(user_id=user_id)

    return PersonaResponse(
        user_id=user_id,
        primary=_persona_item(result.primary),
        secondary=[_persona_item(s) for s in result.secondary],
        override_applied=result.override_applied,
    )


@router.get("/users/{user_id}/recommendations", response_model=RecommendationResponse)
def get_recommendations(
    user_id: str,
    limit: Optional[int] = Query(None, ge=1, le=20),
    data_source: DataSource = Depends(get_data_source)
) -> RecommendationResponse:
    """
    Get ranked recommendations with rationales.

    Raises:
        UserNotFoundError: If user not found
    """
    try:
        recommendations = generate_recommendations(user_id, data_source, limit=limit)
    except FinsightError as exc:
        raise to_http_error(exc)

    items = []
    for rec in recommendations:
        data = rec.to_dict()
        data.pop('user_id')
        data.pop('persona_type')
        items.append(RecommendationItem(**data))

    return RecommendationResponse(
        user_id=user_id,
        persona=recommendations[0].persona_type if recommendations else None,
        recommendations=items,
        count=len(items),
    )


@router.get("/users/{user_id}/offers/{offer_id}/eligibility", response_model=EligibilityResponse)
def get_offer_eligibility(
    user_id: str,
    offer_id: str,
    data_source: DataSource = Depends(get_data_source)
) -> EligibilityResponse:
    """
    Check whether a partner offer may be shown to a user.

    Raises:
        OfferNotFoundError: If the offer is not in the catalog
        UserNotFoundError: If user not found
    """
    offer = get_offer_by_id(offer_id)
    if offer is None:
        raise OfferNotFoundError(offer_id)

    try:
        context = build_eligibility_context(
            user_id, data_source, with_persona=offer.eligibility.persona is not None
        )
    except FinsightError as exc:
        raise to_http_error(exc)

    result = check_offer_eligibility(offer, context)
    return EligibilityResponse(
        user_id=user_id,
        offer_id=offer_id,
        eligible=result.eligible,
        reasons=result.reasons,
        failed_checks=result.failed_checks,
    )


@router.get("/users/{user_id}/payment-plan", response_model=PaymentPlanResponse)
def get_payment_plan(
    user_id: str,
    strategy: str = Query("avalanche"),
    data_source: DataSource = Depends(get_data_source)
) -> PaymentPlanResponse:
    """
    Build a debt payoff plan.

    Users without eligible debts or without surplus cash flow get
    applicable=false with a reason.

    Raises:
        UserNotFoundError: If user not found
        ValueError: If strategy is not avalanche or snowball
    """
    try:
        plan = simulate_payment_plan(user_id, data_source, strategy=strategy)
    except FinsightError as exc:
        raise to_http_error(exc)

    return PaymentPlanResponse(user_id=user_id, **plan.to_dict())


@router.get("/users/{user_id}/payment-plan/compare", response_model=Dict[str, PaymentPlanResponse])
def get_payment_plan_comparison(
    user_id: str,
    data_source: DataSource = Depends(get_data_source)
) -> Dict[str, PaymentPlanResponse]:
    """Avalanche and snowball plans side by side."""
    try:
        plans = compare_strategies(user_id, data_source)
    except FinsightError as exc:
        raise to_http_error(exc)

    if isinstance(plans, PlanNotApplicable):
        not_applicable = PaymentPlanResponse(user_id=user_id, **plans.to_dict())
        return {'avalanche': not_applicable, 'snowball': not_applicable}

    return {
        strategy: PaymentPlanResponse(user_id=user_id, **plan.to_dict())
        for strategy, plan in plans.items()
    }


@router.get("/accounts/{account_id}/utilization", response_model=UtilizationResponse)
def get_account_utilization(
    account_id: str,
    data_source: DataSource = Depends(get_data_source)
) -> UtilizationResponse:
    """
    Utilization of a single credit account.

    Raises:
        AccountNotFoundError: If the account does not exist
        InvalidAccountTypeError: If the account is not a credit account
    """
    try:
        result = calculate_account_utilization(account_id, data_source)
    except FinsightError as exc:
        raise to_http_error(exc)

    return UtilizationResponse(**result.to_dict())
