"""
Rationale Generation Module

Produces a short plain-language explanation for each recommendation that
cites the user's own numbers. Text comes from an injected generator
(e.g. an LLM client wrapped as generate_text(prompt) -> str); when none is
configured, the generator fails, or its output fails tone validation, a
deterministic template is used instead.
"""

import hashlib
import json
import logging
from typing import Callable, List, Optional

from finsight.ai.cache import ResponseCache
from finsight.features.signals import SignalBundle
from finsight.guardrails.tone import validate_tone
from finsight.personas.priority import PERSONA_NAMES
from .ranker import Recommendation

logger = logging.getLogger(__name__)

TextGenerator = Callable[[str], str]

GENERATED_TTL_HOURS = 24 * 30
FALLBACK_TTL_HOURS = 24 * 7

GENERIC_RATIONALE = (
    "This recommendation is tailored to your financial situation and could help "
    "you improve your financial health."
)


def key_signal_lines(signals: SignalBundle) -> List[str]:
    """Signal values worth citing, formatted for a prompt."""
    lines = []
    if signals.utilization_percent > 0:
        lines.append(f"Credit utilization: {signals.utilization_percent:.1f}%")
    if signals.interest_charges > 0 and signals.credit and signals.credit.focus_account:
        monthly = signals.credit.focus_account.interest_charges.monthly_average
        lines.append(f"Monthly interest charges: ${monthly:.2f}")
    if signals.savings is not None:
        lines.append(f"Emergency fund coverage: {signals.emergency_fund_months:.1f} months")
        lines.append(f"Savings rate: {signals.savings_rate_percent:.1f}%")
    if signals.income is not None:
        lines.append(f"Cash flow buffer: {signals.cash_flow_buffer_months:.1f} months")
    if signals.subscriptions is not None:
        lines.append(f"Monthly recurring spend: ${signals.monthly_recurring_spend:.2f}")
    return lines


def build_prompt(
    recommendation: Recommendation,
    signals: SignalBundle,
    persona_type: Optional[str] = None,
    user_name: Optional[str] = None
) -> str:
    lines = key_signal_lines(signals)
    signals_text = ', '.join(lines) if lines else 'General financial data'
    persona = PERSONA_NAMES.get(persona_type, 'None') if persona_type else 'None'
    rec_kind = 'Educational Content' if recommendation.type == 'education' else 'Partner Offer'

    return (
        "Generate a personalized, empathetic explanation for this financial recommendation:\n\n"
        f"User: {user_name or 'Customer'}\n"
        f"Persona: {persona}\n"
        f"Behavioral Signals: {signals_text}\n"
        f"Recommendation: {recommendation.title} - {recommendation.description}\n"
        f"Type: {rec_kind}\n\n"
        "Requirements:\n"
        "- Use specific data points from the behavioral signals provided\n"
        "- Use an empowering, supportive tone with no shaming or judgmental language\n"
        "- Write in plain language and avoid financial jargon\n"
        "- Keep it to 2-3 sentences\n"
        "- Focus on the positive impact this recommendation could have\n"
    )


def generate_fallback_rationale(recommendation: Recommendation, signals: SignalBundle) -> str:
    """
    Template rationale citing one matching data point.

    The first template whose keyword appears in the recommendation title is
    used; otherwise a generic sentence.
    """
    title = recommendation.title or 'This recommendation'
    lowered = title.lower()

    if signals.utilization_percent > 0 and 'credit' in lowered:
        return (
            f"We noticed your credit utilization is {signals.utilization_percent:.1f}%. "
            f"{title} could help you understand how to improve your credit score and reduce interest charges."
        )

    if signals.interest_charges > 0 and ('debt' in lowered or 'balance' in lowered or 'payoff' in lowered):
        focus = signals.credit.focus_account if signals.credit else None
        monthly = focus.interest_charges.monthly_average if focus else signals.interest_charges
        return (
            f"You're currently paying approximately ${monthly:.2f} per month in interest charges. "
            f"{title} could help you save money and pay off your debt faster."
        )

    if signals.subscriptions is not None and 'subscription' in lowered:
        return (
            f"You're spending ${signals.monthly_recurring_spend:.2f} per month on recurring subscriptions. "
            f"{title} could help you identify opportunities to save."
        )

    if signals.savings is not None and 'emergency' in lowered:
        return (
            f"Your emergency fund currently covers {signals.emergency_fund_months:.1f} months of expenses. "
            f"{title} could help you build a stronger financial safety net."
        )

    if signals.savings is not None and 'savings' in lowered:
        return (
            f"You're currently saving {signals.savings_rate_percent:.1f}% of your income. "
            f"{title} could help you optimize your savings strategy."
        )

    return GENERIC_RATIONALE


def _signals_digest(signals: SignalBundle) -> str:
    summary = signals.to_dict()['summary']
    encoded = json.dumps(summary, sort_keys=True, default=str).encode('utf-8')
    return hashlib.sha256(encoded).hexdigest()[:16]


def generate_rationale(
    recommendation: Recommendation,
    signals: SignalBundle,
    persona_type: Optional[str] = None,
    generate_text: Optional[TextGenerator] = None,
    cache: Optional[ResponseCache] = None,
    user_name: Optional[str] = None
) -> str:
    """
    Generate a rationale for one recommendation.

    Args:
        recommendation: Recommendation to explain
        signals: User's signal bundle
        persona_type: User's primary persona
        generate_text: Text generator; the template is used when None
        cache: Optional response cache keyed by user, recommendation,
            persona and signal values
        user_name: Name to address in the prompt

    Returns:
        Rationale text that passed tone validation
    """
    cache_query = None
    if cache is not None:
        cache_query = f"rationale {recommendation.rec_id} {persona_type} {_signals_digest(signals)}"
        cached = cache.get(signals.user_id, cache_query)
        if cached is not None:
            return cached

    rationale = None
    if generate_text is not None:
        try:
            candidate = (generate_text(build_prompt(recommendation, signals, persona_type, user_name)) or '').strip()
        except Exception:
            logger.warning(
                "Rationale generation failed, using template",
                exc_info=True,
                extra={'user_id': signals.user_id, 'rec_id': recommendation.rec_id},
            )
            candidate = ''

        if candidate:
            is_valid, violations = validate_tone(candidate)
            if is_valid:
                rationale = candidate
            else:
                logger.warning(
                    "Generated rationale failed tone validation",
                    extra={'user_id': signals.user_id, 'rec_id': recommendation.rec_id, 'violations': violations},
                )

    ttl_hours = GENERATED_TTL_HOURS
    if rationale is None:
        rationale = generate_fallback_rationale(recommendation, signals)
        ttl_hours = FALLBACK_TTL_HOURS

    if cache is not None:
        cache.put(signals.user_id, cache_query, rationale, ttl_hours=ttl_hours)

    return rationale
