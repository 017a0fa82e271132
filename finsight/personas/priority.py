"""
Persona Priority Resolution

Personas are resolved in two phases. First every persona check runs
independently. Then the matches are ordered by priority and a single
override rule is applied.

Priority Order:
1. High Utilization (most urgent financial risk)
2. Variable Income (cash flow instability)
3. Lifestyle Creep (income growth not reaching savings)
4. Subscription Heavy (actionable savings opportunity)
5. Savings Builder (positive reinforcement)

Override: when High Utilization ranks first but only matched on weak
criteria (interest charges or minimum payments, never utilization >= 50%),
a match whose confidence beats it by more than 0.2 becomes primary and
High Utilization is demoted to secondary.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from finsight.features.signals import SignalBundle
from .criteria import (
    PersonaMatch,
    WEAK_CRITERIA,
    PERSONA_HIGH_UTILIZATION,
    PERSONA_VARIABLE_INCOME,
    PERSONA_LIFESTYLE_CREEP,
    PERSONA_SUBSCRIPTION_HEAVY,
    PERSONA_SAVINGS_BUILDER,
    check_high_utilization,
    check_variable_income,
    check_lifestyle_creep,
    check_subscription_heavy,
    check_savings_builder,
)

logger = logging.getLogger(__name__)

# Persona priority mapping (lower number = higher priority)
PERSONA_PRIORITY = {
    PERSONA_HIGH_UTILIZATION: 1,
    PERSONA_VARIABLE_INCOME: 2,
    PERSONA_LIFESTYLE_CREEP: 3,
    PERSONA_SUBSCRIPTION_HEAVY: 4,
    PERSONA_SAVINGS_BUILDER: 5,
}

# Persona display names
PERSONA_NAMES = {
    PERSONA_HIGH_UTILIZATION: 'High Utilization',
    PERSONA_VARIABLE_INCOME: 'Variable Income Budgeter',
    PERSONA_LIFESTYLE_CREEP: 'Lifestyle Creep',
    PERSONA_SUBSCRIPTION_HEAVY: 'Subscription-Heavy',
    PERSONA_SAVINGS_BUILDER: 'Savings Builder',
}

OVERRIDE_CONFIDENCE_MARGIN = 0.2


@dataclass
class Resolution:
    """Outcome of priority resolution."""
    primary: PersonaMatch
    secondary: List[PersonaMatch]
    override_applied: bool = False


def evaluate_all_personas(signals: SignalBundle, income_threshold: Optional[float] = None) -> List[PersonaMatch]:
    """
    Run every persona check independently.

    Args:
        signals: Signal bundle for the user
        income_threshold: Top-quartile monthly income cut-off for Lifestyle Creep

    Returns:
        List of matches, in no particular order of importance
    """
    candidates = [
        check_high_utilization(signals),
        check_variable_income(signals),
        check_lifestyle_creep(signals, income_threshold),
        check_subscription_heavy(signals),
        check_savings_builder(signals),
    ]
    return [match for match in candidates if match is not None]


def is_weak_high_utilization(match: PersonaMatch) -> bool:
    """True if a High Utilization match rests only on interest/minimum-payment criteria."""
    return (
        match.persona_type == PERSONA_HIGH_UTILIZATION
        and bool(match.criteria_met)
        and all(criterion in WEAK_CRITERIA for criterion in match.criteria_met)
    )


def resolve_persona_priority(matches: List[PersonaMatch]) -> Optional[Resolution]:
    """
    Resolve which persona to assign when multiple match.

    Args:
        matches: Matches from evaluate_all_personas

    Returns:
        Resolution with the primary match and the remaining matches in
        priority order, or None if nothing matched
    """
    if not matches:
        return None

    ordered = sorted(matches, key=lambda m: PERSONA_PRIORITY.get(m.persona_type, 999))
    top = ordered[0]

    if is_weak_high_utilization(top):
        challengers = [
            m for m in ordered[1:]
            if m.confidence - top.confidence > OVERRIDE_CONFIDENCE_MARGIN
        ]
        if challengers:
            # Highest confidence wins; ties go to the higher-priority persona
            promoted = max(challengers, key=lambda m: m.confidence)
            logger.info(
                "Persona override applied",
                extra={
                    'promoted': promoted.persona_type,
                    'promoted_confidence': promoted.confidence,
                    'demoted_confidence': top.confidence,
                },
            )
            secondary = [m for m in ordered if m is not promoted]
            return Resolution(primary=promoted, secondary=secondary, override_applied=True)

    return Resolution(primary=top, secondary=ordered[1:])
