"""
Persona Assignment Module

This module handles persona assignment based on behavioral signals.
Personas are assigned using a priority system when multiple criteria match.

Modules:
    - criteria: Persona criteria evaluation functions
    - priority: Priority resolution and override rule
    - assignment: Main persona assignment logic
"""

from .assignment import (
    classify_persona,
    classify_signals,
    classify_personas_batch,
    compute_income_percentile,
    ClassificationResult,
    PersonaAssignment,
)
from .criteria import (
    PersonaMatch,
    PERSONA_HIGH_UTILIZATION,
    PERSONA_VARIABLE_INCOME,
    PERSONA_SUBSCRIPTION_HEAVY,
    PERSONA_SAVINGS_BUILDER,
    PERSONA_LIFESTYLE_CREEP,
)
from .priority import PERSONA_NAMES, PERSONA_PRIORITY

__all__ = [
    'classify_persona',
    'classify_signals',
    'classify_personas_batch',
    'compute_income_percentile',
    'ClassificationResult',
    'PersonaAssignment',
    'PersonaMatch',
    'PERSONA_HIGH_UTILIZATION',
    'PERSONA_VARIABLE_INCOME',
    'PERSONA_SUBSCRIPTION_HEAVY',
    'PERSONA_SAVINGS_BUILDER',
    'PERSONA_LIFESTYLE_CREEP',
    'PERSONA_NAMES',
    'PERSONA_PRIORITY',
]
