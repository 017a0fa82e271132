"""
Persona Assignment Module

Main entry point for persona classification. Detects signals, evaluates all
persona checks, resolves priority and returns the primary persona along with
any secondary matches.
"""

import logging
import statistics
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from finsight.config import settings
from finsight.features.credit import AccountCreditSignals
from finsight.features.signals import SignalBundle, detect_signals
from finsight.features.window_utils import DateLike
from finsight.ingest.repository import DataSource
from .criteria import PersonaMatch
from .priority import PERSONA_NAMES, evaluate_all_personas, resolve_persona_priority

logger = logging.getLogger(__name__)


@dataclass
class PersonaAssignment:
    """Persona assignment with the criteria and signals behind it."""
    persona_type: str
    criteria_met: List[str]
    confidence: float
    signals: SignalBundle
    focus_account: Optional[AccountCreditSignals] = None

    @property
    def persona_name(self) -> str:
        return PERSONA_NAMES.get(self.persona_type, self.persona_type)

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            'persona_type': self.persona_type,
            'persona_name': self.persona_name,
            'criteria_met': list(self.criteria_met),
            'confidence': self.confidence,
            'focus_account': self.focus_account.to_dict() if self.focus_account else None,
            'signals': self.signals.to_dict(),
        }


@dataclass
class ClassificationResult:
    """Primary persona plus the other personas that also matched."""
    primary: PersonaAssignment
    secondary: List[PersonaAssignment] = field(default_factory=list)
    override_applied: bool = False

    def to_dict(self) -> dict:
        return {
            'primary': self.primary.to_dict(),
            'secondary': [
                {k: v for k, v in s.to_dict().items() if k != 'signals'}
                for s in self.secondary
            ],
            'override_applied': self.override_applied,
        }


def _to_assignment(match: PersonaMatch, signals: SignalBundle) -> PersonaAssignment:
    return PersonaAssignment(
        persona_type=match.persona_type,
        criteria_met=list(match.criteria_met),
        confidence=match.confidence,
        signals=signals,
        focus_account=match.focus_account,
    )


def classify_signals(signals: SignalBundle, income_threshold: Optional[float] = None) -> Optional[ClassificationResult]:
    """
    Classify a user from an already-computed signal bundle.

    Pure function of its inputs: the same bundle and threshold always give
    the same result.

    Args:
        signals: Signal bundle for the user
        income_threshold: Top-quartile monthly income cut-off (Lifestyle Creep)

    Returns:
        ClassificationResult, or None if no persona matched
    """
    resolution = resolve_persona_priority(evaluate_all_personas(signals, income_threshold))
    if resolution is None:
        return None

    return ClassificationResult(
        primary=_to_assignment(resolution.primary, signals),
        secondary=[_to_assignment(m, signals) for m in resolution.secondary],
        override_applied=resolution.override_applied,
    )


def percentile(values: List[float], pct: int) -> Optional[float]:
    """Inclusive percentile of values (None for an empty list)."""
    if not values:
        return None
    if len(values) == 1:
        return values[0]
    cut_points = statistics.quantiles(values, n=100, method='inclusive')
    return cut_points[pct - 1]


def compute_income_percentile(
    data_source: DataSource,
    pct: Optional[int] = None,
    window_days: Optional[int] = None,
    reference_date: Optional[DateLike] = None
) -> Optional[float]:
    """
    Monthly income at the given percentile across all users with income.

    Users whose signals cannot be computed are logged and skipped.

    Args:
        data_source: Data access collaborator
        pct: Percentile (defaults to settings.income_percentile)
        window_days: Signal window
        reference_date: End of the window

    Returns:
        Income cut-off, or None if no user has income
    """
    if pct is None:
        pct = settings.income_percentile

    incomes = []
    for user_id in data_source.get_all_user_ids():
        try:
            bundle = detect_signals(user_id, data_source, window_days, reference_date)
        except Exception:
            logger.exception("Skipping user in income percentile", extra={'user_id': user_id})
            continue
        if bundle.monthly_income > 0:
            incomes.append(bundle.monthly_income)

    threshold = percentile(sorted(incomes), pct)
    logger.debug("Computed income percentile", extra={'percentile': pct, 'threshold': threshold})
    return threshold


def classify_persona(
    user_id: str,
    data_source: DataSource,
    income_threshold: Optional[float] = None,
    window_days: Optional[int] = None,
    reference_date: Optional[DateLike] = None
) -> Optional[ClassificationResult]:
    """
    Classify a user's persona.

    Args:
        user_id: User ID
        data_source: Data access collaborator
        income_threshold: Precomputed top-quartile income (computed across
            all users when omitted)
        window_days: Signal window
        reference_date: End of the window

    Returns:
        ClassificationResult, or None if no persona matched

    Raises:
        UnknownUserError: If the user does not exist
    """
    signals = detect_signals(user_id, data_source, window_days, reference_date)

    if income_threshold is None:
        income_threshold = compute_income_percentile(data_source, window_days=window_days, reference_date=reference_date)

    result = classify_signals(signals, income_threshold)
    logger.info(
        "Persona classified",
        extra={
            'user_id': user_id,
            'persona': result.primary.persona_type if result else None,
            'secondary': [s.persona_type for s in result.secondary] if result else [],
        },
    )
    return result


def classify_personas_batch(
    user_ids: List[str],
    data_source: DataSource,
    window_days: Optional[int] = None,
    reference_date: Optional[DateLike] = None
) -> Dict[str, Optional[ClassificationResult]]:
    """
    Classify many users, computing the income cut-off once.

    A failure for one user is logged and recorded as None.
    """
    threshold = compute_income_percentile(data_source, window_days=window_days, reference_date=reference_date)

    results = {}
    for user_id in user_ids:
        try:
            results[user_id] = classify_persona(
                user_id, data_source, threshold, window_days, reference_date
            )
        except Exception:
            logger.exception("Error classifying persona", extra={'user_id': user_id})
            results[user_id] = None

    return results
