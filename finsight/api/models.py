"""
Pydantic Models for API Responses
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class SignalsResponse(BaseModel):
    """Behavioral signals for a user."""
    user_id: str
    window_days: int
    calculated_at: str
    summary: Dict[str, Any]
    credit: Optional[Dict[str, Any]] = None
    income: Optional[Dict[str, Any]] = None
    savings: Optional[Dict[str, Any]] = None
    subscriptions: Optional[Dict[str, Any]] = None
    lifestyle: Optional[Dict[str, Any]] = None


class UtilizationResponse(BaseModel):
    """Utilization of one credit account."""
    account_id: str
    balance: float
    limit: Optional[float] = None
    utilization: float
    threshold: str
    is_high_utilization: bool


class PersonaItem(BaseModel):
    """One matched persona."""
    persona_type: str
    persona_name: str
    criteria_met: List[str]
    confidence: float
    focus_account: Optional[Dict[str, Any]] = None


class PersonaResponse(BaseModel):
    """Persona classification for a user."""
    user_id: str
    primary: Optional[PersonaItem] = None
    secondary: List[PersonaItem] = Field(default_factory=list)
    override_applied: bool = False


class RecommendationItem(BaseModel):
    """Individual ranked recommendation."""
    rec_id: str
    type: str  # 'education' or 'partner_offer'
    title: str
    description: str
    category: str
    rationale: str
    impact_estimate: Optional[float] = None
    impact_score: float
    urgency_score: float
    priority_score: float


class RecommendationResponse(BaseModel):
    """Response model for recommendations."""
    user_id: str
    persona: Optional[str]
    recommendations: List[RecommendationItem]
    count: int


class EligibilityResponse(BaseModel):
    """Eligibility of one offer for one user."""
    user_id: str
    offer_id: str
    eligible: bool
    reasons: List[str]
    failed_checks: List[str]


class PaymentPlanResponse(BaseModel):
    """Debt payoff plan, or the reason no plan applies."""
    user_id: str
    applicable: bool
    reason: Optional[str] = None
    message: Optional[str] = None
    strategy: Optional[str] = None
    debts: List[Dict[str, Any]] = Field(default_factory=list)
    total_debt: Optional[float] = None
    total_interest: Optional[float] = None
    total_interest_saved: Optional[float] = None
    payoff_months: Optional[int] = None
    monthly_surplus: Optional[float] = None
    converged: Optional[bool] = None
    timeline: List[Dict[str, Any]] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Standard error response model."""
    error: str
    detail: Optional[str] = None
