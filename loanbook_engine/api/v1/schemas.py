"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from loanbook_engine.domain.models import PortfolioMetrics, ReconciledLoan


class LoanRecordSchema(BaseModel):
    """Raw loan record posted for reconciliation.

    Payment slots may be sent as `payment_slots` (position order) or under
    their store column names (amount_paid_1 ... Amount_Paid_12, or the
    date-based names); unknown fields are kept for the slot adapter.
    """

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., min_length=1, description="Loan identifier")
    loan_date: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    amount_returnable: Optional[float] = None
    remaining_balance: Optional[float] = None
    status: str = "active"
    payment_slots: Optional[List[Optional[float]]] = Field(default=None, max_length=12)
    risk_score: Optional[int] = None
    default_probability: Optional[float] = None
    risk_level: Optional[str] = None
    risk_factors: Optional[Dict[str, Any]] = None
    client_name: Optional[str] = None
    payment_mode: Optional[str] = None
    user_id: Optional[str] = None


class ReconcileRequest(BaseModel):
    """Request body for POST /v1/loans/reconcile"""

    loans: List[LoanRecordSchema]
    as_of: Optional[datetime] = None


class ReconciledLoanSchema(BaseModel):
    """Enriched loan: store fields plus reconciled, quality and risk fields"""

    id: str
    client_name: Optional[str] = None
    user_id: Optional[str] = None
    amount_returnable: Optional[float] = None
    remaining_balance: Optional[float] = None
    status: str
    payment_mode: Optional[str] = None
    loan_date: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    payment_slots: List[Optional[float]]

    calculated_total_paid: float
    calculated_remaining_balance: float
    calculated_progress: float
    data_quality_score: int
    has_calculation_errors: bool
    discrepancies: List[str]
    confidence_level: str
    payment_pattern: str
    active_payment_slots: List[int]
    estimated_completion_date: Optional[date] = None
    collection_efficiency: float
    recently_updated: bool
    is_completed: bool

    risk_score: Optional[int] = None
    default_probability: Optional[float] = None
    risk_level: Optional[str] = None
    risk_factors: Dict[str, bool] = {}

    @classmethod
    def from_domain(cls, loan: ReconciledLoan) -> "ReconciledLoanSchema":
        return cls(**loan.to_dict())


class PortfolioMetricsSchema(BaseModel):
    """Portfolio rollup for one batch"""

    model_config = ConfigDict(from_attributes=True)

    reliable_total_portfolio: float
    reliable_total_paid: float
    reliable_total_remaining: float
    reliable_collection_rate: float
    total_loans: int
    reliable_loans: int
    data_quality_issues: int
    overall_data_quality: float
    average_collection_efficiency: float
    loans_needing_attention: int
    risk_level_distribution: Dict[str, int]
    average_risk_score: float
    has_data_quality_issues: bool

    @classmethod
    def from_domain(cls, metrics: PortfolioMetrics) -> "PortfolioMetricsSchema":
        return cls.model_validate(metrics)


class LoanBookResponse(BaseModel):
    """Response for GET /v1/loans and POST /v1/loans/reconcile"""

    as_of: datetime
    loans: List[ReconciledLoanSchema]
    portfolio: PortfolioMetricsSchema


class RiskHistoryItem(BaseModel):
    """Single risk audit entry"""

    log_id: str
    risk_score: int
    default_probability: float
    model_version: str
    model_output: Optional[Dict[str, Any]] = None
    calculated_at: str


class RiskHistoryResponse(BaseModel):
    """Response for GET /v1/loans/{loan_id}/risk-history"""

    loan_id: str
    entries: List[RiskHistoryItem]
