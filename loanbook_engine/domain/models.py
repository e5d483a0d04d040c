"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from loanbook_engine.domain.exceptions import InvalidLoanRecordError
from loanbook_engine.domain.payments import PaymentSlots, normalize_payment_slots
from loanbook_engine.utils.date_utils import to_utc_datetime

ConfidenceLevel = Literal["high", "medium", "low"]
PaymentPattern = Literal["regular", "irregular", "declining", "accelerating"]
RiskLevel = Literal["low", "medium", "high", "critical"]

RISK_LEVELS = ("low", "medium", "high", "critical")


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass
class LoanRecord:
    """Raw loan book row as supplied by the record store"""

    id: str
    loan_date: datetime
    created_at: datetime
    amount_returnable: Optional[float] = 0.0
    remaining_balance: Optional[float] = 0.0
    status: str = "active"  # "active", "completed", "overdue", ...
    payment_slots: PaymentSlots = ()
    updated_at: Optional[datetime] = None

    # Previously stored risk output, only used to detect change
    risk_score: Optional[int] = None
    default_probability: Optional[float] = None
    risk_level: Optional[str] = None
    risk_factors: Optional[Dict[str, Any]] = None

    client_name: Optional[str] = None
    payment_mode: Optional[str] = None
    user_id: Optional[str] = None

    def __post_init__(self) -> None:
        self.id = str(self.id)
        self.payment_slots = normalize_payment_slots(self.payment_slots)
        try:
            self.loan_date = to_utc_datetime(self.loan_date)
            self.created_at = to_utc_datetime(self.created_at)
            if self.updated_at is not None:
                self.updated_at = to_utc_datetime(self.updated_at)
        except (TypeError, ValueError) as e:
            raise InvalidLoanRecordError(f"Loan {self.id}: invalid timestamp: {e}") from e

    def to_snapshot(self) -> Dict[str, Any]:
        """JSON-serializable copy of the record, used as audit model input"""
        return {
            "id": self.id,
            "client_name": self.client_name,
            "user_id": self.user_id,
            "amount_returnable": self.amount_returnable,
            "remaining_balance": self.remaining_balance,
            "status": self.status,
            "payment_mode": self.payment_mode,
            "loan_date": _isoformat(self.loan_date),
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
            "payment_slots": list(self.payment_slots),
            "risk_score": self.risk_score,
            "default_probability": self.default_probability,
            "risk_level": self.risk_level,
            "risk_factors": self.risk_factors,
        }


@dataclass
class PaymentBehaviour:
    """Payment signals the risk model scores"""

    days_since_loan: int
    months_since_loan: int
    total_paid: float
    payment_ratio: float
    outstanding_ratio: float
    active_payment_count: int
    negative_slots: List[int]
    is_overdue: bool


@dataclass
class RiskAssessment:
    """Output of the rule-based risk model"""

    risk_score: int
    default_probability: float
    risk_level: RiskLevel
    risk_factors: Dict[str, bool]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "risk_score": self.risk_score,
            "default_probability": self.default_probability,
            "risk_level": self.risk_level,
            "risk_factors": dict(self.risk_factors),
        }


@dataclass
class ReconciledLoan:
    """Loan record enriched with reconciled figures, quality signals and risk output"""

    record: LoanRecord
    calculated_total_paid: float
    calculated_remaining_balance: float
    calculated_progress: float
    data_quality_score: int
    discrepancies: List[str]
    confidence_level: ConfidenceLevel
    payment_pattern: PaymentPattern
    active_payment_slots: List[int]
    estimated_completion_date: Optional[date]
    collection_efficiency: float
    recently_updated: bool
    is_completed: bool

    # Filled in from the risk scoring engine
    risk_score: Optional[int] = None
    default_probability: Optional[float] = None
    risk_level: Optional[RiskLevel] = None
    risk_factors: Dict[str, bool] = field(default_factory=dict)

    @property
    def loan_id(self) -> str:
        return self.record.id

    @property
    def has_calculation_errors(self) -> bool:
        return len(self.discrepancies) > 0

    def to_dict(self) -> Dict[str, Any]:
        """Record fields plus computed fields, flattened for the presentation layer"""
        data = self.record.to_snapshot()
        data.update(
            {
                "calculated_total_paid": self.calculated_total_paid,
                "calculated_remaining_balance": self.calculated_remaining_balance,
                "calculated_progress": self.calculated_progress,
                "data_quality_score": self.data_quality_score,
                "has_calculation_errors": self.has_calculation_errors,
                "discrepancies": list(self.discrepancies),
                "confidence_level": self.confidence_level,
                "payment_pattern": self.payment_pattern,
                "active_payment_slots": list(self.active_payment_slots),
                "estimated_completion_date": (
                    self.estimated_completion_date.isoformat() if self.estimated_completion_date else None
                ),
                "collection_efficiency": self.collection_efficiency,
                "recently_updated": self.recently_updated,
                "is_completed": self.is_completed,
                "risk_score": self.risk_score,
                "default_probability": self.default_probability,
                "risk_level": self.risk_level,
                "risk_factors": dict(self.risk_factors),
            }
        )
        return data


@dataclass
class PortfolioMetrics:
    """Fleet-wide rollup of a batch of reconciled loans"""

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
    risk_level_distribution: Dict[str, int] = field(default_factory=dict)
    average_risk_score: float = 0.0

    @property
    def has_data_quality_issues(self) -> bool:
        return self.data_quality_issues > 0


@dataclass
class RiskAuditLogEntry:
    """Audit record emitted when a loan's risk output changes"""

    loan_id: str
    risk_score: int
    default_probability: float
    model_version: str
    model_input: Dict[str, Any]
    model_output: Dict[str, Any]
    calculated_at: datetime

    def to_payload(self) -> Dict[str, Any]:
        return {
            "loan_id": self.loan_id,
            "risk_score": self.risk_score,
            "default_probability": self.default_probability,
            "model_version": self.model_version,
            "model_input": self.model_input,
            "model_output": self.model_output,
            "calculated_at": self.calculated_at.isoformat(),
        }


@dataclass
class EnrichmentResult:
    """Per-record output of the pure core"""

    loan: ReconciledLoan
    audit_event: Optional[RiskAuditLogEntry] = None


@dataclass
class BatchResult:
    """Enriched loans, portfolio metrics and pending audit events for one pass"""

    loans: List[ReconciledLoan]
    metrics: PortfolioMetrics
    audit_events: List[RiskAuditLogEntry] = field(default_factory=list)
