"""GET /v1/loans/{loan_id}/risk-history - Fetch a loan's risk audit trail"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from loanbook_engine.api.v1.schemas import RiskHistoryResponse, RiskHistoryItem
from loanbook_engine.infrastructure.database.session import get_db
from loanbook_engine.infrastructure.database.repositories import RiskLogRepository

router = APIRouter()


@router.get("/loans/{loan_id}/risk-history", response_model=RiskHistoryResponse)
def get_risk_history(
    loan_id: str,
    limit: int = Query(20, ge=1, le=100, description="Maximum entries to return"),
    db: Session = Depends(get_db),
):
    """
    Retrieve recent risk model outputs logged for a loan.

    Returns:
        Entries newest first; an unknown loan yields an empty list
    """
    log_repo = RiskLogRepository(db)
    entries = log_repo.get_entries_by_loan(loan_id, limit=limit)

    history_items = [
        RiskHistoryItem(
            log_id=e.id,
            risk_score=e.risk_score,
            default_probability=e.default_probability,
            model_version=e.model_version,
            model_output=e.model_output,
            calculated_at=e.calculated_at.isoformat(),
        )
        for e in entries
    ]

    return RiskHistoryResponse(loan_id=loan_id, entries=history_items)
