"""Data access layer for loan book and risk log entities"""

from typing import List
from sqlalchemy.orm import Session
from loanbook_engine.infrastructure.database.mappers import loan_record_from_row
from loanbook_engine.infrastructure.database.models import LoanBookRecord, LoanRiskPredictionLog
from loanbook_engine.domain.models import LoanRecord, RiskAuditLogEntry


class LoanRepository:
    """Read-only repository for loan book records"""

    def __init__(self, db: Session):
        self.db = db

    def list_loans(self) -> List[LoanRecord]:
        """Fetch every loan as a domain record"""
        rows = self.db.query(LoanBookRecord).order_by(LoanBookRecord.created_at.desc()).all()
        return [loan_record_from_row(row) for row in rows]


class RiskLogRepository:
    """Repository for risk prediction audit entries"""

    def __init__(self, db: Session):
        self.db = db

    def create_entry(self, entry: RiskAuditLogEntry) -> LoanRiskPredictionLog:
        """Persist a risk audit entry (caller commits)"""
        db_entry = LoanRiskPredictionLog(
            loan_id=entry.loan_id,
            risk_score=entry.risk_score,
            default_probability=entry.default_probability,
            model_version=entry.model_version,
            model_input=entry.model_input,
            model_output=entry.model_output,
            calculated_at=entry.calculated_at,
        )
        self.db.add(db_entry)
        self.db.flush()
        return db_entry

    def get_entries_by_loan(self, loan_id: str, limit: int = 20) -> List[LoanRiskPredictionLog]:
        """Fetch recent risk log entries for a loan"""
        return (
            self.db.query(LoanRiskPredictionLog)
            .filter(LoanRiskPredictionLog.loan_id == loan_id)
            .order_by(LoanRiskPredictionLog.calculated_at.desc())
            .limit(limit)
            .all()
        )
