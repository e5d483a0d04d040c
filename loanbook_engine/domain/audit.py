"""Risk audit events - detect changed risk output and build log entries"""

from datetime import datetime
from typing import Optional

from loanbook_engine.domain.models import LoanRecord, RiskAssessment, RiskAuditLogEntry
from loanbook_engine.domain.scoring import MODEL_VERSION
from loanbook_engine.utils.date_utils import to_utc_datetime


def risk_output_changed(record: LoanRecord, assessment: RiskAssessment) -> bool:
    """True when the stored score, probability or level differs (or was never stored)"""
    return (
        record.risk_score != assessment.risk_score
        or record.default_probability != assessment.default_probability
        or record.risk_level != assessment.risk_level
    )


def build_audit_event(
    record: LoanRecord,
    assessment: RiskAssessment,
    now: datetime,
) -> Optional[RiskAuditLogEntry]:
    """Build the audit entry for a record, or None if its risk output is unchanged"""
    if not risk_output_changed(record, assessment):
        return None

    return RiskAuditLogEntry(
        loan_id=record.id,
        risk_score=assessment.risk_score,
        default_probability=assessment.default_probability,
        model_version=MODEL_VERSION,
        model_input=record.to_snapshot(),
        model_output=assessment.to_dict(),
        calculated_at=to_utc_datetime(now),
    )
