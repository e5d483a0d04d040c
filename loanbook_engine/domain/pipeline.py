"""Per-record enrichment and batch processing - the pure core entry points"""

from dataclasses import replace
from datetime import datetime
from typing import Iterable

from loanbook_engine.domain.audit import build_audit_event
from loanbook_engine.domain.models import BatchResult, EnrichmentResult, LoanRecord
from loanbook_engine.domain.portfolio import aggregate
from loanbook_engine.domain.reconciliation import reconcile
from loanbook_engine.domain.scoring import score_risk


def enrich_loan(record: LoanRecord, now: datetime) -> EnrichmentResult:
    """
    Reconcile and risk-score one record and merge both outputs.

    The audit event is returned, never dispatched: delivering it is the
    caller's job.
    """
    reconciled = reconcile(record, now)
    assessment = score_risk(record, now)

    loan = replace(
        reconciled,
        risk_score=assessment.risk_score,
        default_probability=assessment.default_probability,
        risk_level=assessment.risk_level,
        risk_factors=dict(assessment.risk_factors),
    )
    return EnrichmentResult(loan=loan, audit_event=build_audit_event(record, assessment, now))


def enrich_batch(records: Iterable[LoanRecord], now: datetime) -> BatchResult:
    """
    Enrich every record, then aggregate the portfolio.

    Records are independent of each other; output order follows input order.
    """
    results = [enrich_loan(record, now) for record in records]
    loans = [result.loan for result in results]

    return BatchResult(
        loans=loans,
        metrics=aggregate(loans),
        audit_events=[result.audit_event for result in results if result.audit_event is not None],
    )
