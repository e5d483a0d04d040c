"""Loan book endpoints - enriched loans and portfolio metrics for the presentation layer"""

import time
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from loanbook_engine.api.dependencies import get_audit_dispatcher, get_request_id
from loanbook_engine.api.v1.schemas import (
    LoanBookResponse,
    PortfolioMetricsSchema,
    ReconcileRequest,
    ReconciledLoanSchema,
)
from loanbook_engine.domain.exceptions import InvalidLoanRecordError
from loanbook_engine.domain.models import BatchResult
from loanbook_engine.domain.pipeline import enrich_batch
from loanbook_engine.infrastructure.audit.dispatcher import AuditDispatcher
from loanbook_engine.infrastructure.database.mappers import loan_record_from_fields
from loanbook_engine.infrastructure.database.repositories import LoanRepository
from loanbook_engine.infrastructure.database.session import get_db
from loanbook_engine.infrastructure.observability.logging import log_batch_processed
from loanbook_engine.infrastructure.observability.metrics import record_batch

router = APIRouter()


def _resolve_as_of(as_of: Optional[datetime]) -> datetime:
    # The clock is read once here; the domain only ever sees an explicit `now`
    if as_of is None:
        return datetime.now(timezone.utc)
    return as_of if as_of.tzinfo else as_of.replace(tzinfo=timezone.utc)


def _respond(
    result: BatchResult,
    now: datetime,
    request_id: str,
    start_time: float,
    background_tasks: BackgroundTasks,
    dispatcher: AuditDispatcher,
) -> LoanBookResponse:
    if result.audit_events:
        background_tasks.add_task(dispatcher.deliver_all, result.audit_events)

    duration_ms = (time.time() - start_time) * 1000
    record_batch(result)
    log_batch_processed(
        request_id,
        result.metrics.total_loans,
        result.metrics.reliable_loans,
        len(result.audit_events),
        duration_ms,
    )

    return LoanBookResponse(
        as_of=now,
        loans=[ReconciledLoanSchema.from_domain(loan) for loan in result.loans],
        portfolio=PortfolioMetricsSchema.from_domain(result.metrics),
    )


@router.get("/loans", response_model=LoanBookResponse)
def list_loans(
    request: Request,
    background_tasks: BackgroundTasks,
    as_of: Optional[datetime] = Query(None, description="Evaluation timestamp (defaults to now, UTC)"),
    db: Session = Depends(get_db),
    dispatcher: AuditDispatcher = Depends(get_audit_dispatcher),
):
    """
    Reconcile and risk-score every loan in the store.

    Flow:
    1. Load loan book rows and map payment columns to positional slots
    2. Reconcile + score each loan, then aggregate the portfolio
    3. Queue risk audit entries for loans whose risk output changed
    4. Return enriched loans and portfolio metrics
    """
    start_time = time.time()
    request_id = get_request_id(request)
    now = _resolve_as_of(as_of)

    try:
        records = LoanRepository(db).list_loans()
    except InvalidLoanRecordError as e:
        logging.error(f"Malformed loan record in store: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Loan book contains malformed records")

    result = enrich_batch(records, now)
    return _respond(result, now, request_id, start_time, background_tasks, dispatcher)


@router.post("/loans/reconcile", response_model=LoanBookResponse)
def reconcile_loans(
    request_body: ReconcileRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    dispatcher: AuditDispatcher = Depends(get_audit_dispatcher),
):
    """Reconcile and risk-score a posted batch of raw loan records"""
    start_time = time.time()
    request_id = get_request_id(request)
    now = _resolve_as_of(request_body.as_of)

    try:
        records = [loan_record_from_fields(loan.model_dump()) for loan in request_body.loans]
    except InvalidLoanRecordError as e:
        logging.warning(f"Invalid loan record: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    result = enrich_batch(records, now)
    return _respond(result, now, request_id, start_time, background_tasks, dispatcher)


@router.get("/portfolio/metrics", response_model=PortfolioMetricsSchema)
def get_portfolio_metrics(
    request: Request,
    as_of: Optional[datetime] = Query(None, description="Evaluation timestamp (defaults to now, UTC)"),
    db: Session = Depends(get_db),
):
    """Portfolio rollup of the whole loan book (no audit logging)"""
    request_id = get_request_id(request)
    now = _resolve_as_of(as_of)

    try:
        records = LoanRepository(db).list_loans()
    except InvalidLoanRecordError as e:
        logging.error(f"Malformed loan record in store: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Loan book contains malformed records")

    result = enrich_batch(records, now)
    return PortfolioMetricsSchema.from_domain(result.metrics)
