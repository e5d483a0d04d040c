"""Risk audit sinks - destinations for risk audit log entries"""

import asyncio
from typing import Callable, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from loanbook_engine.config import settings
from loanbook_engine.domain.exceptions import AuditSinkError
from loanbook_engine.domain.models import RiskAuditLogEntry
from loanbook_engine.infrastructure.clients.audit_webhook import WebhookRiskAuditSink
from loanbook_engine.infrastructure.database.repositories import RiskLogRepository
from loanbook_engine.infrastructure.database.session import SessionLocal


class RiskAuditSink(Protocol):
    """Anything that can store a risk audit entry"""

    async def write(self, entry: RiskAuditLogEntry) -> None: ...


class DatabaseRiskAuditSink:
    """Writes entries to loan_risk_prediction_log, one session per entry"""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    async def write(self, entry: RiskAuditLogEntry) -> None:
        # SQLAlchemy sessions block; keep them off the event loop
        await asyncio.to_thread(self._insert, entry)

    def _insert(self, entry: RiskAuditLogEntry) -> None:
        db = self.session_factory()
        try:
            RiskLogRepository(db).create_entry(entry)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise AuditSinkError(f"Could not store risk log for loan {entry.loan_id}: {e}") from e
        finally:
            db.close()


def build_audit_sink() -> RiskAuditSink:
    """Create the sink selected by settings.audit_sink"""
    if settings.audit_sink == "webhook":
        return WebhookRiskAuditSink()
    return DatabaseRiskAuditSink(SessionLocal)
