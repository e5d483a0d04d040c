"""Best-effort delivery of risk audit events to a sink"""

import asyncio
from typing import Iterable, List

from loanbook_engine.config import settings
from loanbook_engine.domain.models import RiskAuditLogEntry
from loanbook_engine.infrastructure.audit.sinks import RiskAuditSink
from loanbook_engine.infrastructure.observability.logging import log_audit_failure
from loanbook_engine.infrastructure.observability.metrics import audit_latency_histogram, record_audit_delivery


class AuditDispatcher:
    """
    Hands audit entries to a sink without letting the sink affect the caller.

    Each write is bounded by a timeout and the number of writes in flight is
    capped. Failures are logged and counted, never raised: one failing write
    does not cancel the others.
    """

    def __init__(
        self,
        sink: RiskAuditSink,
        timeout_seconds: float | None = None,
        max_in_flight: int | None = None,
    ):
        self.sink = sink
        self.timeout_seconds = timeout_seconds or settings.audit_timeout_seconds
        self._slots = asyncio.Semaphore(max_in_flight or settings.audit_max_in_flight)

    async def deliver(self, entry: RiskAuditLogEntry) -> bool:
        """Write one entry; returns False instead of raising on failure or timeout"""
        async with self._slots:
            try:
                with audit_latency_histogram.time():
                    await asyncio.wait_for(self.sink.write(entry), timeout=self.timeout_seconds)
            except Exception as e:
                log_audit_failure(entry.loan_id, e)
                record_audit_delivery(False)
                return False

        record_audit_delivery(True)
        return True

    async def deliver_all(self, entries: Iterable[RiskAuditLogEntry]) -> List[bool]:
        """Write entries concurrently, each one isolated from the others"""
        return list(await asyncio.gather(*(self.deliver(entry) for entry in entries)))
