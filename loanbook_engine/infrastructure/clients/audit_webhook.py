"""Risk audit webhook client with exponential backoff retry logic"""

import httpx
import asyncio
from loanbook_engine.config import settings
from loanbook_engine.domain.exceptions import AuditSinkError
from loanbook_engine.domain.models import RiskAuditLogEntry
from loanbook_engine.infrastructure.observability.metrics import webhook_failure_counter


class WebhookRiskAuditSink:
    """Sends risk audit entries to an external audit service"""

    def __init__(
        self,
        webhook_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_base: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.webhook_url = webhook_url or settings.audit_webhook_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_retries = settings.webhook_max_retries if max_retries is None else max_retries
        self.backoff_base = settings.webhook_backoff_base if backoff_base is None else backoff_base
        self.transport = transport

    async def write(self, entry: RiskAuditLogEntry) -> None:
        """
        POST a risk audit entry with retry logic.

        Retry strategy:
        - Exponential backoff: base, 2x base, 4x base, ...
        - Retries on 5xx/4xx responses and network failures

        Raises:
            AuditSinkError: After the final failed attempt
        """
        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            while True:
                try:
                    response = await client.post(self.webhook_url, json=entry.to_payload())
                    response.raise_for_status()
                    return  # Success

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1
                    webhook_failure_counter.inc()

                    if attempt >= self.max_retries:
                        raise AuditSinkError(
                            f"Risk audit webhook failed after {attempt} attempts: {e}"
                        ) from e

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)
