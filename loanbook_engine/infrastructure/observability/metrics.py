"""Prometheus metrics for monitoring data quality, risk distribution, and audit delivery"""

from prometheus_client import Counter, Histogram, Gauge

from loanbook_engine.domain.models import BatchResult

# Enrichment metrics
loans_reconciled_counter = Counter(
    "loanbook_loans_reconciled_total",
    "Loans reconciled by data confidence",
    ["confidence_level"],  # high | medium | low
)

risk_level_counter = Counter(
    "loanbook_risk_level_total",
    "Loans scored by risk level",
    ["risk_level"],  # low | medium | high | critical
)

portfolio_data_quality_gauge = Gauge(
    "loanbook_portfolio_data_quality",
    "Overall data-quality score of the last enriched batch",
)

# Audit sink metrics
audit_event_counter = Counter(
    "loanbook_risk_audit_events_total",
    "Risk audit log deliveries",
    ["outcome"],  # delivered | failed
)

audit_latency_histogram = Histogram(
    "risk_audit_latency_seconds",
    "Risk audit sink write time",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

webhook_failure_counter = Counter(
    "risk_audit_webhook_failures_total",
    "Failed risk audit webhook attempts",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_batch(result: BatchResult) -> None:
    """Record per-loan confidence and risk distribution for one enriched batch"""
    for loan in result.loans:
        loans_reconciled_counter.labels(confidence_level=loan.confidence_level).inc()
        if loan.risk_level is not None:
            risk_level_counter.labels(risk_level=loan.risk_level).inc()

    portfolio_data_quality_gauge.set(result.metrics.overall_data_quality)


def record_audit_delivery(delivered: bool) -> None:
    audit_event_counter.labels(outcome="delivered" if delivered else "failed").inc()
