"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

logger = logging.getLogger("loanbook_engine")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = "loanbook-engine"


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    root = logging.getLogger()
    root.setLevel(level)

    # Remove existing handlers
    root.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    root.addHandler(handler)


def log_batch_processed(
    request_id: str,
    total_loans: int,
    reliable_loans: int,
    audit_events: int,
    duration_ms: float,
) -> None:
    """Log structured batch outcome for analysis"""
    logger.info(
        "Loan batch enriched",
        extra={
            "request_id": request_id,
            "step": "batch_complete",
            "total_loans": total_loans,
            "reliable_loans": reliable_loans,
            "audit_events": audit_events,
            "duration_ms": duration_ms,
        },
    )


def log_audit_failure(loan_id: str, error: BaseException) -> None:
    """Log a risk audit write that did not reach the sink"""
    logger.warning(
        "Risk log insert failed",
        extra={
            "loan_id": loan_id,
            "step": "risk_audit",
            "error_type": type(error).__name__,
            "error": str(error),
        },
    )
