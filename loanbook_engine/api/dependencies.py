"""Dependency injection for FastAPI endpoints"""

from fastapi import Request
from loanbook_engine.infrastructure.audit.dispatcher import AuditDispatcher
from loanbook_engine.infrastructure.audit.sinks import build_audit_sink


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_audit_dispatcher() -> AuditDispatcher:
    """Provide a risk audit dispatcher bound to the configured sink"""
    return AuditDispatcher(build_audit_sink())
