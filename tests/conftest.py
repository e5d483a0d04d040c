"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timedelta, timezone
from typing import Callable, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from loanbook_engine.api.main import create_app
from loanbook_engine.api.dependencies import get_audit_dispatcher
from loanbook_engine.domain.models import LoanRecord
from loanbook_engine.infrastructure.audit.dispatcher import AuditDispatcher
from loanbook_engine.infrastructure.audit.sinks import DatabaseRiskAuditSink
from loanbook_engine.infrastructure.database.models import Base
from loanbook_engine.infrastructure.database.session import get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

NOW = datetime(2025, 6, 20, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    """Fixed evaluation timestamp so every calculation is reproducible"""
    return NOW


@pytest.fixture
def make_record(now: datetime) -> Callable[..., LoanRecord]:
    """Factory for loan records with sensible defaults"""

    def _make(
        slots=(),
        amount_returnable=1_200_000,
        remaining_balance=None,
        loan_age_days=181,
        status="active",
        **overrides,
    ) -> LoanRecord:
        if remaining_balance is None:
            remaining_balance = max(0, amount_returnable - sum(s or 0 for s in slots))
        fields = dict(
            id="loan-1",
            loan_date=now - timedelta(days=loan_age_days),
            created_at=now - timedelta(days=loan_age_days),
            amount_returnable=amount_returnable,
            remaining_balance=remaining_balance,
            status=status,
            payment_slots=tuple(slots),
        )
        fields.update(overrides)
        return LoanRecord(**fields)

    return _make


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory() -> sessionmaker:
    """Session factory bound to the test database, for components that open their own sessions"""
    return TestingSessionLocal


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database and a database audit sink"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    def override_get_audit_dispatcher():
        return AuditDispatcher(DatabaseRiskAuditSink(TestingSessionLocal))

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_audit_dispatcher] = override_get_audit_dispatcher
    return TestClient(app)
