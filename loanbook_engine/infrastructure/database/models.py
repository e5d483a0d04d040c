"""SQLAlchemy ORM models for the loan book and the risk prediction log"""

import uuid
from sqlalchemy import Column, String, Float, DateTime, Integer, ForeignKey, Text, JSON
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class LoanBookRecord(Base):
    """Loan book row; payment slot columns keep their legacy mixed-case names"""

    __tablename__ = "loan_book_live"

    id = Column(String(36), primary_key=True, default=_new_id)
    client_name = Column(Text, nullable=True)
    user_id = Column(Text, nullable=True, index=True)
    amount_returnable = Column(Float, nullable=True)
    remaining_balance = Column(Float, nullable=True)
    loan_date = Column(DateTime(timezone=True), nullable=False)
    status = Column(Text, nullable=False, default="active")
    payment_mode = Column(Text, nullable=True)

    amount_paid_1 = Column(Float, nullable=True)
    amount_paid_2 = Column(Float, nullable=True)
    amount_paid_3 = Column(Float, nullable=True)
    amount_paid_4 = Column(Float, nullable=True)
    amount_paid_5 = Column(Float, nullable=True)
    Amount_paid_6 = Column(Float, nullable=True)
    Amount_paid_7 = Column(Float, nullable=True)
    Amount_Paid_8 = Column(Float, nullable=True)
    Amount_Paid_9 = Column(Float, nullable=True)
    Amount_Paid_10 = Column(Float, nullable=True)
    Amount_Paid_11 = Column(Float, nullable=True)
    Amount_Paid_12 = Column(Float, nullable=True)

    # Last risk output written by the scoring job (read-only here)
    risk_score = Column(Integer, nullable=True)
    default_probability = Column(Float, nullable=True)
    risk_level = Column(Text, nullable=True)
    risk_factors = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)

    risk_logs = relationship("LoanRiskPredictionLog", back_populates="loan")


class LoanRiskPredictionLog(Base):
    """Audit trail of risk model outputs per loan"""

    __tablename__ = "loan_risk_prediction_log"

    id = Column(String(36), primary_key=True, default=_new_id)
    loan_id = Column(String(36), ForeignKey("loan_book_live.id"), nullable=False, index=True)
    risk_score = Column(Integer, nullable=False)
    default_probability = Column(Float, nullable=False)
    model_version = Column(Text, nullable=False)
    model_input = Column(JSON, nullable=True)
    model_output = Column(JSON, nullable=True)
    calculated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    loan = relationship("LoanBookRecord", back_populates="risk_logs")
