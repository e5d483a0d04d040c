"""Risk scoring engine - explainable rule-based credit risk model"""

import math
from datetime import datetime
from typing import Dict, Tuple

from loanbook_engine.domain.models import LoanRecord, PaymentBehaviour, RiskAssessment
from loanbook_engine.domain.payments import (
    active_slot_positions,
    as_amount,
    negative_slot_positions,
    sum_payments,
)
from loanbook_engine.utils.date_utils import days_between, to_utc_datetime

MODEL_VERSION = "rule-based-v1"

DAYS_PER_MONTH = 30


def analyze_payment_behaviour(record: LoanRecord, now: datetime) -> PaymentBehaviour:
    """
    Extract the signals the risk model scores from a raw loan record.

    Recomputes its own payment total from the twelve slots; it does not share
    state with the reconciliation engine.
    """
    days_since_loan = max(1, math.floor(days_between(record.loan_date, to_utc_datetime(now))))
    months_since_loan = max(1, math.floor(days_since_loan / DAYS_PER_MONTH))

    amount_returnable = as_amount(record.amount_returnable)
    total_paid = sum_payments(record.payment_slots)

    payment_ratio = total_paid / amount_returnable if amount_returnable > 0 else 0.0
    outstanding_ratio = (
        as_amount(record.remaining_balance) / amount_returnable if amount_returnable > 0 else 1.0
    )

    return PaymentBehaviour(
        days_since_loan=days_since_loan,
        months_since_loan=months_since_loan,
        total_paid=total_paid,
        payment_ratio=payment_ratio,
        outstanding_ratio=outstanding_ratio,
        active_payment_count=len(active_slot_positions(record.payment_slots)),
        negative_slots=negative_slot_positions(record.payment_slots),
        is_overdue=record.status == "overdue",
    )


def calculate_risk_score(behaviour: PaymentBehaviour) -> Tuple[int, Dict[str, bool]]:
    """
    Score a loan from 0 (highest risk) to 100 (lowest risk).

    Scoring rules:
    - Base: payment_ratio * 70, capped at 70
    - Late payments: older than 3 months and paid less than 8% per month elapsed (-20)
    - High outstanding: stored remaining balance above 80% of the loan (-10)
    - Overdue status (-25)
    - Each negative payment slot (-10 per slot)
    - Irregular payments: fewer than one payment per two months (-10)

    Returns: (score, risk_factors) where every deduction names its factor
    """
    risk_factors: Dict[str, bool] = {}

    score = min(behaviour.payment_ratio * 70, 70.0)

    if behaviour.months_since_loan > 3 and behaviour.payment_ratio < behaviour.months_since_loan * 0.08:
        score -= 20
        risk_factors["late_payments"] = True

    if behaviour.outstanding_ratio > 0.8:
        score -= 10
        risk_factors["high_outstanding"] = True

    if behaviour.is_overdue:
        score -= 25
        risk_factors["overdue"] = True

    for position in behaviour.negative_slots:
        score -= 10
        risk_factors[f"negative_payment_{position}"] = True

    if behaviour.active_payment_count / behaviour.months_since_loan < 0.5:
        score -= 10
        risk_factors["irregular_payments"] = True

    # Clamp, then round half-up
    score = max(0.0, min(100.0, score))
    return math.floor(score + 0.5), risk_factors


def calculate_default_probability(score: int) -> float:
    """Map the score to a default probability, floored at 1%"""
    return round(max(0.01, 1 - score / 100), 2)


def determine_risk_level(score: int) -> str:
    """
    Map risk score to risk level buckets.

    - 76-100: low
    - 51-75:  medium
    - 31-50:  high
    - 0-30:   critical
    """
    if score > 75:
        return "low"
    elif score > 50:
        return "medium"
    elif score > 30:
        return "high"
    else:
        return "critical"


def score_risk(record: LoanRecord, now: datetime) -> RiskAssessment:
    """
    Main entry point: score a single loan record.

    Deterministic for a given record and `now`; there are no learned
    parameters and no state between calls.
    """
    behaviour = analyze_payment_behaviour(record, now)
    score, risk_factors = calculate_risk_score(behaviour)

    return RiskAssessment(
        risk_score=score,
        default_probability=calculate_default_probability(score),
        risk_level=determine_risk_level(score),
        risk_factors=risk_factors,
    )
