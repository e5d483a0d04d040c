"""Reconciliation engine - recompute paid/remaining/progress from raw payment slots"""

import math
from datetime import date, datetime
from typing import List, Optional, Tuple

from loanbook_engine.domain.models import LoanRecord, ReconciledLoan
from loanbook_engine.domain.payments import (
    active_slot_positions,
    as_amount,
    negative_slot_positions,
    positive_amounts,
    sum_payments,
)
from loanbook_engine.utils.date_utils import add_months, days_between, hours_between, to_utc_datetime

# Data-quality deductions
BALANCE_MISMATCH_PENALTY = 20
OVERPAYMENT_PENALTY = 30
NEGATIVE_PAYMENT_PENALTY = 25
DUPLICATE_PAYMENT_PENALTY = 15

BALANCE_TOLERANCE = 1.0
RECENT_UPDATE_HOURS = 24
DAYS_PER_MONTH = 30
MAX_EXPECTED_PAYMENTS = 12


def assess_data_quality(
    record: LoanRecord,
    total_paid: float,
    remaining_balance: float,
) -> Tuple[int, List[str]]:
    """
    Score how far the stored figures can be trusted.

    Each check fires at most once and deducts from a starting score of 100:
    - stored remaining balance off by more than 1 from the recomputed one (-20)
    - payments exceed the amount returnable (-30)
    - any negative payment slot (-25, regardless of how many)
    - repeated amounts among positive payments (-15). A schedule where every
      payment is the same amount is a regular plan and is not flagged.
    """
    amount_returnable = as_amount(record.amount_returnable)
    stored_remaining = as_amount(record.remaining_balance)
    discrepancies: List[str] = []
    score = 100

    if abs(stored_remaining - remaining_balance) > BALANCE_TOLERANCE:
        discrepancies.append(
            f"remaining balance mismatch: stored {stored_remaining:.2f}, calculated {remaining_balance:.2f}"
        )
        score -= BALANCE_MISMATCH_PENALTY

    if total_paid > amount_returnable:
        discrepancies.append("total payments exceed loan amount")
        score -= OVERPAYMENT_PENALTY

    if negative_slot_positions(record.payment_slots):
        discrepancies.append("contains negative payment amounts")
        score -= NEGATIVE_PAYMENT_PENALTY

    amounts = positive_amounts(record.payment_slots)
    distinct = set(amounts)
    if len(amounts) >= 2 and len(distinct) > 1 and len(distinct) < len(amounts):
        discrepancies.append("possible duplicate payment amounts detected")
        score -= DUPLICATE_PAYMENT_PENALTY

    return max(0, score), discrepancies


def determine_confidence_level(data_quality_score: int) -> str:
    """Bucket the data-quality score: <70 low, <85 medium, otherwise high"""
    if data_quality_score < 70:
        return "low"
    elif data_quality_score < 85:
        return "medium"
    else:
        return "high"


def classify_payment_pattern(amounts: List[float]) -> str:
    """
    Classify positive payments (in slot order).

    Fewer than three payments is always "regular". Otherwise:
    all equal -> regular, non-decreasing -> accelerating,
    non-increasing -> declining, anything else -> irregular.
    """
    if len(amounts) < 3:
        return "regular"

    pairs = list(zip(amounts, amounts[1:]))
    non_decreasing = all(prev <= curr for prev, curr in pairs)
    non_increasing = all(prev >= curr for prev, curr in pairs)

    if non_decreasing and non_increasing:
        return "regular"
    elif non_decreasing:
        return "accelerating"
    elif non_increasing:
        return "declining"
    else:
        return "irregular"


def calculate_collection_efficiency(loan_date: datetime, active_payments: int, now: datetime) -> float:
    """Payments made as a percentage of payments expected for the loan's age (max 12)"""
    loan_age_months = max(1, math.floor(days_between(loan_date, now) / DAYS_PER_MONTH))
    expected_payments = min(loan_age_months, MAX_EXPECTED_PAYMENTS)
    if expected_payments <= 0:
        return 0.0
    return min(active_payments / expected_payments * 100, 100.0)


def estimate_completion_date(
    amounts: List[float],
    remaining_balance: float,
    progress: float,
    now: datetime,
) -> Optional[date]:
    """
    Project the payoff month from the average of the last two positive payments.

    Returns None when the loan is paid off, fewer than two payments exist, or
    the projection falls past year 9999.
    """
    if progress >= 100 or len(amounts) < 2:
        return None

    recent = amounts[-2:]
    average_payment = sum(recent) / len(recent)
    if average_payment <= 0:
        return None

    months_to_complete = math.ceil(remaining_balance / average_payment)
    # Projections beyond the last representable year have no date
    if months_to_complete > (date.max.year - now.year) * 12:
        return None
    return add_months(now.date(), months_to_complete)


def reconcile(record: LoanRecord, now: datetime) -> ReconciledLoan:
    """
    Convert a raw loan record into canonical paid/remaining/progress figures.

    Pure: no I/O, no clock reads. Missing numeric fields count as 0 and every
    ratio is guarded, so malformed numbers degrade the quality score instead
    of raising.
    """
    now = to_utc_datetime(now)
    amount_returnable = as_amount(record.amount_returnable)

    total_paid = sum_payments(record.payment_slots)
    remaining_balance = max(0.0, amount_returnable - total_paid) if amount_returnable > 0 else 0.0
    progress = min(100.0, total_paid / amount_returnable * 100) if amount_returnable > 0 else 0.0

    data_quality_score, discrepancies = assess_data_quality(record, total_paid, remaining_balance)

    active_slots = active_slot_positions(record.payment_slots)
    amounts = positive_amounts(record.payment_slots)

    last_touched = record.updated_at or record.created_at
    recently_updated = (
        last_touched is not None and hours_between(last_touched, now) <= RECENT_UPDATE_HOURS
    )

    return ReconciledLoan(
        record=record,
        calculated_total_paid=total_paid,
        calculated_remaining_balance=remaining_balance,
        calculated_progress=progress,
        data_quality_score=data_quality_score,
        discrepancies=discrepancies,
        confidence_level=determine_confidence_level(data_quality_score),
        payment_pattern=classify_payment_pattern(amounts),
        active_payment_slots=active_slots,
        estimated_completion_date=estimate_completion_date(amounts, remaining_balance, progress, now),
        collection_efficiency=calculate_collection_efficiency(record.loan_date, len(active_slots), now),
        recently_updated=recently_updated,
        is_completed=progress >= 100 or record.status == "completed",
    )
