"""Unit tests for the reconciliation engine"""

import pytest
from dataclasses import asdict
from datetime import date, timedelta
from loanbook_engine.domain.reconciliation import (
    calculate_collection_efficiency,
    classify_payment_pattern,
    determine_confidence_level,
    reconcile,
)

SIX_EQUAL_PAYMENTS = [100_000] * 6 + [0] * 6

# Twelve distinct, increasing payments summing to exactly 1,000,000
FULL_REPAYMENT = [76_000] + [79_000 + 1_000 * i for i in range(11)]


def _computed(loan):
    """Reconciled fields without the echoed input record"""
    data = asdict(loan)
    data.pop("record")
    return data


def test_reconcile_six_equal_payments(make_record, now):
    """Test half-repaid loan with a regular schedule and consistent stored balance"""
    record = make_record(slots=SIX_EQUAL_PAYMENTS, remaining_balance=600_000)

    loan = reconcile(record, now)

    assert loan.calculated_total_paid == 600_000
    assert loan.calculated_remaining_balance == 600_000
    assert loan.calculated_progress == 50
    assert loan.payment_pattern == "regular"
    assert loan.discrepancies == []
    assert loan.has_calculation_errors is False
    assert loan.data_quality_score == 100
    assert loan.confidence_level == "high"
    assert loan.active_payment_slots == [1, 2, 3, 4, 5, 6]
    assert loan.collection_efficiency == 100  # 6 payments over 6 months
    assert loan.estimated_completion_date == date(2025, 12, 20)  # 600k left at 100k/month
    assert loan.recently_updated is False
    assert loan.is_completed is False


def test_reconcile_flags_remaining_balance_mismatch(make_record, now):
    """Test stored remaining balance that disagrees with the slots"""
    assert sum(FULL_REPAYMENT) == 1_000_000
    record = make_record(slots=FULL_REPAYMENT, amount_returnable=1_000_000, remaining_balance=50_000)

    loan = reconcile(record, now)

    assert loan.calculated_remaining_balance == 0
    assert len(loan.discrepancies) == 1
    assert loan.discrepancies[0].startswith("remaining balance mismatch")
    assert loan.data_quality_score == 80
    assert loan.confidence_level == "medium"
    assert loan.is_completed is True


def test_reconcile_zero_amount_returnable(make_record, now):
    """Test no division by zero when the loan amount is 0"""
    record = make_record(slots=[100], amount_returnable=0, remaining_balance=0)

    loan = reconcile(record, now)

    assert loan.calculated_progress == 0
    assert loan.calculated_remaining_balance == 0
    assert loan.discrepancies == ["total payments exceed loan amount"]
    assert loan.data_quality_score == 70


def test_reconcile_overpayment_clamps_progress(make_record, now):
    """Test progress is capped at 100 and overpayment costs 30 points"""
    record = make_record(slots=[1_300_000], remaining_balance=0)

    loan = reconcile(record, now)

    assert loan.calculated_progress == 100
    assert loan.calculated_remaining_balance == 0
    assert loan.discrepancies == ["total payments exceed loan amount"]
    assert loan.data_quality_score == 70
    assert loan.confidence_level == "medium"
    assert loan.is_completed is True
    assert loan.estimated_completion_date is None


def test_reconcile_negative_payments_flagged_once(make_record, now):
    """Test negative slots are summed, and flagged once regardless of count"""
    record = make_record(slots=[100_000, -5_000, -7_000, 100_000])

    loan = reconcile(record, now)

    assert loan.calculated_total_paid == 188_000  # negatives are not stripped
    assert loan.active_payment_slots == [1, 4]
    assert loan.discrepancies == ["contains negative payment amounts"]
    assert loan.data_quality_score == 75


def test_reconcile_duplicate_amounts(make_record, now):
    """Test repeated amounts in an otherwise varying schedule"""
    record = make_record(slots=[50_000, 70_000, 50_000])

    loan = reconcile(record, now)

    assert loan.discrepancies == ["possible duplicate payment amounts detected"]
    assert loan.data_quality_score == 85
    assert loan.confidence_level == "high"
    assert loan.payment_pattern == "irregular"


def test_reconcile_stacked_penalties_never_below_zero(make_record, now):
    """Test all four checks together clamp at 0"""
    record = make_record(
        slots=[600_000, 600_000, 300_000, -1_000],
        amount_returnable=1_000_000,
        remaining_balance=900_000,
    )

    loan = reconcile(record, now)

    assert len(loan.discrepancies) == 4
    assert loan.data_quality_score == 10  # 100 - 20 - 30 - 25 - 15
    assert loan.confidence_level == "low"


def test_reconcile_absent_slots_match_zero_slots(make_record, now):
    """Test a record with no slots behaves like one with twelve zeros"""
    empty = reconcile(make_record(slots=()), now)
    zeros = reconcile(make_record(slots=[0] * 12), now)

    assert _computed(empty) == _computed(zeros)
    assert empty.calculated_total_paid == 0
    assert empty.active_payment_slots == []


def test_reconcile_is_idempotent(make_record, now):
    """Test same record and timestamp give identical output"""
    record = make_record(slots=[10_000, 20_000, 15_000, -500])

    assert reconcile(record, now) == reconcile(record, now)


def test_reconcile_increasing_a_payment_never_lowers_progress(make_record, now):
    """Test monotonicity of total paid and progress"""
    base = reconcile(make_record(slots=[100_000, 50_000]), now)
    more = reconcile(make_record(slots=[100_000, 90_000]), now)

    assert more.calculated_total_paid > base.calculated_total_paid
    assert more.calculated_progress > base.calculated_progress


def test_reconcile_recently_updated(make_record, now):
    """Test 24h update window with fallback to created_at"""
    fresh = make_record(updated_at=now - timedelta(hours=23))
    stale = make_record(updated_at=now - timedelta(hours=25))
    new_loan = make_record(created_at=now - timedelta(hours=2))

    assert reconcile(fresh, now).recently_updated is True
    assert reconcile(stale, now).recently_updated is False
    assert reconcile(new_loan, now).recently_updated is True


def test_reconcile_completed_status(make_record, now):
    """Test stored completed status wins even when slots say otherwise"""
    assert reconcile(make_record(slots=SIX_EQUAL_PAYMENTS, status="completed"), now).is_completed is True
    assert reconcile(make_record(slots=SIX_EQUAL_PAYMENTS, status="??"), now).is_completed is False


def test_estimated_completion_uses_last_two_payments(make_record, now):
    """Test payoff projection from the average of the two most recent payments"""
    record = make_record(slots=[100_000, 0, 200_000], amount_returnable=1_000_000)

    loan = reconcile(record, now)

    # 700,000 remaining at an average of 150,000 -> 5 months
    assert loan.estimated_completion_date == date(2025, 11, 20)


def test_estimated_completion_needs_two_payments(make_record, now):
    """Test no projection from a single payment"""
    assert reconcile(make_record(slots=[100_000]), now).estimated_completion_date is None


def test_estimated_completion_beyond_calendar_is_none(make_record, now):
    """Test a payoff thousands of years out yields no date instead of raising"""
    loan = reconcile(make_record(slots=[10, 10], amount_returnable=1_000_000), now)

    assert loan.estimated_completion_date is None
    assert loan.calculated_remaining_balance == 999_980


@pytest.mark.parametrize(
    "amounts, expected",
    [
        ([1, 2, 3], "accelerating"),
        ([1, 1, 2], "accelerating"),
        ([3, 2, 1], "declining"),
        ([2, 2, 2], "regular"),
        ([1, 3, 2], "irregular"),
        ([5, 1], "regular"),  # fewer than three payments
    ],
)
def test_classify_payment_pattern(amounts, expected):
    assert classify_payment_pattern(amounts) == expected


@pytest.mark.parametrize(
    "score, expected",
    [(100, "high"), (85, "high"), (84, "medium"), (70, "medium"), (69, "low"), (0, "low")],
)
def test_determine_confidence_level(score, expected):
    assert determine_confidence_level(score) == expected


def test_collection_efficiency(now):
    """Test expected payments follow loan age, capped at 12"""
    assert calculate_collection_efficiency(now - timedelta(days=10), 0, now) == 0
    assert calculate_collection_efficiency(now - timedelta(days=10), 3, now) == 100
    assert calculate_collection_efficiency(now - timedelta(days=400), 6, now) == 50
    assert calculate_collection_efficiency(now - timedelta(days=95), 1, now) == pytest.approx(100 / 3)
