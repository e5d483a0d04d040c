"""Unit tests for portfolio aggregation"""

import pytest
from loanbook_engine.domain.pipeline import enrich_loan
from loanbook_engine.domain.portfolio import aggregate


def test_aggregate_empty_batch():
    """Test empty input yields zero totals and full data quality"""
    metrics = aggregate([])

    assert metrics.total_loans == 0
    assert metrics.reliable_loans == 0
    assert metrics.reliable_total_portfolio == 0
    assert metrics.reliable_total_paid == 0
    assert metrics.reliable_total_remaining == 0
    assert metrics.reliable_collection_rate == 0
    assert metrics.average_collection_efficiency == 0
    assert metrics.overall_data_quality == 100
    assert metrics.loans_needing_attention == 0
    assert metrics.data_quality_issues == 0
    assert metrics.average_risk_score == 0
    assert metrics.risk_level_distribution == {"low": 0, "medium": 0, "high": 0, "critical": 0}
    assert metrics.has_data_quality_issues is False


def test_aggregate_mixed_portfolio(make_record, now):
    """Test reliable-only totals, quality average and attention count"""
    # High confidence, 600k of 1.2M paid, risk 35 (high)
    healthy = make_record(id="a", slots=[100_000] * 6, remaining_balance=600_000)
    # Medium confidence (stale balance), fully paid, risk 70 (medium)
    stale = make_record(
        id="b",
        slots=[76_000] + [79_000 + 1_000 * i for i in range(11)],
        amount_returnable=1_000_000,
        remaining_balance=50_000,
    )
    # Low confidence (stale balance + overpaid), risk 60 (medium)
    broken = make_record(id="c", slots=[600_000], amount_returnable=500_000, remaining_balance=200_000)

    loans = [enrich_loan(record, now).loan for record in (healthy, stale, broken)]
    assert [loan.confidence_level for loan in loans] == ["high", "medium", "low"]

    metrics = aggregate(loans)

    assert metrics.total_loans == 3
    assert metrics.reliable_loans == 2
    assert metrics.reliable_total_portfolio == 2_200_000
    assert metrics.reliable_total_paid == 1_600_000
    assert metrics.reliable_total_remaining == 600_000
    assert metrics.reliable_collection_rate == pytest.approx(1_600_000 / 2_200_000 * 100)
    assert metrics.data_quality_issues == 2
    assert metrics.overall_data_quality == pytest.approx((100 + 80 + 50) / 3)
    assert metrics.average_collection_efficiency == 100
    assert metrics.loans_needing_attention == 1
    assert metrics.risk_level_distribution == {"low": 0, "medium": 2, "high": 1, "critical": 0}
    assert metrics.average_risk_score == pytest.approx((35 + 70 + 60) / 3)


def test_aggregate_flags_slow_collection(make_record, now):
    """Test reliable loans under 50% efficiency still need attention"""
    slow = make_record(slots=[100_000, 100_000])  # 2 payments in 6 months

    metrics = aggregate([enrich_loan(slow, now).loan])

    assert metrics.reliable_loans == 1
    assert metrics.loans_needing_attention == 1
