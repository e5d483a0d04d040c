"""Portfolio aggregator - reduce reconciled loans to fleet-wide metrics"""

from typing import Dict, Sequence

from loanbook_engine.domain.models import RISK_LEVELS, PortfolioMetrics, ReconciledLoan
from loanbook_engine.domain.payments import as_amount

ATTENTION_EFFICIENCY_THRESHOLD = 50


def needs_attention(loan: ReconciledLoan) -> bool:
    """Low-confidence data or collecting under half of the expected payments"""
    return loan.confidence_level == "low" or loan.collection_efficiency < ATTENTION_EFFICIENCY_THRESHOLD


def aggregate(loans: Sequence[ReconciledLoan]) -> PortfolioMetrics:
    """
    Roll a batch of reconciled loans up into portfolio metrics.

    Money totals only count "reliable" loans (confidence not low). An empty
    batch yields zero totals and a data-quality score of 100.
    """
    reliable = [loan for loan in loans if loan.confidence_level != "low"]

    total_portfolio = sum(as_amount(loan.record.amount_returnable) for loan in reliable)
    total_paid = sum(loan.calculated_total_paid for loan in reliable)
    total_remaining = sum(loan.calculated_remaining_balance for loan in reliable)

    collection_rate = total_paid / total_portfolio * 100 if total_portfolio > 0 else 0.0
    average_efficiency = (
        sum(loan.collection_efficiency for loan in reliable) / len(reliable) if reliable else 0.0
    )
    overall_quality = (
        sum(loan.data_quality_score for loan in loans) / len(loans) if loans else 100.0
    )

    distribution: Dict[str, int] = {level: 0 for level in RISK_LEVELS}
    scored = [loan for loan in loans if loan.risk_score is not None]
    for loan in scored:
        if loan.risk_level in distribution:
            distribution[loan.risk_level] += 1
    average_risk_score = sum(loan.risk_score for loan in scored) / len(scored) if scored else 0.0

    return PortfolioMetrics(
        reliable_total_portfolio=total_portfolio,
        reliable_total_paid=total_paid,
        reliable_total_remaining=total_remaining,
        reliable_collection_rate=collection_rate,
        total_loans=len(loans),
        reliable_loans=len(reliable),
        data_quality_issues=sum(1 for loan in loans if loan.has_calculation_errors),
        overall_data_quality=overall_quality,
        average_collection_efficiency=average_efficiency,
        loans_needing_attention=sum(1 for loan in loans if needs_attention(loan)),
        risk_level_distribution=distribution,
        average_risk_score=average_risk_score,
    )
