"""Top-level KPIs over carrier aggregates and opportunities."""

from .models import CarrierAggregate, FinancialSummary, OptimizationOpportunity
from .periods import Period

OPTIMIZABLE_BELOW = 70.0


def calculate_summary(
    carriers: list[CarrierAggregate],
    opportunities: list[OptimizationOpportunity],
    period: Period,
    currency: str,
) -> FinancialSummary:
    total_cost = round(sum(carrier.monthly_cost for carrier in carriers), 2)
    contracted = sum(carrier.contracted_mbps for carrier in carriers)
    utilized = sum(carrier.utilized_mbps for carrier in carriers)

    average_utilization = 100 * utilized / contracted if contracted > 0 else 0.0

    return FinancialSummary(
        total_monthly_cost=total_cost,
        average_utilization=round(average_utilization, 2),
        potential_savings=round(sum(opp.potential_saving for opp in opportunities), 2),
        optimizable_contracts=sum(
            1 for carrier in carriers if carrier.utilization_percentage < OPTIMIZABLE_BELOW
        ),
        cost_per_mbps=round(total_cost / max(utilized, contracted, 1), 2),
        currency=currency,
        period=period.code,
        period_label=period.label,
        period_multiplier=period.multiplier,
    )
