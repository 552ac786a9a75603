"""Roll record estimates up into carrier and plaza aggregates."""

from collections.abc import Callable, Hashable, Iterable
from typing import NamedTuple

import structlog

from .models import (
    Carrier,
    CarrierAggregate,
    CarrierStatus,
    DataSource,
    Plaza,
    PlazaAggregate,
    RecordEstimate,
)

logger = structlog.get_logger(__name__)

CRITICAL_BELOW = 25.0
ATTENTION_BELOW = 50.0
CAPACITY_RISK_ABOVE = 85.0

CRITICAL_SAVING_RATE = 0.60
ATTENTION_SAVING_RATE = 0.25

# Carriers under this utilization yield an optimization opportunity.
OPPORTUNITY_BELOW = ATTENTION_BELOW


class GroupTotals(NamedTuple):
    monthly_cost: float
    contracted_mbps: float
    utilized_mbps: float

    @property
    def utilization_percentage(self) -> float:
        if self.contracted_mbps <= 0:
            return 0.0
        return 100 * self.utilized_mbps / self.contracted_mbps

    @property
    def cost_per_mbps(self) -> float:
        return self.monthly_cost / max(self.utilized_mbps, self.contracted_mbps, 1)


def total(estimates: Iterable[RecordEstimate], multiplier: float = 1.0) -> GroupTotals:
    cost = contracted = utilized = 0.0
    for estimate in estimates:
        cost += estimate.monthly_cost
        contracted += estimate.contracted_mbps
        utilized += estimate.utilized_mbps
    return GroupTotals(cost * multiplier, contracted, utilized)


def classify_status(utilization_percentage: float, monthly_cost: float) -> tuple[CarrierStatus, float]:
    """Status and potential saving for a utilization level."""
    if utilization_percentage < CRITICAL_BELOW:
        return CarrierStatus.CRITICAL, round(monthly_cost * CRITICAL_SAVING_RATE, 2)
    if utilization_percentage < ATTENTION_BELOW:
        return CarrierStatus.ATTENTION, round(monthly_cost * ATTENTION_SAVING_RATE, 2)
    if utilization_percentage > CAPACITY_RISK_ABOVE:
        return CarrierStatus.CAPACITY_RISK, 0.0
    return CarrierStatus.EFFICIENT, 0.0


def group_by(
    estimates: Iterable[RecordEstimate], key: Callable[[RecordEstimate], Hashable]
) -> dict[Hashable, list[RecordEstimate]]:
    groups: dict[Hashable, list[RecordEstimate]] = {}
    for estimate in estimates:
        groups.setdefault(key(estimate), []).append(estimate)
    return groups


def _select(
    bills: list[RecordEstimate], ports: list[RecordEstimate], multiplier: float
) -> tuple[GroupTotals, DataSource]:
    """Totals from bills when there are any, otherwise from ports."""
    if not bills:
        return total(ports, multiplier), DataSource.ESTIMATED

    totals = total(bills, multiplier)
    if totals.contracted_mbps == 0:
        alias_mbps = sum(port.alias_mbps for port in ports)
        if alias_mbps > 0:
            totals = totals._replace(contracted_mbps=alias_mbps)
    return totals, DataSource.BILLING


def aggregate_carriers(
    bill_estimates: list[RecordEstimate],
    port_estimates: list[RecordEstimate],
    multiplier: float = 1.0,
) -> list[CarrierAggregate]:
    """One aggregate per carrier seen in bills or ports, most expensive first."""
    bills_by_carrier = group_by(bill_estimates, lambda e: e.carrier)
    ports_by_carrier = group_by(port_estimates, lambda e: e.carrier)

    aggregates = []
    for carrier in Carrier:
        bills = bills_by_carrier.get(carrier, [])
        ports = ports_by_carrier.get(carrier, [])
        if not bills and not ports:
            continue

        totals, data_source = _select(bills, ports, multiplier)
        if data_source is DataSource.ESTIMATED:
            logger.warning("carrier_using_port_estimates", carrier=carrier.value, ports=len(ports))

        monthly_cost = round(totals.monthly_cost, 2)
        # Status and opportunities are both decided on the reported percentage.
        utilization = round(totals.utilization_percentage, 1)
        status, saving = classify_status(utilization, monthly_cost)
        aggregates.append(
            CarrierAggregate(
                carrier=carrier.display_name,
                monthly_cost=monthly_cost,
                contracted_mbps=round(totals.contracted_mbps, 2),
                utilized_mbps=round(totals.utilized_mbps, 2),
                utilization_percentage=utilization,
                cost_per_mbps=round(totals.cost_per_mbps, 2),
                status=status,
                potential_saving=saving,
                bills_count=len(bills),
                data_source=data_source,
            )
        )

    logger.info(
        "carriers_aggregated",
        carriers=len(aggregates),
        estimated=sum(1 for a in aggregates if a.data_source is DataSource.ESTIMATED),
    )
    return sorted(aggregates, key=lambda a: a.monthly_cost, reverse=True)


def _count_plaza_opportunities(estimates: list[RecordEstimate]) -> int:
    count = 0
    for carrier_estimates in group_by(estimates, lambda e: e.carrier).values():
        if total(carrier_estimates).utilization_percentage < OPPORTUNITY_BELOW:
            count += 1
    return count


def aggregate_plazas(
    bill_estimates: list[RecordEstimate],
    port_estimates: list[RecordEstimate],
    multiplier: float = 1.0,
) -> list[PlazaAggregate]:
    """One aggregate per plaza seen in bills or ports, unmatched records under Unknown."""
    bills_by_plaza = group_by(bill_estimates, lambda e: e.plaza)
    ports_by_plaza = group_by(port_estimates, lambda e: e.plaza)

    aggregates = []
    for plaza in Plaza:
        bills = bills_by_plaza.get(plaza, [])
        ports = ports_by_plaza.get(plaza, [])
        if not bills and not ports:
            continue

        totals, data_source = _select(bills, ports, multiplier)
        used = bills or ports
        aggregates.append(
            PlazaAggregate(
                plaza=plaza.value,
                monthly_cost=round(totals.monthly_cost, 2),
                carriers=len({e.carrier for e in bills + ports}),
                total_mbps=round(totals.contracted_mbps, 2),
                utilized_mbps=round(totals.utilized_mbps, 2),
                efficiency=round(totals.utilization_percentage, 2),
                optimization_opportunities=_count_plaza_opportunities(used),
                bills_count=len(bills),
                data_source=data_source,
            )
        )

    logger.info("plazas_aggregated", plazas=len(aggregates))
    return sorted(aggregates, key=lambda a: a.monthly_cost, reverse=True)
