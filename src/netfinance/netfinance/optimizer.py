"""Cost optimization opportunities derived from carrier aggregates."""

import re

import structlog

from .models import (
    CarrierAggregate,
    CarrierStatus,
    OpportunityType,
    OptimizationOpportunity,
    Priority,
)

logger = structlog.get_logger(__name__)

RENEGOTIATE_BELOW = 30.0
OPTIMIZE_BELOW = 50.0

ALL_PLAZAS = "All"


def _slug(name: str) -> str:
    return re.sub(r"\s+", "-", name.strip().lower())


def opportunity_for(carrier: CarrierAggregate) -> OptimizationOpportunity | None:
    """The single recommendation a carrier's utilization calls for, if any."""
    utilization = carrier.utilization_percentage
    slug = _slug(carrier.carrier)

    # Idle means no traffic at all, not a percentage that rounds to zero.
    if carrier.utilized_mbps == 0:
        return OptimizationOpportunity(
            id=f"cancel-{slug}",
            type=OpportunityType.CANCELLATION,
            carrier=carrier.carrier,
            plaza=ALL_PLAZAS,
            description=f"Enlace {carrier.carrier} (0% uso)",
            current_cost=carrier.monthly_cost,
            potential_saving=carrier.monthly_cost,
            priority=Priority.HIGH,
            utilization_rate=0.0,
        )
    if utilization < RENEGOTIATE_BELOW:
        return OptimizationOpportunity(
            id=f"renegotiate-{slug}",
            type=OpportunityType.RENEGOTIATION,
            carrier=carrier.carrier,
            plaza=ALL_PLAZAS,
            description=f"{carrier.carrier} (<30% uso)",
            current_cost=carrier.monthly_cost,
            potential_saving=carrier.potential_saving,
            priority=Priority.MEDIUM,
            utilization_rate=utilization,
        )
    if utilization < OPTIMIZE_BELOW:
        return OptimizationOpportunity(
            id=f"optimize-{slug}",
            type=OpportunityType.RENEGOTIATION,
            carrier=carrier.carrier,
            plaza=ALL_PLAZAS,
            description=f"Optimizar capacidad {carrier.carrier}",
            current_cost=carrier.monthly_cost,
            potential_saving=carrier.potential_saving,
            priority=Priority.LOW,
            utilization_rate=utilization,
        )
    if carrier.status is CarrierStatus.CAPACITY_RISK:
        return OptimizationOpportunity(
            id=f"upgrade-{slug}",
            type=OpportunityType.UPGRADE,
            carrier=carrier.carrier,
            plaza=ALL_PLAZAS,
            description=f"{carrier.carrier} al {utilization:.1f}% de utilización, considerar upgrade",
            current_cost=carrier.monthly_cost,
            potential_saving=0.0,
            priority=Priority.MEDIUM,
            utilization_rate=utilization,
        )
    return None


def build_opportunities(carriers: list[CarrierAggregate]) -> list[OptimizationOpportunity]:
    """Opportunities ordered by descending saving; equal savings keep carrier order."""
    opportunities = [opp for opp in map(opportunity_for, carriers) if opp is not None]
    logger.info("opportunities_identified", count=len(opportunities))
    return sorted(opportunities, key=lambda o: o.potential_saving, reverse=True)
