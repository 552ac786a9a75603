"""Synthetic report returned whenever the live pipeline cannot produce one."""

from datetime import datetime, timezone

import structlog

from .aggregator import classify_status
from .config import settings
from .models import (
    CarrierAggregate,
    DataSource,
    FinancialReport,
    PlazaAggregate,
    ReportSource,
)
from .optimizer import build_opportunities
from .periods import Period
from .summary import calculate_summary

logger = structlog.get_logger(__name__)

# (carrier, monthly cost, contracted Mbps, utilization %)
DEMO_CARRIERS = (
    ("Neutral Networks", 45_000.0, 1_200.0, 72.0),
    ("Cogent", 32_000.0, 800.0, 68.0),
    ("TI-Sparkle", 28_000.0, 600.0, 45.0),
    ("F16", 20_000.0, 400.0, 22.0),
    ("Fiber Optic", 12_000.0, 300.0, 88.0),
)

# (plaza, monthly cost, carriers, contracted Mbps, utilization %)
DEMO_PLAZAS = (
    ("Monterrey", 52_000.0, 2, 1_400.0, 75.0),
    ("Guadalajara", 38_000.0, 2, 1_000.0, 68.0),
    ("CDMX", 25_000.0, 1, 600.0, 62.0),
    ("Querétaro", 12_000.0, 1, 400.0, 55.0),
    ("Tijuana", 10_000.0, 1, 300.0, 48.0),
)


def _demo_carriers(multiplier: float) -> list[CarrierAggregate]:
    carriers = []
    for name, cost, contracted, utilization in DEMO_CARRIERS:
        monthly_cost = round(cost * multiplier, 2)
        utilized = contracted * utilization / 100
        status, saving = classify_status(utilization, monthly_cost)
        carriers.append(
            CarrierAggregate(
                carrier=name,
                monthly_cost=monthly_cost,
                contracted_mbps=contracted,
                utilized_mbps=round(utilized, 2),
                utilization_percentage=utilization,
                cost_per_mbps=round(monthly_cost / max(utilized, contracted, 1), 2),
                status=status,
                potential_saving=saving,
                data_source=DataSource.ESTIMATED,
            )
        )
    return carriers


def _demo_plazas(multiplier: float) -> list[PlazaAggregate]:
    return [
        PlazaAggregate(
            plaza=name,
            monthly_cost=round(cost * multiplier, 2),
            carriers=carriers,
            total_mbps=contracted,
            utilized_mbps=round(contracted * efficiency / 100, 2),
            efficiency=efficiency,
            optimization_opportunities=1 if efficiency < 50 else 0,
            data_source=DataSource.ESTIMATED,
        )
        for name, cost, carriers, contracted, efficiency in DEMO_PLAZAS
    ]


def generate_demo_report(period: Period, error: str | None = None) -> FinancialReport:
    """Build a complete report from fixed figures scaled by the period multiplier."""
    logger.info("generating_demo_report", period=period.code, reason=error)

    carriers = _demo_carriers(period.multiplier)
    opportunities = build_opportunities(carriers)

    return FinancialReport(
        summary=calculate_summary(carriers, opportunities, period, settings.currency),
        carrier_analysis=carriers,
        plaza_breakdown=_demo_plazas(period.multiplier),
        optimization_opportunities=opportunities,
        timestamp=datetime.now(timezone.utc),
        source=ReportSource.DEMO_DATA,
        error=error,
    )
