"""Financial report pipeline.

fetch -> classify/estimate per record -> aggregate per carrier and plaza ->
opportunities and summary. Any failure in the live path degrades to the demo
report, so callers always receive a complete report.
"""

import asyncio
import random
from datetime import datetime, timezone
from enum import Enum

import structlog

from .aggregator import aggregate_carriers, aggregate_plazas
from .classifier import PLAZA_LOCATION_CODES
from .config import settings
from .demo import generate_demo_report
from .estimator import estimate_bills, estimate_ports
from .models import FinancialReport, ReportSource, TelemetrySnapshot
from .observium_client import ObserviumClient
from .optimizer import build_opportunities
from .periods import Period, resolve_period
from .summary import calculate_summary

logger = structlog.get_logger(__name__)


class DataSourceStrategy(str, Enum):
    """How telemetry is obtained for a report."""

    LIVE_SCOPED = "live_scoped"
    LIVE_UNSCOPED = "live_unscoped"
    FALLBACK = "fallback"


class IncompleteReportError(Exception):
    """The live data did not yield a usable report."""


def assemble_report(
    snapshot: TelemetrySnapshot,
    period: Period,
    rng: random.Random | None = None,
    currency: str | None = None,
    port_cost_per_mbps: float | None = None,
) -> FinancialReport:
    """Turn fetched telemetry into a report. Pure apart from the random draws."""
    rng = rng or random.Random()
    device_locations = {d.device_id: d.location for d in snapshot.devices if d.device_id}

    bill_estimates = estimate_bills(snapshot.bills, device_locations)
    port_estimates = estimate_ports(
        snapshot.ports,
        device_locations,
        rng,
        settings.port_cost_per_mbps if port_cost_per_mbps is None else port_cost_per_mbps,
    )

    carriers = aggregate_carriers(bill_estimates, port_estimates, period.multiplier)
    if not carriers:
        raise IncompleteReportError("no billing or port data to aggregate")

    plazas = aggregate_plazas(bill_estimates, port_estimates, period.multiplier)
    opportunities = build_opportunities(carriers)
    summary = calculate_summary(carriers, opportunities, period, currency or settings.currency)

    return FinancialReport(
        summary=summary,
        carrier_analysis=carriers,
        plaza_breakdown=plazas,
        optimization_opportunities=opportunities,
        timestamp=datetime.now(timezone.utc),
        source=ReportSource.REAL_DATA,
    )


class FinancialPipeline:
    """Builds one report per request. Holds no state between requests."""

    def __init__(
        self,
        client: ObserviumClient | None,
        strategy: DataSourceStrategy | str = DataSourceStrategy.LIVE_SCOPED,
        rng: random.Random | None = None,
    ) -> None:
        self.client = client
        self.strategy = DataSourceStrategy(strategy)
        self.rng = rng

    async def fetch_snapshot(self) -> TelemetrySnapshot:
        """Fetch devices, ports and bills concurrently."""
        if self.client is None:
            raise IncompleteReportError("no telemetry client configured")

        if self.strategy is DataSourceStrategy.LIVE_SCOPED:
            locations = list(PLAZA_LOCATION_CODES.values())
            ports_call = self.client.get_ports_by_plaza(locations)
            bills_call = self.client.get_bills_by_plaza(locations)
        else:
            ports_call = self.client.get_ports()
            bills_call = self.client.get_bills()

        devices, ports, bills = await asyncio.gather(
            self.client.get_devices(), ports_call, bills_call
        )
        logger.info(
            "telemetry_fetched",
            strategy=self.strategy.value,
            devices=len(devices),
            ports=len(ports),
            bills=len(bills),
        )
        return TelemetrySnapshot(devices=devices, ports=ports, bills=bills)

    async def build_report(self, period: str | None = None) -> FinancialReport:
        resolved = resolve_period(period)

        if self.strategy is DataSourceStrategy.FALLBACK:
            return generate_demo_report(resolved)

        try:
            snapshot = await self.fetch_snapshot()
            report = assemble_report(snapshot, resolved, self.rng)
        except Exception as e:
            logger.exception("live_report_failed", period=resolved.code, error=str(e))
            return generate_demo_report(resolved, error="Using demo data due to API error")

        logger.info(
            "live_report_built",
            period=resolved.code,
            total_cost=report.summary.total_monthly_cost,
            carriers=len(report.carrier_analysis),
            plazas=len(report.plaza_breakdown),
            opportunities=len(report.optimization_opportunities),
        )
        return report
