"""Monthly cost and bandwidth estimation for bills and ports.

Bills are the primary source. Their cost and utilization each go through a
tiered procedure that depends on which raw fields are populated. Ports are
only used when a carrier or plaza has no bill at all; their utilization is
synthesized and tagged ``estimated``.
"""

import random
import re

import structlog

from .classifier import classify, classify_bill, classify_port, plaza_for_bill, plaza_for_port
from .models import BillingRecord, Carrier, DataSource, Port, RecordEstimate

logger = structlog.get_logger(__name__)

BYTES_PER_MB = 1024 * 1024
BYTES_PER_GB = 1024 * 1024 * 1024

USAGE_BILLING_TYPES = frozenset({"cdr", "quota"})

GB_THRESHOLD = 1_000_000_000
MB_THRESHOLD = 1_000_000
SCALED_COST_THRESHOLD = 1_000

COST_PER_GB = 25.0
GB_COST_CAP = 50_000.0
COST_PER_MB = 0.05
MB_COST_CAP = 25_000.0
SCALED_COST_CAP = 15_000.0
FLAT_COST_CAP = 10_000.0

# Typical monthly cost and utilized Mbps per carrier when a bill has no usable figures.
CARRIER_MONTHLY_COST: dict[Carrier, float] = {
    Carrier.TI_SPARKLE: 8_000.0,
    Carrier.COGENT: 12_000.0,
    Carrier.NEUTRAL_NETWORKS: 15_000.0,
    Carrier.FIBER_OPTIC: 10_000.0,
    Carrier.F16: 6_000.0,
    Carrier.OTHER: 5_000.0,
}

CARRIER_UTILIZED_MBPS: dict[Carrier, float] = {
    Carrier.TI_SPARKLE: 2_500.0,
    Carrier.COGENT: 1_500.0,
    Carrier.NEUTRAL_NETWORKS: 3_000.0,
    Carrier.FIBER_OPTIC: 2_000.0,
    Carrier.F16: 1_000.0,
    Carrier.OTHER: 800.0,
}

SYNTHETIC_UTILIZATION_RANGE = (20.0, 80.0)

_ALIAS_BANDWIDTH_PATTERNS: tuple[tuple[re.Pattern[str], float], ...] = (
    (re.compile(r"\[(\d+)\s*Mbps\]", re.IGNORECASE), 1.0),
    (re.compile(r"\[(\d+)X(\d+)\]", re.IGNORECASE), 1.0),
    (re.compile(r"\[(\d+)\s*GB\]", re.IGNORECASE), 1000.0),
    (re.compile(r"\[(\d+)\s*G\]", re.IGNORECASE), 1000.0),
    (re.compile(r"(\d+)\s*Mbps", re.IGNORECASE), 1.0),
    (re.compile(r"(\d+)\s*GB", re.IGNORECASE), 1000.0),
)


def estimate_cost_from_name(name: str) -> float:
    return CARRIER_MONTHLY_COST[classify(name)]


def estimate_utilization_from_name(name: str) -> float:
    return CARRIER_UTILIZED_MBPS[classify(name)]


def estimate_bill_cost(bill: BillingRecord) -> float:
    """Monthly cost of a bill, read from its quota according to its magnitude."""
    quota = bill.quota

    if bill.billing_type.lower() in USAGE_BILLING_TYPES:
        if quota == 0:
            return estimate_cost_from_name(bill.label)
        if quota > GB_THRESHOLD:
            return min(quota / BYTES_PER_GB * COST_PER_GB, GB_COST_CAP)
        if quota > MB_THRESHOLD:
            return min(quota / BYTES_PER_MB * COST_PER_MB, MB_COST_CAP)
        if quota > SCALED_COST_THRESHOLD:
            return min(quota, SCALED_COST_CAP)
        return quota

    if quota > 0:
        return min(quota, FLAT_COST_CAP)
    return estimate_cost_from_name(bill.label)


def estimate_bill_utilization(bill: BillingRecord) -> float:
    """Utilized Mbps of a bill: used bytes, then 95th percentile, then name."""
    if bill.used > 0:
        return bill.used / BYTES_PER_MB

    peak_rate = max(bill.rate_95th_in, bill.rate_95th_out)
    if peak_rate > 0:
        return peak_rate / BYTES_PER_MB

    return estimate_utilization_from_name(bill.label)


def parse_bandwidth_from_alias(alias: str | None) -> float:
    """Contracted Mbps written into an interface alias, e.g. ``[600Mbps]`` or ``[3G]``."""
    if not alias:
        return 0.0
    for pattern, factor in _ALIAS_BANDWIDTH_PATTERNS:
        match = pattern.search(alias)
        if match:
            return int(match.group(1)) * factor
    return 0.0


def measured_port_utilization(port: Port) -> float:
    """Mbps from octet rate samples, capped at link speed. Zero if there are none."""
    peak_octets = max(port.in_rate, port.out_rate)
    if peak_octets <= 0:
        return 0.0
    mbps = peak_octets * 8 / 1_000_000
    if port.speed_mbps > 0:
        return min(mbps, port.speed_mbps)
    return mbps


def synthesize_port_utilization(port: Port, rng: random.Random) -> float:
    """Capacity-proportional random draw, zero for ports that are not up."""
    if not port.is_up:
        return 0.0
    low, high = SYNTHETIC_UTILIZATION_RANGE
    return port.speed_mbps * rng.uniform(low, high) / 100


def estimate_bill(bill: BillingRecord, device_locations: dict[str, str]) -> RecordEstimate:
    return RecordEstimate(
        source_id=bill.identity,
        carrier=classify_bill(bill),
        plaza=plaza_for_bill(bill, device_locations),
        monthly_cost=estimate_bill_cost(bill),
        contracted_mbps=bill.allowed / BYTES_PER_MB,
        utilized_mbps=estimate_bill_utilization(bill),
        data_source=DataSource.BILLING,
    )


def estimate_port(
    port: Port,
    device_locations: dict[str, str],
    rng: random.Random,
    cost_per_mbps: float,
) -> RecordEstimate:
    alias_mbps = parse_bandwidth_from_alias(port.alias)
    utilized = measured_port_utilization(port)
    if utilized == 0:
        utilized = synthesize_port_utilization(port, rng)
    effective_mbps = alias_mbps if alias_mbps > 0 else port.speed_mbps

    return RecordEstimate(
        source_id=port.identity,
        carrier=classify_port(port),
        plaza=plaza_for_port(port, device_locations),
        monthly_cost=effective_mbps * cost_per_mbps,
        contracted_mbps=port.speed_mbps,
        utilized_mbps=utilized,
        alias_mbps=alias_mbps,
        data_source=DataSource.ESTIMATED,
    )


def estimate_bills(
    bills: list[BillingRecord], device_locations: dict[str, str]
) -> list[RecordEstimate]:
    estimates = [estimate_bill(bill, device_locations) for bill in bills]
    logger.debug("bills_estimated", count=len(estimates))
    return estimates


def estimate_ports(
    ports: list[Port],
    device_locations: dict[str, str],
    rng: random.Random,
    cost_per_mbps: float,
) -> list[RecordEstimate]:
    estimates = [estimate_port(port, device_locations, rng, cost_per_mbps) for port in ports]
    logger.debug("ports_estimated", count=len(estimates))
    return estimates
