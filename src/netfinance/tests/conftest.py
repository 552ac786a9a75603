"""Shared fixtures for the network finance tests."""

import random
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from netfinance.models import (
    BillingRecord,
    Carrier,
    CarrierAggregate,
    CarrierStatus,
    DataSource,
    Plaza,
    RecordEstimate,
)
from netfinance.observium_client import ObserviumClient

MB = 1024 * 1024

Handler = Callable[[httpx.Request], httpx.Response]


def make_bill(**fields: Any) -> BillingRecord:
    raw = {"bill_id": "1", "bill_name": "Transit", "bill_quota": 0, "bill_type": "cdr"}
    raw.update(fields)
    return BillingRecord.model_validate(raw)


def make_estimate(
    carrier: Carrier = Carrier.COGENT,
    plaza: Plaza = Plaza.MONTERREY,
    cost: float = 1000.0,
    contracted: float = 100.0,
    utilized: float = 50.0,
    data_source: DataSource = DataSource.BILLING,
    alias_mbps: float = 0.0,
    source_id: str = "x",
) -> RecordEstimate:
    return RecordEstimate(
        source_id=source_id,
        carrier=carrier,
        plaza=plaza,
        monthly_cost=cost,
        contracted_mbps=contracted,
        utilized_mbps=utilized,
        alias_mbps=alias_mbps,
        data_source=data_source,
    )


def make_carrier(
    name: str = "Cogent",
    cost: float = 1000.0,
    utilization: float = 60.0,
    saving: float = 0.0,
    status: CarrierStatus = CarrierStatus.EFFICIENT,
    contracted: float = 100.0,
) -> CarrierAggregate:
    utilized = contracted * utilization / 100
    return CarrierAggregate(
        carrier=name,
        monthly_cost=cost,
        contracted_mbps=contracted,
        utilized_mbps=utilized,
        utilization_percentage=utilization,
        cost_per_mbps=cost / max(utilized, contracted, 1),
        status=status,
        potential_saving=saving,
    )


def make_observium_client(handler: Handler) -> ObserviumClient:
    transport = httpx.MockTransport(handler)
    return ObserviumClient(client=httpx.AsyncClient(transport=transport))


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


# Upstream fixture data: Cogent is billed in Monterrey, F16 only shows up as a
# Guadalajara transit port with no bill.

DEVICES = [
    {"device_id": 1, "hostname": "core-mty-01", "location": "Monterrey, NL, Mexico", "status": 1},
    {"device_id": 2, "hostname": "edge-gdl-01", "location": "Guadalajara, Jalisco", "status": 1},
]

COGENT_BILL = {
    "bill_id": 10,
    "bill_name": "Cogent Transit 1G",
    "bill_quota": "12000",
    "bill_type": "cdr",
    "bill_allowed": str(1000 * MB),
    "bill_used": "0",
    "rate_95th_in": str(300 * MB),
    "rate_95th_out": str(120 * MB),
    "device_id": 1,
}

COGENT_PORT = {
    "port_id": 21,
    "device_id": 1,
    "hostname": "core-mty-01",
    "ifAlias": "Cogent MTY [1G]",
    "ifSpeed": "1000000000",
    "ifOperStatus": "up",
    "location": "Monterrey",
}

F16_PORT = {
    "port_id": 20,
    "device_id": 2,
    "hostname": "edge-gdl-01",
    "ifAlias": "F16 GDL transit [1G]",
    "ifSpeed": "1000000000",
    "ifOperStatus": "up",
    "location": "Guadalajara",
}


def live_handler(request: httpx.Request) -> httpx.Response:
    """Observium stand-in that honours the location filter."""
    location = request.url.params.get("location")
    path = request.url.path

    if path.endswith("/devices"):
        return httpx.Response(200, json={"count": 2, "devices": {str(d["device_id"]): d for d in DEVICES}})
    if path.endswith("/bills"):
        bills = [COGENT_BILL] if location in (None, "MTY") else []
        return httpx.Response(200, json={"bill": bills})
    if path.endswith("/ports"):
        ports = {"MTY": [COGENT_PORT], "GDL": [F16_PORT], None: [COGENT_PORT, F16_PORT]}
        return httpx.Response(200, json={"ports": ports.get(location, [])})
    raise AssertionError(f"Unhandled request: {request.method} {request.url}")


def failing_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503, json={"status": "error"})
