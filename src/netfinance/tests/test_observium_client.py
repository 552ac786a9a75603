import httpx
import pytest

from netfinance.models import BillingRecord, Port
from netfinance.observium_client import extract_collection, merge_scoped, normalize_bills

from conftest import COGENT_BILL, make_observium_client


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        (None, []),
        ([], []),
        ([{"port_id": 1}, "junk"], [{"port_id": 1}]),
        ({"ports": [{"port_id": 1}]}, [{"port_id": 1}]),
        ({"ports": {"1": {"port_id": 1}, "2": {"port_id": 2}}}, [{"port_id": 1}, {"port_id": 2}]),
        ({"status": "ok", "count": 0}, []),
        ("unexpected", []),
    ],
)
def test_extract_collection_shapes(payload, expected) -> None:
    assert extract_collection(payload, "ports") == expected


def test_extract_collection_tries_keys_in_order() -> None:
    payload = {"bills": [{"bill_id": 2}], "bill": [{"bill_id": 1}]}
    assert extract_collection(payload, "bill", "bills") == [{"bill_id": 1}]
    assert extract_collection({"bills": [{"bill_id": 2}]}, "bill", "bills") == [{"bill_id": 2}]


def test_normalize_bills_skips_invalid_records() -> None:
    bills = normalize_bills(
        [
            COGENT_BILL,
            {"bill_id": 11, "bill_name": "no quota"},
            {"bill_quota": 100},
        ]
    )
    assert [b.bill_id for b in bills] == ["10"]


def test_merge_scoped_tags_and_dedupes() -> None:
    shared = Port(port_id="1", alias="shared")
    only_mty = Port(port_id="2", alias="mty")
    only_gdl = Port(port_id="3", alias="gdl")

    merged = merge_scoped(
        [("MTY", [shared, only_mty]), ("GDL", [shared, only_gdl])],
        key=lambda p: p.port_id,
    )

    assert [(p.port_id, p.scope) for p in merged] == [("1", None), ("2", "MTY"), ("3", "GDL")]


def test_merge_scoped_keeps_inputs_untouched() -> None:
    bill = BillingRecord(bill_id="1", quota=10)
    merge_scoped([("QRO", [bill])], key=lambda b: b.bill_id)
    assert bill.scope is None


@pytest.mark.asyncio
async def test_get_devices_from_keyed_dict() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v0/devices"
        return httpx.Response(
            200, json={"devices": {"1": {"device_id": 1, "hostname": "mty-pe1", "location": "MTY"}}}
        )

    client = make_observium_client(handler)
    devices = await client.get_devices()

    assert [(d.device_id, d.location) for d in devices] == [("1", "MTY")]


@pytest.mark.asyncio
async def test_get_ports_sends_transit_filter_and_scope() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ports": []})

    client = make_observium_client(handler)
    await client.get_ports("GDL")
    await client.get_ports()

    scoped, unscoped = (r.url.params for r in seen)
    assert scoped["port_descr_type"] == "transit"
    assert scoped["location"] == "GDL"
    assert scoped["pagesize"] == "50"
    assert "location" not in unscoped
    assert unscoped["pagesize"] == "200"


@pytest.mark.asyncio
async def test_http_error_yields_empty_list() -> None:
    client = make_observium_client(lambda request: httpx.Response(500, text="boom"))
    assert await client.get_bills() == []
    assert await client.get_ports() == []
    assert await client.get_devices() == []


@pytest.mark.asyncio
async def test_timeout_yields_empty_list() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    client = make_observium_client(handler)
    assert await client.get_ports("MTY") == []


@pytest.mark.asyncio
async def test_invalid_json_yields_empty_list() -> None:
    client = make_observium_client(lambda request: httpx.Response(200, text="<html>"))
    assert await client.get_devices() == []


@pytest.mark.asyncio
async def test_scoped_bills_are_merged_with_scope() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        location = request.url.params.get("location")
        if location == "MTY":
            return httpx.Response(200, json={"bill": [COGENT_BILL]})
        if location == "GDL":
            raise httpx.ConnectError("unreachable", request=request)
        return httpx.Response(200, json={"bill": []})

    client = make_observium_client(handler)
    bills = await client.get_bills_by_plaza(["MTY", "GDL", "QRO"])

    assert [(b.bill_id, b.scope) for b in bills] == [("10", "MTY")]


@pytest.mark.asyncio
async def test_empty_scoped_results_fall_back_to_unscoped_query() -> None:
    locations_requested: list[str | None] = []

    def handler(request: httpx.Request) -> httpx.Response:
        location = request.url.params.get("location")
        locations_requested.append(location)
        if location is None:
            return httpx.Response(200, json={"bills": [COGENT_BILL]})
        return httpx.Response(503)

    client = make_observium_client(handler)
    bills = await client.get_bills_by_plaza(["MTY", "GDL"])

    assert [b.bill_id for b in bills] == ["10"]
    assert bills[0].scope is None
    assert sorted(locations_requested, key=str) == ["GDL", "MTY", None]


@pytest.mark.asyncio
async def test_location_filter_ignored_upstream_drops_scope() -> None:
    port = {"port_id": 5, "ifAlias": "Cogent [1G]", "ifSpeed": 1_000_000_000}

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"ports": [port]})

    client = make_observium_client(handler)
    ports = await client.get_ports_by_plaza(["MTY", "GDL", "TIJ"])

    assert len(ports) == 1
    assert ports[0].scope is None
    assert ports[0].speed_mbps == 1000


def test_ports_without_id_are_told_apart_by_interface() -> None:
    first = Port(device_id="1", hostname="mty-pe1", description="Te0/1", alias="Cogent")
    second = Port(device_id="1", hostname="mty-pe1", description="Te0/2", alias="Cogent")

    assert first.identity != second.identity
    assert Port(port_id="77", description="Te0/1").identity == "77"


@pytest.mark.asyncio
async def test_scoped_ports_without_id_are_all_kept() -> None:
    ports = [
        {"device_id": 1, "hostname": "mty-pe1", "ifDescr": "Te0/1", "ifAlias": "", "ifSpeed": 1e10},
        {"device_id": 1, "hostname": "mty-pe1", "ifDescr": "Te0/2", "ifAlias": "", "ifSpeed": 1e10},
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params.get("location") == "MTY":
            return httpx.Response(200, json={"ports": ports})
        return httpx.Response(200, json={"ports": []})

    client = make_observium_client(handler)
    merged = await client.get_ports_by_plaza(["MTY", "GDL"])

    assert [p.description for p in merged] == ["Te0/1", "Te0/2"]
    assert all(p.scope == "MTY" for p in merged)
