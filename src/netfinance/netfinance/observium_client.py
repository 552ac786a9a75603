"""Client for the Observium API."""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from .config import settings
from .models import BillingRecord, Device, Port

logger = structlog.get_logger(__name__)

R = TypeVar("R", Port, BillingRecord)

PORT_FIELDS = "port_id,device_id,hostname,ifAlias,ifDescr,ifSpeed,ifOperStatus,location,ifInOctets_rate,ifOutOctets_rate"
BILL_FIELDS = "bill_id,bill_name,bill_quota,bill_used,bill_allowed,bill_type,device_id,hostname,rate_95th_in,rate_95th_out"
DEVICE_FIELDS = "device_id,hostname,location,status"


def extract_collection(payload: Any, *keys: str) -> list[dict[str, Any]]:
    """Pull the record list out of an Observium response.

    Observium answers with a bare list, a list under a key, or a dict of
    records keyed by id, depending on the endpoint and version.
    """
    if not payload:
        return []
    if isinstance(payload, list):
        return [item for item in payload if isinstance(item, dict)]
    if not isinstance(payload, dict):
        return []

    for key in keys:
        records = payload.get(key)
        if isinstance(records, list):
            return [item for item in records if isinstance(item, dict)]
        if isinstance(records, dict):
            return [item for item in records.values() if isinstance(item, dict)]
    return []


def _normalize(model: type[BaseModel], raw_records: Iterable[dict[str, Any]], kind: str) -> list:
    records = []
    skipped = 0
    for raw in raw_records:
        try:
            records.append(model.model_validate(raw))
        except ValidationError as e:
            skipped += 1
            logger.debug("invalid_record_skipped", kind=kind, error=str(e))
    if skipped:
        logger.warning("invalid_records_skipped", kind=kind, skipped=skipped)
    return records


def normalize_bills(raw_records: Iterable[dict[str, Any]]) -> list[BillingRecord]:
    """Validate bills, dropping those with no identifier."""
    bills = _normalize(BillingRecord, raw_records, "bill")
    return [bill for bill in bills if bill.bill_id or bill.name or bill.hostname]


def merge_scoped(results: list[tuple[str, list[R]]], key: Callable[[R], str]) -> list[R]:
    """Concatenate scoped results, tagging each record with its scope.

    A record returned under more than one scope means the upstream ignored
    the location filter, so it keeps no scope.
    """
    scopes: dict[str, set[str]] = {}
    for location, records in results:
        for record in records:
            scopes.setdefault(key(record), set()).add(location)

    merged: list[R] = []
    seen: set[str] = set()
    for location, records in results:
        for record in records:
            record_key = key(record)
            if record_key in seen:
                continue
            seen.add(record_key)
            scope = location if len(scopes[record_key]) == 1 else None
            merged.append(record.model_copy(update={"scope": scope}))
    return merged


class ObserviumClient:
    """Client to fetch devices, transit ports and bills from Observium.

    Every call is independent: a failure or timeout is logged and yields an
    empty list. Nothing is retried.
    """

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self.base_url = settings.observium_api_url.rstrip("/")
        self.scoped_timeout = settings.scoped_timeout_seconds
        self.unscoped_timeout = settings.unscoped_timeout_seconds
        if client is None:
            auth = None
            if settings.observium_username:
                auth = httpx.BasicAuth(settings.observium_username, settings.observium_password)
            client = httpx.AsyncClient(
                auth=auth,
                headers={"Accept": "application/json"},
                timeout=self.unscoped_timeout,
            )
        self.client = client

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def _get_collection(
        self, path: str, params: dict[str, Any], timeout: float, *keys: str
    ) -> list[dict[str, Any]]:
        try:
            resp = await self.client.get(f"{self.base_url}{path}", params=params, timeout=timeout)
            resp.raise_for_status()
            return extract_collection(resp.json(), *keys)
        except Exception as e:
            logger.error(
                "failed_to_fetch_collection",
                path=path,
                location=params.get("location"),
                error=str(e) or type(e).__name__,
            )
            return []

    async def get_devices(self) -> list[Device]:
        """Fetch all devices."""
        raw = await self._get_collection(
            "/devices",
            {"fields": DEVICE_FIELDS, "pagesize": settings.unscoped_page_size},
            self.unscoped_timeout,
            "devices",
        )
        return _normalize(Device, raw, "device")

    async def get_ports(self, location: str | None = None) -> list[Port]:
        """Fetch transit ports, optionally scoped to a location code."""
        params: dict[str, Any] = {"port_descr_type": "transit", "fields": PORT_FIELDS}
        if location:
            params.update(location=location, pagesize=settings.scoped_page_size)
            timeout = self.scoped_timeout
        else:
            params["pagesize"] = settings.unscoped_page_size
            timeout = self.unscoped_timeout
        raw = await self._get_collection("/ports", params, timeout, "ports")
        return _normalize(Port, raw, "port")

    async def get_bills(self, location: str | None = None) -> list[BillingRecord]:
        """Fetch billing records, optionally scoped to a location code."""
        params: dict[str, Any] = {"fields": BILL_FIELDS}
        if location:
            params.update(location=location, pagesize=settings.scoped_page_size)
            timeout = self.scoped_timeout
        else:
            params["pagesize"] = settings.unscoped_page_size
            timeout = self.unscoped_timeout
        raw = await self._get_collection("/bills", params, timeout, "bill", "bills")
        return normalize_bills(raw)

    async def _fetch_scoped(
        self,
        fetch: Callable[[str | None], Awaitable[list[R]]],
        locations: Iterable[str],
        key: Callable[[R], str],
        kind: str,
    ) -> list[R]:
        locations = list(locations)
        results = await asyncio.gather(*(fetch(location) for location in locations))
        merged = merge_scoped(list(zip(locations, results)), key)

        for location, records in zip(locations, results):
            logger.debug("scoped_fetch_complete", kind=kind, location=location, count=len(records))

        if merged:
            logger.info("scoped_fetch_merged", kind=kind, count=len(merged))
            return merged

        logger.info("scoped_fetch_empty_falling_back", kind=kind)
        return await fetch(None)

    async def get_ports_by_plaza(self, locations: Iterable[str]) -> list[Port]:
        """Fetch transit ports per location concurrently, unscoped if none come back."""
        return await self._fetch_scoped(
            self.get_ports, locations, lambda p: p.identity, "port"
        )

    async def get_bills_by_plaza(self, locations: Iterable[str]) -> list[BillingRecord]:
        """Fetch bills per location concurrently, unscoped if none come back."""
        return await self._fetch_scoped(
            self.get_bills, locations, lambda b: b.identity, "bill"
        )
