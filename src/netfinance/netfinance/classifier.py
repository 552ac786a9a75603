"""Carrier and plaza classification from free-text descriptors.

Both lookups go through :class:`SignatureRegistry`: an ordered list of
``(identity, signatures)`` entries where the first entry with a signature
contained in the lower-cased text wins. Entry order is the tie-break.
"""

from collections.abc import Iterable
from typing import Generic, TypeVar

from .models import BillingRecord, Carrier, Plaza, Port

T = TypeVar("T")


class SignatureRegistry(Generic[T]):
    """Ordered case-insensitive substring matcher."""

    def __init__(self, entries: Iterable[tuple[T, Iterable[str]]], default: T) -> None:
        self.entries: tuple[tuple[T, tuple[str, ...]], ...] = tuple(
            (identity, tuple(sig.lower() for sig in signatures))
            for identity, signatures in entries
        )
        self.default = default

    def match(self, text: str | None) -> T:
        if not text:
            return self.default
        lowered = text.lower()
        for identity, signatures in self.entries:
            if any(sig in lowered for sig in signatures):
                return identity
        return self.default

    def identities(self) -> list[T]:
        return [identity for identity, _ in self.entries]


CARRIER_SIGNATURES: SignatureRegistry[Carrier] = SignatureRegistry(
    [
        (Carrier.NEUTRAL_NETWORKS, ("neutral networks", "neutral_ntwks", "neutral")),
        (Carrier.COGENT, ("cogent",)),
        (Carrier.TI_SPARKLE, ("ti-sparkle", "ti sparkle", "tisparkle", "sparkle")),
        (Carrier.F16, ("f16",)),
        (Carrier.FIBER_OPTIC, ("fiber", "optic", "transtelco", "fo_")),
    ],
    default=Carrier.OTHER,
)

# Tijuana precedes CDMX because "mexico" appears in most full location strings.
PLAZA_SIGNATURES: SignatureRegistry[Plaza] = SignatureRegistry(
    [
        (Plaza.MONTERREY, ("mty", "monterrey", "garcia", "purisima")),
        (Plaza.GUADALAJARA, ("gdl", "guadalajara", "jalisco")),
        (Plaza.QUERETARO, ("qro", "queretaro", "querétaro")),
        (Plaza.TIJUANA, ("tij", "tijuana", "baja")),
        (Plaza.CDMX, ("cdmx", "ciudad de mexico", "ciudad de méxico", "mexico df", "mexico")),
    ],
    default=Plaza.UNKNOWN,
)

# Location codes used to scope upstream queries, one per plaza.
PLAZA_LOCATION_CODES: dict[Plaza, str] = {
    Plaza.MONTERREY: "MTY",
    Plaza.GUADALAJARA: "GDL",
    Plaza.QUERETARO: "QRO",
    Plaza.TIJUANA: "TIJ",
    Plaza.CDMX: "CDMX",
}


def classify(text: str | None) -> Carrier:
    """Map a descriptor (interface alias, bill name) to a carrier."""
    return CARRIER_SIGNATURES.match(text)


def map_plaza(text: str | None) -> Plaza:
    """Map a location or descriptor to a plaza, or ``Plaza.UNKNOWN``."""
    return PLAZA_SIGNATURES.match(text)


def resolve_plaza(*texts: str | None) -> Plaza:
    """Try each text in priority order; the first one that matches wins."""
    for text in texts:
        plaza = map_plaza(text)
        if plaza is not Plaza.UNKNOWN:
            return plaza
    return Plaza.UNKNOWN


def classify_bill(bill: BillingRecord) -> Carrier:
    return classify(" ".join(filter(None, [bill.name, bill.hostname])))


def classify_port(port: Port) -> Carrier:
    return classify(" ".join(filter(None, [port.alias, port.description, port.hostname])))


def plaza_for_bill(bill: BillingRecord, device_locations: dict[str, str]) -> Plaza:
    return resolve_plaza(
        bill.scope,
        device_locations.get(bill.device_id),
        bill.location,
        bill.name,
        bill.hostname,
    )


def plaza_for_port(port: Port, device_locations: dict[str, str]) -> Plaza:
    return resolve_plaza(
        port.scope,
        port.location,
        device_locations.get(port.device_id),
        port.hostname,
        port.alias,
    )
