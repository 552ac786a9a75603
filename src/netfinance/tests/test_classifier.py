from netfinance.classifier import (
    CARRIER_SIGNATURES,
    PLAZA_SIGNATURES,
    SignatureRegistry,
    classify,
    classify_port,
    map_plaza,
    plaza_for_bill,
    resolve_plaza,
)
from netfinance.models import BillingRecord, Carrier, Plaza, Port


def test_classify_known_carriers() -> None:
    assert classify("TI-Sparkle MTY") is Carrier.TI_SPARKLE
    assert classify("COGENT-GDL-10G") is Carrier.COGENT
    assert classify("Neutral Networks Transit") is Carrier.NEUTRAL_NETWORKS
    assert classify("f16 backup") is Carrier.F16
    assert classify("Transtelco dark fiber") is Carrier.FIBER_OPTIC


def test_classify_unmatched_and_empty_text_is_other() -> None:
    assert classify("Telmex uplink") is Carrier.OTHER
    assert classify("") is Carrier.OTHER
    assert classify(None) is Carrier.OTHER


def test_classify_is_deterministic() -> None:
    texts = ["Cogent MTY", "sparkle", "unknown", "F16 / cogent"]
    first = [classify(t) for t in texts]
    second = [classify(t) for t in reversed(texts)][::-1]
    assert first == second


def test_first_registry_entry_wins_on_ambiguous_text() -> None:
    # Matches both Neutral Networks and Cogent signatures.
    assert classify("Cogent handoff via Neutral") is Carrier.NEUTRAL_NETWORKS
    assert classify("F16 over fiber") is Carrier.F16


def test_network_alone_is_not_neutral_networks() -> None:
    assert classify("F16 Networks") is Carrier.F16


def test_registry_order_is_the_tie_break() -> None:
    registry = SignatureRegistry([("a", ["shared"]), ("b", ["shared", "only-b"])], default="none")
    assert registry.match("SHARED link") == "a"
    assert registry.match("only-b") == "b"
    assert registry.match("nothing") == "none"


def test_signature_tables_cover_all_identities() -> None:
    assert set(CARRIER_SIGNATURES.identities()) == set(Carrier) - {Carrier.OTHER}
    assert set(PLAZA_SIGNATURES.identities()) == set(Plaza) - {Plaza.UNKNOWN}


def test_map_plaza() -> None:
    assert map_plaza("MTY-CORE-01") is Plaza.MONTERREY
    assert map_plaza("Zapopan, Jalisco") is Plaza.GUADALAJARA
    assert map_plaza("Querétaro") is Plaza.QUERETARO
    assert map_plaza("Tijuana, Baja California, Mexico") is Plaza.TIJUANA
    assert map_plaza("CDMX Santa Fe") is Plaza.CDMX
    assert map_plaza("Houston, TX") is Plaza.UNKNOWN


def test_resolve_plaza_uses_first_matching_text() -> None:
    assert resolve_plaza(None, "GDL", "mty") is Plaza.GUADALAJARA
    assert resolve_plaza("", "somewhere", "Monterrey") is Plaza.MONTERREY
    assert resolve_plaza(None, "") is Plaza.UNKNOWN


def test_bill_plaza_prefers_scope_then_device_location() -> None:
    bill = BillingRecord(bill_id="1", name="Cogent GDL", quota=0, device_id="7")
    assert plaza_for_bill(bill, {"7": "Monterrey"}) is Plaza.MONTERREY
    assert plaza_for_bill(bill, {}) is Plaza.GUADALAJARA
    scoped = bill.model_copy(update={"scope": "TIJ"})
    assert plaza_for_bill(scoped, {"7": "Monterrey"}) is Plaza.TIJUANA


def test_classify_port_reads_alias_description_and_hostname() -> None:
    assert classify_port(Port(alias="", description="", hostname="cogent-pe1")) is Carrier.COGENT
    assert classify_port(Port(alias="uplink", description="TI-Sparkle")) is Carrier.TI_SPARKLE
