"""Data models for the network finance service."""

import math
from datetime import datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel


class Carrier(str, Enum):
    """Upstream transit providers billed separately."""

    NEUTRAL_NETWORKS = "NeutralNetworks"
    COGENT = "Cogent"
    TI_SPARKLE = "TiSparkle"
    F16 = "F16"
    FIBER_OPTIC = "FiberOptic"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        return CARRIER_DISPLAY_NAMES[self]


CARRIER_DISPLAY_NAMES = {
    Carrier.NEUTRAL_NETWORKS: "Neutral Networks",
    Carrier.COGENT: "Cogent",
    Carrier.TI_SPARKLE: "TI-Sparkle",
    Carrier.F16: "F16",
    Carrier.FIBER_OPTIC: "Fiber Optic",
    Carrier.OTHER: "Other Carriers",
}


class Plaza(str, Enum):
    """Geographic markets served by the operator."""

    MONTERREY = "Monterrey"
    GUADALAJARA = "Guadalajara"
    QUERETARO = "Querétaro"
    TIJUANA = "Tijuana"
    CDMX = "CDMX"
    UNKNOWN = "Unknown"


class CarrierStatus(str, Enum):
    EFFICIENT = "efficient"
    ATTENTION = "attention"
    CRITICAL = "critical"
    CAPACITY_RISK = "capacity_risk"


class DataSource(str, Enum):
    """Where an aggregate's figures came from."""

    BILLING = "billing"
    ESTIMATED = "estimated"


class OpportunityType(str, Enum):
    CANCELLATION = "cancellation"
    RENEGOTIATION = "renegotiation"
    UPGRADE = "upgrade"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ReportSource(str, Enum):
    REAL_DATA = "real_data"
    DEMO_DATA = "demo_data"


def _coerce_number(value: Any) -> float:
    """Coerce an upstream numeric field, treating junk and negatives as zero."""
    if value is None or value == "":
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0.0
    return number


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


Number = Annotated[float, BeforeValidator(_coerce_number)]
Text = Annotated[str, BeforeValidator(_coerce_text)]


# Upstream records


class Device(BaseModel):
    """Device snapshot from Observium."""

    model_config = ConfigDict(populate_by_name=True)

    device_id: Text = ""
    hostname: Text = ""
    location: Text = ""
    status: Text = ""


class Port(BaseModel):
    """Transit port or link from Observium."""

    model_config = ConfigDict(populate_by_name=True)

    port_id: Text = ""
    device_id: Text = ""
    hostname: Text = ""
    alias: Text = Field(default="", validation_alias=AliasChoices("ifAlias", "alias"))
    description: Text = Field(default="", validation_alias=AliasChoices("ifDescr", "description"))
    speed_bps: Number = Field(default=0.0, validation_alias=AliasChoices("ifSpeed", "speed_bps"))
    oper_status: Text = Field(
        default="", validation_alias=AliasChoices("ifOperStatus", "oper_status")
    )
    location: Text = ""
    in_rate: Number = Field(
        default=0.0, validation_alias=AliasChoices("ifInOctets_rate", "in_rate")
    )
    out_rate: Number = Field(
        default=0.0, validation_alias=AliasChoices("ifOutOctets_rate", "out_rate")
    )
    # Location code of the scoped query that returned this port, if any.
    scope: str | None = None

    @property
    def is_up(self) -> bool:
        return self.oper_status.lower() == "up"

    @property
    def speed_mbps(self) -> float:
        return self.speed_bps / 1_000_000

    @property
    def identity(self) -> str:
        """Upstream id, or the device and interface names for ports reported without one."""
        if self.port_id:
            return self.port_id
        return ":".join([self.device_id, self.hostname, self.description, self.alias])


class BillingRecord(BaseModel):
    """Provider billing record from Observium.

    ``quota`` is currency or a byte count depending on the provider, ``allowed``
    is the contracted allowance in bytes and ``used`` the consumed bytes.
    """

    model_config = ConfigDict(populate_by_name=True)

    bill_id: Text = ""
    name: Text = Field(default="", validation_alias=AliasChoices("bill_name", "name"))
    quota: float = Field(validation_alias=AliasChoices("bill_quota", "quota"))
    allowed: Number = Field(default=0.0, validation_alias=AliasChoices("bill_allowed", "allowed"))
    used: Number = Field(default=0.0, validation_alias=AliasChoices("bill_used", "used"))
    rate_95th_in: Number = 0.0
    rate_95th_out: Number = 0.0
    billing_type: Text = Field(
        default="", validation_alias=AliasChoices("bill_type", "billing_type")
    )
    device_id: Text = ""
    hostname: Text = ""
    location: Text = ""
    scope: str | None = None

    @field_validator("quota", mode="before")
    @classmethod
    def _require_quota(cls, value: Any) -> float:
        if value is None:
            raise ValueError("bill_quota is missing")
        return _coerce_number(value)

    @property
    def label(self) -> str:
        """Best descriptive text for the record."""
        return self.name or self.hostname or "Unknown"

    @property
    def identity(self) -> str:
        if self.bill_id:
            return self.bill_id
        return ":".join([self.device_id, self.hostname, self.name])


class TelemetrySnapshot(BaseModel):
    """Everything fetched from upstream for one report."""

    devices: list[Device] = Field(default_factory=list)
    ports: list[Port] = Field(default_factory=list)
    bills: list[BillingRecord] = Field(default_factory=list)


class RecordEstimate(BaseModel):
    """Monthly cost and bandwidth estimated for one bill or port."""

    source_id: str
    carrier: Carrier
    plaza: Plaza
    monthly_cost: float
    contracted_mbps: float
    utilized_mbps: float
    alias_mbps: float = 0.0
    data_source: DataSource


# Report


class ReportModel(BaseModel):
    """Base for report models, serialized in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CarrierAggregate(ReportModel):
    carrier: str
    monthly_cost: float
    contracted_mbps: float
    utilized_mbps: float
    utilization_percentage: float
    cost_per_mbps: float
    status: CarrierStatus
    potential_saving: float
    bills_count: int = 0
    data_source: DataSource = DataSource.BILLING


class PlazaAggregate(ReportModel):
    plaza: str
    monthly_cost: float
    carriers: int
    total_mbps: float
    utilized_mbps: float
    efficiency: float
    optimization_opportunities: int
    bills_count: int = 0
    data_source: DataSource = DataSource.BILLING


class OptimizationOpportunity(ReportModel):
    id: str
    type: OpportunityType
    carrier: str
    plaza: str
    description: str
    current_cost: float
    potential_saving: float
    priority: Priority
    utilization_rate: float


class FinancialSummary(ReportModel):
    total_monthly_cost: float
    average_utilization: float
    potential_savings: float
    optimizable_contracts: int
    cost_per_mbps: float
    currency: str
    period: str
    period_label: str
    period_multiplier: float = 1.0


class FinancialReport(ReportModel):
    summary: FinancialSummary
    carrier_analysis: list[CarrierAggregate] = Field(default_factory=list)
    plaza_breakdown: list[PlazaAggregate] = Field(default_factory=list)
    optimization_opportunities: list[OptimizationOpportunity] = Field(default_factory=list)
    timestamp: datetime
    source: ReportSource
    error: str | None = None


class ExecutiveSummaryRequest(ReportModel):
    """Request for a narrative summary, optionally with a report already in hand."""

    report: FinancialReport | None = None
    period: str = "1m"


class ExecutiveSummaryResponse(ReportModel):
    summary: str
    timestamp: datetime
    source: str
