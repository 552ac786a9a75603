"""Reporting periods and their cost multipliers."""

from typing import NamedTuple

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_PERIOD = "1m"


class Period(NamedTuple):
    """A reporting period: every monthly cost is scaled by ``multiplier``."""

    code: str
    multiplier: float
    label: str


PERIODS: dict[str, Period] = {
    "1d": Period("1d", 0.033, "diario"),
    "3d": Period("3d", 0.1, "3 días"),
    "1w": Period("1w", 0.25, "semanal"),
    "1m": Period("1m", 1.0, "mensual"),
    "3m": Period("3m", 3.0, "trimestral"),
    "6m": Period("6m", 6.0, "semestral"),
    "1y": Period("1y", 12.0, "anual"),
}


def resolve_period(code: str | None) -> Period:
    """Look up a period code, falling back to the monthly period."""
    if code and code in PERIODS:
        return PERIODS[code]
    if code:
        logger.warning("unknown_period", period=code, fallback=DEFAULT_PERIOD)
    return PERIODS[DEFAULT_PERIOD]
