from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

import pytest

from nemtariff.tariffs import load_plan
from nemtariff.types import HourlyReading

TZ = "Australia/Brisbane"
NMI = "QB00000001"


def _row(*fields) -> str:
    return ",".join(str(f) for f in fields)


@pytest.fixture
def row100():
    def _make(version="NEM12"):
        return _row(100, version, "202401020304", "MDP1", "RETAILER1")

    return _make


@pytest.fixture
def row200():
    def _make(nmi=NMI, suffix="E1", uom="KWH", interval=30, next_read=""):
        return _row(200, nmi, "E1B1", "1", suffix, "N1", "METER1", uom, interval, next_read)

    return _make


@pytest.fixture
def row300():
    def _make(day="20240101", values=None, interval=30, quality="V", reason="", desc=""):
        if values is None:
            values = [1.0] * (1440 // interval)
        return _row(300, day, *values, quality, reason, desc, "20240102030405", "")

    return _make


@pytest.fixture
def row400():
    def _make(start, end, quality="F", reason="", desc=""):
        return _row(400, start, end, quality, reason, desc)

    return _make


@pytest.fixture
def nem12_text(row100):
    """Join rows into a NEM12 document, adding the 100 and 900 rows by default."""

    def _make(*rows, header=True, footer=True):
        lines = list(rows)
        if header:
            lines.insert(0, row100())
        if footer:
            lines.append("900")
        return "\n".join(lines) + "\n"

    return _make


@pytest.fixture
def hourly():
    """Contiguous hourly readings of constant energy starting at local midnight."""

    def _make(start: date, days: int, kwh: float = 1.0):
        t0 = datetime.combine(start, time(), tzinfo=ZoneInfo(TZ))
        return [
            HourlyReading(t0 + timedelta(hours=h), t0 + timedelta(hours=h + 1), kwh)
            for h in range(days * 24)
        ]

    return _make


@pytest.fixture
def tariff_period():
    def _make(start="01-01", end="12-31", supply="0", rates=None):
        if rates is None:
            rates = [{"unitPrice": "0.30", "measureUnit": "KWH"}]
        return {
            "startDate": start,
            "endDate": end,
            "dailySupplyCharges": supply,
            "rateBlockUType": "singleRate",
            "singleRate": {"displayName": "Standard", "rates": rates},
        }

    return _make


@pytest.fixture
def make_plan(tariff_period):
    def _make(periods=None, model="SINGLE_RATE"):
        if periods is None:
            periods = [tariff_period()]
        return load_plan(
            {
                "planId": "TEST123@VEC",
                "displayName": "Test plan",
                "electricityContract": {
                    "pricingModel": model,
                    "tariffPeriod": periods,
                },
            }
        )

    return _make
