from __future__ import annotations
import json
import os
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DecimalString = str


class PricingModel(str, Enum):
    SINGLE_RATE = "SINGLE_RATE"
    SINGLE_RATE_CONT_LOAD = "SINGLE_RATE_CONT_LOAD"
    TIME_OF_USE = "TIME_OF_USE"
    TIME_OF_USE_CONT_LOAD = "TIME_OF_USE_CONT_LOAD"
    FLEXIBLE = "FLEXIBLE"
    FLEXIBLE_CONT_LOAD = "FLEXIBLE_CONT_LOAD"
    QUOTA = "QUOTA"


class CdrModel(BaseModel):
    """Plan documents use camelCase keys; fields we don't price are ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
        coerce_numbers_to_str=True,
    )


class Rate(CdrModel):
    unit_price: DecimalString  # ex GST, dollars per kWh
    volume: float | None = None  # upper bound in kWh; None = remaining energy
    measure_unit: str | None = None


class SingleRate(CdrModel):
    display_name: str | None = None
    rates: list[Rate] = Field(default_factory=list)


class TariffPeriod(CdrModel):
    display_name: str | None = None
    start_date: str  # "MM-DD"
    end_date: str  # "MM-DD"
    daily_supply_charges: DecimalString | None = None  # ex GST, dollars per day
    single_rate: SingleRate | None = None


class ElectricityContract(CdrModel):
    pricing_model: PricingModel
    tariff_period: list[TariffPeriod] = Field(default_factory=list)


class PlanDetail(CdrModel):
    plan_id: str
    display_name: str | None = None
    brand: str | None = None
    electricity_contract: ElectricityContract


def load_plan(source: Mapping[str, Any] | str | os.PathLike[str]) -> PlanDetail:
    """
    Build a PlanDetail from a mapping or a JSON file.

    Accepts both the bare plan document and a {"data": {...}} response envelope.
    """
    if isinstance(source, Mapping):
        doc = source
    else:
        with open(source, encoding="utf-8") as fh:
            doc = json.load(fh)
    if "data" in doc and "planId" not in doc:
        doc = doc["data"]
    return PlanDetail.model_validate(doc)
