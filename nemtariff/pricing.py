from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from . import utils
from .config import CalculatorConfig
from .exceptions import PricingError, UnsupportedPricingModelError
from .tariffs import validators
from .tariffs.schema import PlanDetail, PricingModel, TariffPeriod
from .types import Cost, HourlyReading, ReadingType, UsageData

logger = logging.getLogger(__name__)

SINGLE_RATE_MODELS = (PricingModel.SINGLE_RATE, PricingModel.SINGLE_RATE_CONT_LOAD)
TIME_OF_USE_MODELS = (PricingModel.TIME_OF_USE, PricingModel.TIME_OF_USE_CONT_LOAD)


@dataclass(frozen=True)
class Bracket:
    upper_kwh: Optional[float]  # None = remaining energy
    unit_price: float  # ex GST


@dataclass(frozen=True)
class Period:
    index: int
    start: utils.MonthDay
    end: utils.MonthDay
    daily_supply: float  # ex GST
    brackets: Tuple[Bracket, ...]


def _parse_decimal(value: Optional[str], what: str, where: str) -> float:
    if value is None:
        raise PricingError(f"{where}: missing {what}")
    try:
        return float(value)
    except ValueError:
        raise PricingError(f"{where}: couldn't parse {what} {value!r}") from None


def parse_period(period: TariffPeriod, index: int) -> Period:
    """Validate and convert a single-rate tariff period up front."""
    where = f"tariff period {index} ({period.start_date}..{period.end_date})"
    try:
        start = utils.parse_month_day(period.start_date)
        end = utils.parse_month_day(period.end_date)
    except ValueError as exc:
        raise PricingError(f"{where}: couldn't parse period date: {exc}") from exc
    supply = _parse_decimal(period.daily_supply_charges, "daily supply charge", where)
    single_rate = validators.validate_single_rate_period(period, index)
    brackets = tuple(
        Bracket(r.volume, _parse_decimal(r.unit_price, "unit price", where))
        for r in single_rate.rates
    )
    return Period(index, start, end, supply, brackets)


def get_rate(kwh_used: float, brackets: Tuple[Bracket, ...]) -> float:
    """
    Price (ex GST) for the bracket that today's cumulative usage lands in.

    Only the total including the current reading is considered, so a reading
    that straddles two brackets is priced entirely at the upper one.
    """
    for b in brackets:
        if b.upper_kwh is None or kwh_used < b.upper_kwh:
            return b.unit_price
    raise PricingError("couldn't find a rate")


def select_nmi(usage: UsageData, nmi: Optional[str] = None) -> str:
    """
    Pick the NMI to price.

    An explicit NMI must be present. Otherwise the only NMI is used, or, with
    several, the one with the most general usage readings (first seen on ties).
    """
    if not usage:
        raise PricingError("usage data contains no NMIs")
    if nmi is not None:
        if nmi not in usage:
            raise PricingError(
                f"Specified NMI {nmi} is not in the dataset. Available NMIs: {', '.join(usage)}"
            )
        return nmi
    nmis = list(usage)
    if len(nmis) == 1:
        return nmis[0]

    selected = nmis[0]
    most = -1
    for candidate in nmis:
        count = len(usage[candidate].get(ReadingType.GENERAL_USAGE, []))
        if count > most:
            most = count
            selected = candidate
    logger.info(
        "More than 1 NMI detected - using %s with %d general usage readings",
        selected,
        most,
    )
    return selected


def calculate_monthly(
    usage: UsageData,
    plan: PlanDetail,
    *,
    nmi: Optional[str] = None,
    config: Optional[CalculatorConfig] = None,
) -> Cost:
    """Estimate average monthly cost of `usage` on `plan`."""
    cfg = config or CalculatorConfig()
    model = plan.electricity_contract.pricing_model
    if model in SINGLE_RATE_MODELS:
        return _calculate_single_rate(usage, plan, nmi, cfg)
    if model in TIME_OF_USE_MODELS:
        return _calculate_time_of_use(usage, plan, nmi, cfg)
    raise UnsupportedPricingModelError(f"unsupported pricing model {model.value}")


def _calculate_single_rate(
    usage: UsageData,
    plan: PlanDetail,
    nmi: Optional[str],
    cfg: CalculatorConfig,
) -> Cost:
    periods = [
        parse_period(p, i) for i, p in enumerate(plan.electricity_contract.tariff_period)
    ]
    selected = select_nmi(usage, nmi)
    readings = usage[selected].get(ReadingType.GENERAL_USAGE, [])

    monthly_totals = np.zeros(12, dtype=float)
    monthly_counts = np.zeros(12, dtype=int)
    for period in periods:
        _accumulate_period(period, readings, cfg, monthly_totals, monthly_counts)

    return _average(monthly_totals, monthly_counts)


def _accumulate_period(
    period: Period,
    readings: List[HourlyReading],
    cfg: CalculatorConfig,
    monthly_totals: np.ndarray,
    monthly_counts: np.ndarray,
) -> None:
    gst = cfg.gst_multiplier
    daily_kwh = 0.0
    daily_charge = 0.0
    monthly_charge = 0.0
    days_this_month = 0

    for r in readings:
        # Tariff periods only carry a month and day, so compare on those
        if not utils.in_date_range(period.start, period.end, utils.month_day(r.start)):
            continue
        if utils.is_midnight(r.start):
            # New day: start from the supply charge with no energy used yet
            daily_charge = utils.with_gst(period.daily_supply, gst)
            daily_kwh = 0.0
        daily_kwh += r.energy_kwh
        rate = utils.with_gst(get_rate(daily_kwh, period.brackets), gst)
        daily_charge += r.energy_kwh * rate

        if not utils.is_midnight(r.end):
            continue
        if r.start.day == 1:
            monthly_charge = 0.0
            days_this_month = 0
        monthly_charge += daily_charge
        days_this_month += 1
        if r.end.day != 1:
            continue

        # Last day of the month
        month_days = utils.days_in_month(r.start)
        if days_this_month < month_days:
            if days_this_month < cfg.min_days_per_month:
                logger.debug(
                    "Discarding %d-%02d: only %d day(s) of readings",
                    r.start.year,
                    r.start.month,
                    days_this_month,
                )
                continue
            daily_avg = monthly_charge / days_this_month
            monthly_charge += daily_avg * (month_days - days_this_month)
        m = r.start.month - 1
        monthly_totals[m] += monthly_charge
        monthly_counts[m] += 1


def _average(monthly_totals: np.ndarray, monthly_counts: np.ndarray) -> Cost:
    populated = monthly_counts > 0
    per_month = np.divide(
        monthly_totals,
        monthly_counts,
        out=np.zeros(12, dtype=float),
        where=populated,
    )
    if not populated.any():
        logger.warning("No month had enough readings to estimate a cost")
        return Cost(0.0, per_month.tolist())
    return Cost(float(per_month[populated].mean()), per_month.tolist())


def _calculate_time_of_use(
    usage: UsageData,
    plan: PlanDetail,
    nmi: Optional[str],
    cfg: CalculatorConfig,
) -> Cost:
    raise UnsupportedPricingModelError(
        f"pricing model {plan.electricity_contract.pricing_model.value} is not supported yet"
    )
