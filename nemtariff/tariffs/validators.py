from __future__ import annotations
from ..exceptions import PricingError, require
from .schema import SingleRate, TariffPeriod


def validate_single_rate_period(period: TariffPeriod, index: int) -> SingleRate:
    """Structural checks for a single-rate tariff period's rate brackets."""
    where = f"tariff period {index} ({period.start_date}..{period.end_date})"
    single_rate = period.single_rate
    if single_rate is None:
        raise PricingError(f"{where}: single rate plan has no singleRate block")
    rates = single_rate.rates
    require(bool(rates), f"{where}: rate bracket list is empty", PricingError)
    unbounded = [i for i, r in enumerate(rates) if r.volume is None]
    require(
        bool(unbounded), f"{where}: no rate bracket for remaining energy", PricingError
    )
    # Anything after the catch-all bracket could never be reached
    require(
        unbounded == [len(rates) - 1],
        f"{where}: the bracket without a volume must be the single last entry",
        PricingError,
    )
    return single_rate
