"""Single-rate monthly cost estimation.

- flat rate equals energy x price x GST over in-window readings
- bracket lookup on cumulative daily kWh (no partial-bracket splitting)
- month discard below 14 days, extrapolation above
- wrap-around tariff windows and multi-period/multi-year bucket accumulation
- NMI selection and failure modes
"""

from datetime import date

import pytest

from nemtariff import pricing
from nemtariff.config import CalculatorConfig
from nemtariff.exceptions import PricingError, UnsupportedPricingModelError
from nemtariff.tariffs.schema import TariffPeriod
from nemtariff.tariffs.validators import validate_single_rate_period
from nemtariff.types import ReadingType

NMI = "QB00000001"
E1 = ReadingType.GENERAL_USAGE
GST = 1.1


def _usage(readings, nmi=NMI):
    return {nmi: {E1: readings}}


def test_flat_rate_full_month(hourly, make_plan):
    """Jan 2024, 0.5 kWh every hour, 30c/kWh, no supply charge."""
    readings = hourly(date(2024, 1, 1), 31, kwh=0.5)
    cost = pricing.calculate_monthly(_usage(readings), make_plan())
    expected = sum(r.energy_kwh for r in readings) * 0.30 * GST
    assert cost.average_per_month[0] == pytest.approx(expected)
    assert cost.average_monthly == pytest.approx(expected)
    assert cost.average_per_month[1:] == [0.0] * 11


def test_supply_charge_added_per_day(hourly, make_plan, tariff_period):
    readings = hourly(date(2024, 1, 1), 31, kwh=0.0)
    plan = make_plan([tariff_period(supply="1.20")])
    cost = pricing.calculate_monthly(_usage(readings), plan)
    assert cost.average_per_month[0] == pytest.approx(31 * 1.20 * GST)


def test_gst_multiplier_is_configurable(hourly, make_plan):
    readings = hourly(date(2024, 1, 1), 31, kwh=1.0)
    cost = pricing.calculate_monthly(
        _usage(readings), make_plan(), config=CalculatorConfig(gst_multiplier=1.0)
    )
    assert cost.average_monthly == pytest.approx(31 * 24 * 0.30)


def test_bracket_priced_on_cumulative_daily_usage(hourly, make_plan, tariff_period):
    """1 kWh/h: readings 1-9 land under 10 kWh, readings 10-24 land in the remainder."""
    rates = [
        {"unitPrice": "0.20", "volume": 10},
        {"unitPrice": "0.40"},
    ]
    readings = hourly(date(2024, 4, 1), 30, kwh=1.0)
    cost = pricing.calculate_monthly(_usage(readings), make_plan([tariff_period(rates=rates)]))
    per_day = (9 * 0.20 + 15 * 0.40) * GST
    assert cost.average_per_month[3] == pytest.approx(30 * per_day)


def test_get_rate_uses_strict_upper_bound():
    brackets = (
        pricing.Bracket(5.0, 0.1),
        pricing.Bracket(10.0, 0.2),
        pricing.Bracket(None, 0.3),
    )
    assert pricing.get_rate(4.99, brackets) == 0.1
    assert pricing.get_rate(5.0, brackets) == 0.2
    assert pricing.get_rate(10.0, brackets) == 0.3
    assert pricing.get_rate(1000.0, brackets) == 0.3


def test_month_with_enough_days_is_extrapolated(hourly, make_plan):
    """20 of 30 April days observed extrapolates to observed x 30/20."""
    readings = hourly(date(2024, 4, 11), 20, kwh=1.0)
    cost = pricing.calculate_monthly(_usage(readings), make_plan())
    observed = 20 * 24 * 0.30 * GST
    assert cost.average_per_month[3] == pytest.approx(observed * 30 / 20)


def test_month_with_too_few_days_is_discarded(hourly, make_plan):
    readings = hourly(date(2024, 4, 18), 13, kwh=1.0)
    cost = pricing.calculate_monthly(_usage(readings), make_plan())
    assert cost.average_per_month == [0.0] * 12
    assert cost.average_monthly == 0.0


def test_fourteen_days_is_enough(hourly, make_plan):
    readings = hourly(date(2024, 4, 17), 14, kwh=1.0)
    cost = pricing.calculate_monthly(_usage(readings), make_plan())
    assert cost.average_per_month[3] == pytest.approx(30 * 24 * 0.30 * GST)


def test_incomplete_trailing_month_is_not_counted(hourly, make_plan):
    """May is never closed by a reading ending on June 1st."""
    readings = hourly(date(2024, 4, 1), 45, kwh=1.0)
    cost = pricing.calculate_monthly(_usage(readings), make_plan())
    assert cost.average_per_month[3] > 0
    assert cost.average_per_month[4] == 0.0
    assert cost.average_monthly == pytest.approx(cost.average_per_month[3])


def test_wrap_around_window(hourly, make_plan, tariff_period):
    """Window 12-01..01-31 prices December and January but not November."""
    readings = hourly(date(2023, 11, 1), 30 + 31 + 31, kwh=1.0)
    plan = make_plan([tariff_period(start="12-01", end="01-31")])
    cost = pricing.calculate_monthly(_usage(readings), plan)
    month = 31 * 24 * 0.30 * GST
    assert cost.average_per_month[10] == 0.0
    assert cost.average_per_month[11] == pytest.approx(month)
    assert cost.average_per_month[0] == pytest.approx(month)
    assert cost.average_monthly == pytest.approx(month)


def test_periods_share_monthly_buckets(hourly, make_plan, tariff_period):
    readings = hourly(date(2024, 6, 1), 30 + 31, kwh=1.0)
    plan = make_plan(
        [
            tariff_period(start="01-01", end="06-30", rates=[{"unitPrice": "0.20"}]),
            tariff_period(start="07-01", end="12-31", rates=[{"unitPrice": "0.40"}]),
        ]
    )
    cost = pricing.calculate_monthly(_usage(readings), plan)
    june = 30 * 24 * 0.20 * GST
    july = 31 * 24 * 0.40 * GST
    assert cost.average_per_month[5] == pytest.approx(june)
    assert cost.average_per_month[6] == pytest.approx(july)
    assert cost.average_monthly == pytest.approx((june + july) / 2)


def test_same_month_across_years_is_averaged(hourly, make_plan):
    readings = hourly(date(2023, 1, 1), 31, kwh=1.0) + hourly(date(2024, 1, 1), 31, kwh=3.0)
    cost = pricing.calculate_monthly(_usage(readings), make_plan())
    jan_2023 = 31 * 24 * 1.0 * 0.30 * GST
    jan_2024 = 31 * 24 * 3.0 * 0.30 * GST
    assert cost.average_per_month[0] == pytest.approx((jan_2023 + jan_2024) / 2)


def test_only_general_usage_is_priced(hourly, make_plan):
    usage = {
        NMI: {
            E1: hourly(date(2024, 1, 1), 31, kwh=1.0),
            ReadingType.CONTROLLED_LOAD: hourly(date(2024, 1, 1), 31, kwh=9.0),
            ReadingType.PRIMARY_EXPORT: hourly(date(2024, 1, 1), 31, kwh=9.0),
        }
    }
    cost = pricing.calculate_monthly(usage, make_plan(model="SINGLE_RATE_CONT_LOAD"))
    assert cost.average_monthly == pytest.approx(31 * 24 * 0.30 * GST)


def test_select_nmi_prefers_most_general_usage(hourly):
    usage = {
        "A": {E1: hourly(date(2024, 1, 1), 1), ReadingType.PRIMARY_EXPORT: hourly(date(2024, 1, 1), 9)},
        "B": {E1: hourly(date(2024, 1, 1), 2)},
        "C": {E1: hourly(date(2024, 2, 1), 2)},
    }
    assert pricing.select_nmi(usage) == "B"
    assert pricing.select_nmi(usage, "C") == "C"
    assert pricing.select_nmi({"only": {}}) == "only"


def test_select_nmi_errors():
    with pytest.raises(PricingError, match="no NMIs"):
        pricing.select_nmi({})
    with pytest.raises(PricingError, match="not in the dataset"):
        pricing.select_nmi({"A": {}}, "B")


def test_multiple_nmis_prices_the_selected_one(hourly, make_plan):
    usage = {
        "SMALL": {E1: hourly(date(2024, 1, 1), 3, kwh=5.0)},
        NMI: {E1: hourly(date(2024, 1, 1), 31, kwh=1.0)},
    }
    cost = pricing.calculate_monthly(usage, make_plan())
    assert cost.average_monthly == pytest.approx(31 * 24 * 0.30 * GST)


@pytest.mark.parametrize("model", ["TIME_OF_USE", "TIME_OF_USE_CONT_LOAD", "FLEXIBLE", "QUOTA"])
def test_unsupported_pricing_models(hourly, make_plan, model):
    with pytest.raises(UnsupportedPricingModelError, match=model):
        pricing.calculate_monthly(_usage(hourly(date(2024, 1, 1), 1)), make_plan(model=model))


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"start": "13-01"}, "period date"),
        ({"end": "31-12"}, "period date"),
        ({"supply": "one dollar"}, "daily supply charge"),
        ({"supply": None}, "missing daily supply charge"),
        ({"rates": []}, "empty"),
        ({"rates": [{"unitPrice": "0.2", "volume": 5}]}, "remaining energy"),
        ({"rates": [{"unitPrice": "0.2"}, {"unitPrice": "0.3", "volume": 5}]}, "last"),
        ({"rates": [{"unitPrice": "abc"}]}, "unit price"),
    ],
)
def test_malformed_periods_fail_whole_calculation(hourly, make_plan, tariff_period, kwargs, message):
    plan = make_plan([tariff_period(), tariff_period(**kwargs)])
    with pytest.raises(PricingError, match=message) as exc:
        pricing.calculate_monthly(_usage(hourly(date(2024, 1, 1), 31)), plan)
    assert "tariff period 1" in str(exc.value)


def test_missing_single_rate_block(hourly, make_plan, tariff_period):
    period = tariff_period()
    del period["singleRate"]
    with pytest.raises(PricingError, match="singleRate"):
        pricing.calculate_monthly(_usage(hourly(date(2024, 1, 1), 1)), make_plan([period]))


def test_empty_usage_fails(make_plan):
    with pytest.raises(PricingError):
        pricing.calculate_monthly({}, make_plan())


def test_parse_period_converts_brackets(tariff_period):
    rates = [{"unitPrice": "0.20", "volume": 10}, {"unitPrice": "0.40"}]
    period = TariffPeriod.model_validate(tariff_period(start="12-01", end="02-28", supply="1.5", rates=rates))
    parsed = pricing.parse_period(period, 0)
    assert parsed.start == (12, 1)
    assert parsed.end == (2, 28)
    assert parsed.daily_supply == 1.5
    assert parsed.brackets == (pricing.Bracket(10, 0.20), pricing.Bracket(None, 0.40))


def test_validator_rejects_missing_single_rate_directly(tariff_period):
    raw = tariff_period()
    del raw["singleRate"]
    with pytest.raises(PricingError, match="tariff period 3 .*singleRate"):
        validate_single_rate_period(TariffPeriod.model_validate(raw), 3)
