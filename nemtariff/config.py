from __future__ import annotations

from dataclasses import dataclass, field

from . import canon


@dataclass
class ParserConfig:
    # Timezone the NEM12 interval dates are interpreted in (market time)
    tz: str = canon.DEFAULT_TZ
    # Rows buffered between the reader thread and the state machine
    queue_size: int = 64
    variable_quality_method: str = canon.VARIABLE_QUALITY_METHOD


@dataclass
class CalculatorConfig:
    gst_multiplier: float = canon.GST_MULTIPLIER
    # Months observed for fewer days than this are dropped, not extrapolated
    min_days_per_month: int = canon.MIN_DAYS_PER_MONTH


@dataclass
class Config:
    parser: ParserConfig = field(default_factory=ParserConfig)
    calculator: CalculatorConfig = field(default_factory=CalculatorConfig)


def default_config() -> Config:
    return Config()
