from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

from . import canon


class ReadingType(str, Enum):
    """Kind of interval data a 200 block carries, keyed by its NMI suffix.

    Suffixes are interpreted broadly: the first register of each kind is
    what matters for pricing.
    """

    GENERAL_USAGE = "E1"
    CONTROLLED_LOAD = "E2"
    PRIMARY_EXPORT = "B1"
    SECONDARY_EXPORT = "B2"

    @classmethod
    def from_suffix(cls, suffix: str) -> Optional["ReadingType"]:
        try:
            return cls(suffix)
        except ValueError:
            return None

    @property
    def flow(self) -> str:
        return canon.CHANNEL_MAP[self.value]


## NEM12 records


@dataclass(frozen=True)
class HeaderRecord:
    version_header: str
    created: Optional[datetime] = None
    from_participant: str = ""
    to_participant: str = ""


@dataclass(frozen=True)
class DataDetailsRecord:
    nmi: str
    nmi_suffix: str
    uom: str
    interval_length: int  # minutes, divides 60
    nmi_configuration: str = ""
    register_id: str = ""
    mdm_data_stream_identifier: str = ""
    meter_serial_number: str = ""
    next_scheduled_read_date: Optional[date] = None

    @property
    def reading_type(self) -> Optional[ReadingType]:
        return ReadingType.from_suffix(self.nmi_suffix)

    @property
    def values_per_day(self) -> int:
        return canon.MINUTES_PER_DAY // self.interval_length

    @property
    def values_per_hour(self) -> int:
        return canon.MINUTES_PER_HOUR // self.interval_length


@dataclass(frozen=True)
class QualityData:
    quality_method: str
    reason_code: Optional[int] = None
    reason_description: Optional[str] = None


@dataclass(frozen=True)
class IntervalValue:
    value: float
    # Set when a 400 record overrides the quality of this value
    quality: Optional[QualityData] = None


@dataclass(frozen=True)
class IntervalEventRecord:
    start_interval: int  # 1-indexed, inclusive
    end_interval: int  # 1-indexed, inclusive
    quality_method: str
    reason_code: Optional[int] = None
    reason_description: Optional[str] = None

    @property
    def quality(self) -> QualityData:
        return QualityData(
            self.quality_method, self.reason_code, self.reason_description
        )


@dataclass(frozen=True)
class IntervalDataRecord:
    interval_date: date
    values: Tuple[IntervalValue, ...]
    quality_method: str
    reason_code: Optional[int] = None
    reason_description: Optional[str] = None
    update_datetime: Optional[datetime] = None
    msats_load_datetime: Optional[datetime] = None

    @property
    def default_quality(self) -> QualityData:
        return QualityData(
            self.quality_method, self.reason_code, self.reason_description
        )

    def with_event(self, event: IntervalEventRecord) -> "IntervalDataRecord":
        """Return a copy with the event's quality applied to its value range."""
        lo = event.start_interval - 1
        hi = event.end_interval
        quality = event.quality
        patched = tuple(
            replace(v, quality=quality) if lo <= i < hi else v
            for i, v in enumerate(self.values)
        )
        return replace(self, values=patched)


## Reconstructed usage


@dataclass(frozen=True)
class HourlyReading:
    start: datetime
    end: datetime
    energy_kwh: float
    # An hour can be built from values with different quality, so all are kept
    quality_methods: frozenset[str] = frozenset()
    reason_codes: frozenset[int] = frozenset()
    reason_descriptions: frozenset[str] = frozenset()


# NMI -> reading type -> readings in finalization order
UsageData = Dict[str, Dict[ReadingType, List[HourlyReading]]]


## Pricing result


def _twelve_zeros() -> List[float]:
    return [0.0] * 12


@dataclass
class Cost:
    # Average monthly cost over all months with enough data
    average_monthly: float = 0.0
    # Average cost per calendar month, January at index 0; zero when unknown
    average_per_month: List[float] = field(default_factory=_twelve_zeros)
