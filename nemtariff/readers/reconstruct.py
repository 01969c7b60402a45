from __future__ import annotations
import logging
import warnings
from datetime import datetime, time, timedelta
from enum import Enum
from typing import List, Optional, Sequence
from zoneinfo import ZoneInfo

from .. import canon, units
from ..config import ParserConfig
from ..exceptions import (
    DecodeError,
    StateError,
    UnitConversionError,
    UnrecognisedRecordWarning,
    UnsupportedBlockWarning,
    MissingTerminatorWarning,
)
from ..types import (
    DataDetailsRecord,
    HourlyReading,
    IntervalDataRecord,
    IntervalEventRecord,
    UsageData,
)
from . import records

logger = logging.getLogger(__name__)


class State(str, Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"
    SKIPPING = "skipping"
    DONE = "done"


class IntervalReconstructor:
    """
    Per-file NEM12 state machine.

    Feed rows in file order. The current 200 record governs how 300 rows are
    read; the open 300 record stays open (and patchable by 400 rows) until the
    next 200, 300 or 900 row, at which point it is finalised into 24 hourly
    readings and appended to the dataset.
    """

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or ParserConfig()
        self.state = State.IDLE
        self.errors: List[UnitConversionError] = []
        self._zone = ZoneInfo(self.config.tz)
        self._details: Optional[DataDetailsRecord] = None
        self._open: Optional[IntervalDataRecord] = None
        self._data: UsageData = {}

    @property
    def data(self) -> UsageData:
        return self._data

    @property
    def done(self) -> bool:
        return self.state is State.DONE

    def feed(self, row: Sequence[str], row_number: Optional[int] = None) -> State:
        """Advance the state machine by one raw row and return the new state."""
        if self.done:
            raise StateError(f"{_where(row_number)}record after end of data")
        if not row or not any(f.strip() for f in row):
            return self.state

        try:
            indicator = int(row[0])
        except ValueError:
            _warn(
                f"{_where(row_number)}could not parse record indicator {row[0]!r}, skipping row",
                UnrecognisedRecordWarning,
            )
            return self.state

        try:
            self._dispatch(indicator, row, row_number)
        except DecodeError as exc:
            raise DecodeError(f"{_where(row_number)}{exc}") from exc
        return self.state

    def finish(self) -> UsageData:
        """Close out the stream when input ends, with or without a 900 row."""
        if not self.done:
            _warn("Missing 900 record", MissingTerminatorWarning)
            self._finalise()
            self.state = State.DONE
        return self._data

    def _dispatch(self, indicator: int, row: Sequence[str], row_number: Optional[int]):
        if indicator == canon.DATA_DETAILS:
            self._finalise()
            self._details = records.decode_details(row)
            reading_type = self._details.reading_type
            if reading_type is None:
                _warn(
                    f"{_where(row_number)}200 record has unsupported suffix "
                    f"{self._details.nmi_suffix!r}, skipping block",
                    UnsupportedBlockWarning,
                )
                self.state = State.SKIPPING
                return
            self._data.setdefault(self._details.nmi, {}).setdefault(reading_type, [])
            self.state = State.IDLE
            logger.debug("Parsed 200 record %s", self._details)

        elif indicator == canon.INTERVAL_DATA:
            if self.state is State.SKIPPING:
                return
            self._finalise()
            if self._details is None:
                raise StateError(f"{_where(row_number)}300 record before any 200 record")
            self._open = records.decode_interval(row, self._details)
            self.state = State.ACCUMULATING
            logger.debug("Parsed 300 record for %s", self._open.interval_date)

        elif indicator == canon.INTERVAL_EVENT:
            if self.state is State.SKIPPING:
                return
            event = records.decode_event(row)
            self._apply_event(event, row_number)
            logger.debug("Parsed 400 record %s", event)

        elif indicator == canon.B2B_DETAILS:
            # Manual register read; adds nothing to interval energy
            return

        elif indicator == canon.END_OF_DATA:
            self._finalise()
            self.state = State.DONE

        else:
            _warn(
                f"{_where(row_number)}unrecognised record indicator: {indicator}",
                UnrecognisedRecordWarning,
            )

    def _apply_event(self, event: IntervalEventRecord, row_number: Optional[int]):
        if self._open is None:
            raise StateError(f"{_where(row_number)}400 record without an open 300 record")
        n = len(self._open.values)
        if not 1 <= event.start_interval <= event.end_interval <= n:
            raise StateError(
                f"{_where(row_number)}400 record range "
                f"[{event.start_interval}, {event.end_interval}] outside 1..{n}"
            )
        self._open = self._open.with_event(event)

    def _finalise(self) -> None:
        if self._open is None:
            return
        interval, self._open = self._open, None
        details = self._details
        if details is None or details.reading_type is None:
            raise StateError("interval record open without a supported 200 record")
        try:
            readings = self.to_hourly(details, interval)
        except UnitConversionError as exc:
            logger.error(
                "Dropping readings for %s %s on %s: %s",
                details.nmi,
                details.nmi_suffix,
                interval.interval_date,
                exc,
            )
            self.errors.append(exc)
            return
        self._data[details.nmi][details.reading_type].extend(readings)

    def to_hourly(
        self, details: DataDetailsRecord, interval: IntervalDataRecord
    ) -> List[HourlyReading]:
        """Collapse one day of interval values into 24 hourly kWh readings."""
        multiplier = units.kwh_multiplier(details.uom)
        per_hour = details.values_per_hour
        day_start = datetime.combine(interval.interval_date, time(), tzinfo=self._zone)
        default = interval.default_quality
        variable = self.config.variable_quality_method

        out: List[HourlyReading] = []
        for hr in range(canon.HOURS_PER_DAY):
            start = day_start + timedelta(hours=hr)
            chunk = interval.values[hr * per_hour : (hr + 1) * per_hour]
            methods: set[str] = set()
            codes: set[int] = set()
            descriptions: set[str] = set()
            total = 0.0
            for v in chunk:
                total += v.value
                q = v.quality or default
                if v.quality is not None or q.quality_method != variable:
                    methods.add(q.quality_method)
                if q.reason_code is not None:
                    codes.add(q.reason_code)
                if q.reason_description:
                    descriptions.add(q.reason_description)
            out.append(
                HourlyReading(
                    start=start,
                    end=start + timedelta(hours=1),
                    energy_kwh=total * multiplier,
                    quality_methods=frozenset(methods),
                    reason_codes=frozenset(codes),
                    reason_descriptions=frozenset(descriptions),
                )
            )
        return out


def _where(row_number: Optional[int]) -> str:
    return f"row {row_number}: " if row_number is not None else ""


def _warn(message: str, category: type[Warning]) -> None:
    warnings.warn(message, category, stacklevel=3)
