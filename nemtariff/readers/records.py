"""Decoders for individual NEM12 rows.

Each decoder takes one already-split row and returns a typed record, raising
DecodeError that names the record kind and the offending field. Optional
fields that are absent decode to None; present but malformed ones fail.
"""

from __future__ import annotations
from datetime import date, datetime
from typing import List, Optional, Sequence

from .. import canon
from ..exceptions import DecodeError
from ..types import (
    DataDetailsRecord,
    HeaderRecord,
    IntervalDataRecord,
    IntervalEventRecord,
    IntervalValue,
)

Row = Sequence[str]


def _field(row: Row, idx: int) -> str:
    return row[idx].strip() if idx < len(row) else ""


def _mandatory(row: Row, idx: int, kind: int, name: str) -> str:
    val = _field(row, idx)
    if not val:
        raise DecodeError(f"{kind} record: missing mandatory field {name}")
    return val


def _to_int(val: str, kind: int, name: str) -> int:
    try:
        return int(val)
    except ValueError:
        raise DecodeError(f"{kind} record: {name} cannot be parsed: {val!r}") from None


def _to_float(val: str, kind: int, name: str) -> float:
    try:
        return float(val)
    except ValueError:
        raise DecodeError(f"{kind} record: {name} cannot be parsed: {val!r}") from None


def _to_datetime(val: str, fmt: str, kind: int, name: str) -> datetime:
    try:
        return datetime.strptime(val, fmt)
    except ValueError:
        raise DecodeError(f"{kind} record: {name} cannot be parsed: {val!r}") from None


def _optional_int(row: Row, idx: int, kind: int, name: str) -> Optional[int]:
    val = _field(row, idx)
    return _to_int(val, kind, name) if val else None


def _optional_datetime(
    row: Row, idx: int, fmt: str, kind: int, name: str
) -> Optional[datetime]:
    val = _field(row, idx)
    return _to_datetime(val, fmt, kind, name) if val else None


def _optional_str(row: Row, idx: int) -> Optional[str]:
    return _field(row, idx) or None


def decode_header(row: Row) -> HeaderRecord:
    kind = canon.HEADER
    return HeaderRecord(
        version_header=_mandatory(row, 1, kind, "VersionHeader"),
        created=_optional_datetime(
            row, 2, canon.HEADER_DATETIME_FORMAT, kind, "DateTime"
        ),
        from_participant=_field(row, 3),
        to_participant=_field(row, 4),
    )


def decode_details(row: Row) -> DataDetailsRecord:
    kind = canon.DATA_DETAILS
    interval_length = _to_int(
        _mandatory(row, 8, kind, "IntervalLength"), kind, "IntervalLength"
    )
    # Hourly readings are built from whole groups of values
    if interval_length <= 0 or canon.MINUTES_PER_HOUR % interval_length:
        raise DecodeError(
            f"{kind} record: IntervalLength {interval_length} does not divide an hour"
        )
    next_read = _optional_datetime(
        row, 9, canon.DATE_FORMAT, kind, "NextScheduledReadDate"
    )
    return DataDetailsRecord(
        nmi=_mandatory(row, 1, kind, "NMI"),
        nmi_configuration=_field(row, 2),
        register_id=_field(row, 3),
        nmi_suffix=_mandatory(row, 4, kind, "NMISuffix"),
        mdm_data_stream_identifier=_field(row, 5),
        meter_serial_number=_field(row, 6),
        uom=_mandatory(row, 7, kind, "UOM"),
        interval_length=interval_length,
        next_scheduled_read_date=next_read.date() if next_read else None,
    )


def decode_interval(row: Row, details: DataDetailsRecord) -> IntervalDataRecord:
    """
    Decode a 300 row against the 200 record that governs it.

    Layout: 300, IntervalDate, n values, QualityMethod, ReasonCode,
    ReasonDescription, UpdateDateTime, MSATSLoadDateTime
    where n = 1440 / IntervalLength.
    """
    kind = canon.INTERVAL_DATA
    interval_date: date = _to_datetime(
        _mandatory(row, 1, kind, "IntervalDate"), canon.DATE_FORMAT, kind, "IntervalDate"
    ).date()

    n = details.values_per_day
    after = n + 2
    if len(row) < after + 1:
        raise DecodeError(
            f"{kind} record: not enough interval values, expected {n} "
            f"followed by QualityMethod, got {max(len(row) - 2, 0)} fields"
        )

    values: List[IntervalValue] = []
    for i, raw in enumerate(row[2:after], start=1):
        values.append(
            IntervalValue(_to_float(raw.strip(), kind, f"IntervalValue{i}"))
        )

    return IntervalDataRecord(
        interval_date=interval_date,
        values=tuple(values),
        quality_method=_mandatory(row, after, kind, "QualityMethod"),
        reason_code=_optional_int(row, after + 1, kind, "ReasonCode"),
        reason_description=_optional_str(row, after + 2),
        update_datetime=_optional_datetime(
            row, after + 3, canon.DATETIME_FORMAT, kind, "UpdateDateTime"
        ),
        msats_load_datetime=_optional_datetime(
            row, after + 4, canon.DATETIME_FORMAT, kind, "MSATSLoadDateTime"
        ),
    )


def decode_event(row: Row) -> IntervalEventRecord:
    kind = canon.INTERVAL_EVENT
    return IntervalEventRecord(
        start_interval=_to_int(
            _mandatory(row, 1, kind, "StartInterval"), kind, "StartInterval"
        ),
        end_interval=_to_int(
            _mandatory(row, 2, kind, "EndInterval"), kind, "EndInterval"
        ),
        quality_method=_mandatory(row, 3, kind, "QualityMethod"),
        reason_code=_optional_int(row, 4, kind, "ReasonCode"),
        reason_description=_optional_str(row, 5),
    )
