from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import pandas as pd

from . import canon
from .types import Cost, HourlyReading, ReadingType, UsageData


def _joined(values) -> str:
    return "|".join(sorted(str(v) for v in values))


def reading_to_dict(r: HourlyReading) -> Dict[str, Any]:
    return {
        "start": r.start.isoformat(),
        "end": r.end.isoformat(),
        "energy_kwh": r.energy_kwh,
        "quality_methods": sorted(r.quality_methods),
        "reason_codes": sorted(r.reason_codes),
        "reason_descriptions": sorted(r.reason_descriptions),
    }


def usage_to_dict(usage: UsageData) -> Dict[str, Dict[str, List[Dict[str, Any]]]]:
    """JSON-ready mapping NMI -> suffix -> list of readings."""
    return {
        nmi: {rt.value: [reading_to_dict(r) for r in readings] for rt, readings in by_type.items()}
        for nmi, by_type in usage.items()
    }


def cost_to_dict(cost: Cost) -> Dict[str, Any]:
    return asdict(cost)


def to_frame(
    usage: UsageData,
    *,
    channel: Optional[ReadingType] = None,
    tz: str = canon.DEFAULT_TZ,
) -> pd.DataFrame:
    """
    Flatten UsageData into a canonical hourly interval dataframe:
      - index: tz-aware 't_start'
      - columns: nmi, channel, flow, kwh, cadence_min,
        quality_method, reason_code, reason_description
    Quality sets are joined with '|' in sorted order.
    """
    records = []
    for nmi, by_type in usage.items():
        for rt, readings in by_type.items():
            if channel is not None and rt is not channel:
                continue
            for r in readings:
                records.append(
                    {
                        canon.INDEX_NAME: r.start,
                        "nmi": nmi,
                        "channel": rt.value,
                        "flow": rt.flow,
                        "kwh": r.energy_kwh,
                        "cadence_min": canon.MINUTES_PER_HOUR,
                        "quality_method": _joined(r.quality_methods),
                        "reason_code": _joined(r.reason_codes),
                        "reason_description": _joined(r.reason_descriptions),
                    }
                )

    if not records:
        idx = pd.DatetimeIndex([], tz=tz, name=canon.INDEX_NAME)
        return pd.DataFrame(columns=canon.FRAME_COLS, index=idx)

    df = pd.DataFrame.from_records(records)
    df["kwh"] = df["kwh"].astype(float)
    df[canon.INDEX_NAME] = pd.to_datetime(df[canon.INDEX_NAME])
    df = df.set_index(canon.INDEX_NAME).sort_index(kind="stable")
    return df[canon.FRAME_COLS]
